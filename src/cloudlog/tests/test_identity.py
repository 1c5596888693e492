"""Tests for trace identity generation, parsing and serialization.

Validates:
- W3C traceparent round-trip keeps trace id, version and flags
- Malformed headers never raise and always yield a valid identity
- Child derivation keeps the trace and changes the span
- Cloud Trace and X-Ray header handling
"""

from __future__ import annotations

import re

import pytest
from hypothesis import given
from hypothesis import strategies as st

from cloudlog.foundation.config import VendorMode
from cloudlog.tracing import (
    TraceIdentity,
    derive_child,
    generate,
    is_xray_trace_id,
    parse_cloud_trace_context,
    parse_w3c_traceparent,
    parse_x_amzn_trace_id,
    to_xray_trace_id,
    try_parse_w3c_traceparent,
    x_amzn_trace_header,
    xray_to_hex,
)

HEX32 = re.compile(r"[0-9a-f]{32}")
HEX16 = re.compile(r"[0-9a-f]{16}")
XRAY = re.compile(r"1-[0-9a-f]{8}-[0-9a-f]{24}")

hex_chars = st.sampled_from("0123456789abcdef")
hex32 = st.text(hex_chars, min_size=32, max_size=32)
hex16 = st.text(hex_chars, min_size=16, max_size=16)
hex2 = st.text(hex_chars, min_size=2, max_size=2)


def _valid(ident: TraceIdentity) -> bool:
    trace_ok = HEX32.fullmatch(ident.trace_id) or XRAY.fullmatch(ident.trace_id)
    return bool(trace_ok) and HEX16.fullmatch(ident.span_id) is not None


# ═════════════════════════════════════════════════════════════════════════════
# Generation
# ═════════════════════════════════════════════════════════════════════════════


def test_generate_gcp_shape() -> None:
    ident = generate(VendorMode.GCP)
    assert HEX32.fullmatch(ident.trace_id)
    assert HEX16.fullmatch(ident.span_id)
    assert ident.parent_id is None
    assert ident.version == "00"
    assert ident.sampled


def test_generate_aws_shape() -> None:
    ident = generate("aws")
    assert XRAY.fullmatch(ident.trace_id)
    assert ident.is_xray
    assert HEX16.fullmatch(ident.span_id)


def test_generate_is_unique() -> None:
    ids = {generate().trace_id for _ in range(200)}
    assert len(ids) == 200


def test_identity_validates_fields() -> None:
    with pytest.raises(ValueError):
        TraceIdentity(trace_id="xyz", span_id="00f067aa0ba902b7")
    with pytest.raises(ValueError):
        TraceIdentity(trace_id="4bf92f3577b34da6a3ce929d0e0e4736", span_id="short")


# ═════════════════════════════════════════════════════════════════════════════
# W3C traceparent
# ═════════════════════════════════════════════════════════════════════════════


def test_traceparent_parse_and_reserialize() -> None:
    header = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"
    ident = parse_w3c_traceparent(header)
    version, trace_id, span_id, flags = ident.to_w3c_traceparent().split("-")

    assert version == "00"
    assert trace_id == "4bf92f3577b34da6a3ce929d0e0e4736"
    assert HEX16.fullmatch(span_id)
    assert span_id != "00f067aa0ba902b7"
    assert flags == "01"
    assert ident.parent_id == "00f067aa0ba902b7"


def test_traceparent_unsampled_flags() -> None:
    ident = parse_w3c_traceparent("00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-00")
    assert not ident.sampled
    assert ident.to_w3c_traceparent().endswith("-00")


@given(version=hex2, trace_id=hex32, span_id=hex16, flags=hex2)
def test_traceparent_round_trip_preserves_trace(version: str, trace_id: str, span_id: str, flags: str) -> None:
    ident = parse_w3c_traceparent(f"{version}-{trace_id}-{span_id}-{flags}")
    out_version, out_trace, out_span, out_flags = ident.to_w3c_traceparent().split("-")
    assert (out_version, out_trace, out_flags) == (version, trace_id, flags)
    assert HEX16.fullmatch(out_span)


@pytest.mark.parametrize("header", [
    None,
    "",
    "garbage",
    "00-4BF92F3577B34DA6A3CE929D0E0E4736-00f067aa0ba902b7-01",  # uppercase
    "00-4bf92f3577b34da6a3ce929d0e0e473-00f067aa0ba902b7-01",  # short trace
    "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b-01",  # short span
    "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7",  # no flags
    "00_4bf92f3577b34da6a3ce929d0e0e4736_00f067aa0ba902b7_01",
])
def test_traceparent_malformed_falls_back(header: str | None) -> None:
    assert try_parse_w3c_traceparent(header) is None
    ident = parse_w3c_traceparent(header)
    assert _valid(ident)
    assert ident.parent_id is None


@given(st.text())
def test_parsers_never_raise(header: str) -> None:
    for ident in (
        parse_w3c_traceparent(header),
        parse_cloud_trace_context(header),
        parse_x_amzn_trace_id(header),
    ):
        assert _valid(ident)


# ═════════════════════════════════════════════════════════════════════════════
# Child derivation
# ═════════════════════════════════════════════════════════════════════════════


@given(st.sampled_from([VendorMode.GCP, VendorMode.AWS]))
def test_child_keeps_trace_and_changes_span(vendor: VendorMode) -> None:
    parent = generate(vendor)
    child = derive_child(parent)
    assert child.trace_id == parent.trace_id
    assert child.span_id != parent.span_id
    assert child.parent_id == parent.span_id
    assert child.trace_flags == parent.trace_flags


def test_child_keeps_trace_state() -> None:
    parent = generate().with_trace_state("vendor=abc,other=1")
    child = parent.child()
    assert child.to_trace_state() == "vendor=abc,other=1"


# ═════════════════════════════════════════════════════════════════════════════
# tracestate
# ═════════════════════════════════════════════════════════════════════════════


def test_trace_state_skips_invalid_members() -> None:
    ident = generate().with_trace_state("good=1, =bad, Upper=2, noequals, ok@vendor=x")
    assert ident.trace_state_entries == {"good": "1", "ok@vendor": "x"}


def test_trace_state_empty_header_is_noop() -> None:
    ident = generate()
    assert ident.with_trace_state(None) is ident
    assert ident.with_trace_state("") is ident
    assert ident.to_trace_state() == ""


def test_trace_state_caps_entries() -> None:
    header = ",".join(f"k{i}=v{i}" for i in range(40))
    assert len(generate().with_trace_state(header).trace_state) == 32


# ═════════════════════════════════════════════════════════════════════════════
# Google Cloud Trace
# ═════════════════════════════════════════════════════════════════════════════


def test_cloud_trace_context_parse() -> None:
    ident = parse_cloud_trace_context("105445aa7843bc8bf206b12000100000/00f067aa0ba902b7;o=1")
    assert ident.trace_id == "105445aa7843bc8bf206b12000100000"
    assert ident.parent_id == "00f067aa0ba902b7"
    assert ident.sampled


def test_cloud_trace_context_unsampled_and_padded() -> None:
    ident = parse_cloud_trace_context("abc123/1;o=0")
    assert ident.trace_id == "abc123".rjust(32, "0")
    assert ident.parent_id == "1".rjust(16, "0")
    assert not ident.sampled
    assert ident.to_cloud_trace_header().endswith(";o=0")


def test_cloud_trace_context_without_span() -> None:
    ident = parse_cloud_trace_context("105445aa7843bc8bf206b12000100000")
    assert ident.trace_id == "105445aa7843bc8bf206b12000100000"
    assert ident.parent_id is None
    assert ident.sampled


def test_cloud_trace_header_format() -> None:
    ident = generate()
    assert ident.to_cloud_trace_header() == f"{ident.trace_id}/{ident.span_id};o=1"


@pytest.mark.parametrize("header", ["", "not-hex/123", "/123;o=1", "g" * 32])
def test_cloud_trace_context_malformed(header: str) -> None:
    ident = parse_cloud_trace_context(header)
    assert _valid(ident)
    assert ident.parent_id is None


# ═════════════════════════════════════════════════════════════════════════════
# AWS X-Ray
# ═════════════════════════════════════════════════════════════════════════════


def test_x_amzn_trace_id_parse() -> None:
    header = "Root=1-5759e988-bd862e3fe1be46a994272793;Parent=53995c3f42cd8ad8;Sampled=1"
    ident = parse_x_amzn_trace_id(header)
    assert ident.trace_id == "1-5759e988-bd862e3fe1be46a994272793"
    assert ident.parent_id == "53995c3f42cd8ad8"
    assert ident.sampled
    assert ident.span_id != "53995c3f42cd8ad8"


def test_x_amzn_trace_id_unsampled() -> None:
    ident = parse_x_amzn_trace_id("Root=1-5759e988-bd862e3fe1be46a994272793;Sampled=0")
    assert not ident.sampled
    assert ident.parent_id is None


def test_x_amzn_trace_id_serialize_reuses_root() -> None:
    ident = parse_x_amzn_trace_id("Root=1-5759e988-bd862e3fe1be46a994272793;Parent=53995c3f42cd8ad8")
    assert ident.to_x_amzn_trace_id() == (
        f"Root=1-5759e988-bd862e3fe1be46a994272793;Parent={ident.span_id};Sampled=1"
    )


@pytest.mark.parametrize("header", ["", "Root=abc", "Parent=53995c3f42cd8ad8", "Root=2-5759e988-bd862e3fe1be46a994272793"])
def test_x_amzn_trace_id_malformed_generates_xray(header: str) -> None:
    ident = parse_x_amzn_trace_id(header)
    assert XRAY.fullmatch(ident.trace_id)


def test_xray_conversion_helpers() -> None:
    assert is_xray_trace_id("1-5759e988-bd862e3fe1be46a994272793")
    assert not is_xray_trace_id("4bf92f3577b34da6a3ce929d0e0e4736")
    assert xray_to_hex("1-5759e988-bd862e3fe1be46a994272793") == "5759e988bd862e3fe1be46a994272793"
    assert to_xray_trace_id(None) is None
    assert to_xray_trace_id("Root=1-5759e988-bd862e3fe1be46a994272793;Sampled=1") == (
        "1-5759e988-bd862e3fe1be46a994272793"
    )


def test_to_xray_uses_timestamp_and_first_24_hex() -> None:
    out = to_xray_trace_id("4bf92f3577b34da6a3ce929d0e0e4736", "2024-01-01T00:00:00Z")
    assert out == "1-65920080-4bf92f3577b34da6a3ce929d"


def test_x_amzn_trace_header() -> None:
    header = x_amzn_trace_header("1-5759e988-bd862e3fe1be46a994272793", "53995c3f42cd8ad8", sampled=False)
    assert header == "Root=1-5759e988-bd862e3fe1be46a994272793;Parent=53995c3f42cd8ad8;Sampled=0"
    assert x_amzn_trace_header(None) is None


def test_gcp_identity_renders_all_formats() -> None:
    ident = parse_w3c_traceparent("00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01")
    assert ident.to_cloud_trace_header().startswith("4bf92f3577b34da6a3ce929d0e0e4736/")
    assert XRAY.fullmatch(ident.to_x_amzn_trace_id().split(";")[0].removeprefix("Root="))
