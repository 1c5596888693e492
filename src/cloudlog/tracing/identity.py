"""Trace identity and its wire codecs.

One immutable ``TraceIdentity`` is derived per inbound unit of work from
whichever propagation header is present:

- W3C Trace Context: ``traceparent: 00-{trace}-{span}-{flags}`` (+ ``tracestate``)
- Google Cloud Trace: ``x-cloud-trace-context: {trace}/{span};o=1``
- AWS X-Ray: ``x-amzn-trace-id: Root=1-{epoch}-{id};Parent={span};Sampled=1``

Parsers never raise. Malformed or missing input yields a freshly generated
identity, so every request has a valid one. The span id is always generated
locally; the upstream span id from the header is kept as ``parent_id``.

Example:
    >>> ident = parse_w3c_traceparent("00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01")
    >>> ident.trace_id
    '4bf92f3577b34da6a3ce929d0e0e4736'
    >>> ident.parent_id
    '00f067aa0ba902b7'
    >>> child = ident.child()
    >>> child.trace_id == ident.trace_id and child.span_id != ident.span_id
    True
"""

from __future__ import annotations

import re
import secrets
import time
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, computed_field

from cloudlog.foundation.config import VendorMode, coerce_vendor

from .xray import is_xray_trace_id, to_xray_trace_id, xray_to_hex

_TRACEPARENT = re.compile(r"^([0-9a-f]{2})-([0-9a-f]{32})-([0-9a-f]{16})-([0-9a-f]{2})$")
_CLOUD_TRACE_ID = re.compile(r"^[0-9a-fA-F]{1,32}$")
_CLOUD_SPAN_ID = re.compile(r"^[0-9a-fA-F]{1,16}$")
_NON_HEX = re.compile(r"[^0-9a-f]")
_TRACESTATE_KEY = re.compile(r"^[a-z0-9][a-z0-9_\-*/@]{0,255}$")

SAMPLED_FLAG = 0x01
# W3C caps tracestate at 32 list members
MAX_TRACESTATE_ENTRIES = 32

TraceStateEntries = tuple[tuple[str, str], ...]


class TraceIdentity(BaseModel):
    """Trace id, span id, sampling flag and vendor trace state for one span.

    Attributes:
        trace_id: 32 lowercase hex, or X-Ray form ``1-{8 hex}-{24 hex}``
        span_id: 16 lowercase hex, generated locally
        parent_id: upstream span id taken from the inbound header, if any
        version: W3C traceparent version
        trace_flags: W3C flags byte; bit 0 is the sampled flag
        trace_state: ordered vendor key/value pairs from ``tracestate``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        revalidate_instances="never",
    )

    trace_id: Annotated[str, Field(pattern=r"^(?:[0-9a-f]{32}|1-[0-9a-f]{8}-[0-9a-f]{24})$")]
    span_id: Annotated[str, Field(pattern=r"^[0-9a-f]{16}$")]
    parent_id: Annotated[str | None, Field(pattern=r"^[0-9a-f]{16}$")] = None
    version: Annotated[str, Field(pattern=r"^[0-9a-f]{2}$")] = "00"
    trace_flags: Annotated[int, Field(ge=0, le=0xFF)] = SAMPLED_FLAG
    trace_state: TraceStateEntries = ()

    @computed_field
    @property
    def sampled(self) -> bool:
        return bool(self.trace_flags & SAMPLED_FLAG)

    @property
    def is_xray(self) -> bool:
        """Whether the trace id is stored in X-Ray form."""
        return is_xray_trace_id(self.trace_id)

    @property
    def hex_trace_id(self) -> str:
        """Trace id as 32 hex digits regardless of storage form."""
        return xray_to_hex(self.trace_id)

    @property
    def trace_state_entries(self) -> dict[str, str]:
        """Copy of the trace state as an ordered dict."""
        return dict(self.trace_state)

    # ─────────────────────────────────────────────────────────────────────
    # Derivation
    # ─────────────────────────────────────────────────────────────────────

    def child(self) -> TraceIdentity:
        """New span in the same trace: same trace id, flags and state, fresh span id."""
        return TraceIdentity.model_construct(
            trace_id=self.trace_id,
            span_id=_new_span_id(),
            parent_id=self.span_id,
            version=self.version,
            trace_flags=self.trace_flags,
            trace_state=tuple(self.trace_state),
        )

    def with_trace_state(self, header: str | None) -> TraceIdentity:
        """Merge a ``tracestate`` header into the trace state. Invalid members are skipped."""
        if not header or not isinstance(header, str):
            return self
        entries = dict(self.trace_state)
        for member in header.split(","):
            key, sep, value = member.strip().partition("=")
            key, value = key.strip(), value.strip()
            if not sep or not key or not value or "=" in value or " " in value:
                continue
            if not _TRACESTATE_KEY.fullmatch(key):
                continue
            if key not in entries and len(entries) >= MAX_TRACESTATE_ENTRIES:
                continue
            entries[key] = value
        if not entries:
            return self
        return self.model_copy(update={"trace_state": tuple(entries.items())})

    # ─────────────────────────────────────────────────────────────────────
    # Serializers
    # ─────────────────────────────────────────────────────────────────────

    def to_w3c_traceparent(self) -> str:
        return f"{self.version}-{self.hex_trace_id}-{self.span_id}-{self.trace_flags:02x}"

    def to_trace_state(self) -> str:
        return ",".join(f"{k}={v}" for k, v in self.trace_state)

    def to_cloud_trace_header(self) -> str:
        return f"{self.hex_trace_id}/{self.span_id};o={'1' if self.sampled else '0'}"

    def to_x_amzn_trace_id(self) -> str:
        """X-Ray header value.

        An X-Ray-shaped trace id is reused verbatim. Any other id is given
        the current epoch second as its time component, which approximates
        rather than records when the trace started.
        """
        root = to_xray_trace_id(self.trace_id)
        return f"Root={root};Parent={self.span_id};Sampled={'1' if self.sampled else '0'}"


# ─────────────────────────────────────────────────────────────────────────────
# Generation
# ─────────────────────────────────────────────────────────────────────────────


def _new_span_id() -> str:
    return secrets.token_hex(8)


def _new_trace_id(vendor: VendorMode) -> str:
    if vendor == VendorMode.AWS:
        return f"1-{int(time.time()) & 0xFFFFFFFF:08x}-{secrets.token_hex(12)}"
    return secrets.token_hex(16)


def generate(vendor: VendorMode | str = VendorMode.GCP) -> TraceIdentity:
    """Fresh identity with a random 128-bit trace id and 64-bit span id."""
    return TraceIdentity.model_construct(
        trace_id=_new_trace_id(coerce_vendor(vendor)),
        span_id=_new_span_id(),
        parent_id=None,
        version="00",
        trace_flags=SAMPLED_FLAG,
        trace_state=(),
    )


def derive_child(identity: TraceIdentity) -> TraceIdentity:
    return identity.child()


# ─────────────────────────────────────────────────────────────────────────────
# Parsers
#
# try_parse_* return None on malformed input so callers can fall through to
# the next header; parse_* wrap them with the generate() fallback.
# ─────────────────────────────────────────────────────────────────────────────


def try_parse_w3c_traceparent(header: str | None) -> TraceIdentity | None:
    if not header or not isinstance(header, str):
        return None
    match = _TRACEPARENT.fullmatch(header.strip())
    if match is None:
        return None
    version, trace_id, parent_id, flags = match.groups()
    return TraceIdentity.model_construct(
        trace_id=trace_id,
        span_id=_new_span_id(),
        parent_id=parent_id,
        version=version,
        trace_flags=int(flags, 16),
        trace_state=(),
    )


def try_parse_cloud_trace_context(header: str | None) -> TraceIdentity | None:
    if not header or not isinstance(header, str):
        return None
    trace_span, _, options = header.strip().partition(";")
    trace_id, _, span = trace_span.partition("/")
    if not _CLOUD_TRACE_ID.fullmatch(trace_id):
        return None
    option = ""
    for opt in options.split(";"):
        name, _, value = opt.strip().partition("=")
        if name == "o":
            option = value.strip()
    return TraceIdentity.model_construct(
        trace_id=trace_id.lower().rjust(32, "0"),
        span_id=_new_span_id(),
        parent_id=span.lower().rjust(16, "0") if _CLOUD_SPAN_ID.fullmatch(span) else None,
        version="00",
        trace_flags=0x00 if option == "0" else SAMPLED_FLAG,
        trace_state=(),
    )


def _parse_pairs(header: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for part in header.split(";"):
        key, _, value = part.partition("=")
        key, value = key.strip().lower(), value.strip().strip('"')
        if key and value:
            pairs[key] = value
    return pairs


def try_parse_x_amzn_trace_id(header: str | None) -> TraceIdentity | None:
    if not header or not isinstance(header, str):
        return None
    pairs = _parse_pairs(header)
    root = pairs.get("root", "")
    if not is_xray_trace_id(root):
        return None
    parent = _NON_HEX.sub("", pairs.get("parent", "").lower())[:16]
    return TraceIdentity.model_construct(
        trace_id=root.lower(),
        span_id=_new_span_id(),
        parent_id=parent.rjust(16, "0") if parent else None,
        version="00",
        trace_flags=0x00 if pairs.get("sampled") == "0" else SAMPLED_FLAG,
        trace_state=(),
    )


def parse_w3c_traceparent(header: str | None, vendor: VendorMode | str = VendorMode.GCP) -> TraceIdentity:
    """Parse ``{version}-{trace id}-{span id}-{flags}``; fall back to ``generate(vendor)``.

    All four fields must be lowercase hex of exact length. Version and flags
    are preserved; the incoming span id becomes ``parent_id``.
    """
    return try_parse_w3c_traceparent(header) or generate(vendor)


def parse_cloud_trace_context(header: str | None, vendor: VendorMode | str = VendorMode.GCP) -> TraceIdentity:
    """Parse ``{trace id}/{span id};o={0|1}``; fall back to ``generate(vendor)``.

    Short trace ids are left-padded with zeros to 32 hex digits. A missing
    ``o=`` option means sampled.
    """
    return try_parse_cloud_trace_context(header) or generate(vendor)


def parse_x_amzn_trace_id(header: str | None) -> TraceIdentity:
    """Parse ``Root=1-{8 hex}-{24 hex};Parent={span};Sampled={0|1}``; fall back to ``generate(AWS)``.

    The root is kept in X-Ray form. ``Parent`` is reduced to hex digits and
    truncated or left-padded to 16. ``Sampled=0`` clears the sampled flag;
    any other value, or none, sets it.
    """
    return try_parse_x_amzn_trace_id(header) or generate(VendorMode.AWS)
