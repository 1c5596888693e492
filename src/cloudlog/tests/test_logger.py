"""Tests for CloudLogger record building, renderers and the logged decorator."""

from __future__ import annotations

import io
import re

import orjson
import pytest

from cloudlog.foundation.config import VendorMode, load_settings, set_default_vendor
from cloudlog.foundation.errors import ConfigurationError, ErrorCode
from cloudlog.logging import (
    CollectingRenderer,
    JsonRenderer,
    NoOpRenderer,
    PrettyRenderer,
    configure_logging,
    get_logger,
    log_context,
    logged,
)
from cloudlog.tracing import request_scope

TRACEPARENT = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"
XRAY = re.compile(r"1-[0-9a-f]{8}-[0-9a-f]{24}")


@pytest.fixture
def collected() -> CollectingRenderer:
    renderer = CollectingRenderer()
    configure_logging(load_settings(project_id="proj1"), renderer=renderer)
    return renderer


@pytest.fixture
def collected_aws() -> CollectingRenderer:
    renderer = CollectingRenderer()
    configure_logging(load_settings(log_type="aws"), renderer=renderer)
    return renderer


# ═════════════════════════════════════════════════════════════════════════════
# Records
# ═════════════════════════════════════════════════════════════════════════════


def test_info_outside_request(collected: CollectingRenderer) -> None:
    get_logger("orders").info("ready", port=8080)
    entry = collected.last
    assert entry is not None
    assert entry["severity"] == "INFO"
    assert entry["message"] == "ready"
    assert entry["port"] == 8080
    assert entry["logger"] == "orders"
    assert entry["logging.googleapis.com/labels"]["service"] == "test-service"
    assert "logging.googleapis.com/trace" not in entry


def test_request_context_is_attached(collected: CollectingRenderer) -> None:
    log = get_logger()
    with request_scope({"traceparent": TRACEPARENT, "x-request-id": "deadbeef"}, vendor="gcp") as ctx:
        log.warn("slow")
    entry = collected.last
    assert entry["severity"] == "WARNING"
    assert entry["logging.googleapis.com/trace"] == "projects/proj1/traces/4bf92f3577b34da6a3ce929d0e0e4736"
    assert entry["logging.googleapis.com/spanId"] == ctx.span_id
    assert entry["logging.googleapis.com/labels"]["requestId"] == "deadbeef"
    assert float(entry["elapsedMs"]) >= 0


def test_aws_records(collected_aws: CollectingRenderer) -> None:
    with request_scope(vendor="aws") as ctx:
        get_logger().error("failed")
    entry = collected_aws.last
    assert entry["severity"] == "ERROR"
    assert entry["traceId"] == ctx.trace_id
    assert entry["requestId"] == ctx.request_id
    assert entry["service"] == "test-service"
    assert entry["x-amzn-trace-id"].startswith(f"Root={ctx.trace_id};Parent={ctx.span_id}")


def test_configured_vendor_reaches_request_context(collected_aws: CollectingRenderer) -> None:
    headers = {"x-amzn-trace-id": "Root=1-5759e988-bd862e3fe1be46a994272793;Sampled=1"}
    with request_scope(headers) as ctx:
        log = get_logger()
        log.info("first")
        log.info("second")
    assert ctx.vendor == VendorMode.AWS
    assert ctx.trace_id == "1-5759e988-bd862e3fe1be46a994272793"
    assert [e["traceId"] for e in collected_aws.entries] == [ctx.trace_id, ctx.trace_id]
    assert set(ctx.add_trace_headers()) == {"x-amzn-trace-id", "x-request-id"}


def test_configured_vendor_generates_xray_identity(collected_aws: CollectingRenderer) -> None:
    with request_scope({}) as ctx:
        get_logger().info("x")
    assert XRAY.fullmatch(ctx.trace_id)
    assert collected_aws.last["traceId"] == ctx.trace_id


def test_configure_logging_rejects_conflicting_vendor() -> None:
    set_default_vendor("gcp")
    with pytest.raises(ConfigurationError) as exc_info:
        configure_logging(load_settings(log_type="aws"), renderer=CollectingRenderer())
    assert exc_info.value.code == ErrorCode.VENDOR_CONFLICT


def test_configure_logging_keeps_default_without_log_type() -> None:
    set_default_vendor("aws")
    renderer = CollectingRenderer()
    configure_logging(renderer=renderer)
    with request_scope() as ctx:
        get_logger().info("x")
    assert ctx.vendor == VendorMode.AWS
    assert renderer.last["traceId"] == ctx.trace_id


def test_fields_are_sanitized(collected: CollectingRenderer) -> None:
    get_logger().info("login", password="p", user={"name": "ann", "token": "t"},
                      headers={"Cookie": "c", "Accept": "*/*"})
    entry = collected.last
    assert entry["password"] == "[REDACTED]"
    assert entry["user"] == {"name": "ann", "token": "[REDACTED]"}
    assert entry["headers"] == {"Cookie": "[REDACTED]", "Accept": "*/*"}


def test_req_res_err_are_serialized(collected: CollectingRenderer) -> None:
    req = {"method": "GET", "url": "/x", "headers": {"authorization": "a"}}
    res = {"statusCode": 200, "body": None}
    get_logger().info("done", req=req, res=res, err=ValueError("bad"))
    entry = collected.last
    assert entry["req"]["headers"] == {"authorization": "[REDACTED]"}
    assert entry["res"] == {"statusCode": 200, "responseTime": "N/A", "body": "[NO CONTENT]"}
    assert entry["err"]["type"] == "ValueError"


def test_exception_attaches_current_error(collected: CollectingRenderer) -> None:
    try:
        raise KeyError("missing")
    except KeyError:
        get_logger().exception("lookup failed")
    entry = collected.last
    assert entry["severity"] == "ERROR"
    assert entry["err"]["type"] == "KeyError"
    assert "stack" in entry["err"]


def test_level_threshold() -> None:
    renderer = CollectingRenderer()
    configure_logging(load_settings(log_level="warn"), renderer=renderer)
    log = get_logger()
    log.info("hidden")
    log.debug("hidden")
    log.warning("shown")
    log.fatal("shown")
    assert [e["severity"] for e in renderer.entries] == ["WARNING", "CRITICAL"]
    assert not log.is_enabled("info")
    assert log.is_enabled("error")


def test_bind_child_and_unbind(collected: CollectingRenderer) -> None:
    base = get_logger().bind(tenant="acme")
    base.child(job="sync").info("x")
    assert collected.last["tenant"] == "acme"
    assert collected.last["job"] == "sync"
    base.unbind("tenant").info("y")
    assert "tenant" not in collected.last


def test_log_context_scope(collected: CollectingRenderer) -> None:
    log = get_logger()
    with log_context(batch=7):
        log.info("inside")
    log.info("outside")
    assert collected.entries[0]["batch"] == 7
    assert "batch" not in collected.entries[1]


def test_logger_created_before_configuration() -> None:
    log = get_logger()
    renderer = CollectingRenderer()
    configure_logging(renderer=renderer)
    log.info("late")
    assert renderer.last["message"] == "late"


def test_unconfigured_without_service_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SERVICE_NAME")
    with pytest.raises(ConfigurationError):
        get_logger().info("x")


# ═════════════════════════════════════════════════════════════════════════════
# Renderers
# ═════════════════════════════════════════════════════════════════════════════


def test_json_renderer_writes_one_line_per_entry() -> None:
    out = io.StringIO()
    configure_logging(format="json", output=out)
    get_logger().info("a")
    get_logger().info("b", obj=object())
    lines = out.getvalue().splitlines()
    assert len(lines) == 2
    assert orjson.loads(lines[0])["message"] == "a"
    assert orjson.loads(lines[1])["obj"].startswith("<object object")


def test_pretty_renderer_header() -> None:
    out = io.StringIO()
    configure_logging(format="pretty", output=out)
    with request_scope({"x-request-id": "deadbeef"}, vendor="gcp"):
        get_logger().info("hello", type="REQUEST", count=2)
    line = out.getvalue().strip()
    assert "[deadbeef] [REQUEST] INFO hello" in line
    assert 'count=2' in line


def test_none_format_and_unknown_format() -> None:
    assert isinstance(configure_logging(format="none").renderer, NoOpRenderer)
    assert isinstance(configure_logging(format="JSON").renderer, JsonRenderer)
    assert isinstance(configure_logging(format="pretty").renderer, PrettyRenderer)
    with pytest.raises(ConfigurationError):
        configure_logging(format="xml")


# ═════════════════════════════════════════════════════════════════════════════
# logged decorator
# ═════════════════════════════════════════════════════════════════════════════


def test_logged_sync_success(collected: CollectingRenderer) -> None:
    @logged(name="add")
    def add(a: int, b: int) -> int:
        return a + b

    assert add(1, 2) == 3
    assert [e["message"] for e in collected.entries] == ["Executing add", "Completed add"]
    assert isinstance(collected.last["duration_ms"], float)


def test_logged_sync_error(collected: CollectingRenderer) -> None:
    @logged(get_logger("jobs"))
    def explode() -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        explode()
    entry = collected.last
    assert entry["severity"] == "ERROR"
    assert entry["message"].startswith("Error in ")
    assert entry["err"]["message"] == "boom"
    assert entry["logger"] == "jobs"


@pytest.mark.asyncio
async def test_logged_async(collected: CollectingRenderer) -> None:
    @logged(level="debug", name="fetch")
    async def fetch() -> str:
        return "ok"

    configure_logging(load_settings(log_level="debug"), renderer=collected)
    assert await fetch() == "ok"
    assert [e["message"] for e in collected.entries] == ["Executing fetch", "Completed fetch"]
    assert collected.last["severity"] == "DEBUG"
