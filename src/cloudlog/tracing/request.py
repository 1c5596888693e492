"""Request-scoped identity: request id, trace identity, clock and metadata.

A ``RequestContext`` is created once per inbound unit of work and bound to
the current task with a ContextVar, so code running "within" the request can
reach it without passing it around. Nested or forked work gets an explicit
child context with its own span and metadata.

Example:
    >>> with request_scope({"traceparent": header}, vendor="gcp") as ctx:
    ...     RequestContext.current() is ctx
    ...     outbound = ctx.add_trace_headers({"accept": "application/json"})
    True
"""

from __future__ import annotations

import re
import secrets
import time
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from cloudlog.foundation.config import VendorMode, resolve_vendor
from cloudlog.foundation.errors import JsonDict

from .identity import (
    TraceIdentity,
    generate,
    try_parse_cloud_trace_context,
    try_parse_w3c_traceparent,
    try_parse_x_amzn_trace_id,
)

HeaderSource: TypeAlias = Mapping[str, Any] | Iterable[tuple[str | bytes, str | bytes]] | None

REQUEST_ID_HEADER = "x-request-id"
TRACEPARENT_HEADER = "traceparent"
TRACESTATE_HEADER = "tracestate"
CLOUD_TRACE_HEADER = "x-cloud-trace-context"
AMZN_TRACE_HEADER = "x-amzn-trace-id"

_REQUEST_ID = re.compile(r"[0-9a-f]{8}")

_current: ContextVar[RequestContext | None] = ContextVar("cloudlog_request_context", default=None)


def _text(value: str | bytes) -> str:
    # ASGI header bytes are latin-1
    return value.decode("latin-1") if isinstance(value, (bytes, bytearray)) else str(value)


def normalize_headers(headers: HeaderSource) -> dict[str, str]:
    """Lowercase header names; first value wins for repeated or list-valued headers."""
    if not headers:
        return {}
    items = headers.items() if hasattr(headers, "items") else headers
    out: dict[str, str] = {}
    for name, value in items:
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value is None:
            continue
        out.setdefault(_text(name).strip().lower(), _text(value).strip())
    return out


def new_request_id() -> str:
    """Eight lowercase hex characters from a CSPRNG."""
    return secrets.token_hex(4)


def _request_id_from(headers: Mapping[str, str]) -> str:
    candidate = headers.get(REQUEST_ID_HEADER, "")
    return candidate if _REQUEST_ID.fullmatch(candidate) else new_request_id()


def _trace_from(headers: Mapping[str, str], vendor: VendorMode) -> TraceIdentity:
    if vendor == VendorMode.AWS:
        vendor_trace = try_parse_x_amzn_trace_id(headers.get(AMZN_TRACE_HEADER))
    else:
        vendor_trace = try_parse_cloud_trace_context(headers.get(CLOUD_TRACE_HEADER))
    trace = vendor_trace or try_parse_w3c_traceparent(headers.get(TRACEPARENT_HEADER)) or generate(vendor)
    return trace.with_trace_state(headers.get(TRACESTATE_HEADER))


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Identity of one inbound unit of work.

    ``request_id`` and ``trace.trace_id`` are stable for the whole request
    and copied into children; every child gets a new span id. ``metadata``
    is a per-context sidecar and is never shared between contexts.
    """

    request_id: str
    trace: TraceIdentity
    vendor: VendorMode = VendorMode.GCP
    start_ns: int = field(default_factory=time.perf_counter_ns)
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def create(cls, headers: HeaderSource = None, vendor: VendorMode | str | None = None) -> RequestContext:
        """Build a context from inbound headers.

        ``x-request-id`` is trusted only when it is exactly 8 lowercase hex
        characters. The trace identity comes from the vendor header
        (``x-amzn-trace-id`` for AWS, ``x-cloud-trace-context`` for GCP),
        then ``traceparent``, then a fresh one.
        """
        mode = resolve_vendor(vendor)
        normalized = normalize_headers(headers)
        return cls(request_id=_request_id_from(normalized), trace=_trace_from(normalized, mode), vendor=mode)

    @classmethod
    def current(cls) -> RequestContext | None:
        """Context bound to the running task, if any."""
        return _current.get()

    @property
    def trace_id(self) -> str:
        return self.trace.trace_id

    @property
    def span_id(self) -> str:
        return self.trace.span_id

    def elapsed_ms(self) -> str:
        """Monotonic time since creation in ms, two decimals."""
        return f"{(time.perf_counter_ns() - self.start_ns) / 1e6:.2f}"

    def add_trace_headers(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Outbound propagation headers for the active vendor, merged over ``base``."""
        headers = dict(base or {})
        if self.vendor == VendorMode.AWS:
            headers[AMZN_TRACE_HEADER] = self.trace.to_x_amzn_trace_id()
        else:
            headers[TRACEPARENT_HEADER] = self.trace.to_w3c_traceparent()
            if tracestate := self.trace.to_trace_state():
                headers[TRACESTATE_HEADER] = tracestate
            headers[CLOUD_TRACE_HEADER] = self.trace.to_cloud_trace_header()
        headers[REQUEST_ID_HEADER] = self.request_id
        return headers

    def create_child_context(self) -> RequestContext:
        """Same request id and trace, new span, empty metadata."""
        return RequestContext(request_id=self.request_id, trace=self.trace.child(), vendor=self.vendor)

    def set_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def snapshot(self) -> JsonDict:
        """Read-only correlation fields for log emission."""
        return {
            "requestId": self.request_id,
            "traceId": self.trace_id,
            "spanId": self.span_id,
            "elapsedMs": self.elapsed_ms(),
        }


# ─────────────────────────────────────────────────────────────────────────────
# Task-local binding
# ─────────────────────────────────────────────────────────────────────────────


@contextmanager
def bind_context(ctx: RequestContext) -> Iterator[RequestContext]:
    """Bind ``ctx`` as the current context for the duration of the block."""
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)


@contextmanager
def request_scope(headers: HeaderSource = None, vendor: VendorMode | str | None = None) -> Iterator[RequestContext]:
    """Create a context from inbound headers and bind it for the block."""
    with bind_context(RequestContext.create(headers, vendor)) as ctx:
        yield ctx


@contextmanager
def child_scope() -> Iterator[RequestContext]:
    """Bind a child of the current context (or a fresh one when none is bound)."""
    parent = _current.get()
    ctx = parent.create_child_context() if parent is not None else RequestContext.create()
    with bind_context(ctx) as child:
        yield child
