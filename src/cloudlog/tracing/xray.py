"""AWS X-Ray trace id conversion.

X-Ray ids embed the trace start time (``1-{epoch hex}-{96-bit id}``). W3C and
Cloud Trace ids carry no timestamp, so converting one into X-Ray form embeds
the time supplied by the caller, or the current time. The result is an
approximation of the trace start, not a faithful one, and the conversion is
one-way: the 8 hex digits dropped from a 128-bit id cannot be recovered.
"""

from __future__ import annotations

import re
import time
from datetime import datetime

_XRAY_ID = re.compile(r"^1-[0-9a-f]{8}-[0-9a-f]{24}$")
_NON_HEX = re.compile(r"[^0-9a-f]")

Timestamp = str | float | int | datetime | None


def is_xray_trace_id(value: object) -> bool:
    """Whether value is already in ``1-xxxxxxxx-yyyyyyyyyyyyyyyyyyyyyyyy`` shape."""
    return isinstance(value, str) and _XRAY_ID.fullmatch(value.lower()) is not None


def xray_to_hex(trace_id: str) -> str:
    """Collapse an X-Ray id into its 32 hex digits; other ids are returned unchanged."""
    if is_xray_trace_id(trace_id):
        _, epoch, ident = trace_id.lower().split("-")
        return f"{epoch}{ident}"
    return trace_id


def _epoch_seconds(timestamp: Timestamp) -> int:
    match timestamp:
        case None:
            return int(time.time())
        case datetime():
            return int(timestamp.timestamp())
        case bool():
            return int(time.time())
        case int() | float():
            # epoch milliseconds
            return int(timestamp / 1000) if timestamp > 1e11 else int(timestamp)
        case str():
            try:
                return int(datetime.fromisoformat(timestamp).timestamp())
            except ValueError:
                return int(time.time())
    return int(time.time())


def to_xray_trace_id(trace_id: str | None, timestamp: Timestamp = None) -> str | None:
    """Convert a trace id into X-Ray form.

    Ids already in X-Ray form (bare, or as a ``Root=`` header value) are reused
    verbatim. Otherwise the first 24 hex digits of the id become the X-Ray id
    and ``timestamp`` (or now) becomes the time component.
    """
    if not trace_id:
        return None
    if trace_id.startswith("Root="):
        root = trace_id[5:].split(";", 1)[0]
        if is_xray_trace_id(root):
            return root.lower()
    if is_xray_trace_id(trace_id):
        return trace_id.lower()
    epoch = f"{_epoch_seconds(timestamp) & 0xFFFFFFFF:08x}"
    ident = _NON_HEX.sub("", trace_id.lower())[:24].rjust(24, "0")
    return f"1-{epoch}-{ident}"


def x_amzn_trace_header(
    trace_id: str | None,
    span_id: str | None = None,
    sampled: bool = True,
    timestamp: Timestamp = None,
) -> str | None:
    """Build an ``X-Amzn-Trace-Id`` header value: ``Root=...;Parent=...;Sampled=1``."""
    root = to_xray_trace_id(trace_id, timestamp)
    if root is None:
        return None
    parts = [f"Root={root}"]
    if span_id:
        parts.append(f"Parent={span_id}")
    parts.append(f"Sampled={'1' if sampled else '0'}")
    return ";".join(parts)
