"""Tracing: trace identity codecs, X-Ray conversion, and request context."""

from .identity import (
    TraceIdentity,
    derive_child,
    generate,
    parse_cloud_trace_context,
    parse_w3c_traceparent,
    parse_x_amzn_trace_id,
    try_parse_cloud_trace_context,
    try_parse_w3c_traceparent,
    try_parse_x_amzn_trace_id,
)
from .request import (
    RequestContext,
    bind_context,
    child_scope,
    new_request_id,
    normalize_headers,
    request_scope,
)
from .xray import is_xray_trace_id, to_xray_trace_id, x_amzn_trace_header, xray_to_hex

__all__ = [
    # Identity
    "TraceIdentity",
    "derive_child",
    "generate",
    "parse_cloud_trace_context",
    "parse_w3c_traceparent",
    "parse_x_amzn_trace_id",
    "try_parse_cloud_trace_context",
    "try_parse_w3c_traceparent",
    "try_parse_x_amzn_trace_id",
    # X-Ray
    "is_xray_trace_id",
    "to_xray_trace_id",
    "x_amzn_trace_header",
    "xray_to_hex",
    # Request context
    "RequestContext",
    "bind_context",
    "child_scope",
    "new_request_id",
    "normalize_headers",
    "request_scope",
]
