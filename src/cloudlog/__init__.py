"""cloudlog - per-request observability for Google Cloud and AWS.

Correlates every log line with a request id and a distributed trace,
redacts sensitive data, and shapes records for Cloud Logging or CloudWatch.

Quick Start:
    >>> from cloudlog import configure_logging, get_logger, request_scope
    >>>
    >>> configure_logging()  # SERVICE_NAME, LOG_TYPE, PROJECT_ID from the environment
    >>> log = get_logger("orders")
    >>>
    >>> with request_scope(inbound_headers) as ctx:
    ...     log.info("order placed", order_id=42)
    ...     outbound = ctx.add_trace_headers({"accept": "application/json"})

Trace headers:
    >>> from cloudlog import parse_w3c_traceparent
    >>> ident = parse_w3c_traceparent("00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01")
    >>> ident.trace_id
    '4bf92f3577b34da6a3ce929d0e0e4736'

Sanitization:
    >>> from cloudlog import sanitize_body
    >>> sanitize_body({"user": "a", "password": "x"})
    {'user': 'a', 'password': '[REDACTED]'}
"""

from .formatters import LogFormatter, format_aws_log, format_gcp_log, format_log, severity_for
from .foundation import (
    ConfigurationError,
    ErrorCode,
    LoggerError,
    LoggerException,
    LoggerSettings,
    VendorMode,
    get_settings,
    load_settings,
)
from .foundation.config import (
    clear_settings_cache,
    get_default_vendor,
    level_for_status,
    reset_default_vendor,
    set_default_vendor,
    should_exclude_path,
)
from .logging import (
    CloudLogger,
    CollectingRenderer,
    JsonRenderer,
    NoOpRenderer,
    PrettyRenderer,
    configure_logging,
    get_logger,
    log_context,
    logged,
)
from .sanitize import DEFAULT_POLICY, SanitizationPolicy, sanitize_body, sanitize_headers, sanitize_value
from .serializers import serialize_error, serialize_request, serialize_response
from .tracing import (
    RequestContext,
    TraceIdentity,
    bind_context,
    child_scope,
    derive_child,
    generate,
    parse_cloud_trace_context,
    parse_w3c_traceparent,
    parse_x_amzn_trace_id,
    request_scope,
    to_xray_trace_id,
    x_amzn_trace_header,
)

__version__ = "0.1.0"

__all__ = [
    # Tracing
    "TraceIdentity",
    "generate",
    "derive_child",
    "parse_w3c_traceparent",
    "parse_cloud_trace_context",
    "parse_x_amzn_trace_id",
    "to_xray_trace_id",
    "x_amzn_trace_header",
    # Request context
    "RequestContext",
    "bind_context",
    "request_scope",
    "child_scope",
    # Sanitization
    "DEFAULT_POLICY",
    "SanitizationPolicy",
    "sanitize_body",
    "sanitize_headers",
    "sanitize_value",
    # Serializers
    "serialize_error",
    "serialize_request",
    "serialize_response",
    # Formatting
    "LogFormatter",
    "format_aws_log",
    "format_gcp_log",
    "format_log",
    "severity_for",
    # Logging
    "CloudLogger",
    "CollectingRenderer",
    "JsonRenderer",
    "NoOpRenderer",
    "PrettyRenderer",
    "configure_logging",
    "get_logger",
    "log_context",
    "logged",
    # Configuration
    "LoggerSettings",
    "VendorMode",
    "clear_settings_cache",
    "get_default_vendor",
    "get_settings",
    "level_for_status",
    "load_settings",
    "reset_default_vendor",
    "set_default_vendor",
    "should_exclude_path",
    # Errors
    "ConfigurationError",
    "ErrorCode",
    "LoggerError",
    "LoggerException",
]
