"""AWS CloudWatch structured-entry shaping with X-Ray correlation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from cloudlog.tracing.request import normalize_headers
from cloudlog.tracing.xray import to_xray_trace_id, x_amzn_trace_header

from .fields import GCP_KEYS, iso_timestamp, message_of, severity_for, strip_gcp_fields

STRIPPED: Final[frozenset[str]] = GCP_KEYS | {
    "pid",
    "hostname",
    "level",
    "levelNumber",
    "time",
    "msg",
    "message",
    "httpRequest",
    "request_payload",
    "method",
    "url",
    "path",
    "remoteAddress",
    "headers",
    "projectId",
    "PROJECT_ID",
    "logSource",
    "loggerName",
    "sampled",
    "",
}


def _content_length(value: Any) -> Any:
    try:
        return int(value)
    except (TypeError, ValueError):
        return value


def _request_summary(record: Mapping[str, Any]) -> dict[str, Any]:
    http = record.get("httpRequest")
    http = http if isinstance(http, Mapping) else {}
    headers = record.get("headers")
    headers = normalize_headers(headers) if isinstance(headers, Mapping) else {}
    summary = {
        "method": record.get("method") or http.get("requestMethod"),
        "url": record.get("url") or record.get("path") or http.get("requestUrl"),
        "clientIp": record.get("remoteAddress") or http.get("remoteIp"),
        "contentLength": headers.get("content-length") or http.get("requestSize"),
        "userAgent": headers.get("user-agent") or http.get("userAgent"),
    }
    if summary["contentLength"]:
        summary["contentLength"] = _content_length(summary["contentLength"])
    return {k: v for k, v in summary.items() if v not in (None, "")}


def format_aws_log(record: Mapping[str, Any], *, service: str | None = None) -> dict[str, Any]:
    """Shape ``record`` as a CloudWatch JSON entry.

    ``traceId`` is rewritten into X-Ray form using the record timestamp, and
    ``x-amzn-trace-id`` carries the full propagation header. Request fields
    collapse into a ``request`` summary and the payload into ``body``. Any
    Cloud Logging keys are dropped.
    """
    timestamp = iso_timestamp(record.get("timestamp") or record.get("time"))
    entry: dict[str, Any] = {
        "severity": severity_for(record.get("level")),
        "timestamp": timestamp,
    }
    if svc := record.get("service") or service:
        entry["service"] = svc
    if (message := message_of(record)) is not None:
        entry["message"] = message
    if request_id := record.get("requestId"):
        entry["requestId"] = request_id

    trace_id = record.get("traceId")
    span_id = record.get("spanId")
    if trace_id:
        entry["traceId"] = to_xray_trace_id(trace_id, timestamp)
        entry["x-amzn-trace-id"] = x_amzn_trace_header(
            trace_id, span_id, sampled=record.get("sampled", True) is not False, timestamp=timestamp
        )
    if span_id:
        entry["spanId"] = span_id

    if request := _request_summary(record):
        entry["request"] = request
    http = record.get("httpRequest")
    if body := record.get("request_payload"):
        entry["body"] = body
    elif isinstance(http, Mapping) and http.get("requestBody"):
        entry["body"] = http["requestBody"]

    for key, value in strip_gcp_fields(record).items():
        if key not in STRIPPED:
            entry.setdefault(key, value)
    return entry
