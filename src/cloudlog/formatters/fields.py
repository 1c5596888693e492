"""Shared record helpers: severity mapping, message selection, field stripping."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Final

from cloudlog.foundation.config.constants import (
    API_LOGGER_NAME,
    CONSOLE_LOGGER_NAME,
    DEFAULT_SEVERITY,
    ERROR_LOGGER_NAME,
    LEVEL_ALIASES,
    LEVEL_NAMES,
    SEVERITY_LEVEL,
)

TRACE_KEY: Final = "logging.googleapis.com/trace"
SPAN_KEY: Final = "logging.googleapis.com/spanId"
LOG_NAME_KEY: Final = "logging.googleapis.com/logName"
LABELS_KEY: Final = "logging.googleapis.com/labels"
SOURCE_LOCATION_KEY: Final = "logging.googleapis.com/sourceLocation"
OPERATION_KEY: Final = "logging.googleapis.com/operation"
HTTP_REQUEST_KEY: Final = "logging.googleapis.com/httpRequest"

GCP_KEYS: Final[frozenset[str]] = frozenset({
    TRACE_KEY,
    SPAN_KEY,
    LOG_NAME_KEY,
    LABELS_KEY,
    SOURCE_LOCATION_KEY,
    OPERATION_KEY,
    HTTP_REQUEST_KEY,
    "resource",
})

# Cloud Logging LogEntry.httpRequest fields
HTTP_REQUEST_FIELDS: Final[tuple[str, ...]] = (
    "requestMethod",
    "requestUrl",
    "requestSize",
    "status",
    "responseSize",
    "userAgent",
    "remoteIp",
    "serverIp",
    "referer",
    "latency",
    "cacheLookup",
    "cacheHit",
    "cacheValidatedWithOriginServer",
    "cacheFillBytes",
    "protocol",
)


def severity_for(level: Any) -> str:
    """Vendor severity for a level name or pino level number; ``DEFAULT`` if unknown."""
    if isinstance(level, bool):
        return DEFAULT_SEVERITY
    if isinstance(level, int):
        level = LEVEL_NAMES.get(level, "")
    if not isinstance(level, str):
        return DEFAULT_SEVERITY
    name = level.strip().lower()
    return SEVERITY_LEVEL.get(LEVEL_ALIASES.get(name, name), DEFAULT_SEVERITY)


def message_of(record: Mapping[str, Any]) -> str | None:
    """``msg`` if non-empty, else ``message`` if non-empty, else None."""
    for key in ("msg", "message"):
        value = record.get(key)
        if value is not None and value != "":
            return value if isinstance(value, str) else str(value)
    return None


def logger_name_for(log_source: Any, default: str | None = None) -> str:
    match log_source:
        case "exception":
            return ERROR_LOGGER_NAME
        case "console":
            return CONSOLE_LOGGER_NAME
    return default or API_LOGGER_NAME


def cloud_log_name(project_id: str | None, logger_name: str) -> str:
    return f"projects/{project_id}/logs/{logger_name}" if project_id else logger_name


def strip_gcp_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of ``record`` without Cloud Logging special keys or an empty-string key."""
    return {k: v for k, v in record.items() if k not in GCP_KEYS and k != ""}


def reduce_http_request(http_request: Any) -> dict[str, Any] | None:
    if not isinstance(http_request, Mapping):
        return None
    reduced = {k: http_request[k] for k in HTTP_REQUEST_FIELDS if http_request.get(k) not in (None, "")}
    return reduced or None


def iso_timestamp(value: Any = None) -> str:
    """ISO-8601 UTC with millisecond precision; strings pass through unchanged."""
    match value:
        case str() if value:
            return value
        case datetime():
            dt = value if value.tzinfo else value.replace(tzinfo=UTC)
        case int() | float() if not isinstance(value, bool):
            dt = datetime.fromtimestamp(value / 1000 if value > 1e11 else value, UTC)
        case _:
            dt = datetime.now(UTC)
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def project_of(record: Mapping[str, Any], default: str | None = None) -> str | None:
    return record.get("PROJECT_ID") or record.get("projectId") or default
