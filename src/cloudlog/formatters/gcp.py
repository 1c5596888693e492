"""Google Cloud Logging structured-entry shaping."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from .fields import (
    HTTP_REQUEST_KEY,
    LABELS_KEY,
    OPERATION_KEY,
    SOURCE_LOCATION_KEY,
    SPAN_KEY,
    TRACE_KEY,
    cloud_log_name,
    logger_name_for,
    message_of,
    project_of,
    reduce_http_request,
    severity_for,
)

# Fields folded into severity, labels, trace keys or the message
STRIPPED: Final[frozenset[str]] = frozenset({
    "pid",
    "hostname",
    "level",
    "levelNumber",
    "requestId",
    "service",
    "traceId",
    "spanId",
    "projectId",
    "PROJECT_ID",
    "msg",
    "message",
    "logSource",
    "loggerName",
    "sampled",
    "sourceLocation",
    "operation",
    "httpRequest",
    HTTP_REQUEST_KEY,
})


def format_gcp_log(
    record: Mapping[str, Any],
    *,
    project_id: str | None = None,
    service: str | None = None,
    logger_name: str | None = None,
    include_trace: bool = True,
    include_resource: bool = True,
) -> dict[str, Any]:
    """Shape ``record`` as a Cloud Logging structured entry.

    ``project_id``, ``service`` and ``logger_name`` fill in when the record
    lacks them. ``logSource`` of ``exception`` or ``console`` overrides the
    logger name. Unrecognized fields pass through; computed keys win on
    collision.
    """
    project = project_of(record, project_id)
    name = logger_name_for(record.get("logSource"), record.get("loggerName") or logger_name)
    log_name = cloud_log_name(project, name)

    entry: dict[str, Any] = {"severity": severity_for(record.get("level"))}
    if (message := message_of(record)) is not None:
        entry["message"] = message

    trace_id = record.get("traceId")
    if include_trace and trace_id:
        entry[TRACE_KEY] = f"projects/{project}/traces/{trace_id}" if project else trace_id
        if span_id := record.get("spanId"):
            entry[SPAN_KEY] = span_id

    labels = {
        "requestId": record.get("requestId"),
        "service": record.get("service") or service,
        "logName": log_name,
    }
    entry[LABELS_KEY] = {k: v for k, v in labels.items() if v}

    if include_resource and project:
        entry["resource"] = {"type": "global", "labels": {"project_id": project, "logger_name": name}}

    if source := record.get("sourceLocation"):
        entry[SOURCE_LOCATION_KEY] = source
    if operation := record.get("operation"):
        entry[OPERATION_KEY] = operation
    if http_request := reduce_http_request(record.get("httpRequest") or record.get(HTTP_REQUEST_KEY)):
        entry["httpRequest"] = http_request

    for key, value in record.items():
        if key not in STRIPPED:
            entry.setdefault(key, value)
    return entry
