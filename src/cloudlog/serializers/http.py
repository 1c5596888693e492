"""Request and response serialization.

Both serializers read their input through ``field`` so plain dicts,
Starlette and Werkzeug objects all work. Bodies are shaped by content type:
structured data is sanitized, text is truncated, anything else collapses to
a short placeholder.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from cloudlog.foundation.config.constants import TRUNCATED_SUFFIX
from cloudlog.foundation.errors import JsonDict
from cloudlog.sanitize import DEFAULT_POLICY, SanitizationPolicy, sanitize_body, sanitize_headers

from ._fields import MISSING, field, header_lookup, present
from .errors import serialize_error

logger = logging.getLogger("cloudlog.serializers")

MULTIPART_MARKER = "[MULTIPART FORM DATA]"
BODY_ERROR_MARKER = "[BODY SERIALIZATION ERROR]"
NO_CONTENT_MARKER = "[NO CONTENT]"
EMPTY_STRING_MARKER = "[EMPTY STRING]"
IMAGE_CONTENT_MARKER = "[IMAGE CONTENT]"
BUFFER_CONTENT_MARKER = "[BUFFER CONTENT]"


def truncate(text: str, limit: int) -> str:
    return f"{text[:limit]}{TRUNCATED_SUFFIX}" if len(text) > limit else text


def _as_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _structured(value: Any) -> Any:
    # JSON bytes become a string so the sanitizer can parse them
    return _as_text(value) if isinstance(value, (bytes, bytearray)) else value


def _url(req: Any) -> str | None:
    url = field(req, "original_url", "originalUrl", "url")
    return str(url) if present(url) else None


def _path(req: Any) -> str | None:
    path = field(req, "path")
    if present(path):
        return str(path)
    url = field(req, "url")
    if present(url) and present(inner := field(url, "path")):
        return str(inner)
    return None


def _remote_address(req: Any) -> str:
    direct = field(req, "remote_addr", "remoteAddress", "remote_address", "ip")
    if present(direct):
        return str(direct)
    client = field(req, "client")
    if present(client):
        host = client[0] if isinstance(client, (tuple, list)) and client else field(client, "host")
        if present(host):
            return str(host)
    return "unknown"


def _plain_mapping(value: Any) -> dict[str, Any]:
    if not present(value) or not hasattr(value, "items"):
        return {}
    return {str(k): v for k, v in value.items()}


def _request_body(req: Any, content_type: str, size: str, policy: SanitizationPolicy) -> Any:
    payload = field(req, "parsed_body", "parsedBody", "body", "form", "data")
    if not present(payload) or not payload:
        return None
    mime = content_type.lower()
    try:
        if "application/json" in mime or "application/x-www-form-urlencoded" in mime:
            return sanitize_body(_structured(payload), policy)
        if "multipart/form-data" in mime:
            boundary = content_type.split("boundary=", 1)
            return {
                "payload": sanitize_body(_structured(payload), policy),
                "message": MULTIPART_MARKER,
                "size": size or None,
                "boundary": boundary[1] if len(boundary) > 1 else None,
            }
        if "text/" in mime:
            return truncate(_as_text(payload), policy.max_inline_string_length)
        if not mime and isinstance(payload, (Mapping, list, tuple)):
            return sanitize_body(payload, policy)
        return f"[{mime.split(';', 1)[0].strip()} CONTENT]"
    except Exception:
        logger.debug("Request body serialization failed", exc_info=True)
        return BODY_ERROR_MARKER


def _file_metadata(f: Any) -> JsonDict:
    def pick(*names: str) -> Any:
        value = field(f, *names)
        return None if value is MISSING else value

    return {
        "fieldname": pick("fieldname", "name"),
        "originalname": pick("originalname", "filename"),
        "encoding": pick("encoding"),
        "mimetype": pick("mimetype", "content_type"),
        "size": pick("size", "content_length"),
    }


def _files(req: Any) -> list[JsonDict] | None:
    files = field(req, "files")
    if present(files) and files:
        items = list(files.values()) if isinstance(files, Mapping) or hasattr(files, "values") else list(files)
        return [_file_metadata(f) for f in items]
    single = field(req, "file")
    if present(single) and single:
        return [_file_metadata(single)]
    return None


def serialize_request(req: Any, policy: SanitizationPolicy = DEFAULT_POLICY) -> JsonDict | None:
    """Serialize an inbound request with sanitized headers, query and body."""
    if req is None:
        return None
    try:
        headers = field(req, "headers")
        content_type = header_lookup(headers, "content-type")
        params = field(req, "path_params", "view_args", "params")
        out: JsonDict = {
            "method": str(m) if present(m := field(req, "method")) else None,
            "url": _url(req),
            "path": _path(req),
            "params": _plain_mapping(params),
            "headers": sanitize_headers(_plain_mapping(headers), policy.sensitive_header_names),
            "remoteAddress": _remote_address(req),
        }
        if query := _plain_mapping(field(req, "query_params", "args", "query")):
            out["query_params"] = sanitize_body(query, policy)
        payload = _request_body(req, content_type, header_lookup(headers, "content-length"), policy)
        if payload:
            out["request_payload"] = payload
        if files := _files(req):
            out["files"] = files
        return out
    except Exception as e:
        logger.debug("Request serialization failed", exc_info=True)
        return {
            "method": "unknown",
            "url": "unknown",
            "headers": {},
            "remoteAddress": "unknown",
            "error": "Failed to serialize request",
            "message": str(e) or "Unknown error",
        }


def _response_body(body: Any, content_type: str, policy: SanitizationPolicy) -> Any:
    if body is None:
        return NO_CONTENT_MARKER
    if isinstance(body, str) and not body:
        return EMPTY_STRING_MARKER
    if "application/json" in content_type:
        return sanitize_body(_structured(body), policy)
    if "text/" in content_type or "html" in content_type or isinstance(body, str):
        return truncate(_as_text(body), policy.max_inline_string_length)
    if "image/" in content_type:
        return IMAGE_CONTENT_MARKER
    if isinstance(body, (bytes, bytearray, memoryview)):
        return BUFFER_CONTENT_MARKER
    if isinstance(body, (Mapping, list, tuple, set, frozenset)) or hasattr(body, "model_dump"):
        return sanitize_body(body, policy)
    return str(body)


def serialize_response(res: Any, policy: SanitizationPolicy = DEFAULT_POLICY) -> JsonDict | None:
    """Serialize an outbound response; ``body`` only when the response carries one."""
    if res is None:
        return None
    try:
        raw = field(res, "raw")
        raw = res if not present(raw) else raw
        status = field(raw, "status_code", "statusCode", "status")
        response_time = field(res, "response_time", "responseTime")
        out: JsonDict = {
            "statusCode": status if present(status) else None,
            "responseTime": response_time if present(response_time) and response_time else "N/A",
        }
        body = field(res, "body")
        if body is MISSING and raw is not res:
            body = field(raw, "body")
        if body is not MISSING:
            content_type = header_lookup(field(raw, "headers"), "content-type").lower()
            out["body"] = _response_body(body, content_type, policy)
        error = field(res, "error")
        if present(error) and error:
            out["error"] = serialize_error(error, policy)
        return out
    except Exception as e:
        logger.debug("Response serialization failed", exc_info=True)
        return {
            "statusCode": 500,
            "responseTime": "N/A",
            "error": "Failed to serialize response",
            "message": str(e) or "Unknown error",
        }
