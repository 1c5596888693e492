"""Exception serialization."""

from __future__ import annotations

import logging
import traceback
from typing import Any

from cloudlog.foundation.errors import JsonDict, LoggerException
from cloudlog.sanitize import DEFAULT_POLICY, SanitizationPolicy, sanitize_body

from ._fields import MISSING, field

logger = logging.getLogger("cloudlog.serializers")


def _stack(exc: BaseException) -> str | None:
    if exc.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def _message(exc: Any) -> str:
    if isinstance(exc, LoggerException):
        return exc.error.message
    if isinstance(exc, BaseException):
        return str(exc)
    value = field(exc, "message")
    return "" if value is MISSING or value is None else str(value)


def serialize_error(exc: Any, policy: SanitizationPolicy = DEFAULT_POLICY) -> JsonDict | None:
    """Flatten an exception (or error-like object) into a JSON-safe dict.

    ``type`` prefers an explicit ``type`` attribute over the class name.
    ``details`` and ``context`` are sanitized. Never raises.
    """
    if exc is None:
        return None
    try:
        explicit_type = field(exc, "type")
        out: JsonDict = {
            "type": explicit_type if isinstance(explicit_type, str) else type(exc).__name__,
            "message": _message(exc),
        }
        code = field(exc, "code")
        if code is not MISSING and code is not None:
            out["code"] = str(code)
        if isinstance(exc, BaseException) and (stack := _stack(exc)):
            out["stack"] = stack
        elif (stack := field(exc, "stack")) not in (MISSING, None):
            out["stack"] = str(stack)
        status = field(exc, "status_code", "statusCode", "status")
        if status not in (MISSING, None):
            out["statusCode"] = status
        details = field(exc, "details")
        if details not in (MISSING, None) and details != {}:
            out["details"] = sanitize_body(details, policy)
        context = field(exc, "context")
        if context not in (MISSING, None):
            out["context"] = sanitize_body(context, policy)
        return out
    except Exception as e:
        logger.debug("Error serialization failed", exc_info=True)
        return {"type": "SerializationError", "message": str(e) or "Failed to serialize error"}
