"""Recursive redaction of sensitive fields and value patterns.

Key-based redaction always applies. Value patterns (images, base64, card
numbers, SSNs, emails) are only tested on strings longer than 100 characters
to bound the cost per field, so short secrets under a non-sensitive key are
not caught. Every marker is short enough that re-sanitizing output leaves it
unchanged.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from itertools import islice
from typing import Any

import orjson
from pydantic import BaseModel

from cloudlog.foundation.config.constants import DEFAULT_SENSITIVE_HEADERS, MAX_DEPTH_MARKER, PATTERN_MIN_LENGTH, REDACTED

from .policy import DEFAULT_POLICY, SanitizationPolicy

BASE64_IMAGE = re.compile(r"data:image/[^;]+;base64,[^\"'\s)]+")
BASE64_GENERIC = re.compile(r"(?:[A-Za-z0-9+/]{4}){10,}(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?")
IMAGE_URL = re.compile(r"\.(jpe?g|png|gif|svg|webp|bmp|ico)($|\?)", re.IGNORECASE)
CREDIT_CARD = re.compile(r"\b\d{4}[- ]?\d{4}[- ]?\d{4}[- ]?\d{4}\b")
SSN = re.compile(r"\b\d{3}-?\d{2}-?\d{4}\b")
EMAIL = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

IMAGE_DATA_MARKER = "[IMAGE DATA REDACTED]"
BASE64_DATA_MARKER = "[BASE64 DATA REDACTED]"
CREDIT_CARD_MARKER = "[CREDIT CARD REDACTED]"
SSN_MARKER = "[SSN REDACTED]"
EMAIL_MARKER = "[EMAIL REDACTED]"
BASE64_MARKER = "[BASE64 REDACTED]"
IMAGE_URL_MARKER = "[IMAGE URL REDACTED]"

_SEQUENCES = (list, tuple, set, frozenset)


def _is_container(value: object) -> bool:
    return isinstance(value, (Mapping, BaseModel, *_SEQUENCES))


def sanitize_image_data(value: Any) -> Any:
    """Redact long inline images, base64 blobs and image URLs."""
    if not isinstance(value, str) or len(value) <= PATTERN_MIN_LENGTH:
        return value
    if BASE64_IMAGE.fullmatch(value) or BASE64_GENERIC.fullmatch(value):
        return BASE64_MARKER
    if IMAGE_URL.search(value):
        return IMAGE_URL_MARKER
    return value


def sanitize_value(key: object, value: Any, policy: SanitizationPolicy = DEFAULT_POLICY) -> Any:
    """Redact one field by name, then by value pattern (first match wins)."""
    if policy.is_sensitive_field(key):
        return REDACTED
    if not value or not isinstance(value, str):
        return value
    if len(value) > PATTERN_MIN_LENGTH:
        if "image" in str(key).lower() or value.startswith("data:image/"):
            return IMAGE_DATA_MARKER
        if BASE64_GENERIC.fullmatch(value):
            return BASE64_DATA_MARKER
        if CREDIT_CARD.search(value):
            return CREDIT_CARD_MARKER
        if SSN.search(value):
            return SSN_MARKER
        if EMAIL.search(value):
            return EMAIL_MARKER
    return sanitize_image_data(value)


def try_parse_json(value: object) -> dict[str, Any] | list[Any] | None:
    """Parse strings that look like a JSON object or array; None otherwise."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not trimmed.startswith(("{", "[")):
        return None
    try:
        parsed = orjson.loads(trimmed)
    except orjson.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, (dict, list)) else None


def sanitize_body(value: Any, policy: SanitizationPolicy = DEFAULT_POLICY, depth: int = 0) -> Any:
    """Recursively sanitize a body, bounded by the policy's depth and width.

    JSON-encoded strings are parsed and sanitized as structures. A container
    at ``depth >= max_depth`` is replaced as a whole by the depth marker.
    Sequences are cut to ``max_array_length`` before any element is visited.
    """
    if isinstance(value, str):
        parsed = try_parse_json(value)
        return value if parsed is None else sanitize_body(parsed, policy, depth)
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    if not isinstance(value, (Mapping, *_SEQUENCES)):
        return value
    if depth >= policy.max_depth:
        return MAX_DEPTH_MARKER
    if isinstance(value, _SEQUENCES):
        return [sanitize_body(item, policy, depth + 1) for item in islice(value, policy.max_array_length)]
    return {
        str(key): sanitize_value(
            key,
            sanitize_body(item, policy, depth + 1) if _is_container(item) else item,
            policy,
        )
        for key, item in value.items()
    }


def sanitize_headers(
    headers: Mapping[str, Any] | None,
    sensitive_header_names: tuple[str, ...] | list[str] = DEFAULT_SENSITIVE_HEADERS,
) -> dict[str, Any]:
    """Redact headers whose name is in the sensitive list. Flat, no recursion."""
    if not headers or not hasattr(headers, "items"):
        return {}
    sensitive = {name.lower() for name in sensitive_header_names}
    return {
        name: REDACTED if str(name).lower() in sensitive else value
        for name, value in headers.items()
    }
