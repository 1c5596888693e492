"""Sanitization: redact sensitive fields, headers and value patterns."""

from .policy import DEFAULT_POLICY, SanitizationPolicy
from .sanitizers import (
    sanitize_body,
    sanitize_headers,
    sanitize_image_data,
    sanitize_value,
    try_parse_json,
)

__all__ = [
    "DEFAULT_POLICY",
    "SanitizationPolicy",
    "sanitize_body",
    "sanitize_headers",
    "sanitize_image_data",
    "sanitize_value",
    "try_parse_json",
]
