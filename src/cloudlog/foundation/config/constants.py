"""Library-wide constants: severity scale, default redaction lists, content limits."""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import StrEnum
from functools import lru_cache
from typing import Final, Literal


class VendorMode(StrEnum):
    """Target structured-logging schema and trace propagation format."""

    GCP = "gcp"
    AWS = "aws"


# Six-level severity scale -> Cloud Logging / CloudWatch severity
SEVERITY_LEVEL: Final[dict[str, str]] = {
    "trace": "DEBUG",
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "error": "ERROR",
    "fatal": "CRITICAL",
}
DEFAULT_SEVERITY: Final = "DEFAULT"

LOG_LEVELS: Final[dict[str, int]] = {
    "trace": 10,
    "debug": 20,
    "info": 30,
    "warn": 40,
    "error": 50,
    "fatal": 60,
}
LEVEL_NAMES: Final[dict[int, str]] = {v: k for k, v in LOG_LEVELS.items()}

# Common aliases from the stdlib logging vocabulary
LEVEL_ALIASES: Final[dict[str, str]] = {"warning": "warn", "critical": "fatal", "exception": "error"}

DEFAULT_SENSITIVE_FIELDS: Final[frozenset[str]] = frozenset({
    "password",
    "token",
    "authorization",
    "key",
    "secret",
    "credential",
    "creditcard",
    "credit_card",
    "cardnumber",
    "apikey",
    "phone",
    "email",
    "dob",
    "birth",
    "social",
})

DEFAULT_SENSITIVE_HEADERS: Final[tuple[str, ...]] = (
    "authorization",
    "cookie",
    "x-api-key",
    "token",
    "password",
)

STRING_RESPONSE_LIMIT: Final = 1024
JSON_DEPTH_LIMIT: Final = 10
ARRAY_LENGTH_LIMIT: Final = 100
# Strings at or under this length are never pattern-matched by the sanitizer
PATTERN_MIN_LENGTH: Final = 100

REDACTED: Final = "[REDACTED]"
MAX_DEPTH_MARKER: Final = "[MAX DEPTH EXCEEDED]"
TRUNCATED_SUFFIX: Final = "... [TRUNCATED]"

API_LOGGER_NAME: Final = "api-logger"
ERROR_LOGGER_NAME: Final = "error-logger"
CONSOLE_LOGGER_NAME: Final = "console-logger"

EXCLUDED_PATHS: Final[tuple[str, ...]] = (
    "/health",
    "/metrics",
    "/*/health",
    "/*/metrics",
)


@lru_cache(maxsize=128)
def _path_pattern(pattern: str) -> re.Pattern[str]:
    return re.compile("^" + "[^/]+".join(re.escape(p) for p in pattern.split("*")) + "$")


def should_exclude_path(path: str, extra: Iterable[str] = ()) -> bool:
    """Whether a request path is a health/metrics probe that should not be logged.

    A ``*`` in a pattern matches exactly one path segment.
    """
    for pattern in (*EXCLUDED_PATHS, *extra):
        if "*" in pattern:
            if _path_pattern(pattern).match(path):
                return True
        elif path == pattern:
            return True
    return False


def level_for_status(status: int) -> Literal["error", "warn", "info"]:
    """Log level for an HTTP response status: 5xx error, 4xx warn, else info."""
    if status >= 500:
        return "error"
    if status >= 400:
        return "warn"
    return "info"
