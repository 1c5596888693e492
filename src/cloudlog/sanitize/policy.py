"""Sanitization policy: what to redact and how far to descend."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

from cloudlog.foundation.config.constants import (
    ARRAY_LENGTH_LIMIT,
    DEFAULT_SENSITIVE_FIELDS,
    DEFAULT_SENSITIVE_HEADERS,
    JSON_DEPTH_LIMIT,
    STRING_RESPONSE_LIMIT,
)

if TYPE_CHECKING:
    from cloudlog.foundation.config import LoggerSettings


def _lowered(names: Iterable[str]) -> list[str]:
    return [str(n).strip().lower() for n in names if str(n).strip()]


class SanitizationPolicy(BaseModel):
    """Redaction lists plus depth and width bounds.

    Field and header names match by exact, case-insensitive comparison.
    The bounds are positive integers and cannot be disabled.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    sensitive_field_names: frozenset[str] = DEFAULT_SENSITIVE_FIELDS
    sensitive_header_names: tuple[str, ...] = DEFAULT_SENSITIVE_HEADERS
    max_depth: PositiveInt = JSON_DEPTH_LIMIT
    max_array_length: PositiveInt = ARRAY_LENGTH_LIMIT
    max_inline_string_length: Annotated[int, Field(gt=0)] = STRING_RESPONSE_LIMIT

    @field_validator("sensitive_field_names", "sensitive_header_names", mode="before")
    @classmethod
    def _lowercase_names(cls, v: object) -> object:
        if isinstance(v, str):
            return _lowered(v.split(","))
        if isinstance(v, Iterable):
            return _lowered(v)
        return v

    def is_sensitive_field(self, key: object) -> bool:
        return str(key).lower() in self.sensitive_field_names

    def is_sensitive_header(self, name: object) -> bool:
        return str(name).lower() in self.sensitive_header_names

    @classmethod
    def from_settings(cls, settings: LoggerSettings) -> SanitizationPolicy:
        return cls(
            sensitive_field_names=settings.logger_sensitive_fields,
            sensitive_header_names=settings.logger_sensitive_headers,
        )


DEFAULT_POLICY = SanitizationPolicy()
