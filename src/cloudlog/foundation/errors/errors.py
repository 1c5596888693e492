"""Structured errors for the logging core.

Only configuration problems are raised to callers. Header parsing and
serialization recover locally and never surface exceptions.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class ErrorCode(StrEnum):
    """Machine-readable error classification."""
    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"
    VENDOR_CONFLICT = "VENDOR_CONFLICT"
    UNKNOWN = "UNKNOWN"


_CONFIG_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.CONFIG_MISSING,
    ErrorCode.CONFIG_INVALID,
    ErrorCode.VENDOR_CONFLICT,
})


class LoggerError(BaseModel):
    """Structured description of a logging-core failure.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Optional detail (offending field names, validation output)
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        json_schema_extra={
            "title": "Logger Error",
            "examples": [{"message": "SERVICE_NAME is required", "code": "CONFIG_MISSING"}],
        },
    )

    message: Annotated[str, Field(min_length=1)]
    code: ErrorCode = ErrorCode.UNKNOWN
    details: str | None = Field(default=None, repr=False)

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | Exception) -> str:
        """Accept Exception objects and extract message."""
        return str(v) if isinstance(v, Exception) else v

    @computed_field
    @property
    def is_configuration_error(self) -> bool:
        return self.code in _CONFIG_CODES

    def render(self) -> str:
        """Format error for display."""
        parts = [f"[{self.code}] {self.message}"]
        if self.details:
            parts.append(f"\n{self.details}")
        return "".join(parts)

    __str__ = render


class LoggerException(Exception):
    """Exception wrapping a LoggerError for raising."""

    __slots__ = ("error",)

    def __init__(self, error: LoggerError) -> None:
        self.error = error
        super().__init__(error.render())

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @classmethod
    def create(cls, message: str, code: ErrorCode = ErrorCode.UNKNOWN, *, details: str | None = None) -> Self:
        return cls(LoggerError(message=message, code=code, details=details))


class ConfigurationError(LoggerException):
    """Missing or invalid configuration, surfaced at construction time."""

    @classmethod
    def missing(cls, name: str) -> Self:
        return cls.create(f"{name} is required", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, message: str, details: str | None = None) -> Self:
        return cls.create(message, ErrorCode.CONFIG_INVALID, details=details)
