"""Environment-based configuration using pydantic-settings.

Reads the hosting module's configuration once and hands it to the
components as plain values. Variable names match the deployment
environment (no prefix):

    LOG_TYPE=aws
    PROJECT_ID=my-project
    SERVICE_NAME=orders
    LOGGER_SENSITIVE_FIELDS=password,ssn,pin

Example:
    >>> from cloudlog.foundation.config import load_settings
    >>> settings = load_settings(service_name="orders")
    >>> settings.log_type
    <VendorMode.GCP: 'gcp'>
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import Field, ValidationError, computed_field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from cloudlog.foundation.errors import ConfigurationError

from .constants import (
    API_LOGGER_NAME,
    DEFAULT_SENSITIVE_FIELDS,
    DEFAULT_SENSITIVE_HEADERS,
    LEVEL_ALIASES,
    VendorMode,
)

LevelName = Literal["trace", "debug", "info", "warn", "error", "fatal"]


def _split_csv(v: Any) -> Any:
    if isinstance(v, str):
        return [part.strip().lower() for part in v.split(",") if part.strip()]
    return v


class VendorSettings(BaseSettings):
    """Just the target vendor, readable without the rest of the configuration."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    log_type: VendorMode = VendorMode.GCP

    @field_validator("log_type", mode="before")
    @classmethod
    def _normalize_case(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


class LoggerSettings(BaseSettings):
    """Root settings for the logging core.

    ``service_name`` has no default: records without a service label are
    mislabeled downstream, so a missing value fails at construction.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_default=True,
        frozen=True,
    )

    log_type: VendorMode = VendorMode.GCP
    log_level: LevelName = "info"
    log_format: Literal["json", "pretty"] = "json"
    project_id: str | None = Field(default=None, description="GCP project for trace paths")
    service_name: Annotated[str, Field(min_length=1, description="Service label on every record")]
    logger_name: str | None = None
    logger_sensitive_fields: Annotated[frozenset[str], NoDecode] = DEFAULT_SENSITIVE_FIELDS
    logger_sensitive_headers: Annotated[tuple[str, ...], NoDecode] = DEFAULT_SENSITIVE_HEADERS
    log_include_resource: bool = True
    log_include_trace: bool = True

    @field_validator("log_type", "log_format", mode="before")
    @classmethod
    def _normalize_case(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        v = v.strip().lower()
        return LEVEL_ALIASES.get(v, v)

    @field_validator("logger_sensitive_fields", "logger_sensitive_headers", mode="before")
    @classmethod
    def _parse_name_list(cls, v: Any) -> Any:
        v = _split_csv(v)
        if isinstance(v, (list, tuple, set, frozenset)):
            return [str(name).strip().lower() for name in v if str(name).strip()]
        return v

    @field_validator("project_id", "logger_name", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        return None if isinstance(v, str) and not v.strip() else v

    @computed_field
    @property
    def effective_logger_name(self) -> str:
        return self.logger_name or self.service_name or API_LOGGER_NAME


def load_settings(**overrides: Any) -> LoggerSettings:
    """Build settings from the environment plus explicit overrides.

    Raises:
        ConfigurationError: a required value is missing or a value is invalid.
    """
    try:
        return LoggerSettings(**overrides)
    except ValidationError as exc:
        errors = exc.errors()
        missing = [".".join(str(p) for p in e["loc"]) for e in errors if e["type"] == "missing"]
        if missing:
            raise ConfigurationError.missing(", ".join(name.upper() for name in missing)) from exc
        raise ConfigurationError.invalid("invalid logger configuration", details=str(exc)) from exc


@lru_cache(maxsize=1)
def get_settings() -> LoggerSettings:
    """Cached settings loaded from the environment."""
    return load_settings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
