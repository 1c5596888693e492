"""Configuration management using pydantic-settings, plus library constants."""

from .constants import (
    DEFAULT_SENSITIVE_FIELDS,
    DEFAULT_SENSITIVE_HEADERS,
    EXCLUDED_PATHS,
    LOG_LEVELS,
    SEVERITY_LEVEL,
    VendorMode,
    level_for_status,
    should_exclude_path,
)
from .settings import LoggerSettings, VendorSettings, clear_settings_cache, get_settings, load_settings
from .vendor import (
    coerce_vendor,
    get_default_vendor,
    reset_default_vendor,
    resolve_vendor,
    set_default_vendor,
)

__all__ = [
    "DEFAULT_SENSITIVE_FIELDS",
    "DEFAULT_SENSITIVE_HEADERS",
    "EXCLUDED_PATHS",
    "LOG_LEVELS",
    "LoggerSettings",
    "SEVERITY_LEVEL",
    "VendorMode",
    "VendorSettings",
    "clear_settings_cache",
    "coerce_vendor",
    "get_default_vendor",
    "get_settings",
    "level_for_status",
    "load_settings",
    "reset_default_vendor",
    "resolve_vendor",
    "set_default_vendor",
    "should_exclude_path",
]
