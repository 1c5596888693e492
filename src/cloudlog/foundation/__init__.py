"""Foundation: configuration, constants, and error types."""

from .config import LoggerSettings, VendorMode, get_settings, load_settings
from .errors import ConfigurationError, ErrorCode, JsonDict, LoggerError, LoggerException

__all__ = [
    "ConfigurationError",
    "ErrorCode",
    "JsonDict",
    "LoggerError",
    "LoggerException",
    "LoggerSettings",
    "VendorMode",
    "get_settings",
    "load_settings",
]
