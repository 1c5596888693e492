"""Error handling for cloudlog.

- ErrorCode: machine-readable error codes
- LoggerError/LoggerException: structured error and its exception wrapper
- ConfigurationError: the one error class raised out of the core
- JsonDict: JSON object alias
"""

from .errors import ConfigurationError, ErrorCode, LoggerError, LoggerException
from .types import JsonDict

__all__ = ["ErrorCode", "LoggerError", "LoggerException", "ConfigurationError", "JsonDict"]
