"""Structured, request-correlated logging.

    >>> from cloudlog.logging import configure_logging, get_logger
    >>> configure_logging(format="pretty")
    >>> get_logger("orders").info("ready")
"""

from .logger import (
    CloudLogger,
    LoggingConfig,
    configure_logging,
    get_config,
    get_logger,
    log_context,
    logged,
    reset_logging,
)
from .renderers import CollectingRenderer, JsonRenderer, LogRenderer, NoOpRenderer, PrettyRenderer

__all__ = [
    # Logger
    "CloudLogger",
    "LoggingConfig",
    "configure_logging",
    "get_config",
    "get_logger",
    "log_context",
    "logged",
    "reset_logging",
    # Renderers
    "CollectingRenderer",
    "JsonRenderer",
    "LogRenderer",
    "NoOpRenderer",
    "PrettyRenderer",
]
