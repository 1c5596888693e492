"""Request-correlated structured logger.

Every call builds a flat record, enriches it from the active
``RequestContext``, runs values through the serializers and sanitizer,
shapes it for the configured vendor, and hands it to a renderer.

Quick Start:
    >>> from cloudlog import configure_logging, get_logger, request_scope
    >>> configure_logging()  # reads SERVICE_NAME, LOG_TYPE, ... from the environment
    >>> log = get_logger("orders")
    >>> with request_scope(request.headers):
    ...     log.info("order placed", order_id=42)

Values under ``req``, ``res`` and ``err`` (and any exception value) are
serialized; every other field is sanitized before it reaches the renderer.
"""

from __future__ import annotations

import inspect
import sys
import threading
import time
from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass, field
from functools import wraps
from typing import TYPE_CHECKING, Any, ParamSpec, TextIO, TypeVar

from cloudlog.foundation.config import LOG_LEVELS, get_settings, set_default_vendor
from cloudlog.foundation.config.constants import LEVEL_ALIASES
from cloudlog.foundation.errors import ConfigurationError, JsonDict
from cloudlog.formatters import LogFormatter, iso_timestamp
from cloudlog.sanitize import DEFAULT_POLICY, SanitizationPolicy, sanitize_body, sanitize_headers, sanitize_value
from cloudlog.serializers import serialize_error, serialize_request, serialize_response
from cloudlog.tracing import RequestContext

from .renderers import JsonRenderer, LogRenderer, NoOpRenderer, PrettyRenderer

if TYPE_CHECKING:
    from types import TracebackType

    from cloudlog.foundation.config import LoggerSettings

P = ParamSpec("P")
T = TypeVar("T")

# Scoped extra fields (persists across async calls)
_log_context: ContextVar[JsonDict] = ContextVar("cloudlog_log_context", default={})


# ─────────────────────────────────────────────────────────────────────────────
# Process-wide configuration
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class LoggingConfig:
    """What every logger created by ``get_logger`` shares."""

    formatter: LogFormatter
    renderer: LogRenderer
    policy: SanitizationPolicy = DEFAULT_POLICY
    level: int = LOG_LEVELS["info"]


_config: LoggingConfig | None = None
_config_lock = threading.Lock()


def configure_logging(
    settings: LoggerSettings | None = None,
    *,
    format: str | None = None,  # noqa: A002 - mirrors LOG_FORMAT
    output: TextIO | None = None,
    renderer: LogRenderer | None = None,
) -> LoggingConfig:
    """Configure process-wide logging from settings (environment by default).

    ``format`` overrides ``LOG_FORMAT``: "json", "pretty" or "none". An
    explicit ``renderer`` wins over both. A ``log_type`` given in the
    settings becomes the process-wide default vendor, so request contexts
    and records agree on it.

    Raises:
        ConfigurationError: settings are missing a service name or invalid,
            or ``log_type`` conflicts with an already set default vendor.
    """
    global _config
    settings = settings or get_settings()
    if "log_type" in settings.model_fields_set:
        set_default_vendor(settings.log_type)
    fmt = (format or settings.log_format).lower()
    if renderer is None:
        match fmt:
            case "json": renderer = JsonRenderer(output=output or sys.stdout)
            case "pretty": renderer = PrettyRenderer(output=output or sys.stderr)
            case "none": renderer = NoOpRenderer()
            case _: raise ConfigurationError.invalid(f"Unknown log format: {fmt}. Use 'json', 'pretty', or 'none'")
    config = LoggingConfig(
        formatter=LogFormatter.from_settings(settings),
        renderer=renderer,
        policy=SanitizationPolicy.from_settings(settings),
        level=LOG_LEVELS[settings.log_level],
    )
    with _config_lock:
        _config = config
    return config


def get_config() -> LoggingConfig:
    """Active configuration, configured from the environment on first use."""
    if _config is None:
        return configure_logging()
    return _config


def reset_logging() -> None:
    """Drop the active configuration (tests)."""
    global _config
    with _config_lock:
        _config = None


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


def _level_number(level: str) -> int:
    return LOG_LEVELS[LEVEL_ALIASES.get(level, level)]


@dataclass(slots=True)
class CloudLogger:
    """Structured logger with bound fields. ``bind()`` returns a new logger.

    Configuration is read at emit time unless a ``config`` is pinned, so a
    logger created before ``configure_logging`` still follows it.

    Example:
        >>> log = get_logger("billing").bind(tenant="acme")
        >>> log.info("invoice sent", invoice_id=7)
    """

    context: JsonDict = field(default_factory=dict)
    config: LoggingConfig | None = None

    def bind(self, **kw: Any) -> CloudLogger:
        """New logger with additional bound fields."""
        return CloudLogger(context={**self.context, **kw}, config=self.config)

    def child(self, **kw: Any) -> CloudLogger:
        """Alias of ``bind`` for pino-style call sites."""
        return self.bind(**kw)

    def unbind(self, *keys: str) -> CloudLogger:
        return CloudLogger(context={k: v for k, v in self.context.items() if k not in keys}, config=self.config)

    def is_enabled(self, level: str) -> bool:
        return _level_number(level) >= (self.config or get_config()).level

    def _log(self, level: str, msg: str, fields: JsonDict) -> None:
        config = self.config or get_config()
        number = LOG_LEVELS[level]
        if number < config.level:
            return
        config.renderer.render(config.formatter.format(self._record(config, level, number, msg, fields)))

    def _record(self, config: LoggingConfig, level: str, number: int, msg: str, fields: JsonDict) -> JsonDict:
        formatter = config.formatter
        record: JsonDict = {
            "level": level,
            "levelNumber": number,
            "msg": msg,
            "time": iso_timestamp(),
            "service": formatter.service_name,
        }
        if formatter.project_id:
            record["projectId"] = formatter.project_id
        if formatter.logger_name:
            record["loggerName"] = formatter.logger_name
        if (ctx := RequestContext.current()) is not None:
            record.update(ctx.snapshot(), sampled=ctx.trace.sampled)
        for key, value in {**_log_context.get(), **self.context, **fields}.items():
            record[key] = _shape(key, value, config.policy)
        return record

    def trace(self, msg: str, **kw: Any) -> None: self._log("trace", msg, kw)
    def debug(self, msg: str, **kw: Any) -> None: self._log("debug", msg, kw)
    def info(self, msg: str, **kw: Any) -> None: self._log("info", msg, kw)
    def warn(self, msg: str, **kw: Any) -> None: self._log("warn", msg, kw)
    def warning(self, msg: str, **kw: Any) -> None: self._log("warn", msg, kw)
    def error(self, msg: str, **kw: Any) -> None: self._log("error", msg, kw)
    def fatal(self, msg: str, **kw: Any) -> None: self._log("fatal", msg, kw)

    def exception(self, msg: str, **kw: Any) -> None:
        """Log at error level with the exception currently being handled as ``err``."""
        if "err" not in kw and (exc := sys.exc_info()[1]) is not None:
            kw["err"] = exc
        self._log("error", msg, kw)


def _shape(key: str, value: Any, policy: SanitizationPolicy) -> Any:
    match key:
        case "req":
            return serialize_request(value, policy)
        case "res":
            return serialize_response(value, policy)
        case "err":
            return serialize_error(value, policy)
        case "headers" if hasattr(value, "items"):
            return sanitize_headers(sanitize_body(dict(value.items()), policy), policy.sensitive_header_names)
    if isinstance(value, BaseException):
        return serialize_error(value, policy)
    return sanitize_value(key, sanitize_body(value, policy), policy)


def get_logger(name: str | None = None, **initial_context: Any) -> CloudLogger:
    """Logger with optional initial fields. ``name`` is bound as ``logger``."""
    ctx = {**initial_context, **({"logger": name} if name else {})}
    return CloudLogger(context=ctx)


# ─────────────────────────────────────────────────────────────────────────────
# Decorators & Utilities
# ─────────────────────────────────────────────────────────────────────────────


def logged(
    log: CloudLogger | None = None,
    *,
    level: str = "info",
    name: str | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Log entry, completion and failure of a function with ``duration_ms``.

    Emits ``Executing {name}`` and ``Completed {name}`` at ``level`` and
    ``Error in {name}`` at error level with the exception as ``err``. The
    exception is re-raised.
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        label = name or func.__qualname__

        def _start(_log: CloudLogger) -> float:
            getattr(_log, level)(f"Executing {label}", function=label)
            return time.perf_counter()

        def _finish(_log: CloudLogger, start: float, err: Exception | None = None) -> None:
            dur = round((time.perf_counter() - start) * 1000, 2)
            if err is not None:
                _log.error(f"Error in {label}", function=label, duration_ms=dur, err=err)
            else:
                getattr(_log, level)(f"Completed {label}", function=label, duration_ms=dur)

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            _log = log or get_logger()
            start = _start(_log)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _finish(_log, start, e)
                raise
            _finish(_log, start)
            return result

        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            _log = log or get_logger()
            start = _start(_log)
            try:
                result = await func(*args, **kwargs)  # type: ignore[misc]
            except Exception as e:
                _finish(_log, start, e)
                raise
            _finish(_log, start)
            return result

        return async_wrapper if inspect.iscoroutinefunction(func) else wrapper  # type: ignore[return-value]

    return decorator


class log_context:
    """Add fields to every entry logged within the block."""

    __slots__ = ("_ctx", "_token")

    def __init__(self, **kw: Any) -> None:
        self._ctx: JsonDict = dict(kw)
        self._token: object | None = None

    def __enter__(self) -> log_context:
        self._token = _log_context.set({**_log_context.get(), **self._ctx})
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        if self._token is not None:
            _log_context.reset(self._token)  # type: ignore[arg-type]
