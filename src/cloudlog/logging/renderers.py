"""Output renderers for shaped log entries.

A renderer receives the final, vendor-shaped entry and writes it somewhere.
``JsonRenderer`` is the production path: one orjson line per entry on
stdout, which is what Cloud Logging and CloudWatch agents ingest.
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass, field
from typing import Any, Protocol, TextIO, runtime_checkable

import orjson

from cloudlog.formatters.fields import LABELS_KEY, TRACE_KEY

# Shown in the pretty header line rather than as trailing key=value pairs
_HEADER_KEYS = frozenset({"time", "timestamp", "severity", "message", "type", "requestId", LABELS_KEY, TRACE_KEY})


@runtime_checkable
class LogRenderer(Protocol):
    """Protocol for log output renderers."""

    def render(self, entry: dict[str, Any]) -> None: ...


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines output. Non-JSON values fall back to ``str()``."""

    output: TextIO = field(default_factory=lambda: sys.stdout)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def render(self, entry: dict[str, Any]) -> None:
        line = orjson.dumps(entry, default=str, option=orjson.OPT_NON_STR_KEYS).decode()
        with self._lock:
            print(line, file=self.output)


@dataclass(slots=True)
class PrettyRenderer:
    """Human-readable output for local development.

    Format: ``[time] [requestId] [type] SEVERITY message key=value ...``
    """

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None = auto-detect

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = getattr(self.output, "isatty", lambda: False)()

    def render(self, entry: dict[str, Any]) -> None:
        c = _COLORS if self.colors else _NO_COLORS
        labels = entry.get(LABELS_KEY) or {}
        ts = entry.get("time") or entry.get("timestamp") or "-"
        request_id = entry.get("requestId") or labels.get("requestId") or "-"
        severity = str(entry.get("severity", "DEFAULT"))
        parts = [
            f"{c['dim']}[{ts}]{c['reset']}",
            f"[{request_id}]",
            f"[{entry.get('type') or '-'}]",
            f"{_SEVERITY_COLORS.get(severity, c['dim']) if self.colors else ''}{severity}{c['reset']}",
            f"{c['bold']}{entry.get('message', '')}{c['reset']}",
        ]
        parts += [f"{c['cyan']}{k}{c['reset']}={_format_value(v, c)}"
                  for k, v in entry.items() if k not in _HEADER_KEYS]
        print(" ".join(parts), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    """Silent renderer."""

    def render(self, entry: dict[str, Any]) -> None:
        pass


@dataclass(slots=True)
class CollectingRenderer:
    """Keeps every rendered entry in memory. For tests and embedding."""

    entries: list[dict[str, Any]] = field(default_factory=list)

    def render(self, entry: dict[str, Any]) -> None:
        self.entries.append(entry)

    @property
    def last(self) -> dict[str, Any] | None:
        return self.entries[-1] if self.entries else None

    def clear(self) -> None:
        self.entries.clear()


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


_COLORS = {"reset": "\033[0m", "bold": "\033[1m", "dim": "\033[2m", "red": "\033[31m",
           "green": "\033[32m", "yellow": "\033[33m", "blue": "\033[34m", "cyan": "\033[36m", "white": "\033[37m"}
_NO_COLORS = {k: "" for k in _COLORS}
_SEVERITY_COLORS = {"DEBUG": _COLORS["dim"], "INFO": _COLORS["green"], "WARNING": _COLORS["yellow"],
                    "ERROR": _COLORS["red"], "CRITICAL": _COLORS["red"] + _COLORS["bold"]}


def _format_value(v: object, c: dict[str, str]) -> str:
    match v:
        case str(): return f'{c["yellow"]}"{v}"{c["reset"]}'
        case bool(): return f'{c["blue"]}{str(v).lower()}{c["reset"]}'
        case int() | float(): return f'{c["blue"]}{v}{c["reset"]}'
        case dict() | list() | tuple():
            text = orjson.dumps(v, default=str, option=orjson.OPT_NON_STR_KEYS).decode()
            return f"{c['dim']}{text if len(text) <= 120 else text[:117] + '...'}{c['reset']}"
        case _: return f"{c['white']}{v}{c['reset']}"
