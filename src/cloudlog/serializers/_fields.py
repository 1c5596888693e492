"""Duck-typed field lookup over mappings and framework request objects."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

MISSING: Final = object()


def field(obj: Any, *names: str) -> Any:
    """First present, non-callable value among ``names``; ``MISSING`` if none.

    Callables are skipped so async accessors (``Request.body()``) are never
    mistaken for data.
    """
    for name in names:
        if isinstance(obj, Mapping):
            if name in obj:
                return obj[name]
            continue
        value = getattr(obj, name, MISSING)
        if value is not MISSING and not callable(value):
            return value
    return MISSING


def present(value: Any) -> bool:
    return value is not MISSING and value is not None


def header_lookup(headers: Any, name: str) -> str:
    """Case-insensitive single header value, ``""`` when absent."""
    if not present(headers) or not hasattr(headers, "items"):
        return ""
    wanted = name.lower()
    for key, value in headers.items():
        if str(key).lower() == wanted:
            if isinstance(value, (list, tuple)):
                value = value[0] if value else ""
            return str(value)
    return ""
