"""Process-wide default vendor.

Set it during startup, before concurrent traffic begins. It may be set once;
setting it again to a different value raises ``ConfigurationError``. Per-call
vendor arguments always take priority over this default.
"""

from __future__ import annotations

import threading
from functools import lru_cache

from pydantic import ValidationError

from cloudlog.foundation.errors import ConfigurationError, ErrorCode

from .constants import VendorMode
from .settings import VendorSettings

_lock = threading.Lock()
_default: VendorMode | None = None


def coerce_vendor(vendor: VendorMode | str) -> VendorMode:
    try:
        return VendorMode(str(vendor).strip().lower())
    except ValueError as exc:
        raise ConfigurationError.invalid(f"unknown vendor {vendor!r}; use 'gcp' or 'aws'") from exc


def set_default_vendor(vendor: VendorMode | str) -> VendorMode:
    """Set the default vendor once. Re-setting the same value is a no-op."""
    global _default
    mode = coerce_vendor(vendor)
    with _lock:
        if _default is not None and _default != mode:
            raise ConfigurationError.create(
                f"default vendor already set to {_default.value!r}", ErrorCode.VENDOR_CONFLICT,
            )
        _default = mode
    return mode


@lru_cache(maxsize=1)
def _environment_vendor() -> VendorMode:
    """``LOG_TYPE`` read once from the environment (or ``.env``)."""
    try:
        return VendorSettings().log_type
    except ValidationError as exc:
        raise ConfigurationError.invalid("invalid LOG_TYPE", details=str(exc)) from exc


def get_default_vendor() -> VendorMode:
    """Configured default, else ``LOG_TYPE`` from the environment, else GCP."""
    if _default is not None:
        return _default
    return _environment_vendor()


def resolve_vendor(override: VendorMode | str | None = None) -> VendorMode:
    """Per-call override, then the process-wide default."""
    return coerce_vendor(override) if override is not None else get_default_vendor()


def reset_default_vendor() -> None:
    """Forget the configured default and the cached LOG_TYPE (for tests)."""
    global _default
    with _lock:
        _default = None
    _environment_vendor.cache_clear()
