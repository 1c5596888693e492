"""Shared fixtures: isolate every test from process-wide state and the environment."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from hypothesis import HealthCheck, settings

from cloudlog.foundation.config import clear_settings_cache, reset_default_vendor
from cloudlog.logging import reset_logging

# clean_state only resets globals; reuse across examples is fine
settings.register_profile("cloudlog", suppress_health_check=[HealthCheck.function_scoped_fixture])
settings.load_profile("cloudlog")

_ENV_VARS = (
    "LOG_TYPE",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "PROJECT_ID",
    "SERVICE_NAME",
    "LOGGER_NAME",
    "LOGGER_SENSITIVE_FIELDS",
    "LOGGER_SENSITIVE_HEADERS",
    "LOG_INCLUDE_RESOURCE",
    "LOG_INCLUDE_TRACE",
)


@pytest.fixture(autouse=True)
def clean_state(monkeypatch: pytest.MonkeyPatch, tmp_path: object) -> Iterator[None]:
    """Fresh environment, settings cache, default vendor and logging config per test."""
    monkeypatch.chdir(tmp_path)  # no stray .env
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SERVICE_NAME", "test-service")
    clear_settings_cache()
    reset_default_vendor()
    reset_logging()
    yield
    clear_settings_cache()
    reset_default_vendor()
    reset_logging()
