"""JSON type aliases shared across the logging pipeline."""

from __future__ import annotations

from typing import Any

# Any for nested values to avoid Pydantic resolution issues
JsonDict = dict[str, Any]
