"""Stable constants shared across the descriptor and engine layers."""

from __future__ import annotations

from typing import Final

# Schema version for persisted engine configuration.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Engine policy values.
NUMBER_BOUNDS_MODES: Final[tuple[str, ...]] = ("exclusive", "inclusive")
UNIQUE_POLICIES: Final[tuple[str, ...]] = ("reject", "dedupe")
UNKNOWN_KEY_POLICIES: Final[tuple[str, ...]] = ("ignore", "reject")

# Observability.
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")
DEFAULT_LOGGER_NAME: Final[str] = "fieldschema"

# Rendering of error paths.
ROOT_PATH_LABEL: Final[str] = "<root>"

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_LOGGER_NAME",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "NUMBER_BOUNDS_MODES",
    "ROOT_PATH_LABEL",
    "UNIQUE_POLICIES",
    "UNKNOWN_KEY_POLICIES",
]
