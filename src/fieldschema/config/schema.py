"""
fieldschema — engine configuration schema and validation.

File: src/fieldschema/config/schema.py
Last updated: 2026-10-19

Purpose
- Define authoritative engine defaults and strict validation rules.

What is included in this file
- Typed sections for engine policies and observability.
- Validation rules for required fields, types and enumerated values.
- Deterministic deep-merge helpers.

Functional requirements
- Validate config payloads and return structured errors (field path + message).

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from fieldschema.constants import (
    CONFIG_SCHEMA_VERSION,
    LOG_FORMATS,
    LOG_LEVELS,
    NUMBER_BOUNDS_MODES,
    UNIQUE_POLICIES,
    UNKNOWN_KEY_POLICIES,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION


class MetaConfig(TypedDict):
    schema_version: int


class EngineSection(TypedDict):
    number_bounds: Literal["exclusive", "inclusive"]
    unique_policy: Literal["reject", "dedupe"]
    unknown_keys: Literal["ignore", "reject"]
    coerce_scalars: bool


class ObservabilitySection(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_format: Literal["json", "text"]
    redact_values: bool


class EngineConfig(TypedDict):
    meta: MetaConfig
    engine: EngineSection
    observability: ObservabilitySection


DEFAULT_CONFIG: Final[EngineConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "engine": {
        "number_bounds": "exclusive",
        "unique_policy": "reject",
        "unknown_keys": "ignore",
        "coerce_scalars": True,
    },
    "observability": {
        "log_level": "WARNING",
        "log_format": "json",
        "redact_values": True,
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> EngineConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    _reject_unknown_keys(root, {"meta", "engine", "observability"}, "", issues)
    _require_keys(root, {"meta", "engine", "observability"}, "", issues)

    normalized: dict[str, Any] = {}
    meta = _section(root, "meta", issues)
    if meta is not None:
        normalized["meta"] = _validate_meta(meta, "meta", issues)
    engine = _section(root, "engine", issues)
    if engine is not None:
        normalized["engine"] = _validate_engine(engine, "engine", issues)
    observability = _section(root, "observability", issues)
    if observability is not None:
        normalized["observability"] = _validate_observability(
            observability, "observability", issues
        )

    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on any issue."""

    result = validate_config(config)
    if not result.is_valid or result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _section(
    root: Mapping[str, object], key: str, issues: _IssueCollector
) -> dict[str, object] | None:
    if key not in root:
        return None
    return _as_object(root[key], key, issues)


def _validate_meta(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"schema_version"}, path, issues)
    _require_keys(payload, {"schema_version"}, path, issues)
    out: dict[str, Any] = {}
    if "schema_version" in payload:
        version = _as_int(payload["schema_version"], _join(path, "schema_version"), issues)
        if version is not None and version != ConfigSchemaVersion:
            issues.add(
                _join(path, "schema_version"),
                f"unsupported schema version {version}; expected {ConfigSchemaVersion}",
            )
        out["schema_version"] = version
    return out


def _validate_engine(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"number_bounds", "unique_policy", "unknown_keys", "coerce_scalars"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)
    out: dict[str, Any] = {}
    choices = {
        "number_bounds": NUMBER_BOUNDS_MODES,
        "unique_policy": UNIQUE_POLICIES,
        "unknown_keys": UNKNOWN_KEY_POLICIES,
    }
    for key, allowed_values in choices.items():
        if key in payload:
            out[key] = _as_enum(
                payload[key], _join(path, key), issues, allowed_values=allowed_values
            )
    if "coerce_scalars" in payload:
        out["coerce_scalars"] = _as_bool(
            payload["coerce_scalars"], _join(path, "coerce_scalars"), issues
        )
    return out


def _validate_observability(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"log_level", "log_format", "redact_values"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)
    out: dict[str, Any] = {}
    if "log_level" in payload:
        raw_level = payload["log_level"]
        level = raw_level.upper() if isinstance(raw_level, str) else raw_level
        out["log_level"] = _as_enum(
            level, _join(path, "log_level"), issues, allowed_values=LOG_LEVELS
        )
    if "log_format" in payload:
        out["log_format"] = _as_enum(
            payload["log_format"], _join(path, "log_format"), issues, allowed_values=LOG_FORMATS
        )
    if "redact_values" in payload:
        out["redact_values"] = _as_bool(
            payload["redact_values"], _join(path, "redact_values"), issues
        )
    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_int(value: object, path: str, issues: _IssueCollector) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    return value


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in sorted(value):
        item = value[key]
        out[key] = _deep_copy_mapping(item) if isinstance(item, Mapping) else copy.deepcopy(item)
    return out


__all__ = [
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "EngineConfig",
    "EngineSection",
    "ObservabilitySection",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "validate_config",
]
