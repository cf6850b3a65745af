"""
fieldschema — declarative schema definitions

File: src/fieldschema/definitions.py
Last updated: 2026-10-19

Purpose
- Build ``Schema`` objects from plain data, typically read from YAML or TOML files.

What is included in this file
- ``schema_from_definition``: validates a definition mapping and builds a schema.
- ``load_schema_file``: reads ``.yaml``/``.yml`` (PyYAML ``safe_load``) or ``.toml``.

Definition shape
    name: person            # optional
    fields:
      name: {type: string, required: true, maxLength: 32}
      age: number
      tags: {type: array, arrayType: string, unique: dedupe}
      address:
        type: schema
        fields:
          city: string
      handle: {type: alias, index: name}

Functional requirements
- Only literal options are accepted; callable hooks (transform, getter,
  filter, string_transform) cannot be expressed and are rejected.
- Every problem is reported with the dotted location of the offending entry.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Final

import yaml

from fieldschema.descriptors import (
    Alias,
    Array,
    FieldKind,
    General,
    GeneralField,
    Number,
    String,
    UniquePolicy,
)
from fieldschema.engine import Schema
from fieldschema.errors import SchemaDefinitionError
from fieldschema.settings import EngineSettings

_YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})
_TOML_SUFFIXES: Final[frozenset[str]] = frozenset({".toml"})

_TOP_LEVEL_KEYS: Final[frozenset[str]] = frozenset({"name", "fields"})

_GENERAL_OPTIONS: Final[frozenset[str]] = frozenset(
    {"type", "default", "required", "read_only", "readOnly", "invisible"}
)
_OPTIONS_BY_KIND: Final[dict[FieldKind, frozenset[str]]] = {
    FieldKind.STRING: _GENERAL_OPTIONS
    | {"regex", "enum", "min_length", "minLength", "max_length", "maxLength", "clip"},
    FieldKind.NUMBER: _GENERAL_OPTIONS | {"min", "max"},
    FieldKind.ARRAY: _GENERAL_OPTIONS | {"array_type", "arrayType", "unique"},
    FieldKind.SCHEMA: _GENERAL_OPTIONS | {"fields", "name"},
    FieldKind.ALIAS: frozenset({"type", "index", "invisible", "read_only", "readOnly"}),
}
_CALLABLE_OPTIONS: Final[frozenset[str]] = frozenset(
    {"transform", "getter", "filter", "string_transform", "stringTransform"}
)


def schema_from_definition(
    definition: Mapping[str, Any],
    *,
    name: str | None = None,
    settings: EngineSettings | None = None,
) -> Schema:
    """Build a schema from a ``{"name": ..., "fields": {...}}`` mapping."""

    parsed = _as_mapping(definition, "<definition>")
    unknown = sorted(set(parsed) - _TOP_LEVEL_KEYS)
    if unknown:
        raise SchemaDefinitionError(
            f"<definition>: unexpected keys: {unknown}; allowed keys: {sorted(_TOP_LEVEL_KEYS)}"
        )
    if "fields" not in parsed:
        raise SchemaDefinitionError("<definition>: missing required key 'fields'")

    schema_name = name or parsed.get("name")
    if schema_name is not None and not isinstance(schema_name, str):
        raise SchemaDefinitionError("<definition>.name must be a string")
    return _build_schema(parsed["fields"], "fields", name=schema_name, settings=settings)


def load_schema_file(
    path: Path | str,
    *,
    settings: EngineSettings | None = None,
) -> Schema:
    """Read a YAML or TOML definition file; the file stem names the schema by default."""

    file_path = Path(path)
    suffix = file_path.suffix.lower()
    try:
        if suffix in _YAML_SUFFIXES:
            with file_path.open("r", encoding="utf-8") as handle:
                payload = yaml.safe_load(handle)
        elif suffix in _TOML_SUFFIXES:
            with file_path.open("rb") as handle:
                payload = tomllib.load(handle)
        else:
            raise SchemaDefinitionError(
                f"{file_path}: unsupported definition format {suffix or '<none>'!r}"
            )
    except OSError as exc:
        raise SchemaDefinitionError(f"{file_path}: unable to read definition ({exc})") from exc
    except yaml.YAMLError as exc:
        raise SchemaDefinitionError(f"{file_path}: invalid YAML ({exc})") from exc
    except tomllib.TOMLDecodeError as exc:
        raise SchemaDefinitionError(f"{file_path}: invalid TOML ({exc})") from exc

    if not isinstance(payload, Mapping):
        raise SchemaDefinitionError(
            f"{file_path}: expected top-level mapping, got {type(payload).__name__}"
        )
    default_name = payload.get("name") or file_path.stem
    try:
        return schema_from_definition(payload, name=default_name, settings=settings)
    except SchemaDefinitionError as exc:
        raise SchemaDefinitionError(f"{file_path}: {exc}") from exc


def _build_schema(
    raw_fields: object,
    location: str,
    *,
    name: str | None,
    settings: EngineSettings | None,
) -> Schema:
    fields = _as_mapping(raw_fields, location)
    if not fields:
        raise SchemaDefinitionError(f"{location} must declare at least one field")
    descriptors = {
        field_name: _build_field(entry, f"{location}.{field_name}", settings=settings)
        for field_name, entry in fields.items()
    }
    return Schema(descriptors, name=name, settings=settings)


def _build_field(
    entry: object,
    location: str,
    *,
    settings: EngineSettings | None,
) -> GeneralField | Schema:
    if isinstance(entry, str):
        entry = {"type": entry}
    options = dict(_as_mapping(entry, location))
    if "type" not in options:
        raise SchemaDefinitionError(f"{location}: missing required key 'type'")

    kind = _coerce_kind(options["type"], f"{location}.type")
    callables = sorted(set(options) & _CALLABLE_OPTIONS)
    if callables:
        raise SchemaDefinitionError(
            f"{location}: callable options cannot be declared in a definition: {callables}"
        )
    unknown = sorted(set(options) - _OPTIONS_BY_KIND[kind])
    if unknown:
        raise SchemaDefinitionError(
            f"{location}: unexpected options for {kind.value} field: {unknown}"
        )
    options.pop("type")
    if "required" in options:
        options["required"] = _coerce_required(options["required"], f"{location}.required")

    if kind is FieldKind.STRING:
        if "enum" in options:
            options["enum"] = _coerce_string_list(options["enum"], f"{location}.enum")
        return String(options)
    if kind is FieldKind.NUMBER:
        return Number(options)
    if kind is FieldKind.ALIAS:
        return Alias(options)
    if kind is FieldKind.ARRAY:
        for key in ("array_type", "arrayType"):
            if key in options:
                options[key] = _build_field(options[key], f"{location}.{key}", settings=settings)
        if "unique" in options:
            options["unique"] = _coerce_unique(options["unique"], f"{location}.unique")
        return Array(options)

    nested = _build_schema(
        options.pop("fields", None),
        f"{location}.fields",
        name=options.pop("name", None),
        settings=settings,
    )
    if not options:
        return nested
    return General(nested, options)


def _coerce_kind(value: object, location: str) -> FieldKind:
    if not isinstance(value, str):
        raise SchemaDefinitionError(f"{location} must be a string, got {type(value).__name__}")
    try:
        return FieldKind(value.strip().lower())
    except ValueError:
        allowed = ", ".join(kind.value for kind in FieldKind)
        raise SchemaDefinitionError(
            f"{location}: unknown type {value!r}; expected one of: {allowed}"
        ) from None


def _coerce_required(value: object, location: str) -> bool | tuple[bool, str]:
    if isinstance(value, bool):
        return value
    if (
        isinstance(value, Sequence)
        and not isinstance(value, (str, bytes))
        and len(value) == 2
        and isinstance(value[0], bool)
        and isinstance(value[1], str)
    ):
        return (value[0], value[1])
    raise SchemaDefinitionError(f"{location} must be a bool or a [bool, message] pair")


def _coerce_unique(value: object, location: str) -> bool | UniquePolicy:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return UniquePolicy(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(policy.value for policy in UniquePolicy)
    raise SchemaDefinitionError(f"{location} must be a bool or one of: {allowed}")


def _coerce_string_list(value: object, location: str) -> tuple[str, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise SchemaDefinitionError(f"{location} must be a list of strings")
    items = tuple(value)
    if not all(isinstance(item, str) for item in items):
        raise SchemaDefinitionError(f"{location} must be a list of strings")
    return items


def _as_mapping(value: object, location: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise SchemaDefinitionError(f"{location} must be a mapping, got {type(value).__name__}")
    for key in value:
        if not isinstance(key, str):
            raise SchemaDefinitionError(f"{location} keys must be strings, got {key!r}")
    return value


__all__ = ["load_schema_file", "schema_from_definition"]
