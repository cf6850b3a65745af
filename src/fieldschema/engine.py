"""
fieldschema — schema engine

File: src/fieldschema/engine.py
Last updated: 2026-10-19

Purpose
- Turn a mapping of field descriptors into a reusable ``Schema`` and build
  validated ``SchemaInstance`` objects from raw input.

What is included in this file
- Schema definition checks (type tags, alias targets, array element types).
- Construction: default resolution, required checks, transform + coercion, fail-fast.
- Field access: getters on read; read-only, transform + coercion on write.
- ``InstanceView``: the read-only view passed to default/required/getter callables.

Functional requirements
- No partial instance is ever returned from a failed construction.
- A failed write leaves the previously stored value untouched.

Non-functional requirements
- Schemas are immutable and can be shared across threads; instances are not
  synchronized and have a single owner.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import time
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from fieldschema.coercion import apply_field
from fieldschema.descriptors import (
    AliasField,
    ArrayField,
    FieldKind,
    GeneralField,
    normalize_descriptor,
)
from fieldschema.errors import (
    ReadOnlyFieldError,
    RequiredFieldError,
    SchemaDefinitionError,
    TypeValidationError,
    UnknownFieldError,
    ValidationError,
)
from fieldschema.observability.logging import correlation_scope
from fieldschema.observability.metrics import MetricsRegistry
from fieldschema.settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)

_ANONYMOUS_SCHEMA = "anonymous"


class Schema:
    """Immutable, ordered mapping from field name to field descriptor.

    ``fields`` values may be descriptors, shorthand tags (``str``, ``float``,
    ``list``), nested ``Schema`` objects, or option mappings with a ``type``
    key. ``config`` is an engine config mapping (see ``fieldschema.config``);
    ``settings`` wins over it when both are given.
    """

    __slots__ = ("_aliases", "_fields", "_metrics", "_name", "_settings")

    def __init__(
        self,
        fields: Mapping[str, Any],
        *,
        name: str | None = None,
        settings: EngineSettings | None = None,
        config: Mapping[str, object] | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        if not isinstance(fields, Mapping):
            raise SchemaDefinitionError(
                f"schema fields must be a mapping, got {type(fields).__name__}"
            )
        if settings is None:
            settings = DEFAULT_SETTINGS if config is None else EngineSettings.from_config(config)
        self._name = name or _ANONYMOUS_SCHEMA
        self._settings = settings
        self._metrics = metrics

        normalized: dict[str, GeneralField] = {}
        for field_name, raw in fields.items():
            _check_field_name(field_name)
            normalized[field_name] = _normalize_field(field_name, raw)
        self._fields: Mapping[str, GeneralField] = MappingProxyType(normalized)
        self._aliases = _index_aliases(self._name, normalized)

    @property
    def name(self) -> str:
        return self._name

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def metrics(self) -> MetricsRegistry | None:
        return self._metrics

    @property
    def fields(self) -> Mapping[str, GeneralField]:
        return self._fields

    def __getitem__(self, field_name: str) -> GeneralField:
        return self._fields[field_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._fields

    def __repr__(self) -> str:
        return f"Schema(name={self._name!r}, fields={list(self._fields)!r})"

    # Schemas are immutable; copies are the same object.
    def __copy__(self) -> Schema:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> Schema:
        return self

    def aliases_for(self, field_name: str) -> tuple[str, ...]:
        """Alias fields that redirect to ``field_name``, in declaration order."""

        return self._aliases.get(field_name, ())

    def owns(self, value: object) -> bool:
        return isinstance(value, SchemaInstance) and value.schema is self

    def construct(self, data: Mapping[str, Any] | SchemaInstance | None = None) -> SchemaInstance:
        """Build a validated instance; raises ``ValidationError`` on the first bad field."""

        instance = SchemaInstance.__new__(SchemaInstance)
        object.__setattr__(instance, "_schema", self)
        object.__setattr__(instance, "_values", {})
        started = time.perf_counter()
        with correlation_scope(schema=self._name):
            try:
                instance._populate(data)
            except ValidationError as exc:
                self._record_failure(exc)
                raise
        logger.debug("instance constructed", extra={"set_fields": len(instance._values)})
        if self._metrics is not None:
            self._metrics.record_construction(self._name, time.perf_counter() - started)
        return instance

    __call__ = construct

    def validate(self, data: Mapping[str, Any] | None = None) -> ValidationResult:
        """Non-raising counterpart of ``construct``."""

        try:
            instance = self.construct(data)
        except ValidationError as exc:
            return ValidationResult(instance=None, error=exc)
        return ValidationResult(instance=instance, error=None)

    def extend(self, fields: Mapping[str, Any], *, name: str | None = None) -> Schema:
        """Return a new schema with ``fields`` added (or replacing existing ones)."""

        merged: dict[str, Any] = dict(self._fields)
        merged.update(fields)
        return Schema(
            merged,
            name=name or self._name,
            settings=self._settings,
            metrics=self._metrics,
        )

    def _record_failure(self, exc: ValidationError) -> None:
        logger.debug(
            "instance construction failed",
            extra={"path": exc.path_text, "error_kind": exc.kind, "reason": exc.message},
        )
        if self._metrics is not None:
            self._metrics.record_failure(self._name, exc.kind)

    def _record_write(self, field_name: str) -> None:
        if self._metrics is not None:
            self._metrics.record_write(self._name, field_name)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of ``Schema.validate``; exactly one of ``instance``/``error`` is set."""

    instance: SchemaInstance | None
    error: ValidationError | None

    @property
    def is_valid(self) -> bool:
        return self.error is None and self.instance is not None


class SchemaInstance:
    """A validated value bag whose field reads and writes go through the schema.

    Fields are reachable through ``get``/``set``, item access, and attribute
    access. Attribute access only reaches fields whose names do not collide
    with methods of this class; item access always works.
    """

    __slots__ = ("_schema", "_values")

    _schema: Schema
    _values: dict[str, Any]

    @property
    def schema(self) -> Schema:
        return self._schema

    def get(self, field_name: str) -> Any:
        descriptor = self._descriptor(field_name)
        if isinstance(descriptor, AliasField):
            value = self.get(_alias_target(descriptor))
        elif field_name in self._values:
            value = self._values[field_name]
        else:
            return None
        if descriptor.getter is not None and value is not None:
            return _call_with_view(descriptor.getter, value, view=InstanceView(self))
        return value

    def set(self, field_name: str, value: Any) -> None:
        """Write one field; ``None`` unsets it. All-or-nothing per call."""

        descriptor = self._descriptor(field_name)
        if descriptor.read_only:
            raise ReadOnlyFieldError((field_name,))
        if isinstance(descriptor, AliasField):
            if descriptor.transform is not None and value is not None:
                value = descriptor.transform(value)
            self.set(_alias_target(descriptor), value)
            return
        if value is None:
            self._clear(field_name, descriptor)
            return
        with correlation_scope(schema=self._schema.name, field=field_name):
            stored = apply_field(descriptor, value, (field_name,), self._schema.settings)
        self._values[field_name] = stored
        self._schema._record_write(field_name)

    def unset(self, field_name: str) -> None:
        self.set(field_name, None)

    def is_set(self, field_name: str) -> bool:
        descriptor = self._descriptor(field_name)
        if isinstance(descriptor, AliasField):
            return self.is_set(_alias_target(descriptor))
        return field_name in self._values

    def to_object(
        self, *, include_unset: bool = False, include_invisible: bool = False
    ) -> dict[str, Any]:
        from fieldschema.projection import to_object

        return to_object(
            self, include_unset=include_unset, include_invisible=include_invisible
        )

    def to_json(self) -> str:
        from fieldschema.projection import to_json

        return to_json(self)

    def clone(self) -> SchemaInstance:
        """Copy stored values without re-running transforms or validation."""

        copy = SchemaInstance.__new__(SchemaInstance)
        object.__setattr__(copy, "_schema", self._schema)
        object.__setattr__(
            copy, "_values", {key: _clone_value(value) for key, value in self._values.items()}
        )
        return copy

    def stored_values(self) -> dict[str, Any]:
        """Raw stored values (no getters), for declared fields that are set."""

        return dict(self._values)

    def __copy__(self) -> SchemaInstance:
        return self.clone()

    def __deepcopy__(self, memo: dict[int, Any]) -> SchemaInstance:
        return self.clone()

    def __getitem__(self, field_name: str) -> Any:
        if field_name not in self._schema:
            raise KeyError(field_name)
        return self.get(field_name)

    def __setitem__(self, field_name: str, value: Any) -> None:
        if field_name not in self._schema:
            raise KeyError(field_name)
        self.set(field_name, value)

    def __delitem__(self, field_name: str) -> None:
        if field_name not in self._schema:
            raise KeyError(field_name)
        self.unset(field_name)

    def __contains__(self, field_name: object) -> bool:
        return isinstance(field_name, str) and field_name in self._schema

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        schema = object.__getattribute__(self, "_schema")
        if name in schema:
            return self.get(name)
        raise AttributeError(f"{schema.name!r} instance has no field {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self._schema:
            self.set(name, value)
            return
        raise AttributeError(f"{self._schema.name!r} instance has no field {name!r}")

    def __delattr__(self, name: str) -> None:
        if name in self._schema:
            self.unset(name)
            return
        raise AttributeError(f"{self._schema.name!r} instance has no field {name!r}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SchemaInstance):
            return NotImplemented
        return other._schema is self._schema and other._values == self._values

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<SchemaInstance {self._schema.name} {self.to_object()!r}>"

    def _descriptor(self, field_name: str) -> GeneralField:
        try:
            return self._schema[field_name]
        except KeyError:
            raise KeyError(f"{self._schema.name!r} has no field {field_name!r}") from None

    def _populate(self, data: Mapping[str, Any] | SchemaInstance | None) -> None:
        schema = self._schema
        payload = _as_payload(data)
        if schema.settings.reject_unknown_keys:
            for key in payload:
                if key not in schema:
                    raise UnknownFieldError((key,))

        view = InstanceView(self)
        for field_name, descriptor in schema.fields.items():
            if isinstance(descriptor, AliasField):
                continue
            raw = self._resolve_raw(field_name, descriptor, payload, view)
            if raw is None:
                _check_required(field_name, descriptor, view)
                continue
            self._values[field_name] = apply_field(
                descriptor, raw, (field_name,), schema.settings
            )

    def _resolve_raw(
        self,
        field_name: str,
        descriptor: GeneralField,
        payload: Mapping[str, Any],
        view: InstanceView,
    ) -> Any:
        value = payload.get(field_name)
        if value is not None:
            return value
        for alias_name in self._schema.aliases_for(field_name):
            aliased = payload.get(alias_name)
            if aliased is None:
                continue
            alias = self._schema[alias_name]
            if alias.transform is not None:
                aliased = alias.transform(aliased)
            return aliased
        default = descriptor.default
        if callable(default):
            return _call_with_view(default, view=view)
        return default

    def _clear(self, field_name: str, descriptor: GeneralField) -> None:
        _check_required(field_name, descriptor, InstanceView(self))
        self._values.pop(field_name, None)
        self._schema._record_write(field_name)


class InstanceView:
    """Read-only window onto an instance, handed to default/required/getter callables.

    Reads apply getters; unset or not-yet-resolved fields read as ``None``.
    """

    __slots__ = ("_instance",)

    def __init__(self, instance: SchemaInstance) -> None:
        object.__setattr__(self, "_instance", instance)

    def get(self, field_name: str, default: Any = None) -> Any:
        if field_name not in self._instance.schema:
            return default
        value = self._instance.get(field_name)
        return default if value is None else value

    def is_set(self, field_name: str) -> bool:
        return field_name in self._instance.schema and self._instance.is_set(field_name)

    def __getitem__(self, field_name: str) -> Any:
        if field_name not in self._instance.schema:
            raise KeyError(field_name)
        return self._instance.get(field_name)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        instance = object.__getattribute__(self, "_instance")
        if name in instance.schema:
            return instance.get(name)
        raise AttributeError(f"{instance.schema.name!r} has no field {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("instance view is read-only")

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._instance.schema


def build(
    schema: Schema | Mapping[str, Any], data: Mapping[str, Any] | None = None
) -> SchemaInstance:
    """One-shot helper: accept a ``Schema`` or a plain mapping of descriptors."""

    resolved = schema if isinstance(schema, Schema) else Schema(schema)
    return resolved.construct(data)


def _check_field_name(field_name: object) -> None:
    if not isinstance(field_name, str) or not field_name.strip():
        raise SchemaDefinitionError(f"field names must be non-empty strings, got {field_name!r}")
    if field_name.startswith("_"):
        raise SchemaDefinitionError(f"{field_name}: field names must not start with '_'")


def _normalize_field(path: str, raw: Any) -> GeneralField:
    descriptor = normalize_descriptor(raw)
    kind = descriptor.kind
    if kind is None:
        raise SchemaDefinitionError(f"{path}: unsupported field type {descriptor.type!r}")
    if descriptor.type is FieldKind.SCHEMA:
        raise SchemaDefinitionError(f"{path}: schema fields must carry a nested Schema")
    if isinstance(descriptor, ArrayField) and descriptor.array_type is not None:
        element = _normalize_field(f"{path}[]", descriptor.array_type)
        if element.kind is FieldKind.ALIAS:
            raise SchemaDefinitionError(f"{path}: array elements cannot be aliases")
        descriptor = dataclasses.replace(descriptor, array_type=element)
    return descriptor


def _index_aliases(
    schema_name: str, fields: Mapping[str, GeneralField]
) -> Mapping[str, tuple[str, ...]]:
    index: dict[str, tuple[str, ...]] = {}
    for field_name, descriptor in fields.items():
        if not isinstance(descriptor, AliasField):
            continue
        target = descriptor.index
        if not isinstance(target, str) or target not in fields:
            raise SchemaDefinitionError(
                f"{schema_name}.{field_name}: alias target {target!r} is not a declared field"
            )
        if isinstance(fields[target], AliasField):
            raise SchemaDefinitionError(
                f"{schema_name}.{field_name}: alias target {target!r} is itself an alias"
            )
        index[target] = (*index.get(target, ()), field_name)
    return MappingProxyType(index)


def _alias_target(descriptor: AliasField) -> str:
    assert descriptor.index is not None
    return descriptor.index


def _check_required(field_name: str, descriptor: GeneralField, view: InstanceView) -> None:
    flag, message = descriptor.required_parts
    required = _call_with_view(flag, view=view) if callable(flag) else flag
    if required:
        raise RequiredFieldError((field_name,), message)


def _as_payload(data: Mapping[str, Any] | SchemaInstance | None) -> Mapping[str, Any]:
    if data is None:
        return {}
    if isinstance(data, SchemaInstance):
        return data.stored_values()
    if not isinstance(data, Mapping):
        raise TypeValidationError(
            (), f"expected object, got {type(data).__name__}", constraint="type"
        )
    return data


def _call_with_view(func: Callable[..., Any], *args: Any, view: InstanceView) -> Any:
    """Call ``func(*args, view)`` when its next positional slot is required."""

    if _accepts_extra_positional(func, len(args)):
        return func(*args, view)
    return func(*args)


def _accepts_extra_positional(func: Callable[..., Any], given: int) -> bool:
    # Classes (``list``, ``dict``) are plain factories and never take the view.
    if inspect.isclass(func):
        return False
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return False
    positional: list[inspect.Parameter] = []
    for parameter in signature.parameters.values():
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            return len(positional) <= given
        if parameter.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            positional.append(parameter)
    if len(positional) <= given:
        return False
    # An optional slot (``round(number, ndigits=None)``) is not a view slot.
    return positional[given].default is inspect.Parameter.empty


def _clone_value(value: Any) -> Any:
    if isinstance(value, SchemaInstance):
        return value.clone()
    if isinstance(value, list):
        return [_clone_value(item) for item in value]
    return value


__all__ = [
    "InstanceView",
    "Schema",
    "SchemaInstance",
    "ValidationResult",
    "build",
]
