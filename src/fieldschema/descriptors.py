"""
fieldschema — descriptor builders

File: src/fieldschema/descriptors.py
Last updated: 2026-10-19

Purpose
- Turn a type tag plus an options bag into an immutable field descriptor.

What is included in this file
- One frozen dataclass variant per field type (general, string, number, array, alias).
- ``General``/``String``/``Number``/``Array``/``Alias`` builders and the ``Types`` namespace.
- Normalization of shorthand tags (``str``, ``float``, ``list``, nested mappings).

Functional requirements
- Builders are pure data shaping: they never validate and never raise.
- Options outside the documented set for a type are dropped silently.
- Both snake_case and camelCase option spellings are accepted.

Non-functional requirements
- Descriptors are immutable so one schema can be shared by every instance.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, TypeAlias

if TYPE_CHECKING:
    from fieldschema.engine import Schema

logger = logging.getLogger(__name__)


class FieldKind(StrEnum):
    STRING = "string"
    NUMBER = "number"
    ARRAY = "array"
    SCHEMA = "schema"
    ALIAS = "alias"


class UniquePolicy(StrEnum):
    """What an array does with an element equal to an earlier one."""

    REJECT = "reject"
    DEDUPE = "dedupe"


RequiredFlag: TypeAlias = bool | Callable[..., bool]
RequiredOption: TypeAlias = RequiredFlag | tuple[RequiredFlag, str]

_GENERAL_KEYS: Final[tuple[str, ...]] = (
    "default",
    "transform",
    "getter",
    "required",
    "read_only",
    "invisible",
)
_STRING_KEYS: Final[tuple[str, ...]] = (
    "string_transform",
    "regex",
    "enum",
    "min_length",
    "max_length",
    "clip",
)
_NUMBER_KEYS: Final[tuple[str, ...]] = ("min", "max")
_ARRAY_KEYS: Final[tuple[str, ...]] = ("array_type", "unique", "filter")
_ALIAS_KEYS: Final[tuple[str, ...]] = ("index",)

_OPTION_ALIASES: Final[dict[str, str]] = {
    "readOnly": "read_only",
    "stringTransform": "string_transform",
    "minLength": "min_length",
    "maxLength": "max_length",
    "arrayType": "array_type",
}

_TYPE_SHORTHANDS: Final[dict[type, FieldKind]] = {
    str: FieldKind.STRING,
    int: FieldKind.NUMBER,
    float: FieldKind.NUMBER,
    list: FieldKind.ARRAY,
    tuple: FieldKind.ARRAY,
}


@dataclass(frozen=True, slots=True)
class GeneralField:
    """Options shared by every field type.

    ``type`` is a ``FieldKind`` or a nested ``Schema``. ``default`` may be a
    literal or a callable taking an optional ``InstanceView``. ``required``
    may be a bool, a callable, or a ``(flag, message)`` pair.
    """

    type: Any
    default: Any = None
    transform: Callable[[Any], Any] | None = None
    getter: Callable[..., Any] | None = None
    required: RequiredOption | None = False
    read_only: bool | None = False
    invisible: bool | None = False

    @property
    def kind(self) -> FieldKind | None:
        if isinstance(self.type, FieldKind):
            return self.type
        from fieldschema.engine import Schema

        if isinstance(self.type, Schema):
            return FieldKind.SCHEMA
        return None

    @property
    def required_parts(self) -> tuple[RequiredFlag, str | None]:
        """Split ``required`` into ``(flag_or_callable, custom_message)``."""

        raw = self.required
        if isinstance(raw, (tuple, list)):
            flag = raw[0] if raw else False
            message = raw[1] if len(raw) > 1 and isinstance(raw[1], str) else None
            return flag, message
        return bool(raw) if not callable(raw) else raw, None


@dataclass(frozen=True, slots=True)
class StringField(GeneralField):
    type: Any = FieldKind.STRING
    string_transform: Callable[[str], str] | None = None
    regex: Any = None
    enum: tuple[str, ...] | None = None
    min_length: int | None = None
    max_length: int | None = None
    clip: bool | None = False


@dataclass(frozen=True, slots=True)
class NumberField(GeneralField):
    type: Any = FieldKind.NUMBER
    min: float | None = None
    max: float | None = None


@dataclass(frozen=True, slots=True)
class ArrayField(GeneralField):
    type: Any = FieldKind.ARRAY
    array_type: Any = None
    unique: bool | UniquePolicy | None = False
    filter: Callable[[Any], Any] | None = None

    def unique_policy(self, fallback: UniquePolicy) -> UniquePolicy | None:
        """Resolve ``unique`` to a policy; ``True`` defers to ``fallback``."""

        if isinstance(self.unique, UniquePolicy):
            return self.unique
        if isinstance(self.unique, str):
            return UniquePolicy(self.unique)
        return fallback if self.unique else None


@dataclass(frozen=True, slots=True)
class AliasField(GeneralField):
    """Redirects reads and writes to the field named by ``index``."""

    type: Any = FieldKind.ALIAS
    index: str | None = None
    invisible: bool | None = True


FieldDescriptor: TypeAlias = GeneralField

_VARIANTS: Final[dict[FieldKind, type[GeneralField]]] = {
    FieldKind.STRING: StringField,
    FieldKind.NUMBER: NumberField,
    FieldKind.ARRAY: ArrayField,
    FieldKind.ALIAS: AliasField,
}


def General(
    type: Any,
    options: Mapping[str, Any] | None = None,
    extra: Mapping[str, Any] | None = None,
) -> GeneralField:
    """Compose a descriptor from a type tag, general options and a type-specific bag.

    Keys of ``extra`` are kept even when their value is ``None``; keys that
    the resolved variant does not know are dropped.
    """

    resolved = resolve_type(type)
    variant = GeneralField
    if isinstance(resolved, FieldKind):
        variant = _VARIANTS.get(resolved, GeneralField)
    general = _pick(_normalize_keys(options), _GENERAL_KEYS)
    combined = {**general, **_normalize_keys(extra)}
    allowed = {item.name for item in fields(variant)} - {"type"}
    payload = {key: _freeze(key, value) for key, value in combined.items() if key in allowed}
    dropped = sorted(key for key in combined if key not in allowed)
    if dropped:
        logger.debug(
            "dropping options not supported by %s",
            variant.__name__,
            extra={"options": dropped},
        )
    return variant(type=resolved, **payload)


def String(options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> StringField:
    opt = _merge_options(options, kwargs)
    descriptor = General(FieldKind.STRING, opt, _pick(opt, _STRING_KEYS, keep_missing=True))
    assert isinstance(descriptor, StringField)
    return descriptor


def Number(options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> NumberField:
    opt = _merge_options(options, kwargs)
    descriptor = General(FieldKind.NUMBER, opt, _pick(opt, _NUMBER_KEYS, keep_missing=True))
    assert isinstance(descriptor, NumberField)
    return descriptor


def Array(options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> ArrayField:
    opt = _merge_options(options, kwargs)
    extra = _pick(opt, _ARRAY_KEYS, keep_missing=True)
    if extra["unique"] is None:
        extra["unique"] = False
    descriptor = General(FieldKind.ARRAY, opt, extra)
    assert isinstance(descriptor, ArrayField)
    return descriptor


def Alias(options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> AliasField:
    opt = _merge_options(options, kwargs)
    extra = _pick(opt, _ALIAS_KEYS, keep_missing=True)
    extra["invisible"] = opt.get("invisible", True)
    descriptor = General(FieldKind.ALIAS, opt, extra)
    assert isinstance(descriptor, AliasField)
    return descriptor


class Types:
    """Namespace grouping the builders, e.g. ``Types.String(max_length=2)``."""

    String = staticmethod(String)
    Number = staticmethod(Number)
    Array = staticmethod(Array)
    General = staticmethod(General)
    Alias = staticmethod(Alias)


def resolve_type(tag: Any) -> Any:
    """Map shorthand tags onto ``FieldKind``; unknown tags pass through unchanged."""

    if isinstance(tag, FieldKind):
        return tag
    if isinstance(tag, type) and tag in _TYPE_SHORTHANDS:
        return _TYPE_SHORTHANDS[tag]
    if isinstance(tag, str):
        try:
            return FieldKind(tag.strip().lower())
        except ValueError:
            return tag
    if isinstance(tag, Mapping):
        from fieldschema.engine import Schema

        return Schema(tag)
    return tag


def normalize_descriptor(value: Any) -> GeneralField:
    """Accept a descriptor, a bare tag, a nested schema, or an options mapping."""

    if isinstance(value, GeneralField):
        return value
    if isinstance(value, Mapping) and "type" in value:
        options = dict(value)
        kind = resolve_type(options.pop("type"))
        builder = _BUILDERS.get(kind) if isinstance(kind, FieldKind) else None
        if builder is not None:
            return builder(options)
        return General(kind, options)
    kind = resolve_type(value)
    builder = _BUILDERS.get(kind) if isinstance(kind, FieldKind) else None
    if builder is not None:
        return builder()
    return General(kind)


_BUILDERS: Final[dict[FieldKind, Callable[..., GeneralField]]] = {
    FieldKind.STRING: String,
    FieldKind.NUMBER: Number,
    FieldKind.ARRAY: Array,
    FieldKind.ALIAS: Alias,
}


def _merge_options(options: Mapping[str, Any] | None, kwargs: Mapping[str, Any]) -> dict[str, Any]:
    merged = _normalize_keys(options)
    merged.update(_normalize_keys(kwargs))
    return merged


def _normalize_keys(options: Mapping[str, Any] | None) -> dict[str, Any]:
    if not options:
        return {}
    return {_OPTION_ALIASES.get(key, key): value for key, value in options.items()}


def _pick(
    options: Mapping[str, Any],
    keys: tuple[str, ...],
    *,
    keep_missing: bool = False,
) -> dict[str, Any]:
    if keep_missing:
        return {key: options.get(key) for key in keys}
    return {key: options[key] for key in keys if key in options}


def _freeze(key: str, value: Any) -> Any:
    # A bare string enum is one allowed value, not a set of characters.
    if key == "enum" and isinstance(value, str):
        return (value,)
    if isinstance(value, (list, set, frozenset)):
        return tuple(value)
    return value


__all__ = [
    "Alias",
    "AliasField",
    "Array",
    "ArrayField",
    "FieldDescriptor",
    "FieldKind",
    "General",
    "GeneralField",
    "Number",
    "NumberField",
    "RequiredOption",
    "String",
    "StringField",
    "Types",
    "UniquePolicy",
    "normalize_descriptor",
    "resolve_type",
]
