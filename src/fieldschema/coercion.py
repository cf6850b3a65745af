"""Type coercion and constraint validation for a single field value."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from fieldschema.descriptors import (
    ArrayField,
    FieldKind,
    GeneralField,
    NumberField,
    StringField,
    UniquePolicy,
)
from fieldschema.errors import FieldPath, PathPart, TypeValidationError, ValidationError
from fieldschema.settings import DEFAULT_SETTINGS, EngineSettings

_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")
_DECIMAL_TEXT = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def apply_field(
    descriptor: GeneralField,
    value: Any,
    path: Sequence[PathPart],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Any:
    """Run ``transform`` and then type coercion/validation for one raw value."""

    if descriptor.transform is not None:
        value = descriptor.transform(value)
    return coerce_value(descriptor, value, path, settings)


def coerce_value(
    descriptor: GeneralField,
    value: Any,
    path: Sequence[PathPart],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Any:
    """Coerce ``value`` to the descriptor's type and check every declared constraint."""

    location: FieldPath = tuple(path)
    kind = descriptor.kind
    if kind is FieldKind.STRING:
        assert isinstance(descriptor, StringField)
        return coerce_string(descriptor, value, location, settings)
    if kind is FieldKind.NUMBER:
        assert isinstance(descriptor, NumberField)
        return coerce_number(descriptor, value, location, settings)
    if kind is FieldKind.ARRAY:
        assert isinstance(descriptor, ArrayField)
        return coerce_array(descriptor, value, location, settings)
    if kind is FieldKind.SCHEMA:
        return coerce_nested(descriptor.type, value, location)
    raise TypeValidationError(
        location, f"unsupported field type {descriptor.type!r}", constraint="type"
    )


def coerce_string(
    descriptor: StringField,
    value: Any,
    path: FieldPath,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> str:
    text = _as_text(value, path, settings)
    if descriptor.string_transform is not None:
        text = descriptor.string_transform(text)
        if not isinstance(text, str):
            raise _type_error(path, "string_transform", "string_transform must return a string")

    violations: list[tuple[str, str]] = []
    max_length = descriptor.max_length
    if max_length is not None and len(text) > max_length:
        if descriptor.clip:
            text = text[:max_length]
        else:
            violations.append(("max_length", f"must be at most {max_length} characters"))
    min_length = descriptor.min_length
    if min_length is not None and len(text) < min_length:
        violations.append(("min_length", f"must be at least {min_length} characters"))
    if descriptor.regex is not None and re.search(descriptor.regex, text) is None:
        violations.append(("regex", f"must match pattern {_pattern_text(descriptor.regex)!r}"))
    if descriptor.enum is not None and text not in descriptor.enum:
        allowed = ", ".join(repr(item) for item in descriptor.enum)
        violations.append(("enum", f"must be one of: {allowed}"))

    _raise_violations(path, violations)
    return text


def coerce_number(
    descriptor: NumberField,
    value: Any,
    path: FieldPath,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> int | float:
    number = _as_number(value, path, settings)

    violations: list[tuple[str, str]] = []
    lower, upper = descriptor.min, descriptor.max
    if settings.inclusive_bounds:
        if lower is not None and number < lower:
            violations.append(("min", f"must be >= {lower}"))
        if upper is not None and number > upper:
            violations.append(("max", f"must be <= {upper}"))
    else:
        if lower is not None and not number > lower:
            violations.append(("min", f"must be > {lower}"))
        if upper is not None and not number < upper:
            violations.append(("max", f"must be < {upper}"))

    _raise_violations(path, violations)
    return number


def coerce_array(
    descriptor: ArrayField,
    value: Any,
    path: FieldPath,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[Any]:
    """Build a fresh list; elements are coerced, de-duplicated/rejected, then filtered."""

    element = descriptor.array_type
    policy = descriptor.unique_policy(settings.unique_policy)
    accepted: list[Any] = []
    for index, item in enumerate(_as_items(value)):
        item_path = (*path, index)
        if isinstance(element, GeneralField):
            item = apply_field(element, item, item_path, settings)
        if policy is not None and any(item == seen for seen in accepted):
            if policy is UniquePolicy.DEDUPE:
                continue
            raise _type_error(item_path, "unique", "duplicate element")
        if descriptor.filter is not None and not descriptor.filter(item):
            raise _type_error(item_path, "filter", "element rejected by filter")
        accepted.append(item)
    return accepted


def coerce_nested(schema: Any, value: Any, path: FieldPath) -> Any:
    """Construct a nested instance, re-rooting any failure under ``path``."""

    if schema.owns(value):
        return value.clone()
    if not isinstance(value, Mapping):
        raise _type_error(path, "type", f"expected object, got {type(value).__name__}")
    try:
        return schema.construct(value)
    except ValidationError as exc:
        raise exc.with_prefix(path) from exc


def _as_text(value: Any, path: FieldPath, settings: EngineSettings) -> str:
    if isinstance(value, str):
        return value
    if settings.coerce_scalars:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)) and _is_finite(value):
            return str(value)
    raise _type_error(path, "type", f"expected string, got {type(value).__name__}")


def _as_number(value: Any, path: FieldPath, settings: EngineSettings) -> int | float:
    if isinstance(value, bool):
        raise _type_error(path, "type", "expected number, got bool")
    number: int | float
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str) and settings.coerce_scalars:
        number = _parse_number(value.strip(), path)
    else:
        raise _type_error(path, "type", f"expected number, got {type(value).__name__}")
    if not _is_finite(number):
        raise _type_error(path, "type", "must be finite")
    return number


def _parse_number(text: str, path: FieldPath) -> int | float:
    # Plain decimal notation only; ``1_000``, ``0x10`` and ``inf`` are refused.
    if _INTEGER_TEXT.fullmatch(text):
        return int(text)
    if _DECIMAL_TEXT.fullmatch(text):
        return float(text)
    raise _type_error(path, "type", f"expected number, got {text!r}")


def _as_items(value: Any) -> list[Any]:
    if isinstance(value, (str, bytes, Mapping)):
        return [value]
    if isinstance(value, Iterable):
        return list(value)
    return [value]


def _is_finite(value: int | float) -> bool:
    return not isinstance(value, float) or math.isfinite(value)


def _pattern_text(regex: Any) -> str:
    return regex.pattern if isinstance(regex, re.Pattern) else str(regex)


def _raise_violations(path: FieldPath, violations: list[tuple[str, str]]) -> None:
    if not violations:
        return
    raise TypeValidationError(
        path,
        "; ".join(message for _, message in violations),
        constraint=violations[0][0],
        violations=[name for name, _ in violations],
        index=_index_of(path),
    )


def _type_error(path: FieldPath, constraint: str, message: str) -> TypeValidationError:
    return TypeValidationError(path, message, constraint=constraint, index=_index_of(path))


def _index_of(path: FieldPath) -> int | None:
    if path and isinstance(path[-1], int):
        return path[-1]
    return None


__all__ = [
    "apply_field",
    "coerce_array",
    "coerce_nested",
    "coerce_number",
    "coerce_string",
    "coerce_value",
]
