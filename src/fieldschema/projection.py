"""Projection of schema instances onto plain dicts and canonical JSON."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from fieldschema.engine import SchemaInstance


def to_object(
    instance: SchemaInstance,
    *,
    include_unset: bool = False,
    include_invisible: bool = False,
) -> dict[str, Any]:
    """Return every visible field, read through its getter, in declaration order.

    Unset fields are omitted unless ``include_unset`` is true, in which case
    they appear as ``None``. Nested instances are projected recursively.
    """

    output: dict[str, Any] = {}
    for field_name, descriptor in instance.schema.fields.items():
        if descriptor.invisible and not include_invisible:
            continue
        if not instance.is_set(field_name):
            if include_unset:
                output[field_name] = None
            continue
        output[field_name] = project_value(
            instance.get(field_name),
            include_unset=include_unset,
            include_invisible=include_invisible,
        )
    return output


def project_value(
    value: Any,
    *,
    include_unset: bool = False,
    include_invisible: bool = False,
) -> Any:
    if isinstance(value, SchemaInstance):
        return to_object(
            value, include_unset=include_unset, include_invisible=include_invisible
        )
    if isinstance(value, (list, tuple)):
        return [
            project_value(
                item, include_unset=include_unset, include_invisible=include_invisible
            )
            for item in value
        ]
    if isinstance(value, Mapping):
        return {
            key: project_value(
                item, include_unset=include_unset, include_invisible=include_invisible
            )
            for key, item in value.items()
        }
    return value


def to_json(instance: SchemaInstance) -> str:
    """Canonical JSON: sorted keys, compact separators, UTF-8 preserved."""

    return json.dumps(
        to_object(instance),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


__all__ = ["project_value", "to_json", "to_object"]
