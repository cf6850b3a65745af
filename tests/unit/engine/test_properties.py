"""
fieldschema — property tests for engine invariants

File: tests/unit/engine/test_properties.py
Last updated: 2026-10-19

Purpose
- Check clip length, bound handling, uniqueness and projection idempotence over
  generated inputs.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from fieldschema import (
    Array,
    Number,
    ReadOnlyFieldError,
    Schema,
    String,
    TypeValidationError,
    UniquePolicy,
)
from fieldschema.settings import EngineSettings

_TEXT = st.text(max_size=40)
_BOUND = st.integers(min_value=-1_000, max_value=1_000)


@given(text=_TEXT, limit=st.integers(min_value=0, max_value=20))
@settings(max_examples=75, deadline=None)
def test_property_clip_never_exceeds_limit(text: str, limit: int) -> None:
    schema = Schema({"value": String(max_length=limit, clip=True)})

    stored = schema({"value": text}).value

    assert stored == text[:limit]
    assert len(stored) == min(len(text), limit)


@given(text=_TEXT, limit=st.integers(min_value=0, max_value=20))
@settings(max_examples=75, deadline=None)
def test_property_max_length_without_clip(text: str, limit: int) -> None:
    schema = Schema({"value": String(max_length=limit)})

    if len(text) > limit:
        with pytest.raises(TypeValidationError):
            schema({"value": text})
    else:
        assert schema({"value": text}).value == text


@given(lower=_BOUND, width=st.integers(min_value=0, max_value=50), value=_BOUND)
@settings(max_examples=100, deadline=None)
def test_property_bounds_exclusive_and_inclusive(lower: int, width: int, value: int) -> None:
    upper = lower + width
    fields = {"n": Number(min=lower, max=upper)}
    exclusive = Schema(fields)
    inclusive = Schema(fields, settings=EngineSettings(inclusive_bounds=True))

    assert exclusive.validate({"n": value}).is_valid == (lower < value < upper)
    assert inclusive.validate({"n": value}).is_valid == (lower <= value <= upper)


@given(values=st.lists(st.integers(min_value=-5, max_value=5), max_size=12))
@settings(max_examples=75, deadline=None)
def test_property_unique_policies(values: list[int]) -> None:
    dedupe = Schema({"items": Array(unique=UniquePolicy.DEDUPE)})
    reject = Schema({"items": Array(unique=True)})

    assert dedupe({"items": values}).items == list(dict.fromkeys(values))
    assert reject.validate({"items": values}).is_valid == (len(set(values)) == len(values))


@given(
    name=_TEXT,
    age=st.one_of(st.none(), st.integers(min_value=1, max_value=120)),
    tags=st.lists(st.text(min_size=1, max_size=5), max_size=5),
)
@settings(max_examples=75, deadline=None)
def test_property_projection_is_idempotent(
    name: str, age: int | None, tags: list[str]
) -> None:
    schema = Schema(
        {
            "name": String(max_length=8, clip=True),
            "age": Number(min=0),
            "tags": Array(unique="dedupe"),
            "address": Schema({"city": String(default="Oslo")}),
        }
    )

    first = schema({"name": name, "age": age, "tags": tags, "address": {}}).to_object()
    second = schema(first).to_object()

    assert second == first


@given(
    title=_TEXT,
    cities=st.lists(st.text(min_size=1, max_size=8), max_size=4),
)
@settings(max_examples=75, deadline=None)
def test_property_repeated_projection_of_one_instance(title: str, cities: list[str]) -> None:
    address = Schema({"city": String(getter=str.upper)}, name="address")
    schema = Schema(
        {
            "title": String(getter=lambda value, view: f"{value}:{len(view.stops or [])}"),
            "stops": Array(array_type=address),
            "home": address,
        }
    )
    instance = schema(
        {"title": title, "stops": [{"city": city} for city in cities], "home": {"city": "oslo"}}
    )

    first = instance.to_object()

    assert instance.to_object() == first
    assert instance.to_object(include_unset=True) == instance.to_object(include_unset=True)
    assert first["home"] == {"city": "OSLO"}
    assert first["stops"] == [{"city": city.upper()} for city in cities]


@given(original=_TEXT, replacement=_TEXT)
@settings(max_examples=50, deadline=None)
def test_property_read_only_value_never_changes(original: str, replacement: str) -> None:
    schema = Schema({"id": String(read_only=True)})
    instance = schema({"id": original})

    with pytest.raises(ReadOnlyFieldError):
        instance.id = replacement

    assert instance.id == original
