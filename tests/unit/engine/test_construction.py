"""
fieldschema — unit tests for instance construction

File: tests/unit/engine/test_construction.py
Last updated: 2026-10-19

Purpose
- Validate default resolution, required checks, fail-fast behavior, aliases and
  schema definition errors.

What this test file should cover
- Enum rejection, literal and computed defaults, conditional required-ness.
- Custom required messages.
- Alias keys feeding their target during construction.
- Unknown-key rejection when configured.
- Metrics counters and debug logging emitted by construction.
"""

from __future__ import annotations

import logging

import pytest

from fieldschema import (
    Alias,
    Array,
    Number,
    RequiredFieldError,
    Schema,
    SchemaDefinitionError,
    SchemaInstance,
    String,
    TypeValidationError,
    UnknownFieldError,
    ValidationError,
    build,
)
from fieldschema.observability.metrics import MetricsRegistry
from fieldschema.settings import EngineSettings


def test_enum_violation_raises_type_error_on_field() -> None:
    person = Schema({"gender": String(enum=["male", "female"])})

    with pytest.raises(TypeValidationError) as excinfo:
        person({"gender": "other"})

    assert excinfo.value.field == "gender"
    assert excinfo.value.path == ("gender",)
    assert excinfo.value.constraint == "enum"
    assert person({"gender": "female"}).gender == "female"


def test_literal_default_applies_when_input_missing() -> None:
    address = Schema({"country": String(default="USA")})

    assert address({}).country == "USA"
    assert address().country == "USA"
    assert address({"country": "Canada"}).country == "Canada"
    assert address({"country": None}).country == "USA"


def test_conditional_required_uses_sibling_fields() -> None:
    worker = Schema(
        {
            "age": Number(required=True),
            "employer": String(required=lambda view: view.age > 18),
        }
    )

    with pytest.raises(RequiredFieldError) as excinfo:
        worker({"age": 25})
    assert excinfo.value.field == "employer"

    minor = worker({"age": 15})
    assert minor.age == 15
    assert minor.employer is None
    assert not minor.is_set("employer")

    adult = worker({"age": 25, "employer": "Acme"})
    assert adult.employer == "Acme"


def test_required_field_without_value_fails() -> None:
    schema = Schema({"age": Number(required=True)})

    with pytest.raises(RequiredFieldError) as excinfo:
        schema({})

    assert str(excinfo.value) == "age: missing required field"
    assert excinfo.value.custom_message is None


def test_required_tuple_carries_custom_message() -> None:
    schema = Schema({"email": String(required=(True, "an email address is needed"))})

    with pytest.raises(RequiredFieldError) as excinfo:
        schema({})

    assert excinfo.value.message == "an email address is needed"
    assert excinfo.value.custom_message == "an email address is needed"
    assert str(excinfo.value) == "email: an email address is needed"


def test_required_false_callable_allows_missing_value() -> None:
    schema = Schema({"nickname": String(required=(lambda: False, "unused"))})

    assert not schema({}).is_set("nickname")


def test_callable_default_sees_earlier_fields() -> None:
    schema = Schema(
        {
            "base": Number(default=2),
            "double": Number(default=lambda view: view.base * 2),
            "label": String(default=lambda: "generated"),
        }
    )

    instance = schema({})

    assert instance.double == 4
    assert instance.label == "generated"
    assert schema({"base": 5}).double == 10


def test_default_passes_through_transform_and_coercion() -> None:
    schema = Schema({"code": String(default=7, transform=lambda value: value * 2)})

    assert schema({}).code == "14"


def test_read_only_does_not_block_initial_value() -> None:
    schema = Schema({"id": String(read_only=True, default="generated")})

    assert schema({}).id == "generated"
    assert schema({"id": "given"}).id == "given"


def test_construction_is_fail_fast_in_declaration_order() -> None:
    calls: list[str] = []

    def later_default() -> str:
        calls.append("later")
        return "value"

    schema = Schema(
        {
            "first": Number(max=1),
            "second": Number(max=1),
            "later": String(default=later_default),
        }
    )

    with pytest.raises(TypeValidationError) as excinfo:
        schema({"first": 5, "second": 5})

    assert excinfo.value.field == "first"
    assert calls == []


def test_non_mapping_input_is_rejected_at_root() -> None:
    schema = Schema({"name": String()})

    with pytest.raises(TypeValidationError) as excinfo:
        schema.construct(["not", "a", "mapping"])  # type: ignore[arg-type]

    assert excinfo.value.path == ()
    assert str(excinfo.value).startswith("<root>: expected object")


def test_unknown_keys_are_ignored_by_default_and_rejectable() -> None:
    fields = {"name": String()}
    lenient = Schema(fields)
    strict = Schema(fields, config={"engine": {"unknown_keys": "reject"}})

    assert lenient({"name": "a", "extra": 1}).to_object() == {"name": "a"}
    with pytest.raises(UnknownFieldError) as excinfo:
        strict({"name": "a", "extra": 1})
    assert excinfo.value.path == ("extra",)


def test_alias_key_feeds_target_field() -> None:
    schema = Schema(
        {
            "name": String(required=True),
            "full_name": Alias(index="name", transform=lambda value: value.strip()),
        }
    )

    via_alias = schema({"full_name": "  Ada Lovelace "})
    assert via_alias.name == "Ada Lovelace"
    assert via_alias.full_name == "Ada Lovelace"

    both = schema({"name": "Ada", "full_name": "ignored"})
    assert both.name == "Ada"


def test_alias_must_point_at_declared_field() -> None:
    with pytest.raises(SchemaDefinitionError):
        Schema({"nick": Alias(index="missing")})

    with pytest.raises(SchemaDefinitionError):
        Schema(
            {
                "name": String(),
                "nick": Alias(index="name"),
                "handle": Alias(index="nick"),
            }
        )


@pytest.mark.parametrize(
    "fields",
    [
        {"": String()},
        {"_private": String()},
        {"weird": "bogus"},
        {"nested": "schema"},
        {"items": Array(array_type=Alias(index="x"))},
    ],
)
def test_invalid_definitions_raise(fields: dict[str, object]) -> None:
    with pytest.raises(SchemaDefinitionError):
        Schema(fields)


def test_shorthand_fields_and_nested_mappings() -> None:
    schema = Schema({"name": str, "age": float, "tags": list, "address": {"city": str}})

    instance = schema({"name": "a", "age": "3", "tags": ("x", "y"), "address": {"city": "Oslo"}})

    assert instance.age == 3
    assert instance.tags == ["x", "y"]
    assert isinstance(instance.address, SchemaInstance)
    assert instance.address.city == "Oslo"


def test_validate_returns_result_instead_of_raising() -> None:
    schema = Schema({"age": Number(min=0)})

    ok = schema.validate({"age": 3})
    bad = schema.validate({"age": -3})

    assert ok.is_valid
    assert ok.instance is not None and ok.instance.age == 3
    assert not bad.is_valid
    assert bad.instance is None
    assert isinstance(bad.error, ValidationError)
    assert bad.error.field == "age"


def test_extend_adds_and_replaces_fields() -> None:
    base = Schema({"name": String(), "age": Number()}, name="base")
    extended = base.extend({"age": Number(min=0), "email": String()}, name="extended")

    assert list(extended) == ["name", "age", "email"]
    assert extended.name == "extended"
    assert "email" not in base
    with pytest.raises(TypeValidationError):
        extended({"age": -1})


def test_build_accepts_plain_mapping_of_descriptors() -> None:
    instance = build({"name": String(max_length=3, clip=True)}, {"name": "Bartholomew"})

    assert instance.name == "Bar"


def test_constructing_from_another_instance_copies_stored_values() -> None:
    source_schema = Schema({"name": String(), "age": Number()})
    target_schema = Schema({"name": String(max_length=10)})

    source = source_schema({"name": "Grace", "age": 85})
    copied = target_schema(source)

    assert copied.to_object() == {"name": "Grace"}


def test_config_switches_engine_settings() -> None:
    schema = Schema({"n": Number(min=0)}, config={"engine": {"number_bounds": "inclusive"}})

    assert schema.settings == EngineSettings(inclusive_bounds=True)
    assert schema({"n": 0}).n == 0


def test_metrics_count_constructions_failures_and_writes() -> None:
    registry = MetricsRegistry()
    schema = Schema({"age": Number(min=0)}, name="person", metrics=registry)

    instance = schema({"age": 3})
    instance.age = 4
    with pytest.raises(TypeValidationError):
        schema({"age": -1})

    assert registry.constructed("person") == 1
    assert registry.writes("person", "age") == 1
    assert registry.failures("person", "type") == 1
    timing = registry.timing("person")
    assert timing is not None
    assert timing.count == 1


def test_construction_logs_debug_events(caplog: pytest.LogCaptureFixture) -> None:
    schema = Schema({"age": Number(min=0)}, name="person")
    caplog.set_level(logging.DEBUG, logger="fieldschema.engine")

    schema({"age": 1})
    with pytest.raises(TypeValidationError):
        schema({"age": -1})

    messages = [record.getMessage() for record in caplog.records]
    assert "instance constructed" in messages
    assert "instance construction failed" in messages
    failure = next(r for r in caplog.records if r.getMessage() == "instance construction failed")
    assert failure.__dict__["path"] == "age"
    assert failure.__dict__["error_kind"] == "type"
