"""
fieldschema — end-to-end scenario

File: tests/integration/test_end_to_end.py
Last updated: 2026-10-19

Purpose
- Exercise config loading, logging setup, definition files, construction,
  mutation and projection together, the way an application wires them.
"""

from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from fieldschema import (
    Array,
    EngineSettings,
    Number,
    ReadOnlyFieldError,
    Schema,
    String,
    TypeValidationError,
    UnknownFieldError,
    load_schema_file,
)
from fieldschema.config import load_config
from fieldschema.observability import MetricsRegistry, setup_logging

pytestmark = pytest.mark.integration

_ORDER_YAML = """
name: order
fields:
  id: {type: string, required: true, readOnly: true, regex: "^ord-[0-9]+$"}
  quantity: {type: number, min: 0, max: 100, required: true}
  sku: {type: string, maxLength: 6, clip: true}
  notes: {type: array, arrayType: string, unique: true}
  shipping:
    type: schema
    fields:
      country: {type: string, default: USA}
      zip: {type: string, minLength: 5}
"""


def test_config_driven_order_pipeline(tmp_path: Path) -> None:
    config_path = tmp_path / "fieldschema.toml"
    config_path.write_text(
        """
[engine]
number_bounds = "inclusive"
unique_policy = "dedupe"
unknown_keys = "reject"

[observability]
log_level = "DEBUG"
""".strip(),
        encoding="utf-8",
    )
    definition_path = tmp_path / "order.yaml"
    definition_path.write_text(_ORDER_YAML, encoding="utf-8")

    config = load_config(config_path, environ={"FIELDSCHEMA_OBSERVABILITY_LOG_FORMAT": "json"})
    settings = EngineSettings.from_config(config)
    stream = io.StringIO()
    with setup_logging(config["observability"], stream=stream):
        order = load_schema_file(definition_path, settings=settings)
        order_instance = order(
            {
                "id": "ord-17",
                "quantity": 100,
                "sku": "ABCDEFGH",
                "notes": ["fragile", "fragile", "gift"],
                "shipping": {"zip": "02139"},
            }
        )

        with pytest.raises(UnknownFieldError):
            order({"id": "ord-18", "quantity": 1, "coupon": "x"})
        with pytest.raises(ReadOnlyFieldError):
            order_instance.id = "ord-99"
        with pytest.raises(TypeValidationError):
            order_instance.quantity = 101
        order_instance.quantity = 0

    assert order_instance.to_object() == {
        "id": "ord-17",
        "quantity": 0,
        "sku": "ABCDEF",
        "notes": ["fragile", "gift"],
        "shipping": {"country": "USA", "zip": "02139"},
    }
    assert json.loads(order_instance.to_json())["shipping"]["country"] == "USA"

    events = [json.loads(line) for line in stream.getvalue().splitlines()]
    messages = [event["message"] for event in events]
    assert "instance constructed" in messages
    assert "instance construction failed" in messages
    assert all(event["logger"].startswith("fieldschema") for event in events)


def test_programmatic_schema_with_getters_and_metrics() -> None:
    registry = MetricsRegistry()
    line_item = Schema(
        {"name": String(required=True), "price": Number(min=0)},
        name="line_item",
        metrics=registry,
    )
    invoice = Schema(
        {
            "customer": String(required=True, string_transform=str.strip),
            "items": Array(array_type=line_item, filter=lambda item: item.price is not None),
            "total": Number(
                default=lambda view: sum(item.price for item in view.items or []),
                getter=lambda value: round(value, 2),
            ),
            "currency": String(enum=["USD", "EUR"], default="USD", invisible=True),
        },
        name="invoice",
        metrics=registry,
    )

    instance = invoice(
        {
            "customer": "  Ada ",
            "items": [{"name": "pen", "price": 1.254}, {"name": "ink", "price": "2.5"}],
        }
    )

    assert instance.to_object() == {
        "customer": "Ada",
        "items": [{"name": "pen", "price": 1.254}, {"name": "ink", "price": 2.5}],
        "total": 3.75,
    }
    assert instance.currency == "USD"
    assert registry.constructed("line_item") == 2
    assert registry.constructed("invoice") == 1

    result = invoice.validate({"customer": "Ada", "items": [{"name": "pen", "price": 0}]})
    assert not result.is_valid
    assert result.error is not None
    assert result.error.path == ("items", 0, "price")
    assert registry.failures("invoice", "nested") == 1
    assert registry.failures("line_item", "type") == 1
