"""
fieldschema — unit tests for engine metrics

File: tests/unit/observability/test_metrics.py
Last updated: 2026-10-19

Purpose
- Verify per-schema tallies, thread safety and the deterministic snapshot shape.

What this test file should cover
- Thread-safe recording, including from concurrent constructions.
- Failure and write breakdowns by error kind and field name.
- Timing summary and input validation.
"""

from __future__ import annotations

import json
import threading

import pytest

from fieldschema import Number, Schema
from fieldschema.observability.metrics import EngineMetric, MetricsRegistry, TimingSummary


def test_thread_safe_recording() -> None:
    registry = MetricsRegistry()

    def worker() -> None:
        for _ in range(2000):
            registry.record_write("person", "age")

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert registry.writes("person") == 12_000
    assert registry.writes("person", "age") == 12_000


def test_shared_schema_counts_concurrent_constructions() -> None:
    registry = MetricsRegistry()
    schema = Schema({"n": Number()}, name="shared", metrics=registry)

    def worker(offset: int) -> None:
        for index in range(200):
            assert schema({"n": offset + index}).n == offset + index

    threads = [threading.Thread(target=worker, args=(idx * 1000,)) for idx in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert registry.constructed("shared") == 800
    timing = registry.timing("shared")
    assert timing is not None
    assert timing.count == 800


def test_failures_break_down_by_kind() -> None:
    registry = MetricsRegistry()
    registry.record_failure("person", "type")
    registry.record_failure("person", "type")
    registry.record_failure("person", "required")

    assert registry.failures("person") == 3
    assert registry.failures("person", "type") == 2
    assert registry.failures("person", "nested") == 0
    assert registry.failures("unknown") == 0


def test_timing_summary_tracks_extremes() -> None:
    registry = MetricsRegistry()
    registry.record_construction("person", 0.25)
    registry.record_construction("person", 0.75)

    assert registry.timing("person") == TimingSummary(
        count=2, total=1.0, minimum=0.25, maximum=0.75
    )
    assert registry.timing("person").mean == 0.5  # type: ignore[union-attr]
    assert registry.timing("nobody") is None


def test_snapshot_is_deterministic_and_json_serializable() -> None:
    registry = MetricsRegistry()
    registry.record_failure("zeta", "type")
    registry.record_construction("alpha", 0.5)
    registry.record_write("alpha", "name")

    first = registry.snapshot()

    assert first == registry.snapshot()
    assert list(first) == ["alpha", "zeta"]
    assert registry.schemas() == ("alpha", "zeta")
    assert first["alpha"] == {
        EngineMetric.INSTANCES_CONSTRUCTED.value: 1,
        EngineMetric.VALIDATION_FAILURES.value: {},
        EngineMetric.FIELD_WRITES.value: {"name": 1},
        EngineMetric.CONSTRUCT_SECONDS.value: {
            "count": 1,
            "sum": 0.5,
            "min": 0.5,
            "max": 0.5,
            "mean": 0.5,
        },
    }
    assert json.loads(registry.to_json())["zeta"]["validation_failures"] == {"type": 1}


def test_reset_clears_all_schemas() -> None:
    registry = MetricsRegistry()
    registry.record_write("person", "age")
    registry.record_construction("person", 1.0)

    registry.reset()

    assert registry.writes("person") == 0
    assert registry.timing("person") is None
    assert registry.snapshot() == {}


@pytest.mark.parametrize(
    "record",
    [
        lambda registry: registry.record_construction("", 0.1),
        lambda registry: registry.record_construction("person", -1),
        lambda registry: registry.record_construction("person", float("nan")),
        lambda registry: registry.record_construction("person", True),
        lambda registry: registry.record_failure("person", ""),
        lambda registry: registry.record_write("person", 3),
    ],
)
def test_invalid_recordings_are_rejected(record: object) -> None:
    registry = MetricsRegistry()

    with pytest.raises(ValueError):
        record(registry)  # type: ignore[operator]

    assert registry.snapshot() == {}
