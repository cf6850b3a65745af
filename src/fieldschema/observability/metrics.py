"""Per-schema engine tallies: constructions, validation failures, field writes, timing."""

from __future__ import annotations

import json
import math
import threading
from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


class EngineMetric(StrEnum):
    """Names a ``Schema`` reports under; also the keys of ``snapshot()`` entries."""

    INSTANCES_CONSTRUCTED = "instances_constructed"
    VALIDATION_FAILURES = "validation_failures"
    FIELD_WRITES = "field_writes"
    CONSTRUCT_SECONDS = "construct_seconds"


@dataclass(frozen=True, slots=True)
class TimingSummary:
    """Running summary of successful construction durations, in seconds."""

    count: int
    total: float
    minimum: float
    maximum: float

    @property
    def mean(self) -> float:
        return self.total / self.count

    def add(self, seconds: float) -> TimingSummary:
        return TimingSummary(
            count=self.count + 1,
            total=self.total + seconds,
            minimum=min(self.minimum, seconds),
            maximum=max(self.maximum, seconds),
        )

    def as_dict(self) -> dict[str, JSONValue]:
        return {
            "count": self.count,
            "sum": self.total,
            "min": self.minimum,
            "max": self.maximum,
            "mean": self.mean,
        }


@dataclass(slots=True)
class _SchemaTally:
    constructed: int = 0
    failures: Counter[str] = field(default_factory=Counter)
    writes: Counter[str] = field(default_factory=Counter)
    timing: TimingSummary | None = None

    def as_dict(self) -> dict[str, JSONValue]:
        return {
            EngineMetric.INSTANCES_CONSTRUCTED.value: self.constructed,
            EngineMetric.VALIDATION_FAILURES.value: dict(sorted(self.failures.items())),
            EngineMetric.FIELD_WRITES.value: dict(sorted(self.writes.items())),
            EngineMetric.CONSTRUCT_SECONDS.value: (
                None if self.timing is None else self.timing.as_dict()
            ),
        }


class MetricsRegistry:
    """Thread-safe tallies that any number of schemas report into, keyed by schema name.

    Pass one registry to several ``Schema`` objects to aggregate them; schemas
    sharing a name share a tally.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tallies: dict[str, _SchemaTally] = {}

    def record_construction(self, schema: str, seconds: float) -> None:
        """Count one successful construction and fold its duration into the timing."""

        duration = _as_duration(seconds)
        with self._lock:
            tally = self._tally(schema)
            tally.constructed += 1
            if tally.timing is None:
                tally.timing = TimingSummary(1, duration, duration, duration)
            else:
                tally.timing = tally.timing.add(duration)

    def record_failure(self, schema: str, kind: str) -> None:
        """Count one failed construction under its error kind (``required``, ``type``...)."""

        label = _as_label(kind, "error kind")
        with self._lock:
            self._tally(schema).failures[label] += 1

    def record_write(self, schema: str, field_name: str) -> None:
        label = _as_label(field_name, "field name")
        with self._lock:
            self._tally(schema).writes[label] += 1

    def constructed(self, schema: str) -> int:
        with self._lock:
            tally = self._tallies.get(schema)
            return 0 if tally is None else tally.constructed

    def failures(self, schema: str, kind: str | None = None) -> int:
        """Failures for ``schema``; all kinds summed unless ``kind`` is given."""

        with self._lock:
            tally = self._tallies.get(schema)
            if tally is None:
                return 0
            return tally.failures.total() if kind is None else tally.failures[kind]

    def writes(self, schema: str, field_name: str | None = None) -> int:
        with self._lock:
            tally = self._tallies.get(schema)
            if tally is None:
                return 0
            return tally.writes.total() if field_name is None else tally.writes[field_name]

    def timing(self, schema: str) -> TimingSummary | None:
        with self._lock:
            tally = self._tallies.get(schema)
            return None if tally is None else tally.timing

    def schemas(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(sorted(self._tallies))

    def reset(self) -> None:
        with self._lock:
            self._tallies.clear()

    def snapshot(self) -> dict[str, JSONValue]:
        """Plain dict keyed by schema name, then by ``EngineMetric`` value."""

        with self._lock:
            return {name: self._tallies[name].as_dict() for name in sorted(self._tallies)}

    def to_json(self) -> str:
        return json.dumps(
            self.snapshot(), sort_keys=True, separators=(",", ":"), ensure_ascii=False
        )

    def _tally(self, schema: str) -> _SchemaTally:
        name = _as_label(schema, "schema name")
        tally = self._tallies.get(name)
        if tally is None:
            tally = self._tallies[name] = _SchemaTally()
        return tally


def _as_label(value: str, role: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{role} must be a non-empty string, got {value!r}")
    return value


def _as_duration(seconds: float) -> float:
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise ValueError(f"duration must be numeric, got {type(seconds).__name__}")
    duration = float(seconds)
    if not math.isfinite(duration) or duration < 0:
        raise ValueError(f"duration must be finite and >= 0, got {seconds!r}")
    return duration


__all__ = ["EngineMetric", "JSONScalar", "JSONValue", "MetricsRegistry", "TimingSummary"]
