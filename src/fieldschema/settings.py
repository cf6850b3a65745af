"""Immutable engine policies resolved from a validated config mapping."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from fieldschema.config.schema import assert_valid_config, default_config, merge_config
from fieldschema.descriptors import UniquePolicy


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """Policies the engine consults while coercing values.

    ``inclusive_bounds`` switches number ``min``/``max`` from open to closed
    intervals. ``unique_policy`` is what ``unique=True`` means on arrays.
    """

    inclusive_bounds: bool = False
    unique_policy: UniquePolicy = UniquePolicy.REJECT
    reject_unknown_keys: bool = False
    coerce_scalars: bool = True

    @classmethod
    def from_config(cls, config: Mapping[str, object] | None = None) -> EngineSettings:
        """Build settings from a (possibly partial) config mapping."""

        merged = assert_valid_config(merge_config(default_config(), config or {}))
        engine = merged["engine"]
        return cls(
            inclusive_bounds=engine["number_bounds"] == "inclusive",
            unique_policy=UniquePolicy(engine["unique_policy"]),
            reject_unknown_keys=engine["unknown_keys"] == "reject",
            coerce_scalars=bool(engine["coerce_scalars"]),
        )


DEFAULT_SETTINGS = EngineSettings()

__all__ = ["DEFAULT_SETTINGS", "EngineSettings"]
