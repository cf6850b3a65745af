"""Public observability primitives: structured logging and metrics."""

from fieldschema.observability.logging import (
    CorrelationField,
    JsonLineFormatter,
    LoggingHandle,
    Redactor,
    TextFormatter,
    correlation_scope,
    current_correlation,
    redact,
    setup_logging,
)
from fieldschema.observability.metrics import EngineMetric, MetricsRegistry, TimingSummary

__all__ = [
    "CorrelationField",
    "EngineMetric",
    "JsonLineFormatter",
    "LoggingHandle",
    "MetricsRegistry",
    "Redactor",
    "TextFormatter",
    "TimingSummary",
    "correlation_scope",
    "current_correlation",
    "redact",
    "setup_logging",
]
