"""
fieldschema — engine log formatting, correlation and redaction

File: src/fieldschema/observability/logging.py
Last updated: 2026-10-19

Purpose
- Render engine log records as JSON lines (or single text lines) that carry the
  schema and field being processed.

What is included in this file
- ``CorrelationField`` and ``correlation_scope``: the schema/field context the
  engine binds around construction and writes.
- ``JsonLineFormatter`` / ``TextFormatter``.
- ``redact``: masks values under secret-looking keys and inline ``key=value``
  secrets, since field values can appear in failure reasons.
- ``setup_logging``: attach a formatter to the package logger from an
  ``[observability]`` config section; the returned handle undoes it.

Functional requirements
- The library never configures logging on import; applications opt in.
"""

from __future__ import annotations

import contextvars
import json
import logging
import math
import re
import sys
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Final, TextIO

from fieldschema.constants import DEFAULT_LOGGER_NAME

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
Redactor = Callable[[JSONValue], JSONValue]

REDACTED: Final[str] = "***REDACTED***"


class CorrelationField(StrEnum):
    """Context keys attached to every record emitted inside a ``correlation_scope``."""

    SCHEMA = "schema"
    FIELD = "field"


_SECRET_KEY = re.compile(r"(?i)secret|token|passw(or)?d|passphrase|api_?key|credential|auth")
_INLINE_SECRET = re.compile(
    r"(?i)\b(api[_-]?key|token|password|secret|authorization)(\s*[:=]\s*)([^\s,;]+)"
)
_BEARER = re.compile(r"(?i)\bbearer\s+[A-Za-z0-9._~+/-]+=*")

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    vars(logging.makeLogRecord({}))
) | {"message", "asctime"}

_CORRELATION: contextvars.ContextVar[Mapping[str, str]] = contextvars.ContextVar(
    "fieldschema_correlation", default={}
)


@contextmanager
def correlation_scope(*, schema: str | None = None, field: str | None = None) -> Iterator[None]:
    """Bind ``schema`` and/or ``field`` for records logged in this context.

    Nested scopes inherit the outer values; ``None`` leaves a key unchanged.
    """

    bound = dict(_CORRELATION.get())
    for key, value in ((CorrelationField.SCHEMA, schema), (CorrelationField.FIELD, field)):
        if value is not None:
            bound[key.value] = value
    token = _CORRELATION.set(bound)
    try:
        yield
    finally:
        _CORRELATION.reset(token)


def current_correlation() -> dict[str, str]:
    return dict(_CORRELATION.get())


def redact(value: JSONValue, *, key: str | None = None) -> JSONValue:
    """Deep-copy ``value`` with secrets masked."""

    if key is not None and _SECRET_KEY.search(key):
        return REDACTED
    if isinstance(value, str):
        masked = _INLINE_SECRET.sub(lambda m: f"{m.group(1)}{m.group(2)}{REDACTED}", value)
        return _BEARER.sub(f"Bearer {REDACTED}", masked)
    if isinstance(value, list):
        return [redact(item) for item in value]
    if isinstance(value, dict):
        return {name: redact(item, key=name) for name, item in value.items()}
    return value


def _no_redaction(value: JSONValue) -> JSONValue:
    return value


class JsonLineFormatter(logging.Formatter):
    """One canonical JSON object per record.

    Keys: ``timestamp``, ``level``, ``logger``, ``message``, the bound
    correlation fields, ``fields`` (the record's ``extra``), and ``exception``.
    """

    def __init__(self, *, redactor: Redactor = redact) -> None:
        super().__init__()
        self._redactor = redactor

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": str(self._redactor(record.getMessage())),
        }
        event.update(current_correlation())
        extras = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        }
        if extras:
            event["fields"] = self._redactor(extras)
        if record.exc_info:
            event["exception"] = str(self._redactor(self.formatException(record.exc_info)))
        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """``<time> <LEVEL> <logger> <message> [schema=... field=...]``."""

    def __init__(self, *, redactor: Redactor = redact) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")
        self._redactor = redactor

    def format(self, record: logging.LogRecord) -> str:
        line = str(self._redactor(super().format(record)))
        context = current_correlation()
        if context:
            rendered = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
            line = f"{line} [{rendered}]"
        return line


class LoggingHandle:
    """Handlers attached by ``setup_logging``; ``close()`` restores the logger."""

    def __init__(self, logger: logging.Logger, handlers: list[logging.Handler]) -> None:
        self.logger = logger
        self.handlers = tuple(handlers)
        self._previous = (logger.level, logger.propagate)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        for handler in self.handlers:
            self.logger.removeHandler(handler)
            handler.close()
        self.logger.setLevel(self._previous[0])
        self.logger.propagate = self._previous[1]
        self._closed = True

    def __enter__(self) -> LoggingHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    stream: TextIO | None = None,
    log_path: Path | str | None = None,
    logger_name: str = DEFAULT_LOGGER_NAME,
) -> LoggingHandle:
    """Attach formatted handlers to ``logger_name`` from an ``[observability]`` section.

    Parameters
    ----------
    observability_config:
        ``log_level``, ``log_format`` (``json``/``text``) and ``redact_values``,
        as validated by ``fieldschema.config``.
    stream:
        Stream sink; defaults to ``sys.stderr``. Ignored when ``log_path`` is given.
    log_path:
        Append records to this file instead of a stream.
    """

    cfg = dict(observability_config or {})
    level = _parse_level(cfg.get("log_level", "WARNING"))
    redactor = redact if cfg.get("redact_values", True) else _no_redaction
    formatter: logging.Formatter
    if cfg.get("log_format") == "text":
        formatter = TextFormatter(redactor=redactor)
    else:
        formatter = JsonLineFormatter(redactor=redactor)

    handler: logging.Handler
    if log_path is not None:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)

    logger = logging.getLogger(logger_name)
    handle = LoggingHandle(logger, [handler])
    logger.setLevel(level)
    logger.propagate = False
    logger.addHandler(handler)
    return handle


def _parse_level(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        parsed = logging.getLevelName(value.strip().upper())
        if isinstance(parsed, int):
            return parsed
    raise ValueError(f"unsupported logging level {value!r}")


def _timestamp(epoch_seconds: float) -> str:
    moment = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _jsonable(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else repr(value)
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return str(value)


__all__ = [
    "REDACTED",
    "CorrelationField",
    "JSONValue",
    "JsonLineFormatter",
    "LoggingHandle",
    "Redactor",
    "TextFormatter",
    "correlation_scope",
    "current_correlation",
    "redact",
    "setup_logging",
]
