"""Error taxonomy for schema definition, construction, and field access failures."""

from __future__ import annotations

from collections.abc import Sequence

from fieldschema.constants import ROOT_PATH_LABEL

PathPart = str | int
FieldPath = tuple[PathPart, ...]


def format_path(path: Sequence[PathPart]) -> str:
    """Render ``("items", 2, "name")`` as ``items[2].name``."""

    if not path:
        return ROOT_PATH_LABEL
    rendered = ""
    for part in path:
        if isinstance(part, int):
            rendered += f"[{part}]"
        elif rendered:
            rendered += f".{part}"
        else:
            rendered = part
    return rendered


class SchemaError(ValueError):
    """Base class for every error raised by fieldschema."""


class SchemaDefinitionError(SchemaError):
    """Raised when a schema or a schema definition file is malformed."""


class ValidationError(SchemaError):
    """A value was rejected while constructing or writing an instance."""

    kind = "validation"

    def __init__(self, path: Sequence[PathPart], message: str) -> None:
        self.path: FieldPath = tuple(path)
        self.message = message
        super().__init__(f"{format_path(self.path)}: {message}")

    @property
    def field(self) -> str | None:
        """Top-level field name the failure belongs to."""

        for part in self.path:
            if isinstance(part, str):
                return part
        return None

    @property
    def path_text(self) -> str:
        return format_path(self.path)

    def with_prefix(self, prefix: Sequence[PathPart]) -> NestedValidationError:
        return NestedValidationError(prefix, self)


class RequiredFieldError(ValidationError):
    """A required field had no value after default resolution."""

    kind = "required"

    def __init__(self, path: Sequence[PathPart], message: str | None = None) -> None:
        self.custom_message = message
        rendered = message if message else "missing required field"
        super().__init__(path, rendered)


class TypeValidationError(ValidationError):
    """A value failed type coercion or a type-specific constraint."""

    kind = "type"

    def __init__(
        self,
        path: Sequence[PathPart],
        message: str,
        *,
        constraint: str,
        violations: Sequence[str] = (),
        index: int | None = None,
    ) -> None:
        self.constraint = constraint
        self.violations: tuple[str, ...] = tuple(violations) or (constraint,)
        self.index = index
        super().__init__(path, message)


class ReadOnlyFieldError(ValidationError):
    """A write targeted a read-only field after construction."""

    kind = "read_only"

    def __init__(self, path: Sequence[PathPart]) -> None:
        super().__init__(path, "field is read-only")


class UnknownFieldError(ValidationError):
    """Input carried a key the schema does not declare."""

    kind = "unknown"

    def __init__(self, path: Sequence[PathPart]) -> None:
        super().__init__(path, "unknown field")


class NestedValidationError(ValidationError):
    """Wraps a failure raised inside a nested instance or array element.

    ``path`` is the full path from the outermost instance down to the failing
    field; ``inner`` is the original, non-nested error.
    """

    kind = "nested"

    def __init__(self, prefix: Sequence[PathPart], cause: ValidationError) -> None:
        self.inner: ValidationError = (
            cause.inner if isinstance(cause, NestedValidationError) else cause
        )
        super().__init__((*prefix, *cause.path), self.inner.message)


__all__ = [
    "FieldPath",
    "NestedValidationError",
    "PathPart",
    "ReadOnlyFieldError",
    "RequiredFieldError",
    "SchemaDefinitionError",
    "SchemaError",
    "TypeValidationError",
    "UnknownFieldError",
    "ValidationError",
    "format_path",
]
