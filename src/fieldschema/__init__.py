"""
fieldschema — declarative field schemas with validated instances

File: src/fieldschema/__init__.py
Last updated: 2026-10-19

Purpose
- Package root. Exports the descriptor builders, the schema engine, projection
  helpers, and the error taxonomy.

Usage
    >>> from fieldschema import Schema, Types
    >>> person = Schema({"name": Types.String(max_length=8, clip=True), "age": float})
    >>> person({"name": "Bartholomew", "age": 30}).to_object()
    {'name': 'Bartholo', 'age': 30}

Functional requirements
- Must not load config or configure logging at import time; only a
  ``NullHandler`` is attached to the ``fieldschema`` logger.
"""

import logging

from fieldschema.constants import DEFAULT_LOGGER_NAME
from fieldschema.definitions import load_schema_file, schema_from_definition
from fieldschema.descriptors import (
    Alias,
    AliasField,
    Array,
    ArrayField,
    FieldDescriptor,
    FieldKind,
    General,
    GeneralField,
    Number,
    NumberField,
    String,
    StringField,
    Types,
    UniquePolicy,
)
from fieldschema.engine import InstanceView, Schema, SchemaInstance, ValidationResult, build
from fieldschema.errors import (
    NestedValidationError,
    ReadOnlyFieldError,
    RequiredFieldError,
    SchemaDefinitionError,
    SchemaError,
    TypeValidationError,
    UnknownFieldError,
    ValidationError,
)
from fieldschema.projection import to_json, to_object
from fieldschema.settings import EngineSettings

__version__ = "0.1.0"

logging.getLogger(DEFAULT_LOGGER_NAME).addHandler(logging.NullHandler())

__all__ = [
    "Alias",
    "AliasField",
    "Array",
    "ArrayField",
    "EngineSettings",
    "FieldDescriptor",
    "FieldKind",
    "General",
    "GeneralField",
    "InstanceView",
    "NestedValidationError",
    "Number",
    "NumberField",
    "ReadOnlyFieldError",
    "RequiredFieldError",
    "Schema",
    "SchemaDefinitionError",
    "SchemaError",
    "SchemaInstance",
    "String",
    "StringField",
    "TypeValidationError",
    "Types",
    "UniquePolicy",
    "UnknownFieldError",
    "ValidationError",
    "ValidationResult",
    "__version__",
    "build",
    "load_schema_file",
    "schema_from_definition",
    "to_json",
    "to_object",
]
