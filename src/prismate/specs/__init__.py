"""
Specification types for prismate.

This module exports the schema, validation and query types.
"""

from prismate.specs.query import AggregateOptions, QueryBuilder, QueryOptions, SortOrder
from prismate.specs.schema import (
    DataModelDescription,
    EnumDescription,
    FieldKind,
    FieldMetadata,
    ModelDefinition,
    ModelDescription,
    ModelSchema,
    ModelSummary,
    RelationRef,
    SchemaRegistry,
)
from prismate.specs.validation import FieldIssue, UpdateMode, ValidationOutcome

__all__ = [
    # Schema types
    "DataModelDescription",
    "EnumDescription",
    "FieldKind",
    "FieldMetadata",
    "ModelDefinition",
    "ModelDescription",
    "ModelSchema",
    "ModelSummary",
    "RelationRef",
    "SchemaRegistry",
    # Validation types
    "FieldIssue",
    "UpdateMode",
    "ValidationOutcome",
    # Query types
    "AggregateOptions",
    "QueryBuilder",
    "QueryOptions",
    "SortOrder",
]
