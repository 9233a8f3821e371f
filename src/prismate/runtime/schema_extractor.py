"""
Schema extractor - builds a SchemaRegistry from a raw data-model description.

Only models that the data client actually exposes are registered, so a stale
or superset description cannot lead to operations on delegates that do not
exist.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from prismate.core.strings import to_model_key
from prismate.specs.schema import (
    DataModelDescription,
    FieldKind,
    FieldMetadata,
    ModelDefinition,
    ModelDescription,
    RelationRef,
    SchemaRegistry,
)

logger = logging.getLogger(__name__)

# Client attributes that are never models (lifecycle hooks, private state)
_RESERVED_PREFIXES = ("$", "_")
_RESERVED_NAMES = frozenset({"constructor", "connect", "disconnect", "is_connected"})


# =============================================================================
# Model Name Discovery
# =============================================================================


def is_model_key(key: str) -> bool:
    """Check whether a client attribute/key names a model delegate."""
    return bool(key) and not key.startswith(_RESERVED_PREFIXES) and key not in _RESERVED_NAMES


def list_model_names(client: Any) -> tuple[str, ...]:
    """
    Enumerate the canonical model names a data client exposes.

    Args:
        client: Mapping of model name -> delegate, or an object carrying
            delegates as instance attributes. ``None`` exposes nothing.

    Returns:
        Canonical model names in client order, without duplicates
    """
    if client is None:
        return ()
    if isinstance(client, Mapping):
        keys: Iterable[Any] = client.keys()
    else:
        keys = vars(client).keys() if hasattr(client, "__dict__") else ()

    names: dict[str, None] = {}
    for key in keys:
        if isinstance(key, str) and is_model_key(key):
            names[to_model_key(key)] = None
    return tuple(names)


# =============================================================================
# Registry Construction
# =============================================================================


def _build_field(
    raw_field: Mapping[str, Any],
    enum_members: Mapping[str, tuple[str, ...]],
) -> FieldMetadata:
    field = FieldMetadata.model_validate(raw_field)
    if field.kind == FieldKind.ENUM and field.enum_values is None and field.type in enum_members:
        field = field.model_copy(update={"enum_values": enum_members[field.type]})
    return field


def _build_model_schema(
    model: ModelDescription,
    enum_members: Mapping[str, tuple[str, ...]],
) -> dict[str, FieldMetadata]:
    # Declaration order is preserved for deterministic export
    fields = (_build_field(raw, enum_members) for raw in model.fields)
    return {field.name: field for field in fields}


def build_registry(
    raw_description: Any,
    known_model_names: Iterable[str] | None = None,
) -> SchemaRegistry:
    """
    Build a SchemaRegistry from a raw data-model description.

    Args:
        raw_description: Introspection document (wrapped or bare) or a
            DataModelDescription. Anything without a model list yields an
            empty registry.
        known_model_names: Model names the data client exposes. Models absent
            from this set are skipped. ``None`` disables the filter (used
            when no client is attached yet).

    Returns:
        Read-only registry keyed by canonical model name

    Example:
        >>> registry = build_registry(dmmf, list_model_names(client))
        >>> registry.model_names
        ('user', 'post')
    """
    description = DataModelDescription.from_raw(raw_description)
    known = None if known_model_names is None else {to_model_key(n) for n in known_model_names}
    enum_members = description.enum_members()

    models: dict[str, dict[str, FieldMetadata]] = {}
    skipped: list[str] = []
    for model in description.models:
        key = to_model_key(model.name)
        if known is not None and key not in known:
            skipped.append(model.name)
            continue
        models[key] = _build_model_schema(model, enum_members)

    if skipped:
        logger.debug("Skipped models not exposed by the client: %s", ", ".join(skipped))
    logger.debug("Built schema registry with %d model(s)", len(models))
    return SchemaRegistry(models)


def build_model_definition(registry: SchemaRegistry, model: str) -> ModelDefinition | None:
    """Summarize one model's fields and relations, or None if unknown."""
    schema = registry.get(model)
    if schema is None:
        return None
    fields = tuple(schema.values())
    relations = tuple(
        RelationRef(field=f.name, target=f.relation_target or to_model_key(f.type))
        for f in fields
        if f.is_relation
    )
    return ModelDefinition(name=to_model_key(model), fields=fields, relations=relations)


def export_registry(registry: SchemaRegistry) -> dict[str, dict[str, dict[str, Any]]]:
    """Plain JSON-serializable copy of the registry."""
    return {
        name: {
            field_name: field.model_dump(mode="json", by_alias=True, exclude_none=True)
            for field_name, field in schema.items()
        }
        for name, schema in registry.items()
    }


# =============================================================================
# Loading
# =============================================================================


def load_data_model(path: str | Path) -> DataModelDescription:
    """
    Load a data-model description from a JSON file.

    Args:
        path: JSON file holding ``{"datamodel": {...}}`` or ``{"models": [...]}``

    Returns:
        Parsed description (empty if the file has no model list)
    """
    raw = json.loads(Path(path).read_text())
    return DataModelDescription.from_raw(raw)
