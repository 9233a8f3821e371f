"""
Prismate service - model-level operations over schema, validation and data access.

Composes one SchemaRegistry, one ValidatorBuilder (with its validator cache),
one model-definition cache and one PrismateDatabase facade per instance.
Nothing is shared between instances, so several schemas can live in one
process side by side.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from prismate.core.errors import ValidationError
from prismate.core.strings import to_model_key
from prismate.runtime.cache import CacheConfig, CacheStats, SchemaCache
from prismate.runtime.database import PrismateDatabase
from prismate.runtime.logging import log_with_context
from prismate.runtime.schema_extractor import (
    build_model_definition,
    build_registry,
    export_registry,
    list_model_names,
)
from prismate.runtime.validator_builder import FieldMapper, ValidatorBuilder
from prismate.specs.query import AggregateOptions, QueryOptions
from prismate.specs.schema import FieldMetadata, ModelDefinition, ModelSummary, SchemaRegistry
from prismate.specs.validation import UpdateMode, ValidationOutcome

logger = logging.getLogger(__name__)

RecordId = str | int

_INTEGER_ID_TYPES = frozenset({"Int", "BigInt"})


class PrismateService:
    """
    Validate-then-write model operations and schema introspection.

    Example:
        >>> service = PrismateService(client, dmmf)
        >>> await service.create_model("user", {"name": "Jane", "email": "jane@x.com"})
        {'id': 1, 'name': 'Jane', 'email': 'jane@x.com'}
    """

    def __init__(
        self,
        client: Any = None,
        data_model: Any = None,
        *,
        cache_config: CacheConfig | None = None,
        update_mode: UpdateMode | str = UpdateMode.FULL,
        known_model_names: Iterable[str] | None = None,
        field_mapper: FieldMapper | None = None,
    ):
        """
        Args:
            client: Data client (mapping or object of model delegates), or None
            data_model: Raw data-model description
            cache_config: Settings for the validator and model-definition caches
            update_mode: Validate updates against the full schema or partially
            known_model_names: Models the client exposes; derived from the
                client when omitted. Without a client every described model
                is registered.
            field_mapper: Replacement field -> validator mapping
        """
        self._database = PrismateDatabase(client)
        if known_model_names is None and client is not None:
            known_model_names = list_model_names(client)
        self._registry = build_registry(data_model, known_model_names)
        self._validator = ValidatorBuilder(cache_config, field_mapper)
        self._definitions: SchemaCache[ModelDefinition] = SchemaCache(
            cache_config, name="model-definition-cache"
        )
        self._update_mode = UpdateMode(update_mode)
        self._disposed = False

    # -------------------------------------------------------------------------
    # Collaborators
    # -------------------------------------------------------------------------

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    @property
    def database(self) -> PrismateDatabase:
        return self._database

    @property
    def validator(self) -> ValidatorBuilder:
        return self._validator

    @property
    def update_mode(self) -> UpdateMode:
        return self._update_mode

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self, model: str, data: Any, *, partial: bool = False) -> ValidationOutcome:
        """
        Validate a payload without writing it.

        Raises:
            SchemaError: If the model is unknown
        """
        return self._validator.validate(to_model_key(model), data, self._registry, partial=partial)

    def _validated(self, model: str, data: Any, *, partial: bool = False) -> Any:
        outcome = self.validate(model, data, partial=partial)
        if not outcome.success:
            log_with_context(
                logger, logging.DEBUG, "Validation failed", model=model, error=outcome.error
            )
            first = outcome.issues[0] if outcome.issues else None
            raise ValidationError(
                f"Validation failed: {outcome.error}",
                field=first.path if first else None,
                issues=[issue.model_dump() for issue in outcome.issues],
            )
        return outcome.data

    def _where_id(self, model: str, id: RecordId) -> dict[str, Any]:
        """Where-clause selecting a record by its identifier."""
        schema = self._registry.get(model) or {}
        id_fields = [f for f in schema.values() if f.is_id]
        if len(id_fields) != 1:
            return {"id": id}
        field = id_fields[0]
        if field.type in _INTEGER_ID_TYPES and isinstance(id, str) and id.lstrip("-").isdigit():
            return {field.name: int(id)}
        return {field.name: id}

    # -------------------------------------------------------------------------
    # Model Operations
    # -------------------------------------------------------------------------

    async def create_model(self, model: str, data: Any) -> Any:
        """
        Validate a payload and create a record.

        Raises:
            SchemaError: Unknown model
            ValidationError: Payload does not match the schema
            ClientError: No data client attached
            OperationError: The model's delegate cannot create
        """
        key = to_model_key(model)
        validated = self._validated(key, data)
        return await self._database.create(key, validated)

    async def get_models(
        self,
        model: str,
        options: QueryOptions | Mapping[str, Any] | None = None,
    ) -> list[Any]:
        """List records; returns [] when no data client is attached."""
        return await self._database.find_many(to_model_key(model), options)

    async def get_model(self, model: str, id: RecordId) -> Any | None:
        """Fetch one record by identifier; None when absent or no client."""
        key = to_model_key(model)
        return await self._database.find_unique(key, self._where_id(key, id))

    async def update_model(self, model: str, id: RecordId, data: Any) -> Any:
        """
        Validate a payload and update the record with the given identifier.

        In FULL update mode the payload must satisfy the same required
        fields as a create; in PARTIAL mode omitted fields are left alone.
        """
        key = to_model_key(model)
        validated = self._validated(key, data, partial=self._update_mode == UpdateMode.PARTIAL)
        return await self._database.update(key, self._where_id(key, id), validated)

    async def delete_model(self, model: str, id: RecordId) -> Any:
        key = to_model_key(model)
        return await self._database.delete(key, self._where_id(key, id))

    async def count_models(self, model: str, where: Mapping[str, Any] | None = None) -> int:
        return await self._database.count(to_model_key(model), where)

    async def aggregate_models(
        self,
        model: str,
        options: AggregateOptions | Mapping[str, Any] | None = None,
    ) -> Any | None:
        return await self._database.aggregate(to_model_key(model), options)

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def get_available_models(self) -> list[str]:
        return list(self._registry.model_names)

    def has_model(self, model: str) -> bool:
        return model in self._registry

    def get_model_schema(self, model: str) -> list[FieldMetadata]:
        """Field metadata in declaration order; [] for unknown models."""
        schema = self._registry.get(model)
        return list(schema.values()) if schema is not None else []

    def get_model_fields(self, model: str) -> list[str]:
        schema = self._registry.get(model)
        return list(schema) if schema is not None else []

    def get_field_info(self, model: str, field: str) -> FieldMetadata | None:
        return self._registry.get_field(model, field)

    def get_model_definition(self, model: str) -> ModelDefinition | None:
        """Fields and relations of a model, cached per canonical name."""
        key = to_model_key(model)
        cached = self._definitions.get(key)
        if cached is not None:
            return cached
        definition = build_model_definition(self._registry, key)
        if definition is not None:
            self._definitions.set(key, definition)
        return definition

    def get_model_summary(self) -> dict[str, ModelSummary]:
        summary: dict[str, ModelSummary] = {}
        for name, schema in self._registry.items():
            fields = list(schema.values())
            summary[name] = ModelSummary(
                field_count=len(fields),
                relation_count=sum(1 for f in fields if f.is_relation),
            )
        return summary

    def export_schema(self) -> dict[str, dict[str, dict[str, Any]]]:
        return export_registry(self._registry)

    # -------------------------------------------------------------------------
    # Cache Management
    # -------------------------------------------------------------------------

    def get_cache_stats(self) -> dict[str, CacheStats]:
        return {
            "validators": self._validator.cache_stats(),
            "definitions": self._definitions.stats(),
        }

    def clear_cache(self) -> None:
        self._validator.clear_cache()
        self._definitions.clear()

    def update_cache_config(
        self,
        *,
        max_size: int | None = None,
        ttl_ms: int | None = None,
    ) -> None:
        """Apply new sizing to both caches; shrinking evicts immediately."""
        self._validator.update_cache_config(max_size=max_size, ttl_ms=ttl_ms)
        self._definitions.update_config(max_size=max_size, ttl_ms=ttl_ms)

    def dispose(self) -> None:
        """Drop cached artifacts and release the facade; idempotent."""
        self.clear_cache()
        self._database.dispose()
        if not self._disposed:
            logger.debug("Prismate service disposed")
        self._disposed = True
