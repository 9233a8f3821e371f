"""
Validator builder - generates Pydantic validators from field metadata.

This module creates dynamic Pydantic models at runtime, one per registered
model, and caches them by canonical model name.

Field mapping rules:
1. Relation fields become a permissive stub (optional object with an
   optional ``id``), so relation graphs are never walked recursively.
2. Other fields map through a fixed type table; unknown and enum types
   validate as strings (or against the enum members when known).
3. List fields wrap the base type in ``list[...]``.
4. Non-required scalar fields accept an omitted key or ``null``;
   non-required list fields accept only an omitted key.
"""

from __future__ import annotations

import keyword
import logging
import re
from collections.abc import Callable
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictBytes,
    StrictFloat,
    StrictInt,
    StrictStr,
    create_model,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.fields import FieldInfo

from prismate.core.errors import SchemaError
from prismate.core.strings import to_model_key
from prismate.runtime.cache import CacheConfig, CacheStats, SchemaCache
from prismate.specs.schema import FieldKind, FieldMetadata, SchemaRegistry
from prismate.specs.validation import FieldIssue, ValidationOutcome

logger = logging.getLogger(__name__)

FieldValidator = tuple[Any, FieldInfo]
FieldMapper = Callable[[FieldMetadata], FieldValidator]

# =============================================================================
# Type Mapping
# =============================================================================


class RelationStub(BaseModel):
    """Reference to a related record; only the identifier is checked."""

    model_config = ConfigDict(extra="ignore")

    id: Union[StrictStr, StrictInt, None] = None


BASE_TYPES: dict[str, Any] = {
    "String": StrictStr,
    "Int": StrictInt,
    "Float": StrictFloat,
    "Decimal": StrictFloat,
    "BigInt": StrictInt,
    "DateTime": datetime,
    "Boolean": StrictBool,
    "Json": Any,
    "Bytes": Union[StrictBytes, StrictStr],
}

# Enums and anything unrecognized validate as opaque strings
DEFAULT_BASE_TYPE: Any = StrictStr


def base_type_for(field: FieldMetadata) -> Any:
    """Map a non-relation field to its base Python type."""
    if field.kind == FieldKind.ENUM and field.enum_values:
        return Literal[field.enum_values]
    return BASE_TYPES.get(field.type, DEFAULT_BASE_TYPE)


def _attribute_name(name: str) -> str | None:
    """Return a safe attribute name when ``name`` cannot be used directly."""
    if (
        name.isidentifier()
        and not name.startswith("_")
        and not keyword.iskeyword(name)
        and not hasattr(BaseModel, name)
    ):
        return None
    return "f_" + re.sub(r"\W", "_", name).lstrip("_")


def map_field_to_validator(field: FieldMetadata) -> FieldValidator:
    """
    Build the create_model field tuple for one field.

    Returns:
        Tuple of (annotation, FieldInfo)
    """
    if field.is_relation:
        stub: Any = list[RelationStub] if field.is_list else RelationStub
        return (Optional[stub], Field(default=None))

    annotation = base_type_for(field)
    if field.is_list:
        annotation = list[annotation]  # type: ignore[valid-type]

    if not field.is_required:
        if field.is_list:
            # Omitted is fine, explicit null is not
            return (annotation, Field(default=None))
        return (Optional[annotation], Field(default=None))

    if field.has_default_value:
        return (annotation, Field(default=None))

    return (annotation, Field(...))


def _relaxed(field_validator: FieldValidator) -> FieldValidator:
    """Make a field omittable without widening the accepted values."""
    annotation, info = field_validator
    if info.is_required():
        return (annotation, Field(default=None))
    return field_validator


def format_validation_error(exc: PydanticValidationError) -> tuple[str, list[FieldIssue]]:
    """Flatten Pydantic errors into ``"path: message; ..."`` plus issues."""
    issues = [
        FieldIssue(
            path=".".join(str(part) for part in err["loc"]),
            message=err["msg"],
            type=err["type"],
        )
        for err in exc.errors()
    ]
    return "; ".join(issue.format() for issue in issues), issues


# =============================================================================
# Model Validators
# =============================================================================


def build_model_validator(
    model: str,
    registry: SchemaRegistry,
    field_mapper: FieldMapper = map_field_to_validator,
    *,
    partial: bool = False,
) -> type[BaseModel]:
    """
    Compose the per-field validators of one model into a Pydantic model.

    Args:
        model: Model name (any casing)
        registry: Registry holding the model's field metadata
        field_mapper: Field -> validator mapping
        partial: Let every field be omitted (partial updates)

    Raises:
        SchemaError: If the model is not in the registry
    """
    schema = registry.get(model)
    if schema is None:
        raise SchemaError(f"Model '{model}' not found in schema registry", model=model)

    field_definitions: dict[str, Any] = {}
    for field in schema.values():
        annotation, info = field_mapper(field)
        if partial:
            annotation, info = _relaxed((annotation, info))
        attribute = _attribute_name(field.name)
        if attribute is not None:
            field_definitions[attribute] = (Annotated[annotation, Field(alias=field.name)], info)
        else:
            field_definitions[field.name] = (annotation, info)

    key = to_model_key(model)
    suffix = "PartialInput" if partial else "Input"
    return create_model(
        f"{key[:1].upper()}{key[1:]}{suffix}",
        __config__=ConfigDict(extra="ignore"),
        __doc__=f"Generated validator for {key}",
        **field_definitions,
    )


class ValidatorBuilder:
    """
    Builds and caches per-model validators.

    Validators are cached by canonical model name under the configured
    TTL and size policy. Concurrent builds of the same validator are
    harmless; the last ``set`` wins.
    """

    def __init__(
        self,
        cache_config: CacheConfig | None = None,
        field_mapper: FieldMapper | None = None,
        *,
        cache: SchemaCache[type[BaseModel]] | None = None,
    ):
        """
        Args:
            cache_config: Validator cache settings
            field_mapper: Replacement for map_field_to_validator
            cache: Pre-built cache (overrides cache_config)
        """
        self._cache: SchemaCache[type[BaseModel]] = cache or SchemaCache(
            cache_config, name="validator-cache"
        )
        self._field_mapper = field_mapper or map_field_to_validator
        self.builds = 0

    @property
    def cache(self) -> SchemaCache[type[BaseModel]]:
        return self._cache

    def get_or_build_model_validator(
        self,
        model: str,
        registry: SchemaRegistry,
        *,
        partial: bool = False,
    ) -> type[BaseModel]:
        """Return the cached validator for a model, building it on a miss."""
        key = to_model_key(model) + (":partial" if partial else "")
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        validator = build_model_validator(model, registry, self._field_mapper, partial=partial)
        self.builds += 1
        logger.debug("Built validator %s", validator.__name__)
        self._cache.set(key, validator)
        return validator

    def validate(
        self,
        model: str,
        data: Any,
        registry: SchemaRegistry,
        *,
        partial: bool = False,
    ) -> ValidationOutcome:
        """
        Validate a payload against a model.

        Returns:
            Success with the validated data (omitted keys stay omitted),
            or failure with a formatted error string

        Raises:
            SchemaError: If the model is unknown
        """
        validator = self.get_or_build_model_validator(model, registry, partial=partial)
        try:
            instance = validator.model_validate(data)
        except PydanticValidationError as exc:
            error, issues = format_validation_error(exc)
            return ValidationOutcome.fail(error, issues)
        return ValidationOutcome.ok(instance.model_dump(by_alias=True, exclude_unset=True))

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def clear_cache(self) -> None:
        self._cache.clear()

    def update_cache_config(self, **changes: Any) -> CacheConfig:
        return self._cache.update_config(**changes)
