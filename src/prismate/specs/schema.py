"""
Schema specification types.

Defines the normalized field metadata derived from a raw data-model
description, the read-only registry that holds it, and the summary shapes
exposed for introspection.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from prismate.core.strings import to_model_key

# =============================================================================
# Field Metadata
# =============================================================================


class FieldKind(str, Enum):
    """Field kinds reported by the data-model description."""

    SCALAR = "scalar"
    OBJECT = "object"
    ENUM = "enum"
    UNSUPPORTED = "unsupported"


class FieldMetadata(BaseModel):
    """
    Normalized description of one field of one model.

    Accepts both the camelCase keys of a raw description (``isRequired``)
    and the snake_case attribute names (``is_required``).

    Attributes:
        name: Field name as declared
        type: Scalar type name (String, Int, ...), enum name, or related model name
        kind: scalar, object, enum or unsupported
        is_required: Field must be present (implied by is_id)
        is_list: Field holds a sequence
        relation_name: Set on relation fields
        has_default_value: The store fills the field when omitted
        enum_values: Known enum members, when the description lists them
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    name: str = Field(description="Field name")
    type: str = Field(description="Scalar, enum or related model type name")
    kind: FieldKind = Field(default=FieldKind.SCALAR, description="Field kind")
    is_required: bool = False
    is_list: bool = False
    is_unique: bool = False
    is_id: bool = False
    relation_name: str | None = None
    relation_from_fields: tuple[str, ...] | None = None
    relation_to_fields: tuple[str, ...] | None = None
    relation_on_delete: str | None = None
    relation_on_update: str | None = None
    default: Any = None
    has_default_value: bool = False
    enum_values: tuple[str, ...] | None = None

    @model_validator(mode="before")
    @classmethod
    def id_implies_required(cls, data: Any) -> Any:
        """An identifier field is always required."""
        if isinstance(data, Mapping):
            is_id = data.get("isId", data.get("is_id", False))
            if is_id:
                data = {k: v for k, v in data.items() if k not in ("isRequired", "is_required")}
                data["is_required"] = True
        return data

    @field_validator("kind", mode="before")
    @classmethod
    def unknown_kind_is_unsupported(cls, v: Any) -> Any:
        if isinstance(v, FieldKind):
            return v
        if isinstance(v, str) and v not in FieldKind._value2member_map_:
            return FieldKind.UNSUPPORTED
        return v

    @property
    def is_relation(self) -> bool:
        """Relation fields are never validated as leaf scalars."""
        return self.kind == FieldKind.OBJECT and bool(self.relation_name)

    @property
    def relation_target(self) -> str | None:
        """Canonical name of the related model for relation fields."""
        return to_model_key(self.type) if self.is_relation else None


# Read-only mapping of field name -> metadata, in declaration order.
ModelSchema = Mapping[str, FieldMetadata]


# =============================================================================
# Raw Description
# =============================================================================


class EnumDescription(BaseModel):
    """An enum declared by the data model."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    values: tuple[str, ...] = ()

    @field_validator("values", mode="before")
    @classmethod
    def value_names(cls, v: Any) -> Any:
        """Accept ``[{"name": "ADMIN"}]`` as well as ``["ADMIN"]``."""
        if isinstance(v, list | tuple):
            return tuple(item["name"] if isinstance(item, Mapping) else item for item in v)
        return v


class ModelDescription(BaseModel):
    """One model of the raw data-model description."""

    model_config = ConfigDict(extra="ignore")

    name: str
    fields: list[dict[str, Any]] = Field(default_factory=list)


class DataModelDescription(BaseModel):
    """
    Raw data-model description.

    Accepts the introspection document either wrapped
    (``{"datamodel": {"models": [...], "enums": [...]}}``) or bare
    (``{"models": [...]}``).
    """

    model_config = ConfigDict(extra="ignore")

    models: list[ModelDescription] = Field(default_factory=list)
    enums: list[EnumDescription] = Field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: Any) -> DataModelDescription:
        """Parse a raw description; anything without a model list is empty."""
        if isinstance(raw, DataModelDescription):
            return raw
        if not isinstance(raw, Mapping):
            return cls()
        datamodel = raw.get("datamodel", raw)
        if not isinstance(datamodel, Mapping) or not isinstance(datamodel.get("models"), list):
            return cls()
        return cls.model_validate(
            {"models": datamodel["models"], "enums": datamodel.get("enums") or []}
        )

    def enum_members(self) -> dict[str, tuple[str, ...]]:
        return {enum.name: enum.values for enum in self.enums}


# =============================================================================
# Registry
# =============================================================================


class SchemaRegistry(Mapping[str, ModelSchema]):
    """
    Canonical model name -> ModelSchema.

    Built once and read-only afterwards; rebuilding for a new description
    means constructing a new registry. Lookups normalize the requested name,
    so ``registry["User"]`` and ``registry["user"]`` hit the same entry.
    """

    def __init__(self, models: Mapping[str, Mapping[str, FieldMetadata]] | None = None):
        self._models: Mapping[str, ModelSchema] = MappingProxyType(
            {
                to_model_key(name): MappingProxyType(dict(fields))
                for name, fields in (models or {}).items()
            }
        )

    def __getitem__(self, name: str) -> ModelSchema:
        return self._models[to_model_key(name)]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and to_model_key(name) in self._models

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def __repr__(self) -> str:
        return f"SchemaRegistry(models={list(self._models)!r})"

    @property
    def model_names(self) -> tuple[str, ...]:
        return tuple(self._models)

    def get_field(self, model: str, field: str) -> FieldMetadata | None:
        schema = self.get(model)
        if schema is None:
            return None
        return schema.get(field)


# =============================================================================
# Introspection Shapes
# =============================================================================


class RelationRef(BaseModel):
    """A relation field and the canonical name of the model it points at."""

    model_config = ConfigDict(frozen=True)

    field: str
    target: str


class ModelDefinition(BaseModel):
    """Derived summary of one model: its fields and its relations."""

    model_config = ConfigDict(frozen=True)

    name: str
    fields: tuple[FieldMetadata, ...]
    relations: tuple[RelationRef, ...]


class ModelSummary(BaseModel):
    """Field and relation counts for one model."""

    model_config = ConfigDict(frozen=True)

    field_count: int
    relation_count: int
