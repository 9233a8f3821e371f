"""
Prismate runtime.

This module provides:
- Schema extraction (SchemaRegistry from a data-model description)
- Validator generation (Pydantic models from field metadata, cached)
- The data-access facade and the PrismateService orchestrator
- A FastAPI transport and an in-memory reference client

Example usage:
    >>> from prismate.runtime import PrismateService, InMemoryClient
    >>>
    >>> client = InMemoryClient(["User", "Post"])
    >>> service = PrismateService(client, load_data_model("schema.json"))
    >>> await service.create_model("user", {"name": "Jane", "email": "jane@x.com"})
"""

from prismate.runtime.cache import CacheConfig, CacheStats, SchemaCache
from prismate.runtime.database import ModelDelegate, Operation, PrismateDatabase
from prismate.runtime.memory import (
    InMemoryClient,
    InMemoryDelegate,
    RecordConflictError,
    RecordNotFoundError,
)
from prismate.runtime.schema_extractor import (
    build_model_definition,
    build_registry,
    export_registry,
    is_model_key,
    list_model_names,
    load_data_model,
)
from prismate.runtime.server import ServerConfig, create_app, run_app
from prismate.runtime.service import PrismateService
from prismate.runtime.validator_builder import (
    RelationStub,
    ValidatorBuilder,
    build_model_validator,
    map_field_to_validator,
)

__all__ = [
    # Cache
    "CacheConfig",
    "CacheStats",
    "SchemaCache",
    # Schema extraction
    "build_model_definition",
    "build_registry",
    "export_registry",
    "is_model_key",
    "list_model_names",
    "load_data_model",
    # Validation
    "RelationStub",
    "ValidatorBuilder",
    "build_model_validator",
    "map_field_to_validator",
    # Data access
    "ModelDelegate",
    "Operation",
    "PrismateDatabase",
    "InMemoryClient",
    "InMemoryDelegate",
    "RecordConflictError",
    "RecordNotFoundError",
    # Service
    "PrismateService",
    # Server
    "ServerConfig",
    "create_app",
    "run_app",
]
