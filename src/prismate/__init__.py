"""
Prismate - schema-driven validation and CRUD over model-oriented data clients.

Reads a data-model description once, derives a read-only schema registry,
builds cached Pydantic validators per model, and runs validate-then-write
operations against whatever data client is attached.
"""

from prismate._version import get_version
from prismate.core.errors import (
    CacheError,
    ClientError,
    OperationError,
    PrismateError,
    SchemaError,
    ValidationError,
)
from prismate.runtime.cache import CacheConfig
from prismate.runtime.database import PrismateDatabase
from prismate.runtime.memory import InMemoryClient
from prismate.runtime.schema_extractor import load_data_model
from prismate.runtime.service import PrismateService
from prismate.runtime.validator_builder import ValidatorBuilder
from prismate.specs import QueryBuilder, QueryOptions, UpdateMode, ValidationOutcome

__version__ = get_version()

__all__ = [
    "__version__",
    "CacheConfig",
    "CacheError",
    "ClientError",
    "InMemoryClient",
    "OperationError",
    "PrismateDatabase",
    "PrismateError",
    "PrismateService",
    "QueryBuilder",
    "QueryOptions",
    "SchemaError",
    "UpdateMode",
    "ValidationError",
    "ValidationOutcome",
    "ValidatorBuilder",
    "load_data_model",
]
