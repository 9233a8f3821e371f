"""
Data-access facade - typed pass-through to an external data client.

The facade does not filter, sort or paginate anything itself. It resolves
the delegate for a model, checks that the delegate offers the requested
operation, forwards the arguments unchanged and shapes the failures:

- No client attached: reads degrade (``[]``, ``0``, ``None``), writes raise
  ClientError.
- Client attached but the model's delegate lacks the operation: raises
  OperationError.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError as PydanticValidationError

from prismate.core.errors import ClientError, OperationError, ValidationError
from prismate.core.strings import to_model_key
from prismate.runtime.schema_extractor import is_model_key, list_model_names
from prismate.specs.query import AggregateOptions, QueryOptions

logger = logging.getLogger(__name__)

DelegateMethod = Callable[[dict[str, Any]], Awaitable[Any]]


class Operation(str, Enum):
    """Operations a model delegate may expose."""

    CREATE = "create"
    FIND_MANY = "find_many"
    FIND_UNIQUE = "find_unique"
    UPDATE = "update"
    DELETE = "delete"
    COUNT = "count"
    AGGREGATE = "aggregate"


@runtime_checkable
class ModelDelegate(Protocol):
    """
    Storage operations for one model.

    Every method is optional; each takes a single arguments dict. Which
    ones exist is checked per call with ``PrismateDatabase.has_capability``.
    """

    async def create(self, args: dict[str, Any]) -> Any: ...

    async def find_many(self, args: dict[str, Any]) -> list[Any]: ...

    async def find_unique(self, args: dict[str, Any]) -> Any | None: ...

    async def update(self, args: dict[str, Any]) -> Any: ...

    async def delete(self, args: dict[str, Any]) -> Any: ...

    async def count(self, args: dict[str, Any]) -> int: ...

    async def aggregate(self, args: dict[str, Any]) -> Any: ...


def _coerce_options(
    options: QueryOptions | AggregateOptions | Mapping[str, Any] | None,
    options_type: type[QueryOptions] | type[AggregateOptions],
) -> dict[str, Any]:
    """Delegate arguments from typed or plain options; bad paging raises ValidationError."""
    if options is None:
        return {}
    if isinstance(options, QueryOptions | AggregateOptions):
        return options.to_args()
    try:
        return options_type.model_validate(dict(options)).to_args()
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ValidationError(
            f"Invalid query options: {field}: {first['msg']}", field=field, cause=exc
        ) from exc


def _options_args(options: QueryOptions | Mapping[str, Any] | None) -> dict[str, Any]:
    return _coerce_options(options, QueryOptions)


def _aggregate_args(options: AggregateOptions | Mapping[str, Any] | None) -> dict[str, Any]:
    return _coerce_options(options, AggregateOptions)


class PrismateDatabase:
    """
    Executes model operations against a pluggable data client.

    The client is either a mapping of model name -> delegate or an object
    holding delegates as attributes. The facade borrows the client; its
    connect/disconnect lifecycle stays with whoever created it.
    """

    def __init__(self, client: Any = None):
        """
        Args:
            client: Data client, or None when no backend is configured
        """
        self._client = client

    def _delegate_names(self) -> dict[str, str]:
        """Canonical model name -> the key or attribute the client uses."""
        keys = self._client.keys() if isinstance(self._client, Mapping) else dir(self._client)
        names: dict[str, str] = {}
        for key in keys:
            if isinstance(key, str) and is_model_key(key):
                names.setdefault(to_model_key(key), key)
        return names

    # -------------------------------------------------------------------------
    # Capability checks
    # -------------------------------------------------------------------------

    @property
    def client(self) -> Any:
        return self._client

    @property
    def has_client(self) -> bool:
        return self._client is not None

    def model_names(self) -> tuple[str, ...]:
        """Canonical names of the models the client exposes."""
        return list_model_names(self._client)

    def get_delegate(self, model: str) -> Any | None:
        if self._client is None:
            return None
        if not is_model_key(model):
            return None
        if isinstance(self._client, Mapping) and model in self._client:
            return self._client[model]
        name = self._delegate_names().get(to_model_key(model))
        if name is None:
            return None
        if isinstance(self._client, Mapping):
            return self._client.get(name)
        return getattr(self._client, name, None)

    def has_capability(self, model: str, operation: Operation | str) -> bool:
        """Check whether the model's delegate offers an operation."""
        return self._method(model, Operation(operation)) is not None

    def _method(self, model: str, operation: Operation) -> DelegateMethod | None:
        delegate = self.get_delegate(model)
        if delegate is None:
            return None
        method = getattr(delegate, operation.value, None)
        return method if callable(method) else None

    def _require(self, model: str, operation: Operation) -> DelegateMethod:
        if self._client is None:
            raise ClientError("Database client is not available", operation=operation.value)
        method = self._method(model, operation)
        if method is None:
            raise OperationError(
                f"Model '{model}' does not support {operation.value}",
                operation=operation.value,
                model=to_model_key(model),
            )
        return method

    def _degraded(self, model: str, operation: Operation) -> bool:
        """
        True when no client is attached.

        Read operations return an empty result in that case so listings
        render empty instead of failing on an unconfigured backend.
        """
        if self._client is None:
            logger.debug("No data client; %s on %r returns an empty result", operation.value, model)
            return True
        return False

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, model: str, data: Any) -> Any:
        method = self._require(model, Operation.CREATE)
        return await method({"data": data})

    async def update(self, model: str, where: Mapping[str, Any], data: Any) -> Any:
        method = self._require(model, Operation.UPDATE)
        return await method({"where": dict(where), "data": data})

    async def delete(self, model: str, where: Mapping[str, Any]) -> Any:
        method = self._require(model, Operation.DELETE)
        return await method({"where": dict(where)})

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def find_many(
        self,
        model: str,
        options: QueryOptions | Mapping[str, Any] | None = None,
    ) -> list[Any]:
        if self._degraded(model, Operation.FIND_MANY):
            return []
        method = self._require(model, Operation.FIND_MANY)
        return list(await method(_options_args(options)))

    async def find_unique(self, model: str, where: Mapping[str, Any]) -> Any | None:
        if self._degraded(model, Operation.FIND_UNIQUE):
            return None
        method = self._require(model, Operation.FIND_UNIQUE)
        return await method({"where": dict(where)})

    async def count(self, model: str, where: Mapping[str, Any] | None = None) -> int:
        if self._degraded(model, Operation.COUNT):
            return 0
        method = self._require(model, Operation.COUNT)
        args = {"where": dict(where)} if where is not None else {}
        return int(await method(args))

    async def aggregate(
        self,
        model: str,
        options: AggregateOptions | Mapping[str, Any] | None = None,
    ) -> Any | None:
        if self._degraded(model, Operation.AGGREGATE):
            return None
        method = self._require(model, Operation.AGGREGATE)
        return await method(_aggregate_args(options))

    def dispose(self) -> None:
        """Hook for future resource cleanup; safe to call repeatedly."""
        return None
