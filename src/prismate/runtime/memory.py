"""
In-memory data client.

A reference implementation of the delegate interface backed by plain dicts.
Used for tests, demos and ``prismate serve --memory``; not a storage engine.
Supports equality filters, ordering, take/skip, field selection and simple
aggregates.
"""

from __future__ import annotations

import copy
import itertools
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from prismate.core.strings import to_model_key


class RecordNotFoundError(LookupError):
    """Raised when an update or delete matches no record."""


class RecordConflictError(ValueError):
    """Raised when a create reuses an existing identifier."""


def _matches(record: Mapping[str, Any], where: Mapping[str, Any] | None) -> bool:
    if not where:
        return True
    for key, expected in where.items():
        if isinstance(expected, Mapping) and "equals" in expected:
            expected = expected["equals"]
        actual = record.get(key)
        # Path parameters arrive as strings; "7" must find id 7
        if actual != expected and str(actual) != str(expected):
            return False
    return True


def _sort_key(value: Any) -> tuple[bool, Any]:
    return (value is None, value if value is not None else 0)


class InMemoryDelegate:
    """Delegate for one model, storing records by id."""

    def __init__(self, model: str, id_field: str = "id"):
        self.model = model
        self.id_field = id_field
        self._records: dict[Any, dict[str, Any]] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._records)

    def _select(self, records: Iterable[dict[str, Any]], where: Any) -> list[dict[str, Any]]:
        return [r for r in records if _matches(r, where)]

    def _find_one(self, where: Any) -> dict[str, Any] | None:
        for record in self._records.values():
            if _matches(record, where):
                return record
        return None

    def _next_id(self) -> int:
        # Skip identifiers that callers supplied explicitly
        candidate = next(self._ids)
        while candidate in self._records:
            candidate = next(self._ids)
        return candidate

    async def create(self, args: dict[str, Any]) -> dict[str, Any]:
        record = copy.deepcopy(dict(args.get("data") or {}))
        if record.get(self.id_field) is None:
            record[self.id_field] = self._next_id()
        elif record[self.id_field] in self._records:
            raise RecordConflictError(
                f"{self.model} record with {self.id_field}={record[self.id_field]!r} already exists"
            )
        self._records[record[self.id_field]] = record
        return copy.deepcopy(record)

    async def find_many(self, args: dict[str, Any]) -> list[dict[str, Any]]:
        records = self._select(self._records.values(), args.get("where"))

        order_by = args.get("order_by")
        if order_by:
            clauses = order_by if isinstance(order_by, list) else [order_by]
            # Stable sorts applied last clause first give multi-key ordering
            for clause in reversed(clauses):
                for field, direction in reversed(list(clause.items())):
                    if isinstance(direction, Mapping):
                        direction = direction.get("sort")
                    # Relation ordering is not supported here
                    if direction not in ("asc", "desc"):
                        continue
                    records.sort(
                        key=lambda r, f=field: _sort_key(r.get(f)),
                        reverse=direction == "desc",
                    )

        skip = args.get("skip") or 0
        take = args.get("take")
        records = records[skip:] if take is None else records[skip : skip + take]

        select = args.get("select")
        if select:
            records = [{k: v for k, v in r.items() if select.get(k)} for r in records]
        return copy.deepcopy(records)

    async def find_unique(self, args: dict[str, Any]) -> dict[str, Any] | None:
        record = self._find_one(args.get("where"))
        return copy.deepcopy(record) if record is not None else None

    async def update(self, args: dict[str, Any]) -> dict[str, Any]:
        record = self._find_one(args.get("where"))
        if record is None:
            raise RecordNotFoundError(f"No {self.model} record matches {args.get('where')!r}")
        record.update(copy.deepcopy(dict(args.get("data") or {})))
        return copy.deepcopy(record)

    async def delete(self, args: dict[str, Any]) -> dict[str, Any]:
        record = self._find_one(args.get("where"))
        if record is None:
            raise RecordNotFoundError(f"No {self.model} record matches {args.get('where')!r}")
        del self._records[record[self.id_field]]
        return record

    async def count(self, args: dict[str, Any]) -> int:
        return len(self._select(self._records.values(), args.get("where")))

    async def aggregate(self, args: dict[str, Any]) -> dict[str, Any]:
        records = self._select(self._records.values(), args.get("where"))
        result: dict[str, Any] = {}
        if args.get("_count"):
            result["_count"] = len(records)
        for op in ("_avg", "_sum", "_min", "_max"):
            fields = args.get(op)
            if not fields:
                continue
            result[op] = {}
            for field, enabled in fields.items():
                if not enabled:
                    continue
                values = [r[field] for r in records if isinstance(r.get(field), int | float)]
                result[op][field] = _aggregate(op, values)
        return result


def _aggregate(op: str, values: list[float]) -> float | None:
    if not values:
        return 0 if op == "_sum" else None
    if op == "_avg":
        return sum(values) / len(values)
    if op == "_sum":
        return sum(values)
    if op == "_min":
        return min(values)
    return max(values)


class InMemoryClient(Mapping[str, InMemoryDelegate]):
    """
    Mapping of canonical model name -> InMemoryDelegate.

    Example:
        >>> client = InMemoryClient(["User", "Post"])
        >>> list(client)
        ['user', 'post']
    """

    def __init__(self, models: Iterable[str] = ()):
        self._delegates: dict[str, InMemoryDelegate] = {}
        for model in models:
            self.add_model(model)

    def add_model(self, model: str, id_field: str = "id") -> InMemoryDelegate:
        key = to_model_key(model)
        delegate = self._delegates.setdefault(key, InMemoryDelegate(key, id_field))
        return delegate

    def __getitem__(self, model: str) -> InMemoryDelegate:
        return self._delegates[model]

    def __iter__(self) -> Iterator[str]:
        return iter(self._delegates)

    def __len__(self) -> int:
        return len(self._delegates)
