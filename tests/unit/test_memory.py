"""Tests for the in-memory data client."""

from __future__ import annotations

import pytest

from prismate.runtime.memory import (
    InMemoryClient,
    InMemoryDelegate,
    RecordConflictError,
    RecordNotFoundError,
)


class TestInMemoryDelegate:
    @pytest.mark.asyncio
    async def test_create_assigns_incrementing_ids(self) -> None:
        delegate = InMemoryDelegate("user")
        first = await delegate.create({"data": {"name": "a"}})
        second = await delegate.create({"data": {"name": "b"}})
        assert (first["id"], second["id"]) == (1, 2)

    @pytest.mark.asyncio
    async def test_create_keeps_supplied_id(self) -> None:
        delegate = InMemoryDelegate("user", id_field="uuid")
        record = await delegate.create({"data": {"uuid": "u-1"}})
        assert record == {"uuid": "u-1"}

    @pytest.mark.asyncio
    async def test_generated_ids_skip_supplied_ones(self) -> None:
        delegate = InMemoryDelegate("user")
        await delegate.create({"data": {"id": 1, "name": "a"}})
        generated = await delegate.create({"data": {"name": "b"}})
        assert generated["id"] == 2
        assert len(delegate) == 2
        assert (await delegate.find_unique({"where": {"id": 1}}))["name"] == "a"

    @pytest.mark.asyncio
    async def test_duplicate_id_raises_conflict(self) -> None:
        delegate = InMemoryDelegate("user")
        await delegate.create({"data": {"name": "a"}})
        with pytest.raises(RecordConflictError):
            await delegate.create({"data": {"id": 1, "name": "b"}})
        assert (await delegate.find_unique({"where": {"id": 1}}))["name"] == "a"

    @pytest.mark.asyncio
    async def test_relation_order_by_is_ignored(self) -> None:
        delegate = InMemoryDelegate("post")
        for title in ("b", "a"):
            await delegate.create({"data": {"title": title}})
        records = await delegate.find_many({"order_by": {"author": {"name": "asc"}}})
        assert [r["title"] for r in records] == ["b", "a"]
        records = await delegate.find_many({"order_by": {"title": {"sort": "asc"}}})
        assert [r["title"] for r in records] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self) -> None:
        delegate = InMemoryDelegate("user")
        record = await delegate.create({"data": {"name": "a"}})
        record["name"] = "mutated"
        assert (await delegate.find_unique({"where": {"id": 1}}))["name"] == "a"

    @pytest.mark.asyncio
    async def test_find_many_filters_orders_and_pages(self) -> None:
        delegate = InMemoryDelegate("post")
        for title, views in (("b", 10), ("a", 30), ("c", 20)):
            await delegate.create({"data": {"title": title, "views": views}})
        ordered = await delegate.find_many({"order_by": {"views": "desc"}})
        assert [r["title"] for r in ordered] == ["a", "c", "b"]
        page = await delegate.find_many({"order_by": {"title": "asc"}, "skip": 1, "take": 1})
        assert [r["title"] for r in page] == ["b"]
        filtered = await delegate.find_many({"where": {"title": {"equals": "c"}}})
        assert [r["views"] for r in filtered] == [20]

    @pytest.mark.asyncio
    async def test_select(self) -> None:
        delegate = InMemoryDelegate("post")
        await delegate.create({"data": {"title": "a", "views": 1}})
        assert await delegate.find_many({"select": {"title": True}}) == [{"title": "a"}]

    @pytest.mark.asyncio
    async def test_string_ids_match_integer_ids(self) -> None:
        delegate = InMemoryDelegate("user")
        await delegate.create({"data": {"name": "a"}})
        assert await delegate.find_unique({"where": {"id": "1"}}) is not None

    @pytest.mark.asyncio
    async def test_update_and_delete(self) -> None:
        delegate = InMemoryDelegate("user")
        await delegate.create({"data": {"name": "a"}})
        updated = await delegate.update({"where": {"id": 1}, "data": {"name": "b"}})
        assert updated == {"id": 1, "name": "b"}
        deleted = await delegate.delete({"where": {"id": 1}})
        assert deleted["name"] == "b"
        assert len(delegate) == 0

    @pytest.mark.asyncio
    async def test_missing_record_raises(self) -> None:
        delegate = InMemoryDelegate("user")
        with pytest.raises(RecordNotFoundError):
            await delegate.update({"where": {"id": 9}, "data": {}})
        with pytest.raises(RecordNotFoundError):
            await delegate.delete({"where": {"id": 9}})

    @pytest.mark.asyncio
    async def test_count_and_aggregate(self) -> None:
        delegate = InMemoryDelegate("post")
        for views in (10, 20, 30):
            await delegate.create({"data": {"views": views}})
        assert await delegate.count({}) == 3
        assert await delegate.count({"where": {"views": 20}}) == 1
        result = await delegate.aggregate(
            {"_count": True, "_avg": {"views": True}, "_max": {"views": True}}
        )
        assert result == {"_count": 3, "_avg": {"views": 20.0}, "_max": {"views": 30}}

    @pytest.mark.asyncio
    async def test_aggregate_over_no_rows(self) -> None:
        delegate = InMemoryDelegate("post")
        result = await delegate.aggregate({"_sum": {"views": True}, "_min": {"views": True}})
        assert result == {"_sum": {"views": 0}, "_min": {"views": None}}


class TestInMemoryClient:
    def test_models_are_canonical(self) -> None:
        client = InMemoryClient(["User", "BlogPost"])
        assert list(client) == ["user", "blogPost"]
        assert isinstance(client["user"], InMemoryDelegate)

    def test_add_model_is_idempotent(self) -> None:
        client = InMemoryClient()
        first = client.add_model("User")
        assert client.add_model("user") is first
        assert len(client) == 1
