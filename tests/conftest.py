"""Shared pytest fixtures for prismate tests."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import pytest

from prismate.runtime.memory import InMemoryClient

_DATAMODEL: dict[str, Any] = {
    "datamodel": {
        "enums": [{"name": "Role", "values": [{"name": "USER"}, {"name": "ADMIN"}]}],
        "models": [
            {
                "name": "User",
                "fields": [
                    {
                        "name": "id",
                        "kind": "scalar",
                        "type": "Int",
                        "isId": True,
                        "isRequired": True,
                        "hasDefaultValue": True,
                    },
                    {
                        "name": "email",
                        "kind": "scalar",
                        "type": "String",
                        "isRequired": True,
                        "isUnique": True,
                    },
                    {"name": "name", "kind": "scalar", "type": "String", "isRequired": True},
                    {"name": "age", "kind": "scalar", "type": "Int", "isRequired": False},
                    {
                        "name": "role",
                        "kind": "enum",
                        "type": "Role",
                        "isRequired": True,
                        "hasDefaultValue": True,
                    },
                    {"name": "tags", "kind": "scalar", "type": "String", "isList": True},
                    {
                        "name": "posts",
                        "kind": "object",
                        "type": "Post",
                        "isList": True,
                        "relationName": "PostToUser",
                    },
                    {
                        "name": "createdAt",
                        "kind": "scalar",
                        "type": "DateTime",
                        "isRequired": True,
                        "hasDefaultValue": True,
                    },
                ],
            },
            {
                "name": "Post",
                "fields": [
                    {
                        "name": "id",
                        "kind": "scalar",
                        "type": "Int",
                        "isId": True,
                        "hasDefaultValue": True,
                    },
                    {"name": "title", "kind": "scalar", "type": "String", "isRequired": True},
                    {
                        "name": "published",
                        "kind": "scalar",
                        "type": "Boolean",
                        "isRequired": True,
                        "hasDefaultValue": True,
                    },
                    {"name": "views", "kind": "scalar", "type": "Int", "isRequired": False},
                    {
                        "name": "author",
                        "kind": "object",
                        "type": "User",
                        "isRequired": True,
                        "relationName": "PostToUser",
                        "relationFromFields": ["authorId"],
                        "relationToFields": ["id"],
                    },
                    {"name": "authorId", "kind": "scalar", "type": "Int", "isRequired": True},
                ],
            },
        ],
    }
}


@pytest.fixture
def datamodel() -> dict[str, Any]:
    """Return a fresh User/Post data-model description."""
    return copy.deepcopy(_DATAMODEL)


@pytest.fixture
def datamodel_file(tmp_path: Path, datamodel: dict[str, Any]) -> Path:
    """Write the data-model description to a JSON file."""
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(datamodel))
    return path


@pytest.fixture
def memory_client() -> InMemoryClient:
    """Return an in-memory client exposing user and post."""
    return InMemoryClient(["User", "Post"])
