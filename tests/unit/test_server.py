"""Tests for server configuration and app assembly."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from prismate.runtime.memory import InMemoryClient
from prismate.runtime.server import ServerConfig, create_app, create_service, memory_client_for
from prismate.specs.validation import UpdateMode


class TestServerConfig:
    def test_defaults(self) -> None:
        config = ServerConfig.from_env({})
        assert config.data_model_path is None
        assert config.admin_token is None
        assert config.cache.max_size == 200
        assert config.cache.ttl_ms == 300_000
        assert config.update_mode == UpdateMode.FULL
        assert (config.host, config.port) == ("127.0.0.1", 8000)

    def test_environment(self) -> None:
        config = ServerConfig.from_env(
            {
                "PRISMATE_DATA_MODEL": "schema.json",
                "PRISMATE_ADMIN_TOKEN": "secret",
                "PRISMATE_CACHE_MAX_SIZE": "10",
                "PRISMATE_CACHE_TTL_MS": "500",
                "PRISMATE_UPDATE_MODE": "PARTIAL",
                "PRISMATE_LOG_DIR": "logs",
                "PRISMATE_LOG_LEVEL": "debug",
                "PRISMATE_PORT": "9000",
            }
        )
        assert config.data_model_path == Path("schema.json")
        assert config.admin_token == "secret"
        assert (config.cache.max_size, config.cache.ttl_ms) == (10, 500)
        assert config.update_mode == UpdateMode.PARTIAL
        assert config.log_dir == Path("logs")
        assert config.log_level == "DEBUG"
        assert config.port == 9000

    def test_admin_token_fallback(self) -> None:
        assert ServerConfig.from_env({"ADMIN_TOKEN": "legacy"}).admin_token == "legacy"

    def test_invalid_update_mode(self) -> None:
        with pytest.raises(ValueError):
            ServerConfig.from_env({"PRISMATE_UPDATE_MODE": "sometimes"})


class TestAppAssembly:
    def test_service_from_config(self, datamodel_file: Path) -> None:
        config = ServerConfig(data_model_path=datamodel_file, update_mode=UpdateMode.PARTIAL)
        service = create_service(config, InMemoryClient(["User"]))
        assert service.get_available_models() == ["user"]
        assert service.update_mode == UpdateMode.PARTIAL

    def test_memory_client_covers_every_model(self, datamodel_file: Path) -> None:
        client = memory_client_for(ServerConfig(data_model_path=datamodel_file))
        assert list(client) == ["user", "post"]
        assert client["user"].id_field == "id"

    def test_memory_client_without_data_model(self) -> None:
        assert len(memory_client_for(ServerConfig())) == 0

    def test_app_exposes_service(self, datamodel: dict[str, Any]) -> None:
        from prismate.runtime.service import PrismateService

        service = PrismateService(None, datamodel)
        app = create_app(service)
        assert app.state.service is service
        assert app.title == "Prismate API"
