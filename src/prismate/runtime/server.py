"""
Runtime server - creates and runs a FastAPI application over a PrismateService.

This module provides the main entry point for serving a data model over HTTP.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fastapi import FastAPI

from prismate._version import get_version
from prismate.runtime.cache import CacheConfig
from prismate.runtime.exception_handlers import register_exception_handlers
from prismate.runtime.memory import InMemoryClient
from prismate.runtime.routes import TokenVerifier, create_model_router
from prismate.runtime.schema_extractor import load_data_model
from prismate.runtime.service import PrismateService
from prismate.specs.validation import UpdateMode

logger = logging.getLogger(__name__)


# =============================================================================
# Server Configuration
# =============================================================================


@dataclass
class ServerConfig:
    """
    Configuration for a prismate application.

    Groups all initialization options into a single object for cleaner APIs.
    """

    # Data model
    data_model_path: Path | None = None

    # Authentication (routes are open when no token is configured)
    admin_token: str | None = None

    # Caching and validation
    cache: CacheConfig = field(default_factory=CacheConfig)
    update_mode: UpdateMode = UpdateMode.FULL

    # Logging
    log_dir: Path | None = None
    log_level: str = "INFO"

    # Serving
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ServerConfig:
        """
        Build a configuration from ``PRISMATE_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``
        """
        env = os.environ if environ is None else environ
        defaults = CacheConfig()

        data_model = env.get("PRISMATE_DATA_MODEL")
        log_dir = env.get("PRISMATE_LOG_DIR")
        max_size = env.get("PRISMATE_CACHE_MAX_SIZE")
        ttl_ms = env.get("PRISMATE_CACHE_TTL_MS")

        return cls(
            data_model_path=Path(data_model) if data_model else None,
            admin_token=env.get("PRISMATE_ADMIN_TOKEN") or env.get("ADMIN_TOKEN") or None,
            cache=CacheConfig(
                max_size=int(max_size) if max_size else defaults.max_size,
                ttl_ms=int(ttl_ms) if ttl_ms else defaults.ttl_ms,
            ),
            update_mode=UpdateMode(env.get("PRISMATE_UPDATE_MODE", UpdateMode.FULL.value).lower()),
            log_dir=Path(log_dir) if log_dir else None,
            log_level=env.get("PRISMATE_LOG_LEVEL", "INFO").upper(),
            host=env.get("PRISMATE_HOST", "127.0.0.1"),
            port=int(env.get("PRISMATE_PORT", "8000")),
        )


# =============================================================================
# Application Builder
# =============================================================================


def create_service(config: ServerConfig, client: Any = None) -> PrismateService:
    """Build a service from the configured data model file."""
    data_model = load_data_model(config.data_model_path) if config.data_model_path else None
    return PrismateService(
        client,
        data_model,
        cache_config=config.cache,
        update_mode=config.update_mode,
    )


def memory_client_for(config: ServerConfig) -> InMemoryClient:
    """In-memory client exposing every model of the configured data model."""
    if config.data_model_path is None:
        return InMemoryClient()
    description = load_data_model(config.data_model_path)
    client = InMemoryClient()
    for model in description.models:
        id_fields = [f["name"] for f in model.fields if f.get("isId") and "name" in f]
        client.add_model(model.name, id_fields[0] if len(id_fields) == 1 else "id")
    return client


def create_app(
    service: PrismateService | None = None,
    *,
    config: ServerConfig | None = None,
    client: Any = None,
    verify_token: TokenVerifier | None = None,
) -> FastAPI:
    """
    Create a FastAPI application serving a PrismateService.

    Args:
        service: Service to expose; built from ``config`` and ``client`` when omitted
        config: Server configuration (defaults to ServerConfig())
        client: Data client for a service built from ``config``
        verify_token: Custom bearer-token check

    Returns:
        FastAPI application

    Example:
        >>> app = create_app(PrismateService(client, dmmf))
        >>> # Run with uvicorn: uvicorn mymodule:app
    """
    config = config or ServerConfig()
    if service is None:
        service = create_service(config, client)

    version = get_version()
    app = FastAPI(title="Prismate API", version=version)
    app.state.service = service

    register_exception_handlers(app)
    app.include_router(
        create_model_router(
            service,
            verify_token=verify_token,
            admin_token=config.admin_token,
            version=version,
        )
    )

    @app.on_event("shutdown")
    async def dispose_service() -> None:
        service.dispose()

    logger.info("Serving %d model(s)", len(service.get_available_models()))
    return app


def run_app(config: ServerConfig, client: Any = None, reload: bool = False) -> None:
    """
    Run a prismate application with uvicorn.

    Args:
        config: Server configuration
        client: Data client; the API degrades to empty reads without one
        reload: Enable auto-reload
    """
    import uvicorn

    app = create_app(config=config, client=client)
    uvicorn.run(app, host=config.host, port=config.port, reload=reload)
