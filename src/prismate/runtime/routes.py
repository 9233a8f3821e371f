"""
Route generator - REST routes over a PrismateService.

Routes:
    GET    /                               banner
    GET    /models                         available models
    GET    /models/schema/{model}          field metadata
    GET    /models/schema/{model}/fields   field names
    GET    /models/{model}                 list records
    GET    /models/{model}/{id}            one record
    POST   /models/{model}                 create
    PUT    /models/{model}/{id}            update
    DELETE /models/{model}/{id}            delete

Every route except the banner sits behind a bearer-token check.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from prismate.core.errors import SchemaError
from prismate.runtime.service import PrismateService
from prismate.specs.query import QueryOptions

TokenVerifier = Callable[[str, Request], bool | Awaitable[bool]]

_bearer = HTTPBearer(auto_error=False)


def success(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def static_token_verifier(admin_token: str | None) -> TokenVerifier:
    """Accept exactly ``admin_token``; accept everything when it is unset."""

    def verify(token: str, request: Request) -> bool:
        return admin_token is None or token == admin_token

    return verify


def create_auth_dependency(verify_token: TokenVerifier) -> Callable[..., Awaitable[None]]:
    """Build a dependency enforcing a bearer token through ``verify_token``."""

    async def require_token(
        request: Request,
        credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    ) -> None:
        token = credentials.credentials if credentials else ""
        verdict = verify_token(token, request)
        if inspect.isawaitable(verdict):
            verdict = await verdict
        if not verdict:
            raise HTTPException(
                status_code=401,
                detail="Unauthorized",
                headers={"WWW-Authenticate": "Bearer"},
            )

    return require_token


def parse_query_options(
    take: int | None = Query(None, ge=0, description="Page size"),
    skip: int | None = Query(None, ge=0, description="Offset"),
    order_by: str | None = Query(None, description="Sort as field or field:desc"),
    where: str | None = Query(None, description="JSON-encoded filter object"),
) -> QueryOptions:
    """Turn list query parameters into QueryOptions."""
    filters = None
    if where:
        try:
            filters = json.loads(where)
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=400, detail=f"Invalid where filter: {e}") from e
        if not isinstance(filters, dict):
            raise HTTPException(status_code=400, detail="where filter must be a JSON object")

    ordering = None
    if order_by:
        field, _, direction = order_by.partition(":")
        direction = direction.lower() or "asc"
        if direction not in ("asc", "desc"):
            raise HTTPException(status_code=400, detail=f"Invalid sort direction: {direction}")
        ordering = {field: direction}

    return QueryOptions(where=filters, order_by=ordering, take=take, skip=skip)


def create_model_router(
    service: PrismateService,
    verify_token: TokenVerifier | None = None,
    admin_token: str | None = None,
    version: str = "0.0.0",
) -> APIRouter:
    """
    Create the REST router for a service.

    Args:
        service: Service executing the model operations
        verify_token: Custom token check; defaults to comparing with admin_token
        admin_token: Static bearer token; routes are open when both are unset
        version: Version reported by the banner route

    Returns:
        APIRouter to include in an application
    """
    router = APIRouter()
    auth = Depends(create_auth_dependency(verify_token or static_token_verifier(admin_token)))

    def require_model(model: str) -> str:
        if not service.has_model(model):
            raise SchemaError(f"Model '{model}' not found in schema registry", model=model)
        return model

    @router.get("/")
    async def banner() -> dict[str, Any]:
        return success({"message": "Prismate API", "version": version})

    @router.get("/models", dependencies=[auth])
    async def list_available_models() -> dict[str, Any]:
        return success({"models": service.get_available_models()})

    @router.get("/models/schema/{model}", dependencies=[auth])
    async def model_schema(model: str = Path(...)) -> dict[str, Any]:
        require_model(model)
        fields = service.get_model_schema(model)
        return success([f.model_dump(mode="json", by_alias=True) for f in fields])

    @router.get("/models/schema/{model}/fields", dependencies=[auth])
    async def model_fields(model: str = Path(...)) -> dict[str, Any]:
        require_model(model)
        return success(service.get_model_fields(model))

    @router.get("/models/{model}", dependencies=[auth])
    async def list_records(
        model: str = Path(...),
        options: QueryOptions = Depends(parse_query_options),
    ) -> dict[str, Any]:
        return success(await service.get_models(model, options))

    @router.get("/models/{model}/{id}", dependencies=[auth])
    async def read_record(model: str = Path(...), id: str = Path(...)) -> dict[str, Any]:
        record = await service.get_model(model, id)
        if record is None:
            raise HTTPException(status_code=404, detail="Not found")
        return success(record)

    @router.post("/models/{model}", dependencies=[auth])
    async def create_record(model: str = Path(...), data: Any = Body(...)) -> dict[str, Any]:
        return success(await service.create_model(model, data))

    @router.put("/models/{model}/{id}", dependencies=[auth])
    async def update_record(
        model: str = Path(...),
        id: str = Path(...),
        data: Any = Body(...),
    ) -> dict[str, Any]:
        return success(await service.update_model(model, id, data))

    @router.delete("/models/{model}/{id}", dependencies=[auth])
    async def delete_record(model: str = Path(...), id: str = Path(...)) -> dict[str, Any]:
        return success(await service.delete_model(model, id))

    return router
