"""
Exception handlers for prismate applications.

Maps the prismate error taxonomy onto HTTP responses:
- ValidationError: 422 with field issues
- SchemaError: 404 (unknown model or field)
- OperationError: 400 (delegate lacks the operation)
- ClientError: 503 (no data client configured)
- RecordNotFoundError: 404
- RecordConflictError: 409
- any other PrismateError: 500
- HTTPException: its own status, same envelope
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from prismate.core.errors import (
    ClientError,
    OperationError,
    PrismateError,
    SchemaError,
    ValidationError,
)
from prismate.runtime.logging import get_api_logger, log_with_context
from prismate.runtime.memory import RecordConflictError, RecordNotFoundError

STATUS_CODES: dict[type[PrismateError], int] = {
    ValidationError: 422,
    SchemaError: 404,
    OperationError: 400,
    ClientError: 503,
}


def error_response(message: str, error_type: str, status_code: int, **extra: Any) -> JSONResponse:
    """Build the ``{"success": false, ...}`` envelope."""
    content: dict[str, Any] = {"success": False, "error": message, "type": error_type}
    content.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=status_code, content=content)


def status_for(exc: PrismateError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register prismate exception handlers on a FastAPI application.

    Args:
        app: FastAPI application instance
    """
    logger = get_api_logger()

    @app.exception_handler(PrismateError)
    async def prismate_error_handler(request: Request, exc: PrismateError) -> JSONResponse:
        status_code = status_for(exc)
        log_with_context(
            logger,
            logging.WARNING if status_code < 500 else logging.ERROR,
            f"API error: {exc.message}",
            method=request.method,
            path=request.url.path,
            type=exc.code,
            status=status_code,
        )
        issues = exc.issues if isinstance(exc, ValidationError) and exc.issues else None
        return error_response(exc.message, exc.code, status_code, issues=issues)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = error_response(str(exc.detail), "HTTP_ERROR", exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError) -> JSONResponse:
        log_with_context(
            logger, logging.INFO, "Record not found", method=request.method, path=request.url.path
        )
        return error_response(str(exc), "NOT_FOUND", 404)

    @app.exception_handler(RecordConflictError)
    async def conflict_handler(request: Request, exc: RecordConflictError) -> JSONResponse:
        log_with_context(
            logger, logging.INFO, "Record conflict", method=request.method, path=request.url.path
        )
        return error_response(str(exc), "CONFLICT", 409)
