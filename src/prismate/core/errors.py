"""
Error types for prismate schema derivation, validation and data access.
"""

from __future__ import annotations

from typing import Any

VALIDATION_ERROR = "VALIDATION_ERROR"
SCHEMA_ERROR = "SCHEMA_ERROR"
CLIENT_ERROR = "CLIENT_ERROR"
OPERATION_ERROR = "OPERATION_ERROR"
CACHE_ERROR = "CACHE_ERROR"
UNKNOWN_ERROR = "UNKNOWN_ERROR"


class PrismateError(Exception):
    """Base exception for all prismate errors."""

    code = UNKNOWN_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        self.message = message
        self.details = {k: v for k, v in (details or {}).items() if v is not None}
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        payload: dict[str, Any] = {"error": self.message, "type": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(PrismateError):
    """
    Raised when a payload fails schema validation.

    Always recoverable by the caller: fix the payload and retry.
    """

    code = VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        issues: list[dict[str, Any]] | None = None,
        cause: BaseException | None = None,
    ):
        self.field = field
        self.value = value
        self.issues = issues or []
        super().__init__(
            message,
            {"field": field, "value": value, "issues": self.issues or None},
            cause,
        )


class SchemaError(PrismateError):
    """
    Raised when a requested model or field is absent from the registry.

    Examples:
    - Validating a payload for an unknown model
    - Asking for a field a model does not declare
    """

    code = SCHEMA_ERROR

    def __init__(
        self,
        message: str,
        model: str | None = None,
        field: str | None = None,
        cause: BaseException | None = None,
    ):
        self.model = model
        self.field = field
        super().__init__(message, {"model": model, "field": field}, cause)


class ClientError(PrismateError):
    """Raised when a write is attempted without a data client attached."""

    code = CLIENT_ERROR

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        cause: BaseException | None = None,
    ):
        self.operation = operation
        super().__init__(message, {"operation": operation}, cause)


class OperationError(PrismateError):
    """Raised when the delegate for a model lacks the requested operation."""

    code = OPERATION_ERROR

    def __init__(
        self,
        message: str,
        operation: str,
        model: str | None = None,
        cause: BaseException | None = None,
    ):
        self.operation = operation
        self.model = model
        super().__init__(message, {"operation": operation, "model": model}, cause)


class CacheError(PrismateError):
    """
    Raised when a cache invariant is violated.

    Never expected in normal operation; indicates a bug in eviction or
    expiry bookkeeping rather than a data problem.
    """

    code = CACHE_ERROR

    def __init__(
        self,
        message: str,
        operation: str,
        cause: BaseException | None = None,
    ):
        self.operation = operation
        super().__init__(message, {"operation": operation}, cause)
