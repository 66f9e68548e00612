"""Error taxonomy shared by the engines, the API layer and the client.

Every error carries the HTTP status and machine-readable code it maps to,
so route handlers only raise and the app-level handlers format the envelope.
"""

from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """Base error with HTTP status, code and optional details."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "INTERNAL_ERROR",
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details


class ValidationError(ApiError):
    """Malformed input or an invariant violation (400)."""

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, 400, "VALIDATION_ERROR", details)


class NotFoundError(ApiError):
    """Referenced entity does not exist (404)."""

    def __init__(self, resource: str, entity_id: str | None = None) -> None:
        message = f"{resource} with ID {entity_id} not found" if entity_id else f"{resource} not found"
        super().__init__(message, 404, "NOT_FOUND")
        self.resource = resource
        self.entity_id = entity_id


class ConflictError(ApiError):
    """Assignment precondition violated or duplicate key (409)."""

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, 409, "CONFLICT", details)


class UnauthorizedError(ApiError):
    def __init__(self, message: str = "Unauthorized access") -> None:
        super().__init__(message, 401, "UNAUTHORIZED")


class ForbiddenError(ApiError):
    def __init__(self, message: str = "Access forbidden") -> None:
        super().__init__(message, 403, "FORBIDDEN")


class InternalError(ApiError):
    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(message, 500, "INTERNAL_ERROR")


class RequestTimeoutError(ApiError):
    def __init__(self, message: str = "Request timeout") -> None:
        super().__init__(message, 408, "TIMEOUT")
