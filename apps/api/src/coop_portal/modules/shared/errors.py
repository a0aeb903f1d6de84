"""
Service Errors

Base exception hierarchy raised by every service module. Routers translate
these into ``HTTPException`` responses with ``{"error", "message"}`` detail.
"""

import logging
from uuid import UUID

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(ServiceError):
    """Raised when a record does not exist (or is outside the caller's scope)."""

    def __init__(self, entity: str, entity_id: UUID | str | None = None):
        message = f"{entity} {entity_id} not found" if entity_id else f"{entity} not found"
        super().__init__(
            message=message,
            error_code=f"{entity.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=404,
        )


class ConflictError(ServiceError):
    """Raised on duplicates (member number, county code, cooperative name)."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(message=message, error_code=error_code, status_code=409)


class ValidationFailedError(ServiceError):
    """Raised when field-level validation fails. Carries a field -> message map."""

    def __init__(self, errors: dict[str, str], message: str | None = None):
        self.errors = errors
        super().__init__(
            message=message or "Please correct the highlighted fields.",
            error_code="VALIDATION_FAILED",
            status_code=422,
        )


class PermissionDeniedError(ServiceError):
    """Raised when the caller may not act on a specific record."""

    def __init__(self, message: str = "You do not have permission to perform this action."):
        super().__init__(message=message, error_code="PERMISSION_DENIED", status_code=403)


class UpstreamServiceError(ServiceError):
    """Raised when storage or an external agency fails."""

    def __init__(self, message: str, error_code: str = "UPSTREAM_SERVICE_ERROR"):
        super().__init__(message=message, error_code=error_code, status_code=502)


def raise_http_error(e: ServiceError) -> None:
    """Convert a service error into an HTTPException."""
    detail: dict = {
        "error": e.error_code,
        "message": e.message,
    }
    if isinstance(e, ValidationFailedError):
        detail["fields"] = e.errors
    raise HTTPException(status_code=e.status_code, detail=detail)


def raise_internal_error(e: Exception, action: str) -> None:
    """Log an unexpected exception and raise a generic 500."""
    logger.exception(f"Error {action}: {e}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again.",
        },
    ) from e
