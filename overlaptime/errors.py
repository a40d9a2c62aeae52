"""Standardized error handling for the API.

This module provides:
1. Exception classes for the caller-facing error outcomes
2. The mapping from store failure reasons to those exceptions
3. Exception handlers for FastAPI

Usage:
    from overlaptime.errors import NotFoundError, error_for_reason

    if event is None:
        raise NotFoundError(detail="Event not found", event_id=event_id)
    if not result.ok:
        raise error_for_reason(result.reason)

    # Register handlers in main.py:
    from overlaptime.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from overlaptime.models.scheduling import FailureReason
from overlaptime.store.base import StoreError

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class for API errors."""

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: str | None = None,
        error_code: str | None = None,
        **context: Any,
    ) -> None:
        self.detail = detail or self.__class__.detail
        self.error_code = error_code
        self.context = context if context else None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            error_code=self.error_code,
            context=self.context,
        )


class NotFoundError(APIError):
    """Event or participant not found (404)."""

    status_code = 404
    error = "not_found"
    detail = "Resource not found"


class BadRequestError(APIError):
    """Bad request error (400)."""

    status_code = 400
    error = "bad_request"
    detail = "Invalid request"


class InvalidDateError(BadRequestError):
    """Date outside the event's range (400)."""

    error = "invalid_date"
    detail = "Date is not part of this event"


class ForbiddenError(APIError):
    """Edit secret does not match (403)."""

    status_code = 403
    error = "forbidden"
    detail = "Access denied"


class ServiceUnavailableError(APIError):
    """Service unavailable error (503)."""

    status_code = 503
    error = "service_unavailable"
    detail = "Service temporarily unavailable"


class DatabaseError(APIError):
    """Database error (500)."""

    status_code = 500
    error = "database_error"
    detail = "Database operation failed"


_REASON_ERRORS: dict[FailureReason, type[APIError]] = {
    FailureReason.NOT_FOUND: NotFoundError,
    FailureReason.FORBIDDEN: ForbiddenError,
    FailureReason.INVALID_DATE: InvalidDateError,
}


def error_for_reason(reason: FailureReason | None, **context: Any) -> APIError:
    """Translate a store failure reason into the caller-facing error."""
    if reason is None:
        return APIError(**context)
    return _REASON_ERRORS[reason](**context)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors."""
    logger.warning(
        "API error: %s (status=%d, path=%s)",
        exc.detail,
        exc.status_code,
        request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Infrastructure faults are reported without their internals."""
    logger.error("Store failure: %s (path=%s)", exc, request.url.path)
    return JSONResponse(
        status_code=DatabaseError.status_code,
        content=DatabaseError(detail="Storage unavailable, try again").to_response().model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)
