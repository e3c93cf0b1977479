from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int
    conflicts: list[dict[str, Any]] | None = None
    interval_ids: list[str] | None = None


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input, rejected before domain logic runs."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class AuthenticationError(AppError):
    """No caller identity was supplied."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED)


class AuthorizationError(AppError):
    """Identity present but its role or scope is insufficient."""

    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class NotFoundError(AppError):
    """Entity does not exist or lies outside the caller's scope."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class ConflictError(AppError):
    """Overlapping interval, or interval already allocated to a payment.

    Carries either the structured overlap report (``conflicts``) or the ids
    of intervals that are already paid (``interval_ids``).
    """

    def __init__(
        self,
        message: str,
        *,
        conflicts: list[dict[str, Any]] | None = None,
        interval_ids: list[uuid.UUID] | None = None,
    ) -> None:
        self.conflicts = conflicts
        self.interval_ids = interval_ids
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class ServerError(AppError):
    """Unexpected failure surfaced with a generic message."""

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    body = ErrorResponse(
        error=type(exc).__name__,
        detail=exc.message,
        status_code=exc.status_code,
    )
    if isinstance(exc, ConflictError):
        body.conflicts = exc.conflicts
        if exc.interval_ids is not None:
            body.interval_ids = [str(i) for i in exc.interval_ids]
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json", exclude_none=True))


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(exclude_none=True),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = ServerError()
    return JSONResponse(
        status_code=error.status_code,
        content=ErrorResponse(
            error=type(error).__name__,
            detail=error.message,
            status_code=error.status_code,
        ).model_dump(exclude_none=True),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)
