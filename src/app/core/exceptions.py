"""Centralized exception hierarchy and handlers for the application.

This module provides a unified exception system that maps all application errors
to appropriate HTTP status codes and response formats. All services and routes
should raise exceptions from this hierarchy rather than generic exceptions or
HTTPException directly.

Exception Hierarchy:
    AppException (base)
    ├── ValidationError (400)
    │   └── InsufficientFundsError (400)
    ├── AuthorizationError (403)
    ├── NotFoundError (404)
    ├── ConflictError (409)
    │   ├── AlreadyUnlockedError (409)
    │   └── StillLockedError (409)
    └── ExternalAPIError (503)
        └── RateUnavailableError (503)

Usage in Services:
    from app.core.exceptions import InsufficientFundsError

    if wallet.balance < amount:
        raise InsufficientFundsError(f"Wallet {wallet.id} has insufficient funds")

The exception handler automatically converts these to HTTP responses. Storage
failures that escape the services are reported through
``database_exception_handler`` as a generic 500 without leaking driver text.
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppException(Exception):
    """
    Base exception class for all application errors.

    Provides standard structure for application exceptions that can be
    automatically converted to HTTP responses with appropriate status codes.

    Attributes:
        status_code: HTTP status code for this error type
        detail: User-facing error message
        error_code: Machine-readable error code (optional)
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Internal server error"
    error_code: str | None = None

    def __init__(
        self,
        detail: str | None = None,
        *,
        error_code: str | None = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            detail: Custom error message (overrides class default)
            error_code: Machine-readable error identifier
        """
        self.detail = detail or self.__class__.detail
        self.error_code = error_code or self.__class__.error_code
        super().__init__(self.detail)


class ValidationError(AppException):
    """
    Raised when input validation fails.

    Used for missing or malformed caller-supplied fields.
    Maps to HTTP 400 Bad Request.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Validation error"
    error_code = "VALIDATION_ERROR"


class InsufficientFundsError(ValidationError):
    """Raised when a wallet balance cannot cover a debit."""

    detail = "Insufficient funds"
    error_code = "INSUFFICIENT_FUNDS"


class AuthorizationError(AppException):
    """
    Raised when a resource exists but belongs to another account.

    Maps to HTTP 403 Forbidden.
    """

    status_code = status.HTTP_403_FORBIDDEN
    detail = "Not authorized to access this resource"
    error_code = "UNAUTHORIZED"


class NotFoundError(AppException):
    """
    Raised when a requested resource is not found.

    Used when querying for non-existent wallets or locked conversions.
    Maps to HTTP 404 Not Found.
    """

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"
    error_code = "NOT_FOUND"


class ConflictError(AppException):
    """
    Raised when there's a conflict in the operation.

    Used for concurrent modifications or state conflicts.
    Maps to HTTP 409 Conflict.
    """

    status_code = status.HTTP_409_CONFLICT
    detail = "Resource conflict"
    error_code = "CONFLICT"


class AlreadyUnlockedError(ConflictError):
    """Raised when unlocking a locked conversion that is no longer active."""

    detail = "Locked conversion has already been unlocked"
    error_code = "ALREADY_UNLOCKED"


class StillLockedError(ConflictError):
    """Raised when unlocking a locked conversion before its unlock date."""

    detail = "Locked conversion is still locked"
    error_code = "STILL_LOCKED"


class ExternalAPIError(AppException):
    """
    Raised when an external API call fails.

    Used when third-party services are unavailable or return errors.
    Maps to HTTP 503 Service Unavailable.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "External service unavailable"
    error_code = "EXTERNAL_API_ERROR"


class RateUnavailableError(ExternalAPIError):
    """Raised when no exchange rate can be obtained for a currency pair."""

    detail = "Exchange rate unavailable"
    error_code = "RATE_UNAVAILABLE"


async def app_exception_handler(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    """
    Handle application exceptions and convert to HTTP responses.

    Args:
        request: FastAPI request object
        exc: The exception instance

    Returns:
        JSONResponse with error details and HTTP status code

    Response Format:
        {
            "detail": "User-facing error message",
            "error_code": "MACHINE_READABLE_CODE"  # optional
        }
    """
    if exc.status_code >= 500:
        logger.error(
            f"{exc.__class__.__name__}: {exc.detail}",
            exc_info=True,
            extra={
                "status_code": exc.status_code,
                "error_code": exc.error_code,
                "request_path": request.url.path,
            },
        )
    else:
        logger.warning(
            f"{exc.__class__.__name__}: {exc.detail}",
            extra={
                "status_code": exc.status_code,
                "error_code": exc.error_code,
                "request_path": request.url.path,
            },
        )

    response_body: dict[str, Any] = {"detail": exc.detail}
    if exc.error_code:
        response_body["error_code"] = exc.error_code

    return JSONResponse(
        status_code=exc.status_code,
        content=response_body,
    )


async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError,
) -> JSONResponse:
    """
    Translate unexpected storage failures into a generic internal error.

    The driver message is logged but never returned to the caller.
    """
    logger.error(
        f"Database error on {request.url.path}: {type(exc).__name__}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": AppException.detail, "error_code": "INTERNAL_ERROR"},
    )
