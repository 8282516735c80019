"""
Error types raised by the POS services and the handlers that render them.

Every error leaves the API as `{"error": ..., "correlation_id": ..., "details": ...}`
(`details` only when there is something to say). Services raise the
AppException subclasses below directly; routes do not translate them.
"""
import logging
from typing import Optional, Dict, Any
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.lib.logging import get_logger

logger = get_logger(__name__)


class AppException(Exception):
    """An error the front desk can act on, with the HTTP status it maps to."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.headers = headers
        super().__init__(self.message)


class NotFoundException(AppException):
    """A customer, receipt or admin that does not exist."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        if resource_id:
            message = f"{resource} '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            message,
            status.HTTP_404_NOT_FOUND,
            {"resource": resource, "resource_id": resource_id},
        )


class UnauthorizedException(AppException):
    """Missing, expired or unusable bearer token, or bad login."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message,
            status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )


class BadRequestException(AppException):
    """A business rule refused the request (empty cart, short cashback balance)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class ConflictException(AppException):
    """Lost an optimistic-concurrency race, or a unique value already exists."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_409_CONFLICT, details)


class ValidationException(AppException):
    """Input that fails field validation outside the request schemas."""

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            {"errors": errors or {}},
        )


class TooManyRequestsException(AppException):
    """Rate limit exceeded; clients are told when to try again."""

    def __init__(
        self,
        message: str = "Too many attempts, please wait a minute",
        retry_after: int = 60,
    ):
        super().__init__(
            message,
            status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(retry_after)},
        )


class TransactionFailedException(AppException):
    """A database call failed mid-settlement; nothing was committed."""

    def __init__(self, cause: Exception):
        super().__init__("Transaction failed", details={"cause": str(cause)})


def _error_response(
    request: Request,
    status_code: int,
    message: Any,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {
        "error": message,
        "correlation_id": getattr(request.state, "correlation_id", "unknown"),
    }
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _request_context(request: Request, **extra: Any) -> Dict[str, Any]:
    return {"path": request.url.path, "method": request.method, **extra}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render an AppException; 5xx are logged as errors, the rest as warnings."""
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        level,
        f"Request refused: {exc.message}",
        extra=_request_context(request, status_code=exc.status_code, details=exc.details),
    )
    return _error_response(request, exc.status_code, exc.message, exc.details, exc.headers)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Flatten pydantic errors to `loc`/`msg`/`type` triples under details.errors."""
    errors = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    logger.warning("Request body rejected", extra=_request_context(request, errors=errors))
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        {"errors": errors},
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Unknown routes, wrong methods and other framework-level HTTP errors."""
    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra=_request_context(request, status_code=exc.status_code),
    )
    return _error_response(
        request,
        exc.status_code,
        exc.detail,
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Internals stay in the log; the client only gets the correlation id.
    logger.error(
        f"Unhandled exception: {exc}",
        extra=_request_context(request),
        exc_info=True,
    )
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
    )
