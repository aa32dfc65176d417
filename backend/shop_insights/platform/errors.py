"""
Error taxonomy and the JSON error envelope.

Every failure leaving the API has the shape:

    {"success": false, "error": "<message>", "code": "<ERROR_CODE>"}

4xx errors may carry a "details" object. 5xx errors only carry details in
development (ENV=development); otherwise storage and configuration detail
is logged server-side and suppressed in the response.
"""

import logging
from enum import Enum
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable error codes returned to clients."""
    # Authentication (401)
    AUTH_REQUIRED = "AUTH_REQUIRED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_USER = "INVALID_USER"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

    # Authorization (403)
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    INVALID_ROLE = "INVALID_ROLE"

    # Client errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Server errors
    SCOPE_MISCONFIGURED = "SCOPE_MISCONFIGURED"
    AGGREGATION_FAILED = "AGGREGATION_FAILED"
    INGESTION_FAILED = "INGESTION_FAILED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppError(Exception):
    """Base class for errors converted to the error envelope."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


class AuthenticationError(AppError):
    """Missing, malformed, expired or invalid credentials."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = ErrorCode.AUTH_REQUIRED


class AuthorizationError(AppError):
    """Authenticated caller is not allowed to do this."""
    status_code = status.HTTP_403_FORBIDDEN
    default_code = ErrorCode.INSUFFICIENT_PERMISSIONS


class ScopeConfigurationError(AppError):
    """Identity data cannot produce a tenant scope (e.g. STORE_OWNER without tenant)."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = ErrorCode.SCOPE_MISCONFIGURED


class RequestValidationFailed(AppError):
    """Query parameters or body failed validation."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = ErrorCode.VALIDATION_ERROR


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = ErrorCode.NOT_FOUND


class AggregationError(AppError):
    """A read-only aggregation failed in storage. No partial results."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = ErrorCode.AGGREGATION_FAILED


class IngestionError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = ErrorCode.INGESTION_FAILED


class ServiceUnavailableError(AppError):
    """A required collaborator (database, signing secret) is not configured."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = ErrorCode.SERVICE_UNAVAILABLE


def error_body(
    message: str,
    code: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message}
    if code:
        body["code"] = code
    if details:
        body["details"] = details
    return body


def _expose_server_details(request: Request) -> bool:
    """True when the app runs with ENV=development (honours test overrides)."""
    from shop_insights.config.settings import get_settings

    settings_provider = request.app.dependency_overrides.get(get_settings, get_settings)
    return settings_provider().is_development


def _tenant_for_log(request: Request) -> Optional[int]:
    principal = getattr(request.state, "principal", None)
    return getattr(principal, "tenant_id", None)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Convert AppError subclasses to the error envelope."""
    log_extra = {
        "path": request.url.path,
        "code": exc.code.value,
        "status_code": exc.status_code,
        "tenant_id": _tenant_for_log(request),
    }
    if exc.is_server_error:
        logger.error(exc.message, extra={**log_extra, "details": exc.details})
        details = exc.details if _expose_server_details(request) else None
    else:
        logger.info(exc.message, extra=log_extra)
        details = exc.details

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.code.value, details),
        headers={"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """FastAPI parameter/body validation failures become 400s."""
    fields = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("query", "body")]
        fields.append({"field": ".".join(location), "message": error.get("msg", "")})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            "Invalid request parameters",
            ErrorCode.VALIDATION_ERROR.value,
            {"fields": fields},
        ),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log with traceback, never leak internals."""
    logger.error(
        "Unhandled exception",
        extra={
            "tenant_id": _tenant_for_log(request),
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path,
        },
        exc_info=True,
    )
    details = {"error": str(exc)} if _expose_server_details(request) else None
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", ErrorCode.INTERNAL_ERROR.value, details),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install every handler that produces the error envelope."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
