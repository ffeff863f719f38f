"""Centralized exception handlers for the FastAPI application.

Every failure leaves the API in the same envelope. Domain exceptions are
mapped to HTTP status codes through their error code, framework errors
(unknown route, oversized or unparsable body) are normalised here, and
anything else becomes a 500 whose detail depends on the environment.

Error Response Format:
    {
        "success": false,
        "message": "Human-readable error message",
        "error": "MACHINE_READABLE_ERROR_CODE",
        "errors": ["optional", "ordered", "problems"]
    }

Usage:
    from usersvc.presentation.api.exception_handlers import (
        setup_exception_handlers,
    )

    app = FastAPI()
    setup_exception_handlers(app)
"""

import logging
import traceback
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from usersvc.domain.shared.exceptions import (
    ConflictError,
    DomainException,
    EntityNotFoundError,
    ErrorCode,
    StorageError,
    ValidationError,
)
from usersvc.domain.shared.time import utc_now
from usersvc.presentation.api.schemas import ErrorResponse

logger = logging.getLogger(__name__)


# =============================================================================
# Error Code to HTTP Status Mapping
# =============================================================================

ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    # 400 Bad Request - client input errors
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_USER_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_REQUIRED_FIELDS: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NO_UPDATE_FIELDS: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_REQUEST_BODY: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONSTRAINT_VIOLATION: status.HTTP_400_BAD_REQUEST,
    # 404 Not Found
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ROUTE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    # 409 Conflict - already exists
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_EMAIL: status.HTTP_409_CONFLICT,
    # Request limits
    ErrorCode.PAYLOAD_TOO_LARGE: status.HTTP_413_CONTENT_TOO_LARGE,
    ErrorCode.RATE_LIMIT_EXCEEDED: status.HTTP_429_TOO_MANY_REQUESTS,
    # 500 Internal Server Error - storage
    ErrorCode.DATABASE_UNAVAILABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.DATABASE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.EMAIL_LOOKUP_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _get_status_for_exception(exc: DomainException) -> int:
    """Determine HTTP status code for a domain exception.

    Uses the error code mapping, with fallback based on exception type.
    """
    if exc.code in ERROR_CODE_TO_STATUS:
        return ERROR_CODE_TO_STATUS[exc.code]

    if isinstance(exc, EntityNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST

    # Storage errors and anything unrecognised are server-side
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_error_response(
    status_code: int,
    message: str,
    code: str,
    headers: Optional[dict[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    """Create a standardized error response.

    Keyword arguments become optional envelope fields (``errors``,
    ``retry_after``, ``available_routes``, ...).
    """
    body = ErrorResponse(message=message, error=code, **extra)
    return JSONResponse(
        status_code=status_code,
        content=body.to_content(),
        headers=headers,
    )


_HTTP_METHODS = ("get", "post", "put", "patch", "delete", "options")


def collect_available_routes(app: FastAPI) -> list[str]:
    """Return ``"METHOD /path"`` for every documented route.

    Read from the OpenAPI paths, which carry the full prefixed path of
    routes included through nested routers.
    """
    available = []
    for path, operations in app.openapi()["paths"].items():
        available.extend(
            f"{method.upper()} {path}"
            for method in operations
            if method in _HTTP_METHODS
        )
    return available


def list_available_routes(app: FastAPI) -> list[str]:
    """Route listing for 404 responses, computed once per application."""
    available = getattr(app.state, "available_routes", None)
    if available is None:
        available = collect_available_routes(app)
        app.state.available_routes = available
    return available


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application.

    Parameters
    ----------
    app
        The FastAPI application instance
    """

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle all domain exceptions with structured response.

        Logs the full exception details for debugging while returning
        a safe, user-friendly message to the client.
        """
        status_code = _get_status_for_exception(exc)

        log = logger.error if isinstance(exc, StorageError) else logger.warning
        log(
            "Domain exception on %s %s: %s (code=%s, details=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
            exc.details,
        )

        errors = getattr(exc, "errors", None) or None
        return create_error_response(
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
            errors=errors,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Malformed JSON or a body that is not an object."""
        problems = [
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        ]
        logger.warning(
            "Invalid request body on %s %s: %s",
            request.method,
            request.url.path,
            problems,
        )
        return create_error_response(
            status_code=status.HTTP_400_BAD_REQUEST,
            message="Request body must be a JSON object",
            code=ErrorCode.INVALID_REQUEST_BODY.value,
            errors=problems,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        """Unmatched routes (any method) and oversized bodies."""
        if exc.status_code in (
            status.HTTP_404_NOT_FOUND,
            status.HTTP_405_METHOD_NOT_ALLOWED,
        ):
            logger.info("Route not found: %s %s", request.method, request.url.path)
            return create_error_response(
                status_code=status.HTTP_404_NOT_FOUND,
                message=f"The requested route {request.url.path} does not exist",
                code=ErrorCode.ROUTE_NOT_FOUND.value,
                available_routes=list_available_routes(request.app),
            )

        if exc.status_code == status.HTTP_413_CONTENT_TOO_LARGE:
            return create_error_response(
                status_code=exc.status_code,
                message=str(exc.detail),
                code=ErrorCode.PAYLOAD_TOO_LARGE.value,
            )

        return create_error_response(
            status_code=exc.status_code,
            message=str(exc.detail),
            code=ErrorCode.INTERNAL_ERROR.value
            if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
            else ErrorCode.VALIDATION_ERROR.value,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unhandled exceptions with consistent error format.

        Production responses carry a generic message only. Elsewhere the
        exception text and traceback are included for debugging.
        """
        logger.exception(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )

        settings = getattr(request.app.state, "settings", None)
        is_production = settings is None or settings.is_production

        message = "Something went wrong"
        extra: dict[str, Any] = {
            "path": request.url.path,
            "method": request.method,
            "timestamp": utc_now(),
        }
        if not is_production:
            message = str(exc) or "Internal Server Error"
            extra["detail"] = repr(exc)
            extra["stack"] = traceback.format_exception(exc)

        return create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=message,
            code=ErrorCode.INTERNAL_ERROR.value,
            **extra,
        )
