"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → 400, 404, 429 or 500
- RequestValidationError → 400 (malformed query or JSON body)
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing
- Upstream error detail only leaves the process when APP_DEBUG is on
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from order_functions.core.config import settings
from order_functions.core.errors import (
    AppError,
    NotFoundAppError,
    RateLimitAppError,
    UpstreamAppError,
    ValidationAppError,
)
from order_functions.core.logging import get_request_id

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (NotFoundAppError, 404),
    (RateLimitAppError, 429),
    (UpstreamAppError, 500),
)

_UPSTREAM_DETAIL_KEYS = {"upstream_error", "upstream_status"}


def status_code_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status (unknown subclasses → 400)."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _public_details(exc: AppError) -> dict[str, Any] | None:
    if not exc.details:
        return None
    if settings.app.debug:
        return dict(exc.details)
    details = {k: v for k, v in exc.details.items() if k not in _UPSTREAM_DETAIL_KEYS}
    return details or None


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Routes domain errors to appropriate HTTP status codes:
    - ValidationAppError → 400 Bad Request
    - NotFoundAppError → 404 Not Found
    - RateLimitAppError → 429 Too Many Requests, with Retry-After
    - UpstreamAppError → 500 Internal Server Error

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_code_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "details": exc.details,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    error_content: dict[str, Any] = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }

    details = _public_details(exc)
    if details:
        error_content["details"] = details

    headers: dict[str, str] | None = None
    if isinstance(exc, RateLimitAppError):
        retry_after = (exc.details or {}).get("retry_after", settings.app.rate_limit_window_seconds)
        headers = {"Retry-After": str(retry_after)}

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed requests as 400 with the offending locations."""
    fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]

    logger.warning(
        "request_validation_failed",
        extra={
            "fields": fields,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": "invalid_request",
                "message": "Request is malformed or has invalid parameters",
                "request_id": get_request_id(),
                "details": {"context": {"fields": fields}},
            }
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.
    The exception text is included only in debug mode.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
        exc_info=exc,
    )

    error_content: dict[str, Any] = {
        "code": "internal_server_error",
        "message": "An unexpected error occurred. Please try again later.",
        "request_id": get_request_id(),
    }
    if settings.app.debug:
        error_content["details"] = {"upstream_error": str(exc)}

    return JSONResponse(status_code=500, content={"error": error_content})


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
