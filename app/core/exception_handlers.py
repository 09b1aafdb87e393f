"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → appropriate HTTP status (400, 429, 500)
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.errors import AppError, LLMAppError, RateLimitAppError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


def _status_code_for(exc: AppError) -> int:
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, LLMAppError):
        return 500
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Routes domain errors to appropriate HTTP status codes:
    - ValidationAppError → 400 Bad Request (client fault)
    - RateLimitAppError → 429 Too Many Requests (quota exhausted)
    - LLMAppError → 500 Internal Server Error (upstream fault)

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For distributed tracing
    - error.details: Optional structured context

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = _status_code_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        }
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }

    # Include details only if present (optional structured context)
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. No stack traces or exception text reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with FastAPI app.

    Must be called during app initialization, before route registration.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
