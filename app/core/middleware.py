"""HTTP middleware for request ID propagation and access logging.

The middleware:
- Accepts an incoming X-Request-ID header or generates a UUID
- Stores request_id in contextvars so every log line of the request carries it
- Echoes request_id and total duration in the response headers
- Emits one ``http.request`` access log per request

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

LOG_SETTINGS_STATE_KEY = "log_settings"


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a correlation id to the request and log its outcome.

    For streaming responses the duration covers time to first byte, since
    the body is produced after this middleware returns.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with ``X-Request-ID`` and
            ``X-Request-Duration-ms`` headers added.
    """

    log_settings = getattr(request.app.state, LOG_SETTINGS_STATE_KEY, None) or settings.log
    header_name = log_settings.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
