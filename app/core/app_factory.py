"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
owns the long-lived collaborators: one rate limiter for the chat endpoint and
one upstream LLM client, both stored on ``app.state``.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.factory import create_llm_client
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.api.routes import chat_router, health_router
from app.api.routes.chat import LLM_CLIENT_STATE_KEY
from app.core.config import Settings, settings as default_settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import LOG_SETTINGS_STATE_KEY, request_id_middleware
from app.core.rate_limit import (
    CHAT_LIMITER_STATE_KEY,
    RATE_LIMIT_SETTINGS_STATE_KEY,
    build_rate_limiter,
)


def create_app(
    app_settings: Settings | None = None,
    *,
    llm_client: AbstractLLMClient | None = None,
    rate_limiter: AbstractRateLimiter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to build from; defaults to the global settings.
        llm_client: Upstream client to use instead of the configured provider.
        rate_limiter: Limiter for the chat endpoint instead of a fresh one.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.

    Raises:
        ValidationAppError: If the LLM provider is misconfigured.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="Explore Chat Proxy",
        description=(
            "Streams chat completions from the upstream model provider to the "
            "browser UI, with per-client minute/hour/day rate limits."
        ),
        version="0.1.0",
    )

    # Per-app settings read by the rate limit dependencies and middleware
    setattr(app.state, RATE_LIMIT_SETTINGS_STATE_KEY, cfg.rate_limit)
    setattr(app.state, LOG_SETTINGS_STATE_KEY, cfg.log)
    setattr(app.state, CHAT_LIMITER_STATE_KEY, rate_limiter or build_rate_limiter(cfg.rate_limit))
    setattr(app.state, LLM_CLIENT_STATE_KEY, llm_client or create_llm_client(cfg.llm))

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(chat_router, prefix="/api")
    app.include_router(health_router)

    return app
