"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.
- Explicit ownership: the limiter lives on ``app.state`` and is built by the
  application factory, one instance per protected endpoint.

Rate limiting strategy:
- Sliding minute/hour/day quotas per client.
- Client identity comes from the forwarded-for header set by the edge proxy,
  falling back to a shared anonymous bucket.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Request

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitConfig
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.core.config import RateLimitSettings, settings
from app.core.errors import RateLimitAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

CHAT_LIMITER_STATE_KEY = "chat_rate_limiter"
RATE_LIMIT_SETTINGS_STATE_KEY = "rate_limit_settings"


def build_rate_limiter(rate_limit_settings: RateLimitSettings | None = None) -> AbstractRateLimiter:
    """Create a limiter from rate limit settings.

    Args:
        rate_limit_settings: Settings to use; defaults to the global settings.

    Returns:
        AbstractRateLimiter: Fresh limiter with its own empty state.
    """

    cfg = rate_limit_settings or settings.rate_limit
    return InMemorySlidingWindowRateLimiter(
        RateLimitConfig(
            requests_per_minute=cfg.requests_per_minute,
            requests_per_hour=cfg.requests_per_hour,
            requests_per_day=cfg.requests_per_day,
        ),
        sweep_interval_seconds=cfg.sweep_interval_seconds or None,
    )


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application.

    Raises:
        RuntimeError: If the application was built without a limiter.
    """

    limiter = getattr(request.app.state, CHAT_LIMITER_STATE_KEY, None)
    if limiter is None:
        raise RuntimeError("Rate limiter not configured on application state")
    return limiter


def get_rate_limit_settings(request: Request) -> RateLimitSettings:
    """Return the rate limit settings the running application was built with.

    Apps assembled without the factory fall back to the global settings.
    """

    app = request.scope.get("app")
    cfg = getattr(app.state, RATE_LIMIT_SETTINGS_STATE_KEY, None) if app is not None else None
    return cfg or settings.rate_limit


def get_client_id(request: Request) -> str:
    """Resolve the client identifier for the current request.

    The header value is used verbatim (a forwarded-for chain stays one key).
    Missing or blank headers map to the shared anonymous bucket.
    """

    cfg = get_rate_limit_settings(request)
    client_id = (request.headers.get(cfg.client_id_header) or "").strip()
    return client_id or cfg.anonymous_client_id


async def enforce_rate_limit(
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
    client_id: Annotated[str, Depends(get_client_id)],
    rate_limit_settings: Annotated[RateLimitSettings, Depends(get_rate_limit_settings)],
) -> None:
    """FastAPI dependency enforcing per-client quotas.

    When enabled, counts the request against the client's quotas. Rejections
    are logged with the window that triggered them; the client only sees a
    generic message.

    Raises:
        RateLimitAppError: When any of the client's quotas is exhausted.
    """

    if not rate_limit_settings.enabled:
        return

    decision = limiter.consume(client_id)
    client_hash = hash_identifier(client_id)

    if decision.allowed:
        logger.debug("rate_limit.allowed", extra={"client_hash": client_hash})
        return

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "client_hash": client_hash,
            "window": decision.window,
            "count": decision.count,
            "limit": decision.limit,
        },
    )

    raise RateLimitAppError(code="rate_limit_exceeded", message="Rate limit exceeded")
