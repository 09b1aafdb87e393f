from __future__ import annotations

from fastapi import APIRouter, Request

from app.core.rate_limit import CHAT_LIMITER_STATE_KEY

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness probe for load balancers and monitoring.

    Not rate limited. Reports how many clients the chat limiter currently
    tracks so operators can watch memory growth.
    """

    limiter = getattr(request.app.state, CHAT_LIMITER_STATE_KEY, None)
    return {
        "status": "ok",
        "rate_limit": {
            "tracked_clients": getattr(limiter, "tracked_clients", None),
        },
    }
