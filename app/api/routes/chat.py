from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from app.adapters.llm.base import AbstractLLMClient
from app.core.rate_limit import enforce_rate_limit
from app.schemas.chat import ChatRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])

LLM_CLIENT_STATE_KEY = "llm_client"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def get_llm_client(request: Request) -> AbstractLLMClient:
    """Return the LLM client owned by the running application."""

    client = getattr(request.app.state, LLM_CLIENT_STATE_KEY, None)
    if client is None:
        raise RuntimeError("LLM client not configured on application state")
    return client


@router.post(
    "/chat",
    response_class=StreamingResponse,
    dependencies=[Depends(enforce_rate_limit)],
    responses={
        200: {"content": {"text/event-stream": {}}, "description": "Streamed completion"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Upstream provider error"},
    },
)
async def chat(
    payload: ChatRequest,
    llm: Annotated[AbstractLLMClient, Depends(get_llm_client)],
) -> StreamingResponse:
    """Stream a chat completion for the given conversation.

    The rate limit dependency runs first; rejected clients get a 429 and the
    upstream provider is never called. Upstream failures before the first
    byte surface as a 500 JSON error.

    Args:
        payload: Conversation history from the UI.
        llm: Upstream chat client.

    Returns:
        StreamingResponse: ``text/event-stream`` relay of the completion.
    """
    messages = payload.to_provider_messages()
    logger.info(
        "chat.request",
        extra={
            "model": getattr(llm, "model", None),
            "message_count": len(messages),
            "first_message_chars": len(messages[0]["content"]),
        },
    )

    frames = await llm.open_chat_stream(messages)
    return StreamingResponse(frames, media_type="text/event-stream", headers=SSE_HEADERS)
