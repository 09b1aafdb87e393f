"""OpenAI LLM client adapter."""

import logging
from typing import Any, AsyncIterator

import openai
from openai import AsyncOpenAI

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import LLMAppError

logger = logging.getLogger(__name__)

SSE_DONE = "data: [DONE]\n\n"


class OpenAIClient(AbstractLLMClient):
    """Client for streaming OpenAI chat completions as server-sent events.

    Uses the official OpenAI Python SDK with async support.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        organization: str | None = None,
        timeout_seconds: float = 45.0,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: OpenAI API key for authentication.
            model: Model name (e.g., "gpt-3.5-turbo", "gpt-4o-mini").
            base_url: Optional custom base URL for OpenAI API.
            organization: Optional organization id for billing/attribution.
            timeout_seconds: Timeout for requests in seconds.
            temperature: Default sampling temperature.
            max_tokens: Default completion token cap.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            timeout=timeout_seconds,
        )
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def open_chat_stream(
        self,
        messages: list[dict[str, str]],
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        """Open a streaming chat completion and relay it as SSE frames.

        Args:
            messages: Chat history to send.
            **kwargs: Overrides for temperature, max_tokens, top_p, etc.

        Returns:
            AsyncIterator[str]: SSE frames, one per upstream chunk.

        Raises:
            LLMAppError: If the API rejects the request or is unreachable.
        """
        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": True,
            "temperature": kwargs.pop("temperature", self.temperature),
            "max_tokens": kwargs.pop("max_tokens", self.max_tokens),
        }

        allowed_params = {
            "top_p",
            "frequency_penalty",
            "presence_penalty",
            "seed",
            "user",
        }
        for param in allowed_params:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            stream = await self.client.chat.completions.create(**request_params)
        except openai.APIStatusError as exc:
            raise LLMAppError(
                code="llm_upstream_error",
                message=f"OpenAI API error: {exc.status_code}",
                details={
                    "provider": "openai",
                    "model": self.model,
                    "upstream_status": exc.status_code,
                    "upstream_message": exc.message,
                },
            ) from exc
        except openai.OpenAIError as exc:
            raise LLMAppError(
                code="llm_unavailable",
                message=f"OpenAI API error: {exc}",
                details={"provider": "openai", "model": self.model},
            ) from exc

        return self._relay(stream)

    async def _relay(self, stream: Any) -> AsyncIterator[str]:
        """Yield each upstream chunk as an SSE frame, then the done marker."""
        try:
            async for chunk in stream:
                yield f"data: {chunk.model_dump_json(exclude_unset=True)}\n\n"
        except openai.OpenAIError as exc:
            # Headers are already sent; all we can do is end the stream.
            logger.error(
                "chat.upstream_stream_error",
                extra={"error_type": type(exc).__name__, "model": self.model},
            )
            return
        finally:
            await stream.close()

        yield SSE_DONE
