from abc import ABC, abstractmethod
from typing import Any, AsyncIterator


class AbstractLLMClient(ABC):
    """Interface for LLM clients that stream chat completions."""

    @abstractmethod
    async def open_chat_stream(
        self,
        messages: list[dict[str, str]],
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        """Start a streaming chat completion.

        The upstream request is sent before this coroutine returns, so
        connection and HTTP status failures surface here rather than halfway
        through the response.

        Args:
            messages: Chat history as ``{"role": ..., "content": ...}`` dicts.
            **kwargs: Provider-specific options (e.g., temperature, max_tokens).

        Returns:
            AsyncIterator[str]: Server-sent event frames (``data: ...\\n\\n``),
                ending with ``data: [DONE]\\n\\n``.

        Raises:
            LLMAppError: If the provider rejects or cannot be reached.
        """
        ...
