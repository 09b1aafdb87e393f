"""Pydantic schemas for the chat proxy endpoint."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """A single turn of the conversation, in the provider's chat format."""

    role: Literal["system", "user", "assistant"] = Field(
        ..., description="Author of the message."
    )
    content: str = Field(
        ..., description="Message text (markdown allowed)."
    )


class ChatRequest(BaseModel):
    """Chat history sent by the browser UI."""

    messages: List[ChatMessage] = Field(
        ...,
        min_length=1,
        description="Conversation so far, oldest first. The last message is usually the user's question.",
    )

    def to_provider_messages(self) -> list[dict[str, str]]:
        """Return messages as plain dicts for the provider SDK."""
        return [message.model_dump() for message in self.messages]
