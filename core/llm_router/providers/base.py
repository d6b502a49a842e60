"""Abstract LLM provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from pydantic import BaseModel

from shared.schemas.tools import ToolCall


class LLMResponse(BaseModel):
    """Standardized response from any LLM provider."""

    content: str | None = None
    tool_calls: list[ToolCall] = []
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    stop_reason: str = ""  # end_turn, tool_use, max_tokens


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Messages are plain dicts with a ``role`` of ``system``, ``user``,
    ``assistant``, ``tool_call`` (``name``, ``arguments``) or ``tool_result``
    (``name``, ``content``).
    """

    @abstractmethod
    async def chat(
        self,
        messages: list[dict],
        tools: list[dict] | None = None,
    ) -> LLMResponse:
        """Send a chat completion request."""
        ...

    @abstractmethod
    def chat_stream(
        self,
        messages: list[dict],
        tools: list[dict] | None = None,
    ) -> AsyncIterator[str]:
        """Stream the text of a chat completion as it is generated."""
        ...
