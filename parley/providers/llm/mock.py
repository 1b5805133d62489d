"""Mock LLM provider for testing and local development."""

import asyncio
from typing import Any

from parley.providers.llm.base import LLMMessage, LLMProvider, LLMResponse, TokenUsage


class MockLLMProvider(LLMProvider):
    """Mock LLM provider.

    Returns configurable responses without making API calls. Responses are
    looked up by the content of the last user message, falling back to
    ``default_response``. A configured error is raised instead of answering.
    """

    def __init__(
        self,
        default_response: str = "Mock response",
        default_model: str = "mock-model",
        responses: dict[str, str] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ):
        """Initialize mock provider.

        Args:
            default_response: Response to return when no match found
            default_model: Model name to report
            responses: Dict mapping last user message content to responses
            error: Exception raised by every call while set
            delay: Seconds to sleep before answering
        """
        self._default_response = default_response
        self._default_model = default_model
        self._responses = responses or {}
        self._error = error
        self._delay = delay
        self._call_history: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Return history of calls for testing assertions."""
        return self._call_history

    def clear_history(self) -> None:
        """Clear call history."""
        self._call_history.clear()

    def set_response(self, trigger: str, response: str) -> None:
        """Set a response for a specific user message."""
        self._responses[trigger] = response

    def set_error(self, error: Exception | None) -> None:
        """Make subsequent calls raise ``error`` (None to clear)."""
        self._error = error

    async def generate(
        self,
        messages: list[LLMMessage],
        *,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate mock response."""
        self._call_history.append({
            "messages": list(messages),
            "max_tokens": max_tokens,
            "temperature": temperature,
            "kwargs": kwargs,
        })

        if self._delay:
            await asyncio.sleep(self._delay)

        if self._error is not None:
            raise self._error

        content = self._default_response
        user_messages = [m for m in messages if m.role == "user"]
        if user_messages and user_messages[-1].content in self._responses:
            content = self._responses[user_messages[-1].content]

        # Rough approximation: ~4 chars per token
        content = content[: max_tokens * 4]
        prompt_tokens = sum(len(m.content) // 4 + 1 for m in messages)
        completion_tokens = len(content) // 4 + 1

        return LLMResponse(
            content=content,
            model=self._default_model,
            finish_reason="stop",
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
        )
