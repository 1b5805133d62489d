"""LLM providers for chat completion.

The orchestrator depends only on the LLMProvider interface; concrete
providers are built from settings by create_llm_provider.
"""

from parley.providers.llm.base import (
    AuthenticationError,
    ContentFilterError,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    ModelError,
    ProviderError,
    RateLimitError,
    TokenUsage,
)
from parley.providers.llm.factory import create_llm_provider
from parley.providers.llm.mock import MockLLMProvider
from parley.providers.llm.openai import OpenAIChatProvider

__all__ = [
    # Data models
    "LLMMessage",
    "LLMResponse",
    "TokenUsage",
    # Errors
    "ProviderError",
    "AuthenticationError",
    "RateLimitError",
    "ModelError",
    "ContentFilterError",
    # Providers
    "LLMProvider",
    "OpenAIChatProvider",
    "MockLLMProvider",
    "create_llm_provider",
]
