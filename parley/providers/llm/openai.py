"""OpenAI and Azure OpenAI chat completion provider."""

import os
from typing import Any

import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from parley.observability.logging import get_logger
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

logger = get_logger(__name__)


class OpenAIChatProvider(LLMProvider):
    """Chat completion provider backed by the official ``openai`` SDK.

    With ``azure=True`` the client targets an Azure OpenAI resource and
    ``model`` names the deployment.
    """

    def __init__(
        self,
        model: str,
        *,
        azure: bool = False,
        api_key: str | None = None,
        endpoint: str | None = None,
        api_version: str = "2024-06-01",
        timeout: float = 60.0,
        max_retries: int = 2,
        client: AsyncOpenAI | None = None,
    ):
        """Initialize the provider.

        Args:
            model: Model name, or deployment name when ``azure`` is set
            azure: Use Azure OpenAI instead of the public API
            api_key: API key (defaults to AZURE_OPENAI_API_KEY or OPENAI_API_KEY)
            endpoint: Azure resource endpoint or custom base URL
                (defaults to AZURE_OPENAI_ENDPOINT for Azure)
            api_version: Azure OpenAI API version
            timeout: Request timeout in seconds
            max_retries: SDK retries for transient errors
            client: Pre-built client, mainly for tests
        """
        self._model = model
        self._azure = azure

        if client is not None:
            self._client = client
            return

        if azure:
            key = api_key or os.environ.get("AZURE_OPENAI_API_KEY")
            azure_endpoint = endpoint or os.environ.get("AZURE_OPENAI_ENDPOINT")
            if not key:
                raise ValueError("AZURE_OPENAI_API_KEY environment variable not set")
            if not azure_endpoint:
                raise ValueError("Azure OpenAI endpoint not configured")
            self._client = AsyncAzureOpenAI(
                azure_endpoint=azure_endpoint,
                api_key=key,
                api_version=api_version,
                timeout=timeout,
                max_retries=max_retries,
            )
        else:
            key = api_key or os.environ.get("OPENAI_API_KEY")
            if not key:
                raise ValueError("OPENAI_API_KEY environment variable not set")
            self._client = AsyncOpenAI(
                api_key=key,
                base_url=endpoint,
                timeout=timeout,
                max_retries=max_retries,
            )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "azure_openai" if self._azure else "openai"

    @property
    def model(self) -> str:
        """Model or deployment this provider calls."""
        return self._model

    async def generate(
        self,
        messages: list[LLMMessage],
        *,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        **kwargs: Any,
    ) -> LLMResponse:
        """Call the chat completions API.

        Raises:
            AuthenticationError: Invalid credentials
            RateLimitError: Provider throttled the request
            ModelError: Unknown model or deployment
            ContentFilterError: Prompt or completion blocked
            ProviderError: Any other API or transport failure
        """
        logger.debug(
            "openai_chat_request",
            model=self._model,
            provider=self.provider_name,
            num_messages=len(messages),
            max_tokens=max_tokens,
        )

        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": m.role, "content": m.content} for m in messages],
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs,
            )
        except openai.AuthenticationError as e:
            raise AuthenticationError(f"Authentication failed: {e}") from e
        except openai.RateLimitError as e:
            raise RateLimitError(f"Rate limited: {e}") from e
        except openai.NotFoundError as e:
            raise ModelError(f"Model not available: {self._model}") from e
        except openai.BadRequestError as e:
            if e.code == "content_filter":
                raise ContentFilterError(f"Content filtered: {e}") from e
            raise ProviderError(f"Bad request: {e}") from e
        except openai.APIError as e:
            raise ProviderError(f"OpenAI API error: {e}") from e

        if not completion.choices:
            raise ProviderError("Completion returned no choices")

        choice = completion.choices[0]
        if choice.finish_reason == "content_filter":
            raise ContentFilterError("Completion blocked by content filter")

        usage = None
        if completion.usage is not None:
            usage = TokenUsage(
                prompt_tokens=completion.usage.prompt_tokens,
                completion_tokens=completion.usage.completion_tokens,
                total_tokens=completion.usage.total_tokens,
            )

        content = choice.message.content or ""

        logger.debug(
            "openai_chat_success",
            model=completion.model,
            finish_reason=choice.finish_reason,
            total_tokens=usage.total_tokens if usage else None,
        )

        return LLMResponse(
            content=content,
            model=completion.model,
            finish_reason=choice.finish_reason,
            usage=usage,
            metadata={"completion_id": completion.id},
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.close()
