"""Completion provider configuration models."""

from typing import Literal

from pydantic import BaseModel, Field, SecretStr

LLMProviderType = Literal[
    "azure_openai",  # Azure OpenAI deployment
    "openai",        # Direct OpenAI API
    "mock",          # Testing
]


class LLMProviderConfig(BaseModel):
    """Configuration for the chat completion provider.

    For ``azure_openai`` the ``model`` field is the deployment name and
    ``endpoint`` is the resource URL. API keys should come from the
    environment (AZURE_OPENAI_API_KEY or OPENAI_API_KEY).
    """

    provider: LLMProviderType = Field(
        default="mock",
        description="Provider backend",
    )
    model: str = Field(
        default="gpt-4o-mini",
        min_length=1,
        description="Model name, or deployment name for Azure",
    )
    endpoint: str | None = Field(
        default=None,
        description="Azure resource endpoint or custom base URL",
    )
    api_version: str = Field(
        default="2024-06-01",
        description="Azure OpenAI API version",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key (prefer env var)",
    )
    max_output_tokens: int = Field(
        default=1000,
        gt=0,
        description="Maximum tokens generated per completion",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Completion timeout in seconds",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        description="SDK retries for transient errors",
    )


class ProvidersConfig(BaseModel):
    """Configuration for all external AI providers."""

    llm: LLMProviderConfig = Field(
        default_factory=LLMProviderConfig,
        description="Chat completion provider",
    )
