"""Create the configured completion provider."""

from parley.config.models.providers import LLMProviderConfig
from parley.observability.logging import get_logger
from parley.providers.llm.base import LLMProvider
from parley.providers.llm.mock import MockLLMProvider
from parley.providers.llm.openai import OpenAIChatProvider

logger = get_logger(__name__)


def create_llm_provider(config: LLMProviderConfig) -> LLMProvider:
    """Build an LLMProvider from configuration.

    Args:
        config: Provider section of the settings

    Returns:
        Provider instance for ``config.provider``

    Raises:
        ValueError: If required credentials or endpoint are missing
    """
    if config.provider == "mock":
        logger.info("llm_provider_initialized", provider="mock")
        return MockLLMProvider(default_model=config.model)

    api_key = config.api_key.get_secret_value() if config.api_key else None
    provider = OpenAIChatProvider(
        model=config.model,
        azure=config.provider == "azure_openai",
        api_key=api_key,
        endpoint=config.endpoint,
        api_version=config.api_version,
        timeout=config.timeout,
        max_retries=config.max_retries,
    )
    logger.info(
        "llm_provider_initialized",
        provider=config.provider,
        model=config.model,
    )
    return provider
