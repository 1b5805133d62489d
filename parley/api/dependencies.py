"""Dependency injection for API routes.

Stores, providers and the orchestrator are created once and reused.
Dependencies can be overridden for testing via ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from parley.config.settings import Settings
from parley.conversation.orchestrator import ConversationOrchestrator
from parley.conversation.store import SessionStore
from parley.conversation.stores.inmemory import InMemorySessionStore
from parley.observability.logging import get_logger
from parley.providers.llm import LLMProvider, create_llm_provider

logger = get_logger(__name__)

_session_store: SessionStore | None = None
_llm_provider: LLMProvider | None = None
_orchestrator: ConversationOrchestrator | None = None


@lru_cache
def get_settings() -> Settings:
    """Get application settings.

    Loads configuration from TOML files and environment variables, falling
    back to defaults when no config file exists.
    """
    try:
        return Settings.from_files()
    except FileNotFoundError as e:
        logger.warning("config_file_not_found", error=str(e))
        return Settings()


async def get_session_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> SessionStore:
    """Get the shared SessionStore instance."""
    global _session_store
    if _session_store is None:
        _session_store = InMemorySessionStore(
            max_history_turns=settings.conversation.max_history_turns,
        )
        logger.info(
            "session_store_initialized",
            store_type="inmemory",
            max_history_turns=settings.conversation.max_history_turns,
        )
    return _session_store


async def get_llm_provider(
    settings: Annotated[Settings, Depends(get_settings)],
) -> LLMProvider:
    """Get the shared completion provider.

    Raises:
        ValueError: If the configured provider lacks credentials or endpoint
    """
    global _llm_provider
    if _llm_provider is None:
        _llm_provider = create_llm_provider(settings.providers.llm)
    return _llm_provider


async def get_orchestrator(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[SessionStore, Depends(get_session_store)],
    provider: Annotated[LLMProvider, Depends(get_llm_provider)],
) -> ConversationOrchestrator:
    """Get the shared ConversationOrchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ConversationOrchestrator.from_settings(settings, store, provider)
        logger.info(
            "orchestrator_initialized",
            max_context_messages=settings.conversation.max_context_messages,
        )
    return _orchestrator


SettingsDep = Annotated[Settings, Depends(get_settings)]
SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]
LLMProviderDep = Annotated[LLMProvider, Depends(get_llm_provider)]
OrchestratorDep = Annotated[ConversationOrchestrator, Depends(get_orchestrator)]


async def reset_dependencies() -> None:
    """Reset all cached dependencies.

    Used for testing to ensure fresh instances. Closes the provider first.
    """
    global _session_store, _llm_provider, _orchestrator

    if _llm_provider is not None:
        await _llm_provider.close()

    _session_store = None
    _llm_provider = None
    _orchestrator = None
    get_settings.cache_clear()
