"""Configuration models for each settings section."""

from parley.config.models.api import APIConfig
from parley.config.models.conversation import ConversationConfig
from parley.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
    TracingConfig,
)
from parley.config.models.providers import LLMProviderConfig, ProvidersConfig

__all__ = [
    "APIConfig",
    "ConversationConfig",
    "LLMProviderConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "ProvidersConfig",
    "TracingConfig",
]
