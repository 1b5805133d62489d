"""Configuration for Parley.

    from parley.config import get_settings

    window = get_settings().conversation.max_context_messages
"""

from functools import lru_cache

from parley.config.settings import Settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings from the config directory, cached for the process."""
    return Settings.from_files()


def reload_settings() -> Settings:
    """Drop the cached settings and read the files again."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
