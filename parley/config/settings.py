"""Parley settings: layered TOML files under PARLEY_* environment overrides.

``Settings()`` on its own uses model defaults plus the environment. Use
``Settings.from_files()`` to also read ``default.toml`` and the overlay for
the current ``PARLEY_ENV`` from the config directory.
"""

import os
import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from parley.config.models.api import APIConfig
from parley.config.models.conversation import ConversationConfig
from parley.config.models.observability import ObservabilityConfig
from parley.config.models.providers import ProvidersConfig

CONFIG_DIR_ENV = "PARLEY_CONFIG_DIR"
ENVIRONMENT_ENV = "PARLEY_ENV"
DEFAULT_ENVIRONMENT = "development"

# File values for the Settings instance currently being built.
_file_values: ContextVar[dict[str, Any] | None] = ContextVar("parley_file_values", default=None)


def find_config_dir() -> Path:
    """Locate the config directory.

    PARLEY_CONFIG_DIR wins; otherwise the nearest ``config/`` in the working
    directory or one of its parents.

    Raises:
        FileNotFoundError: No usable directory
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {override}")
        return path

    cwd = Path.cwd()
    for parent in (cwd, *cwd.parents):
        candidate = parent / "config"
        if candidate.is_dir():
            return candidate
    raise FileNotFoundError(f"No config/ directory above {cwd}; set {CONFIG_DIR_ENV}")


def current_environment() -> str:
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def _overlay(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _overlay(merged[key], value)
        else:
            merged[key] = value
    return merged


def read_config_files(config_dir: Path, environment: str) -> dict[str, Any]:
    """Read ``default.toml`` and overlay ``{environment}.toml`` when present.

    Tables merge key by key; any other value in the overlay replaces the
    default.

    Raises:
        FileNotFoundError: ``default.toml`` is missing
        tomllib.TOMLDecodeError: A file is not valid TOML
    """
    default_path = config_dir / "default.toml"
    if not default_path.is_file():
        raise FileNotFoundError(f"Default configuration file not found: {default_path}")
    with default_path.open("rb") as f:
        values = tomllib.load(f)

    overlay_path = config_dir / f"{environment}.toml"
    if overlay_path.is_file():
        with overlay_path.open("rb") as f:
            values = _overlay(values, tomllib.load(f))
    return values


class ConfigFileSource(PydanticBaseSettingsSource):
    """Supplies values read by ``Settings.from_files``; empty otherwise."""

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        value = (_file_values.get() or {}).get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return dict(_file_values.get() or {})


class Settings(BaseSettings):
    """Root configuration.

    Precedence, highest first: constructor arguments, PARLEY_* environment
    variables (``__`` separates nested keys), config files, model defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="PARLEY_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="parley", description="Application name for logging/tracing")
    debug: bool = Field(default=False, description="Enable debug mode")

    api: APIConfig = Field(default_factory=APIConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @classmethod
    def from_files(
        cls,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> "Settings":
        """Build settings with the config files layered under the environment.

        Raises:
            FileNotFoundError: No config directory or no ``default.toml``
        """
        values = read_config_files(
            config_dir or find_config_dir(),
            environment or current_environment(),
        )
        token = _file_values.set(values)
        try:
            return cls()
        finally:
            _file_values.reset(token)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, ConfigFileSource(settings_cls))
