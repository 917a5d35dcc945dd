"""Configuration management for the RPG rules engine.

Settings are loaded with pydantic-settings from environment variables and
an optional ``.env`` file. API keys are held as SecretStr.

Example:
    >>> from rpg_engine.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.game.summary_threshold
    15

Environment Variables:
    RPG_ENGINE_API_KEY: Narrative provider API key
    RPG_ENGINE_BASE_URL: OpenAI-compatible endpoint (defaults to OpenRouter)
    RPG_ENGINE_MODEL: Model used for story narration
    RPG_ENGINE_DATABASE_PATH: Path to the SQLite save database
    RPG_ENGINE_GAME_DEFAULT_DIFFICULTY: easy, normal, hard or nightmare
    RPG_ENGINE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rpg_engine.core.exceptions import ConfigurationError


class AIProviderSettings(BaseSettings):
    """Configuration for the narrative provider connection.

    Attributes:
        api_key: API key for the OpenAI-compatible endpoint.
        base_url: Endpoint base URL (OpenRouter by default).
        model: Model used for story narration.
        summary_model: Model used for story summarization.
        max_retries: Maximum number of API retry attempts.
        timeout_seconds: Request timeout before falling back to local narration.
        temperature: Sampling temperature for narration.
        summary_temperature: Sampling temperature for summaries.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: SecretStr | None = Field(
        default=None,
        description="Narrative provider API key",
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenAI-compatible endpoint",
    )
    model: str = Field(
        default="google/gemini-2.0-flash-001",
        description="Narration model",
    )
    summary_model: str = Field(
        default="google/gemini-2.0-flash-001",
        description="Summarization model",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum API retry attempts",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="API request timeout",
    )
    temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    summary_temperature: float = Field(default=0.3, ge=0.0, le=2.0)


class StorageSettings(BaseSettings):
    """Configuration for save storage.

    Attributes:
        database_path: Path to the SQLite database file.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_path: Path = Field(
        default=Path("data/rpg_engine.db"),
        description="Path to SQLite database",
    )

    @field_validator("database_path", mode="after")
    @classmethod
    def ensure_parent_exists(cls, value: Path) -> Path:
        """Create the database directory if it is missing."""
        value.parent.mkdir(parents=True, exist_ok=True)
        return value


class GameSettings(BaseSettings):
    """Configuration for rules and context-window behaviour.

    Attributes:
        default_difficulty: Difficulty for new adventures.
        starting_gold: Gold granted at adventure start.
        inventory_slots: Number of inventory slots.
        summary_threshold: Unsummarized messages that trigger summarization.
        recent_messages_with_summary: Log entries sent alongside a summary.
        recent_messages_without_summary: Log entries sent when no summary exists.
        journal_max_entries: Journal entries kept per save; the oldest drop first.
        journal_recent_events: Journal entries shown to the narrator.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_ENGINE_GAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_difficulty: Literal["easy", "normal", "hard", "nightmare"] = Field(
        default="normal",
        description="Difficulty for new adventures",
    )
    starting_gold: int = Field(default=10, ge=0)
    inventory_slots: int = Field(default=30, ge=1, le=200)
    summary_threshold: int = Field(default=15, ge=1)
    recent_messages_with_summary: int = Field(default=5, ge=1)
    recent_messages_without_summary: int = Field(default=10, ge=1)
    journal_max_entries: int = Field(default=200, ge=1)
    journal_recent_events: int = Field(default=5, ge=1)

    @model_validator(mode="after")
    def validate_context_window(self) -> "GameSettings":
        """Ensure a summary never widens the context window.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If the with-summary window is the larger one.
        """
        if self.recent_messages_with_summary > self.recent_messages_without_summary:
            raise ConfigurationError(
                f"recent_messages_with_summary ({self.recent_messages_with_summary}) "
                f"must not exceed recent_messages_without_summary "
                f"({self.recent_messages_without_summary})",
                config_key="recent_messages_with_summary",
            )
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        ai: Narrative provider settings.
        storage: Save storage settings.
        game: Rules settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="RPG Engine", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    ai: AIProviderSettings = Field(default_factory=AIProviderSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    game: GameSettings = Field(default_factory=GameSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "AIProviderSettings",
    "StorageSettings",
    "GameSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
