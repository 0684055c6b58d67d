"""Configuration management for the combat AI core.

Settings are loaded with pydantic-settings from environment variables and
an optional ``.env`` file. API keys are held as SecretStr.

Example:
    >>> from combat_ai.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.engine.die_sides
    20

Environment Variables:
    COMBAT_AI_REMOTE_ENABLED: Consult the remote decision oracle
    COMBAT_AI_OPENROUTER_API_KEY: OpenRouter API key
    COMBAT_AI_OPENAI_API_KEY: OpenAI API key
    COMBAT_AI_TIMEOUT_SECONDS: Deadline for a remote decision
    COMBAT_AI_ENGINE_DEFAULT_DIFFICULTY: easy, normal, hard or nightmare
    COMBAT_AI_ENGINE_SEED: Seed for the default dice roller
    COMBAT_AI_LOG_LEVEL: Logging level
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from combat_ai.core.exceptions import ConfigurationError


class AIProviderSettings(BaseSettings):
    """Configuration for the remote decision oracle.

    Attributes:
        remote_enabled: Whether ``make_decision_async`` consults the remote model.
        openrouter_api_key: OpenRouter API key (primary).
        openai_api_key: OpenAI API key.
        default_provider: Which provider the oracle talks to.
        model: Chat model identifier.
        base_url: Override for the provider endpoint.
        temperature: Sampling temperature.
        max_retries: Transport retry attempts inside one decision.
        timeout_seconds: Hard deadline for one remote decision.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMBAT_AI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    remote_enabled: bool = Field(
        default=False,
        description="Consult the remote decision oracle",
    )
    openrouter_api_key: SecretStr | None = Field(
        default=None,
        description="OpenRouter API key (primary)",
    )
    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key",
    )
    default_provider: Literal["openrouter", "openai"] = Field(
        default="openrouter",
        description="AI provider used by the oracle",
    )
    model: str = Field(
        default="openai/gpt-4o-mini",
        description="Chat model identifier",
    )
    base_url: str | None = Field(
        default=None,
        description="Provider endpoint override",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Maximum transport retry attempts",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Remote decision deadline",
    )

    @model_validator(mode="after")
    def validate_api_key_for_provider(self) -> "AIProviderSettings":
        """Ensure an enabled oracle has a key for its provider.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If the remote oracle is enabled without a key.
        """
        if not self.remote_enabled:
            return self
        if self.default_provider == "openrouter" and not self.openrouter_api_key:
            raise ConfigurationError(
                "Remote decisions are enabled but COMBAT_AI_OPENROUTER_API_KEY is not set",
                config_key="openrouter_api_key",
            )
        if self.default_provider == "openai" and not self.openai_api_key:
            raise ConfigurationError(
                "Remote decisions are enabled but COMBAT_AI_OPENAI_API_KEY is not set",
                config_key="openai_api_key",
            )
        return self

    def api_key(self) -> str | None:
        """Return the plain API key for the configured provider."""
        secret = (
            self.openrouter_api_key
            if self.default_provider == "openrouter"
            else self.openai_api_key
        )
        return secret.get_secret_value() if secret else None


class EngineSettings(BaseSettings):
    """Configuration for the local decision and resolution engine.

    Attributes:
        default_personality: Profile used when a combatant has none.
        default_difficulty: Difficulty multiplier key.
        melee_range_ft: Reach within which melee and grapples are possible.
        close_range_ft: Distance beyond which flanking sprints are considered.
        die_sides: Size of the resolution die; crit thresholds derive from it.
        seed: Optional seed for the default dice roller.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMBAT_AI_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_personality: Literal["aggressive", "defensive", "tactical", "berserker"] = Field(
        default="tactical",
        description="Fallback personality profile",
    )
    default_difficulty: Literal["easy", "normal", "hard", "nightmare"] = Field(
        default="normal",
        description="Difficulty multiplier key",
    )
    melee_range_ft: float = Field(
        default=5.0,
        gt=0,
        description="Melee reach in feet",
    )
    close_range_ft: float = Field(
        default=30.0,
        gt=0,
        description="Close range in feet",
    )
    die_sides: int = Field(
        default=20,
        ge=4,
        le=100,
        description="Resolution die size",
    )
    seed: int | None = Field(
        default=None,
        description="Dice roller seed",
    )

    @model_validator(mode="after")
    def validate_ranges(self) -> "EngineSettings":
        """Ensure close range is not shorter than melee range.

        Raises:
            ConfigurationError: If close_range_ft < melee_range_ft.
        """
        if self.close_range_ft < self.melee_range_ft:
            raise ConfigurationError(
                f"close_range_ft ({self.close_range_ft}) must be at least "
                f"melee_range_ft ({self.melee_range_ft})",
                config_key="close_range_ft",
            )
        return self


class Settings(BaseSettings):
    """Top-level settings aggregating all configuration domains.

    Attributes:
        log_level: Logging level.
        json_logs: Emit JSON log lines instead of console output.
        ai: Remote oracle settings.
        engine: Local engine settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMBAT_AI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON logs",
    )

    ai: AIProviderSettings = Field(default_factory=AIProviderSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the settings singleton.

    Returns:
        The cached Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load combat AI settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "AIProviderSettings",
    "EngineSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
