"""Tests for configuration management."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from combat_ai.core.config import (
    AIProviderSettings,
    EngineSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from combat_ai.core.exceptions import ConfigurationError


class TestAIProviderSettings:
    """Tests for remote oracle configuration."""

    def test_defaults(self) -> None:
        """Test default settings values."""
        settings = AIProviderSettings()
        assert settings.remote_enabled is False
        assert settings.default_provider == "openrouter"
        assert settings.model == "openai/gpt-4o-mini"
        assert settings.temperature == 0.7
        assert settings.max_retries == 2
        assert settings.timeout_seconds == 10.0

    def test_remote_without_key_raises(self) -> None:
        """Test enabling the oracle requires a key."""
        with pytest.raises(ConfigurationError) as exc_info:
            AIProviderSettings(remote_enabled=True)
        assert exc_info.value.details["config_key"] == "openrouter_api_key"

    def test_openai_provider_requires_openai_key(self) -> None:
        """Test the key check follows the chosen provider."""
        with pytest.raises(ConfigurationError) as exc_info:
            AIProviderSettings(
                remote_enabled=True,
                default_provider="openai",
                openrouter_api_key="sk-or-unused",
            )
        assert exc_info.value.details["config_key"] == "openai_api_key"

    def test_api_key_is_secret(self) -> None:
        """Test the key is hidden in repr but readable on demand."""
        settings = AIProviderSettings(remote_enabled=True, openrouter_api_key="sk-or-123")
        assert "sk-or-123" not in repr(settings)
        assert settings.api_key() == "sk-or-123"

    def test_api_key_none(self) -> None:
        assert AIProviderSettings().api_key() is None

    def test_env_loading(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test settings load from the environment."""
        monkeypatch.setenv("COMBAT_AI_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("COMBAT_AI_MODEL", "anthropic/claude-3-haiku")
        settings = AIProviderSettings()
        assert settings.timeout_seconds == 2.5
        assert settings.model == "anthropic/claude-3-haiku"

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(PydanticValidationError):
            AIProviderSettings(timeout_seconds=0)


class TestEngineSettings:
    """Tests for local engine configuration."""

    def test_defaults(self) -> None:
        """Test default engine values."""
        settings = EngineSettings()
        assert settings.default_personality == "tactical"
        assert settings.default_difficulty == "normal"
        assert settings.melee_range_ft == 5.0
        assert settings.close_range_ft == 30.0
        assert settings.die_sides == 20
        assert settings.seed is None

    def test_close_range_below_melee_raises(self) -> None:
        """Test close range may not be shorter than melee reach."""
        with pytest.raises(ConfigurationError) as exc_info:
            EngineSettings(melee_range_ft=10.0, close_range_ft=5.0)
        assert exc_info.value.details["config_key"] == "close_range_ft"

    def test_die_sides_lower_bound(self) -> None:
        with pytest.raises(PydanticValidationError):
            EngineSettings(die_sides=2)

    def test_seed_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the engine prefix is honoured."""
        monkeypatch.setenv("COMBAT_AI_ENGINE_SEED", "7")
        assert EngineSettings().seed == 7


class TestSettings:
    """Tests for the aggregated settings object."""

    def test_nested_defaults(self) -> None:
        settings = Settings()
        assert settings.log_level == "INFO"
        assert settings.json_logs is False
        assert isinstance(settings.ai, AIProviderSettings)
        assert isinstance(settings.engine, EngineSettings)

    def test_get_settings_cached(self) -> None:
        """Test get_settings returns a cached singleton."""
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self) -> None:
        """Test clearing the cache produces a fresh instance."""
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first

    def test_get_settings_propagates_configuration_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test a keyless remote configuration fails at load time."""
        monkeypatch.setenv("COMBAT_AI_REMOTE_ENABLED", "true")
        with pytest.raises(ConfigurationError):
            get_settings()
