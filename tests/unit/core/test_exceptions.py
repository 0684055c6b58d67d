"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from combat_ai.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
    AITimeoutError,
    CombatAIError,
    CombatError,
    ConfigurationError,
    DiceRollError,
    GameEngineError,
    InvalidGameStateError,
    ValidationError,
)


class TestCombatAIError:
    """Tests for the base CombatAIError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = CombatAIError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = CombatAIError("Test error", details={"key": "value", "count": 42})
        assert exc.details == {"key": "value", "count": 42}
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        """Test exception repr output."""
        repr_str = repr(CombatAIError("Test", details={"x": 1}))
        assert "CombatAIError" in repr_str
        assert "Test" in repr_str
        assert "x" in repr_str


class TestGameEngineErrors:
    """Tests for rules resolution exceptions."""

    def test_invalid_state_context(self) -> None:
        """Test state context is folded into details."""
        exc = InvalidGameStateError(
            "One-sided grapple",
            current_state="clinch",
            expected_states=["neutral"],
        )
        assert isinstance(exc, GameEngineError)
        assert exc.details["current_state"] == "clinch"
        assert exc.details["expected_states"] == ["neutral"]

    def test_combat_error_context(self) -> None:
        """Test combatant and round are recorded."""
        exc = CombatError("Not on the map", combatant_id="orc-1", round_number=0)
        assert exc.details == {"combatant_id": "orc-1", "round_number": 0}

    def test_dice_roll_error_expression(self) -> None:
        """Test the failing expression is recorded."""
        exc = DiceRollError("Bad dice", expression="1d")
        assert exc.details["expression"] == "1d"
        assert isinstance(exc, CombatAIError)


class TestAIControlErrors:
    """Tests for remote oracle exceptions."""

    @pytest.mark.parametrize(
        "error_class",
        [AIConnectionError, AIResponseError, AITimeoutError, AIRateLimitError],
    )
    def test_subclasses(self, error_class: type[AIControlError]) -> None:
        """Test every oracle error is an AIControlError."""
        assert issubclass(error_class, AIControlError)
        assert issubclass(error_class, CombatAIError)

    def test_model_and_provider(self) -> None:
        """Test model and provider context."""
        exc = AIControlError("Failed", model="openai/gpt-4o-mini", provider="openrouter")
        assert exc.details == {"model": "openai/gpt-4o-mini", "provider": "openrouter"}

    def test_timeout_seconds(self) -> None:
        """Test the deadline is recorded."""
        exc = AITimeoutError("Too slow", timeout_seconds=2.5, model="m")
        assert exc.details["timeout_seconds"] == 2.5
        assert exc.details["model"] == "m"

    def test_rate_limit_retry_after(self) -> None:
        """Test retry-after is recorded."""
        exc = AIRateLimitError("Slow down", retry_after_seconds=30)
        assert exc.details["retry_after_seconds"] == 30


class TestConfigurationAndValidation:
    """Tests for configuration and validation exceptions."""

    def test_config_key(self) -> None:
        exc = ConfigurationError("Missing key", config_key="openrouter_api_key")
        assert exc.details["config_key"] == "openrouter_api_key"

    def test_validation_field(self) -> None:
        exc = ValidationError("Not numeric", field_name="PE", invalid_value="abc")
        assert exc.details == {"field_name": "PE", "invalid_value": "abc"}

    def test_catch_all_at_boundary(self) -> None:
        """Test the whole family can be caught through the base class."""
        with pytest.raises(CombatAIError):
            raise ValidationError("bad")
