"""Error types raised by the combat AI.

Every error derives from :class:`CombatAIError`. Constructors take the
context that matters for their family (combatant, dice expression, model)
as keyword arguments and fold it into ``details`` so a host can log one
flat mapping without knowing which subclass it caught.

Rules problems that are part of normal play (out of reach, not enough
stamina, no hold to maintain) are *not* exceptions; they come back as
result objects from the engine. The types here are for broken input,
broken state and remote oracle failures.

Example:
    >>> from combat_ai.core.exceptions import DiceRollError
    >>> raise DiceRollError("Bad dice notation", expression="1d")
"""

from __future__ import annotations

from typing import Any


class CombatAIError(Exception):
    """Root of the combat AI error family.

    Attributes:
        message: Human-readable error description.
        details: Context collected from the raising site.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    @staticmethod
    def _with_context(details: dict[str, Any] | None, **context: Any) -> dict[str, Any]:
        """Merge keyword context into a details mapping, skipping unset values."""
        merged = dict(details or {})
        merged.update({key: value for key, value in context.items() if value is not None})
        return merged

    def _format_message(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} [{rendered}]"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Rules Engine
# =============================================================================


class GameEngineError(CombatAIError):
    """Base for errors raised while resolving rules."""


class InvalidGameStateError(GameEngineError):
    """Combat state breaks an invariant the engine relies on.

    The engine itself reports inconsistent grapple records as failed
    results; hosts validating their own state raise this one.
    """

    def __init__(
        self,
        message: str,
        *,
        current_state: str | None = None,
        expected_states: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=self._with_context(
                details,
                current_state=current_state,
                expected_states=expected_states,
            ),
        )


class CombatError(GameEngineError):
    """A combatant could not be located or acted upon.

    Args:
        message: Human-readable error description.
        combatant_id: Id of the combatant the lookup or action was for.
        round_number: Round in progress, when the caller knows it.
        details: Extra context.
    """

    def __init__(
        self,
        message: str,
        *,
        combatant_id: str | None = None,
        round_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=self._with_context(
                details, combatant_id=combatant_id, round_number=round_number
            ),
        )


class DiceRollError(GameEngineError):
    """Dice notation could not be parsed, or a roller could not answer."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=self._with_context(details, expression=expression))


# =============================================================================
# Remote Decision Oracle
# =============================================================================


class AIControlError(CombatAIError):
    """Base for remote oracle failures.

    The registry never lets these reach the host. A raised oracle error
    becomes a failed decision and the local engine picks the action.

    Args:
        message: Human-readable error description.
        model: Model identifier the request was sent to.
        provider: Provider name, ``openrouter`` or ``openai``.
        details: Extra context such as an HTTP status code.
    """

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message, details=self._with_context(details, model=model, provider=provider)
        )


class AIConnectionError(AIControlError):
    """The provider could not be reached."""


class AIResponseError(AIControlError):
    """The reply had no usable JSON or named an action that was not offered."""


class AITimeoutError(AIControlError):
    """The oracle missed its decision deadline."""

    def __init__(
        self,
        message: str,
        *,
        timeout_seconds: float | None = None,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            model=model,
            provider=provider,
            details=self._with_context(details, timeout_seconds=timeout_seconds),
        )


class AIRateLimitError(AIControlError):
    """The provider throttled the request."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            model=model,
            provider=provider,
            details=self._with_context(details, retry_after_seconds=retry_after_seconds),
        )


# =============================================================================
# Settings & Host Input
# =============================================================================


class ConfigurationError(CombatAIError):
    """Settings are missing or contradict each other (e.g. no API key)."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=self._with_context(details, config_key=config_key))


class ValidationError(CombatAIError):
    """A host-supplied character sheet value cannot be normalized.

    Raised while coercing loose attribute tables (``"PE": "abc"``) into a
    :class:`~combat_ai.models.Combatant`.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=self._with_context(
                details, field_name=field_name, invalid_value=invalid_value
            ),
        )


__all__ = [
    "CombatAIError",
    "GameEngineError",
    "InvalidGameStateError",
    "CombatError",
    "DiceRollError",
    "AIControlError",
    "AIConnectionError",
    "AIResponseError",
    "AITimeoutError",
    "AIRateLimitError",
    "ConfigurationError",
    "ValidationError",
]
