"""Core layer: settings, structured logging and the error family.

Nothing in here knows about combat rules. The engine imports from this
package; this package never imports from the engine.

Settings are read from ``COMBAT_AI_`` environment variables (nested with
``__``) and cached by :func:`get_settings`. Logging is structlog, set up
once by the host through :func:`configure_logging` or
:func:`configure_logging_from_settings`. Every error raised by the
library derives from :class:`CombatAIError`.
"""

from __future__ import annotations

from combat_ai.core.config import (
    AIProviderSettings,
    EngineSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
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
from combat_ai.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    unbind_context,
)


__all__ = [
    # Base exception
    "CombatAIError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Game engine exceptions
    "GameEngineError",
    "InvalidGameStateError",
    "CombatError",
    "DiceRollError",
    # AI control exceptions
    "AIControlError",
    "AIConnectionError",
    "AIResponseError",
    "AITimeoutError",
    "AIRateLimitError",
    # Configuration
    "Settings",
    "AIProviderSettings",
    "EngineSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
]
