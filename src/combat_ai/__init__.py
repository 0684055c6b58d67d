"""Combat AI - enemy decision making and close-combat resolution.

Given a combatant, its targets and the encounter state, the engine picks
the best action for the turn and resolves grappling and stamina fatigue.

DETERMINISM:
- Every die roll flows through one injectable roll function
- The local engine is a pure function of its inputs and that roll function
- The optional remote oracle always falls back to the local engine

Example:
    >>> from combat_ai import AIRegistry, Combatant, configure_logging
    >>>
    >>> configure_logging()
    >>> registry = AIRegistry()
    >>> plan = registry.make_decision(orc.id, orc, [knight])
    >>> print(plan.action.name, plan.reasoning)

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 schemas (combatants, actions, sub-states).
    engine: Fatigue, grappling, weapons, decisions and execution.
"""

from __future__ import annotations

# Core
from combat_ai.core.config import Settings, get_settings
from combat_ai.core.exceptions import CombatAIError
from combat_ai.core.logging import configure_logging, get_logger

# Models
from combat_ai.models import (
    ActionKind,
    ActionOutcome,
    ActionPlan,
    Attributes,
    CombatState,
    Combatant,
    Weapon,
)

# Engine
from combat_ai.engine import (
    AIRegistry,
    DecisionEngine,
    DiceRoller,
    ScriptedRoller,
)


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "CombatAIError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "ActionKind",
    "ActionOutcome",
    "ActionPlan",
    "Attributes",
    "CombatState",
    "Combatant",
    "Weapon",
    # Engine
    "AIRegistry",
    "DecisionEngine",
    "DiceRoller",
    "ScriptedRoller",
]
