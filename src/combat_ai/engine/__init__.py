"""Decision and resolution engine for the combat AI core.

Submodules:
    dice: Injectable roll functions and dice expressions (d20 parser)
    interfaces: Host-side collaborators (positions, armor, weapons, log)
    positions: Grid-backed position oracle
    armor: Armor resolution and damage application
    fatigue: Melee-round stamina
    sprint: Sprint-duration fatigue
    size: Size and strength modifiers
    weapons: Weapon evaluation and recommendation
    grapple: Grapple state machine
    decision: Local decision engine
    executor: Action execution
    prompts: Remote oracle prompts
    remote: Remote decision oracle
    registry: Per-combatant AI registry

Example:
    >>> from combat_ai.engine import AIRegistry, ScriptedRoller
    >>>
    >>> registry = AIRegistry(roll_fn=ScriptedRoller([12, 4]))
    >>> plan = registry.make_decision("orc-1", orc, [knight])
    >>> outcome = registry.execute_action("orc-1", plan, orc)
"""

from __future__ import annotations

# =============================================================================
# Dice and Collaborators
# =============================================================================
from combat_ai.engine.dice import (
    DiceResult,
    DiceRoller,
    RollFn,
    ScriptedRoller,
    roll_expression,
)
from combat_ai.engine.interfaces import (
    ArmorResolution,
    ArmorResolver,
    CombatLog,
    PositionOracle,
    StructlogCombatLog,
    WeaponCatalog,
)
from combat_ai.engine.positions import GridPositionOracle
from combat_ai.engine.armor import NaturalArmorResolver, apply_damage
from combat_ai.engine.weapons import StaticWeaponCatalog

# =============================================================================
# Fatigue
# =============================================================================
from combat_ai.engine.fatigue import (
    can_perform_action,
    drain_stamina,
    effective_bonuses,
    get_fatigue_status,
    recover_stamina,
    reset_fatigue,
    resolve_collapse_check,
    update_fatigue_penalties,
)
from combat_ai.engine.sprint import (
    can_sprint,
    get_sprint_status,
    reset_sprint_fatigue,
    rest_and_recover,
    sprint_distance_feet,
    update_sprint_fatigue,
)

# =============================================================================
# Grappling
# =============================================================================
from combat_ai.engine.grapple import (
    GrappleResult,
    attempt_grapple,
    break_free,
    defender_push_break,
    defender_reversal,
    get_grapple_status,
    grappler_push_off,
    ground_strike,
    is_symmetric,
    maintain_grapple,
    perform_takedown,
    reset_grapple,
    trip,
)

# =============================================================================
# Weapons
# =============================================================================
from combat_ai.engine.weapons import (
    WeaponEvaluation,
    WeaponRecommendation,
    evaluate_weapon_bonuses,
    get_optimal_weapon_recommendation,
    rank_weapons_by_bonuses,
)

# =============================================================================
# Decisions
# =============================================================================
from combat_ai.engine.decision import DecisionEngine
from combat_ai.engine.executor import ActionExecutor
from combat_ai.engine.remote import RemoteDecisionOracle
from combat_ai.engine.registry import (
    AIRegistry,
    DecisionSource,
    Failure,
    LocalDecisionSource,
    RemoteDecisionSource,
    Success,
)


__all__ = [
    # Dice and collaborators
    "DiceResult",
    "DiceRoller",
    "RollFn",
    "ScriptedRoller",
    "roll_expression",
    "ArmorResolution",
    "ArmorResolver",
    "CombatLog",
    "PositionOracle",
    "StructlogCombatLog",
    "WeaponCatalog",
    "GridPositionOracle",
    "NaturalArmorResolver",
    "apply_damage",
    "StaticWeaponCatalog",
    # Fatigue
    "can_perform_action",
    "drain_stamina",
    "effective_bonuses",
    "get_fatigue_status",
    "recover_stamina",
    "reset_fatigue",
    "resolve_collapse_check",
    "update_fatigue_penalties",
    "can_sprint",
    "get_sprint_status",
    "reset_sprint_fatigue",
    "rest_and_recover",
    "sprint_distance_feet",
    "update_sprint_fatigue",
    # Grappling
    "GrappleResult",
    "attempt_grapple",
    "break_free",
    "defender_push_break",
    "defender_reversal",
    "get_grapple_status",
    "grappler_push_off",
    "ground_strike",
    "is_symmetric",
    "maintain_grapple",
    "perform_takedown",
    "reset_grapple",
    "trip",
    # Weapons
    "WeaponEvaluation",
    "WeaponRecommendation",
    "evaluate_weapon_bonuses",
    "get_optimal_weapon_recommendation",
    "rank_weapons_by_bonuses",
    # Decisions
    "DecisionEngine",
    "ActionExecutor",
    "RemoteDecisionOracle",
    "AIRegistry",
    "DecisionSource",
    "Failure",
    "LocalDecisionSource",
    "RemoteDecisionSource",
    "Success",
]
