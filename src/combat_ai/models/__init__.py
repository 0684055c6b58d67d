"""Pydantic V2 schemas for the combat AI core.

Submodules:
    enums: Enumeration types (ActionKind, GrappleStatus, SizeCategory, ...)
    grid: Grid coordinates
    state: Per-combatant fatigue, sprint and grapple sub-states
    combatant: Combatant, attributes and equipment
    actions: Action catalog, plans and outcomes
    personality: Personality archetypes
    combat: Encounter context

Example:
    >>> from combat_ai.models import Combatant, Attributes
    >>> orc = Combatant(id="orc-1", name="Orc", attributes=Attributes(PS=18))
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from combat_ai.models.enums import (
    ActionKind,
    ActionType,
    DecisionSourceKind,
    Difficulty,
    FatigueLevel,
    FatigueStatus,
    GrappleStatus,
    LogLevel,
    RestType,
    SizeCategory,
    SprintStatus,
    StaminaActivity,
    WeaponType,
)

# =============================================================================
# State and Combatants
# =============================================================================
from combat_ai.models.grid import Cell
from combat_ai.models.state import (
    FatiguePenalties,
    FatigueState,
    GrapplePenalties,
    GrappleState,
    SprintFatigueState,
)
from combat_ai.models.combatant import (
    ArmorPiece,
    Attributes,
    CombatBonuses,
    Combatant,
    InventoryItem,
    Weapon,
    WeaponBonuses,
)

# =============================================================================
# Decisions
# =============================================================================
from combat_ai.models.actions import (
    ACTION_CATALOG,
    ActionDefinition,
    ActionOutcome,
    ActionPlan,
    get_action,
)
from combat_ai.models.personality import (
    AGGRESSIVE,
    BERSERKER,
    DEFENSIVE,
    PERSONALITIES,
    TACTICAL,
    PersonalityProfile,
    PersonalityWeights,
    get_personality,
)
from combat_ai.models.combat import CombatState


__all__ = [
    # Enums
    "ActionKind",
    "ActionType",
    "DecisionSourceKind",
    "Difficulty",
    "FatigueLevel",
    "FatigueStatus",
    "GrappleStatus",
    "LogLevel",
    "RestType",
    "SizeCategory",
    "SprintStatus",
    "StaminaActivity",
    "WeaponType",
    # State
    "Cell",
    "FatiguePenalties",
    "FatigueState",
    "GrapplePenalties",
    "GrappleState",
    "SprintFatigueState",
    # Combatants
    "ArmorPiece",
    "Attributes",
    "CombatBonuses",
    "Combatant",
    "InventoryItem",
    "Weapon",
    "WeaponBonuses",
    # Decisions
    "ACTION_CATALOG",
    "ActionDefinition",
    "ActionOutcome",
    "ActionPlan",
    "get_action",
    "AGGRESSIVE",
    "BERSERKER",
    "DEFENSIVE",
    "PERSONALITIES",
    "TACTICAL",
    "PersonalityProfile",
    "PersonalityWeights",
    "get_personality",
    "CombatState",
]
