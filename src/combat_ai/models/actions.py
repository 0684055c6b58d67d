"""Action catalog, plans and outcomes.

The catalog is a fixed table of ActionDefinition records shared by every
decision engine instance. Plans are transient: produced by a decision,
consumed by execution, then discarded.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from combat_ai.core.constants import STRATEGIC_SCORE_THRESHOLD
from combat_ai.models.combatant import Combatant
from combat_ai.models.enums import ActionKind, ActionType, DecisionSourceKind


class ActionDefinition(BaseModel):
    """An immutable catalog entry.

    Attributes:
        kind: Machine identifier.
        name: Display name used in prompts and logs.
        cost: Action cost in attacks per melee.
        action_type: Category used for personality weighting.
        requires_target: Whether the action needs an opponent.
        base_score: Starting heuristic score.
        requires_sprint: Whether the action is a sprint.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ActionKind
    name: str
    cost: int = Field(default=1, ge=0)
    action_type: ActionType
    requires_target: bool = False
    base_score: float = Field(ge=0)
    requires_sprint: bool = False


def _define(
    kind: ActionKind,
    name: str,
    action_type: ActionType,
    base_score: float,
    *,
    requires_target: bool = False,
    requires_sprint: bool = False,
) -> ActionDefinition:
    return ActionDefinition(
        kind=kind,
        name=name,
        action_type=action_type,
        base_score=base_score,
        requires_target=requires_target,
        requires_sprint=requires_sprint,
    )


ACTION_CATALOG: dict[ActionKind, ActionDefinition] = {
    definition.kind: definition
    for definition in (
        _define(ActionKind.STRIKE, "Strike", ActionType.OFFENSIVE, 3.0, requires_target=True),
        _define(ActionKind.PARRY, "Parry", ActionType.DEFENSIVE, 1.5),
        _define(ActionKind.DODGE, "Dodge", ActionType.DEFENSIVE, 1.8),
        _define(ActionKind.MOVE, "Move", ActionType.UTILITY, 1.0),
        _define(
            ActionKind.AIM_CALLED_SHOT,
            "Aim/Called Shot",
            ActionType.OFFENSIVE,
            2.5,
            requires_target=True,
        ),
        _define(ActionKind.DEFEND_HOLD, "Defend/Hold", ActionType.DEFENSIVE, 1.2),
        _define(ActionKind.WITHDRAW, "Withdraw", ActionType.UTILITY, 1.5),
        _define(
            ActionKind.COMBAT_MANEUVERS,
            "Combat Maneuvers",
            ActionType.OFFENSIVE,
            2.2,
            requires_target=True,
        ),
        _define(ActionKind.USE_ITEM, "Use Item", ActionType.UTILITY, 2.0),
        _define(
            ActionKind.SPRINT_TO_TARGET,
            "Sprint to Target",
            ActionType.MOVEMENT,
            2.5,
            requires_target=True,
            requires_sprint=True,
        ),
        _define(
            ActionKind.SPRINT_TO_RETREAT,
            "Sprint to Retreat",
            ActionType.MOVEMENT,
            1.8,
            requires_sprint=True,
        ),
        _define(ActionKind.REST_RECOVER, "Rest/Recover", ActionType.RECOVERY, 1.0),
        _define(ActionKind.GRAPPLE, "Grapple", ActionType.OFFENSIVE, 2.0, requires_target=True),
        _define(
            ActionKind.MAINTAIN_GRAPPLE,
            "Maintain Grapple",
            ActionType.UTILITY,
            1.6,
            requires_target=True,
        ),
        _define(ActionKind.TAKEDOWN, "Takedown", ActionType.OFFENSIVE, 2.4, requires_target=True),
        _define(
            ActionKind.GROUND_STRIKE,
            "Ground Strike",
            ActionType.OFFENSIVE,
            2.8,
            requires_target=True,
        ),
        _define(
            ActionKind.BREAK_FREE,
            "Break Free",
            ActionType.DEFENSIVE,
            2.0,
            requires_target=True,
        ),
    )
}
"""Every known action, in evaluation order. Ties resolve to the earlier entry."""


def get_action(kind: ActionKind | str) -> ActionDefinition:
    """Look up a catalog entry.

    Args:
        kind: ActionKind or its string value.

    Returns:
        The catalog entry.

    Raises:
        KeyError: If no such action exists.
    """
    return ACTION_CATALOG[ActionKind(kind)]


class ActionPlan(BaseModel):
    """A chosen action with its target and score.

    Attributes:
        action: The catalog entry.
        target: Opponent the action is aimed at, if any.
        score: Heuristic score that won the selection.
        reasoning: Human-readable justification.
        is_strategic: True for scores above the strategic threshold.
        weapon_recommendation: Weapon advice consulted for the decision.
        source: Local engine or remote oracle.
    """

    model_config = ConfigDict(extra="forbid")

    action: ActionDefinition
    target: Combatant | None = None
    score: float = 0.0
    reasoning: str = ""
    is_strategic: bool = False
    weapon_recommendation: Any | None = None
    source: DecisionSourceKind = DecisionSourceKind.LOCAL

    @classmethod
    def build(
        cls,
        kind: ActionKind,
        *,
        target: Combatant | None = None,
        score: float,
        reasoning: str,
        weapon_recommendation: Any | None = None,
        source: DecisionSourceKind = DecisionSourceKind.LOCAL,
        is_strategic: bool | None = None,
    ) -> ActionPlan:
        """Create a plan, deriving the strategic flag from the score."""
        return cls(
            action=ACTION_CATALOG[kind],
            target=target,
            score=score,
            reasoning=reasoning,
            is_strategic=score > STRATEGIC_SCORE_THRESHOLD if is_strategic is None else is_strategic,
            weapon_recommendation=weapon_recommendation,
            source=source,
        )

    @property
    def kind(self) -> ActionKind:
        return self.action.kind


class ActionOutcome(BaseModel):
    """Result of executing a plan.

    Attributes:
        success: Whether the action took effect.
        action: Kind of action executed.
        target_id: Opponent affected, if any.
        damage: Damage dealt.
        distance_ft: Distance covered by movement.
        message: Narration for the combat log.
        details: Extra structured data (rolls, fatigue snapshots).
    """

    model_config = ConfigDict(extra="forbid")

    success: bool
    action: ActionKind
    target_id: str | None = None
    damage: int = 0
    distance_ft: float | None = None
    message: str = ""
    details: dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "ActionDefinition",
    "ACTION_CATALOG",
    "get_action",
    "ActionPlan",
    "ActionOutcome",
]
