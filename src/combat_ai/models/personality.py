"""Personality profiles that bias the decision engine."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from combat_ai.models.enums import ActionKind, ActionType


class PersonalityWeights(BaseModel):
    """Multipliers applied by action category."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    aggression: float = Field(ge=0)
    caution: float = Field(ge=0)
    positioning: float = Field(ge=0)
    resource_management: float = Field(ge=0)


class PersonalityProfile(BaseModel):
    """An immutable behavioural archetype.

    Attributes:
        key: Lookup key.
        name: Display name.
        weights: Category multipliers.
        preferred_actions: Actions scored up by 1.3.
        avoid_actions: Actions scored down by 0.5.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str
    name: str
    weights: PersonalityWeights
    preferred_actions: frozenset[ActionKind] = frozenset()
    avoid_actions: frozenset[ActionKind] = frozenset()

    def type_multiplier(self, action_type: ActionType) -> float:
        """Weight for an action category.

        Offensive actions use aggression, defensive ones caution, and utility
        actions the mean of positioning and resource management. Movement and
        recovery are unweighted.
        """
        if action_type is ActionType.OFFENSIVE:
            return self.weights.aggression
        if action_type is ActionType.DEFENSIVE:
            return self.weights.caution
        if action_type is ActionType.UTILITY:
            return (self.weights.positioning + self.weights.resource_management) / 2
        return 1.0

    def preference_multiplier(self, kind: ActionKind) -> float:
        if kind in self.preferred_actions:
            return 1.3
        if kind in self.avoid_actions:
            return 0.5
        return 1.0


AGGRESSIVE = PersonalityProfile(
    key="aggressive",
    name="Aggressive",
    weights=PersonalityWeights(aggression=1.0, caution=0.3, positioning=0.6, resource_management=0.4),
    preferred_actions=frozenset({ActionKind.STRIKE, ActionKind.MOVE, ActionKind.COMBAT_MANEUVERS}),
    avoid_actions=frozenset({ActionKind.DEFEND_HOLD, ActionKind.WITHDRAW}),
)

DEFENSIVE = PersonalityProfile(
    key="defensive",
    name="Defensive",
    weights=PersonalityWeights(aggression=0.4, caution=1.0, positioning=0.8, resource_management=0.7),
    preferred_actions=frozenset({ActionKind.PARRY, ActionKind.DODGE, ActionKind.DEFEND_HOLD}),
    avoid_actions=frozenset({ActionKind.STRIKE, ActionKind.COMBAT_MANEUVERS}),
)

TACTICAL = PersonalityProfile(
    key="tactical",
    name="Tactical",
    weights=PersonalityWeights(aggression=0.7, caution=0.7, positioning=1.0, resource_management=0.8),
    preferred_actions=frozenset(
        {ActionKind.MOVE, ActionKind.AIM_CALLED_SHOT, ActionKind.COMBAT_MANEUVERS}
    ),
)

BERSERKER = PersonalityProfile(
    key="berserker",
    name="Berserker",
    weights=PersonalityWeights(aggression=1.2, caution=0.1, positioning=0.3, resource_management=0.2),
    preferred_actions=frozenset({ActionKind.STRIKE, ActionKind.COMBAT_MANEUVERS}),
    avoid_actions=frozenset({ActionKind.DEFEND_HOLD, ActionKind.WITHDRAW, ActionKind.USE_ITEM}),
)

PERSONALITIES: dict[str, PersonalityProfile] = {
    profile.key: profile for profile in (AGGRESSIVE, DEFENSIVE, TACTICAL, BERSERKER)
}


def get_personality(key: str | PersonalityProfile | None) -> PersonalityProfile:
    """Resolve a profile by key, falling back to Tactical."""
    if isinstance(key, PersonalityProfile):
        return key
    if key is None:
        return TACTICAL
    return PERSONALITIES.get(key.lower(), TACTICAL)


__all__ = [
    "PersonalityWeights",
    "PersonalityProfile",
    "AGGRESSIVE",
    "DEFENSIVE",
    "TACTICAL",
    "BERSERKER",
    "PERSONALITIES",
    "get_personality",
]
