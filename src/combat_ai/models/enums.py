"""Enumeration types for the combat AI core."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class ActionKind(StrEnum):
    """Every action the decision engine can select."""

    STRIKE = "strike"
    PARRY = "parry"
    DODGE = "dodge"
    MOVE = "move"
    AIM_CALLED_SHOT = "aim_called_shot"
    DEFEND_HOLD = "defend_hold"
    WITHDRAW = "withdraw"
    COMBAT_MANEUVERS = "combat_maneuvers"
    USE_ITEM = "use_item"
    SPRINT_TO_TARGET = "sprint_to_target"
    SPRINT_TO_RETREAT = "sprint_to_retreat"
    REST_RECOVER = "rest_recover"
    GRAPPLE = "grapple"
    MAINTAIN_GRAPPLE = "maintain_grapple"
    TAKEDOWN = "takedown"
    GROUND_STRIKE = "ground_strike"
    BREAK_FREE = "break_free"


class ActionType(StrEnum):
    """Broad category used for personality weighting."""

    OFFENSIVE = "offensive"
    DEFENSIVE = "defensive"
    UTILITY = "utility"
    MOVEMENT = "movement"
    RECOVERY = "recovery"


class FatigueStatus(StrEnum):
    """Melee-round stamina status."""

    READY = "ready"
    FATIGUED = "fatigued"
    EXHAUSTED = "exhausted"
    COLLAPSE_RISK = "collapse_risk"
    COLLAPSED = "collapsed"


class FatigueLevel(IntEnum):
    """Stamina penalty band, ordered by severity."""

    NONE = 0
    MINOR = 1
    MODERATE = 2
    SEVERE = 3
    COLLAPSE = 4


class SprintStatus(StrEnum):
    """Sprint-duration fatigue status."""

    READY = "ready"
    FATIGUED = "fatigued"
    GASPING = "gasping"
    COLLAPSED = "collapsed"


class GrappleStatus(StrEnum):
    """Position of a combatant in the grapple state machine.

    In a clinch both participants are CLINCH. Once taken to the ground the
    one on top is GROUND and the one pinned is GRAPPLED.
    """

    NEUTRAL = "neutral"
    CLINCH = "clinch"
    GROUND = "ground"
    GRAPPLED = "grappled"

    @property
    def is_engaged(self) -> bool:
        """Return True for any status other than NEUTRAL."""
        return self is not GrappleStatus.NEUTRAL


class SizeCategory(IntEnum):
    """Creature size, ordered so comparisons read naturally."""

    TINY = 0
    SMALL = 1
    MEDIUM = 2
    LARGE = 3
    HUGE = 4
    GIANT = 5

    @classmethod
    def parse(cls, value: str | int | SizeCategory | None) -> SizeCategory:
        """Coerce a name, ordinal or None into a size category.

        Args:
            value: Size name in any case, ordinal value, or None.

        Returns:
            The matching category, MEDIUM when value is None or unknown.
        """
        if value is None:
            return cls.MEDIUM
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return cls.MEDIUM
        return cls.__members__.get(str(value).strip().upper(), cls.MEDIUM)


class Difficulty(StrEnum):
    """Encounter difficulty applied as a final score multiplier."""

    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    NIGHTMARE = "nightmare"

    @property
    def multiplier(self) -> float:
        """Score multiplier for this difficulty."""
        return _DIFFICULTY_MULTIPLIERS[self]


_DIFFICULTY_MULTIPLIERS = {
    Difficulty.EASY: 0.8,
    Difficulty.NORMAL: 1.0,
    Difficulty.HARD: 1.2,
    Difficulty.NIGHTMARE: 1.5,
}


class StaminaActivity(StrEnum):
    """Exertion categories that drain stamina each melee round."""

    LIGHT_MOVEMENT = "light_movement"
    NORMAL_COMBAT = "normal_combat"
    GRAPPLING = "grappling"
    SPRINTING = "sprinting"
    SPELLCASTING = "spellcasting"
    MOUNTED = "mounted"
    FLY_HOVER = "fly_hover"
    FLY_CRUISE = "fly_cruise"
    FLY_SPRINT = "fly_sprint"


class RestType(StrEnum):
    """In-combat rest intensities."""

    LIGHT_REST = "light_rest"
    FULL_REST = "full_rest"


class WeaponType(StrEnum):
    """Weapon length class inferred from a weapon's name or length."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
    HEAVY = "heavy"


class DecisionSourceKind(StrEnum):
    """Where an action plan came from."""

    LOCAL = "local"
    REMOTE = "remote"


class LogLevel(StrEnum):
    """Severity passed to the host combat log."""

    INFO = "info"
    WARNING = "warning"
    COMBAT = "combat"
    ERROR = "error"


__all__ = [
    "ActionKind",
    "ActionType",
    "FatigueStatus",
    "FatigueLevel",
    "SprintStatus",
    "GrappleStatus",
    "SizeCategory",
    "Difficulty",
    "StaminaActivity",
    "RestType",
    "WeaponType",
    "DecisionSourceKind",
    "LogLevel",
]
