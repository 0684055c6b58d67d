"""Per-combatant mutable sub-states.

Each combatant carries up to three of these, created lazily the first time
a subsystem touches it and reset (never destroyed) at encounter end:

* FatigueState: melee-round stamina and its penalty bands.
* SprintFatigueState: minutes of sprinting measured against P.E.
* GrappleState: position in the grapple state machine.

The engine mutates them in place; the owning combatant's copy is the
authoritative one.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field

from combat_ai.models.enums import (
    FatigueLevel,
    FatigueStatus,
    GrappleStatus,
    SprintStatus,
    StaminaActivity,
)
from combat_ai.models.grid import Cell


class FatiguePenalties(BaseModel):
    """Modifiers derived from the current stamina band.

    Attributes:
        strike: Strike bonus modifier.
        parry: Parry bonus modifier.
        dodge: Dodge bonus modifier.
        ps: Physical strength modifier.
        speed: Speed multiplier (1.0 normal, 0.5 halved, 0.0 immobile).
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    strike: int = 0
    parry: int = 0
    dodge: int = 0
    ps: int = 0
    speed: float = Field(default=1.0, ge=0.0, le=1.0)


class FatigueState(BaseModel):
    """Melee-round stamina tracker.

    ``penalties``, ``fatigue_level`` and ``status`` are always recomputed from
    ``current_stamina`` (and the collapsed flag); they never accumulate.

    Attributes:
        max_stamina: Stamina ceiling, P.E. times two.
        current_stamina: Remaining stamina; may go negative.
        fatigue_level: Current penalty band.
        status: Readiness derived from the band.
        penalties: Modifiers for the current band.
        last_activity: Most recent exertion that drained stamina.
        total_rounds_active: Melee rounds of exertion this encounter.
        collapse_rounds_remaining: Rounds left unconscious after a collapse.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    max_stamina: float = Field(ge=0, description="Stamina ceiling")
    current_stamina: float = Field(description="Remaining stamina")
    fatigue_level: FatigueLevel = FatigueLevel.NONE
    status: FatigueStatus = FatigueStatus.READY
    penalties: FatiguePenalties = Field(default_factory=FatiguePenalties)
    last_activity: StaminaActivity | None = None
    total_rounds_active: int = Field(default=0, ge=0)
    collapse_rounds_remaining: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def stamina_ratio(self) -> float:
        """Current stamina as a share of maximum (0 when max is 0)."""
        if self.max_stamina <= 0:
            return 0.0
        return self.current_stamina / self.max_stamina

    @property
    def is_collapsed(self) -> bool:
        return self.status is FatigueStatus.COLLAPSED


class SprintFatigueState(BaseModel):
    """Sprint-duration fatigue tracker.

    A combatant may sprint for P.E. minutes before penalties begin. Each
    minute beyond costs one point of speed and one point of combat bonus;
    at four minutes over speed halves, and at five the sprinter collapses.

    Attributes:
        sprint_timer: Minutes spent sprinting since the last full recovery.
        rest_timer: Minutes of rest since the last sprint.
        minutes_over: Whole minutes sprinted beyond the P.E. budget.
        base_speed: Unfatigued Spd.
        base_pe: P.E., the sprint budget in minutes.
        current_speed: Spd after sprint fatigue.
        status: Sprint readiness.
        combat_penalty: Modifier to strike, parry and dodge.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    sprint_timer: float = Field(default=0.0, ge=0)
    rest_timer: float = Field(default=0.0, ge=0)
    minutes_over: int = Field(default=0, ge=0)
    base_speed: int = Field(ge=0)
    base_pe: int = Field(ge=0)
    current_speed: int = Field(ge=0)
    status: SprintStatus = SprintStatus.READY
    combat_penalty: int = Field(default=0, le=0)

    @property
    def is_collapsed(self) -> bool:
        return self.status is SprintStatus.COLLAPSED


class GrapplePenalties(BaseModel):
    """Positional modifiers imposed by a grapple."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    strike: int = 0
    parry: int = 0
    dodge: int = 0


class GrappleState(BaseModel):
    """Position of one combatant in the grapple state machine.

    Invariant: when ``status`` is engaged, the opponent's state names this
    combatant back, holds the complementary role and the same
    ``shared_cell``.

    Attributes:
        status: NEUTRAL, CLINCH, GROUND or GRAPPLED.
        opponent_id: Id of the other participant.
        shared_cell: Cell both participants occupy while engaged.
        origin_cell: Cell the initiator left; set on the initiator only.
        is_attacker: True for the participant in control of the hold.
        penalties: Positional modifiers.
        can_use_long_weapons: False while engaged.
        rounds_in_grapple: Rounds spent engaged with this opponent.
        reversal_advantage: One-time bonus earned by a reversal.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    status: GrappleStatus = GrappleStatus.NEUTRAL
    opponent_id: str | None = None
    shared_cell: Cell | None = None
    origin_cell: Cell | None = None
    is_attacker: bool = False
    penalties: GrapplePenalties = Field(default_factory=GrapplePenalties)
    can_use_long_weapons: bool = True
    rounds_in_grapple: int = Field(default=0, ge=0)
    reversal_advantage: int = Field(default=0, ge=0)

    @property
    def is_engaged(self) -> bool:
        return self.status.is_engaged


__all__ = [
    "FatiguePenalties",
    "FatigueState",
    "SprintFatigueState",
    "GrapplePenalties",
    "GrappleState",
]
