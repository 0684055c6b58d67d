"""Encounter-level context passed to every decision."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, computed_field


class CombatState(BaseModel):
    """Snapshot of the encounter as seen by one combatant's turn.

    Attributes:
        round_number: Current melee round, starting at 1.
        turn: Turn index inside the round.
        under_ranged_fire: The acting combatant is being shot at.
        allies_in_melee: Allies are already engaged in melee.
        protected_ally_id: Combatant a bodyguard is assigned to.
        protected_ally_threatened: That ally is currently threatened.
        combat_distance_ft: Known distance to the primary target.
        has_closed_distance: The combatant has already closed to melee.
        terrain: Terrain keyword.
        difficulty: Optional per-encounter difficulty override.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    round_number: Annotated[int, Field(ge=1, description="Current round")] = 1
    turn: Annotated[int, Field(ge=0, description="Turn index")] = 0
    under_ranged_fire: bool = False
    allies_in_melee: bool = False
    protected_ally_id: str | None = None
    protected_ally_threatened: bool = False
    combat_distance_ft: float | None = Field(default=None, ge=0)
    has_closed_distance: bool = False
    terrain: str = "open"
    difficulty: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_first_melee_round(self) -> bool:
        """True during the opening round, when reach grants first strike."""
        return self.round_number == 1


__all__ = ["CombatState"]
