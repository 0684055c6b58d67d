"""Sprint-duration fatigue.

A combatant can sprint at Spd x 20 yards per melee for P.E. minutes. Each
whole minute beyond that costs one point of Spd and one point of strike,
parry and dodge. Four minutes over halves speed and leaves the sprinter
gasping (unable to dodge ranged attacks); five minutes over is a collapse.
Rest clears it all after half the time spent sprinting.

This model is independent of melee-round stamina in ``fatigue``; both can
apply to the same combatant at once.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from combat_ai.core.constants import FEET_PER_CELL, SPRINT_FEET_PER_SPEED
from combat_ai.core.logging import get_logger
from combat_ai.models.combatant import Combatant
from combat_ai.models.enums import SprintStatus
from combat_ai.models.state import SprintFatigueState


logger = get_logger(__name__)

GASPING_MINUTES_OVER = 4
COLLAPSE_MINUTES_OVER = 5


# =============================================================================
# State Lifecycle
# =============================================================================


def initialize_sprint_fatigue(combatant: Combatant) -> SprintFatigueState:
    """Build a fresh sprint state from the combatant's Spd and P.E."""
    speed = combatant.attributes.Spd
    return SprintFatigueState(
        base_speed=speed,
        base_pe=combatant.attributes.PE,
        current_speed=speed,
    )


def ensure_sprint_fatigue(combatant: Combatant) -> SprintFatigueState:
    """Return the combatant's sprint state, creating it on first use."""
    if combatant.sprint_state is None:
        combatant.sprint_state = initialize_sprint_fatigue(combatant)
    return combatant.sprint_state


def reset_sprint_fatigue(combatant: Combatant) -> SprintFatigueState:
    state = ensure_sprint_fatigue(combatant)
    state.base_speed = combatant.attributes.Spd
    state.base_pe = combatant.attributes.PE
    state.current_speed = state.base_speed
    state.sprint_timer = 0.0
    state.rest_timer = 0.0
    state.minutes_over = 0
    state.status = SprintStatus.READY
    state.combat_penalty = 0
    return state


# =============================================================================
# Sprinting and Resting
# =============================================================================


def update_sprint_fatigue(combatant: Combatant, minutes: float = 1) -> SprintFatigueState:
    """Add sprinting time and recompute speed and penalties.

    Args:
        combatant: The sprinter; mutated in place.
        minutes: Minutes of sprinting to add.

    Returns:
        The combatant's updated SprintFatigueState.
    """
    state = ensure_sprint_fatigue(combatant)
    state.sprint_timer += minutes
    state.rest_timer = 0.0

    if state.sprint_timer <= state.base_pe:
        state.minutes_over = 0
        state.current_speed = state.base_speed
        state.combat_penalty = 0
        state.status = SprintStatus.READY
        return state

    over = math.floor(state.sprint_timer - state.base_pe)
    state.minutes_over = over
    if over >= COLLAPSE_MINUTES_OVER:
        state.current_speed = 0
        state.combat_penalty = -COLLAPSE_MINUTES_OVER
        state.status = SprintStatus.COLLAPSED
        logger.info("Sprinter collapsed", combatant=combatant.id, minutes_over=over)
    elif over == GASPING_MINUTES_OVER:
        state.current_speed = max(state.base_speed // 2, 1)
        state.combat_penalty = -GASPING_MINUTES_OVER
        state.status = SprintStatus.GASPING
    elif over >= 1:
        state.current_speed = max(state.base_speed - over, 1)
        state.combat_penalty = -over
        state.status = SprintStatus.FATIGUED
    else:
        # Less than a whole minute over the budget.
        state.current_speed = state.base_speed
        state.combat_penalty = 0
        state.status = SprintStatus.READY

    logger.debug(
        "Sprint fatigue updated",
        combatant=combatant.id,
        sprint_timer=state.sprint_timer,
        minutes_over=over,
        status=str(state.status),
    )
    return state


def rest_and_recover(combatant: Combatant, minutes: float = 1) -> SprintFatigueState:
    """Rest off sprint fatigue.

    Resting for half the sprint time (rounded up, at least one minute)
    clears everything. Shorter rests scale the penalty back in proportion,
    and a collapsed sprinter is back on its feet at half speed after a
    minute.
    """
    state = ensure_sprint_fatigue(combatant)
    state.rest_timer += minutes
    required = max(math.ceil(state.sprint_timer / 2), 1)

    if state.rest_timer >= required:
        state.current_speed = state.base_speed
        state.combat_penalty = 0
        state.sprint_timer = 0.0
        state.rest_timer = 0.0
        state.minutes_over = 0
        state.status = SprintStatus.READY
        return state

    over = state.minutes_over
    if over > 0:
        reduction = math.floor(over * state.rest_timer / required)
        state.combat_penalty = min(-1, -(over - reduction))

    if state.status is SprintStatus.COLLAPSED and state.rest_timer >= 1:
        state.status = SprintStatus.FATIGUED
        state.current_speed = max(state.base_speed // 2, 1)
    return state


# =============================================================================
# Queries
# =============================================================================


def can_sprint(combatant: Combatant) -> bool:
    """False only while collapsed from sprinting."""
    state = combatant.sprint_state
    return state is None or not state.is_collapsed


def sprint_distance_feet(speed: int) -> int:
    """Feet covered in one melee round of sprinting (Spd x 20 yards)."""
    return speed * SPRINT_FEET_PER_SPEED


def sprint_distance_cells(speed: int) -> int:
    return math.floor(sprint_distance_feet(speed) / FEET_PER_CELL)


@dataclass(frozen=True)
class SprintRange:
    """Distance a combatant can sprint before fatigue sets in."""

    yards: int
    feet: int
    cells: int
    minutes: int


def max_sprint_distance(speed: int, pe: int) -> SprintRange:
    """Total distance covered sprinting for the full P.E.-minute budget."""
    yards = speed * 20 * pe
    feet = yards * 3
    return SprintRange(yards=yards, feet=feet, cells=math.floor(feet / FEET_PER_CELL), minutes=pe)


@dataclass(frozen=True)
class SprintReport:
    """Display summary of sprint fatigue."""

    status: SprintStatus
    description: str
    color: str
    penalty: int = 0


def get_sprint_status(combatant: Combatant) -> SprintReport:
    state = combatant.sprint_state
    if state is None or state.status is SprintStatus.READY:
        return SprintReport(status=SprintStatus.READY, description="Fresh", color="green")
    if state.status is SprintStatus.FATIGUED:
        return SprintReport(
            status=state.status,
            description=f"Fatigued ({state.minutes_over} min over)",
            color="yellow",
            penalty=state.combat_penalty,
        )
    if state.status is SprintStatus.GASPING:
        return SprintReport(
            status=state.status,
            description="Gasping for air",
            color="orange",
            penalty=state.combat_penalty,
        )
    return SprintReport(
        status=state.status,
        description="Collapsed from exhaustion",
        color="red",
        penalty=-COLLAPSE_MINUTES_OVER,
    )


@dataclass(frozen=True)
class SprintPenalties:
    """Sprint fatigue applied to combat bonuses."""

    strike: int
    parry: int
    dodge: int
    can_dodge_ranged: bool = True
    can_act: bool = True


def apply_sprint_penalties(combatant: Combatant) -> SprintPenalties:
    """Strike, parry and dodge after sprint fatigue, plus what the sprinter can still do."""
    bonuses = combatant.bonuses
    state = combatant.sprint_state
    if state is None or state.status is SprintStatus.READY:
        return SprintPenalties(strike=bonuses.strike, parry=bonuses.parry, dodge=bonuses.dodge)

    penalty = state.combat_penalty
    return SprintPenalties(
        strike=bonuses.strike + penalty,
        parry=bonuses.parry + penalty,
        dodge=bonuses.dodge + penalty,
        can_dodge_ranged=state.status is not SprintStatus.GASPING,
        can_act=not state.is_collapsed,
    )


__all__ = [
    "initialize_sprint_fatigue",
    "ensure_sprint_fatigue",
    "reset_sprint_fatigue",
    "update_sprint_fatigue",
    "rest_and_recover",
    "can_sprint",
    "sprint_distance_feet",
    "sprint_distance_cells",
    "SprintRange",
    "max_sprint_distance",
    "SprintReport",
    "get_sprint_status",
    "SprintPenalties",
    "apply_sprint_penalties",
]
