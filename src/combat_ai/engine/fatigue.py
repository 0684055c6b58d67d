"""Melee-round stamina and fatigue.

Stamina starts at P.E. times two and is spent every melee round at a rate
set by the exertion. It may run negative; the deeper it goes, the harsher
the penalty band:

    ============  =========  =================================
    Band          Stamina    Penalties
    ============  =========  =================================
    Minor         <= -5      -1 strike/parry/dodge
    Moderate      <= -10     -2 strike/parry/dodge, -2 P.S.
    Severe        <= -15     -3 strike/parry/dodge, speed x0.5
    Collapse      <= -16     -4 strike/parry/dodge, speed 0
    ============  =========  =================================

In the collapse band a d20 is rolled against P.E. each turn; failure knocks
the fighter out for 1d4 melee rounds (-5 to everything, cannot act).

Every function here mutates ``combatant.fatigue_state`` in place, creating
it on first use, and returns that same state object or a small report that
references it.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

from combat_ai.core.constants import (
    COLLAPSE_THRESHOLD,
    DEFAULT_DIE_SIDES,
    ENCUMBRANCE_SURCHARGE,
    HEAVY_ARMOR_WEIGHT,
    HEAVY_LOAD_WEIGHT,
    LANDING_STAMINA_FLOOR,
    LANDING_STAMINA_RATIO,
    MEN_AT_ARMS_ARMOR_REFUND,
    MEN_AT_ARMS_OCCS,
    MINOR_FATIGUE_THRESHOLD,
    MODERATE_FATIGUE_THRESHOLD,
    SEVERE_FATIGUE_THRESHOLD,
    SHORT_REST_ROUNDS_PER_MINUTE,
    STAMINA_FLOOR,
    STAMINA_PER_PE,
)
from combat_ai.core.logging import get_logger
from combat_ai.engine.dice import RollFn
from combat_ai.engine.interfaces import CombatLog, emit
from combat_ai.models.combatant import Combatant
from combat_ai.models.enums import FatigueLevel, FatigueStatus, LogLevel, RestType, StaminaActivity
from combat_ai.models.state import FatiguePenalties, FatigueState


logger = get_logger(__name__)


# =============================================================================
# Rates and Bands
# =============================================================================

STAMINA_COSTS: dict[StaminaActivity, float] = {
    StaminaActivity.LIGHT_MOVEMENT: 0.5,
    StaminaActivity.NORMAL_COMBAT: 1.0,
    StaminaActivity.GRAPPLING: 2.0,
    StaminaActivity.SPRINTING: 1.5,
    StaminaActivity.SPELLCASTING: 1.0,
    StaminaActivity.MOUNTED: 0.5,
    StaminaActivity.FLY_HOVER: 0.5,
    StaminaActivity.FLY_CRUISE: 1.0,
    StaminaActivity.FLY_SPRINT: 1.5,
}
"""Stamina spent per melee round, before encumbrance."""

RECOVERY_RATES: dict[RestType, float] = {
    RestType.LIGHT_REST: 1.0,
    RestType.FULL_REST: 2.0,
}
"""Stamina regained per melee round of rest."""

_FLYING_MODES = frozenset(
    {StaminaActivity.FLY_HOVER, StaminaActivity.FLY_CRUISE, StaminaActivity.FLY_SPRINT}
)

# (threshold, level, status, penalties), deepest first.
_BANDS: tuple[tuple[float, FatigueLevel, FatigueStatus, FatiguePenalties], ...] = (
    (
        COLLAPSE_THRESHOLD,
        FatigueLevel.COLLAPSE,
        FatigueStatus.COLLAPSE_RISK,
        FatiguePenalties(strike=-4, parry=-4, dodge=-4, ps=-4, speed=0.0),
    ),
    (
        SEVERE_FATIGUE_THRESHOLD,
        FatigueLevel.SEVERE,
        FatigueStatus.EXHAUSTED,
        FatiguePenalties(strike=-3, parry=-3, dodge=-3, ps=-3, speed=0.5),
    ),
    (
        MODERATE_FATIGUE_THRESHOLD,
        FatigueLevel.MODERATE,
        FatigueStatus.FATIGUED,
        FatiguePenalties(strike=-2, parry=-2, dodge=-2, ps=-2),
    ),
    (
        MINOR_FATIGUE_THRESHOLD,
        FatigueLevel.MINOR,
        FatigueStatus.FATIGUED,
        FatiguePenalties(strike=-1, parry=-1, dodge=-1),
    ),
)

COLLAPSED_PENALTIES = FatiguePenalties(strike=-5, parry=-5, dodge=-5, ps=-5, speed=0.0)
"""Penalties while unconscious from exhaustion."""

# Collapse check penalty to effective P.E. by band.
_COLLAPSE_CHECK_PENALTY: dict[FatigueLevel, int] = {
    FatigueLevel.NONE: 0,
    FatigueLevel.MINOR: 0,
    FatigueLevel.MODERATE: -1,
    FatigueLevel.SEVERE: -2,
    FatigueLevel.COLLAPSE: -3,
}


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class CollapseCheck:
    """Outcome of a collapse-from-exhaustion roll.

    Attributes:
        collapsed: The fighter passed out.
        roll: Natural d20 roll.
        target: Effective P.E. the roll had to stay at or under.
        duration_rounds: Melee rounds unconscious (0 when still standing).
        new_stamina: Stamina after the check.
    """

    collapsed: bool
    roll: int
    target: int
    duration_rounds: int
    new_stamina: float


@dataclass(frozen=True)
class RecoveryReport:
    """How much stamina an out-of-combat recovery restored."""

    state: FatigueState
    recovered: float
    is_full_recovery: bool
    rounds: int = 0


@dataclass(frozen=True)
class ActionAllowance:
    """Whether fatigue permits an exertion, with the reason when it does not."""

    can_perform: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.can_perform


class EffectiveBonuses(BaseModel):
    """A combatant's combat numbers after fatigue penalties."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strike: int
    parry: int
    dodge: int
    damage: int
    PS: int
    Spd: int
    can_act: bool = True


class FatigueReport(BaseModel):
    """Display summary of a combatant's fatigue."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: FatigueStatus
    description: str
    color: str
    stamina: float | None = None
    max_stamina: float | None = None
    stamina_percent: int | None = None
    penalties: FatiguePenalties | None = None
    fatigue_level: FatigueLevel = FatigueLevel.NONE
    total_rounds_active: int = 0


# =============================================================================
# State Lifecycle
# =============================================================================


def initialize_fatigue(combatant: Combatant) -> FatigueState:
    """Build a fresh stamina state for a combatant (P.E. x 2)."""
    max_stamina = float(combatant.attributes.PE * STAMINA_PER_PE)
    return FatigueState(max_stamina=max_stamina, current_stamina=max_stamina)


def ensure_fatigue(combatant: Combatant) -> FatigueState:
    """Return the combatant's stamina state, creating it on first use."""
    if combatant.fatigue_state is None:
        combatant.fatigue_state = initialize_fatigue(combatant)
    return combatant.fatigue_state


def reset_fatigue(combatant: Combatant) -> FatigueState:
    """Restore full stamina and clear every fatigue effect."""
    state = ensure_fatigue(combatant)
    state.max_stamina = float(combatant.attributes.PE * STAMINA_PER_PE)
    state.current_stamina = state.max_stamina
    state.fatigue_level = FatigueLevel.NONE
    state.penalties = FatiguePenalties()
    state.status = FatigueStatus.READY
    state.total_rounds_active = 0
    state.last_activity = None
    state.collapse_rounds_remaining = 0
    return state


# =============================================================================
# Spending
# =============================================================================


def _is_men_at_arms(combatant: Combatant) -> bool:
    occ = (combatant.occ or "").lower()
    return bool(occ) and any(name in occ for name in MEN_AT_ARMS_OCCS)


def stamina_cost(activity: StaminaActivity | float, combatant: Combatant | None = None) -> float:
    """Stamina spent per melee round on an activity, including encumbrance.

    Armor over 40 lbs and loads over 60 lbs each add 0.5. Trained soldiers
    get 0.25 of the armor surcharge back.

    Args:
        activity: Exertion category, or a raw per-round cost.
        combatant: Wearer whose load is checked; None skips encumbrance.

    Returns:
        Stamina per round.
    """
    if isinstance(activity, StaminaActivity):
        cost = STAMINA_COSTS[activity]
    else:
        cost = float(activity)

    if combatant is None:
        return cost

    armor_weight = combatant.armor_weight
    load = combatant.carried_weight or armor_weight
    heavy_armor = armor_weight > HEAVY_ARMOR_WEIGHT
    if heavy_armor:
        cost += ENCUMBRANCE_SURCHARGE
    if load > HEAVY_LOAD_WEIGHT:
        cost += ENCUMBRANCE_SURCHARGE
    if heavy_armor and _is_men_at_arms(combatant):
        cost -= MEN_AT_ARMS_ARMOR_REFUND
    return cost


def drain_stamina(
    combatant: Combatant,
    activity: StaminaActivity = StaminaActivity.NORMAL_COMBAT,
    rounds: int = 1,
) -> FatigueState:
    """Spend stamina for one or more melee rounds of exertion.

    Args:
        combatant: The exerting combatant; mutated in place.
        activity: What the combatant is doing.
        rounds: Number of melee rounds.

    Returns:
        The combatant's updated FatigueState.
    """
    state = ensure_fatigue(combatant)
    cost = stamina_cost(activity, combatant) * rounds
    state.current_stamina -= cost
    state.last_activity = activity
    state.total_rounds_active += rounds
    update_fatigue_penalties(combatant)
    logger.debug(
        "Stamina drained",
        combatant=combatant.id,
        activity=str(activity),
        cost=cost,
        stamina=state.current_stamina,
        level=int(state.fatigue_level),
    )
    return state


def spend_flying_stamina(
    combatant: Combatant,
    mode: StaminaActivity = StaminaActivity.FLY_CRUISE,
    rounds: int = 1,
) -> FatigueState:
    """Spend stamina on flight. Flying never drives stamina below zero."""
    if mode not in _FLYING_MODES:
        mode = StaminaActivity.FLY_CRUISE
    state = ensure_fatigue(combatant)
    cost = STAMINA_COSTS[mode] * rounds
    state.current_stamina = max(0.0, state.current_stamina - cost)
    state.last_activity = mode
    update_fatigue_penalties(combatant)
    return state


def should_land_to_rest(combatant: Combatant) -> bool:
    """True when a flier is down to 20% of max stamina (never less than 4)."""
    state = ensure_fatigue(combatant)
    threshold = max(LANDING_STAMINA_FLOOR, state.max_stamina * LANDING_STAMINA_RATIO)
    return state.current_stamina <= threshold


# =============================================================================
# Penalty Bands
# =============================================================================


def update_fatigue_penalties(combatant: Combatant) -> FatigueState:
    """Recompute level, status and penalties from current stamina.

    A pure function of stamina: calling it twice in a row changes nothing.
    A collapsed combatant keeps its collapsed status until ``tick_collapse``
    wakes it.
    """
    state = ensure_fatigue(combatant)
    if state.status is FatigueStatus.COLLAPSED:
        return state

    stamina = state.current_stamina
    for threshold, level, status, penalties in _BANDS:
        if stamina <= threshold:
            state.fatigue_level = level
            state.status = status
            state.penalties = penalties.model_copy()
            return state

    state.fatigue_level = FatigueLevel.NONE
    state.status = FatigueStatus.READY
    state.penalties = FatiguePenalties()
    return state


def resolve_collapse_check(
    combatant: Combatant,
    roll_fn: RollFn,
    *,
    die_sides: int = DEFAULT_DIE_SIDES,
    combat_log: CombatLog | None = None,
) -> CollapseCheck:
    """Roll to stay conscious while in the collapse band.

    The target is P.E. lowered by how deep the fatigue runs (never below 1).
    Rolling over it collapses the fighter for 1d4 melee rounds and lifts
    stamina back to the severe band floor.

    Args:
        combatant: The exhausted combatant; mutated in place.
        roll_fn: Source of dice rolls.
        die_sides: Size of the check die.
        combat_log: Optional narration sink.

    Returns:
        CollapseCheck describing the roll.
    """
    state = ensure_fatigue(combatant)
    stamina = state.current_stamina
    target = max(1, combatant.attributes.PE + _COLLAPSE_CHECK_PENALTY[state.fatigue_level])
    roll = roll_fn(die_sides)

    if roll <= target:
        logger.debug("Collapse check passed", combatant=combatant.id, roll=roll, target=target)
        return CollapseCheck(
            collapsed=False, roll=roll, target=target, duration_rounds=0, new_stamina=stamina
        )

    duration = roll_fn(4)
    state.current_stamina = max(stamina, float(SEVERE_FATIGUE_THRESHOLD))
    state.status = FatigueStatus.COLLAPSED
    state.penalties = COLLAPSED_PENALTIES.model_copy()
    state.collapse_rounds_remaining = duration
    logger.info(
        "Combatant collapsed from exhaustion",
        combatant=combatant.id,
        roll=roll,
        target=target,
        rounds=duration,
    )
    emit(
        combat_log,
        f"{combatant.name} collapses from exhaustion for {duration} melee round(s)!",
        LogLevel.COMBAT,
    )
    return CollapseCheck(
        collapsed=True,
        roll=roll,
        target=target,
        duration_rounds=duration,
        new_stamina=state.current_stamina,
    )


def tick_collapse(combatant: Combatant) -> FatigueState:
    """Count down one melee round of unconsciousness.

    When the count reaches zero the fighter comes to, and its band is
    recomputed from stamina.
    """
    state = ensure_fatigue(combatant)
    if state.status is not FatigueStatus.COLLAPSED:
        return state
    state.collapse_rounds_remaining = max(0, state.collapse_rounds_remaining - 1)
    if state.collapse_rounds_remaining == 0:
        state.status = FatigueStatus.READY
        update_fatigue_penalties(combatant)
        logger.info("Combatant recovered from collapse", combatant=combatant.id)
    return state


# =============================================================================
# Recovery
# =============================================================================


def recover_stamina(
    combatant: Combatant,
    rest_type: RestType = RestType.LIGHT_REST,
    rounds: int = 1,
) -> FatigueState:
    """Regain stamina by resting, capped at maximum."""
    state = ensure_fatigue(combatant)
    amount = RECOVERY_RATES[rest_type] * rounds
    state.current_stamina = min(state.max_stamina, state.current_stamina + amount)
    update_fatigue_penalties(combatant)
    return state


def magical_stamina_recovery(
    combatant: Combatant,
    roll_fn: RollFn,
    amount: float | None = None,
) -> RecoveryReport:
    """Restore stamina through magic or divine aid (1d6 unless given)."""
    state = ensure_fatigue(combatant)
    if amount is None:
        amount = roll_fn(6)
    before = state.current_stamina
    state.current_stamina = min(state.max_stamina, state.current_stamina + amount)
    update_fatigue_penalties(combatant)
    return RecoveryReport(
        state=state,
        recovered=state.current_stamina - before,
        is_full_recovery=state.current_stamina >= state.max_stamina,
    )


def short_rest_recovery(combatant: Combatant, minutes: float = 5) -> RecoveryReport:
    """Rest between fights: every minute counts as four rounds of full rest."""
    state = ensure_fatigue(combatant)
    rounds = math.floor(minutes * SHORT_REST_ROUNDS_PER_MINUTE)
    before = state.current_stamina
    state.current_stamina = min(
        state.max_stamina,
        state.current_stamina + rounds * RECOVERY_RATES[RestType.FULL_REST],
    )
    update_fatigue_penalties(combatant)
    return RecoveryReport(
        state=state,
        recovered=state.current_stamina - before,
        is_full_recovery=state.current_stamina >= state.max_stamina,
        rounds=rounds,
    )


def sleep_recovery(combatant: Combatant, hours: float = 1) -> RecoveryReport:
    """Sleep. An hour or more restores everything; less restores a share of the deficit."""
    state = ensure_fatigue(combatant)
    before = state.current_stamina
    if hours >= 1:
        state.current_stamina = state.max_stamina
    else:
        share = max(0.0, hours)
        deficit = state.max_stamina - state.current_stamina
        state.current_stamina = min(state.max_stamina, state.current_stamina + deficit * share)

    state.status = FatigueStatus.READY
    state.total_rounds_active = 0
    state.last_activity = None
    state.collapse_rounds_remaining = 0
    update_fatigue_penalties(combatant)
    return RecoveryReport(
        state=state,
        recovered=state.current_stamina - before,
        is_full_recovery=state.current_stamina >= state.max_stamina,
    )


def apply_post_combat_recovery(
    combatants: Iterable[Combatant],
    minutes: float = 5,
    combat_log: CombatLog | None = None,
) -> list[Combatant]:
    """Give every combatant that has fought a short rest after the encounter.

    Combatants that never spent stamina are left alone.
    """
    rested: list[Combatant] = []
    for combatant in combatants:
        rested.append(combatant)
        if combatant.fatigue_state is None:
            continue
        report = short_rest_recovery(combatant, minutes)
        state = report.state
        if report.is_full_recovery:
            message = f"{combatant.name} fully recovered stamina after {minutes} minutes of rest."
        else:
            message = (
                f"{combatant.name} recovered {report.recovered:.1f} stamina "
                f"({state.current_stamina:.1f}/{state.max_stamina:g} SP) "
                f"after {minutes} minutes of rest."
            )
        emit(combat_log, message, LogLevel.INFO)
    return rested


# =============================================================================
# Queries
# =============================================================================


def effective_bonuses(combatant: Combatant) -> EffectiveBonuses:
    """Combat bonuses, P.S. and Spd with fatigue penalties applied."""
    bonuses = combatant.bonuses
    attributes = combatant.attributes
    state = combatant.fatigue_state
    if state is None or state.status is FatigueStatus.READY:
        return EffectiveBonuses(
            strike=bonuses.strike,
            parry=bonuses.parry,
            dodge=bonuses.dodge,
            damage=bonuses.damage,
            PS=attributes.PS,
            Spd=attributes.Spd,
        )

    penalties = state.penalties
    return EffectiveBonuses(
        strike=bonuses.strike + penalties.strike,
        parry=bonuses.parry + penalties.parry,
        dodge=bonuses.dodge + penalties.dodge,
        damage=bonuses.damage,
        PS=max(1, attributes.PS + penalties.ps) if penalties.ps else attributes.PS,
        Spd=math.floor(attributes.Spd * penalties.speed),
        can_act=not state.is_collapsed,
    )


def get_fatigue_status(combatant: Combatant) -> FatigueReport:
    """Summarize fatigue for display."""
    state = combatant.fatigue_state
    if state is None:
        return FatigueReport(status=FatigueStatus.READY, description="Fresh", color="green")

    percent = state.stamina_ratio * 100
    if state.status is FatigueStatus.READY:
        if percent > 75:
            description, color = "Fresh", "green"
        elif percent > 50:
            description, color = "Alert", "yellow"
        else:
            description, color = "Tiring", "orange"
    elif state.status is FatigueStatus.FATIGUED:
        band = "Minor" if state.fatigue_level is FatigueLevel.MINOR else "Moderate"
        description, color = f"Fatigued ({band})", "yellow"
    elif state.status is FatigueStatus.EXHAUSTED:
        description, color = "Exhausted", "orange"
    elif state.status is FatigueStatus.COLLAPSE_RISK:
        description, color = "Risk of Collapse", "red"
    else:
        description, color = "Collapsed", "red"

    return FatigueReport(
        status=state.status,
        description=description,
        color=color,
        stamina=round(state.current_stamina, 1),
        max_stamina=state.max_stamina,
        stamina_percent=round(percent),
        penalties=state.penalties.model_copy(),
        fatigue_level=state.fatigue_level,
        total_rounds_active=state.total_rounds_active,
    )


def can_perform_action(combatant: Combatant, activity: StaminaActivity) -> ActionAllowance:
    """Check whether fatigue allows an exertion this round.

    Collapsed fighters cannot act, fighters at risk of collapse cannot
    grapple, and nothing may push stamina below the stamina floor.
    """
    state = combatant.fatigue_state
    if state is None:
        return ActionAllowance(can_perform=True)

    if state.is_collapsed:
        return ActionAllowance(
            can_perform=False,
            reason="Character has collapsed from exhaustion and cannot act.",
        )
    if state.status is FatigueStatus.COLLAPSE_RISK and activity is StaminaActivity.GRAPPLING:
        return ActionAllowance(
            can_perform=False,
            reason="Too exhausted for grappling. Risk of collapse.",
        )
    if state.current_stamina - stamina_cost(activity, combatant) < STAMINA_FLOOR:
        return ActionAllowance(
            can_perform=False,
            reason="Insufficient stamina. Character must rest.",
        )
    return ActionAllowance(can_perform=True)


__all__ = [
    "STAMINA_COSTS",
    "RECOVERY_RATES",
    "COLLAPSED_PENALTIES",
    "CollapseCheck",
    "RecoveryReport",
    "ActionAllowance",
    "EffectiveBonuses",
    "FatigueReport",
    "initialize_fatigue",
    "ensure_fatigue",
    "reset_fatigue",
    "stamina_cost",
    "drain_stamina",
    "spend_flying_stamina",
    "should_land_to_rest",
    "update_fatigue_penalties",
    "resolve_collapse_check",
    "tick_collapse",
    "recover_stamina",
    "magical_stamina_recovery",
    "short_rest_recovery",
    "sleep_recovery",
    "apply_post_combat_recovery",
    "effective_bonuses",
    "get_fatigue_status",
    "can_perform_action",
]
