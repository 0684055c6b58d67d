"""Grapple state machine.

Positions::

    NEUTRAL --attempt_grapple--> CLINCH/CLINCH --perform_takedown--> GROUND/GRAPPLED
       ^                              |                                   |
       +---- maintain lost, break_free, push off, push break, trip -------+

Both participants of a clinch are CLINCH; the one who initiated holds
``is_attacker``. A takedown puts the controller on top (GROUND) and pins
the other (GRAPPLED). Entering a grapple moves the initiator onto the
defender's cell; every exit sends whoever left a cell back to it.

Every resolved grapple round drains grappling stamina from both sides,
whatever the outcome. Checks that fail before any dice are rolled (not in a
grapple, out of reach, too tired) cost nothing.

All functions mutate the combatants passed in and return a GrappleResult
carrying detached snapshots of both grapple states.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict

from combat_ai.core.constants import (
    DEFAULT_DIE_SIDES,
    GROUND_STRIKE_TARGET,
    MELEE_RANGE_FT,
    REVERSAL_ADVANTAGE,
    SHORT_WEAPON_MAX_LENGTH,
    TAKEDOWN_TARGET,
)
from combat_ai.core.logging import get_logger
from combat_ai.engine.armor import NaturalArmorResolver, apply_damage
from combat_ai.engine.dice import RollFn, roll_expression
from combat_ai.engine.fatigue import can_perform_action, drain_stamina, effective_bonuses
from combat_ai.engine.interfaces import ArmorResolver, PositionOracle
from combat_ai.engine.positions import measure
from combat_ai.engine.size import (
    can_lift_and_throw,
    get_combined_grapple_modifiers,
    get_leverage_bonus,
)
from combat_ai.engine.weapons import weapon_length
from combat_ai.models.combatant import Attributes, Combatant, Weapon
from combat_ai.models.enums import GrappleStatus, StaminaActivity
from combat_ai.models.state import GrapplePenalties, GrappleState


logger = get_logger(__name__)

CLINCH_DEFENDER_PENALTIES = GrapplePenalties(strike=0, parry=-3, dodge=-2)
PINNED_PENALTIES = GrapplePenalties(strike=-2, parry=-3, dodge=-3)
UNARMED_GRAPPLE_DAMAGE = "1d4"
THROW_DAMAGE = "1d6"


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class GrappleDamage:
    """How grapple damage was split between armor and body.

    Attributes:
        applied: Damage that reached the body.
        absorbed: Damage soaked by armor.
        armor_hit: The blow struck armor.
        sdc_damage: Taken off character S.D.C.
        hp_damage: Taken off hit points.
        broken_armor: Armor pieces reduced to zero S.D.C.
    """

    applied: int
    absorbed: int = 0
    armor_hit: bool = False
    sdc_damage: int = 0
    hp_damage: int = 0
    broken_armor: tuple[str, ...] = ()


@dataclass(frozen=True)
class GrappleResult:
    """Outcome of a grapple action.

    Attributes:
        success: The action achieved what it tried to.
        message: Narration when the action resolved.
        reason: Why the action failed or could not be attempted.
        attacker: Snapshot of the acting combatant's grapple state.
        defender: Snapshot of the opponent's grapple state.
        rolls: Totals rolled by each side.
        natural_roll: Natural die of the acting side's main roll.
        auto_grapple: Grapple succeeded on strength alone.
        hit: A ground strike or takedown connected.
        critical: A ground strike was critical.
        death_blow: A ground strike was a death blow.
        ignores_armor: Damage went straight to S.D.C. and hit points.
        damage: Damage rolled before armor.
        damage_report: Where the damage went.
        details: Extra context.
    """

    success: bool
    message: str = ""
    reason: str = ""
    attacker: GrappleState | None = None
    defender: GrappleState | None = None
    rolls: dict[str, int] = field(default_factory=dict)
    natural_roll: int | None = None
    auto_grapple: bool = False
    hit: bool = False
    critical: bool = False
    death_blow: bool = False
    ignores_armor: bool = False
    damage: int = 0
    damage_report: GrappleDamage | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.message or self.reason


class GrappleStatusReport(BaseModel):
    """Display summary of a combatant's grapple position."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: GrappleStatus
    description: str
    penalties: GrapplePenalties
    can_use_long_weapons: bool = True
    opponent_id: str | None = None
    rounds_in_grapple: int = 0
    is_attacker: bool = False


_DESCRIPTIONS = {
    GrappleStatus.NEUTRAL: "Not grappling",
    GrappleStatus.CLINCH: "In clinch",
    GrappleStatus.GROUND: "Ground grappling",
    GrappleStatus.GRAPPLED: "Being held",
}


# =============================================================================
# State Lifecycle
# =============================================================================


def ensure_grapple(combatant: Combatant) -> GrappleState:
    """Return the combatant's grapple state, creating it on first use."""
    if combatant.grapple_state is None:
        combatant.grapple_state = GrappleState()
    return combatant.grapple_state


def reset_grapple(combatant: Combatant) -> GrappleState:
    """Return a combatant's grapple state to NEUTRAL without moving it."""
    state = ensure_grapple(combatant)
    state.status = GrappleStatus.NEUTRAL
    state.opponent_id = None
    state.shared_cell = None
    state.origin_cell = None
    state.is_attacker = False
    state.penalties = GrapplePenalties()
    state.can_use_long_weapons = True
    state.rounds_in_grapple = 0
    state.reversal_advantage = 0
    return state


def is_symmetric(a: Combatant, b: Combatant) -> bool:
    """Check that two combatants agree about the grapple between them.

    Both NEUTRAL is symmetric. Otherwise each must name the other, share one
    cell and hold complementary roles: CLINCH/CLINCH with exactly one
    controller, or GROUND (controller) over GRAPPLED.
    """
    sa = a.grapple_state or GrappleState()
    sb = b.grapple_state or GrappleState()
    if not sa.is_engaged and not sb.is_engaged:
        return True
    if sa.opponent_id != b.id or sb.opponent_id != a.id:
        return False
    if sa.shared_cell is None or sa.shared_cell != sb.shared_cell:
        return False
    if sa.is_attacker == sb.is_attacker:
        return False

    statuses = {sa.status, sb.status}
    if statuses == {GrappleStatus.CLINCH}:
        return True
    if statuses == {GrappleStatus.GROUND, GrappleStatus.GRAPPLED}:
        top = sa if sa.status is GrappleStatus.GROUND else sb
        return top.is_attacker
    return False


# =============================================================================
# Internals
# =============================================================================


def _result(
    attacker: Combatant,
    defender: Combatant,
    success: bool,
    **kwargs: Any,
) -> GrappleResult:
    return GrappleResult(
        success=success,
        attacker=ensure_grapple(attacker).model_copy(deep=True),
        defender=ensure_grapple(defender).model_copy(deep=True),
        **kwargs,
    )


def _require_pair(actor: Combatant, opponent: Combatant) -> str | None:
    """Reason the two are not grappling each other, or None when they are.

    A pair whose states disagree (the opponent names someone else, or both
    claim the same role) is refused rather than repaired.
    """
    state = ensure_grapple(actor)
    ensure_grapple(opponent)
    if not state.is_engaged:
        return f"{actor.name} is not in a grapple!"
    if state.opponent_id != opponent.id:
        return f"{actor.name} is not grappling {opponent.name}!"
    if not is_symmetric(actor, opponent):
        logger.warning(
            "Grapple state is one-sided",
            actor=actor.id,
            opponent=opponent.id,
            actor_status=str(state.status),
            opponent_status=str(ensure_grapple(opponent).status),
        )
        return "Grapple state is one-sided"
    return None


def _take_advantage(combatant: Combatant) -> int:
    """Consume a pending reversal advantage."""
    state = ensure_grapple(combatant)
    advantage = state.reversal_advantage
    state.reversal_advantage = 0
    return advantage


def _grapple_round(*combatants: Combatant) -> None:
    for combatant in combatants:
        drain_stamina(combatant, StaminaActivity.GRAPPLING)
        state = ensure_grapple(combatant)
        if state.is_engaged:
            state.rounds_in_grapple += 1


def _engage(attacker: Combatant, defender: Combatant) -> None:
    cell = defender.position
    a = ensure_grapple(attacker)
    d = ensure_grapple(defender)

    a.origin_cell = attacker.position
    attacker.position = cell

    a.status = GrappleStatus.CLINCH
    a.opponent_id = defender.id
    a.shared_cell = cell
    a.is_attacker = True
    a.penalties = GrapplePenalties()
    a.can_use_long_weapons = False
    a.rounds_in_grapple = 0

    d.status = GrappleStatus.CLINCH
    d.opponent_id = attacker.id
    d.shared_cell = cell
    d.origin_cell = None
    d.is_attacker = False
    d.penalties = CLINCH_DEFENDER_PENALTIES.model_copy()
    d.can_use_long_weapons = False
    d.rounds_in_grapple = 0


def _release(*combatants: Combatant) -> None:
    for combatant in combatants:
        state = ensure_grapple(combatant)
        if state.origin_cell is not None:
            combatant.position = state.origin_cell
        reset_grapple(combatant)


def _ps_bonus(combatant: Combatant) -> int:
    return Attributes.bonus(effective_bonuses(combatant).PS)


def _pp_bonus(combatant: Combatant) -> int:
    return Attributes.bonus(combatant.attributes.PP)


# =============================================================================
# Entering and Holding
# =============================================================================


def attempt_grapple(
    attacker: Combatant,
    defender: Combatant,
    roll_fn: RollFn,
    positions: PositionOracle | None = None,
    *,
    die_sides: int = DEFAULT_DIE_SIDES,
) -> GrappleResult:
    """Try to seize an opponent in a standing clinch.

    Opposed rolls: d20 + P.P. bonus + strike and grapple bonuses + size
    strike advantage against d20 + P.P. bonus + parry + size parry
    difference. The attacker must roll higher. With a strength lead of ten
    or more the clinch is automatic unless the defender rolls the die's
    maximum.

    Args:
        attacker: Combatant initiating the grapple.
        defender: Combatant being seized.
        roll_fn: Source of natural rolls.
        positions: Distance oracle; the combatants' cells are used without one.
        die_sides: Resolution die size.

    Returns:
        GrappleResult. On success both are CLINCH on the defender's cell.

    Example:
        >>> attempt_grapple(ogre, human, ScriptedRoller([7])).auto_grapple
        True
    """
    a = ensure_grapple(attacker)
    d = ensure_grapple(defender)

    if attacker.id == defender.id:
        return _result(attacker, defender, False, reason=f"{attacker.name} cannot grapple itself!")
    if a.is_engaged:
        return _result(attacker, defender, False, reason=f"{attacker.name} is already in a grapple!")
    if d.is_engaged:
        return _result(
            attacker, defender, False, reason=f"{defender.name} is already in a grapple!"
        )

    distance = measure(positions, attacker, defender)
    if distance > MELEE_RANGE_FT:
        return _result(
            attacker,
            defender,
            False,
            reason=f"{defender.name} is out of reach ({distance:.0f} ft)",
            details={"distance_ft": distance},
        )

    allowance = can_perform_action(attacker, StaminaActivity.GRAPPLING)
    if not allowance:
        return _result(attacker, defender, False, reason=allowance.reason)

    mods = get_combined_grapple_modifiers(attacker, defender)

    if mods.auto_grapple:
        natural = roll_fn(die_sides)
        if natural == die_sides:
            _grapple_round(attacker, defender)
            return _result(
                attacker,
                defender,
                False,
                reason=f"{defender.name} miraculously avoids the grapple with a natural {natural}!",
                rolls={"defender": natural},
                natural_roll=natural,
            )
        _engage(attacker, defender)
        _grapple_round(attacker, defender)
        logger.info(
            "Automatic grapple",
            attacker=attacker.id,
            defender=defender.id,
            ps_diff=mods.ps_diff,
        )
        return _result(
            attacker,
            defender,
            True,
            message=(
                f"{attacker.name} automatically grapples {defender.name} "
                f"(strength advantage too great)!"
            ),
            rolls={"defender": natural},
            natural_roll=natural,
            auto_grapple=True,
        )

    attacker_bonus = effective_bonuses(attacker)
    defender_bonus = effective_bonuses(defender)
    attack_natural = roll_fn(die_sides)
    defend_natural = roll_fn(die_sides)
    attack_roll = (
        attack_natural
        + _pp_bonus(attacker)
        + attacker_bonus.strike
        + attacker.bonuses.grapple
        + mods.strike_bonus
    )
    defend_roll = (
        defend_natural
        + _pp_bonus(defender)
        + defender_bonus.parry
        + mods.defender_parry_penalty
    )
    rolls = {"attacker": attack_roll, "defender": defend_roll}

    if attack_roll > defend_roll:
        _engage(attacker, defender)
        _grapple_round(attacker, defender)
        logger.info("Grapple succeeded", attacker=attacker.id, defender=defender.id, rolls=rolls)
        return _result(
            attacker,
            defender,
            True,
            message=f"{attacker.name} successfully grapples {defender.name}!",
            rolls=rolls,
            natural_roll=attack_natural,
        )

    _grapple_round(attacker, defender)
    return _result(
        attacker,
        defender,
        False,
        reason=f"{attacker.name} fails to grapple {defender.name} ({attack_roll} vs {defend_roll})",
        rolls=rolls,
        natural_roll=attack_natural,
    )


def maintain_grapple(
    attacker: Combatant,
    defender: Combatant,
    roll_fn: RollFn,
    *,
    die_sides: int = DEFAULT_DIE_SIDES,
) -> GrappleResult:
    """Hold on for another round with an opposed strength roll.

    The holder rolls d20 + P.S. bonus against the held combatant's d20 +
    P.S. bonus + leverage. Losing releases both to NEUTRAL.
    """
    reason = _require_pair(attacker, defender)
    if reason:
        return _result(attacker, defender, False, reason=reason)
    if not ensure_grapple(attacker).is_attacker:
        return _result(
            attacker, defender, False, reason=f"{attacker.name} does not control the hold!"
        )

    attack_natural = roll_fn(die_sides)
    attack_roll = attack_natural + _ps_bonus(attacker) + _take_advantage(attacker)
    defend_roll = (
        roll_fn(die_sides)
        + _ps_bonus(defender)
        + get_leverage_bonus(defender, attacker)
        + _take_advantage(defender)
    )
    rolls = {"attacker": attack_roll, "defender": defend_roll}
    _grapple_round(attacker, defender)

    if attack_roll > defend_roll:
        return _result(
            attacker,
            defender,
            True,
            message=f"{attacker.name} maintains the hold on {defender.name}!",
            rolls=rolls,
            natural_roll=attack_natural,
        )

    _release(attacker, defender)
    logger.info("Grapple broken", holder=attacker.id, escaped=defender.id, rolls=rolls)
    return _result(
        attacker,
        defender,
        False,
        message=f"{defender.name} breaks free from {attacker.name}'s hold!",
        rolls=rolls,
        natural_roll=attack_natural,
    )


def perform_takedown(
    attacker: Combatant,
    defender: Combatant,
    roll_fn: RollFn,
    armor: ArmorResolver | None = None,
    *,
    die_sides: int = DEFAULT_DIE_SIDES,
) -> GrappleResult:
    """Throw a clinched opponent to the ground.

    Only the controller of a clinch can try, and only when its P.S. is at
    least twice the defender's weight. d20 + P.S. bonus + size strike
    advantage must reach 15. The throw deals 1d6, subject to armor.
    """
    reason = _require_pair(attacker, defender)
    if reason:
        return _result(attacker, defender, False, reason=reason)
    a = ensure_grapple(attacker)
    if a.status is not GrappleStatus.CLINCH or not a.is_attacker:
        return _result(
            attacker,
            defender,
            False,
            reason=f"{attacker.name} must control a clinch to perform a takedown!",
        )
    if not can_lift_and_throw(attacker, defender):
        return _result(
            attacker,
            defender,
            False,
            reason=f"{attacker.name} is not strong enough to throw {defender.name}!",
        )

    mods = get_combined_grapple_modifiers(attacker, defender)
    natural = roll_fn(die_sides)
    takedown_roll = natural + _ps_bonus(attacker) + mods.strike_bonus + _take_advantage(attacker)
    rolls = {"attacker": takedown_roll}

    if takedown_roll < TAKEDOWN_TARGET:
        _grapple_round(attacker, defender)
        return _result(
            attacker,
            defender,
            False,
            reason=(
                f"{attacker.name} fails to complete the takedown "
                f"(Roll: {takedown_roll}, need {TAKEDOWN_TARGET}+)"
            ),
            rolls=rolls,
            natural_roll=natural,
        )

    d = ensure_grapple(defender)
    a.status = GrappleStatus.GROUND
    d.status = GrappleStatus.GRAPPLED
    d.penalties = PINNED_PENALTIES.model_copy()
    d.can_use_long_weapons = False
    _grapple_round(attacker, defender)

    damage = roll_expression(THROW_DAMAGE, roll_fn).total
    report = resolve_grapple_damage(
        defender, damage, weak_point=False, attack_roll=takedown_roll, armor=armor
    )
    logger.info("Takedown", attacker=attacker.id, defender=defender.id, damage=damage)
    return _result(
        attacker,
        defender,
        True,
        message=f"{attacker.name} throws {defender.name} to the ground!",
        rolls=rolls,
        natural_roll=natural,
        hit=True,
        damage=damage,
        damage_report=report,
    )


def ground_strike(
    attacker: Combatant,
    defender: Combatant,
    roll_fn: RollFn,
    weapon: Weapon | None = None,
    armor: ArmorResolver | None = None,
    *,
    die_sides: int = DEFAULT_DIE_SIDES,
) -> GrappleResult:
    """Stab or punch inside a grapple.

    Only weapons two feet long or shorter fit; with no weapon the strike
    is unarmed for 1d4. A dagger adds +1 and is critical one point earlier.

    * Natural maximum with the Death Blow trait: damage equal to the
      defender's remaining S.D.C. and hit points.
    * Natural in the critical range: double damage plus P.S. bonus,
      straight past armor.
    * Total of 12 or more: normal damage, armor applies.
    * Anything else misses.

    A pinned (GRAPPLED) combatant cannot ground strike.
    """
    reason = _require_pair(attacker, defender)
    if reason:
        return _result(attacker, defender, False, reason=reason)
    if ensure_grapple(attacker).status is GrappleStatus.GRAPPLED:
        return _result(attacker, defender, False, reason=f"{attacker.name} is pinned!")

    if weapon is not None and weapon.name.lower() == "unarmed":
        weapon = None
    if weapon is not None and weapon_length(weapon) > SHORT_WEAPON_MAX_LENGTH:
        return _result(
            attacker,
            defender,
            False,
            reason=f"{weapon.name} is too long to use in a grapple! Use a dagger or unarmed attack.",
        )

    dagger = weapon is not None and weapon.is_dagger
    dagger_bonus = 1 if dagger else 0
    crit_threshold = die_sides - 1 if dagger else die_sides
    damage_expression = weapon.damage if weapon is not None else UNARMED_GRAPPLE_DAMAGE

    natural = roll_fn(die_sides)
    attack_roll = (
        natural
        + _pp_bonus(attacker)
        + effective_bonuses(attacker).strike
        + dagger_bonus
        + _take_advantage(attacker)
    )
    rolls = {"attacker": attack_roll}
    _grapple_round(attacker, defender)

    if natural == die_sides and attacker.has_death_blow:
        damage = defender.current_hp + defender.current_sdc
        report = resolve_grapple_damage(defender, damage, weak_point=True)
        logger.info("Death blow", attacker=attacker.id, defender=defender.id)
        return _result(
            attacker,
            defender,
            True,
            message=f"CRITICAL DEATH BLOW! {attacker.name} delivers a killing strike to {defender.name}!",
            rolls=rolls,
            natural_roll=natural,
            hit=True,
            critical=True,
            death_blow=True,
            ignores_armor=True,
            damage=damage,
            damage_report=report,
        )

    if natural >= crit_threshold:
        damage = max(
            roll_expression(damage_expression, roll_fn).total * 2 + _ps_bonus(attacker), 0
        )
        report = resolve_grapple_damage(defender, damage, weak_point=True)
        return _result(
            attacker,
            defender,
            True,
            message=f"CRITICAL STRIKE! {attacker.name} stabs {defender.name} for {damage} damage!",
            rolls=rolls,
            natural_roll=natural,
            hit=True,
            critical=True,
            ignores_armor=True,
            damage=damage,
            damage_report=report,
        )

    if attack_roll >= GROUND_STRIKE_TARGET:
        damage = max(roll_expression(damage_expression, roll_fn).total + _ps_bonus(attacker), 0)
        report = resolve_grapple_damage(
            defender, damage, weak_point=False, attack_roll=attack_roll, armor=armor
        )
        return _result(
            attacker,
            defender,
            True,
            message=f"{attacker.name} stabs {defender.name} for {damage} damage!",
            rolls=rolls,
            natural_roll=natural,
            hit=True,
            damage=damage,
            damage_report=report,
        )

    return _result(
        attacker,
        defender,
        False,
        reason=(
            f"{attacker.name}'s strike misses in the grapple "
            f"(Roll: {attack_roll}, need {GROUND_STRIKE_TARGET}+)"
        ),
        rolls=rolls,
        natural_roll=natural,
    )


def break_free(
    combatant: Combatant,
    opponent: Combatant,
    roll_fn: RollFn,
    *,
    die_sides: int = DEFAULT_DIE_SIDES,
) -> GrappleResult:
    """Wrench free of a hold.

    d20 + P.S. bonus + leverage against the holder's d20 + P.S. bonus; the
    escaping combatant must roll higher.
    """
    reason = _require_pair(combatant, opponent)
    if reason:
        return _result(combatant, opponent, False, reason=reason)
    if ensure_grapple(combatant).is_attacker:
        return _result(
            combatant, opponent, False, reason=f"{combatant.name} is not being held!"
        )

    natural = roll_fn(die_sides)
    escape_roll = (
        natural
        + _ps_bonus(combatant)
        + get_leverage_bonus(combatant, opponent)
        + _take_advantage(combatant)
    )
    hold_roll = roll_fn(die_sides) + _ps_bonus(opponent) + _take_advantage(opponent)
    rolls = {"attacker": escape_roll, "defender": hold_roll}
    _grapple_round(combatant, opponent)

    if escape_roll > hold_roll:
        _release(combatant, opponent)
        logger.info("Broke free", combatant=combatant.id, holder=opponent.id, rolls=rolls)
        return _result(
            combatant,
            opponent,
            True,
            message=f"{combatant.name} breaks free from {opponent.name}'s hold!",
            rolls=rolls,
            natural_roll=natural,
        )

    return _result(
        combatant,
        opponent,
        False,
        reason=f"{combatant.name} fails to break free ({escape_roll} vs {hold_roll})",
        rolls=rolls,
        natural_roll=natural,
    )


# =============================================================================
# Positional Resolutions
# =============================================================================


def grappler_push_off(grappler: Combatant, opponent: Combatant) -> GrappleResult:
    """Let go and step back. Only the controller of the hold can do this."""
    reason = _require_pair(grappler, opponent)
    if reason:
        return _result(grappler, opponent, False, reason=reason)
    if not ensure_grapple(grappler).is_attacker:
        return _result(
            grappler, opponent, False, reason=f"{grappler.name} does not control the hold!"
        )

    _grapple_round(grappler, opponent)
    _release(grappler, opponent)
    return _result(
        grappler,
        opponent,
        True,
        message=f"{grappler.name} pushes off from {opponent.name}.",
    )


def defender_push_break(
    defender: Combatant,
    grappler: Combatant,
    roll_fn: RollFn,
    *,
    die_sides: int = DEFAULT_DIE_SIDES,
) -> GrappleResult:
    """Shove out of a standing clinch.

    Opposed d20 + P.S. bonus, with the defender also adding its size and
    strength grapple modifier against the grappler. Only works from CLINCH.
    """
    reason = _require_pair(defender, grappler)
    if reason:
        return _result(defender, grappler, False, reason=reason)
    state = ensure_grapple(defender)
    if state.is_attacker or state.status is not GrappleStatus.CLINCH:
        return _result(
            defender,
            grappler,
            False,
            reason=f"{defender.name} must be held in a clinch to push away!",
        )

    mods = get_combined_grapple_modifiers(defender, grappler)
    natural = roll_fn(die_sides)
    push_roll = natural + _ps_bonus(defender) + mods.modifier + _take_advantage(defender)
    hold_roll = roll_fn(die_sides) + _ps_bonus(grappler) + _take_advantage(grappler)
    rolls = {"attacker": push_roll, "defender": hold_roll}
    _grapple_round(defender, grappler)

    if push_roll > hold_roll:
        _release(defender, grappler)
        return _result(
            defender,
            grappler,
            True,
            message=f"{defender.name} shoves {grappler.name} away!",
            rolls=rolls,
            natural_roll=natural,
        )
    return _result(
        defender,
        grappler,
        False,
        reason=f"{defender.name} cannot push {grappler.name} off ({push_roll} vs {hold_roll})",
        rolls=rolls,
        natural_roll=natural,
    )


def defender_reversal(
    defender: Combatant,
    grappler: Combatant,
    roll_fn: RollFn,
    *,
    die_sides: int = DEFAULT_DIE_SIDES,
) -> GrappleResult:
    """Turn the tables on the controlling grappler.

    d20 + P.P. bonus + parry + leverage against the grappler's d20 + P.P.
    bonus + strike. On success control changes hands (on the ground the
    two also swap top and bottom) and the reverser earns +2 on its next
    grapple roll.
    """
    reason = _require_pair(defender, grappler)
    if reason:
        return _result(defender, grappler, False, reason=reason)
    d = ensure_grapple(defender)
    g = ensure_grapple(grappler)
    if d.is_attacker:
        return _result(
            defender, grappler, False, reason=f"{defender.name} already controls the hold!"
        )

    natural = roll_fn(die_sides)
    reverse_roll = (
        natural
        + _pp_bonus(defender)
        + effective_bonuses(defender).parry
        + get_leverage_bonus(defender, grappler)
        + _take_advantage(defender)
    )
    hold_roll = (
        roll_fn(die_sides)
        + _pp_bonus(grappler)
        + effective_bonuses(grappler).strike
        + _take_advantage(grappler)
    )
    rolls = {"attacker": reverse_roll, "defender": hold_roll}

    if reverse_roll <= hold_roll:
        _grapple_round(defender, grappler)
        return _result(
            defender,
            grappler,
            False,
            reason=f"{defender.name} fails to reverse {grappler.name} ({reverse_roll} vs {hold_roll})",
            rolls=rolls,
            natural_roll=natural,
        )

    d.is_attacker, g.is_attacker = True, False
    d.penalties, g.penalties = g.penalties, d.penalties
    if g.status is GrappleStatus.GROUND:
        d.status, g.status = GrappleStatus.GROUND, GrappleStatus.GRAPPLED
    d.reversal_advantage = REVERSAL_ADVANTAGE
    _grapple_round(defender, grappler)
    logger.info("Grapple reversed", reverser=defender.id, reversed=grappler.id, rolls=rolls)
    return _result(
        defender,
        grappler,
        True,
        message=f"{defender.name} reverses {grappler.name}'s hold!",
        rolls=rolls,
        natural_roll=natural,
    )


def trip(
    attacker: Combatant,
    defender: Combatant,
    roll_fn: RollFn,
    *,
    die_sides: int = DEFAULT_DIE_SIDES,
) -> GrappleResult:
    """Sweep a clinched opponent's legs.

    d20 + P.P. bonus + strike against d20 + P.P. bonus + dodge. Either way
    the clinch breaks apart and the loser ends up prone. Either participant
    may try.
    """
    reason = _require_pair(attacker, defender)
    if reason:
        return _result(attacker, defender, False, reason=reason)
    if ensure_grapple(attacker).status is not GrappleStatus.CLINCH:
        return _result(
            attacker, defender, False, reason=f"{attacker.name} must be in a clinch to trip!"
        )

    natural = roll_fn(die_sides)
    trip_roll = (
        natural
        + _pp_bonus(attacker)
        + effective_bonuses(attacker).strike
        + _take_advantage(attacker)
    )
    dodge_roll = (
        roll_fn(die_sides)
        + _pp_bonus(defender)
        + effective_bonuses(defender).dodge
        + _take_advantage(defender)
    )
    rolls = {"attacker": trip_roll, "defender": dodge_roll}
    _grapple_round(attacker, defender)
    _release(attacker, defender)

    if trip_roll > dodge_roll:
        defender.is_prone = True
        return _result(
            attacker,
            defender,
            True,
            message=f"{attacker.name} trips {defender.name} to the ground!",
            rolls=rolls,
            natural_roll=natural,
        )
    attacker.is_prone = True
    return _result(
        attacker,
        defender,
        False,
        reason=f"{defender.name} counters the trip and {attacker.name} falls!",
        rolls=rolls,
        natural_roll=natural,
    )


# =============================================================================
# Damage and Queries
# =============================================================================


def resolve_grapple_damage(
    defender: Combatant,
    damage: int,
    *,
    weak_point: bool,
    attack_roll: int = 0,
    armor: ArmorResolver | None = None,
) -> GrappleDamage:
    """Apply grapple damage to a defender.

    Weak-point hits (criticals and death blows) skip armor entirely. Other
    hits go through the armor resolver first; whatever gets past it comes
    off S.D.C., then hit points.
    """
    damage = max(damage, 0)
    if weak_point:
        body = apply_damage(defender, damage)
        return GrappleDamage(
            applied=body.total, sdc_damage=body.sdc_damage, hp_damage=body.hp_damage
        )

    resolver = armor or NaturalArmorResolver()
    resolution = resolver.resolve(defender, attack_roll, damage)
    body = apply_damage(defender, resolution.damage_to_character)
    return GrappleDamage(
        applied=body.total,
        absorbed=resolution.absorbed,
        armor_hit=resolution.armor_hit,
        sdc_damage=body.sdc_damage,
        hp_damage=body.hp_damage,
        broken_armor=resolution.broken_armor,
    )


def get_grapple_status(combatant: Combatant) -> GrappleStatusReport:
    state = combatant.grapple_state or GrappleState()
    return GrappleStatusReport(
        status=state.status,
        description=_DESCRIPTIONS[state.status],
        penalties=state.penalties.model_copy(),
        can_use_long_weapons=state.can_use_long_weapons,
        opponent_id=state.opponent_id,
        rounds_in_grapple=state.rounds_in_grapple,
        is_attacker=state.is_attacker,
    )


def can_use_weapon_in_grapple(combatant: Combatant, weapon: Weapon | None) -> bool:
    """Anything goes outside a grapple; inside, only two feet or shorter."""
    state = combatant.grapple_state
    if state is None or not state.is_engaged or state.can_use_long_weapons:
        return True
    return weapon is None or weapon_length(weapon) <= SHORT_WEAPON_MAX_LENGTH


__all__ = [
    "GrappleDamage",
    "GrappleResult",
    "GrappleStatusReport",
    "ensure_grapple",
    "reset_grapple",
    "is_symmetric",
    "attempt_grapple",
    "maintain_grapple",
    "perform_takedown",
    "ground_strike",
    "break_free",
    "grappler_push_off",
    "defender_push_break",
    "defender_reversal",
    "trip",
    "resolve_grapple_damage",
    "get_grapple_status",
    "can_use_weapon_in_grapple",
]
