"""Size and strength modifiers.

Size categories shape every physical contest: larger creatures grapple
better and hit harder, smaller ones dodge better and find leverage on the
ground. Physical strength adds one point of grapple modifier per five
points of difference, and a ten-point lead makes the grapple automatic.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from combat_ai.core.constants import (
    AUTO_GRAPPLE_PS_DIFFERENCE,
    DEFAULT_WEIGHT,
    TAKEDOWN_WEIGHT_FACTOR,
)
from combat_ai.core.logging import get_logger
from combat_ai.models.combatant import Combatant
from combat_ai.models.enums import SizeCategory


logger = get_logger(__name__)


# =============================================================================
# Size Table
# =============================================================================


class SizeDefinition(BaseModel):
    """Combat modifiers for one size category."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    description: str
    grapple: int
    strike: int
    parry: int
    dodge: int
    damage: int


SIZE_DEFINITIONS: dict[SizeCategory, SizeDefinition] = {
    SizeCategory.TINY: SizeDefinition(
        description="Tiny (under 2ft)", grapple=-4, strike=-2, parry=-2, dodge=2, damage=-2
    ),
    SizeCategory.SMALL: SizeDefinition(
        description="Small (2-4ft)", grapple=-2, strike=-1, parry=-1, dodge=1, damage=-1
    ),
    SizeCategory.MEDIUM: SizeDefinition(
        description="Medium (4-7ft)", grapple=0, strike=0, parry=0, dodge=0, damage=0
    ),
    SizeCategory.LARGE: SizeDefinition(
        description="Large (7-12ft)", grapple=2, strike=1, parry=1, dodge=-1, damage=1
    ),
    SizeCategory.HUGE: SizeDefinition(
        description="Huge (12-20ft)", grapple=4, strike=2, parry=2, dodge=-2, damage=2
    ),
    SizeCategory.GIANT: SizeDefinition(
        description="Giant (20ft+)", grapple=6, strike=3, parry=3, dodge=-3, damage=3
    ),
}

# Estimated body weight per category, used when carrying a creature of unknown weight.
_SIZE_WEIGHT_ESTIMATES: dict[SizeCategory, float] = {
    SizeCategory.TINY: 5,
    SizeCategory.SMALL: 30,
    SizeCategory.MEDIUM: 150,
    SizeCategory.LARGE: 600,
    SizeCategory.HUGE: 2000,
    SizeCategory.GIANT: 6000,
}


# =============================================================================
# Inference
# =============================================================================


def get_size_category(creature: Combatant | None) -> SizeCategory:
    """Determine a creature's size category.

    An explicit size wins. Otherwise height, then weight, decides. With
    neither known, animals default to SMALL and everything else to MEDIUM.

    Args:
        creature: The creature, or None.

    Returns:
        The inferred category.
    """
    if creature is None:
        return SizeCategory.MEDIUM
    if creature.size is not None:
        return creature.size

    height = creature.height_ft
    if height is not None and height > 0:
        if height >= 20:
            return SizeCategory.GIANT
        if height >= 12:
            return SizeCategory.HUGE
        if height >= 7:
            return SizeCategory.LARGE
        if height < 2:
            return SizeCategory.TINY
        if height < 4:
            return SizeCategory.SMALL
        return SizeCategory.MEDIUM

    weight = creature.weight
    if weight is not None and weight > 0:
        if weight >= 5000:
            return SizeCategory.GIANT
        if weight >= 2000:
            return SizeCategory.HUGE
        if weight >= 500:
            return SizeCategory.LARGE
        if weight >= 100:
            return SizeCategory.MEDIUM
        if weight >= 50:
            return SizeCategory.SMALL
        return SizeCategory.TINY

    return SizeCategory.SMALL if creature.is_animal else SizeCategory.MEDIUM


def size_modifiers(creature: Combatant | None) -> SizeDefinition:
    """Strike, parry, dodge and damage modifiers for a creature's size."""
    return SIZE_DEFINITIONS[get_size_category(creature)]


def body_weight(creature: Combatant) -> float:
    """Declared weight, or the default for a human-sized body."""
    return creature.weight if creature.weight else DEFAULT_WEIGHT


# =============================================================================
# Modifiers
# =============================================================================


class GrappleModifiers(BaseModel):
    """Size and strength comparison between a grappler and a defender.

    Attributes:
        modifier: Size grapple difference plus one per five PS difference.
        strike_bonus: Attacker strike advantage from size.
        parry_bonus: Attacker parry advantage from size.
        dodge_bonus: Defender dodge advantage from size.
        damage_bonus: Attacker damage advantage from size.
        defender_parry_penalty: Defender parry relative to attacker.
        auto_grapple: Attacker PS leads by the automatic-grapple margin.
        ps_diff: Attacker PS minus defender PS.
        size_modifier_diff: Grapple modifier difference from size alone.
        ps_modifier: Grapple modifier from the PS difference.
        description: Human-readable summary.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    modifier: int
    strike_bonus: int
    parry_bonus: int
    dodge_bonus: int
    damage_bonus: int
    defender_parry_penalty: int
    auto_grapple: bool
    ps_diff: int
    size_modifier_diff: int
    ps_modifier: int
    description: str


def get_combined_grapple_modifiers(attacker: Combatant, defender: Combatant) -> GrappleModifiers:
    """Compare size and strength for a grapple attempt.

    Example:
        >>> get_combined_grapple_modifiers(ogre, human).auto_grapple
        True
    """
    attacker_def = size_modifiers(attacker)
    defender_def = size_modifiers(defender)

    size_modifier_diff = attacker_def.grapple - defender_def.grapple
    ps_diff = attacker.attributes.PS - defender.attributes.PS
    ps_modifier = ps_diff // 5
    total = size_modifier_diff + ps_modifier
    auto_grapple = ps_diff >= AUTO_GRAPPLE_PS_DIFFERENCE

    if auto_grapple:
        description = f"Automatic grapple (PS difference: {ps_diff})"
    elif total > 0:
        description = f"Size/Strength advantage: +{total}"
    elif total < 0:
        description = f"Size/Strength disadvantage: {total}"
    else:
        description = "Evenly matched"

    return GrappleModifiers(
        modifier=total,
        strike_bonus=attacker_def.strike - defender_def.strike,
        parry_bonus=attacker_def.parry - defender_def.parry,
        dodge_bonus=defender_def.dodge - attacker_def.dodge,
        damage_bonus=attacker_def.damage - defender_def.damage,
        defender_parry_penalty=defender_def.parry - attacker_def.parry,
        auto_grapple=auto_grapple,
        ps_diff=ps_diff,
        size_modifier_diff=size_modifier_diff,
        ps_modifier=ps_modifier,
        description=description,
    )


def get_reach_advantage(attacker: Combatant, defender: Combatant) -> int:
    """Strike bonus a larger creature gets from its longer reach (never negative)."""
    diff = size_modifiers(attacker).strike - size_modifiers(defender).strike
    return max(diff, 0)


def get_leverage_bonus(combatant: Combatant, opponent: Combatant) -> int:
    """Ground-fighting leverage bonus for a smaller combatant.

    Tiny creatures against anything bigger get +2; small creatures against
    large or bigger get +1.
    """
    own = get_size_category(combatant)
    other = get_size_category(opponent)
    if own is SizeCategory.TINY and other is not SizeCategory.TINY:
        return 2
    if own is SizeCategory.SMALL and other >= SizeCategory.LARGE:
        return 1
    return 0


# =============================================================================
# Lifting and Carrying
# =============================================================================


def can_lift_and_throw(attacker: Combatant, defender: Combatant) -> bool:
    """True when attacker PS is at least twice the defender's weight."""
    return attacker.attributes.PS >= body_weight(defender) * TAKEDOWN_WEIGHT_FACTOR


class CarryCheck(BaseModel):
    """Outcome of a carry check."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    can_carry: bool
    reason: str = ""
    carrier_size: SizeCategory
    target_size: SizeCategory
    capacity: float | None = None
    target_weight: float | None = None


def can_carry_target(
    carrier: Combatant,
    target: Combatant,
    *,
    same_size_ps_margin: int = 10,
    capacity_multiplier: float = 10,
    min_ps_lead_for_adjacent_size: int = 0,
    ignore_weight: bool = False,
) -> CarryCheck:
    """Decide whether one creature can pick up and carry another.

    Size comes first: nothing carries a larger creature, and a same-sized
    target needs a clear strength lead. Weight against PS times the
    capacity multiplier is the final guardrail.

    Args:
        carrier: The creature doing the lifting.
        target: The creature being lifted.
        same_size_ps_margin: PS lead required to carry a same-sized target.
        capacity_multiplier: Capacity is carrier PS times this.
        min_ps_lead_for_adjacent_size: PS lead required when the carrier is
            only one size step larger.
        ignore_weight: Skip the weight capacity check.

    Returns:
        CarryCheck with the verdict and the sizes compared.
    """
    carrier_size = get_size_category(carrier)
    target_size = get_size_category(target)
    size_diff = carrier_size - target_size
    carrier_ps = carrier.attributes.PS
    target_ps = target.attributes.PS

    if size_diff < 0:
        return CarryCheck(
            can_carry=False,
            reason=f"{carrier.name} is too small to carry {target.name}",
            carrier_size=carrier_size,
            target_size=target_size,
        )

    if size_diff == 0 and carrier_ps < target_ps + same_size_ps_margin:
        return CarryCheck(
            can_carry=False,
            reason=(
                f"{carrier.name} lacks the strength to carry a same-sized target "
                f"({carrier_ps} vs {target_ps})"
            ),
            carrier_size=carrier_size,
            target_size=target_size,
        )

    target_weight = target.weight or _SIZE_WEIGHT_ESTIMATES[target_size]
    capacity = carrier_ps * capacity_multiplier
    if not ignore_weight and target_weight > capacity:
        return CarryCheck(
            can_carry=False,
            reason=(
                f"{carrier.name} cannot lift {target.name} "
                f"(weight {target_weight} > capacity {capacity})"
            ),
            carrier_size=carrier_size,
            target_size=target_size,
            capacity=capacity,
            target_weight=target_weight,
        )

    if size_diff == 1 and carrier_ps < target_ps + min_ps_lead_for_adjacent_size:
        return CarryCheck(
            can_carry=False,
            reason=(
                f"{carrier.name} is only slightly larger and not strong enough "
                f"({carrier_ps} vs {target_ps})"
            ),
            carrier_size=carrier_size,
            target_size=target_size,
        )

    logger.debug(
        "Carry check passed",
        carrier=carrier.id,
        target=target.id,
        capacity=capacity,
        target_weight=target_weight,
    )
    return CarryCheck(
        can_carry=True,
        carrier_size=carrier_size,
        target_size=target_size,
        capacity=capacity,
        target_weight=target_weight,
    )


__all__ = [
    "SizeDefinition",
    "SIZE_DEFINITIONS",
    "get_size_category",
    "body_weight",
    "GrappleModifiers",
    "get_combined_grapple_modifiers",
    "get_reach_advantage",
    "get_leverage_bonus",
    "size_modifiers",
    "can_lift_and_throw",
    "CarryCheck",
    "can_carry_target",
]
