"""Weapon bonus evaluation and recommendation.

Each weapon a combatant could use is scored for the current matchup: its
own bonuses, grip, reach against the defender's weapon, how it handles at
the current distance, and size effects. The best scorer is recommended for
an attack, unless nothing scores well and closing in would unlock a short
weapon's close-range bonus.

Score weights:

    2 x strike + 1.5 x damage + parry + 1.5 x reach + 2 x close range
    + first strike + 2 x weapon size + size category - 0.5 per penalty
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from combat_ai.core.constants import (
    FIRST_STRIKE_REACH,
    LONG_WEAPON_MIN_LENGTH,
    MAX_REACH_BONUS,
    MELEE_RANGE_FT,
    SHORT_WEAPON_MAX_LENGTH,
    TIGHT_QUARTERS_FT,
)
from combat_ai.core.logging import get_logger
from combat_ai.engine.interfaces import WeaponCatalog
from combat_ai.engine.size import get_size_category
from combat_ai.models.combat import CombatState
from combat_ai.models.combatant import Combatant, Weapon
from combat_ai.models.enums import SizeCategory, WeaponType


logger = get_logger(__name__)

GIANT_WEAPON_RACES = frozenset(
    {
        "ogre",
        "troll",
        "wolfen",
        "giant",
        "titan",
    }
)
"""Races that wield giant-sized weapons (one extra damage die)."""

_SHORT_KEYWORDS = ("dagger", "knife", "short sword", "punch", "fist", "claw")
_LONG_KEYWORDS = ("greatsword", "two-handed", "polearm", "halberd", "pike", "spear", "lance", "staff")
_HEAVY_KEYWORDS = ("heavy", "maul", "warhammer", "mace", "flail")

_DEFAULT_LENGTHS = {
    WeaponType.SHORT: 2.0,
    WeaponType.MEDIUM: 3.0,
    WeaponType.LONG: 6.0,
    WeaponType.HEAVY: 5.0,
}


# =============================================================================
# Classification
# =============================================================================


def infer_weapon_type(weapon: Weapon | None) -> WeaponType:
    """Classify a weapon by its explicit type, name, reach, then length.

    Example:
        >>> infer_weapon_type(Weapon(name="Steel Dagger"))
        <WeaponType.SHORT: 'short'>
    """
    if weapon is None:
        return WeaponType.MEDIUM

    if weapon.weapon_type:
        declared = weapon.weapon_type.lower()
        if declared in {member.value for member in WeaponType}:
            return WeaponType(declared)
        if any(keyword in declared for keyword in _SHORT_KEYWORDS) or declared == "unarmed":
            return WeaponType.SHORT

    name = weapon.name.lower()
    if any(keyword in name for keyword in _SHORT_KEYWORDS):
        return WeaponType.SHORT
    if any(keyword in name for keyword in _LONG_KEYWORDS):
        return WeaponType.LONG
    if any(keyword in name for keyword in _HEAVY_KEYWORDS):
        return WeaponType.HEAVY

    if weapon.reach is not None:
        if weapon.reach <= 1:
            return WeaponType.SHORT
        if weapon.reach >= 8:
            return WeaponType.LONG
    if weapon.length is not None:
        if weapon.length <= SHORT_WEAPON_MAX_LENGTH:
            return WeaponType.SHORT
        if weapon.length >= LONG_WEAPON_MIN_LENGTH:
            return WeaponType.LONG
    return WeaponType.MEDIUM


def weapon_length(weapon: Weapon | None) -> float:
    """Length in feet: explicit length, else reach, else a default for the type."""
    if weapon is None:
        return _DEFAULT_LENGTHS[WeaponType.MEDIUM]
    if weapon.length:
        return weapon.length
    if weapon.reach:
        return weapon.reach
    return _DEFAULT_LENGTHS[infer_weapon_type(weapon)]


def is_short_weapon(weapon: Weapon) -> bool:
    return (
        infer_weapon_type(weapon) is WeaponType.SHORT
        or weapon_length(weapon) <= SHORT_WEAPON_MAX_LENGTH
    )


def is_long_weapon(weapon: Weapon) -> bool:
    return (
        infer_weapon_type(weapon) is WeaponType.LONG
        or weapon_length(weapon) >= LONG_WEAPON_MIN_LENGTH
    )


def uses_giant_weapons(race: str | None) -> bool:
    if not race:
        return False
    race_lower = race.strip().lower()
    return race_lower in GIANT_WEAPON_RACES or any(
        name in race_lower for name in GIANT_WEAPON_RACES
    )


# =============================================================================
# Catalog
# =============================================================================


class StaticWeaponCatalog(WeaponCatalog):
    """In-memory weapon table keyed by case-insensitive name."""

    def __init__(self, weapons: Iterable[Weapon] = ()) -> None:
        self._weapons = {weapon.name.lower(): weapon for weapon in weapons}

    def lookup(self, name: str) -> Weapon | None:
        return self._weapons.get(name.strip().lower())

    def __len__(self) -> int:
        return len(self._weapons)


def available_weapons(combatant: Combatant, catalog: WeaponCatalog | None = None) -> list[Weapon]:
    """Collect every weapon a combatant could fight with.

    Equipped weapons come first (bare hands excluded), then inventory
    weapons. Inventory entries without stats are looked up in the catalog
    and skipped when it does not know them. Names are deduplicated.
    """
    weapons: list[Weapon] = []
    seen: set[str] = set()

    for weapon in combatant.equipped_weapons:
        key = weapon.name.lower()
        if key == "unarmed" or key in seen:
            continue
        weapons.append(weapon)
        seen.add(key)

    for item in combatant.inventory:
        if item.item_type != "weapon" or item.name.lower() in seen:
            continue
        weapon = item.weapon
        if weapon is None and catalog is not None:
            weapon = catalog.lookup(item.name)
        if weapon is None:
            logger.debug("Unknown inventory weapon skipped", combatant=combatant.id, item=item.name)
            continue
        weapons.append(weapon)
        seen.add(item.name.lower())

    return weapons


# =============================================================================
# Evaluation
# =============================================================================


class WeaponEvaluation(BaseModel):
    """Breakdown of a weapon's value in the current matchup.

    Attributes:
        strike_bonus: Net strike bonus from every source.
        parry_bonus: Parry bonus.
        damage_bonus: Damage bonus.
        reach_bonus: Strike bonus from reach advantage.
        close_range_bonus: Strike bonus from fighting up close.
        first_strike_bonus: First-round strike bonus.
        two_handed_bonus: Strike bonus from a two-handed grip.
        weapon_size_bonus: Giant-weapon bonus.
        size_category_bonus: Strike bonus from creature size.
        weapon_specific_bonus: Strike bonus the weapon itself grants.
        bonuses: Human-readable bonus notes.
        penalties: Human-readable penalty notes.
        total_bonus: Weighted sum of the components.
        score: Total bonus minus half a point per penalty.
        reasoning: Summary sentence.
    """

    model_config = ConfigDict(extra="forbid")

    strike_bonus: int = 0
    parry_bonus: int = 0
    damage_bonus: int = 0
    reach_bonus: int = 0
    close_range_bonus: int = 0
    first_strike_bonus: int = 0
    two_handed_bonus: int = 0
    weapon_size_bonus: int = 0
    size_category_bonus: int = 0
    weapon_specific_bonus: int = 0
    bonuses: list[str] = Field(default_factory=list)
    penalties: list[str] = Field(default_factory=list)
    total_bonus: float = 0.0
    score: float = 0.0
    reasoning: str = ""


def _distance(combat_state: CombatState | None, distance_ft: float | None) -> float:
    if distance_ft is not None:
        return distance_ft
    if combat_state is not None and combat_state.combat_distance_ft is not None:
        return combat_state.combat_distance_ft
    return MELEE_RANGE_FT


def evaluate_weapon_bonuses(
    weapon: Weapon | None,
    attacker: Combatant | None,
    defender: Combatant | None,
    defender_weapon: Weapon | None = None,
    combat_state: CombatState | None = None,
    *,
    distance_ft: float | None = None,
) -> WeaponEvaluation:
    """Score a weapon for an attack on a defender.

    Args:
        weapon: Weapon being considered.
        attacker: Combatant wielding it.
        defender: Combatant being attacked.
        defender_weapon: The defender's weapon, for reach comparison.
        combat_state: Encounter context (round number, closed distance).
        distance_ft: Distance to the defender; defaults to the encounter's
            known distance, then melee range.

    Returns:
        WeaponEvaluation with the component bonuses and score.
    """
    if weapon is None or attacker is None:
        return WeaponEvaluation(reasoning="No weapon or attacker")

    state = combat_state or CombatState()
    distance = _distance(state, distance_ft)
    ev = WeaponEvaluation()

    # Weapon's own bonuses
    own = weapon.bonuses
    ev.weapon_specific_bonus += own.strike
    ev.strike_bonus += own.strike
    ev.parry_bonus += own.parry
    ev.damage_bonus += own.damage
    if own.strike:
        ev.bonuses.append(f"Weapon-specific strike bonus: +{own.strike}")
    if own.parry:
        ev.bonuses.append(f"Weapon-specific parry bonus: +{own.parry}")
    if own.damage:
        ev.bonuses.append(f"Weapon-specific damage bonus: +{own.damage}")

    if weapon.two_handed:
        ev.two_handed_bonus += 1
        ev.strike_bonus += 1
        ev.damage_bonus += 2
        ev.bonuses.append("Two-handed grip: +1 strike, +2 damage")

    # Reach
    own_reach = weapon.reach or 0
    advantage = 0.0
    if defender_weapon is not None and defender is not None:
        their_reach = defender_weapon.reach or 0
        if own_reach > their_reach:
            advantage = own_reach - their_reach
            ev.reach_bonus = int(min(advantage, MAX_REACH_BONUS))
            ev.strike_bonus += ev.reach_bonus
            ev.bonuses.append(f"Reach advantage: +{ev.reach_bonus} strike")
        elif their_reach > own_reach:
            gap = min(their_reach - own_reach, MAX_REACH_BONUS)
            ev.penalties.append(f"Reach disadvantage: -{gap:g} strike")

        if state.is_first_melee_round and advantage >= FIRST_STRIKE_REACH:
            ev.first_strike_bonus = 1
            ev.strike_bonus += 1
            ev.bonuses.append("First strike advantage: +1 strike")

    # Distance
    short = is_short_weapon(weapon)
    if distance < TIGHT_QUARTERS_FT:
        if short:
            ev.close_range_bonus = 2
            ev.strike_bonus += 2
            ev.bonuses.append("Close range: +2 strike (short weapon excels)")
        elif is_long_weapon(weapon):
            ev.strike_bonus -= 3
            ev.penalties.append("Close range: -3 strike (long weapon ineffective)")
    elif distance < MELEE_RANGE_FT and state.has_closed_distance and short:
        ev.close_range_bonus = 1
        ev.strike_bonus += 1
        ev.bonuses.append("Close combat: +1 strike")

    # Size
    if uses_giant_weapons(attacker.race):
        ev.weapon_size_bonus = 1
        ev.damage_bonus += 1
        ev.bonuses.append("Giant weapon: +1 die damage")

    if defender is not None:
        attacker_size = get_size_category(attacker)
        defender_size = get_size_category(defender)
        if attacker_size is SizeCategory.LARGE and defender_size is SizeCategory.MEDIUM:
            ev.size_category_bonus = 1
        elif attacker_size is SizeCategory.HUGE and defender_size is not SizeCategory.HUGE:
            ev.size_category_bonus = 2
        elif attacker_size is SizeCategory.GIANT:
            ev.size_category_bonus = 3
        if ev.size_category_bonus:
            ev.strike_bonus += ev.size_category_bonus
            ev.bonuses.append(f"Size advantage: +{ev.size_category_bonus} strike")

    ev.total_bonus = (
        ev.strike_bonus * 2
        + ev.damage_bonus * 1.5
        + ev.parry_bonus
        + ev.reach_bonus * 1.5
        + ev.close_range_bonus * 2
        + ev.first_strike_bonus
        + ev.weapon_size_bonus * 2
        + ev.size_category_bonus
    )
    ev.score = ev.total_bonus - len(ev.penalties) * 0.5

    if ev.bonuses:
        noun = "bonus" if len(ev.bonuses) == 1 else "bonuses"
        ev.reasoning = f"Weapon has {len(ev.bonuses)} {noun}: {', '.join(ev.bonuses)}"
    elif ev.penalties:
        noun = "penalty" if len(ev.penalties) == 1 else "penalties"
        ev.reasoning = f"Weapon has {len(ev.penalties)} {noun}: {', '.join(ev.penalties)}"
    else:
        ev.reasoning = "No significant bonuses or penalties"
    return ev


class RankedWeapon(BaseModel):
    """A weapon with its evaluation."""

    model_config = ConfigDict(extra="forbid")

    weapon: Weapon
    evaluation: WeaponEvaluation

    @property
    def score(self) -> float:
        return self.evaluation.score


def rank_weapons_by_bonuses(
    weapons: Sequence[Weapon],
    attacker: Combatant,
    defender: Combatant | None,
    combat_state: CombatState | None = None,
    *,
    distance_ft: float | None = None,
) -> list[RankedWeapon]:
    """Evaluate weapons against a defender, best first (stable for ties)."""
    defender_weapon = defender.primary_weapon if defender is not None else None
    ranked = [
        RankedWeapon(
            weapon=weapon,
            evaluation=evaluate_weapon_bonuses(
                weapon, attacker, defender, defender_weapon, combat_state, distance_ft=distance_ft
            ),
        )
        for weapon in weapons
    ]
    ranked.sort(key=lambda entry: entry.score, reverse=True)
    return ranked


class ClosingAnalysis(BaseModel):
    """Whether moving into close range would help."""

    model_config = ConfigDict(extra="forbid")

    should_close: bool = False
    benefit: float = 0.0
    reason: str = ""
    bonuses: list[str] = Field(default_factory=list)
    penalties: list[str] = Field(default_factory=list)


def analyze_closing_distance(
    attacker: Combatant,
    defender: Combatant | None,
    attacker_weapon: Weapon | None,
    combat_state: CombatState | None = None,
    *,
    distance_ft: float | None = None,
) -> ClosingAnalysis:
    """Estimate the strike bonus gained by closing in with a weapon.

    Short weapons gain +2 when closing from 5 ft or more and +1 from 3 to
    5 ft. Getting inside a defender's long weapon is worth another +2.
    """
    analysis = ClosingAnalysis()
    if attacker_weapon is None:
        return analysis

    distance = _distance(combat_state, distance_ft)
    short = is_short_weapon(attacker_weapon)
    defender_weapon = defender.primary_weapon if defender is not None else None
    defender_long = defender_weapon is not None and is_long_weapon(defender_weapon)

    if short and distance >= TIGHT_QUARTERS_FT:
        analysis.should_close = True
        if distance >= MELEE_RANGE_FT:
            analysis.benefit = 2
            analysis.bonuses.append("Close range: +2 strike (short weapon excels)")
            analysis.reason = "Short weapon would gain +2 strike bonus in close range"
        else:
            analysis.benefit = 1
            analysis.bonuses.append("Close combat: +1 strike")
            analysis.reason = "Short weapon would gain +1 strike bonus in close combat"

    if is_long_weapon(attacker_weapon) and distance < MELEE_RANGE_FT and defender_long:
        analysis.penalties.append("Long weapon penalized at close range")

    if defender_long and distance >= MELEE_RANGE_FT and short:
        analysis.benefit += 2
        analysis.should_close = True
        analysis.bonuses.append("Neutralize defender's reach advantage")
        analysis.reason = "Closing would neutralize defender's long weapon advantage"

    return analysis


class WeaponRecommendation(BaseModel):
    """Which weapon to use and whether to attack or close in first.

    Attributes:
        weapon: Recommended weapon, None when unarmed.
        action: "attack", "close_distance" or "defend".
        reasoning: Explanation.
        score: Weapon score, or closing benefit for "close_distance".
        evaluation: Evaluation of the recommended weapon.
        ranked: Top ranked options.
        closing: Closing-distance analysis, when it drove the advice.
    """

    model_config = ConfigDict(extra="forbid")

    weapon: Weapon | None = None
    action: Literal["attack", "close_distance", "defend"] = "defend"
    reasoning: str = ""
    score: float = 0.0
    evaluation: WeaponEvaluation | None = None
    ranked: list[RankedWeapon] = Field(default_factory=list)
    closing: ClosingAnalysis | None = None


def get_optimal_weapon_recommendation(
    weapons: Sequence[Weapon],
    attacker: Combatant,
    defender: Combatant | None,
    combat_state: CombatState | None = None,
    *,
    distance_ft: float | None = None,
) -> WeaponRecommendation:
    """Pick the best weapon and say whether to attack now or close in.

    Returns "defend" with no weapons. Otherwise "close_distance" when the
    best weapon scores nothing and closing would unlock a bonus, and
    "attack" in every other case, penalties included.
    """
    if not weapons:
        return WeaponRecommendation(action="defend", reasoning="No weapons available")

    ranked = rank_weapons_by_bonuses(
        weapons, attacker, defender, combat_state, distance_ft=distance_ft
    )
    best = ranked[0]
    closing = analyze_closing_distance(
        attacker, defender, best.weapon, combat_state, distance_ft=distance_ft
    )

    if best.score <= 0 and closing.should_close and closing.benefit > 0:
        return WeaponRecommendation(
            weapon=best.weapon,
            action="close_distance",
            reasoning=(
                f"No weapon bonuses available. {closing.reason}. "
                f"Closing distance would provide: {', '.join(closing.bonuses)}"
            ),
            score=closing.benefit,
            closing=closing,
        )

    if best.score > 0:
        return WeaponRecommendation(
            weapon=best.weapon,
            action="attack",
            reasoning=best.evaluation.reasoning,
            score=best.score,
            evaluation=best.evaluation,
            ranked=ranked[:3],
        )

    return WeaponRecommendation(
        weapon=best.weapon,
        action="attack",
        reasoning=best.evaluation.reasoning or "Using best available weapon",
        score=best.score,
        evaluation=best.evaluation,
    )


__all__ = [
    "GIANT_WEAPON_RACES",
    "infer_weapon_type",
    "weapon_length",
    "is_short_weapon",
    "is_long_weapon",
    "uses_giant_weapons",
    "StaticWeaponCatalog",
    "available_weapons",
    "WeaponEvaluation",
    "evaluate_weapon_bonuses",
    "RankedWeapon",
    "rank_weapons_by_bonuses",
    "ClosingAnalysis",
    "analyze_closing_distance",
    "WeaponRecommendation",
    "get_optimal_weapon_recommendation",
]
