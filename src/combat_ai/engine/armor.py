"""Armor resolution and damage application.

A hit whose attack roll falls below the worn armor's rating strikes the
armor: the armor soaks damage up to its remaining S.D.C. and whatever is
left passes through. Damage reaching the body comes off character S.D.C.
first, then hit points. Neither ever drops below zero.
"""

from __future__ import annotations

from dataclasses import dataclass

from combat_ai.core.logging import get_logger
from combat_ai.engine.interfaces import ArmorResolution, ArmorResolver
from combat_ai.models.combatant import Combatant


logger = get_logger(__name__)


class NaturalArmorResolver(ArmorResolver):
    """Resolves hits against the single armor piece a combatant wears.

    The slot argument is accepted for compatibility with hosts that track
    armor per body location; a combatant here wears one piece.
    """

    def resolve(
        self,
        defender: Combatant,
        attack_roll: int,
        damage: int,
        slot: str | None = None,
    ) -> ArmorResolution:
        armor = defender.armor
        damage = max(damage, 0)
        if armor is None or armor.current_sdc <= 0 or attack_roll >= armor.ar:
            return ArmorResolution(armor_hit=False, damage_to_character=damage)

        absorbed = min(damage, armor.current_sdc)
        armor.current_sdc -= absorbed
        broken = (armor.name,) if armor.current_sdc == 0 else ()
        if broken:
            logger.info("Armor broken", combatant=defender.id, armor=armor.name)

        return ArmorResolution(
            armor_hit=True,
            damage_to_character=damage - absorbed,
            absorbed=absorbed,
            broken_armor=broken,
        )


@dataclass(frozen=True)
class DamageReport:
    """Where damage applied to a body went.

    Attributes:
        sdc_damage: Points taken off character S.D.C.
        hp_damage: Points taken off hit points.
    """

    sdc_damage: int
    hp_damage: int

    @property
    def total(self) -> int:
        return self.sdc_damage + self.hp_damage


def apply_damage(combatant: Combatant, damage: int) -> DamageReport:
    """Apply damage to character S.D.C., then hit points.

    Args:
        combatant: The combatant taking damage; mutated in place.
        damage: Damage to apply. Negative values are treated as zero.

    Returns:
        DamageReport with the split actually applied.
    """
    damage = max(damage, 0)
    sdc_damage = min(damage, combatant.current_sdc)
    combatant.current_sdc -= sdc_damage
    hp_damage = min(damage - sdc_damage, combatant.current_hp)
    combatant.current_hp -= hp_damage
    return DamageReport(sdc_damage=sdc_damage, hp_damage=hp_damage)


__all__ = ["NaturalArmorResolver", "DamageReport", "apply_damage"]
