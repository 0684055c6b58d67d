"""Tests for armor resolution and damage routing."""

from __future__ import annotations

from collections.abc import Callable

from combat_ai.engine.armor import NaturalArmorResolver, apply_damage
from combat_ai.engine.grapple import resolve_grapple_damage
from combat_ai.engine.interfaces import ArmorResolution, ArmorResolver
from combat_ai.models import ArmorPiece, Combatant


CombatantFactory = Callable[..., Combatant]


def _armored(make_combatant: CombatantFactory, current_sdc: int = 30) -> Combatant:
    plate = ArmorPiece(name="Plate", ar=14, sdc=30, current_sdc=current_sdc, weight=50)
    return make_combatant("knight-1", "Knight", armor=plate, current_sdc=5, max_sdc=5)


class TestNaturalArmorResolver:
    """Tests for the default armor rules."""

    def test_roll_at_or_above_rating_bypasses(self, make_combatant: CombatantFactory) -> None:
        knight = _armored(make_combatant)
        resolution = NaturalArmorResolver().resolve(knight, attack_roll=14, damage=8)
        assert resolution.armor_hit is False
        assert resolution.damage_to_character == 8
        assert knight.armor is not None
        assert knight.armor.current_sdc == 30

    def test_roll_below_rating_strikes_armor(self, make_combatant: CombatantFactory) -> None:
        knight = _armored(make_combatant)
        resolution = NaturalArmorResolver().resolve(knight, attack_roll=9, damage=8)
        assert resolution.armor_hit is True
        assert resolution.absorbed == 8
        assert resolution.damage_to_character == 0
        assert knight.armor is not None
        assert knight.armor.current_sdc == 22

    def test_overflow_and_break(self, make_combatant: CombatantFactory) -> None:
        knight = _armored(make_combatant, current_sdc=3)
        resolution = NaturalArmorResolver().resolve(knight, attack_roll=9, damage=8)
        assert resolution.absorbed == 3
        assert resolution.damage_to_character == 5
        assert resolution.broken_armor == ("Plate",)

    def test_broken_armor_protects_nothing(self, make_combatant: CombatantFactory) -> None:
        knight = _armored(make_combatant, current_sdc=0)
        resolution = NaturalArmorResolver().resolve(knight, attack_roll=2, damage=6)
        assert resolution.armor_hit is False
        assert resolution.damage_to_character == 6

    def test_unarmored(self, orc: Combatant) -> None:
        resolution = NaturalArmorResolver().resolve(orc, attack_roll=1, damage=4)
        assert resolution == ArmorResolution(armor_hit=False, damage_to_character=4)


class TestApplyDamage:
    """Tests for S.D.C. then hit point damage."""

    def test_sdc_first(self, make_combatant: CombatantFactory) -> None:
        fighter = make_combatant(current_sdc=5, max_sdc=5)
        report = apply_damage(fighter, 8)
        assert (report.sdc_damage, report.hp_damage, report.total) == (5, 3, 8)
        assert fighter.current_sdc == 0
        assert fighter.current_hp == 17

    def test_clamps_at_zero(self, make_combatant: CombatantFactory) -> None:
        fighter = make_combatant(current_hp=4, max_hp=20)
        report = apply_damage(fighter, 50)
        assert report.hp_damage == 4
        assert fighter.current_hp == 0

    def test_negative_damage_ignored(self, orc: Combatant) -> None:
        assert apply_damage(orc, -3).total == 0
        assert orc.current_hp == 20


class TestGrappleDamage:
    """Tests for routing grapple damage around or through armor."""

    def test_weak_point_skips_armor(self, make_combatant: CombatantFactory) -> None:
        knight = _armored(make_combatant)
        damage = resolve_grapple_damage(knight, 8, weak_point=True, attack_roll=2)
        assert damage.armor_hit is False
        assert damage.applied == 8
        assert knight.armor is not None
        assert knight.armor.current_sdc == 30
        assert knight.current_hp == 17

    def test_normal_hit_strikes_armor(self, make_combatant: CombatantFactory) -> None:
        knight = _armored(make_combatant)
        damage = resolve_grapple_damage(knight, 8, weak_point=False, attack_roll=12)
        assert damage.armor_hit is True
        assert damage.absorbed == 8
        assert damage.applied == 0
        assert knight.current_hp == 20

    def test_custom_resolver(self, make_combatant: CombatantFactory) -> None:
        """Test hosts can plug in their own armor rules."""

        class HalvingResolver(ArmorResolver):
            def resolve(
                self, defender: Combatant, attack_roll: int, damage: int, slot: str | None = None
            ) -> ArmorResolution:
                half = damage // 2
                return ArmorResolution(armor_hit=True, damage_to_character=damage - half, absorbed=half)

        fighter = make_combatant()
        damage = resolve_grapple_damage(fighter, 9, weak_point=False, armor=HalvingResolver())
        assert damage.absorbed == 4
        assert damage.hp_damage == 5
        assert fighter.current_hp == 15
