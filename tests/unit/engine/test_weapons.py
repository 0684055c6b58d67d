"""Tests for weapon evaluation and recommendation."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from combat_ai.engine.weapons import (
    StaticWeaponCatalog,
    analyze_closing_distance,
    available_weapons,
    evaluate_weapon_bonuses,
    get_optimal_weapon_recommendation,
    infer_weapon_type,
    rank_weapons_by_bonuses,
    uses_giant_weapons,
    weapon_length,
)
from combat_ai.models import (
    CombatState,
    Combatant,
    InventoryItem,
    Weapon,
    WeaponBonuses,
    WeaponType,
)


CombatantFactory = Callable[..., Combatant]


class TestClassification:
    """Tests for weapon type inference."""

    @pytest.mark.parametrize(
        ("weapon", "expected"),
        [
            (Weapon(name="Steel Dagger"), WeaponType.SHORT),
            (Weapon(name="Halberd"), WeaponType.LONG),
            (Weapon(name="Warhammer"), WeaponType.HEAVY),
            (Weapon(name="Longsword"), WeaponType.MEDIUM),
            (Weapon(name="Whip", reach=10), WeaponType.LONG),
            (Weapon(name="Shiv", length=1), WeaponType.SHORT),
            (Weapon(name="Thing", weapon_type="long"), WeaponType.LONG),
        ],
    )
    def test_infer(self, weapon: Weapon, expected: WeaponType) -> None:
        assert infer_weapon_type(weapon) is expected

    def test_length_defaults(self) -> None:
        assert weapon_length(Weapon(name="Longsword")) == 3
        assert weapon_length(Weapon(name="Pike")) == 6
        assert weapon_length(Weapon(name="Shiv", length=1.5)) == 1.5

    def test_giant_races(self) -> None:
        assert uses_giant_weapons("Ogre") is True
        assert uses_giant_weapons("Hill Giant") is True
        assert uses_giant_weapons("Elf") is False
        assert uses_giant_weapons(None) is False


class TestEvaluation:
    """Tests for per-weapon scoring."""

    def test_no_weapon(self, orc: Combatant, knight: Combatant) -> None:
        ev = evaluate_weapon_bonuses(None, orc, knight)
        assert ev.score == 0
        assert ev.reasoning == "No weapon or attacker"

    def test_plain_weapon_scores_zero(self, orc: Combatant, knight: Combatant) -> None:
        ev = evaluate_weapon_bonuses(Weapon(name="Longsword"), orc, knight)
        assert ev.score == 0
        assert ev.reasoning == "No significant bonuses or penalties"

    def test_short_weapon_in_tight_quarters(
        self, orc: Combatant, knight: Combatant, dagger: Weapon
    ) -> None:
        ev = evaluate_weapon_bonuses(dagger, orc, knight, distance_ft=2)
        assert ev.close_range_bonus == 2
        assert ev.strike_bonus == 2
        assert ev.total_bonus == 8

    def test_long_weapon_in_tight_quarters(self, orc: Combatant, knight: Combatant) -> None:
        ev = evaluate_weapon_bonuses(Weapon(name="Pike"), orc, knight, distance_ft=2)
        assert ev.strike_bonus == -3
        assert ev.score == -6.5
        assert len(ev.penalties) == 1

    def test_two_handed(self, orc: Combatant, knight: Combatant) -> None:
        ev = evaluate_weapon_bonuses(Weapon(name="Longsword", two_handed=True), orc, knight)
        assert ev.strike_bonus == 1
        assert ev.damage_bonus == 2
        assert ev.score == 5

    def test_reach_and_first_strike(self, orc: Combatant, knight: Combatant) -> None:
        """Test a reach lead of two or more strikes first in round one."""
        glaive = Weapon(name="Glaive", reach=4)
        club = Weapon(name="Club", reach=1)
        ev = evaluate_weapon_bonuses(glaive, orc, knight, club)
        assert ev.reach_bonus == 3
        assert ev.first_strike_bonus == 1
        assert ev.strike_bonus == 4
        assert ev.total_bonus == 13.5

        later = evaluate_weapon_bonuses(glaive, orc, knight, club, CombatState(round_number=2))
        assert later.first_strike_bonus == 0

    def test_giant_weapon(self, make_combatant: CombatantFactory, knight: Combatant) -> None:
        ogre = make_combatant("ogre-1", race="Ogre")
        ev = evaluate_weapon_bonuses(Weapon(name="Longsword"), ogre, knight)
        assert ev.weapon_size_bonus == 1
        assert ev.total_bonus == 3.5

    def test_strike_bonus_is_monotonic(self, orc: Combatant, knight: Combatant) -> None:
        """Test a higher weapon strike bonus never lowers the score."""
        scores = [
            evaluate_weapon_bonuses(
                Weapon(name="Longsword", bonuses=WeaponBonuses(strike=strike)), orc, knight
            ).score
            for strike in range(4)
        ]
        assert scores == sorted(scores)
        assert scores[0] < scores[-1]


class TestRanking:
    """Tests for ranking and recommending weapons."""

    def test_rank_best_first(self, orc: Combatant, knight: Combatant, dagger: Weapon) -> None:
        sword = Weapon(name="Longsword")
        ranked = rank_weapons_by_bonuses([sword, dagger], orc, knight, distance_ft=2)
        assert [entry.weapon.name for entry in ranked] == ["Dagger", "Longsword"]

    def test_rank_stable_for_ties(self, orc: Combatant, knight: Combatant) -> None:
        first = Weapon(name="Longsword")
        second = Weapon(name="Broadsword")
        ranked = rank_weapons_by_bonuses([first, second], orc, knight)
        assert [entry.weapon.name for entry in ranked] == ["Longsword", "Broadsword"]

    def test_recommend_defend_without_weapons(self, orc: Combatant, knight: Combatant) -> None:
        recommendation = get_optimal_weapon_recommendation([], orc, knight)
        assert recommendation.action == "defend"
        assert recommendation.weapon is None

    def test_recommend_close_distance(
        self, orc: Combatant, knight: Combatant, dagger: Weapon
    ) -> None:
        """Test a bonus-less short weapon at five feet advises closing in."""
        recommendation = get_optimal_weapon_recommendation([dagger], orc, knight, distance_ft=5)
        assert recommendation.action == "close_distance"
        assert recommendation.score == 2
        assert recommendation.closing is not None
        assert recommendation.closing.should_close is True

    def test_recommend_attack(self, orc: Combatant, knight: Combatant, dagger: Weapon) -> None:
        recommendation = get_optimal_weapon_recommendation([dagger], orc, knight, distance_ft=2)
        assert recommendation.action == "attack"
        assert recommendation.weapon == dagger
        assert recommendation.score == 8

    def test_recommend_attack_with_plain_weapon(self, orc: Combatant, knight: Combatant) -> None:
        recommendation = get_optimal_weapon_recommendation(
            [Weapon(name="Longsword")], orc, knight, distance_ft=5
        )
        assert recommendation.action == "attack"
        assert recommendation.score == 0

    def test_penalized_weapon_still_attacks(self, orc: Combatant, knight: Combatant) -> None:
        """Test a negative score without anything to gain from closing means attack."""
        clumsy = Weapon(name="Longsword", bonuses=WeaponBonuses(strike=-2))
        recommendation = get_optimal_weapon_recommendation([clumsy], orc, knight, distance_ft=5)
        assert recommendation.action == "attack"
        assert recommendation.score < 0
        assert recommendation.closing is None

    def test_closing_against_long_weapon(
        self, make_combatant: CombatantFactory, orc: Combatant, dagger: Weapon
    ) -> None:
        pikeman = make_combatant("pikeman-1", x=2, equipped_weapons=[Weapon(name="Pike")])
        closing = analyze_closing_distance(orc, pikeman, dagger, distance_ft=10)
        assert closing.should_close is True
        assert closing.benefit == 4


class TestAvailableWeapons:
    """Tests for collecting usable weapons."""

    def test_equipped_then_inventory(self, make_combatant: CombatantFactory) -> None:
        catalog = StaticWeaponCatalog([Weapon(name="Battle Axe", damage="2d6")])
        combatant = make_combatant(
            equipped_weapons=[Weapon(name="Unarmed"), Weapon(name="Longsword")],
            inventory=[
                InventoryItem(name="Battle Axe", item_type="weapon"),
                InventoryItem(name="Longsword", item_type="weapon"),
                InventoryItem(name="Mystery Blade", item_type="weapon"),
                InventoryItem(name="Rope"),
            ],
        )
        weapons = available_weapons(combatant, catalog)
        assert [weapon.name for weapon in weapons] == ["Longsword", "Battle Axe"]
        assert weapons[1].damage == "2d6"

    def test_catalog_lookup_case_insensitive(self) -> None:
        catalog = StaticWeaponCatalog([Weapon(name="Mace")])
        assert catalog.lookup(" mace ") is not None
        assert catalog.lookup("flail") is None
        assert len(catalog) == 1
