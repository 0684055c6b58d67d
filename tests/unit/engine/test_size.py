"""Tests for size and strength modifiers."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from combat_ai.engine.size import (
    body_weight,
    can_carry_target,
    can_lift_and_throw,
    get_combined_grapple_modifiers,
    get_leverage_bonus,
    get_reach_advantage,
    get_size_category,
    size_modifiers,
)
from combat_ai.models import Combatant, SizeCategory


CombatantFactory = Callable[..., Combatant]


class TestSizeInference:
    """Tests for deriving a size category."""

    def test_explicit_size_wins(self, make_combatant: CombatantFactory) -> None:
        creature = make_combatant(size=SizeCategory.HUGE, height_ft=3)
        assert get_size_category(creature) is SizeCategory.HUGE

    @pytest.mark.parametrize(
        ("height", "expected"),
        [
            (1.5, SizeCategory.TINY),
            (3, SizeCategory.SMALL),
            (6, SizeCategory.MEDIUM),
            (9, SizeCategory.LARGE),
            (15, SizeCategory.HUGE),
            (25, SizeCategory.GIANT),
        ],
    )
    def test_from_height(
        self, make_combatant: CombatantFactory, height: float, expected: SizeCategory
    ) -> None:
        assert get_size_category(make_combatant(height_ft=height)) is expected

    @pytest.mark.parametrize(
        ("weight", "expected"),
        [
            (20, SizeCategory.TINY),
            (60, SizeCategory.SMALL),
            (180, SizeCategory.MEDIUM),
            (800, SizeCategory.LARGE),
            (3000, SizeCategory.HUGE),
            (9000, SizeCategory.GIANT),
        ],
    )
    def test_from_weight(
        self, make_combatant: CombatantFactory, weight: float, expected: SizeCategory
    ) -> None:
        assert get_size_category(make_combatant(weight=weight)) is expected

    def test_height_before_weight(self, make_combatant: CombatantFactory) -> None:
        creature = make_combatant(height_ft=9, weight=20)
        assert get_size_category(creature) is SizeCategory.LARGE

    def test_defaults(self, make_combatant: CombatantFactory) -> None:
        """Test animals default to SMALL, everything else to MEDIUM."""
        assert get_size_category(make_combatant(is_animal=True)) is SizeCategory.SMALL
        assert get_size_category(make_combatant()) is SizeCategory.MEDIUM
        assert get_size_category(None) is SizeCategory.MEDIUM

    def test_modifier_table(self, make_combatant: CombatantFactory) -> None:
        mods = size_modifiers(make_combatant(size=SizeCategory.GIANT))
        assert mods.grapple == 6
        assert mods.strike == 3


class TestGrappleModifiers:
    """Tests for size and strength comparisons."""

    def test_evenly_matched(self, make_combatant: CombatantFactory) -> None:
        mods = get_combined_grapple_modifiers(make_combatant("a-1"), make_combatant("b-1"))
        assert mods.modifier == 0
        assert mods.auto_grapple is False
        assert mods.description == "Evenly matched"

    def test_auto_grapple_margin(self, make_combatant: CombatantFactory) -> None:
        """Test a PS lead of ten or more grapples automatically."""
        ogre = make_combatant("ogre-1", PS=25)
        human = make_combatant("human-1", PS=15)
        mods = get_combined_grapple_modifiers(ogre, human)
        assert mods.auto_grapple is True
        assert mods.ps_diff == 10
        assert mods.ps_modifier == 2

        weaker = make_combatant("human-2", PS=16)
        assert get_combined_grapple_modifiers(ogre, weaker).auto_grapple is False

    def test_size_and_strength_combine(self, make_combatant: CombatantFactory) -> None:
        troll = make_combatant("troll-1", PS=17, size=SizeCategory.LARGE)
        goblin = make_combatant("goblin-1", PS=10, size=SizeCategory.SMALL)
        mods = get_combined_grapple_modifiers(troll, goblin)
        assert mods.size_modifier_diff == 4
        assert mods.ps_modifier == 1
        assert mods.modifier == 5
        assert mods.strike_bonus == 2
        assert mods.dodge_bonus == 2
        assert mods.description == "Size/Strength advantage: +5"

    def test_reach_advantage_never_negative(self, make_combatant: CombatantFactory) -> None:
        big = make_combatant("big-1", size=SizeCategory.HUGE)
        small = make_combatant("small-1", size=SizeCategory.SMALL)
        assert get_reach_advantage(big, small) == 3
        assert get_reach_advantage(small, big) == 0


class TestLeverage:
    """Tests for ground-fighting leverage."""

    def test_tiny(self, make_combatant: CombatantFactory) -> None:
        pixie = make_combatant("pixie-1", size=SizeCategory.TINY)
        assert get_leverage_bonus(pixie, make_combatant("orc-1")) == 2
        assert get_leverage_bonus(pixie, make_combatant("pixie-2", size="tiny")) == 0

    def test_small_vs_large(self, make_combatant: CombatantFactory) -> None:
        gnome = make_combatant("gnome-1", size=SizeCategory.SMALL)
        assert get_leverage_bonus(gnome, make_combatant("troll-1", size="large")) == 1
        assert get_leverage_bonus(gnome, make_combatant("orc-1")) == 0


class TestLifting:
    """Tests for lift, throw and carry checks."""

    def test_lift_and_throw(self, make_combatant: CombatantFactory) -> None:
        """Test PS must be at least twice body weight."""
        giant = make_combatant("giant-1", PS=30)
        assert can_lift_and_throw(giant, make_combatant("imp-1", weight=15)) is True
        assert can_lift_and_throw(giant, make_combatant("imp-2", weight=16)) is False
        assert body_weight(make_combatant()) == 150

    def test_cannot_carry_larger(self, make_combatant: CombatantFactory) -> None:
        check = can_carry_target(
            make_combatant("orc-1", PS=30), make_combatant("troll-1", size="large")
        )
        assert check.can_carry is False
        assert "too small" in check.reason

    def test_same_size_needs_margin(self, make_combatant: CombatantFactory) -> None:
        check = can_carry_target(make_combatant("a-1", PS=19), make_combatant("b-1", PS=10))
        assert check.can_carry is False
        check = can_carry_target(make_combatant("a-1", PS=20), make_combatant("b-1", PS=10))
        assert check.can_carry is True
        assert check.capacity == 200
        assert check.target_weight == 150

    def test_weight_capacity(self, make_combatant: CombatantFactory) -> None:
        ogre = make_combatant("ogre-1", PS=12, size="large")
        heavy = make_combatant("knight-1", weight=200)
        assert can_carry_target(ogre, heavy).can_carry is False
        assert can_carry_target(ogre, heavy, ignore_weight=True).can_carry is True
