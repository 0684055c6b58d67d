"""Tests for sprint-duration fatigue."""

from __future__ import annotations

from collections.abc import Callable

from combat_ai.engine.sprint import (
    apply_sprint_penalties,
    can_sprint,
    get_sprint_status,
    max_sprint_distance,
    reset_sprint_fatigue,
    rest_and_recover,
    sprint_distance_cells,
    sprint_distance_feet,
    update_sprint_fatigue,
)
from combat_ai.models import CombatBonuses, Combatant, SprintStatus


CombatantFactory = Callable[..., Combatant]


class TestSprintBudget:
    """Tests for sprinting within and beyond the PE budget."""

    def test_within_budget(self, make_combatant: CombatantFactory) -> None:
        """Test PE minutes of sprinting carry no penalty."""
        runner = make_combatant(PE=3, Spd=12)
        state = update_sprint_fatigue(runner, minutes=3)
        assert state.status is SprintStatus.READY
        assert state.current_speed == 12
        assert state.combat_penalty == 0

    def test_partial_minute_over(self, make_combatant: CombatantFactory) -> None:
        runner = make_combatant(PE=3, Spd=12)
        state = update_sprint_fatigue(runner, minutes=3.5)
        assert state.minutes_over == 0
        assert state.status is SprintStatus.READY

    def test_each_minute_over_costs_one(self, make_combatant: CombatantFactory) -> None:
        runner = make_combatant(PE=3, Spd=12)
        state = update_sprint_fatigue(runner, minutes=5)
        assert state.minutes_over == 2
        assert state.current_speed == 10
        assert state.combat_penalty == -2
        assert state.status is SprintStatus.FATIGUED

    def test_gasping(self, make_combatant: CombatantFactory) -> None:
        """Test four minutes over halves speed."""
        runner = make_combatant(PE=2, Spd=10)
        state = update_sprint_fatigue(runner, minutes=6)
        assert state.status is SprintStatus.GASPING
        assert state.current_speed == 5
        assert state.combat_penalty == -4
        assert apply_sprint_penalties(runner).can_dodge_ranged is False

    def test_collapse(self, make_combatant: CombatantFactory) -> None:
        """Test five minutes over collapses the sprinter."""
        runner = make_combatant(PE=2, Spd=10)
        for _ in range(7):
            update_sprint_fatigue(runner)
        state = runner.sprint_state
        assert state is not None
        assert state.status is SprintStatus.COLLAPSED
        assert state.current_speed == 0
        assert state.combat_penalty == -5
        assert can_sprint(runner) is False
        assert apply_sprint_penalties(runner).can_act is False

    def test_penalties_applied_to_bonuses(self, make_combatant: CombatantFactory) -> None:
        runner = make_combatant(PE=1, bonuses=CombatBonuses(strike=3, parry=2, dodge=1))
        update_sprint_fatigue(runner, minutes=3)
        penalties = apply_sprint_penalties(runner)
        assert (penalties.strike, penalties.parry, penalties.dodge) == (1, 0, -1)


class TestSprintRecovery:
    """Tests for resting off sprint fatigue."""

    def test_full_recovery_after_half_the_sprint(self, make_combatant: CombatantFactory) -> None:
        runner = make_combatant(PE=2, Spd=10)
        update_sprint_fatigue(runner, minutes=5)
        state = rest_and_recover(runner, minutes=3)
        assert state.status is SprintStatus.READY
        assert state.sprint_timer == 0
        assert state.current_speed == 10
        assert state.combat_penalty == 0

    def test_partial_recovery_scales_penalty(self, make_combatant: CombatantFactory) -> None:
        runner = make_combatant(PE=2, Spd=10)
        update_sprint_fatigue(runner, minutes=6)
        state = rest_and_recover(runner, minutes=2)
        assert state.combat_penalty == -2

    def test_partial_penalty_never_reaches_zero(self, make_combatant: CombatantFactory) -> None:
        runner = make_combatant(PE=2, Spd=10)
        update_sprint_fatigue(runner, minutes=4)
        state = rest_and_recover(runner, minutes=1)
        assert state.combat_penalty == -1

    def test_collapsed_sprinter_gets_up(self, make_combatant: CombatantFactory) -> None:
        runner = make_combatant(PE=2, Spd=10)
        update_sprint_fatigue(runner, minutes=8)
        state = rest_and_recover(runner, minutes=1)
        assert state.status is SprintStatus.FATIGUED
        assert state.current_speed == 5
        assert can_sprint(runner) is True

    def test_reset(self, make_combatant: CombatantFactory) -> None:
        runner = make_combatant(PE=2, Spd=10)
        update_sprint_fatigue(runner, minutes=8)
        state = reset_sprint_fatigue(runner)
        assert state.status is SprintStatus.READY
        assert state.current_speed == 10


class TestSprintQueries:
    """Tests for distances and status."""

    def test_distance(self) -> None:
        assert sprint_distance_feet(10) == 600
        assert sprint_distance_cells(10) == 120

    def test_max_distance(self) -> None:
        reach = max_sprint_distance(speed=10, pe=3)
        assert reach.yards == 600
        assert reach.feet == 1800
        assert reach.minutes == 3

    def test_status(self, make_combatant: CombatantFactory) -> None:
        runner = make_combatant(PE=2, Spd=10)
        assert get_sprint_status(runner).description == "Fresh"
        update_sprint_fatigue(runner, minutes=4)
        report = get_sprint_status(runner)
        assert report.description == "Fatigued (2 min over)"
        assert report.penalty == -2
        assert can_sprint(make_combatant()) is True
