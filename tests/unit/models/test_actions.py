"""Tests for the action catalog and personality profiles."""

from __future__ import annotations

import pytest

from combat_ai.models import (
    ACTION_CATALOG,
    AGGRESSIVE,
    BERSERKER,
    DEFENSIVE,
    TACTICAL,
    ActionKind,
    ActionOutcome,
    ActionPlan,
    ActionType,
    Difficulty,
    get_action,
    get_personality,
)


class TestActionCatalog:
    """Tests for the fixed action table."""

    def test_every_kind_defined(self) -> None:
        """Test each ActionKind has exactly one entry."""
        assert set(ACTION_CATALOG) == set(ActionKind)

    def test_evaluation_order(self) -> None:
        """Test the catalog keeps declaration order."""
        kinds = list(ACTION_CATALOG)
        assert kinds[0] is ActionKind.STRIKE
        assert kinds[-1] is ActionKind.BREAK_FREE

    def test_entries_are_frozen(self) -> None:
        with pytest.raises(Exception):
            ACTION_CATALOG[ActionKind.STRIKE].base_score = 99.0  # type: ignore[misc]

    def test_sprint_flags(self) -> None:
        assert get_action(ActionKind.SPRINT_TO_TARGET).requires_sprint is True
        assert get_action("sprint_to_retreat").requires_sprint is True
        assert get_action(ActionKind.STRIKE).requires_sprint is False

    def test_targets(self) -> None:
        assert get_action(ActionKind.STRIKE).requires_target is True
        assert get_action(ActionKind.DEFEND_HOLD).requires_target is False

    def test_unknown_kind(self) -> None:
        with pytest.raises(ValueError):
            get_action("teleport")


class TestActionPlan:
    """Tests for plan construction."""

    def test_strategic_flag_derived(self) -> None:
        """Test plans above the threshold are strategic."""
        assert ActionPlan.build(ActionKind.STRIKE, score=2.5, reasoning="r").is_strategic
        assert not ActionPlan.build(ActionKind.STRIKE, score=2.0, reasoning="r").is_strategic

    def test_strategic_flag_override(self) -> None:
        plan = ActionPlan.build(
            ActionKind.DEFEND_HOLD, score=9.0, reasoning="r", is_strategic=False
        )
        assert plan.is_strategic is False

    def test_kind_shortcut(self) -> None:
        plan = ActionPlan.build(ActionKind.PARRY, score=1.0, reasoning="r")
        assert plan.kind is ActionKind.PARRY
        assert plan.action.name == "Parry"

    def test_outcome_defaults(self) -> None:
        outcome = ActionOutcome(success=True, action=ActionKind.DODGE)
        assert outcome.damage == 0
        assert outcome.distance_ft is None
        assert outcome.details == {}


class TestPersonality:
    """Tests for personality profiles."""

    def test_lookup(self) -> None:
        assert get_personality("aggressive") is AGGRESSIVE
        assert get_personality("BERSERKER") is BERSERKER
        assert get_personality(DEFENSIVE) is DEFENSIVE

    def test_unknown_falls_back_to_tactical(self) -> None:
        assert get_personality("cowardly") is TACTICAL
        assert get_personality(None) is TACTICAL

    def test_type_multiplier(self) -> None:
        """Test category weights map to the right profile weight."""
        assert AGGRESSIVE.type_multiplier(ActionType.OFFENSIVE) == 1.0
        assert DEFENSIVE.type_multiplier(ActionType.DEFENSIVE) == 1.0
        assert TACTICAL.type_multiplier(ActionType.UTILITY) == pytest.approx(0.9)
        assert BERSERKER.type_multiplier(ActionType.MOVEMENT) == 1.0
        assert BERSERKER.type_multiplier(ActionType.RECOVERY) == 1.0

    def test_preference_multiplier(self) -> None:
        assert AGGRESSIVE.preference_multiplier(ActionKind.STRIKE) == 1.3
        assert AGGRESSIVE.preference_multiplier(ActionKind.WITHDRAW) == 0.5
        assert AGGRESSIVE.preference_multiplier(ActionKind.PARRY) == 1.0

    @pytest.mark.parametrize(
        ("difficulty", "multiplier"),
        [
            (Difficulty.EASY, 0.8),
            (Difficulty.NORMAL, 1.0),
            (Difficulty.HARD, 1.2),
            (Difficulty.NIGHTMARE, 1.5),
        ],
    )
    def test_difficulty_multiplier(self, difficulty: Difficulty, multiplier: float) -> None:
        assert difficulty.multiplier == multiplier
