"""Integration tests for the registry decide-then-execute loop.

Covers local turns over several rounds, remote decisions through a fake
chat client, and the fallback to the local engine when the remote side
times out or answers badly.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import httpx
import openai
import pytest

from combat_ai.core.config import AIProviderSettings, Settings
from combat_ai.core.exceptions import AIResponseError, AITimeoutError
from combat_ai.engine import AIRegistry, Failure, RemoteDecisionOracle, Success
from combat_ai.engine.dice import ScriptedRoller
from combat_ai.engine.positions import GridPositionOracle
from combat_ai.models import (
    ActionKind,
    ActionPlan,
    Cell,
    CombatState,
    Combatant,
    DecisionSourceKind,
    Difficulty,
)


CombatantFactory = Callable[..., Combatant]


class ScriptedClient:
    """Chat client double that answers from a script, optionally slowly."""

    def __init__(self, *replies: Any, delay: float = 0.0) -> None:
        self.replies = list(replies)
        self.delay = delay
        self.calls = 0
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs: Any) -> Any:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


def _settings(**ai: Any) -> Settings:
    return Settings(ai=AIProviderSettings(max_retries=0, **ai))


def _remote_registry(client: ScriptedClient, **ai: Any) -> AIRegistry:
    settings = _settings(**ai)
    oracle = RemoteDecisionOracle(settings.ai, client=client)
    return AIRegistry(settings, roll_fn=ScriptedRoller([]), oracle=oracle)


class TestLocalTurns:
    """Tests for turns decided by the local engine."""

    def test_sprint_then_strike(self, orc: Combatant, make_combatant: CombatantFactory) -> None:
        """Test an orc sprints across the gap, then strikes once adjacent."""
        knight = make_combatant("knight-1", "Knight", x=8, level=3)
        registry = AIRegistry(_settings(), roll_fn=ScriptedRoller([15, 6]))

        plan = registry.make_decision("orc-1", orc, [knight])
        assert plan.kind is ActionKind.SPRINT_TO_TARGET
        outcome = registry.execute_action("orc-1", plan, orc)
        assert outcome.success is True
        assert outcome.distance_ft == 600

        knight.position = Cell(x=1, y=0)
        state = CombatState(round_number=2)
        plan = registry.make_decision("orc-1", orc, [knight], state)
        assert plan.kind is ActionKind.STRIKE
        outcome = registry.execute_action("orc-1", plan, orc, state)
        assert outcome.damage == 6
        assert outcome.target_id == "knight-1"

        assert "orc-1" in registry
        assert len(registry) == 1

    def test_engine_per_combatant(self, make_combatant: CombatantFactory) -> None:
        registry = AIRegistry(_settings(), roll_fn=ScriptedRoller([]))
        brute = make_combatant("brute-1", "Brute", personality="berserker")
        registry.make_decision("brute-1", brute, [])
        assert registry.get_engine("brute-1").personality.key == "berserker"
        assert registry.get_engine("other-1").personality.key == "tactical"

        registry.set_personality("brute-1", "defensive")
        registry.set_difficulty("brute-1", "HARD")
        engine = registry.get_engine("brute-1")
        assert engine.personality.key == "defensive"
        assert engine.difficulty is Difficulty.HARD

        registry.remove("brute-1")
        assert "brute-1" not in registry
        registry.clear()
        assert len(registry) == 0

    def test_per_call_personality_and_difficulty(self, orc: Combatant, knight: Combatant) -> None:
        registry = AIRegistry(_settings(), roll_fn=ScriptedRoller([]))
        baseline = registry.make_decision("orc-1", orc, [knight], CombatState())

        plan = registry.make_decision("orc-1", orc, [knight], CombatState(), "aggressive", "hard")
        engine = registry.get_engine("orc-1")
        assert engine.personality.key == "aggressive"
        assert engine.difficulty is Difficulty.HARD
        assert plan.score > baseline.score

        registry.make_decision("orc-1", orc, [knight])
        assert registry.get_engine("orc-1").difficulty is Difficulty.HARD

    def test_async_accepts_overrides(self, orc: Combatant, knight: Combatant) -> None:
        registry = AIRegistry(_settings(), roll_fn=ScriptedRoller([]))
        plan = asyncio.run(
            registry.make_decision_async(
                "orc-1", orc, [knight], CombatState(), personality="defensive", difficulty="easy"
            )
        )
        engine = registry.get_engine("orc-1")
        assert engine.personality.key == "defensive"
        assert engine.difficulty is Difficulty.EASY
        assert plan.source is DecisionSourceKind.LOCAL

    def test_grapple_round_trip(self, make_combatant: CombatantFactory) -> None:
        """Test a clinch forces both fighters onto grapple actions."""
        ogre = make_combatant("ogre-1", "Ogre", PS=25)
        human = make_combatant("human-1", "Human", x=1)
        positions = GridPositionOracle([ogre, human])
        registry = AIRegistry(_settings(), roll_fn=ScriptedRoller([7]), positions=positions)

        grab = ActionPlan.build(ActionKind.GRAPPLE, target=human, score=2.0, reasoning="grab")
        outcome = registry.execute_action("ogre-1", grab, ogre)
        assert outcome.success is True

        plan = registry.make_decision("human-1", human, [ogre])
        assert plan.kind in {ActionKind.GROUND_STRIKE, ActionKind.BREAK_FREE}
        assert plan.target is ogre

    def test_one_sided_grapple_reported_as_failure(self, make_combatant: CombatantFactory) -> None:
        """Test a host that merged only one fighter's snapshot gets a failed outcome."""
        ogre = make_combatant("ogre-1", "Ogre", PS=25)
        human = make_combatant("human-1", "Human", x=1)
        registry = AIRegistry(_settings(), roll_fn=ScriptedRoller([7]))
        grab = ActionPlan.build(ActionKind.GRAPPLE, target=human, score=2.0, reasoning="grab")
        assert registry.execute_action("ogre-1", grab, ogre).success is True

        assert human.grapple_state is not None
        human.grapple_state.opponent_id = "someone-else"
        hold = ActionPlan.build(
            ActionKind.MAINTAIN_GRAPPLE, target=human, score=2.0, reasoning="hold"
        )
        outcome = registry.execute_action("ogre-1", hold, ogre)
        assert outcome.success is False
        assert outcome.message == "Grapple state is one-sided"

    def test_async_without_remote_matches_sync(self, orc: Combatant, knight: Combatant) -> None:
        registry = AIRegistry(_settings(), roll_fn=ScriptedRoller([]))
        assert registry.remote_enabled is False
        local = registry.make_decision("orc-1", orc, [knight])
        remote_less = asyncio.run(registry.make_decision_async("orc-1", orc, [knight]))
        assert remote_less.kind is local.kind
        assert remote_less.score == local.score
        assert remote_less.source is DecisionSourceKind.LOCAL


class TestRemoteTurns:
    """Tests for remote decisions and the local fallback."""

    def test_remote_plan_used(self, orc: Combatant, knight: Combatant) -> None:
        client = ScriptedClient('{"action": "Parry", "reasoning": "Bait the knight"}')
        registry = _remote_registry(client)

        plan = asyncio.run(registry.make_decision_async("orc-1", orc, [knight]))
        assert plan.kind is ActionKind.PARRY
        assert plan.source is DecisionSourceKind.REMOTE
        assert plan.score == 5.0
        assert plan.reasoning == "LLM: Bait the knight"

    def test_unusable_reply_falls_back(self, orc: Combatant, knight: Combatant) -> None:
        registry = _remote_registry(ScriptedClient("I charge!"))
        plan = asyncio.run(registry.make_decision_async("orc-1", orc, [knight]))
        assert plan.kind is ActionKind.STRIKE
        assert plan.source is DecisionSourceKind.LOCAL

    def test_non_text_reply_falls_back(self, orc: Combatant, knight: Combatant) -> None:
        """Test a provider returning structured content instead of text."""
        registry = _remote_registry(ScriptedClient({"action": "Strike"}))
        plan = asyncio.run(registry.make_decision_async("orc-1", orc, [knight]))
        assert plan.kind is ActionKind.STRIKE
        assert plan.source is DecisionSourceKind.LOCAL

    def test_illegal_action_falls_back(self, orc: Combatant, make_combatant: CombatantFactory) -> None:
        """Test the model cannot pick an action the local engine ruled out."""
        far = make_combatant("knight-1", "Knight", x=40)
        registry = _remote_registry(ScriptedClient('{"action": "Strike"}'))
        plan = asyncio.run(registry.make_decision_async("orc-1", orc, [far]))
        assert plan.kind is not ActionKind.STRIKE
        assert plan.source is DecisionSourceKind.LOCAL

    def test_transport_error_falls_back(self, orc: Combatant, knight: Combatant) -> None:
        request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        registry = _remote_registry(ScriptedClient(openai.APIConnectionError(request=request)))
        plan = asyncio.run(registry.make_decision_async("orc-1", orc, [knight]))
        assert plan.source is DecisionSourceKind.LOCAL

    def test_timeout_falls_back(self, orc: Combatant, knight: Combatant) -> None:
        client = ScriptedClient('{"action": "Parry"}', delay=1.0)
        registry = _remote_registry(client, timeout_seconds=0.05)
        plan = asyncio.run(registry.make_decision_async("orc-1", orc, [knight]))
        assert plan.kind is ActionKind.STRIKE
        assert plan.source is DecisionSourceKind.LOCAL
        assert client.calls == 1

    def test_no_targets_skips_remote(self, orc: Combatant) -> None:
        client = ScriptedClient()
        registry = _remote_registry(client)
        plan = asyncio.run(registry.make_decision_async("orc-1", orc, []))
        assert plan.kind is ActionKind.DEFEND_HOLD
        assert client.calls == 0

    def test_disable_remote(self, orc: Combatant, knight: Combatant) -> None:
        client = ScriptedClient()
        registry = _remote_registry(client)
        registry.disable_remote()
        asyncio.run(registry.make_decision_async("orc-1", orc, [knight]))
        assert client.calls == 0


class TestRemoteSource:
    """Tests for the decision results the remote source reports."""

    def test_timeout_is_a_failure(self, orc: Combatant, knight: Combatant) -> None:
        registry = _remote_registry(
            ScriptedClient('{"action": "Parry"}', delay=1.0), timeout_seconds=0.05
        )
        assert registry.remote is not None
        engine = registry.get_engine("orc-1")
        result = asyncio.run(registry.remote.decide(engine, orc, [knight], CombatState()))

        assert isinstance(result, Failure)
        assert result.ok is False
        assert isinstance(result.error, AITimeoutError)
        assert result.details == {"combatant": "orc-1"}

    def test_bad_reply_is_a_failure(self, orc: Combatant, knight: Combatant) -> None:
        registry = _remote_registry(ScriptedClient('{"reasoning": "hmm"}'))
        assert registry.remote is not None
        result = asyncio.run(
            registry.remote.decide(registry.get_engine("orc-1"), orc, [knight], CombatState())
        )
        assert isinstance(result, Failure)
        assert isinstance(result.error, AIResponseError)

    def test_success(self, orc: Combatant, knight: Combatant) -> None:
        registry = _remote_registry(ScriptedClient('{"action": "Dodge"}'))
        assert registry.remote is not None
        result = asyncio.run(
            registry.remote.decide(registry.get_engine("orc-1"), orc, [knight], CombatState())
        )
        assert isinstance(result, Success)
        assert result.ok is True
        assert result.source is DecisionSourceKind.REMOTE


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_seeded_registry_is_reproducible(seed: int, make_combatant: CombatantFactory) -> None:
    """Test two registries with the same seed play out the same strike."""
    damages = []
    for _ in range(2):
        orc = make_combatant("orc-1", "Orc", equipped_weapons=[{"name": "Longsword", "damage": "1d8"}])
        knight = make_combatant("knight-1", "Knight", x=1)
        registry = AIRegistry(Settings(engine={"seed": seed}))
        plan = registry.make_decision("orc-1", orc, [knight])
        damages.append(registry.execute_action("orc-1", plan, orc).details)
    assert damages[0] == damages[1]
