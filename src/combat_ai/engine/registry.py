"""Per-combatant AI registry.

The registry is what a host scheduler talks to. It keeps one DecisionEngine
per combatant id, decides turns locally or through the remote oracle, and
executes the chosen plans.

A remote decision that fails for any reason (timeout, transport error,
unusable reply) becomes a Failure and the local engine decides instead, so
``make_decision_async`` always returns a plan.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

from combat_ai.core.config import Settings, get_settings
from combat_ai.core.exceptions import AIControlError, AITimeoutError
from combat_ai.core.logging import bind_context, get_logger, unbind_context
from combat_ai.engine.decision import DecisionEngine
from combat_ai.engine.dice import DiceRoller, RollFn
from combat_ai.engine.executor import ActionExecutor
from combat_ai.engine.interfaces import ArmorResolver, CombatLog, PositionOracle, WeaponCatalog
from combat_ai.engine.remote import RemoteDecisionOracle
from combat_ai.models.actions import ActionDefinition, ActionOutcome, ActionPlan
from combat_ai.models.combat import CombatState
from combat_ai.models.combatant import Combatant
from combat_ai.models.enums import DecisionSourceKind, Difficulty
from combat_ai.models.personality import PersonalityProfile, get_personality


logger = get_logger(__name__)


# =============================================================================
# Decision Results
# =============================================================================


@dataclass(frozen=True)
class Success:
    """A decision source produced a plan."""

    plan: ActionPlan
    source: DecisionSourceKind = DecisionSourceKind.LOCAL

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """A decision source could not produce a plan.

    Attributes:
        error: What went wrong.
        source: Which source failed.
    """

    error: Exception
    source: DecisionSourceKind = DecisionSourceKind.REMOTE
    details: dict[str, object] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False


DecisionResult = Success | Failure


# =============================================================================
# Decision Sources
# =============================================================================


class DecisionSource(ABC):
    """Something that can choose a plan for a combatant's turn."""

    kind: DecisionSourceKind

    @abstractmethod
    async def decide(
        self,
        engine: DecisionEngine,
        combatant: Combatant,
        targets: Sequence[Combatant],
        combat_state: CombatState,
    ) -> DecisionResult:
        """Choose a plan, reporting failure as a Failure rather than raising."""


class LocalDecisionSource(DecisionSource):
    """The deterministic DecisionEngine."""

    kind = DecisionSourceKind.LOCAL

    async def decide(
        self,
        engine: DecisionEngine,
        combatant: Combatant,
        targets: Sequence[Combatant],
        combat_state: CombatState,
    ) -> DecisionResult:
        return Success(engine.choose_action(combatant, targets, combat_state))


class RemoteDecisionSource(DecisionSource):
    """The remote oracle under a hard deadline.

    The oracle is offered the same legal actions the local engine would
    score.
    """

    kind = DecisionSourceKind.REMOTE

    def __init__(self, oracle: RemoteDecisionOracle, *, timeout_seconds: float) -> None:
        self.oracle = oracle
        self.timeout_seconds = timeout_seconds

    async def decide(
        self,
        engine: DecisionEngine,
        combatant: Combatant,
        targets: Sequence[Combatant],
        combat_state: CombatState,
    ) -> DecisionResult:
        actions = _offered_actions(engine, combatant, targets)
        try:
            plan = await asyncio.wait_for(
                self.oracle.choose_action(
                    combatant,
                    targets,
                    combat_state,
                    actions,
                    personality_name=engine.personality.name,
                    difficulty=str(engine.difficulty),
                ),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            error = AITimeoutError(
                "Remote decision timed out",
                timeout_seconds=self.timeout_seconds,
                model=self.oracle.settings.model,
                provider=self.oracle.provider,
            )
            return Failure(error, details={"combatant": combatant.id})
        except AIControlError as exc:
            return Failure(exc, details={"combatant": combatant.id})
        return Success(plan, source=DecisionSourceKind.REMOTE)


def _offered_actions(
    engine: DecisionEngine,
    combatant: Combatant,
    targets: Sequence[Combatant],
) -> list[ActionDefinition]:
    return [definition for definition, _ in engine.legal_actions(combatant, targets)]


# =============================================================================
# Registry
# =============================================================================


class AIRegistry:
    """Owns one decision engine per combatant and the shared executor.

    Attributes:
        settings: Loaded settings.
        executor: Resolves plans into outcomes.
        local: The local decision source.
        remote: The remote decision source, when enabled.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        roll_fn: RollFn | None = None,
        positions: PositionOracle | None = None,
        armor: ArmorResolver | None = None,
        weapon_catalog: WeaponCatalog | None = None,
        combat_log: CombatLog | None = None,
        oracle: RemoteDecisionOracle | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            settings: Settings; the global settings when omitted.
            roll_fn: Dice source; a DiceRoller seeded from settings when omitted.
            positions: Distance oracle shared by every engine.
            armor: Armor resolver used when executing plans.
            weapon_catalog: Resolves inventory weapons given by name.
            combat_log: Host narration sink.
            oracle: Remote oracle. One is built from settings when remote
                decisions are enabled and none is given.
        """
        self.settings = settings or get_settings()
        engine_settings = self.settings.engine
        self.positions = positions
        self.weapon_catalog = weapon_catalog
        self.executor = ActionExecutor(
            roll_fn or DiceRoller(seed=engine_settings.seed),
            positions=positions,
            armor=armor,
            weapon_catalog=weapon_catalog,
            combat_log=combat_log,
            die_sides=engine_settings.die_sides,
        )
        self.local = LocalDecisionSource()
        self.remote: RemoteDecisionSource | None = None
        if oracle is not None or self.settings.ai.remote_enabled:
            self.enable_remote(oracle or RemoteDecisionOracle(self.settings.ai))
        self._engines: dict[str, DecisionEngine] = {}

        logger.info(
            "AIRegistry initialized",
            remote_enabled=self.remote_enabled,
            personality=engine_settings.default_personality,
            difficulty=engine_settings.default_difficulty,
        )

    # -------------------------------------------------------------------------
    # Engines
    # -------------------------------------------------------------------------

    @property
    def remote_enabled(self) -> bool:
        return self.remote is not None

    def enable_remote(self, oracle: RemoteDecisionOracle) -> None:
        self.remote = RemoteDecisionSource(oracle, timeout_seconds=self.settings.ai.timeout_seconds)

    def disable_remote(self) -> None:
        self.remote = None

    def get_engine(
        self,
        combatant_id: str,
        personality: PersonalityProfile | str | None = None,
        difficulty: Difficulty | str | None = None,
    ) -> DecisionEngine:
        """Return the combatant's engine, creating it on first use."""
        engine = self._engines.get(combatant_id)
        if engine is None:
            engine_settings = self.settings.engine
            engine = DecisionEngine(
                personality or engine_settings.default_personality,
                difficulty or engine_settings.default_difficulty,
                positions=self.positions,
                weapon_catalog=self.weapon_catalog,
                melee_range_ft=engine_settings.melee_range_ft,
                close_range_ft=engine_settings.close_range_ft,
            )
            self._engines[combatant_id] = engine
        return engine

    def set_personality(self, combatant_id: str, personality: PersonalityProfile | str) -> None:
        self.get_engine(combatant_id).personality = get_personality(personality)

    def set_difficulty(self, combatant_id: str, difficulty: Difficulty | str) -> None:
        engine = self.get_engine(combatant_id)
        engine.difficulty = Difficulty(str(difficulty).lower())

    def remove(self, combatant_id: str) -> None:
        self._engines.pop(combatant_id, None)

    def clear(self) -> None:
        self._engines.clear()

    def __contains__(self, combatant_id: object) -> bool:
        return combatant_id in self._engines

    def __len__(self) -> int:
        return len(self._engines)

    # -------------------------------------------------------------------------
    # Decisions
    # -------------------------------------------------------------------------

    def _engine_for(
        self,
        combatant_id: str,
        combatant: Combatant,
        personality: PersonalityProfile | str | None,
        difficulty: Difficulty | str | None,
    ) -> DecisionEngine:
        """Engine for this turn, applying any per-call overrides."""
        engine = self.get_engine(combatant_id, personality or combatant.personality, difficulty)
        if personality is not None:
            self.set_personality(combatant_id, personality)
        if difficulty is not None:
            self.set_difficulty(combatant_id, difficulty)
        return engine

    def make_decision(
        self,
        combatant_id: str,
        combatant: Combatant,
        targets: Sequence[Combatant],
        combat_state: CombatState | None = None,
        personality: PersonalityProfile | str | None = None,
        difficulty: Difficulty | str | None = None,
    ) -> ActionPlan:
        """Decide a turn with the local engine.

        Args:
            combatant_id: Registry key for the combatant's engine.
            combatant: The acting combatant.
            targets: Candidate targets, in priority order.
            combat_state: Encounter context.
            personality: Overrides the engine's personality from now on.
            difficulty: Overrides the engine's difficulty from now on.
        """
        engine = self._engine_for(combatant_id, combatant, personality, difficulty)
        bind_context(combatant_id=combatant_id)
        try:
            plan = engine.choose_action(combatant, targets, combat_state or CombatState())
            logger.debug(
                "Local decision made",
                action=str(plan.kind),
                score=round(plan.score, 2),
            )
        finally:
            unbind_context("combatant_id")
        return plan

    async def make_decision_async(
        self,
        combatant_id: str,
        combatant: Combatant,
        targets: Sequence[Combatant],
        combat_state: CombatState | None = None,
        personality: PersonalityProfile | str | None = None,
        difficulty: Difficulty | str | None = None,
    ) -> ActionPlan:
        """Decide a turn remotely when enabled, locally otherwise.

        Takes the same arguments as :meth:`make_decision`.

        Returns:
            The remote plan, or the local plan when the remote source is
            disabled or fails.
        """
        state = combat_state or CombatState()
        engine = self._engine_for(combatant_id, combatant, personality, difficulty)

        bind_context(combatant_id=combatant_id)
        try:
            if self.remote is not None and targets:
                result = await self.remote.decide(engine, combatant, targets, state)
                if isinstance(result, Success):
                    return result.plan
                logger.warning(
                    "Remote decision failed, using local engine",
                    error=str(result.error),
                    error_type=type(result.error).__name__,
                )

            result = await self.local.decide(engine, combatant, targets, state)
            if isinstance(result, Failure):
                raise result.error
            return result.plan
        finally:
            unbind_context("combatant_id")

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def execute_action(
        self,
        combatant_id: str,
        plan: ActionPlan,
        combatant: Combatant,
        combat_state: CombatState | None = None,
    ) -> ActionOutcome:
        """Execute a plan for a registered combatant."""
        self.get_engine(combatant_id, combatant.personality)
        return self.executor.execute(plan, combatant, combat_state)


__all__ = [
    "Success",
    "Failure",
    "DecisionResult",
    "DecisionSource",
    "LocalDecisionSource",
    "RemoteDecisionSource",
    "AIRegistry",
]
