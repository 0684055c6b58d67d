"""Local decision engine.

Picks one ActionPlan per turn in three stages:

1. A tactical pre-check that handles exhaustion and movement (rest,
   retreat, sprinting into melee, flanking, pursuit, bodyguard intercept).
   The first rule that matches decides the turn.
2. Weapon advice for the primary target. When closing in is clearly worth
   more than attacking now, the engine moves.
3. Generic scoring of every legal (action, target) pair::

       (base x personality + target value + weapon contribution)
           x health x preference x difficulty

Ties go to the earlier target and the earlier catalog entry.
"""

from __future__ import annotations

from collections.abc import Sequence

from combat_ai.core.constants import (
    CLOSE_DISTANCE_MULTIPLIER,
    CLOSE_RANGE_FT,
    DEFAULT_PLAN_SCORE,
    FEET_PER_CELL,
    FLANK_HEALTH,
    FLANK_MIN_IQ,
    FLANK_SCORE,
    FORCED_REST_SCORE,
    HIGH_HEALTH_RATIO,
    INTERCEPT_SCORE,
    LOW_HEALTH_RATIO,
    MELEE_RANGE_FT,
    PURSUIT_SCORE,
    RANGED_PRESSURE_HEALTH,
    RETREAT_SCORE,
    SPRINT_TO_TARGET_SCORE,
    VOLUNTARY_REST_SCORE,
)
from combat_ai.core.exceptions import CombatError
from combat_ai.core.logging import get_logger
from combat_ai.engine.fatigue import can_perform_action, effective_bonuses
from combat_ai.engine.interfaces import PositionOracle, WeaponCatalog
from combat_ai.engine.positions import measure
from combat_ai.engine.size import can_lift_and_throw
from combat_ai.engine.sprint import can_sprint, sprint_distance_feet
from combat_ai.engine.weapons import (
    WeaponRecommendation,
    analyze_closing_distance,
    available_weapons,
    evaluate_weapon_bonuses,
    get_optimal_weapon_recommendation,
    rank_weapons_by_bonuses,
)
from combat_ai.models.actions import ACTION_CATALOG, ActionDefinition, ActionPlan
from combat_ai.models.combat import CombatState
from combat_ai.models.combatant import Combatant
from combat_ai.models.enums import (
    ActionKind,
    ActionType,
    Difficulty,
    FatigueLevel,
    GrappleStatus,
    StaminaActivity,
)
from combat_ai.models.personality import TACTICAL, PersonalityProfile, get_personality


logger = get_logger(__name__)

_STANDING_ACTIONS = (
    ActionKind.STRIKE,
    ActionKind.PARRY,
    ActionKind.DODGE,
    ActionKind.MOVE,
    ActionKind.DEFEND_HOLD,
)
_CLOSING_MOVES = frozenset({ActionKind.MOVE, ActionKind.SPRINT_TO_TARGET})
_PER_TARGET = frozenset({ActionKind.MOVE})
_MANEUVER_SKILL = "combat maneuvers"


def _difficulty(value: Difficulty | str | None) -> Difficulty:
    if isinstance(value, Difficulty):
        return value
    if value is None:
        return Difficulty.NORMAL
    try:
        return Difficulty(str(value).lower())
    except ValueError:
        logger.warning("Unknown difficulty, using normal", difficulty=value)
        return Difficulty.NORMAL


class DecisionEngine:
    """Weighted heuristic that chooses a combatant's action for the turn.

    One engine holds the configuration (personality, difficulty) for one
    combatant; it keeps no per-turn state, so the same inputs always give
    the same plan.

    Attributes:
        personality: Behavioural profile.
        difficulty: Final score multiplier.
        positions: Distance oracle; combatant cells are used without one.
        weapon_catalog: Resolves inventory weapons given by name.
        melee_range_ft: Reach for melee actions.
        close_range_ft: Distance beyond which flanking is considered.
    """

    def __init__(
        self,
        personality: PersonalityProfile | str | None = None,
        difficulty: Difficulty | str | None = None,
        *,
        positions: PositionOracle | None = None,
        weapon_catalog: WeaponCatalog | None = None,
        melee_range_ft: float = MELEE_RANGE_FT,
        close_range_ft: float = CLOSE_RANGE_FT,
    ) -> None:
        self.personality = get_personality(personality) if personality else TACTICAL
        self.difficulty = _difficulty(difficulty)
        self.positions = positions
        self.weapon_catalog = weapon_catalog
        self.melee_range_ft = melee_range_ft
        self.close_range_ft = close_range_ft

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def choose_action(
        self,
        combatant: Combatant,
        targets: Sequence[Combatant],
        combat_state: CombatState | None = None,
    ) -> ActionPlan:
        """Select the best plan for a combatant's turn.

        Args:
            combatant: The acting combatant.
            targets: Opponents it may act against, in priority order.
            combat_state: Encounter context.

        Returns:
            The highest scoring ActionPlan. Defend/Hold when there are no
            targets or nothing else is legal.
        """
        state = combat_state or CombatState()
        if not targets:
            return self.default_plan("No targets available, defending")

        plan = self._tactical_precheck(combatant, targets, state)
        if plan is not None:
            logger.debug(
                "Pre-check decided turn",
                combatant=combatant.id,
                action=str(plan.kind),
                score=plan.score,
            )
            return plan

        recommendation: WeaponRecommendation | None = None
        if not combatant.is_engaged:
            primary = targets[0]
            recommendation = self.weapon_recommendation(combatant, primary, state)
            if (
                recommendation.action == "close_distance"
                and recommendation.score > 1.0
                and not state.has_closed_distance
            ):
                return ActionPlan.build(
                    ActionKind.MOVE,
                    target=primary,
                    score=recommendation.score * CLOSE_DISTANCE_MULTIPLIER,
                    reasoning=recommendation.reasoning,
                    weapon_recommendation=recommendation,
                    is_strategic=True,
                )

        best = self._score_legal_actions(combatant, targets, state)
        if best is None:
            return self.default_plan("No legal actions, defending")

        definition, target, score = best
        reasoning = self.generate_reasoning(definition, target, score)
        if recommendation is not None and recommendation.evaluation is not None:
            if recommendation.evaluation.bonuses:
                reasoning += f" | Weapon bonuses: {', '.join(recommendation.evaluation.bonuses)}"

        return ActionPlan.build(
            definition.kind,
            target=target,
            score=score,
            reasoning=reasoning,
            weapon_recommendation=recommendation,
        )

    def default_plan(self, reasoning: str) -> ActionPlan:
        """The safe fallback: Defend/Hold with no target."""
        return ActionPlan.build(
            ActionKind.DEFEND_HOLD,
            score=DEFAULT_PLAN_SCORE,
            reasoning=reasoning,
            is_strategic=False,
        )

    # -------------------------------------------------------------------------
    # Tactical pre-check
    # -------------------------------------------------------------------------

    def _tactical_precheck(
        self,
        combatant: Combatant,
        targets: Sequence[Combatant],
        state: CombatState,
    ) -> ActionPlan | None:
        fatigue = combatant.fatigue_state
        sprint = combatant.sprint_state
        if (fatigue is not None and fatigue.is_collapsed) or (
            sprint is not None and sprint.is_collapsed
        ):
            return ActionPlan.build(
                ActionKind.REST_RECOVER,
                score=FORCED_REST_SCORE,
                reasoning="Collapsed from exhaustion, must rest",
                is_strategic=True,
            )

        if fatigue is not None and fatigue.fatigue_level >= FatigueLevel.SEVERE:
            return ActionPlan.build(
                ActionKind.REST_RECOVER,
                score=VOLUNTARY_REST_SCORE,
                reasoning="Heavily fatigued, resting to recover",
                is_strategic=True,
            )

        if combatant.is_engaged or not can_sprint(combatant):
            return None
        if not can_perform_action(combatant, StaminaActivity.SPRINTING):
            return None

        closest, distance = self.closest_target(combatant, targets)
        sprint_range = sprint_distance_feet(self.speed(combatant))
        health = combatant.hp_ratio

        if health < LOW_HEALTH_RATIO and not combatant.fearless:
            return ActionPlan.build(
                ActionKind.SPRINT_TO_RETREAT,
                score=RETREAT_SCORE,
                reasoning=f"Low HP ({round(health * 100)}%), retreating to survive",
                is_strategic=True,
            )

        in_sprint_range = self.melee_range_ft < distance <= sprint_range
        if in_sprint_range and (
            combatant.is_melee_only
            or (state.under_ranged_fire and health > RANGED_PRESSURE_HEALTH)
        ):
            return ActionPlan.build(
                ActionKind.SPRINT_TO_TARGET,
                target=closest,
                score=SPRINT_TO_TARGET_SCORE,
                reasoning=f"Closing {round(distance)}ft gap to engage in melee",
                is_strategic=True,
            )

        if (
            combatant.attributes.IQ >= FLANK_MIN_IQ
            and self.close_range_ft < distance <= sprint_range
            and state.allies_in_melee
            and health > FLANK_HEALTH
        ):
            return ActionPlan.build(
                ActionKind.SPRINT_TO_TARGET,
                target=closest,
                score=FLANK_SCORE,
                reasoning="Flanking maneuver to support allies",
                is_strategic=True,
            )

        if closest.is_fleeing and combatant.attributes.Spd >= closest.attributes.Spd:
            return ActionPlan.build(
                ActionKind.SPRINT_TO_TARGET,
                target=closest,
                score=PURSUIT_SCORE,
                reasoning="Pursuing fleeing target",
                is_strategic=True,
            )

        if self._ally_needs_intercept(combatant, state, sprint_range):
            return ActionPlan.build(
                ActionKind.SPRINT_TO_TARGET,
                target=closest,
                score=INTERCEPT_SCORE,
                reasoning="Protecting ally from threat",
                is_strategic=True,
            )

        return None

    def _ally_needs_intercept(
        self, combatant: Combatant, state: CombatState, sprint_range: float
    ) -> bool:
        if (combatant.role or "").lower() != "bodyguard":
            return False
        if not state.protected_ally_id or not state.protected_ally_threatened:
            return False
        if self.positions is None:
            return False
        try:
            ally_distance = self.positions.distance_between(combatant.id, state.protected_ally_id)
        except CombatError:
            logger.debug("Protected ally not on the map", ally=state.protected_ally_id)
            return False
        return ally_distance <= sprint_range

    # -------------------------------------------------------------------------
    # Geometry helpers
    # -------------------------------------------------------------------------

    def distance(self, combatant: Combatant, target: Combatant) -> float:
        return measure(self.positions, combatant, target)

    def closest_target(
        self, combatant: Combatant, targets: Sequence[Combatant]
    ) -> tuple[Combatant, float]:
        """Nearest target and its distance; the first one wins ties."""
        closest = targets[0]
        best = self.distance(combatant, closest)
        for target in targets[1:]:
            distance = self.distance(combatant, target)
            if distance < best:
                closest, best = target, distance
        return closest, best

    @staticmethod
    def speed(combatant: Combatant) -> int:
        """Spd after stamina and sprint fatigue."""
        speed = effective_bonuses(combatant).Spd
        if combatant.sprint_state is not None:
            speed = min(speed, combatant.sprint_state.current_speed)
        return speed

    def _context_distance(
        self, combatant: Combatant, target: Combatant, state: CombatState
    ) -> float:
        if state.combat_distance_ft is not None:
            return state.combat_distance_ft
        return self.distance(combatant, target)

    # -------------------------------------------------------------------------
    # Weapons
    # -------------------------------------------------------------------------

    def weapon_recommendation(
        self, combatant: Combatant, target: Combatant, state: CombatState
    ) -> WeaponRecommendation:
        weapons = available_weapons(combatant, self.weapon_catalog)
        return get_optimal_weapon_recommendation(
            weapons,
            combatant,
            target,
            state,
            distance_ft=self._context_distance(combatant, target, state),
        )

    def weapon_contribution(
        self,
        definition: ActionDefinition,
        combatant: Combatant,
        target: Combatant,
        state: CombatState,
    ) -> float:
        """Extra score an action earns from the weapons at hand.

        Strikes add half the current weapon's score plus 0.3 of a positive
        total bonus. Closing moves add 0.4 of the closing benefit. Any action
        adds 0.2 of the margin by which the best weapon beats the current one.
        """
        weapons = available_weapons(combatant, self.weapon_catalog)
        if not weapons:
            return 0.0

        distance = self._context_distance(combatant, target, state)
        current = combatant.primary_weapon or weapons[0]
        evaluation = evaluate_weapon_bonuses(
            current, combatant, target, target.primary_weapon, state, distance_ft=distance
        )

        contribution = 0.0
        if definition.kind is ActionKind.STRIKE:
            contribution += evaluation.score * 0.5
            if evaluation.total_bonus > 0:
                contribution += evaluation.total_bonus * 0.3

        if definition.kind in _CLOSING_MOVES:
            closing = analyze_closing_distance(
                combatant, target, current, state, distance_ft=distance
            )
            if closing.should_close and closing.benefit > 0:
                contribution += closing.benefit * 0.4

        ranked = rank_weapons_by_bonuses(weapons, combatant, target, state, distance_ft=distance)
        if ranked and ranked[0].score > evaluation.score:
            contribution += (ranked[0].score - evaluation.score) * 0.2
        return contribution

    # -------------------------------------------------------------------------
    # Legality
    # -------------------------------------------------------------------------

    def legal_actions(
        self,
        combatant: Combatant,
        targets: Sequence[Combatant],
    ) -> list[tuple[ActionDefinition, list[Combatant]]]:
        """Actions the combatant may take, each with the targets it may take them against.

        Engaged combatants only get grapple actions against their opponent.
        Everything else is filtered through fatigue and range.
        """
        if combatant.is_engaged:
            return self._grapple_actions(combatant, targets)

        if not can_perform_action(combatant, StaminaActivity.NORMAL_COMBAT):
            return []

        melee = [t for t in targets if self.distance(combatant, t) <= self.melee_range_ft]
        kinds: list[ActionKind] = list(_STANDING_ACTIONS)
        if any(skill.lower() == _MANEUVER_SKILL for skill in combatant.skills):
            kinds.append(ActionKind.COMBAT_MANEUVERS)
        if any(item.item_type == "consumable" and item.quantity > 0 for item in combatant.inventory):
            kinds.append(ActionKind.USE_ITEM)
        if self._has_ranged_reach(combatant):
            kinds.append(ActionKind.AIM_CALLED_SHOT)
        if melee and can_perform_action(combatant, StaminaActivity.GRAPPLING):
            kinds.append(ActionKind.GRAPPLE)

        legal: list[tuple[ActionDefinition, list[Combatant]]] = []
        for kind in ACTION_CATALOG:
            if kind not in kinds:
                continue
            definition = ACTION_CATALOG[kind]
            if kind in (ActionKind.STRIKE, ActionKind.COMBAT_MANEUVERS, ActionKind.GRAPPLE):
                pool = self._in_reach(combatant, targets) if kind is ActionKind.STRIKE else melee
                pool = [t for t in pool if not t.is_engaged] if kind is ActionKind.GRAPPLE else pool
                if not pool:
                    continue
                legal.append((definition, pool))
            elif kind is ActionKind.AIM_CALLED_SHOT:
                pool = self._in_reach(combatant, targets)
                if pool:
                    legal.append((definition, pool))
            else:
                legal.append((definition, list(targets)))
        return legal

    def _grapple_actions(
        self, combatant: Combatant, targets: Sequence[Combatant]
    ) -> list[tuple[ActionDefinition, list[Combatant]]]:
        state = combatant.grapple_state
        if state is None:
            return []
        opponent = next((t for t in targets if t.id == state.opponent_id), None)
        if opponent is None:
            return []

        kinds: list[ActionKind] = []
        if state.is_attacker:
            kinds.append(ActionKind.MAINTAIN_GRAPPLE)
            if state.status is GrappleStatus.CLINCH and can_lift_and_throw(combatant, opponent):
                kinds.append(ActionKind.TAKEDOWN)
        else:
            kinds.append(ActionKind.BREAK_FREE)
        if state.status is not GrappleStatus.GRAPPLED:
            kinds.append(ActionKind.GROUND_STRIKE)

        if not can_perform_action(combatant, StaminaActivity.GRAPPLING):
            kinds = [kind for kind in kinds if kind is ActionKind.BREAK_FREE]

        return [(ACTION_CATALOG[kind], [opponent]) for kind in ACTION_CATALOG if kind in kinds]

    def _has_ranged_reach(self, combatant: Combatant) -> bool:
        return combatant.has_ranged_attack or (combatant.weapon_range_ft or 0) > self.melee_range_ft

    def _in_reach(self, combatant: Combatant, targets: Sequence[Combatant]) -> list[Combatant]:
        reach = self.melee_range_ft
        if self._has_ranged_reach(combatant) and combatant.weapon_range_ft:
            reach = max(reach, combatant.weapon_range_ft)
        return [t for t in targets if self.distance(combatant, t) <= reach]

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def _score_legal_actions(
        self,
        combatant: Combatant,
        targets: Sequence[Combatant],
        state: CombatState,
    ) -> tuple[ActionDefinition, Combatant | None, float] | None:
        best: tuple[ActionDefinition, Combatant | None, float] | None = None
        for definition, pool in self.legal_actions(combatant, targets):
            if definition.requires_target or definition.kind in _PER_TARGET:
                candidates: list[Combatant | None] = list(pool)
            else:
                candidates = [None]
            for target in candidates:
                score = self.score_action(definition, combatant, target, state)
                if best is None or score > best[2]:
                    best = (definition, target, score)
        return best

    def score_action(
        self,
        definition: ActionDefinition,
        combatant: Combatant,
        target: Combatant | None,
        state: CombatState,
    ) -> float:
        """Score one action against one target (or none)."""
        action_type = definition.action_type
        score = definition.base_score * self.personality.type_multiplier(action_type)

        if target is not None:
            score += self.target_value(combatant, target)
            if action_type is ActionType.OFFENSIVE or definition.kind in _CLOSING_MOVES:
                score += self.weapon_contribution(definition, combatant, target, state)

        health = combatant.hp_ratio
        if health < LOW_HEALTH_RATIO:
            if action_type is ActionType.DEFENSIVE:
                score *= 1.5
            elif action_type is ActionType.OFFENSIVE:
                score *= 0.7
        elif health > HIGH_HEALTH_RATIO and action_type is ActionType.OFFENSIVE:
            score *= 1.2

        score *= self.personality.preference_multiplier(definition.kind)
        difficulty = _difficulty(state.difficulty) if state.difficulty else self.difficulty
        return score * difficulty.multiplier

    def target_value(self, combatant: Combatant, target: Combatant) -> float:
        """How attractive a target is: hurt, high level, close, casting or wounded."""
        value = (1 - target.hp_ratio) * 2
        value += target.level * 0.1
        if combatant.is_melee_only:
            cells = self.distance(combatant, target) / FEET_PER_CELL
            value += max(0.0, 2 - cells) * 0.5
        if target.is_casting:
            value += 1.5
        if target.is_wounded:
            value += 1.0
        return value

    def generate_reasoning(
        self,
        definition: ActionDefinition,
        target: Combatant | None,
        score: float,
    ) -> str:
        parts = [f"{self.personality.name} personality"]
        if target is not None:
            parts.append(f"target at {round(target.hp_ratio * 100)}% health")
        if definition.action_type is ActionType.OFFENSIVE:
            parts.append("offensive strategy")
        elif definition.action_type is ActionType.DEFENSIVE:
            parts.append("defensive strategy")
        if score > 3.0:
            parts.append("high value target")
        return ", ".join(parts)


__all__ = ["DecisionEngine"]
