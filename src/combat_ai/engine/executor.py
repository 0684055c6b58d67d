"""Action execution.

Turns an ActionPlan into an ActionOutcome. Exertion is charged to the
actor's stamina, sprinting to its sprint timer, and grapple actions run
through the grapple state machine (which applies its own damage).

Strikes are rolled but not applied: the defender's parry or dodge belongs
to the host, which receives the strike roll and the damage in the outcome.
"""

from __future__ import annotations

from collections.abc import Callable

from combat_ai.core.constants import DEFAULT_DIE_SIDES
from combat_ai.core.logging import get_logger
from combat_ai.engine import grapple
from combat_ai.engine.armor import NaturalArmorResolver
from combat_ai.engine.dice import RollFn, roll_expression
from combat_ai.engine.fatigue import (
    can_perform_action,
    drain_stamina,
    effective_bonuses,
    get_fatigue_status,
    recover_stamina,
    resolve_collapse_check,
    tick_collapse,
)
from combat_ai.engine.interfaces import (
    ArmorResolver,
    CombatLog,
    PositionOracle,
    WeaponCatalog,
    emit,
)
from combat_ai.engine.positions import measure
from combat_ai.engine.sprint import (
    get_sprint_status,
    rest_and_recover,
    sprint_distance_feet,
    update_sprint_fatigue,
)
from combat_ai.engine.weapons import available_weapons
from combat_ai.models.actions import ActionOutcome, ActionPlan
from combat_ai.models.combat import CombatState
from combat_ai.models.combatant import Attributes, Combatant, Weapon
from combat_ai.models.enums import (
    ActionKind,
    FatigueStatus,
    LogLevel,
    RestType,
    StaminaActivity,
)


logger = get_logger(__name__)

Handler = Callable[[ActionPlan, Combatant, CombatState], ActionOutcome]

AIM_STRIKE_BONUS = 2
UNARMED_DAMAGE = "1d4"
MANEUVERS = ("shove", "trip", "disarm")

_EXERTION: dict[ActionKind, StaminaActivity] = {
    ActionKind.STRIKE: StaminaActivity.NORMAL_COMBAT,
    ActionKind.AIM_CALLED_SHOT: StaminaActivity.NORMAL_COMBAT,
    ActionKind.PARRY: StaminaActivity.NORMAL_COMBAT,
    ActionKind.DODGE: StaminaActivity.NORMAL_COMBAT,
    ActionKind.COMBAT_MANEUVERS: StaminaActivity.NORMAL_COMBAT,
    ActionKind.MOVE: StaminaActivity.LIGHT_MOVEMENT,
    ActionKind.WITHDRAW: StaminaActivity.LIGHT_MOVEMENT,
    ActionKind.SPRINT_TO_TARGET: StaminaActivity.SPRINTING,
    ActionKind.SPRINT_TO_RETREAT: StaminaActivity.SPRINTING,
    ActionKind.GRAPPLE: StaminaActivity.GRAPPLING,
    ActionKind.MAINTAIN_GRAPPLE: StaminaActivity.GRAPPLING,
    ActionKind.TAKEDOWN: StaminaActivity.GRAPPLING,
    ActionKind.GROUND_STRIKE: StaminaActivity.GRAPPLING,
}
"""What each action costs in stamina. Grapple actions are charged by the grapple module."""

_GRAPPLE_KINDS = frozenset(
    {
        ActionKind.GRAPPLE,
        ActionKind.MAINTAIN_GRAPPLE,
        ActionKind.TAKEDOWN,
        ActionKind.GROUND_STRIKE,
        ActionKind.BREAK_FREE,
    }
)


class ActionExecutor:
    """Resolves plans against the combatants they name.

    Attributes:
        roll_fn: Source of every die roll.
        positions: Distance oracle for grapple reach checks.
        armor: Armor resolver for damage that can strike armor.
        weapon_catalog: Resolves inventory weapons given by name.
        combat_log: Host narration sink.
        die_sides: Size of the attack die.
    """

    def __init__(
        self,
        roll_fn: RollFn,
        *,
        positions: PositionOracle | None = None,
        armor: ArmorResolver | None = None,
        weapon_catalog: WeaponCatalog | None = None,
        combat_log: CombatLog | None = None,
        die_sides: int = DEFAULT_DIE_SIDES,
    ) -> None:
        self.roll_fn = roll_fn
        self.positions = positions
        self.armor = armor or NaturalArmorResolver()
        self.weapon_catalog = weapon_catalog
        self.combat_log = combat_log
        self.die_sides = die_sides
        self._handlers: dict[ActionKind, Handler] = {
            ActionKind.STRIKE: self._strike,
            ActionKind.AIM_CALLED_SHOT: self._strike,
            ActionKind.PARRY: self._parry,
            ActionKind.DODGE: self._dodge,
            ActionKind.MOVE: self._move,
            ActionKind.WITHDRAW: self._withdraw,
            ActionKind.DEFEND_HOLD: self._defend,
            ActionKind.COMBAT_MANEUVERS: self._maneuver,
            ActionKind.USE_ITEM: self._use_item,
            ActionKind.SPRINT_TO_TARGET: self._sprint_to_target,
            ActionKind.SPRINT_TO_RETREAT: self._sprint_to_retreat,
            ActionKind.REST_RECOVER: self._rest,
            ActionKind.GRAPPLE: self._grapple,
            ActionKind.MAINTAIN_GRAPPLE: self._maintain,
            ActionKind.TAKEDOWN: self._takedown,
            ActionKind.GROUND_STRIKE: self._ground_strike,
            ActionKind.BREAK_FREE: self._break_free,
        }

    def execute(
        self,
        plan: ActionPlan,
        combatant: Combatant,
        combat_state: CombatState | None = None,
    ) -> ActionOutcome:
        """Carry out a plan.

        Args:
            plan: The plan to execute.
            combatant: The actor; its sub-states are mutated in place.
            combat_state: Encounter context.

        Returns:
            ActionOutcome describing what happened. Plans that cannot be
            carried out (missing target, too exhausted) come back with
            ``success=False`` and a message; they never raise.
        """
        kind = plan.kind
        state = combat_state or CombatState()

        if plan.action.requires_target and plan.target is None:
            return self._no_target(plan)

        activity = _EXERTION.get(kind)
        if activity is not None:
            allowance = can_perform_action(combatant, activity)
            if not allowance:
                return self._fail(kind, allowance.reason, plan.target)

        outcome = self._handlers[kind](plan, combatant, state)
        logger.info(
            "Action executed",
            combatant=combatant.id,
            action=str(kind),
            success=outcome.success,
            target=outcome.target_id,
            damage=outcome.damage,
        )
        emit(
            self.combat_log,
            outcome.message,
            LogLevel.COMBAT if kind in _GRAPPLE_KINDS or outcome.damage else LogLevel.INFO,
        )
        return outcome

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _fail(kind: ActionKind, message: str, target: Combatant | None = None) -> ActionOutcome:
        return ActionOutcome(
            success=False,
            action=kind,
            target_id=target.id if target else None,
            message=message,
        )

    @classmethod
    def _no_target(cls, plan: ActionPlan) -> ActionOutcome:
        return cls._fail(plan.kind, f"No target for {plan.action.name.lower()}")

    def _exert(self, combatant: Combatant, activity: StaminaActivity) -> None:
        """Charge stamina, then roll to stay conscious when at risk of collapse."""
        state = drain_stamina(combatant, activity)
        if state.status is FatigueStatus.COLLAPSE_RISK:
            resolve_collapse_check(
                combatant, self.roll_fn, die_sides=self.die_sides, combat_log=self.combat_log
            )

    def _fatigue_snapshot(self, combatant: Combatant) -> dict[str, object]:
        return {
            "fatigue": get_fatigue_status(combatant).model_dump(),
            "sprint": get_sprint_status(combatant).description,
        }

    def _strike_weapon(self, combatant: Combatant) -> Weapon | None:
        weapon = combatant.primary_weapon
        if weapon is not None and weapon.name.lower() != "unarmed":
            return weapon
        return None

    def _grapple_weapon(self, combatant: Combatant) -> Weapon | None:
        """Primary weapon if it fits in a grapple, else the first dagger, else bare hands."""
        primary = self._strike_weapon(combatant)
        if primary is not None and grapple.can_use_weapon_in_grapple(combatant, primary):
            return primary
        for weapon in available_weapons(combatant, self.weapon_catalog):
            if weapon.is_dagger:
                return weapon
        return None

    # -------------------------------------------------------------------------
    # Standing combat
    # -------------------------------------------------------------------------

    def _strike(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        target = plan.target
        if target is None:
            return self._no_target(plan)
        weapon = self._strike_weapon(combatant)
        bonuses = effective_bonuses(combatant)
        aimed = plan.kind is ActionKind.AIM_CALLED_SHOT

        natural = self.roll_fn(self.die_sides)
        strike_roll = (
            natural
            + Attributes.bonus(combatant.attributes.PP)
            + bonuses.strike
            + (weapon.bonuses.strike if weapon else 0)
            + (AIM_STRIKE_BONUS if aimed else 0)
        )
        self._exert(combatant, StaminaActivity.NORMAL_COMBAT)
        weapon_name = weapon.name if weapon else "bare hands"

        if natural == 1:
            return ActionOutcome(
                success=False,
                action=plan.kind,
                target_id=target.id,
                message=f"{combatant.name} fumbles a strike at {target.name}",
                details={"natural": natural, "strike_roll": strike_roll},
            )

        expression = weapon.damage if weapon else UNARMED_DAMAGE
        damage = max(
            1,
            roll_expression(expression, self.roll_fn).total
            + bonuses.damage
            + (weapon.bonuses.damage if weapon else 0),
        )
        verb = "takes aim and strikes" if aimed else "strikes"
        return ActionOutcome(
            success=True,
            action=plan.kind,
            target_id=target.id,
            damage=damage,
            message=f"{combatant.name} {verb} at {target.name} with {weapon_name} for {damage} damage",
            details={"natural": natural, "strike_roll": strike_roll, "weapon": weapon_name},
        )

    def _parry(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        self._exert(combatant, StaminaActivity.NORMAL_COMBAT)
        return ActionOutcome(
            success=True,
            action=plan.kind,
            message=f"{combatant.name} prepares to parry incoming attacks",
            details={"parry_bonus": effective_bonuses(combatant).parry},
        )

    def _dodge(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        self._exert(combatant, StaminaActivity.NORMAL_COMBAT)
        return ActionOutcome(
            success=True,
            action=plan.kind,
            message=f"{combatant.name} prepares to dodge incoming attacks",
            details={"dodge_bonus": effective_bonuses(combatant).dodge},
        )

    def _defend(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        return ActionOutcome(
            success=True,
            action=plan.kind,
            message=f"{combatant.name} takes a defensive stance",
        )

    def _move(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        self._exert(combatant, StaminaActivity.LIGHT_MOVEMENT)
        target = plan.target
        if target is None:
            message = f"{combatant.name} moves to a better position"
            gap = None
        else:
            gap = measure(self.positions, combatant, target)
            message = f"{combatant.name} moves toward {target.name}"
        return ActionOutcome(
            success=True,
            action=plan.kind,
            target_id=target.id if target else None,
            distance_ft=gap,
            message=message,
        )

    def _withdraw(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        self._exert(combatant, StaminaActivity.LIGHT_MOVEMENT)
        return ActionOutcome(
            success=True,
            action=plan.kind,
            message=f"{combatant.name} withdraws from the fight",
        )

    def _maneuver(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        target = plan.target
        if target is None:
            return self._no_target(plan)
        maneuver = MANEUVERS[self.roll_fn(len(MANEUVERS)) - 1]
        self._exert(combatant, StaminaActivity.NORMAL_COMBAT)
        return ActionOutcome(
            success=True,
            action=plan.kind,
            target_id=target.id,
            message=f"{combatant.name} attempts to {maneuver} {target.name}",
            details={"maneuver": maneuver},
        )

    def _use_item(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        item = next(
            (i for i in combatant.inventory if i.item_type == "consumable" and i.quantity > 0),
            None,
        )
        if item is None:
            return self._fail(plan.kind, f"{combatant.name} has nothing to use")
        item.quantity -= 1
        return ActionOutcome(
            success=True,
            action=plan.kind,
            message=f"{combatant.name} uses {item.name}",
            details={"item": item.name, "remaining": item.quantity},
        )

    # -------------------------------------------------------------------------
    # Sprinting and rest
    # -------------------------------------------------------------------------

    def _sprint(self, combatant: Combatant) -> int:
        update_sprint_fatigue(combatant, 1)
        self._exert(combatant, StaminaActivity.SPRINTING)
        return sprint_distance_feet(effective_bonuses(combatant).Spd)

    def _sprint_to_target(
        self, plan: ActionPlan, combatant: Combatant, state: CombatState
    ) -> ActionOutcome:
        target = plan.target
        if target is None:
            return self._fail(plan.kind, "No target for sprint")
        distance = self._sprint(combatant)
        status = get_sprint_status(combatant)
        return ActionOutcome(
            success=True,
            action=plan.kind,
            target_id=target.id,
            distance_ft=distance,
            message=(
                f"{combatant.name} sprints {distance} feet toward {target.name} "
                f"[{status.description}]"
            ),
            details=self._fatigue_snapshot(combatant),
        )

    def _sprint_to_retreat(
        self, plan: ActionPlan, combatant: Combatant, state: CombatState
    ) -> ActionOutcome:
        distance = self._sprint(combatant)
        status = get_sprint_status(combatant)
        return ActionOutcome(
            success=True,
            action=plan.kind,
            distance_ft=distance,
            message=f"{combatant.name} sprints {distance} feet away to retreat [{status.description}]",
            details=self._fatigue_snapshot(combatant),
        )

    def _rest(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        fatigue = combatant.fatigue_state
        if fatigue is not None and fatigue.is_collapsed:
            tick_collapse(combatant)
        else:
            recover_stamina(combatant, RestType.FULL_REST)
        if combatant.sprint_state is not None:
            rest_and_recover(combatant, 1)
        report = get_fatigue_status(combatant)
        return ActionOutcome(
            success=True,
            action=plan.kind,
            message=f"{combatant.name} rests to recover stamina [{report.description}]",
            details=self._fatigue_snapshot(combatant),
        )

    # -------------------------------------------------------------------------
    # Grappling
    # -------------------------------------------------------------------------

    @staticmethod
    def _from_grapple(kind: ActionKind, target: Combatant, result: grapple.GrappleResult) -> ActionOutcome:
        return ActionOutcome(
            success=result.success,
            action=kind,
            target_id=target.id,
            damage=result.damage,
            message=result.text,
            details={
                "rolls": dict(result.rolls),
                "natural_roll": result.natural_roll,
                "critical": result.critical,
                "death_blow": result.death_blow,
                "attacker": result.attacker.model_dump() if result.attacker else None,
                "defender": result.defender.model_dump() if result.defender else None,
            },
        )

    def _grapple(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        target = plan.target
        if target is None:
            return self._no_target(plan)
        result = grapple.attempt_grapple(
            combatant, target, self.roll_fn, self.positions, die_sides=self.die_sides
        )
        return self._from_grapple(plan.kind, target, result)

    def _maintain(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        target = plan.target
        if target is None:
            return self._no_target(plan)
        result = grapple.maintain_grapple(combatant, target, self.roll_fn, die_sides=self.die_sides)
        return self._from_grapple(plan.kind, target, result)

    def _takedown(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        target = plan.target
        if target is None:
            return self._no_target(plan)
        result = grapple.perform_takedown(
            combatant, target, self.roll_fn, self.armor, die_sides=self.die_sides
        )
        return self._from_grapple(plan.kind, target, result)

    def _ground_strike(
        self, plan: ActionPlan, combatant: Combatant, state: CombatState
    ) -> ActionOutcome:
        target = plan.target
        if target is None:
            return self._no_target(plan)
        result = grapple.ground_strike(
            combatant,
            target,
            self.roll_fn,
            self._grapple_weapon(combatant),
            self.armor,
            die_sides=self.die_sides,
        )
        return self._from_grapple(plan.kind, target, result)

    def _break_free(self, plan: ActionPlan, combatant: Combatant, state: CombatState) -> ActionOutcome:
        target = plan.target
        if target is None:
            return self._no_target(plan)
        result = grapple.break_free(combatant, target, self.roll_fn, die_sides=self.die_sides)
        return self._from_grapple(plan.kind, target, result)


__all__ = ["ActionExecutor", "AIM_STRIKE_BONUS", "MANEUVERS"]
