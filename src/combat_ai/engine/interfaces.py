"""Collaborator seams the engine consumes but does not own.

Hosts plug in their own map, armor rules, weapon tables and combat log by
subclassing these. Default implementations live in ``positions``,
``armor``, ``weapons`` and here (StructlogCombatLog).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from combat_ai.core.logging import get_logger
from combat_ai.models.enums import LogLevel


if TYPE_CHECKING:
    from combat_ai.models.combatant import Combatant, Weapon


logger = get_logger(__name__)


class PositionOracle(ABC):
    """Answers distance queries between combatants known by id."""

    @abstractmethod
    def distance_between(self, id_a: str, id_b: str) -> float:
        """Distance in feet between two combatants.

        Raises:
            CombatError: If either id is not on the map.
        """


@dataclass(frozen=True)
class ArmorResolution:
    """What an armor resolver did with an incoming hit.

    Attributes:
        armor_hit: Whether the attack struck armor rather than the body.
        damage_to_character: Damage that passed through to the wearer.
        absorbed: Damage taken by the armor itself.
        broken_armor: Names of armor pieces whose S.D.C. reached zero.
    """

    armor_hit: bool
    damage_to_character: int
    absorbed: int = 0
    broken_armor: tuple[str, ...] = ()


class ArmorResolver(ABC):
    """Decides how much of a normal hit the defender's armor absorbs."""

    @abstractmethod
    def resolve(
        self,
        defender: Combatant,
        attack_roll: int,
        damage: int,
        slot: str | None = None,
    ) -> ArmorResolution:
        """Apply a hit to the defender's armor.

        Implementations may mutate the defender's armor S.D.C.; the caller
        applies ``damage_to_character`` to character S.D.C. and then hit points.
        """


class WeaponCatalog(ABC):
    """Resolves weapons that inventories name without stats."""

    @abstractmethod
    def lookup(self, name: str) -> Weapon | None:
        """Return full weapon stats for a name, or None if unknown."""


class CombatLog(ABC):
    """Host-side narration sink."""

    @abstractmethod
    def add_log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        """Record a line of combat narration."""


class StructlogCombatLog(CombatLog):
    """Combat log that writes narration through structlog."""

    def __init__(self) -> None:
        self._logger = get_logger("combat_ai.combat_log")

    def add_log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        if level is LogLevel.ERROR:
            self._logger.error(message, severity=str(level))
        elif level is LogLevel.WARNING:
            self._logger.warning(message, severity=str(level))
        else:
            self._logger.info(message, severity=str(level))


def emit(combat_log: CombatLog | None, message: str, level: LogLevel = LogLevel.INFO) -> None:
    """Fire-and-forget write to a host combat log.

    Failures inside the host log are recorded and never change the outcome
    of the action being narrated.
    """
    if combat_log is None:
        return
    try:
        combat_log.add_log(message, level)
    except Exception as exc:
        logger.warning("Combat log write failed", error=str(exc), message=message)


__all__ = [
    "PositionOracle",
    "ArmorResolution",
    "ArmorResolver",
    "WeaponCatalog",
    "CombatLog",
    "StructlogCombatLog",
    "emit",
]
