"""Grid-backed position oracle."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from combat_ai.core.constants import FEET_PER_CELL
from combat_ai.core.exceptions import CombatError
from combat_ai.engine.interfaces import PositionOracle


if TYPE_CHECKING:
    from combat_ai.models.combatant import Combatant


class GridPositionOracle(PositionOracle):
    """Measures straight-line distance between tracked combatants' cells.

    The oracle holds references, not copies, so positions changed by a
    grapple or a move are seen on the next query.

    Example:
        >>> oracle = GridPositionOracle([orc, knight])
        >>> oracle.distance_between("orc-1", "knight-1")
        40.0
    """

    def __init__(
        self,
        combatants: Iterable[Combatant] = (),
        *,
        feet_per_cell: float = FEET_PER_CELL,
    ) -> None:
        self.feet_per_cell = feet_per_cell
        self._tracked: dict[str, Combatant] = {}
        self.track(*combatants)

    def track(self, *combatants: Combatant) -> None:
        """Register combatants so they can be found by id."""
        for combatant in combatants:
            self._tracked[combatant.id] = combatant

    def forget(self, combatant_id: str) -> None:
        self._tracked.pop(combatant_id, None)

    def __contains__(self, combatant_id: object) -> bool:
        return combatant_id in self._tracked

    def distance_between(self, id_a: str, id_b: str) -> float:
        a = self._locate(id_a)
        b = self._locate(id_b)
        return a.position.distance_feet(b.position, feet_per_cell=self.feet_per_cell)

    def _locate(self, combatant_id: str) -> Combatant:
        try:
            return self._tracked[combatant_id]
        except KeyError:
            raise CombatError("Combatant is not on the map", combatant_id=combatant_id) from None


def measure(positions: PositionOracle | None, a: Combatant, b: Combatant) -> float:
    """Distance in feet between two combatants.

    Uses the oracle when one is supplied, otherwise the combatants' own
    grid cells.
    """
    if positions is not None:
        return positions.distance_between(a.id, b.id)
    return a.position.distance_feet(b.position)


__all__ = ["GridPositionOracle", "measure"]
