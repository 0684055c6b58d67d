"""Grid coordinates shared by combatants and grapple state."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field

from combat_ai.core.constants import FEET_PER_CELL


class Cell(BaseModel):
    """A square on the battle grid.

    Attributes:
        x: Column index.
        y: Row index.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    x: int = Field(default=0, description="Column index")
    y: int = Field(default=0, description="Row index")

    def distance_feet(self, other: Cell, *, feet_per_cell: float = FEET_PER_CELL) -> float:
        """Straight-line distance to another cell in feet.

        Args:
            other: The other cell.
            feet_per_cell: Grid scale.

        Returns:
            Euclidean distance scaled to feet.
        """
        return math.hypot(self.x - other.x, self.y - other.y) * feet_per_cell


__all__ = ["Cell"]
