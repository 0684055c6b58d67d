"""Dice rolling through a single injectable roll function.

Every random number in the engine comes from a ``RollFn``: a callable that
takes a die size and returns a natural roll between 1 and that size. Tests
pass a ScriptedRoller; production code passes a DiceRoller seeded from
settings. The module-level ``random`` generator is never touched.

Dice notation is parsed with the d20 library. Instead of letting d20 roll
(it draws from the global generator), the parsed expression tree is walked
and each die is rolled through the supplied RollFn.
"""

from __future__ import annotations

import random
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import d20
from d20 import diceast as d20_ast

from combat_ai.core.exceptions import DiceRollError
from combat_ai.core.logging import get_logger


logger = get_logger(__name__)

RollFn = Callable[[int], int]
"""Maps a die size to a natural roll in ``1..sides``."""


@dataclass(frozen=True)
class DiceResult:
    """A rolled dice expression.

    Attributes:
        expression: The original dice expression string.
        total: The total result of the roll.
        dice: Kept natural die results, in roll order.
    """

    expression: str
    total: int
    dice: list[int] = field(default_factory=list)


class DiceRoller:
    """Seedable roll function backed by a private ``random.Random``.

    Example:
        >>> roller = DiceRoller(seed=42)
        >>> 1 <= roller(20) <= 20
        True
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        self._rng = random.Random(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    def __call__(self, sides: int) -> int:
        if sides < 1:
            raise DiceRollError("Die must have at least one side", details={"sides": sides})
        return self._rng.randint(1, sides)

    def roll(self, expression: str) -> DiceResult:
        """Roll a dice expression with this roller."""
        return roll_expression(expression, self)


class ScriptedRoller:
    """Roll function that replays a fixed sequence of naturals.

    Raises DiceRollError when the script runs out or a scripted value does
    not fit the requested die, so a test never silently rolls the wrong thing.

    Example:
        >>> roller = ScriptedRoller([20, 3])
        >>> roller(20), roller(6)
        (20, 3)
    """

    def __init__(self, values: Iterable[int]) -> None:
        self._values: deque[int] = deque(values)
        self.calls: list[int] = []

    def __call__(self, sides: int) -> int:
        if not self._values:
            raise DiceRollError(
                "Scripted roller exhausted",
                details={"sides": sides, "calls": len(self.calls)},
            )
        value = self._values.popleft()
        if not 1 <= value <= sides:
            raise DiceRollError(
                f"Scripted roll {value} does not fit a d{sides}",
                details={"sides": sides, "value": value},
            )
        self.calls.append(sides)
        return value

    @property
    def remaining(self) -> int:
        return len(self._values)


def roll_expression(expression: str, roll_fn: RollFn) -> DiceResult:
    """Parse and roll a dice expression.

    Supports arithmetic (``+ - * /``), parentheses, unary signs, and keep or
    drop operators with highest/lowest selectors (``4d6kh3``, ``2d20pl1``).

    Args:
        expression: Dice expression (e.g., '1d6+2', '2d4').
        roll_fn: Source of natural die rolls.

    Returns:
        DiceResult with the total and kept dice.

    Raises:
        DiceRollError: If the expression is empty, malformed, or uses an
            operator this roller does not implement.
    """
    if not expression or not expression.strip():
        raise DiceRollError("Empty dice expression", expression=expression)

    try:
        tree = d20.parse(expression)
    except d20.RollError as exc:
        raise DiceRollError(f"Invalid dice expression: {exc}", expression=expression) from exc

    dice: list[int] = []
    total = _evaluate(tree, roll_fn, dice, expression)
    result = DiceResult(expression=expression, total=int(total), dice=dice)
    logger.debug("Dice rolled", expression=expression, total=result.total, dice=dice)
    return result


def roll_natural(roll_fn: RollFn, sides: int) -> int:
    """Roll one die and return the natural value."""
    return roll_fn(sides)


def _evaluate(node: Any, roll_fn: RollFn, dice: list[int], expression: str) -> float:
    if isinstance(node, d20_ast.Expression):
        return _evaluate(node.roll, roll_fn, dice, expression)
    if isinstance(node, d20_ast.AnnotatedNumber):
        return _evaluate(node.value, roll_fn, dice, expression)
    if isinstance(node, d20_ast.Literal):
        return node.value
    if isinstance(node, d20_ast.Parenthetical):
        return _evaluate(node.value, roll_fn, dice, expression)
    if isinstance(node, d20_ast.UnOp):
        value = _evaluate(node.value, roll_fn, dice, expression)
        return -value if node.op == "-" else value
    if isinstance(node, d20_ast.BinOp):
        left = _evaluate(node.left, roll_fn, dice, expression)
        right = _evaluate(node.right, roll_fn, dice, expression)
        return _apply_binop(node.op, left, right, expression)
    if isinstance(node, d20_ast.OperatedDice):
        values = _roll_dice(node.value, roll_fn, expression)
        kept = _apply_set_operations(values, node.operations, expression)
        dice.extend(kept)
        return sum(kept)
    if isinstance(node, d20_ast.Dice):
        values = _roll_dice(node, roll_fn, expression)
        dice.extend(values)
        return sum(values)
    raise DiceRollError(
        f"Unsupported dice syntax: {type(node).__name__}",
        expression=expression,
    )


def _roll_dice(node: Any, roll_fn: RollFn, expression: str) -> list[int]:
    if not isinstance(node, d20_ast.Dice):
        raise DiceRollError("Dice operators apply to plain dice only", expression=expression)
    sides = 100 if node.size == "%" else int(node.size)
    if sides < 1:
        raise DiceRollError("Die must have at least one side", expression=expression)
    return [roll_fn(sides) for _ in range(int(node.num))]


def _apply_binop(op: str, left: float, right: float, expression: str) -> float:
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op in ("/", "//"):
        if right == 0:
            raise DiceRollError("Division by zero", expression=expression)
        return left // right
    raise DiceRollError(f"Unsupported operator: {op}", expression=expression)


def _select(values: list[int], alive: list[int], selector: Any) -> set[int]:
    """Indices in ``alive`` matched by one selector."""
    ordered = sorted(alive, key=lambda index: values[index])
    if selector.cat == "h":
        return set(ordered[max(0, len(ordered) - selector.num) :]) if selector.num else set()
    if selector.cat == "l":
        return set(ordered[: selector.num])
    if selector.cat is None:
        return {index for index in alive if values[index] == selector.num}
    raise ValueError(selector.cat)


def _apply_set_operations(values: list[int], operations: Iterable[Any], expression: str) -> list[int]:
    alive = list(range(len(values)))
    for operation in operations:
        if operation.op not in ("k", "p"):
            raise DiceRollError(f"Unsupported dice operator: {operation.op}", expression=expression)
        try:
            selected: set[int] = set()
            for selector in operation.sels:
                selected |= _select(values, alive, selector)
        except ValueError as exc:
            raise DiceRollError(f"Unsupported selector: {exc}", expression=expression) from exc
        if operation.op == "k":
            alive = [index for index in alive if index in selected]
        else:
            alive = [index for index in alive if index not in selected]
    return [values[index] for index in alive]


__all__ = [
    "RollFn",
    "DiceResult",
    "DiceRoller",
    "ScriptedRoller",
    "roll_expression",
    "roll_natural",
]
