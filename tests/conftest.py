"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the combat AI test suite.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import pytest

from combat_ai.engine.dice import DiceRoller, ScriptedRoller
from combat_ai.models import Attributes, Cell, Combatant, Weapon


if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


CombatantFactory = Callable[..., Combatant]


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from combat_ai.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep host environment variables and .env files out of the tests."""
    monkeypatch.chdir(tmp_path)
    for key in (
        "COMBAT_AI_REMOTE_ENABLED",
        "COMBAT_AI_OPENROUTER_API_KEY",
        "COMBAT_AI_OPENAI_API_KEY",
        "COMBAT_AI_DEFAULT_PROVIDER",
        "COMBAT_AI_LOG_LEVEL",
        "COMBAT_AI_ENGINE_SEED",
        "COMBAT_AI_ENGINE_DIE_SIDES",
    ):
        monkeypatch.delenv(key, raising=False)


# =============================================================================
# Dice Fixtures
# =============================================================================


@pytest.fixture
def dice_roller() -> DiceRoller:
    """Provide a seeded dice roller for reproducible tests."""
    return DiceRoller(seed=42)


@pytest.fixture
def scripted() -> Callable[..., ScriptedRoller]:
    """Build a roller that replays the given naturals.

    Example:
        >>> roller = scripted(12, 3)
    """

    def _build(*values: int) -> ScriptedRoller:
        return ScriptedRoller(values)

    return _build


# =============================================================================
# Combatant Fixtures
# =============================================================================


def build_combatant(
    combatant_id: str = "orc-1",
    name: str | None = None,
    *,
    x: int = 0,
    y: int = 0,
    PS: int = 10,
    PP: int = 10,
    PE: int = 10,
    IQ: int = 10,
    Spd: int = 10,
    **overrides: Any,
) -> Combatant:
    """Create a combatant with sensible defaults."""
    data: dict[str, Any] = {
        "id": combatant_id,
        "name": name or combatant_id.split("-")[0].title(),
        "attributes": Attributes(PS=PS, PP=PP, PE=PE, IQ=IQ, Spd=Spd),
        "current_hp": 20,
        "max_hp": 20,
        "position": Cell(x=x, y=y),
    }
    data.update(overrides)
    return Combatant(**data)


@pytest.fixture
def make_combatant() -> CombatantFactory:
    """Factory fixture for combatants."""
    return build_combatant


@pytest.fixture
def orc() -> Combatant:
    """An orc at the origin wielding a longsword."""
    return build_combatant(
        "orc-1",
        "Orc",
        PS=16,
        equipped_weapons=[Weapon(name="Longsword", damage="1d8")],
    )


@pytest.fixture
def knight() -> Combatant:
    """A knight one cell east of the origin."""
    return build_combatant(
        "knight-1",
        "Knight",
        x=1,
        PS=14,
        level=3,
        equipped_weapons=[Weapon(name="Mace", damage="1d8")],
    )


@pytest.fixture
def dagger() -> Weapon:
    """A plain dagger."""
    return Weapon(name="Dagger", damage="1d4", length=1)
