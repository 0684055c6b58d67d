"""Prompts for the remote decision oracle."""

from __future__ import annotations

from collections.abc import Sequence

from combat_ai.models.actions import ActionDefinition
from combat_ai.models.combat import CombatState
from combat_ai.models.combatant import Combatant


# =============================================================================
# System Prompt
# =============================================================================


ORACLE_SYSTEM_PROMPT = """You are an AI controlling an enemy in a tabletop RPG combat. You must make tactical decisions based on the current combat state.

## RULES

- Choose the most effective action for your character
- Consider your personality traits and current situation
- Target the most threatening or weakest enemies
- Use defensive actions when low on health
- Be aggressive when you have the advantage
- Only choose from the available actions listed in the situation

## RESPONSE FORMAT

Respond with a single JSON object and nothing else:
{{
  "action": "action_name",
  "target": "target_name_or_null",
  "reasoning": "brief explanation"
}}

Available actions: {action_names}"""


# =============================================================================
# Situation Prompt
# =============================================================================


def format_situation(
    combatant: Combatant,
    targets: Sequence[Combatant],
    combat_state: CombatState,
    actions: Sequence[ActionDefinition],
    *,
    personality_name: str = "Tactical",
    difficulty: str = "normal",
) -> str:
    """Describe the turn for the oracle.

    Args:
        combatant: The acting combatant.
        targets: Opponents it may act against.
        combat_state: Encounter context.
        actions: Actions it may choose from.
        personality_name: Display name of its personality.
        difficulty: Encounter difficulty.

    Returns:
        Prompt text for the user message.
    """
    weapon = combatant.primary_weapon
    lines = [
        "Current Combat Situation:",
        "",
        f"Enemy: {combatant.name}",
        f"- Health: {combatant.current_hp}/{combatant.max_hp}",
        f"- Personality: {personality_name}",
        f"- Weapon: {weapon.name if weapon else 'Unarmed'}",
        f"- Position: ({combatant.position.x}, {combatant.position.y})",
        "",
        "Available Targets:",
    ]
    for target in targets:
        occ = target.occ or "Unknown class"
        lines.append(f"- {target.name}: {round(target.hp_ratio * 100)}% health, {occ}")

    lines += [
        "",
        "Combat State:",
        f"- Round: {combat_state.round_number}",
        f"- Turn: {combat_state.turn}",
        f"- Difficulty: {difficulty}",
        "",
        f"Available Actions: {', '.join(action.name for action in actions)}",
        "",
        f"Choose the best action for {combatant.name} based on the current situation.",
    ]
    return "\n".join(lines)


__all__ = ["ORACLE_SYSTEM_PROMPT", "format_situation"]
