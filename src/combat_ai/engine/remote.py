"""Remote decision oracle.

Asks a chat model (OpenRouter by default, or OpenAI) to pick one of the
actions the local engine considers legal. The reply must hold a JSON object
naming an action; anything else is an AIResponseError. Transport failures
map onto the AI* exceptions so the registry can fall back to the local
engine.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from typing import Any

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from combat_ai.core.config import AIProviderSettings, get_settings
from combat_ai.core.constants import REMOTE_PLAN_SCORE
from combat_ai.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
)
from combat_ai.core.logging import get_logger
from combat_ai.engine.prompts import ORACLE_SYSTEM_PROMPT, format_situation
from combat_ai.models.actions import ActionDefinition, ActionPlan
from combat_ai.models.combat import CombatState
from combat_ai.models.combatant import Combatant
from combat_ai.models.enums import DecisionSourceKind


logger = get_logger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_NON_LETTERS = re.compile(r"[^a-z]")


def _normalize(name: str) -> str:
    return _NON_LETTERS.sub("", name.lower())


def match_action(name: str, actions: Sequence[ActionDefinition]) -> ActionDefinition | None:
    """Find the action a model named, ignoring case, spacing and punctuation.

    Example:
        >>> from combat_ai.models.actions import ACTION_CATALOG
        >>> match_action("defend / hold", list(ACTION_CATALOG.values())).name
        'Defend/Hold'
    """
    wanted = _normalize(name)
    if not wanted:
        return None
    for action in actions:
        if _normalize(action.name) == wanted or _normalize(action.kind.value) == wanted:
            return action
    for action in actions:
        candidate = _normalize(action.name)
        if wanted in candidate or candidate in wanted:
            return action
    return None


class RemoteDecisionOracle:
    """LLM-backed action chooser.

    Attributes:
        settings: Provider configuration.
    """

    def __init__(
        self,
        settings: AIProviderSettings | None = None,
        *,
        client: Any = None,
    ) -> None:
        """Initialize the oracle.

        Args:
            settings: Provider configuration; the global settings when omitted.
            client: Pre-built async chat client (tests pass a fake).
        """
        self.settings = settings or get_settings().ai
        self._client: Any = client

        logger.info(
            "RemoteDecisionOracle initialized",
            provider=self.settings.default_provider,
            model=self.settings.model,
        )

    @property
    def provider(self) -> str:
        return self.settings.default_provider

    def _get_client(self) -> Any:
        """Get or create the async OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            api_key = self.settings.api_key()
            if self.provider == "openrouter":
                self._client = AsyncOpenAI(
                    api_key=api_key,
                    base_url=self.settings.base_url or OPENROUTER_BASE_URL,
                    default_headers={
                        "HTTP-Referer": "https://github.com/combat-ai",
                        "X-Title": "Combat AI",
                    },
                )
            else:
                self._client = AsyncOpenAI(api_key=api_key, base_url=self.settings.base_url)
        return self._client

    async def _complete(self, messages: list[dict[str, str]]) -> str:
        """One chat completion, with provider errors mapped onto AI* errors."""
        from openai import APIConnectionError, APIStatusError, OpenAIError, RateLimitError

        try:
            client = self._get_client()
            response = await client.chat.completions.create(
                model=self.settings.model,
                messages=messages,
                temperature=self.settings.temperature,
                max_tokens=150,
            )
        except RateLimitError as exc:
            raise AIRateLimitError(
                "Rate limit exceeded",
                provider=self.provider,
                model=self.settings.model,
            ) from exc
        except APIConnectionError as exc:
            raise AIConnectionError(
                f"Failed to connect to AI provider: {exc}",
                provider=self.provider,
                model=self.settings.model,
            ) from exc
        except APIStatusError as exc:
            raise AIControlError(
                f"AI API error: {exc}",
                provider=self.provider,
                model=self.settings.model,
                details={"status_code": exc.status_code},
            ) from exc
        except OpenAIError as exc:
            raise AIControlError(
                f"AI client error: {exc}",
                provider=self.provider,
                model=self.settings.model,
            ) from exc

        try:
            content = response.choices[0].message.content if response.choices else None
        except (AttributeError, IndexError, TypeError) as exc:
            raise AIResponseError(
                f"Malformed completion payload: {exc}",
                provider=self.provider,
                model=self.settings.model,
            ) from exc
        if not content:
            raise AIResponseError(
                "No response from AI provider",
                provider=self.provider,
                model=self.settings.model,
            )
        if not isinstance(content, str):
            raise AIResponseError(
                "Completion content is not text",
                provider=self.provider,
                model=self.settings.model,
                details={"content_type": type(content).__name__},
            )
        return content

    async def request(self, messages: list[dict[str, str]]) -> str:
        """Send messages, retrying transient transport failures."""
        content = ""
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((AIConnectionError, AIRateLimitError)),
            stop=stop_after_attempt(self.settings.max_retries + 1),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            reraise=True,
        ):
            with attempt:
                content = await self._complete(messages)
        return content

    def parse_response(
        self,
        content: str,
        targets: Sequence[Combatant],
        actions: Sequence[ActionDefinition],
    ) -> ActionPlan:
        """Turn a model reply into a plan.

        Args:
            content: Raw reply text.
            targets: Targets offered in the prompt.
            actions: Actions offered in the prompt.

        Returns:
            A remote ActionPlan.

        Raises:
            AIResponseError: If the reply holds no JSON object, names no
                action, or names an action that was not offered.
        """
        found = _JSON_OBJECT.search(content)
        if not found:
            raise AIResponseError(
                "No JSON found in response",
                details={"content": content[:200]},
            )
        try:
            parsed = json.loads(found.group(0))
        except json.JSONDecodeError as exc:
            raise AIResponseError(
                f"Malformed JSON in response: {exc}",
                details={"content": content[:200]},
            ) from exc
        if not isinstance(parsed, dict) or not parsed.get("action"):
            raise AIResponseError("No action specified in response", details={"parsed": parsed})

        action = match_action(str(parsed["action"]), actions)
        if action is None:
            raise AIResponseError(
                f"Unknown action '{parsed['action']}'",
                details={"offered": [a.name for a in actions]},
            )

        target: Combatant | None = None
        named = parsed.get("target")
        if named and str(named).lower() != "null":
            wanted = str(named).lower()
            target = next((t for t in targets if wanted in t.name.lower()), None)
        if target is None and action.requires_target and targets:
            target = targets[0]

        return ActionPlan.build(
            action.kind,
            target=target,
            score=REMOTE_PLAN_SCORE,
            reasoning=f"LLM: {parsed.get('reasoning') or 'LLM decision'}",
            source=DecisionSourceKind.REMOTE,
        )

    async def choose_action(
        self,
        combatant: Combatant,
        targets: Sequence[Combatant],
        combat_state: CombatState,
        actions: Sequence[ActionDefinition],
        *,
        personality_name: str = "Tactical",
        difficulty: str = "normal",
    ) -> ActionPlan:
        """Ask the model for this turn's plan.

        Raises:
            AIControlError: On any transport failure or unusable reply.
        """
        if not actions:
            raise AIResponseError("No actions to choose from")

        system_prompt = ORACLE_SYSTEM_PROMPT.format(
            action_names=", ".join(action.name for action in actions)
        )
        user_message = format_situation(
            combatant,
            targets,
            combat_state,
            actions,
            personality_name=personality_name,
            difficulty=difficulty,
        )
        logger.debug("Requesting remote decision", combatant=combatant.id, model=self.settings.model)

        content = await self.request(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ]
        )
        plan = self.parse_response(content, targets, actions)
        logger.info(
            "Remote decision made",
            combatant=combatant.id,
            action=str(plan.kind),
            target=plan.target.id if plan.target else None,
        )
        return plan


__all__ = ["OPENROUTER_BASE_URL", "match_action", "RemoteDecisionOracle"]
