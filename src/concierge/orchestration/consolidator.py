"""
concierge.orchestration.consolidator - Consolidator / Narrator
================================================================

Merges the raw tool results of one turn into the single reply the guest
sees.

    DelegationSteps with results
            │
            ├── none ─────────→ "I apologize, but I wasn't able to gather ..."
            │
            ▼
    ┌───────────────┐  exception / timeout / blank / JSON-looking
    │  LLM narrator │ ─────────────────────────────────────────┐
    └───────────────┘                                          ▼
            │                                       deterministic template:
            ▼                                       one summary sentence per
    ConsolidationResult(text, is_consolidated=True)  result, in order
                                                    (is_consolidated=False)

Narrator input:
    {allToolResults, agentCount, queryType, conversationHistory, currentContext}
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

import structlog

from concierge.core.config import OrchestratorConfig
from concierge.core.exceptions import NarrationError
from concierge.core.models import ConsolidationResult, DelegationStep, HistoryTurn
from concierge.core.tools import (
    AvailabilityPayload,
    CelebrationPayload,
    ClarificationPayload,
    MenuPayload,
    ReservationPayload,
    RestaurantInfoPayload,
    ToolFailure,
    ToolSuccess,
    tool_result_to_dict,
)
from concierge.integrations.llm.base import BaseLLMProvider


logger = structlog.get_logger()

NO_RESULTS_MESSAGE = (
    "I apologize, but I wasn't able to gather the information you requested. Please try again."
)

NARRATION_PROMPT = """You are the host of {restaurant}. Several internal assistants have gathered facts for the guest's message. Combine them into a single, warm and natural reply.

DATE CONTEXT:
- Today's date: {today}
- Tomorrow's date: {tomorrow}

GUEST'S ORIGINAL MESSAGE: "{utterance}"

GATHERED RESULTS (JSON):
{results}

RULES:
1. Address the guest's complete message in ONE flowing reply
2. Start with the primary task (usually availability or booking) and ask for the guest's choice if needed
3. Then answer any secondary questions
4. Use ONLY the facts above; never invent information
5. If a result is a clarification message, keep its question
6. Do not mention internal assistants, tools or JSON

Write one reply to the guest as plain text:"""


def _money(value: float) -> str:
    return f"€{value:g}"


def summarize_for_guest(agent: str, result: Union[ToolSuccess, ToolFailure]) -> str:
    """Fixed one-sentence summary of a tool result, used by the template."""
    if isinstance(result, ToolFailure):
        return f"{agent} Result: I could not complete that request ({result.error})."

    payload = result.payload
    if isinstance(payload, AvailabilityPayload):
        if not payload.is_available:
            return (
                f"Unfortunately no tables are available on {payload.date} at {payload.time} "
                f"for {payload.party_size} guests."
            )
        options = ", ".join(
            f"{t.table_type} tables ({_money(t.price)})" for t in payload.available_table_types
        )
        return f"{options} are available for {payload.party_size} guests on {payload.date} at {payload.time}."
    if isinstance(payload, MenuPayload):
        if not payload.items:
            return "I couldn't find any dishes matching your request."
        top = max(payload.items, key=lambda item: item.price)
        return (
            f"We have {len(payload.items)} matching dishes. "
            f"The most expensive dish is the '{top.name}' at {_money(top.price)}."
        )
    if isinstance(payload, CelebrationPayload):
        if not payload.packages:
            return "We don't have a celebration package matching that occasion."
        options = ", ".join(f"{p.name} ({_money(p.price)})" for p in payload.packages)
        return f"For your celebration we offer: {options}."
    if isinstance(payload, RestaurantInfoPayload):
        facts = "; ".join(
            f"{key}: {_render_detail(value)}" for key, value in payload.details.items()
        )
        return f"{payload.venue_name}: {facts}." if facts else f"Welcome to {payload.venue_name}."
    if isinstance(payload, ReservationPayload):
        return (
            f"Your reservation for {payload.party_size} on {payload.date} at {payload.time} "
            f"({payload.table_type} table) is ready under the name {payload.name}."
        )
    if isinstance(payload, ClarificationPayload):
        return payload.message
    return f"{agent} Result: {result.tool.value}"


def _render_detail(value: Any) -> str:
    if isinstance(value, dict):
        return ", ".join(f"{k} {v}" for k, v in value.items())
    return str(value)


class Consolidator:
    """Produces the final reply for a turn.

    Example:
        >>> result = await consolidator.consolidate("Hello", steps, history)
        >>> result.is_consolidated
        True
    """

    def __init__(self, llm_provider: BaseLLMProvider, config: OrchestratorConfig) -> None:
        self._llm = llm_provider
        self._config = config
        self._logger = logger.bind(component="consolidator")

    async def consolidate(
        self,
        original_utterance: str,
        steps: list[DelegationStep],
        history: list[HistoryTurn],
        current_context: Optional[dict[str, Any]] = None,
    ) -> ConsolidationResult:
        """Narrate the turn's results, or fall back to the template."""
        collected = [step for step in steps if step.result is not None]
        if not collected:
            self._logger.warning("no_results_to_consolidate")
            return ConsolidationResult(text=NO_RESULTS_MESSAGE, is_consolidated=False)

        try:
            text = await self._narrate(original_utterance, collected, history, current_context or {})
        except NarrationError as e:
            self._logger.warning("narration_failed", error=e.message, results=len(collected))
            return ConsolidationResult(text=self.template(collected), is_consolidated=False)

        self._logger.info("narration_completed", results=len(collected))
        return ConsolidationResult(text=text, is_consolidated=True)

    def narrator_input(
        self,
        steps: list[DelegationStep],
        history: list[HistoryTurn],
        current_context: dict[str, Any],
    ) -> dict[str, Any]:
        limit = self._config.context_history_limit
        recent = history[-limit:] if limit else []
        return {
            "allToolResults": [
                {
                    "agent": step.agent,
                    "tool": step.result.tool if isinstance(step.result, ToolFailure) else step.result.tool.value,
                    "data": tool_result_to_dict(step.result),
                    "step": step.step_index + 1,
                    "query": step.subtask,
                }
                for step in steps
                if step.result is not None
            ],
            "agentCount": len({step.agent for step in steps}),
            "queryType": "multi-intent" if len(steps) > 1 else "single-intent",
            "conversationHistory": [turn.model_dump() for turn in recent],
            "currentContext": current_context,
        }

    @staticmethod
    def template(steps: list[DelegationStep]) -> str:
        """Deterministic merge: one summary sentence per result, in order."""
        return " ".join(
            summarize_for_guest(step.agent, step.result)
            for step in steps
            if step.result is not None
        )

    async def _narrate(
        self,
        utterance: str,
        steps: list[DelegationStep],
        history: list[HistoryTurn],
        current_context: dict[str, Any],
    ) -> str:
        today = datetime.now(timezone.utc).date()
        prompt = NARRATION_PROMPT.format(
            restaurant=self._config.restaurant_name,
            today=today.isoformat(),
            tomorrow=(today + timedelta(days=1)).isoformat(),
            utterance=utterance,
            results=json.dumps(self.narrator_input(steps, history, current_context), indent=2, default=str),
        )
        try:
            response = await asyncio.wait_for(
                self._llm.generate(prompt, temperature=0.4),
                timeout=self._config.narrator_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise NarrationError(
                f"Narrator timed out after {self._config.narrator_timeout_seconds}s"
            ) from e
        except Exception as e:
            raise NarrationError(f"Narrator call failed: {e}") from e

        text = (response.content or "").strip()
        if not text:
            raise NarrationError("Narrator returned a blank reply")
        if text[0] in "{[":
            raise NarrationError("Narrator returned structured data instead of prose")
        return text
