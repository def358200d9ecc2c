"""
concierge.orchestration.planner - Plan Acquisition
====================================================

Turns one guest utterance into an ExecutionPlan: which agents to run, in
which order, and the focused subtask each one receives.

Planning Flow:

    utterance + last N history turns + registry descriptions
            │
            ▼
    ┌───────────────────┐   timeout / error / garbage   ┌──────────────────┐
    │  LLM decomposition │ ────────────────────────────→ │  heuristic plan  │
    └───────────────────┘                               │  (keyword order) │
            │                                           └──────────────────┘
            ├── single intent word ("menu") → one step, full utterance
            └── JSON array [{step, agent_to_use, sub_task_query}, ...]
                  → validated, duplicates dropped, sorted by step

Heuristic order (first keyword group found wins):
    menu/food/dish/eat               → MenuPricingAgent
    hour/time/open/close             → RestaurantInfoAgent
    available/book/reserve/table     → TableAvailabilityAgent
    celebration/birthday/anniversary/special → CelebrationAgent
    otherwise                        → SupportContactAgent

The planner never raises: PlanParseError and UnknownAgentError are raised
internally and answered with the heuristic plan.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Optional

import structlog

from concierge.agents.registry import AgentRegistry
from concierge.core.config import OrchestratorConfig
from concierge.core.enums import AgentName, PlanSource
from concierge.core.exceptions import PlanParseError, UnknownAgentError
from concierge.core.models import ExecutionPlan, HistoryTurn, PlanStep
from concierge.integrations.llm.base import BaseLLMProvider


logger = structlog.get_logger()

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
_INTENT_WORD = re.compile(r"^[a-z_]+$")

INTENT_WORDS: dict[str, AgentName] = {
    "menu": AgentName.MENU_PRICING,
    "food": AgentName.MENU_PRICING,
    "pricing": AgentName.MENU_PRICING,
    "info": AgentName.RESTAURANT_INFO,
    "restaurant": AgentName.RESTAURANT_INFO,
    "greeting": AgentName.RESTAURANT_INFO,
    "hours": AgentName.RESTAURANT_INFO,
    "availability": AgentName.TABLE_AVAILABILITY,
    "booking": AgentName.TABLE_AVAILABILITY,
    "table": AgentName.TABLE_AVAILABILITY,
    "reservation": AgentName.RESERVATION,
    "celebration": AgentName.CELEBRATION,
    "support": AgentName.SUPPORT_CONTACT,
    "contact": AgentName.SUPPORT_CONTACT,
}

HEURISTIC_RULES: tuple[tuple[tuple[str, ...], AgentName], ...] = (
    (("menu", "food", "dish", "eat"), AgentName.MENU_PRICING),
    (("hour", "time", "open", "close"), AgentName.RESTAURANT_INFO),
    (("available", "book", "reserve", "table"), AgentName.TABLE_AVAILABILITY),
    (("celebration", "birthday", "anniversary", "special"), AgentName.CELEBRATION),
)
HEURISTIC_DEFAULT = AgentName.SUPPORT_CONTACT

DECOMPOSITION_PROMPT = """You are the planning assistant of {restaurant}. Decompose the guest's request into a sequence of steps, where each step is handled by one specialized agent.

AVAILABLE AGENTS:
{agents}

RECENT CONVERSATION HISTORY:
{history}

User request: "{utterance}"

DECOMPOSITION RULES:
1. Identify ALL distinct intents in the request
2. Assign each intent to the one agent that handles it
3. Give each agent a focused sub_task_query containing ONLY its part
4. Order the steps logically (availability before reservation, info before menu)
5. Never use the same agent twice
6. If the request has a single intent, create a single-step plan

EXAMPLES:

Input: What time do you close on Saturdays, and are your lamb chops gluten-free?
Output: [
  {{"step": 1, "agent_to_use": "RestaurantInfoAgent", "sub_task_query": "What time do you close on Saturdays?"}},
  {{"step": 2, "agent_to_use": "MenuPricingAgent", "sub_task_query": "Are your lamb chops gluten-free?"}}
]

Input: Check availability for tomorrow at 8pm for 4 people
Output: [
  {{"step": 1, "agent_to_use": "TableAvailabilityAgent", "sub_task_query": "Check availability for tomorrow at 8pm for 4 people"}}
]

Respond with ONLY a JSON array in this exact format:
[
  {{"step": 1, "agent_to_use": "AgentName", "sub_task_query": "Query for this agent"}}
]"""


def heuristic_plan(utterance: str) -> ExecutionPlan:
    """Deterministic one-step plan chosen by keyword containment."""
    text = utterance.lower()
    agent = HEURISTIC_DEFAULT
    for keywords, target in HEURISTIC_RULES:
        if any(keyword in text for keyword in keywords):
            agent = target
            break
    return ExecutionPlan.single(agent, utterance or "General question", PlanSource.FALLBACK)


class Planner:
    """Obtains an ExecutionPlan from the LLM, or the heuristic on failure.

    Example:
        >>> planner = Planner(llm, registry, config)
        >>> plan = await planner.get_plan("Hello", [], venue_id=1)
        >>> plan.agents
        [<AgentName.RESTAURANT_INFO: 'RestaurantInfoAgent'>]
    """

    def __init__(
        self,
        llm_provider: BaseLLMProvider,
        registry: AgentRegistry,
        config: OrchestratorConfig,
    ) -> None:
        self._llm = llm_provider
        self._registry = registry
        self._config = config
        self._logger = logger.bind(component="planner")

    async def get_plan(
        self,
        utterance: str,
        history: list[HistoryTurn],
        venue_id: int,
    ) -> ExecutionPlan:
        """Decompose ``utterance`` into plan steps.

        Never raises; any planner problem yields the heuristic plan.
        """
        prompt = self.build_prompt(utterance, history)
        try:
            response = await asyncio.wait_for(
                self._llm.generate(prompt, temperature=0.1),
                timeout=self._config.planner_timeout_seconds,
            )
            plan = self.parse_plan(response.content, utterance)
        except asyncio.TimeoutError:
            self._logger.warning("planner_timed_out", venue_id=venue_id)
            return self._fallback(utterance, "timeout")
        except (PlanParseError, UnknownAgentError) as e:
            self._logger.warning("plan_rejected", error_code=e.error_code, error=e.message)
            return self._fallback(utterance, e.error_code)
        except Exception as e:
            self._logger.warning("planner_failed", error=str(e))
            return self._fallback(utterance, "provider_error")

        self._logger.info(
            "plan_acquired",
            steps=len(plan.steps),
            agents=[a.value for a in plan.agents],
            source=plan.source.value,
        )
        return plan

    def build_prompt(self, utterance: str, history: list[HistoryTurn]) -> str:
        window = self._config.history_window
        recent = history[-window:] if window else []
        return DECOMPOSITION_PROMPT.format(
            restaurant=self._config.restaurant_name,
            agents=self._registry.describe(),
            history="\n".join(turn.render() for turn in recent) or "None",
            utterance=utterance,
        )

    def parse_plan(self, raw: str, utterance: str) -> ExecutionPlan:
        """Validate planner output.

        Raises:
            PlanParseError: Malformed, non-array, empty or invalid steps.
            UnknownAgentError: A step names an agent that is not registered.
        """
        text = (raw or "").strip()

        word = text.lower().strip(".\"'` ")
        if _INTENT_WORD.match(word):
            agent = INTENT_WORDS.get(word)
            if agent is None or not self._registry.is_registered(agent):
                raise UnknownAgentError(agent_name=word, message=f"Unknown intent word: '{word}'")
            return ExecutionPlan.single(agent, utterance, PlanSource.INTENT)

        match = _JSON_ARRAY.search(text)
        if match is None:
            raise PlanParseError("No JSON array in planner output", raw_output=text)
        try:
            data: Any = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise PlanParseError(f"Planner output is not valid JSON: {e}", raw_output=text) from e
        if not isinstance(data, list) or not data:
            raise PlanParseError("Planner output is not a non-empty array", raw_output=text)

        steps: list[PlanStep] = []
        seen: set[AgentName] = set()
        for entry in data:
            step = self._parse_step(entry, text)
            if step.agent_to_use in seen:
                self._logger.info("plan_duplicate_dropped", agent=step.agent_to_use.value)
                continue
            seen.add(step.agent_to_use)
            steps.append(step)

        steps.sort(key=lambda s: s.step)
        return ExecutionPlan(steps=steps, source=PlanSource.LLM)

    def _parse_step(self, entry: Any, raw: str) -> PlanStep:
        if not isinstance(entry, dict):
            raise PlanParseError("Plan step is not an object", raw_output=raw)

        number = entry.get("step")
        agent_name = entry.get("agent_to_use")
        subtask = entry.get("sub_task_query")
        if not isinstance(number, int) or isinstance(number, bool) or number < 1:
            raise PlanParseError(f"Plan step has an invalid step number: {number!r}", raw_output=raw)
        if not isinstance(subtask, str) or not subtask.strip():
            raise PlanParseError("Plan step has an empty sub_task_query", raw_output=raw)

        agent: Optional[AgentName] = self._registry.resolve(agent_name)
        if agent is None:
            raise UnknownAgentError(agent_name=str(agent_name))
        return PlanStep(step=number, agent_to_use=agent, sub_task_query=subtask.strip())

    def _fallback(self, utterance: str, reason: str) -> ExecutionPlan:
        plan = heuristic_plan(utterance)
        self._logger.info(
            "heuristic_plan_used",
            reason=reason,
            agent=plan.steps[0].agent_to_use.value,
        )
        return plan
