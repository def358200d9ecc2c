"""
concierge.agents.base - Abstract Base Agent
=============================================

BaseAgent is the foundation every restaurant agent inherits from. It
implements the Template Method pattern: every agent handles a subtask the
same way, and subclasses only supply their domain guidance and a few
optional hooks.

Template Method:

    ┌──────────────────────────────────────────────────────────────┐
    │  BaseAgent.process_message(subtask, history, venue, context) │
    │  ┌────────────────────────────────────────────────────────┐  │
    │  │ 1. SELECT  _select_tool()      LLM picks ONE tool      │  │
    │  │            (unparseable / timeout / error → clarify)   │  │
    │  │            tool not allowed → clarify(fallback msg)    │  │
    │  │            _prepare_parameters()   ← override this     │  │
    │  │ 2. ACT     ToolExecutor.execute_tool() → ToolResult    │  │
    │  │            (raw result, never narrated here)           │  │
    │  │ 3. ANALYSE _awaiting_reply()       ← override this     │  │
    │  │            hand-off rules → is_task_complete=False     │  │
    │  └────────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────────┘

Subclass Contract:
    - _guidance() → str                       # REQUIRED: domain instructions
    - _prepare_parameters(selection, context) # optional: fill slots
    - _awaiting_reply(subtask, result, ctx, venue_id)  # optional: direct reply
    - _prompt_context(venue_id) → str         # optional: extra facts

The agent name, allowed tools, hand-off rules and fallback message all come
from the agent's AgentSpec in the registry.
"""

from __future__ import annotations

import asyncio
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

import structlog
from pydantic import BaseModel, Field, ValidationError

from concierge.agents.registry import AgentSpec
from concierge.agents.tools import ToolExecutor
from concierge.core.config import OrchestratorConfig
from concierge.core.enums import AgentName, ToolName
from concierge.core.models import AgentResult, AwaitingReply, HistoryTurn
from concierge.core.state import AgentContext
from concierge.core.tools import (
    AvailabilityPayload,
    CelebrationPayload,
    ClarificationPayload,
    MenuPayload,
    ReservationPayload,
    RestaurantInfoPayload,
    ToolFailure,
    ToolSuccess,
)
from concierge.integrations.llm.base import BaseLLMProvider


logger = structlog.get_logger()

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")

TOOL_DESCRIPTIONS: dict[ToolName, str] = {
    ToolName.CHECK_AVAILABILITY: (
        'check_availability: {"date": "YYYY-MM-DD", "time": "HH:MM", "partySize": 1-20}'
    ),
    ToolName.GET_MENU_ITEMS: (
        'get_menu_items: {"query"?: str, "is_gluten_free"?: bool, "is_vegan"?: bool, '
        '"is_vegetarian"?: bool, "category"?: "Main"|"Appetizer"|"Dessert"|"Drink"}'
    ),
    ToolName.GET_RESTAURANT_INFO: (
        'get_restaurant_info: {"topic": "hours"|"address"|"description"|"contact"|"general"}'
    ),
    ToolName.CREATE_RESERVATION: (
        'create_reservation: {"name", "email", "phone", "date": "YYYY-MM-DD", "time": "HH:MM", '
        '"partySize", "tableType", "specialRequests"?}'
    ),
    ToolName.GET_CELEBRATION_PACKAGES: (
        'get_celebration_packages: {"occasion_tags": ["birthday"|"anniversary"|"romantic"|'
        '"proposal"|"celebration"|"special_occasion"], '
        '"budget_range"?: "budget"|"standard"|"premium"|"luxury"}'
    ),
    ToolName.CLARIFY_AND_RESPOND: (
        'clarify_and_respond: {"message": str, '
        '"response_type": "clarification"|"out_of_scope"|"general_info"|"greeting"}'
    ),
}


class ToolSelection(BaseModel):
    """The agent's choice of tool for this subtask."""

    tool_to_call: str = Field(description="Name of the tool to run")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Tool parameters")


def summarize_tool_result(result: Union[ToolSuccess, ToolFailure]) -> str:
    """One short line describing a ToolResult, for prompts and logs."""
    if isinstance(result, ToolFailure):
        return f"{result.tool} failed: {result.error}"
    payload = result.payload
    if isinstance(payload, AvailabilityPayload):
        types = ", ".join(t.table_type for t in payload.available_table_types) or "none"
        return f"availability on {payload.date} at {payload.time} for {payload.party_size}: {types}"
    if isinstance(payload, MenuPayload):
        return f"{len(payload.items)} menu items"
    if isinstance(payload, CelebrationPayload):
        return f"{len(payload.packages)} celebration packages"
    if isinstance(payload, RestaurantInfoPayload):
        return f"restaurant info ({payload.topic})"
    if isinstance(payload, ReservationPayload):
        return f"reservation for {payload.name} on {payload.date} at {payload.time}"
    if isinstance(payload, ClarificationPayload):
        return f"said: {payload.message}"
    return result.tool.value


class BaseAgent(ABC):
    """Abstract base class for all Concierge agents.

    Attributes:
        _spec: Registry entry (name, allowed tools, hand-off rules).
        _llm: Provider used for tool selection.
        _tools: Executor that validates and runs tools.
        _config: Orchestrator configuration.
        _logger: Structured logger bound with the agent name.
    """

    def __init__(
        self,
        spec: AgentSpec,
        llm_provider: BaseLLMProvider,
        tool_executor: ToolExecutor,
        config: OrchestratorConfig,
    ) -> None:
        self._spec = spec
        self._llm = llm_provider
        self._tools = tool_executor
        self._config = config
        self._logger = logger.bind(agent_name=spec.name.value)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def name(self) -> AgentName:
        return self._spec.name

    @property
    def spec(self) -> AgentSpec:
        return self._spec

    # =========================================================================
    # Template Method
    # =========================================================================

    async def process_message(
        self,
        subtask: str,
        history: list[HistoryTurn],
        venue_id: int,
        context: AgentContext,
    ) -> AgentResult:
        """Select one tool, run it, and analyse whether the subtask is done.

        Args:
            subtask: The focused request this agent must handle.
            history: Conversation so far (most recent last).
            venue_id: Restaurant the conversation is about.
            context: Tool results gathered so far plus the session state.

        Returns:
            AgentResult carrying the raw ToolResult.
        """
        self._logger.info("agent_processing", subtask=subtask[:120], venue_id=venue_id)

        # --- Step 1: SELECT ---
        selection = await self._select_tool(subtask, history, venue_id, context)
        if not self._spec.allows(selection.tool_to_call):
            self._logger.warning(
                "tool_not_allowed",
                tool=selection.tool_to_call,
                allowed=sorted(t.value for t in self._spec.allowed_tools),
            )
            selection = self._fallback_selection()
        selection = self._prepare_parameters(selection, context)

        # --- Step 2: ACT ---
        tool_result = await self._tools.execute_tool(
            selection.tool_to_call, selection.parameters, venue_id
        )

        # --- Step 3: ANALYSE ---
        awaiting = self._awaiting_reply(subtask, tool_result, context, venue_id)
        handoff = None if awaiting else self._match_handoff(subtask, tool_result)

        self._logger.info(
            "agent_completed",
            tool=selection.tool_to_call,
            status=tool_result.status,
            handoff=handoff[0].value if handoff else None,
            awaiting_reply=awaiting is not None,
        )

        return AgentResult(
            agent=self.name.value,
            tool_name=selection.tool_to_call,
            tool_result=tool_result,
            is_task_complete=handoff is None,
            handoff_suggestion=handoff[0].value if handoff else None,
            unanswered_query=handoff[1] if handoff else None,
            awaiting_reply=awaiting,
        )

    # =========================================================================
    # Abstract Methods (Subclasses MUST implement these)
    # =========================================================================

    @abstractmethod
    def _guidance(self) -> str:
        """Domain-specific instructions for choosing a tool and its parameters."""
        ...

    # =========================================================================
    # Optional Hooks (Subclasses CAN override these)
    # =========================================================================

    def _prepare_parameters(self, selection: ToolSelection, context: AgentContext) -> ToolSelection:
        """Adjust the selected parameters before the tool runs."""
        return selection

    def _awaiting_reply(
        self,
        subtask: str,
        result: Union[ToolSuccess, ToolFailure],
        context: AgentContext,
        venue_id: int,
    ) -> Optional[AwaitingReply]:
        """Return a signal when the next turn should come straight back."""
        return None

    async def _prompt_context(self, venue_id: int) -> str:
        """Extra facts for the selection prompt."""
        return ""

    # =========================================================================
    # Selection
    # =========================================================================

    async def _select_tool(
        self,
        subtask: str,
        history: list[HistoryTurn],
        venue_id: int,
        context: AgentContext,
    ) -> ToolSelection:
        prompt = self._build_selection_prompt(
            subtask, history, context, await self._prompt_context(venue_id)
        )
        try:
            response = await asyncio.wait_for(
                self._llm.generate(prompt, temperature=0.1),
                timeout=self._config.selector_timeout_seconds,
            )
        except asyncio.TimeoutError:
            self._logger.warning("tool_selection_timed_out")
            return self._fallback_selection()
        except Exception as e:
            self._logger.warning("tool_selection_failed", error=str(e))
            return self._fallback_selection()

        selection = self._parse_selection(response.content)
        if selection is None:
            self._logger.warning("tool_selection_unparseable", raw=response.content[:200])
            return self._fallback_selection()
        return selection

    def _build_selection_prompt(
        self,
        subtask: str,
        history: list[HistoryTurn],
        context: AgentContext,
        extra: str,
    ) -> str:
        window = self._config.history_window
        recent = history[-window:] if window else []
        history_text = "\n".join(turn.render() for turn in recent) or "(no previous messages)"
        gathered = "\n".join(
            f"- {agent.value}: {summarize_tool_result(result)}"
            for agent, result in context.global_context.items()
        ) or "(nothing yet)"
        tools = "\n".join(
            f"- {TOOL_DESCRIPTIONS[tool]}"
            for tool in sorted(self._spec.allowed_tools, key=lambda t: t.value)
        )
        flow_state = json.dumps(context.orchestrator_state.flow_state, default=str)

        sections = [
            f"You are the {self._spec.title} for {self._config.restaurant_name}.",
            self._guidance(),
            f"Allowed tools (choose exactly one):\n{tools}",
            f"Recent conversation:\n{history_text}",
            f"Information already gathered:\n{gathered}",
            f"Current flow state: {flow_state}",
        ]
        if extra:
            sections.append(extra)
        sections.append(f'Guest request: "{subtask}"')
        sections.append(
            'Respond with ONLY a JSON object of the form '
            '{"tool_to_call": "<tool name>", "parameters": {...}}'
        )
        return "\n\n".join(sections)

    @staticmethod
    def _parse_selection(text: str) -> Optional[ToolSelection]:
        match = _JSON_OBJECT.search(text or "")
        if match is None:
            return None
        try:
            data = json.loads(match.group(0))
            return ToolSelection.model_validate(data)
        except (json.JSONDecodeError, ValidationError):
            return None

    def _fallback_selection(self) -> ToolSelection:
        return ToolSelection(
            tool_to_call=ToolName.CLARIFY_AND_RESPOND.value,
            parameters={"message": self._spec.fallback_message, "response_type": "clarification"},
        )

    # =========================================================================
    # Hand-off analysis
    # =========================================================================

    def _match_handoff(
        self,
        subtask: str,
        result: Union[ToolSuccess, ToolFailure],
    ) -> Optional[tuple[AgentName, str]]:
        """Find sentences of the subtask that belong to another agent.

        Returns:
            (target agent, matching sentences) for the first rule with a
            match, or None.
        """
        if not isinstance(result, ToolSuccess):
            return None

        sentences = [s.strip() for s in _SENTENCE_SPLIT.split(subtask) if s.strip()]
        for target, keywords in self._spec.handoff_rules.items():
            if target == self.name:
                continue
            matched = [
                sentence for sentence in sentences
                if any(
                    re.search(rf"\b{re.escape(keyword)}\b", sentence.lower())
                    for keyword in keywords
                )
            ]
            if matched:
                return target, " ".join(matched)
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name.value!r})"
