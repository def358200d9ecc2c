"""
concierge.orchestration.execution_adapter - Agent Execution Adapter
=====================================================================

Uniform call contract into any agent. The dispatcher never talks to an
agent directly; it calls ``execute()`` and always gets an AgentResult back.

    Dispatcher ── execute(name, subtask, ...) ──→ AgentExecutionAdapter
                                                        │
                       unknown name ──→ synthetic "internal error" result
                                                        │
                       agent.process_message() (agent_timeout_seconds)
                                                        │
                    exception / timeout ──→ apologetic result (error set)

Both failure results carry a clarification ToolResult and
``is_task_complete=True``, so the turn continues to consolidation.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from concierge.agents.base import BaseAgent
from concierge.agents.registry import AgentRegistry
from concierge.core.enums import AgentName, ToolName
from concierge.core.exceptions import AgentExecutionError, UnknownAgentError
from concierge.core.models import AgentResult, HistoryTurn
from concierge.core.state import AgentContext, ConversationState
from concierge.core.tools import ToolResult, clarification


logger = structlog.get_logger()

INTERNAL_ERROR_MESSAGE = (
    "I apologize, but I encountered an internal error while processing your request."
)
AGENT_ERROR_MESSAGE = (
    "I apologize, but I encountered an error while processing your request. Please try again."
)


class AgentExecutionAdapter:
    """Runs agents by name and normalizes every outcome to an AgentResult.

    Attributes:
        _agents: Agent instances keyed by name.
        _registry: Registry used to resolve names.
        _timeout: Upper bound for one agent execution, in seconds.
    """

    def __init__(
        self,
        agents: dict[AgentName, BaseAgent],
        registry: AgentRegistry,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._agents = agents
        self._registry = registry
        self._timeout = timeout_seconds
        self._logger = logger.bind(component="execution_adapter")

    def has_agent(self, agent_name: object) -> bool:
        agent = self._registry.resolve(agent_name)
        return agent is not None and agent in self._agents

    async def execute(
        self,
        agent_name: object,
        subtask: str,
        history: list[HistoryTurn],
        venue_id: int,
        global_context: dict[AgentName, ToolResult],
        orchestrator_state: ConversationState,
    ) -> AgentResult:
        """Run one agent on one subtask. Never raises."""
        try:
            agent = self._lookup(agent_name)
        except UnknownAgentError as e:
            self._logger.error("unknown_agent", agent=e.agent_name)
            return AgentResult(
                agent=str(getattr(agent_name, "value", agent_name)),
                tool_name=ToolName.CLARIFY_AND_RESPOND.value,
                tool_result=clarification(INTERNAL_ERROR_MESSAGE),
                is_task_complete=True,
                error=e.message,
            )

        context = AgentContext(
            global_context=dict(global_context),
            orchestrator_state=orchestrator_state,
        )
        try:
            try:
                return await asyncio.wait_for(
                    agent.process_message(subtask, history, venue_id, context),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError as e:
                raise AgentExecutionError(
                    f"Agent timed out after {self._timeout}s",
                    agent_name=agent.name.value,
                ) from e
            except Exception as e:
                raise AgentExecutionError(str(e), agent_name=agent.name.value) from e
        except AgentExecutionError as e:
            self._logger.error("agent_execution_failed", agent=e.agent_name, error=e.message)
            return AgentResult(
                agent=agent.name.value,
                tool_name=ToolName.CLARIFY_AND_RESPOND.value,
                tool_result=clarification(AGENT_ERROR_MESSAGE),
                is_task_complete=True,
                error=e.message,
            )

    def _lookup(self, agent_name: object) -> BaseAgent:
        resolved: Optional[AgentName] = self._registry.resolve(agent_name)
        if resolved is None or resolved not in self._agents:
            raise UnknownAgentError(agent_name=str(getattr(agent_name, "value", agent_name)))
        return self._agents[resolved]
