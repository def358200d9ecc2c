"""
concierge.orchestration.handoff_resolver - Delegation & Hand-off Resolver
===========================================================================

Decides what happens after an agent reports ``is_task_complete=False``.

    AgentResult(is_task_complete=False,
                handoff_suggestion="MenuPricingAgent",
                unanswered_query="What food do you have?")
            │
            ▼
    ┌─────────────────────────────┐
    │ suggested agent registered? │── no ──→ TERMINATE (unknown_agent)
    │ already scheduled later?    │── yes ─→ TERMINATE (already_scheduled)
    │ already ran this turn?      │── yes ─→ TERMINATE (already_executed)
    │ delegation bound reached?   │── yes ─→ TERMINATE (bound_reached)
    └─────────────────────────────┘
            │
            ▼
    ADVANCE(agent, subtask)  → scheduled right after the triggering step

Never raises; a terminate decision sends the partial results on to
consolidation.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from concierge.agents.registry import AgentRegistry
from concierge.core.enums import AgentName
from concierge.core.exceptions import UnknownAgentError
from concierge.core.models import AgentResult


logger = structlog.get_logger()


class HandoffAction(str, Enum):
    """What the dispatcher should do with a hand-off request."""

    NONE = "none"
    ADVANCE = "advance"
    TERMINATE = "terminate"


class HandoffDecision(BaseModel):
    """Outcome of resolving one AgentResult."""

    model_config = ConfigDict(frozen=True)

    action: HandoffAction = Field(description="Advance, terminate or nothing to do")
    agent: Optional[AgentName] = Field(default=None, description="Agent to run next")
    subtask: Optional[str] = Field(default=None, description="Unanswered remainder")
    reason: Optional[str] = Field(default=None, description="Why the chain terminated")

    @property
    def advances(self) -> bool:
        return self.action == HandoffAction.ADVANCE


class HandoffResolver:
    """Validates hand-off suggestions against the registry and the bound."""

    def __init__(self, registry: AgentRegistry, max_steps: int = 3) -> None:
        self._registry = registry
        self._max_steps = max_steps
        self._logger = logger.bind(component="handoff_resolver")

    def resolve(
        self,
        result: AgentResult,
        steps_taken: int,
        scheduled: Optional[list[AgentName]] = None,
        executed: Optional[list[AgentName]] = None,
    ) -> HandoffDecision:
        """Decide whether to extend the chain after ``result``.

        Args:
            result: The AgentResult just produced.
            steps_taken: Delegation steps already executed this turn.
            scheduled: Agents still queued later in the plan.
            executed: Agents that already ran this turn.
        """
        if result.is_task_complete:
            return HandoffDecision(action=HandoffAction.NONE)

        try:
            target = self._registry.resolve(result.handoff_suggestion)
            if target is None:
                raise UnknownAgentError(agent_name=str(result.handoff_suggestion))
        except UnknownAgentError as e:
            return self._terminate("unknown_agent", result, agent_name=e.agent_name)

        if scheduled and target in scheduled:
            return self._terminate("already_scheduled", result, agent_name=target.value)
        if executed and target in executed:
            return self._terminate("already_executed", result, agent_name=target.value)
        if steps_taken >= self._max_steps:
            return self._terminate("bound_reached", result, agent_name=target.value)

        self._logger.info(
            "handoff_advanced",
            from_agent=result.agent,
            to_agent=target.value,
            subtask=(result.unanswered_query or "")[:120],
        )
        return HandoffDecision(
            action=HandoffAction.ADVANCE,
            agent=target,
            subtask=result.unanswered_query,
        )

    def _terminate(self, reason: str, result: AgentResult, agent_name: str) -> HandoffDecision:
        self._logger.info(
            "handoff_terminated",
            reason=reason,
            from_agent=result.agent,
            suggested=agent_name,
        )
        return HandoffDecision(action=HandoffAction.TERMINATE, reason=reason)
