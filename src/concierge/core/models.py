"""
concierge.core.models - Core Data Models
==========================================

The Pydantic models that flow through one conversational turn. Every
component speaks in terms of these types.

Model Overview:
    HistoryTurn      → one prior line of the conversation ({sender, text})
    PlanStep         → one step of a decomposition plan
    ExecutionPlan    → ordered steps + where the plan came from
    AwaitingReply    → an agent asked the guest a direct question
    AgentResult      → what one agent execution produced
    DelegationStep   → one entry of the per-turn delegation chain
    ConsolidationResult, InsertResult, CommitReceipt
    TurnResponse     → what process_message returns

Data Flow Through One Turn:
    ┌──────────┐  ExecutionPlan   ┌────────────┐  AgentResult  ┌───────────┐
    │ Planner  │ ───────────────→ │ Dispatcher │ ←──────────── │  Agents   │
    └──────────┘                  └────────────┘               └───────────┘
                                        │ DelegationStep[]
                                        ↓
                      ┌─────────────────────────────────────┐
                      │ Committer / Consolidator            │
                      │   → CommitReceipt / ConsolidationResult
                      └─────────────────────────────────────┘
                                        │
                                        ↓
                                  TurnResponse
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from concierge.core.enums import AgentName, DispatchPhase, FlowName, PlanSource, ResponseType
from concierge.core.tools import ToolResult


def _now() -> datetime:
    """Get the current UTC timestamp."""
    return datetime.now(timezone.utc)


# =============================================================================
# Conversation History
# =============================================================================
class HistoryTurn(BaseModel):
    """One prior message of the conversation.

    Attributes:
        sender: Who said it ("user", "assistant", ...).
        text: What was said.
    """

    sender: str = Field(default="user", description="Message author")
    text: str = Field(default="", description="Message text")

    def render(self) -> str:
        """Render as ``sender: text`` for prompts."""
        return f"{self.sender}: {self.text}"


# =============================================================================
# Execution Plan
# =============================================================================
# A plan is produced by the Planner (or synthesised by the dispatcher for the
# resume and direct-reply paths). Agent names are AgentName members, so an
# unknown agent can never reach the dispatch loop.
# =============================================================================
class PlanStep(BaseModel):
    """One step of an ExecutionPlan.

    Attributes:
        step: 1-based ordering key.
        agent_to_use: Registered agent that handles this step.
        sub_task_query: Focused question for that agent.
    """

    model_config = ConfigDict(frozen=True)

    step: int = Field(ge=1, description="1-based execution order")
    agent_to_use: AgentName = Field(description="Agent that handles this step")
    sub_task_query: str = Field(min_length=1, description="Focused sub-question for the agent")


class ExecutionPlan(BaseModel):
    """An ordered list of PlanSteps.

    Invariants:
        - at least one step
        - no agent appears twice

    Example:
        >>> plan = ExecutionPlan(
        ...     steps=[PlanStep(step=1, agent_to_use=AgentName.MENU_PRICING,
        ...                     sub_task_query="What's on the menu?")],
        ...     source=PlanSource.LLM,
        ... )
        >>> plan.agents
        [<AgentName.MENU_PRICING: 'MenuPricingAgent'>]
    """

    steps: list[PlanStep] = Field(min_length=1, description="Steps in execution order")
    source: PlanSource = Field(default=PlanSource.LLM, description="Where the plan came from")

    @model_validator(mode="after")
    def _check_unique_agents(self) -> ExecutionPlan:
        seen: set[AgentName] = set()
        for step in self.steps:
            if step.agent_to_use in seen:
                raise ValueError(f"Agent {step.agent_to_use.value} appears more than once in plan")
            seen.add(step.agent_to_use)
        return self

    @property
    def agents(self) -> list[AgentName]:
        return [step.agent_to_use for step in self.steps]

    @classmethod
    def single(cls, agent: AgentName, subtask: str, source: PlanSource) -> ExecutionPlan:
        """Build a one-step plan."""
        return cls(
            steps=[PlanStep(step=1, agent_to_use=agent, sub_task_query=subtask)],
            source=source,
        )


# =============================================================================
# Agent Result
# =============================================================================
class AwaitingReply(BaseModel):
    """Signal that an agent asked the guest something and wants the answer.

    The dispatcher copies this onto the ConversationState so the next turn
    goes straight to ``next_agent``.
    """

    model_config = ConfigDict(frozen=True)

    next_agent: AgentName = Field(description="Agent that should receive the reply")
    active_flow: FlowName = Field(default=FlowName.BOOKING, description="Flow in progress")
    flow_state: dict[str, Any] = Field(default_factory=dict, description="Flow slots to merge")


class AgentResult(BaseModel):
    """Normalized output of one agent execution.

    Attributes:
        agent: Agent that produced this result.
        tool_name: Tool the agent ran (None when it never reached a tool).
        tool_result: Raw ToolResult (not narrated).
        is_task_complete: False when part of the subtask belongs to
            another agent.
        handoff_suggestion: Agent that should take the remainder.
        unanswered_query: The remainder of the subtask.
        awaiting_reply: Set when the agent wants the next turn routed back.
        error: Error message when the agent failed.
        timestamp: When the result was produced.

    Invariant:
        If ``is_task_complete`` is False, ``handoff_suggestion`` and
        ``unanswered_query`` are both set.
    """

    model_config = ConfigDict(frozen=True)

    agent: str = Field(description="Agent that produced this result")
    tool_name: Optional[str] = Field(default=None, description="Tool that was executed")
    tool_result: Optional[ToolResult] = Field(default=None, description="Raw tool output")
    is_task_complete: bool = Field(default=True, description="Whether the subtask is fully handled")
    handoff_suggestion: Optional[str] = Field(
        default=None,
        description="Agent name suggested for the unanswered remainder",
    )
    unanswered_query: Optional[str] = Field(
        default=None,
        description="Part of the subtask this agent could not handle",
    )
    awaiting_reply: Optional[AwaitingReply] = Field(
        default=None,
        description="Direct-reply routing request for the next turn",
    )
    error: Optional[str] = Field(default=None, description="Error message if the agent failed")
    timestamp: datetime = Field(default_factory=_now, description="When the result was produced")

    @model_validator(mode="after")
    def _check_handoff_fields(self) -> AgentResult:
        if not self.is_task_complete and not (self.handoff_suggestion and self.unanswered_query):
            raise ValueError(
                "An incomplete AgentResult needs both handoff_suggestion and unanswered_query"
            )
        return self


# =============================================================================
# Delegation Chain
# =============================================================================
class DelegationStep(BaseModel):
    """One executed step of the current turn's delegation chain."""

    model_config = ConfigDict(frozen=True)

    agent: str = Field(description="Agent that ran")
    subtask: str = Field(description="Subtask it was given")
    result: Optional[ToolResult] = Field(default=None, description="Tool result it produced")
    step_index: int = Field(ge=0, description="0-based position in the chain")
    via_handoff: bool = Field(default=False, description="Scheduled by a hand-off")
    timestamp: datetime = Field(default_factory=_now)

    def to_wire(self) -> dict[str, Any]:
        return {
            "agent": self.agent,
            "subtask": self.subtask,
            "result": self.result.model_dump(mode="json", by_alias=True) if self.result else None,
            "stepIndex": self.step_index,
            "viaHandoff": self.via_handoff,
            "timestamp": self.timestamp.isoformat(),
        }


# =============================================================================
# Consolidation and Commit Results
# =============================================================================
class ConsolidationResult(BaseModel):
    """Final reply text and whether the narrator (not the template) wrote it."""

    text: str
    is_consolidated: bool = False


class InsertResult(BaseModel):
    """What the reservation store returns after an insert."""

    reservation_id: int = Field(description="Primary key of the stored reservation")
    created_at: datetime = Field(default_factory=_now)


class CommitReceipt(BaseModel):
    """What the committer returns for a persisted booking.

    ``replayed`` is True when an idempotency key matched an earlier commit
    and no new row was inserted.
    """

    reservation_id: int
    created_at: datetime
    replayed: bool = False


# =============================================================================
# Turn Response
# =============================================================================
class TurnResponse(BaseModel):
    """What ConciergeAI.process_message returns.

    ``to_dict()`` produces the JSON shape clients consume:

        {
            "response": "...",
            "type": "message" | "redirect",
            "reservationDetails": {...},   # redirect only
            "insertError": "...",          # failed commit only
            "orchestrator": {...},
        }

    ``plan`` and ``trail`` describe how this turn was routed. They stay on
    the response, out of the wire shape.
    """

    response: str = Field(description="Reply text for the guest")
    type: ResponseType = Field(default=ResponseType.MESSAGE)
    reservation_details: Optional[dict[str, Any]] = Field(default=None)
    insert_error: Optional[str] = Field(default=None)
    orchestrator: dict[str, Any] = Field(default_factory=dict)
    plan: Optional[ExecutionPlan] = Field(default=None, exclude=True)
    trail: list[DispatchPhase] = Field(default_factory=list, exclude=True)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"response": self.response, "type": self.type.value}
        if self.reservation_details is not None:
            data["reservationDetails"] = self.reservation_details
        if self.insert_error is not None:
            data["insertError"] = self.insert_error
        data["orchestrator"] = self.orchestrator
        return data
