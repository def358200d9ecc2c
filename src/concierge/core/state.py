"""
concierge.core.state - Conversation State Models
==================================================

Dynamic, per-session state. One ConversationState exists per session id and
is owned by the orchestrator handling that session:

    ┌───────────────────────────────────────────────────────────────┐
    │ ConversationState (session "abc")                             │
    │   active_agent        : MenuPricingAgent                      │
    │   delegation_chain    : [DelegationStep, ...]   (this turn)   │
    │   global_context      : {AgentName: ToolResult} (cross-turn)  │
    │   active_flow         : booking                               │
    │   flow_state          : {date, time, partySize, ...}          │
    │   interrupted_context : InterruptedContext | None             │
    │   is_awaiting_user_response / next_agent                      │
    └───────────────────────────────────────────────────────────────┘

State Lifecycle:
    created on first contact → updated in place every turn
    → discarded by reset (new conversation) or TTL eviction in the store.

Unlike the frozen result models, ConversationState is mutable: the
dispatcher updates it step by step and the session store persists it.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from concierge.core.enums import AgentName, FlowName
from concierge.core.models import AwaitingReply, DelegationStep
from concierge.core.tools import ToolResult


def _now() -> datetime:
    """Get the current UTC timestamp."""
    return datetime.now(timezone.utc)


# =============================================================================
# Interrupted Context
# =============================================================================
# Snapshot of an in-progress flow taken when the guest switches topic.
# Only one snapshot exists at a time; a later interruption overwrites it.
# =============================================================================
class InterruptedContext(BaseModel):
    """Snapshot of a flow interrupted by a topic switch.

    Attributes:
        agent: Agent that owned the flow when it was interrupted.
        active_flow: The interrupted flow.
        flow_state_snapshot: Deep copy of flow_state at interruption time.
        last_message: The utterance that caused the interruption.
        timestamp: When the snapshot was taken.
    """

    agent: AgentName
    active_flow: Optional[FlowName] = None
    flow_state_snapshot: dict[str, Any] = Field(default_factory=dict)
    last_message: str = ""
    timestamp: datetime = Field(default_factory=_now)


# =============================================================================
# Conversation State
# =============================================================================
class ConversationState(BaseModel):
    """Mutable per-session record kept across turns.

    Attributes:
        session_id: Session key ("default" when the caller sends none).
        active_agent: Agent currently owning the conversation.
        delegation_chain: Steps executed in the current turn.
        global_context: Latest ToolResult per agent (last write wins).
        active_flow: Multi-turn flow in progress, if any.
        flow_state: Slots collected by the flow (camelCase keys).
        interrupted_context: Snapshot of an interrupted flow.
        is_awaiting_user_response: An agent asked a direct question.
        next_agent: Agent that receives the direct reply.
        turn_count: Turns processed for this session.
        created_at: When the session started.
        updated_at: Last modification; drives TTL eviction.

    Invariant:
        ``next_agent`` is set only while ``is_awaiting_user_response`` is
        True. The session store additionally checks it against the registry.
    """

    session_id: str = Field(default="default", description="Session key")
    active_agent: Optional[AgentName] = Field(default=None)
    delegation_chain: list[DelegationStep] = Field(default_factory=list)
    global_context: dict[AgentName, ToolResult] = Field(default_factory=dict)
    active_flow: Optional[FlowName] = Field(default=None)
    flow_state: dict[str, Any] = Field(default_factory=dict)
    interrupted_context: Optional[InterruptedContext] = Field(default=None)
    is_awaiting_user_response: bool = Field(default=False)
    next_agent: Optional[AgentName] = Field(default=None)
    turn_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @model_validator(mode="after")
    def _check_next_agent(self) -> ConversationState:
        if self.next_agent is not None and not self.is_awaiting_user_response:
            raise ValueError("next_agent is only allowed while awaiting a user response")
        return self

    # -------------------------------------------------------------------------
    # Mutators used by the dispatcher and the interrupt manager
    # -------------------------------------------------------------------------
    def touch(self) -> None:
        self.updated_at = _now()

    def await_reply(self, signal: AwaitingReply) -> None:
        """Route the next turn to ``signal.next_agent`` and merge flow slots."""
        self.is_awaiting_user_response = True
        self.next_agent = signal.next_agent
        self.active_flow = signal.active_flow
        self.flow_state.update(copy.deepcopy(signal.flow_state))

    def clear_awaiting(self) -> None:
        self.is_awaiting_user_response = False
        self.next_agent = None

    def reset(self) -> None:
        """Clear everything except the session id and any interrupted snapshot."""
        self.active_agent = None
        self.delegation_chain = []
        self.global_context = {}
        self.active_flow = None
        self.flow_state = {}
        self.clear_awaiting()
        self.touch()

    def record_step(self, step: DelegationStep) -> None:
        self.delegation_chain.append(step)
        if step.result is not None:
            agent = AgentName.parse(step.agent)
            if agent is not None:
                self.global_context[agent] = step.result

    @property
    def booking_in_progress(self) -> bool:
        return bool(self.flow_state.get("bookingInProgress"))

    def summary(self) -> dict[str, Any]:
        """Wire-friendly view (camelCase keys) for diagnostics."""
        return {
            "sessionId": self.session_id,
            "activeAgent": self.active_agent.value if self.active_agent else None,
            "activeFlow": self.active_flow.value if self.active_flow else None,
            "flowState": copy.deepcopy(self.flow_state),
            "isAwaitingUserResponse": self.is_awaiting_user_response,
            "nextAgent": self.next_agent.value if self.next_agent else None,
            "hasInterruptedContext": self.interrupted_context is not None,
            "globalContext": {
                agent.value: result.model_dump(mode="json", by_alias=True)
                for agent, result in self.global_context.items()
            },
            "turnCount": self.turn_count,
        }


# =============================================================================
# Agent Context
# =============================================================================
class AgentContext(BaseModel):
    """What an agent sees of the orchestrator besides its subtask.

    Attributes:
        global_context: Tool results gathered so far (read-only by convention).
        orchestrator_state: The session's ConversationState.
    """

    global_context: dict[AgentName, ToolResult] = Field(default_factory=dict)
    orchestrator_state: ConversationState = Field(default_factory=ConversationState)
