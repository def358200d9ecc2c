"""
concierge.orchestration.interrupt_manager - Interrupt & Resume Manager
========================================================================

Lets a guest step away from a booking and come back to it later.

    turn N    "4 people Friday 8pm"      → booking in progress
    turn N+1  "what's the owner's phone" → topic switch
                                           snapshot flow_state → interrupted_context
                                           reset the rest of the session
    turn N+2  "yes, continue the reservation"
                                         → resume: flow_state restored from the
                                           snapshot, interrupted_context cleared,
                                           snapshot agent runs "Continue with the
                                           booking process"

One snapshot at a time: a second interruption overwrites the first. A
snapshot is not restored while a newer booking is in progress; resume
phrases then go to that booking's agent as an ordinary reply.
"""

from __future__ import annotations

import copy
from typing import Optional

import structlog

from concierge.core.enums import AgentName
from concierge.core.state import ConversationState, InterruptedContext
from concierge.orchestration.classifier import Classifier


logger = structlog.get_logger()

RESUME_SUBTASK = "Continue with the booking process"


class InterruptManager:
    """Detects topic switches and resume requests on a ConversationState."""

    def __init__(self, classifier: Classifier) -> None:
        self._classifier = classifier
        self._logger = logger.bind(component="interrupt_manager")

    @property
    def classifier(self) -> Classifier:
        return self._classifier

    # =========================================================================
    # Detection
    # =========================================================================

    async def should_resume(self, state: ConversationState, utterance: str) -> bool:
        if state.interrupted_context is None:
            return False
        if state.booking_in_progress:
            self._logger.info(
                "resume_deferred",
                session_id=state.session_id,
                snapshot_agent=state.interrupted_context.agent.value,
            )
            return False
        return await self._classifier.is_resume_request(
            utterance, awaiting_reply=state.is_awaiting_user_response
        )

    async def should_interrupt(self, state: ConversationState, utterance: str) -> bool:
        if not state.booking_in_progress:
            return False
        owner = state.active_agent or state.next_agent
        return await self._classifier.is_topic_switch(
            utterance, owner, awaiting_reply=state.is_awaiting_user_response
        )

    # =========================================================================
    # State changes
    # =========================================================================

    def interrupt(self, state: ConversationState, utterance: str) -> InterruptedContext:
        """Snapshot the flow in progress and reset the rest of the session."""
        owner: Optional[AgentName] = state.active_agent or state.next_agent
        snapshot = InterruptedContext(
            agent=owner or AgentName.RESERVATION,
            active_flow=state.active_flow,
            flow_state_snapshot=copy.deepcopy(state.flow_state),
            last_message=utterance,
        )
        if state.interrupted_context is not None:
            self._logger.info(
                "interrupted_context_overwritten",
                previous_agent=state.interrupted_context.agent.value,
            )
        state.reset()
        state.interrupted_context = snapshot
        self._logger.info(
            "flow_interrupted",
            session_id=state.session_id,
            agent=snapshot.agent.value,
            slots=sorted(snapshot.flow_state_snapshot),
        )
        return snapshot

    def resume(self, state: ConversationState) -> InterruptedContext:
        """Restore the interrupted flow onto ``state`` and clear the snapshot.

        Raises:
            ValueError: If there is nothing to resume.
        """
        snapshot = state.interrupted_context
        if snapshot is None:
            raise ValueError("No interrupted flow to resume")

        state.clear_awaiting()
        state.flow_state = copy.deepcopy(snapshot.flow_state_snapshot)
        state.active_flow = snapshot.active_flow
        state.active_agent = snapshot.agent
        state.interrupted_context = None
        state.touch()
        self._logger.info("flow_resumed", session_id=state.session_id, agent=snapshot.agent.value)
        return snapshot
