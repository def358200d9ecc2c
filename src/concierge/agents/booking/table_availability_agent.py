"""
concierge.agents.booking.table_availability_agent - Table Availability Agent
==============================================================================

First step of the booking flow. Checks whether the restaurant can seat the
party at the requested date and time.

    ┌──────────────────┐  tables available   ┌──────────────────┐
    │ TableAvailability│ ──────────────────→ │ ReservationAgent │
    │ (this agent)     │  awaiting_reply     │ (next turn)      │
    └──────────────────┘                     └──────────────────┘

When tables are available the agent asks the dispatcher to route the
guest's next message straight to the ReservationAgent, carrying the
collected slots in the flow state:

    {date, time, partySize, availableTableTypes, venueId, bookingInProgress}

When it has to ask for a missing date, time or party size it routes the
answer back to itself instead.
"""

from __future__ import annotations

from typing import Optional, Union

from concierge.agents.base import BaseAgent
from concierge.core.enums import AgentName, FlowName
from concierge.core.models import AwaitingReply
from concierge.core.state import AgentContext
from concierge.core.tools import AvailabilityPayload, ClarificationPayload, ToolFailure, ToolSuccess


class TableAvailabilityAgent(BaseAgent):
    """Checks table availability and opens the booking flow."""

    def _guidance(self) -> str:
        return (
            "Extract the date (YYYY-MM-DD), time (HH:MM, 24h) and party size from the "
            "guest request, the conversation and the current flow state. If all three "
            "are known call check_availability. If anything is missing call "
            "clarify_and_respond and ask only for the missing details."
        )

    def _awaiting_reply(
        self,
        subtask: str,
        result: Union[ToolSuccess, ToolFailure],
        context: AgentContext,
        venue_id: int,
    ) -> Optional[AwaitingReply]:
        if not isinstance(result, ToolSuccess):
            return None

        payload = result.payload

        if isinstance(payload, AvailabilityPayload) and payload.is_available:
            return AwaitingReply(
                next_agent=AgentName.RESERVATION,
                active_flow=FlowName.BOOKING,
                flow_state={
                    "date": payload.date,
                    "time": payload.time,
                    "partySize": payload.party_size,
                    "availableTableTypes": [t.table_type for t in payload.available_table_types],
                    "venueId": venue_id,
                    "bookingInProgress": True,
                },
            )

        if isinstance(payload, ClarificationPayload) and payload.response_type == "clarification":
            return AwaitingReply(
                next_agent=self.name,
                active_flow=FlowName.BOOKING,
                flow_state={"venueId": venue_id, "bookingInProgress": True},
            )
        return None
