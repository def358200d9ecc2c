"""
concierge.agents.booking.reservation_agent - Reservation Agent
================================================================

Final step of the booking flow. Combines the slots collected by the
TableAvailabilityAgent (flow state) with the guest's contact details and
produces a finished booking payload through ``create_reservation``. The
payload is persisted afterwards by the committer, never by this agent.

Booking slots read from the flow state:
    date, time, partySize, tableType / availableTableTypes

While a booking is in progress, anything short of a finished booking keeps
the flow waiting for the guest's next reply.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from concierge.agents.base import BaseAgent, ToolSelection
from concierge.core.enums import FlowName, ToolName
from concierge.core.models import AwaitingReply
from concierge.core.state import AgentContext
from concierge.core.tools import AvailabilityPayload, ReservationPayload, ToolFailure, ToolSuccess


# flow_state key → accepted parameter spellings
_SLOTS: dict[str, tuple[str, ...]] = {
    "date": ("date",),
    "time": ("time",),
    "partySize": ("partySize", "party_size"),
    "tableType": ("tableType", "table_type"),
}


class ReservationAgent(BaseAgent):
    """Finalizes bookings from the flow state plus guest details."""

    def _guidance(self) -> str:
        return (
            "You finalize reservations. Combine the current flow state (date, time, "
            "partySize, available table types) with what the guest just said. When name, "
            "email, phone, date, time, party size and table type are all known call "
            "create_reservation. If the guest wants a different slot call "
            "check_availability. Otherwise call clarify_and_respond and ask only for the "
            "missing details."
        )

    def _prepare_parameters(self, selection: ToolSelection, context: AgentContext) -> ToolSelection:
        if selection.tool_to_call != ToolName.CREATE_RESERVATION.value:
            return selection

        flow_state = context.orchestrator_state.flow_state
        parameters: dict[str, Any] = dict(selection.parameters)
        for slot, spellings in _SLOTS.items():
            if any(parameters.get(key) not in (None, "") for key in spellings):
                continue
            value = flow_state.get(slot)
            if value is None and slot == "tableType":
                available = flow_state.get("availableTableTypes") or []
                value = available[0] if len(available) == 1 else "standard"
            if value is not None:
                parameters[slot] = value

        return selection.model_copy(update={"parameters": parameters})

    def _awaiting_reply(
        self,
        subtask: str,
        result: Union[ToolSuccess, ToolFailure],
        context: AgentContext,
        venue_id: int,
    ) -> Optional[AwaitingReply]:
        if isinstance(result, ToolSuccess):
            payload = result.payload
            if isinstance(payload, ReservationPayload):
                return None
            if isinstance(payload, AvailabilityPayload) and payload.is_available:
                return AwaitingReply(
                    next_agent=self.name,
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

        if context.orchestrator_state.booking_in_progress:
            return AwaitingReply(
                next_agent=self.name,
                active_flow=FlowName.BOOKING,
                flow_state={"bookingInProgress": True},
            )
        return None
