"""
Tests for concierge.agents.booking
====================================

These tests verify the two booking-flow agents:
    - TableAvailabilityAgent: opens the flow and routes the next turn
    - ReservationAgent: fills booking slots from the flow state and keeps
      the flow waiting until the booking is finished

All tests are async (pytest-asyncio with asyncio_mode=auto).
"""

from concierge.core.enums import AgentName, FlowName
from concierge.core.state import AgentContext, ConversationState
from concierge.core.tools import AvailabilityPayload, ReservationPayload, ToolFailure


def _context(**flow_state) -> AgentContext:
    return AgentContext(orchestrator_state=ConversationState(session_id="test", flow_state=flow_state))


def _booking_context(**extra) -> AgentContext:
    flow_state = {
        "date": "2026-10-23",
        "time": "20:00",
        "partySize": 4,
        "availableTableTypes": ["standard", "grass"],
        "venueId": 1,
        "bookingInProgress": True,
    }
    flow_state.update(extra)
    return _context(**flow_state)


# =============================================================================
# Test: TableAvailabilityAgent
# =============================================================================
class TestTableAvailabilityAgent:
    """Tests for the first booking step."""

    async def test_available_routes_to_reservation(self, agents, mock_llm_provider) -> None:
        mock_llm_provider.queue_tool_call(
            "check_availability", date="2026-10-23", time="20:00", partySize=4
        )
        result = await agents[AgentName.TABLE_AVAILABILITY].process_message(
            "Table for 4 on Oct 23 at 8pm", [], 1, _context()
        )

        assert isinstance(result.tool_result.payload, AvailabilityPayload)
        signal = result.awaiting_reply
        assert signal is not None
        assert signal.next_agent == AgentName.RESERVATION
        assert signal.active_flow == FlowName.BOOKING
        assert signal.flow_state == {
            "date": "2026-10-23",
            "time": "20:00",
            "partySize": 4,
            "availableTableTypes": ["standard", "grass"],
            "venueId": 1,
            "bookingInProgress": True,
        }

    async def test_fully_booked_does_not_await(self, agents, mock_llm_provider, data_source) -> None:
        data_source.mark_fully_booked(1, "2026-10-23")
        mock_llm_provider.queue_tool_call(
            "check_availability", date="2026-10-23", time="20:00", partySize=4
        )
        result = await agents[AgentName.TABLE_AVAILABILITY].process_message(
            "Table for 4 on Oct 23 at 8pm", [], 1, _context()
        )
        assert result.tool_result.payload.is_available is False
        assert result.awaiting_reply is None

    async def test_clarification_routes_back_to_itself(self, agents, mock_llm_provider) -> None:
        mock_llm_provider.queue_tool_call(
            "clarify_and_respond", message="For how many people?", response_type="clarification"
        )
        result = await agents[AgentName.TABLE_AVAILABILITY].process_message(
            "I want a table tomorrow", [], 1, _context()
        )
        assert result.awaiting_reply.next_agent == AgentName.TABLE_AVAILABILITY
        assert result.awaiting_reply.flow_state == {"venueId": 1, "bookingInProgress": True}

    async def test_greeting_does_not_await(self, agents, mock_llm_provider) -> None:
        mock_llm_provider.queue_tool_call(
            "clarify_and_respond", message="Hello!", response_type="greeting"
        )
        result = await agents[AgentName.TABLE_AVAILABILITY].process_message("hi", [], 1, _context())
        assert result.awaiting_reply is None

    async def test_invalid_parameters_do_not_await(self, agents, mock_llm_provider) -> None:
        mock_llm_provider.queue_tool_call("check_availability", date="soon", time="20:00", partySize=4)
        result = await agents[AgentName.TABLE_AVAILABILITY].process_message(
            "table soon", [], 1, _context()
        )
        assert isinstance(result.tool_result, ToolFailure)
        assert result.awaiting_reply is None


# =============================================================================
# Test: ReservationAgent
# =============================================================================
class TestReservationAgent:
    """Tests for the final booking step."""

    async def test_slots_filled_from_flow_state(self, agents, mock_llm_provider) -> None:
        mock_llm_provider.queue_tool_call(
            "create_reservation", name="Maria", email="maria@example.com", phone="+30 690 000"
        )
        result = await agents[AgentName.RESERVATION].process_message(
            "Maria, maria@example.com, +30 690 000", [], 1, _booking_context()
        )

        payload = result.tool_result.payload
        assert isinstance(payload, ReservationPayload)
        assert payload.date == "2026-10-23"
        assert payload.time == "20:00"
        assert payload.party_size == 4
        assert payload.table_type == "standard"
        assert result.awaiting_reply is None

    async def test_single_available_table_type_is_used(self, agents, mock_llm_provider) -> None:
        mock_llm_provider.queue_tool_call(
            "create_reservation", name="Maria", email="maria@example.com", phone="+30 690 000"
        )
        result = await agents[AgentName.RESERVATION].process_message(
            "book it", [], 1, _booking_context(availableTableTypes=["grass"])
        )
        assert result.tool_result.payload.table_type == "grass"

    async def test_explicit_parameters_win(self, agents, mock_llm_provider) -> None:
        mock_llm_provider.queue_tool_call(
            "create_reservation",
            name="Maria",
            email="maria@example.com",
            phone="+30 690 000",
            party_size=2,
            table_type="anniversary",
        )
        result = await agents[AgentName.RESERVATION].process_message(
            "actually just 2, anniversary table", [], 1, _booking_context()
        )
        payload = result.tool_result.payload
        assert payload.party_size == 2
        assert payload.table_type == "anniversary"

    async def test_missing_details_keep_flow_waiting(self, agents, mock_llm_provider) -> None:
        mock_llm_provider.queue_tool_call(
            "clarify_and_respond", message="May I have your email?", response_type="clarification"
        )
        result = await agents[AgentName.RESERVATION].process_message(
            "Maria", [], 1, _booking_context()
        )
        assert result.awaiting_reply.next_agent == AgentName.RESERVATION
        assert result.awaiting_reply.flow_state == {"bookingInProgress": True}

    async def test_new_availability_check_refreshes_slots(self, agents, mock_llm_provider) -> None:
        mock_llm_provider.queue_tool_call(
            "check_availability", date="2026-10-24", time="21:00", partySize=2
        )
        result = await agents[AgentName.RESERVATION].process_message(
            "Can we do the 24th at 9pm for 2 instead?", [], 1, _booking_context()
        )
        signal = result.awaiting_reply
        assert signal.next_agent == AgentName.RESERVATION
        assert signal.flow_state["date"] == "2026-10-24"
        assert signal.flow_state["availableTableTypes"] == ["standard", "grass", "anniversary"]

    async def test_no_flow_no_waiting(self, agents, mock_llm_provider) -> None:
        result = await agents[AgentName.RESERVATION].process_message("hello", [], 1, _context())
        assert result.awaiting_reply is None
