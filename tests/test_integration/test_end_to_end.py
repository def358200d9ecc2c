"""
End-to-End Integration Tests for Concierge
============================================

These tests exercise the full ConciergeAI pipeline from the facade down
through planning, agents, tools, consolidation and commits. Only the LLM
is mocked; every other component is the real in-memory implementation.

Each turn's LLM calls happen in a fixed order (planner, each agent's tool
selection, narrator), so a test scripts a turn by queueing responses in
that order. Anything not queued falls back to the mock's smart defaults.

Test Scenarios:
    1. Greeting → one RestaurantInfoAgent step
    2. Multi-intent question → two steps, both in the global context
    3. Topic switch during a booking → flow interrupted
    4. Resume request → booking flow restored
    5. Complete booking → redirect with a reservation id
    6. Planner garbage → heuristic plan, well-formed reply
    7. Full two-turn booking, contact-detail answers and a failed insert
"""

from __future__ import annotations

import pytest

from concierge.core.config import OrchestratorConfig
from concierge.core.enums import AgentName, PlanSource
from concierge.facade import ConciergeAI
from concierge.infrastructure.reservation_store import InMemoryReservationStore
from concierge.integrations.llm.mock import MockLLMProvider


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def mock_provider():
    return MockLLMProvider()


@pytest.fixture
def store():
    return InMemoryReservationStore()


@pytest.fixture
async def concierge(mock_provider, store):
    async with ConciergeAI(
        OrchestratorConfig(),
        llm_provider=mock_provider,
        reservation_store=store,
    ) as instance:
        yield instance


def _plan(*steps):
    return [
        {"step": i + 1, "agent_to_use": agent, "sub_task_query": query}
        for i, (agent, query) in enumerate(steps)
    ]


async def _open_booking(concierge, mock_provider, session_id: str) -> None:
    """Run a turn that finds tables for 4 and leaves the booking waiting."""
    mock_provider.queue_json(_plan(("TableAvailabilityAgent", "A table for 4 on 2026-10-23 at 20:00")))
    mock_provider.queue_tool_call("check_availability", date="2026-10-23", time="20:00", partySize=4)
    await concierge.process_message(
        "I'd like a table for 4 on 2026-10-23 at 20:00", session_id=session_id
    )


# =============================================================================
# Scenario 1: Greeting
# =============================================================================
class TestGreeting:
    """A greeting is planned to the RestaurantInfoAgent."""

    async def test_hello(self, concierge, mock_provider):
        mock_provider.queue_json(_plan(("RestaurantInfoAgent", "Hello")))
        mock_provider.queue_tool_call(
            "clarify_and_respond",
            message="Welcome to Lofaki Taverna! How can I help you today?",
            response_type="greeting",
        )

        reply = await concierge.process_message("Hello", history=[])
        data = reply.to_dict()

        assert reply.plan.agents == [AgentName.RESTAURANT_INFO]
        assert reply.plan.steps[0].sub_task_query == "Hello"
        assert data["type"] == "message"
        assert len(data["orchestrator"]["delegationChain"]) == 1
        assert data["orchestrator"]["finalAgent"] == "RestaurantInfoAgent"

    async def test_hello_with_smart_defaults(self, concierge, mock_provider):
        """Without scripting, the mock's default plan gives the same shape."""
        reply = await concierge.process_message("Hello")

        assert reply.plan.steps[0].sub_task_query == "Hello"
        assert reply.orchestrator["totalAgentsInvolved"] == 1
        assert mock_provider.call_count == 3


# =============================================================================
# Scenario 2: Multi-intent
# =============================================================================
class TestMultiIntent:
    """One utterance spanning the menu and a table."""

    async def test_menu_and_table(self, concierge, mock_provider):
        mock_provider.queue_json(_plan(
            ("MenuPricingAgent", "What's on the menu?"),
            ("TableAvailabilityAgent", "Table for 4 on Friday at 8pm"),
        ))
        mock_provider.queue_tool_call("get_menu_items")
        mock_provider.queue_tool_call("check_availability", date="2026-10-23", time="20:00", partySize=4)

        reply = await concierge.process_message(
            "What's on the menu and do you have a table for 4 on Friday at 8pm?",
            session_id="multi",
        )

        chain = reply.orchestrator["delegationChain"]
        assert [step["agent"] for step in chain] == ["MenuPricingAgent", "TableAvailabilityAgent"]
        assert set(reply.orchestrator["globalContext"]) == {
            "MenuPricingAgent",
            "TableAvailabilityAgent",
        }
        assert reply.orchestrator["isConsolidated"] is True
        assert mock_provider.call_count == 4


# =============================================================================
# Scenarios 3 & 4: Interrupt and resume
# =============================================================================
class TestInterruptAndResume:
    """A guest steps away from a booking and comes back to it."""

    async def test_interrupt_then_resume(self, concierge, mock_provider):
        await _open_booking(concierge, mock_provider, "guest")
        state = await concierge.get_conversation_state("guest")
        assert state.booking_in_progress is True
        assert state.active_agent == AgentName.RESERVATION
        booking_slots = dict(state.flow_state)

        # --- Scenario 3: topic switch ---
        mock_provider.queue_json(_plan(("RestaurantInfoAgent", "What's the owner's phone number?")))
        mock_provider.queue_tool_call("get_restaurant_info", topic="contact")
        reply = await concierge.process_message("what's the owner's phone number", session_id="guest")

        state = await concierge.get_conversation_state("guest")
        assert state.interrupted_context is not None
        assert state.interrupted_context.agent == AgentName.RESERVATION
        assert state.interrupted_context.flow_state_snapshot == booking_slots
        assert state.flow_state == {}
        assert state.active_agent != AgentName.RESERVATION
        assert state.is_awaiting_user_response is False

        # --- Scenario 4: resume ---
        calls_before = mock_provider.call_count
        reply = await concierge.process_message("yes, continue the reservation", session_id="guest")

        state = await concierge.get_conversation_state("guest")
        assert state.interrupted_context is None
        assert state.flow_state == booking_slots
        assert state.next_agent == AgentName.RESERVATION
        assert reply.plan.source == PlanSource.RESUME
        # no planner call: tool selection and narration only
        assert mock_provider.call_count - calls_before == 2

    async def test_sessions_do_not_share_bookings(self, concierge, mock_provider):
        await _open_booking(concierge, mock_provider, "alice")
        other = await concierge.get_conversation_state("bob")
        assert other.booking_in_progress is False
        assert other.interrupted_context is None


# =============================================================================
# Scenario 5: Complete booking
# =============================================================================
class TestCompleteBooking:
    """A complete reservation payload short-circuits consolidation."""

    async def test_redirect(self, concierge, mock_provider, store):
        mock_provider.queue_json(_plan(("ReservationAgent", "Book a table for Maria")))
        mock_provider.queue_tool_call(
            "create_reservation",
            name="Maria Papadopoulou",
            email="maria@example.com",
            phone="+30 690 000 0000",
            date="2026-10-23",
            time="20:00",
            partySize=2,
            tableType="anniversary",
        )

        reply = await concierge.process_message(
            "Book the anniversary table for 2 on 2026-10-23 at 20:00 for Maria Papadopoulou, "
            "maria@example.com, +30 690 000 0000",
            session_id="booker",
        )
        data = reply.to_dict()

        assert data["type"] == "redirect"
        assert data["reservationDetails"]["reservationId"] is not None
        assert data["reservationDetails"]["reservation"]["tableType"] == "anniversary"
        assert "insertError" not in data
        assert await store.count() == 1
        # planner and tool selection only: the narrator is skipped
        assert mock_provider.call_count == 2

    async def test_two_turn_booking(self, concierge, mock_provider, store):
        await _open_booking(concierge, mock_provider, "guest")
        mock_provider.queue_tool_call(
            "create_reservation",
            name="Nikos",
            email="nikos@example.com",
            phone="+30 691 111 1111",
            tableType="grass",
        )

        reply = await concierge.process_message(
            "Grass table please. Nikos, nikos@example.com, +30 691 111 1111", session_id="guest"
        )

        assert reply.reservation_details["reservation"] == {
            "date": "2026-10-23",
            "time": "20:00",
            "partySize": 4,
            "tableType": "grass",
        }
        state = await concierge.get_conversation_state("guest")
        assert state.booking_in_progress is False
        assert state.is_awaiting_user_response is False
        stored = await store.get(reply.reservation_details["reservationId"])
        assert stored.details.name == "Nikos"

    @pytest.mark.parametrize(
        "answer",
        [
            "My name is Nikos, my email is nikos@example.com and my phone is 6911111111",
            "Grass table please, it's for my wife's birthday. Nikos, nikos@example.com, 6911111111",
        ],
    )
    async def test_answer_with_contact_words_stays_in_booking(
        self, concierge, mock_provider, store, answer
    ):
        await _open_booking(concierge, mock_provider, "guest")
        mock_provider.queue_tool_call(
            "create_reservation",
            name="Nikos",
            email="nikos@example.com",
            phone="6911111111",
            tableType="grass",
        )

        reply = await concierge.process_message(answer, session_id="guest")

        assert reply.plan.source == PlanSource.DIRECT_REPLY
        assert reply.type.value == "redirect"
        state = await concierge.get_conversation_state("guest")
        assert state.interrupted_context is None
        assert await store.count() == 1

    async def test_insert_error(self, concierge, mock_provider, store):
        store.set_should_fail(True, "connection refused")
        await _open_booking(concierge, mock_provider, "guest")
        mock_provider.queue_tool_call(
            "create_reservation", name="Nikos", email="nikos@example.com", phone="+30 691 111 1111"
        )

        data = (
            await concierge.process_message("Nikos, nikos@example.com, +30 691 111 1111", session_id="guest")
        ).to_dict()

        assert data["type"] == "message"
        assert data["insertError"] == "connection refused"
        assert "reservationDetails" not in data
        assert await store.count() == 0


# =============================================================================
# Scenario 6: Planner fallback
# =============================================================================
class TestPlannerFallback:
    """Unusable planner output never reaches the caller."""

    async def test_invalid_json(self, concierge, mock_provider):
        mock_provider.queue_response("not json at all")

        reply = await concierge.process_message("Do you have anything gluten free on the menu?")
        data = reply.to_dict()

        assert reply.plan.source == PlanSource.FALLBACK
        assert reply.plan.agents == [AgentName.MENU_PRICING]
        assert data["type"] == "message"
        assert data["response"]
        assert "error" not in data["orchestrator"]

    async def test_llm_down_still_answers(self, concierge, mock_provider):
        """Planner, selectors and narrator all fail; the turn still completes."""
        mock_provider.set_should_fail(True, "LLM unavailable")

        reply = await concierge.process_message("When do you open?")

        assert reply.type.value == "message"
        assert reply.orchestrator["isConsolidated"] is False
        assert reply.orchestrator["totalAgentsInvolved"] == 1
