"""
Tests for concierge.agents.guest_services
===========================================

These tests verify the RestaurantInfoAgent and the SupportContactAgent.

All tests are async (pytest-asyncio with asyncio_mode=auto).
"""

from concierge.agents import AgentRegistry, ToolExecutor, build_agents
from concierge.core.enums import AgentName
from concierge.core.tools import ClarificationPayload, RestaurantInfoPayload
from concierge.integrations.restaurant import InMemoryRestaurantDataSource
from concierge.integrations.restaurant.base import VenueProfile


class TestRestaurantInfoAgent:
    """Tests for restaurant profile questions."""

    async def test_hours(self, agents, mock_llm_provider, agent_context) -> None:
        mock_llm_provider.queue_tool_call("get_restaurant_info", topic="hours")
        result = await agents[AgentName.RESTAURANT_INFO].process_message(
            "When do you close on Saturday?", [], 1, agent_context
        )
        payload = result.tool_result.payload
        assert isinstance(payload, RestaurantInfoPayload)
        assert payload.details["hours"]["Saturday"] == "12:00-00:00"

    async def test_greeting(self, agents, mock_llm_provider, agent_context) -> None:
        mock_llm_provider.queue_tool_call(
            "clarify_and_respond", message="Welcome to Lofaki Taverna!", response_type="greeting"
        )
        result = await agents[AgentName.RESTAURANT_INFO].process_message(
            "Hello", [], 1, agent_context
        )
        assert result.tool_result.payload.response_type == "greeting"
        assert result.is_task_complete is True

    async def test_menu_question_handed_off(self, agents, mock_llm_provider, agent_context) -> None:
        mock_llm_provider.queue_tool_call("get_restaurant_info", topic="hours")
        result = await agents[AgentName.RESTAURANT_INFO].process_message(
            "What time do you open? And what food do you have?", [], 1, agent_context
        )
        assert result.handoff_suggestion == "MenuPricingAgent"
        assert result.unanswered_query == "And what food do you have?"


class TestSupportContactAgent:
    """Tests for support requests."""

    async def test_contact_details_in_prompt(self, agents, mock_llm_provider, agent_context) -> None:
        await agents[AgentName.SUPPORT_CONTACT].process_message(
            "I have a complaint", [], 1, agent_context
        )
        prompt = mock_llm_provider.call_history[0]["prompt"]
        assert "Contact details for Lofaki Taverna:" in prompt
        assert "- owner: Vasilis Manias" in prompt
        assert "- phone: +30 22420 12345" in prompt

    async def test_unknown_venue_omits_contact_details(
        self, agents, mock_llm_provider, agent_context
    ) -> None:
        await agents[AgentName.SUPPORT_CONTACT].process_message(
            "I have a complaint", [], 42, agent_context
        )
        assert "Contact details" not in mock_llm_provider.call_history[0]["prompt"]

    async def test_venue_without_contact(self, config, mock_llm_provider, agent_context) -> None:
        source = InMemoryRestaurantDataSource(venues=[VenueProfile(venue_id=1, name="Bare")])
        agents = build_agents(AgentRegistry(), mock_llm_provider, ToolExecutor(source), config)
        await agents[AgentName.SUPPORT_CONTACT].process_message("help", [], 1, agent_context)
        assert "Contact details" not in mock_llm_provider.call_history[0]["prompt"]

    async def test_answers_with_clarification(self, agents, mock_llm_provider, agent_context) -> None:
        mock_llm_provider.queue_tool_call(
            "clarify_and_respond",
            message="Please contact Vasilis Manias at +30 22420 12345.",
            response_type="general_info",
        )
        result = await agents[AgentName.SUPPORT_CONTACT].process_message(
            "what's the owner's phone number", [], 1, agent_context
        )
        assert isinstance(result.tool_result.payload, ClarificationPayload)
        assert result.tool_result.payload.response_type == "general_info"

    async def test_other_tools_rejected(self, agents, mock_llm_provider, agent_context) -> None:
        mock_llm_provider.queue_tool_call("get_menu_items")
        agent = agents[AgentName.SUPPORT_CONTACT]
        result = await agent.process_message("menu", [], 1, agent_context)
        assert result.tool_result.payload.message == agent.spec.fallback_message
