"""
Tests for concierge.orchestration.execution_adapter
=====================================================

These tests verify that the AgentExecutionAdapter runs agents by name and
turns unknown agents, exceptions and timeouts into apologetic results
instead of raising.

All tests are async (pytest-asyncio with asyncio_mode=auto).
"""

import asyncio

from concierge.agents.base import BaseAgent
from concierge.core.enums import AgentName
from concierge.core.models import AgentResult
from concierge.core.state import ConversationState
from concierge.orchestration.execution_adapter import (
    AGENT_ERROR_MESSAGE,
    INTERNAL_ERROR_MESSAGE,
    AgentExecutionAdapter,
)


class _ExplodingAgent(BaseAgent):
    def _guidance(self) -> str:
        return "explode"

    async def process_message(self, subtask, history, venue_id, context) -> AgentResult:
        raise RuntimeError("kaboom")


class _SleepyAgent(BaseAgent):
    def _guidance(self) -> str:
        return "sleep"

    async def process_message(self, subtask, history, venue_id, context) -> AgentResult:
        await asyncio.sleep(1)
        raise AssertionError("unreachable")


def _adapter(agents, registry, **kwargs) -> AgentExecutionAdapter:
    return AgentExecutionAdapter(agents, registry, **kwargs)


class TestAgentExecutionAdapter:
    """Tests for AgentExecutionAdapter.execute()."""

    async def test_runs_named_agent(self, agents, registry) -> None:
        state = ConversationState(session_id="s")
        result = await _adapter(agents, registry).execute(
            "RestaurantInfoAgent", "Hello", [], 1, {}, state
        )
        assert result.agent == "RestaurantInfoAgent"
        assert result.error is None

    async def test_unknown_agent(self, agents, registry) -> None:
        result = await _adapter(agents, registry).execute(
            "PizzaAgent", "pizza", [], 1, {}, ConversationState()
        )
        assert result.agent == "PizzaAgent"
        assert result.tool_result.payload.message == INTERNAL_ERROR_MESSAGE
        assert result.is_task_complete is True
        assert "PizzaAgent" in result.error

    async def test_agent_exception(self, agents, registry, mock_llm_provider, tool_executor, config) -> None:
        spec = registry.get(AgentName.MENU_PRICING)
        broken = dict(agents)
        broken[AgentName.MENU_PRICING] = _ExplodingAgent(spec, mock_llm_provider, tool_executor, config)

        result = await _adapter(broken, registry).execute(
            AgentName.MENU_PRICING, "menu", [], 1, {}, ConversationState()
        )

        assert result.agent == "MenuPricingAgent"
        assert result.tool_result.payload.message == AGENT_ERROR_MESSAGE
        assert result.error == "kaboom"
        assert result.is_task_complete is True

    async def test_agent_timeout(self, agents, registry, mock_llm_provider, tool_executor, config) -> None:
        spec = registry.get(AgentName.MENU_PRICING)
        slow = {AgentName.MENU_PRICING: _SleepyAgent(spec, mock_llm_provider, tool_executor, config)}

        result = await _adapter(slow, registry, timeout_seconds=0.01).execute(
            AgentName.MENU_PRICING, "menu", [], 1, {}, ConversationState()
        )

        assert result.tool_result.payload.message == AGENT_ERROR_MESSAGE
        assert "timed out" in result.error

    async def test_context_is_a_copy(self, agents, registry, mock_llm_provider) -> None:
        """The agent sees the global context but cannot replace the caller's dict."""
        global_context = {}
        await _adapter(agents, registry).execute(
            "MenuPricingAgent", "menu", [], 1, global_context, ConversationState()
        )
        assert global_context == {}

    def test_has_agent(self, agents, registry) -> None:
        adapter = _adapter({AgentName.MENU_PRICING: agents[AgentName.MENU_PRICING]}, registry)
        assert adapter.has_agent("MenuPricingAgent")
        assert not adapter.has_agent("CelebrationAgent")
        assert not adapter.has_agent("PizzaAgent")
