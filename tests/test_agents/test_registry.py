"""
Tests for concierge.agents.registry
=====================================

These tests verify the static agent table: lookups by name, tool
permissions, hand-off rules and the planner description.
"""

import pytest

from concierge.agents.registry import DEFAULT_AGENT_SPECS, AgentRegistry
from concierge.core.enums import AgentName, ToolName
from concierge.core.exceptions import UnknownAgentError


class TestAgentRegistry:
    """Tests for AgentRegistry lookups."""

    def test_six_default_agents(self) -> None:
        registry = AgentRegistry()
        assert len(registry) == 6
        assert set(registry.names) == set(AgentName)

    def test_get_by_string(self) -> None:
        spec = AgentRegistry().get("MenuPricingAgent")
        assert spec.name == AgentName.MENU_PRICING

    def test_get_unknown_raises(self) -> None:
        with pytest.raises(UnknownAgentError) as exc_info:
            AgentRegistry().get("PizzaAgent")
        assert exc_info.value.agent_name == "PizzaAgent"

    def test_resolve_and_contains(self) -> None:
        registry = AgentRegistry()
        assert registry.resolve("CelebrationAgent") == AgentName.CELEBRATION
        assert registry.resolve("PizzaAgent") is None
        assert "SupportContactAgent" in registry
        assert "PizzaAgent" not in registry

    def test_custom_specs_limit_registration(self) -> None:
        registry = AgentRegistry(specs=DEFAULT_AGENT_SPECS[:2])
        assert registry.is_registered(AgentName.TABLE_AVAILABILITY)
        assert not registry.is_registered(AgentName.SUPPORT_CONTACT)

    def test_describe_lists_every_agent(self) -> None:
        description = AgentRegistry().describe()
        for name in AgentName:
            assert f"- {name.value}:" in description


class TestAgentSpecs:
    """Tests for the default tool permissions and hand-off rules."""

    def test_every_agent_may_clarify(self) -> None:
        for spec in AgentRegistry():
            assert spec.allows(ToolName.CLARIFY_AND_RESPOND)

    def test_tool_permissions(self) -> None:
        registry = AgentRegistry()
        assert registry.get(AgentName.MENU_PRICING).allows(ToolName.GET_MENU_ITEMS)
        assert not registry.get(AgentName.MENU_PRICING).allows(ToolName.CREATE_RESERVATION)
        assert registry.get(AgentName.RESERVATION).allows(ToolName.CREATE_RESERVATION)
        assert registry.get(AgentName.SUPPORT_CONTACT).allowed_tools == frozenset(
            {ToolName.CLARIFY_AND_RESPOND}
        )

    def test_allows_plain_strings(self) -> None:
        spec = AgentRegistry().get(AgentName.MENU_PRICING)
        assert spec.allows("get_menu_items")
        assert not spec.allows("drop_tables")

    def test_booking_handoffs_target_table_availability(self) -> None:
        registry = AgentRegistry()
        assert AgentName.TABLE_AVAILABILITY in registry.get(AgentName.MENU_PRICING).handoff_rules
        assert AgentName.TABLE_AVAILABILITY in registry.get(AgentName.CELEBRATION).handoff_rules
