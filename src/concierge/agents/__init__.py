"""
concierge.agents - Restaurant Agent Layer
===========================================

This package contains the agent framework and the six restaurant agents.
The agent layer sits between the orchestration layer (which plans and
dispatches subtasks) and the integration layer (which agents read from).

Architecture:
    ┌─────────────── ORCHESTRATION LAYER ─────────────────┐
    │  Planner, Dispatcher, HandoffResolver, Consolidator  │
    └─────────────────────┬───────────────────────────────┘
                          │ dispatches subtasks
                          ▼
    ┌─────────────── AGENT LAYER ─────────────────────────┐
    │                                                      │
    │  AgentRegistry (names, tools, hand-off rules)        │
    │  BaseAgent (abstract) + ToolExecutor                 │
    │    ├── booking/                                      │
    │    │   ├── TableAvailabilityAgent                    │
    │    │   └── ReservationAgent                          │
    │    ├── dining/                                       │
    │    │   ├── MenuPricingAgent                          │
    │    │   └── CelebrationAgent                          │
    │    └── guest_services/                               │
    │        ├── RestaurantInfoAgent                       │
    │        └── SupportContactAgent                       │
    │                                                      │
    └──────────────────────────────────────────────────────┘
                          │ uses
                          ▼
    ┌─────────────── INTEGRATION LAYER ───────────────────┐
    │  LLM Providers, Restaurant Data Source               │
    └──────────────────────────────────────────────────────┘

Usage:
    from concierge.agents import AgentRegistry, build_agents
"""

from __future__ import annotations

from concierge.agents.base import BaseAgent, ToolSelection, summarize_tool_result
from concierge.agents.booking import ReservationAgent, TableAvailabilityAgent
from concierge.agents.dining import CelebrationAgent, MenuPricingAgent
from concierge.agents.guest_services import RestaurantInfoAgent, SupportContactAgent
from concierge.agents.registry import DEFAULT_AGENT_SPECS, AgentRegistry, AgentSpec
from concierge.agents.tools import ToolExecutor
from concierge.core.config import OrchestratorConfig
from concierge.core.enums import AgentName
from concierge.integrations.llm.base import BaseLLMProvider


AGENT_CLASSES: dict[AgentName, type[BaseAgent]] = {
    AgentName.TABLE_AVAILABILITY: TableAvailabilityAgent,
    AgentName.RESERVATION: ReservationAgent,
    AgentName.MENU_PRICING: MenuPricingAgent,
    AgentName.CELEBRATION: CelebrationAgent,
    AgentName.RESTAURANT_INFO: RestaurantInfoAgent,
    AgentName.SUPPORT_CONTACT: SupportContactAgent,
}


def build_agents(
    registry: AgentRegistry,
    llm_provider: BaseLLMProvider,
    tool_executor: ToolExecutor,
    config: OrchestratorConfig,
) -> dict[AgentName, BaseAgent]:
    """Instantiate one agent per registered spec."""
    return {
        spec.name: AGENT_CLASSES[spec.name](spec, llm_provider, tool_executor, config)
        for spec in registry
    }


__all__ = [
    "AGENT_CLASSES",
    "AgentRegistry",
    "AgentSpec",
    "BaseAgent",
    "CelebrationAgent",
    "DEFAULT_AGENT_SPECS",
    "MenuPricingAgent",
    "ReservationAgent",
    "RestaurantInfoAgent",
    "SupportContactAgent",
    "TableAvailabilityAgent",
    "ToolExecutor",
    "ToolSelection",
    "build_agents",
    "summarize_tool_result",
]
