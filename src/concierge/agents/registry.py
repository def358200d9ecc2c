"""
concierge.agents.registry - Agent Registry
============================================

Static table describing every specialized agent: its capability tags, the
tools it may invoke, the one-line responsibility the planner sees, its
hand-off keyword rules, and the message it falls back to when its tool
selection is rejected.

    ┌────────────────────────┬─────────────────────────────────────────────┐
    │ Agent                  │ Allowed tools                               │
    ├────────────────────────┼─────────────────────────────────────────────┤
    │ TableAvailabilityAgent │ check_availability, clarify_and_respond     │
    │ ReservationAgent       │ create_reservation, check_availability,     │
    │                        │ clarify_and_respond                         │
    │ MenuPricingAgent       │ get_menu_items, clarify_and_respond         │
    │ CelebrationAgent       │ get_celebration_packages, clarify_and_resp. │
    │ RestaurantInfoAgent    │ get_restaurant_info, clarify_and_respond    │
    │ SupportContactAgent    │ clarify_and_respond                         │
    └────────────────────────┴─────────────────────────────────────────────┘

The registry is a leaf: it depends only on core enums and exceptions.
"""

from __future__ import annotations

from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from concierge.core.enums import AgentName, ToolName
from concierge.core.exceptions import UnknownAgentError


class AgentSpec(BaseModel):
    """One registry entry.

    Attributes:
        name: Wire name of the agent.
        title: Human-readable role.
        capabilities: Capability tags.
        responsibility: One line shown to the planner.
        allowed_tools: Tools the agent may select.
        handoff_rules: Target agent → keywords that signal the guest also
            needs that agent.
        fallback_message: Clarification sent when the agent's selection
            falls outside ``allowed_tools``.
    """

    model_config = ConfigDict(frozen=True)

    name: AgentName = Field(description="Wire name of the agent")
    title: str = Field(description="Human-readable role")
    capabilities: tuple[str, ...] = Field(default=(), description="Capability tags")
    responsibility: str = Field(description="One-line responsibility for the planner prompt")
    allowed_tools: frozenset[ToolName] = Field(description="Tools the agent may select")
    handoff_rules: dict[AgentName, tuple[str, ...]] = Field(
        default_factory=dict,
        description="Target agent → keywords that call for that agent",
    )
    fallback_message: str = Field(
        default="How can I help you today?",
        description="Clarification used when a selection is rejected",
    )

    def allows(self, tool: object) -> bool:
        return tool in self.allowed_tools


_CLARIFY = ToolName.CLARIFY_AND_RESPOND

DEFAULT_AGENT_SPECS: tuple[AgentSpec, ...] = (
    AgentSpec(
        name=AgentName.TABLE_AVAILABILITY,
        title="Table Availability Specialist",
        capabilities=("availability", "capacity", "table", "biggest", "largest", "check"),
        responsibility="Checks table availability for dates, times, party sizes and table types",
        allowed_tools=frozenset({ToolName.CHECK_AVAILABILITY, _CLARIFY}),
        fallback_message="I specialize in table availability. Let me help you with that first.",
    ),
    AgentSpec(
        name=AgentName.RESERVATION,
        title="Reservation Specialist",
        capabilities=("reservation", "booking", "table", "available", "date", "time"),
        responsibility="Finalizes reservations once date, time, party size and contact details are known",
        allowed_tools=frozenset({ToolName.CREATE_RESERVATION, ToolName.CHECK_AVAILABILITY, _CLARIFY}),
        handoff_rules={
            AgentName.CELEBRATION: ("birthday", "anniversary", "celebration", "cake", "flowers"),
            AgentName.MENU_PRICING: ("what food", "menu", "dishes"),
        },
        fallback_message=(
            "I handle final reservation bookings. "
            "Do you have all the details ready to confirm your reservation?"
        ),
    ),
    AgentSpec(
        name=AgentName.MENU_PRICING,
        title="Menu & Pricing Specialist",
        capabilities=("menu", "food", "dish", "price", "cost", "diet", "cuisine"),
        responsibility="Answers questions about menu items, dietary options and prices",
        allowed_tools=frozenset({ToolName.GET_MENU_ITEMS, _CLARIFY}),
        handoff_rules={
            AgentName.TABLE_AVAILABILITY: ("book", "reserve", "sounds good", "want to book"),
            AgentName.RESTAURANT_INFO: ("about restaurant", "atmosphere"),
        },
        fallback_message="I specialize in our menu and prices. What would you like to know about our dishes?",
    ),
    AgentSpec(
        name=AgentName.CELEBRATION,
        title="Celebration & Special Occasions Specialist",
        capabilities=("celebration", "birthday", "anniversary", "special", "romantic", "cake", "flowers"),
        responsibility="Handles birthdays, anniversaries, proposals and celebration add-on packages",
        allowed_tools=frozenset({ToolName.GET_CELEBRATION_PACKAGES, _CLARIFY}),
        handoff_rules={
            AgentName.TABLE_AVAILABILITY: ("book", "reserve", "table", "sounds perfect", "lets do it"),
        },
        fallback_message="I specialize in celebrations and special occasions. What are you celebrating?",
    ),
    AgentSpec(
        name=AgentName.RESTAURANT_INFO,
        title="Restaurant Information Specialist",
        capabilities=("restaurant", "info", "hours", "atmosphere", "description"),
        responsibility="Provides restaurant information: hours, address, atmosphere, greetings and general questions",
        allowed_tools=frozenset({ToolName.GET_RESTAURANT_INFO, _CLARIFY}),
        handoff_rules={
            AgentName.TABLE_AVAILABILITY: ("book", "reserve", "table", "available"),
            AgentName.MENU_PRICING: ("menu", "dish", "food", "price", "eat"),
            AgentName.CELEBRATION: ("birthday", "anniversary"),
            AgentName.SUPPORT_CONTACT: ("problem", "complaint"),
        },
        fallback_message="I can tell you about the restaurant, our hours and our location. What would you like to know?",
    ),
    AgentSpec(
        name=AgentName.SUPPORT_CONTACT,
        title="Customer Support Specialist",
        capabilities=("support", "help", "contact", "owner", "manager", "problem", "issue"),
        responsibility="Handles complaints, contact requests and anything outside the other agents' scope",
        allowed_tools=frozenset({_CLARIFY}),
        handoff_rules={
            AgentName.RESTAURANT_INFO: ("restaurant info", "general question"),
        },
        fallback_message="I handle customer support issues. How can I help you today?",
    ),
)


class AgentRegistry:
    """Lookup table of AgentSpecs keyed by AgentName.

    Example:
        >>> registry = AgentRegistry()
        >>> registry.get("MenuPricingAgent").allows(ToolName.GET_MENU_ITEMS)
        True
        >>> registry.is_registered("PizzaAgent")
        False
    """

    def __init__(self, specs: Optional[tuple[AgentSpec, ...]] = None) -> None:
        self._specs: dict[AgentName, AgentSpec] = {
            spec.name: spec for spec in (specs if specs is not None else DEFAULT_AGENT_SPECS)
        }

    def get(self, name: object) -> AgentSpec:
        """Return the spec for ``name``.

        Raises:
            UnknownAgentError: If the name is not registered.
        """
        agent = AgentName.parse(name)
        if agent is None or agent not in self._specs:
            raise UnknownAgentError(agent_name=str(name))
        return self._specs[agent]

    def resolve(self, name: object) -> Optional[AgentName]:
        """Return the registered AgentName for ``name``, or None."""
        agent = AgentName.parse(name)
        return agent if agent in self._specs else None

    def is_registered(self, name: object) -> bool:
        return self.resolve(name) is not None

    @property
    def names(self) -> list[AgentName]:
        return list(self._specs)

    def describe(self) -> str:
        """``- Name: responsibility`` lines for the planner prompt."""
        return "\n".join(f"- {spec.name.value}: {spec.responsibility}" for spec in self)

    def __iter__(self) -> Iterator[AgentSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return self.is_registered(name)
