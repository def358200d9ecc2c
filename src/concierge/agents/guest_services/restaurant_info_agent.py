"""
concierge.agents.guest_services.restaurant_info_agent - Restaurant Info Agent
===============================================================================

The general front desk: greetings, opening hours, address, atmosphere and
anything else about the restaurant itself. It is also the planner's default
destination for small talk such as "Hello".
"""

from __future__ import annotations

from concierge.agents.base import BaseAgent


class RestaurantInfoAgent(BaseAgent):
    """Answers questions about the restaurant profile."""

    def _guidance(self) -> str:
        return (
            "For questions about opening hours, the address, the atmosphere, the cuisine "
            "or the restaurant in general call get_restaurant_info with the matching "
            "topic (hours, address, description, contact, general). For a greeting or "
            "small talk call clarify_and_respond with response_type \"greeting\" and a "
            "short welcoming message."
        )
