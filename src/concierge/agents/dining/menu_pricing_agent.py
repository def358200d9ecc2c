"""
concierge.agents.dining.menu_pricing_agent - Menu & Pricing Agent
===================================================================

Answers questions about dishes, dietary options and prices by searching
the menu. When the guest also asks to book ("sounds good, I want to book"),
the booking part is handed off to the TableAvailabilityAgent through the
registry's hand-off rules.
"""

from __future__ import annotations

from concierge.agents.base import BaseAgent


class MenuPricingAgent(BaseAgent):
    """Searches the menu with optional dietary and category filters."""

    def _guidance(self) -> str:
        return (
            "Call get_menu_items for any question about food, drinks, dishes, dietary "
            "needs or prices. Set is_vegan, is_vegetarian or is_gluten_free only when the "
            "guest mentions that requirement, and category only when they ask for a "
            "section (Main, Appetizer, Dessert, Drink). Put specific dish words in query; "
            "leave query empty for general menu questions."
        )
