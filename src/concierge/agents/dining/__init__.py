"""
concierge.agents.dining - Dining Agents
=========================================

    - MenuPricingAgent:  menu items, dietary needs, prices
    - CelebrationAgent:  special occasions and celebration add-ons
"""

from concierge.agents.dining.celebration_agent import CelebrationAgent
from concierge.agents.dining.menu_pricing_agent import MenuPricingAgent

__all__ = [
    "CelebrationAgent",
    "MenuPricingAgent",
]
