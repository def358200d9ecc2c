"""
concierge.agents.guest_services - Guest Service Agents
========================================================

    - RestaurantInfoAgent:  greetings, hours, address, atmosphere
    - SupportContactAgent:  complaints and support, owner contact details
"""

from concierge.agents.guest_services.restaurant_info_agent import RestaurantInfoAgent
from concierge.agents.guest_services.support_contact_agent import SupportContactAgent

__all__ = [
    "RestaurantInfoAgent",
    "SupportContactAgent",
]
