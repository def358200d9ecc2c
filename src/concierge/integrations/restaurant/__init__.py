"""
concierge.integrations.restaurant - Restaurant Business Data
==============================================================

    - RestaurantDataSource: Abstract interface used by the ToolExecutor.
    - InMemoryRestaurantDataSource: Seeded catalogue for development/tests.
"""

from concierge.integrations.restaurant.base import RestaurantDataSource, VenueProfile
from concierge.integrations.restaurant.memory import InMemoryRestaurantDataSource

__all__ = [
    "InMemoryRestaurantDataSource",
    "RestaurantDataSource",
    "VenueProfile",
]
