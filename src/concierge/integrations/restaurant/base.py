"""
concierge.integrations.restaurant.base - Restaurant Data Source Interface
===========================================================================

The business data behind the agents' tools: table inventory, menu,
celebration packages and the restaurant profile. Agents never query it
directly; the ToolExecutor calls it after a tool's parameters validated.

    ┌──────────────┐  execute_tool()  ┌──────────────┐  search_menu() ...  ┌──────────────────────┐
    │ Agent (act)  │ ───────────────→ │ ToolExecutor │ ──────────────────→ │ RestaurantDataSource │
    └──────────────┘                  └──────────────┘                     └──────────────────────┘
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field

from concierge.core.tools import CelebrationPackage, MenuItem, TableOption


class VenueProfile(BaseModel):
    """Static profile of a restaurant."""

    venue_id: int
    name: str
    address: str = ""
    area: str = ""
    cuisine: str = ""
    rating: Optional[float] = None
    description: str = ""
    hours: dict[str, str] = Field(default_factory=dict, description="Day → 'HH:MM-HH:MM'")
    contact: dict[str, str] = Field(default_factory=dict, description="Owner name/email/phone")


class RestaurantDataSource(ABC):
    """Abstract interface for restaurant business data.

    Every method raises ConciergeError (error_code "UNKNOWN_VENUE") for a
    venue it does not know.
    """

    @abstractmethod
    async def check_availability(
        self,
        venue_id: int,
        date: str,
        time: str,
        party_size: int,
    ) -> list[TableOption]:
        """Table types that can seat ``party_size`` at the slot (empty if none)."""
        ...

    @abstractmethod
    async def search_menu(
        self,
        venue_id: int,
        *,
        query: Optional[str] = None,
        is_gluten_free: Optional[bool] = None,
        is_vegan: Optional[bool] = None,
        is_vegetarian: Optional[bool] = None,
        category: Optional[str] = None,
    ) -> list[MenuItem]:
        ...

    @abstractmethod
    async def get_celebration_packages(
        self,
        venue_id: int,
        occasion_tags: list[str],
        budget_range: Optional[str] = None,
    ) -> list[CelebrationPackage]:
        ...

    @abstractmethod
    async def get_restaurant_info(self, venue_id: int, topic: str) -> dict[str, Any]:
        """Topic-specific facts plus ``venue_name``."""
        ...
