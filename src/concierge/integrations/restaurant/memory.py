"""
concierge.integrations.restaurant.memory - In-Memory Restaurant Data
======================================================================

A seeded, dict-backed RestaurantDataSource for development and tests.
The default catalogue describes one venue (id 1, a Greek taverna on the
Kos waterfront) with three table types, a small menu and four celebration
add-ons. Tests can pass their own catalogue or mark dates fully booked.

Usage:
    >>> source = InMemoryRestaurantDataSource()
    >>> tables = await source.check_availability(1, "2025-07-20", "19:00", 4)
    >>> [t.table_type for t in tables]
    ['standard', 'grass']
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from concierge.core.exceptions import ConciergeError
from concierge.core.tools import CelebrationPackage, MenuItem, TableOption
from concierge.integrations.restaurant.base import RestaurantDataSource, VenueProfile


logger = structlog.get_logger()


# =============================================================================
# Seed Catalogue
# =============================================================================
DEFAULT_VENUE = VenueProfile(
    venue_id=1,
    name="Lofaki Taverna",
    address="Kos Harbor Waterfront, 85300 Kos",
    area="Kos Harbor",
    cuisine="Traditional Greek",
    rating=4.8,
    description=(
        "Authentic Greek cuisine with fresh seafood and traditional recipes passed "
        "down through generations, with sea views over Kos Harbor."
    ),
    hours={
        "Monday": "12:00-23:00",
        "Tuesday": "12:00-23:00",
        "Wednesday": "12:00-23:00",
        "Thursday": "12:00-23:00",
        "Friday": "12:00-00:00",
        "Saturday": "12:00-00:00",
        "Sunday": "13:00-22:00",
    },
    contact={
        "owner": "Vasilis Manias",
        "email": "vasilismanias@lofaki.gr",
        "phone": "+30 22420 12345",
    },
)

DEFAULT_TABLES = [
    TableOption(table_type="standard", price=0.0, capacity=6),
    TableOption(table_type="grass", price=15.0, capacity=8),
    TableOption(table_type="anniversary", price=25.0, capacity=2),
]

DEFAULT_MENU = [
    MenuItem(name="Greek Salad", category="Appetizer", price=9.5,
             description="Tomato, cucumber, feta, olives", is_vegetarian=True, is_gluten_free=True),
    MenuItem(name="Tzatziki", category="Appetizer", price=6.0,
             description="Yogurt, cucumber and garlic dip", is_vegetarian=True, is_gluten_free=True),
    MenuItem(name="Fava", category="Appetizer", price=7.0,
             description="Yellow split pea puree with capers", is_vegan=True,
             is_vegetarian=True, is_gluten_free=True),
    MenuItem(name="Moussaka", category="Main", price=16.0,
             description="Aubergine, minced lamb and bechamel"),
    MenuItem(name="Grilled Sea Bream", category="Main", price=24.0,
             description="Whole fish of the day with lemon and olive oil", is_gluten_free=True),
    MenuItem(name="Lobster Spaghetti", category="Main", price=42.0,
             description="Fresh Aegean lobster in tomato sauce"),
    MenuItem(name="Gemista", category="Main", price=14.0,
             description="Tomatoes and peppers stuffed with herbed rice", is_vegan=True,
             is_vegetarian=True, is_gluten_free=True),
    MenuItem(name="Baklava", category="Dessert", price=7.5,
             description="Filo, walnuts and honey", is_vegetarian=True),
    MenuItem(name="Greek Yogurt with Honey", category="Dessert", price=6.5,
             description="Thyme honey and walnuts", is_vegetarian=True, is_gluten_free=True),
    MenuItem(name="Ouzo", category="Drink", price=5.0,
             description="Served with ice", is_vegan=True, is_vegetarian=True, is_gluten_free=True),
]

DEFAULT_PACKAGES = [
    CelebrationPackage(name="Celebration Cake", price=25.0,
                       description="Cake with a personalised message",
                       occasion_tags=["birthday", "anniversary", "celebration"],
                       budget_range="standard"),
    CelebrationPackage(name="Flower Arrangement", price=15.0,
                       description="Fresh flowers for your table",
                       occasion_tags=["anniversary", "romantic", "proposal"],
                       budget_range="budget"),
    CelebrationPackage(name="Champagne", price=35.0,
                       description="A bottle of champagne for toasting",
                       occasion_tags=["anniversary", "proposal", "celebration", "special_occasion"],
                       budget_range="premium"),
    CelebrationPackage(name="Table Decorations", price=20.0,
                       description="Decorations themed for the occasion",
                       occasion_tags=["birthday", "celebration", "special_occasion"],
                       budget_range="standard"),
]


class InMemoryRestaurantDataSource(RestaurantDataSource):
    """Dict-backed restaurant data.

    Attributes:
        _venues: venue_id → VenueProfile.
        _tables / _menu / _packages: Catalogue shared by every venue.
        _fully_booked: (venue_id, date) pairs with no availability.
    """

    def __init__(
        self,
        venues: Optional[list[VenueProfile]] = None,
        tables: Optional[list[TableOption]] = None,
        menu: Optional[list[MenuItem]] = None,
        packages: Optional[list[CelebrationPackage]] = None,
    ) -> None:
        self._venues = {v.venue_id: v for v in (venues or [DEFAULT_VENUE])}
        self._tables = list(tables if tables is not None else DEFAULT_TABLES)
        self._menu = list(menu if menu is not None else DEFAULT_MENU)
        self._packages = list(packages if packages is not None else DEFAULT_PACKAGES)
        self._fully_booked: set[tuple[int, str]] = set()
        self._logger = logger.bind(component="in_memory_restaurant_data")

    def mark_fully_booked(self, venue_id: int, date: str) -> None:
        self._fully_booked.add((venue_id, date))

    def venue(self, venue_id: int) -> VenueProfile:
        try:
            return self._venues[venue_id]
        except KeyError:
            raise ConciergeError(
                message=f"Unknown venue: {venue_id}",
                error_code="UNKNOWN_VENUE",
                details={"venue_id": venue_id},
            ) from None

    # =========================================================================
    # RestaurantDataSource
    # =========================================================================

    async def check_availability(
        self,
        venue_id: int,
        date: str,
        time: str,
        party_size: int,
    ) -> list[TableOption]:
        self.venue(venue_id)
        if (venue_id, date) in self._fully_booked:
            self._logger.debug("date_fully_booked", venue_id=venue_id, date=date)
            return []
        options = [t for t in self._tables if t.capacity >= party_size]
        return sorted(options, key=lambda t: t.price)

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
        self.venue(venue_id)
        items = self._menu
        if category:
            items = [i for i in items if i.category == category]
        if is_gluten_free:
            items = [i for i in items if i.is_gluten_free]
        if is_vegan:
            items = [i for i in items if i.is_vegan]
        if is_vegetarian:
            items = [i for i in items if i.is_vegetarian]
        if query:
            words = [w for w in query.lower().split() if len(w) > 2]
            matched = [
                i for i in items
                if any(w in f"{i.name} {i.description} {i.category}".lower() for w in words)
            ]
            # A broad question ("what's on the menu") matches nothing specific.
            if matched:
                items = matched
        return list(items)

    async def get_celebration_packages(
        self,
        venue_id: int,
        occasion_tags: list[str],
        budget_range: Optional[str] = None,
    ) -> list[CelebrationPackage]:
        self.venue(venue_id)
        packages = self._packages
        if occasion_tags:
            wanted = set(occasion_tags)
            packages = [p for p in packages if wanted.intersection(p.occasion_tags)]
        if budget_range:
            packages = [p for p in packages if p.budget_range == budget_range]
        return list(packages)

    async def get_restaurant_info(self, venue_id: int, topic: str) -> dict[str, Any]:
        venue = self.venue(venue_id)
        if topic == "hours":
            details: dict[str, Any] = {"hours": dict(venue.hours)}
        elif topic == "address":
            details = {"address": venue.address, "area": venue.area}
        elif topic == "description":
            details = {
                "description": venue.description,
                "cuisine": venue.cuisine,
                "rating": venue.rating,
            }
        elif topic == "contact":
            details = {"contact": dict(venue.contact)}
        else:
            details = {
                "description": venue.description,
                "cuisine": venue.cuisine,
                "address": venue.address,
                "hours": dict(venue.hours),
            }
        return {"venue_name": venue.name, "details": details}
