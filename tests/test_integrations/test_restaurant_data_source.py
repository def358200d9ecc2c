"""
Tests for concierge.integrations.restaurant
=============================================

These tests verify the seeded InMemoryRestaurantDataSource: availability,
menu search, celebration packages, restaurant info and unknown venues.

All tests are async (pytest-asyncio with asyncio_mode=auto).
"""

import pytest

from concierge.core.exceptions import ConciergeError
from concierge.core.tools import TableOption
from concierge.integrations.restaurant import InMemoryRestaurantDataSource


# =============================================================================
# Test: Availability
# =============================================================================
class TestAvailability:
    """Tests for check_availability()."""

    async def test_tables_sorted_by_price(self, data_source) -> None:
        tables = await data_source.check_availability(1, "2026-10-23", "20:00", 4)
        assert [t.table_type for t in tables] == ["standard", "grass"]

    async def test_small_party_gets_every_table(self, data_source) -> None:
        tables = await data_source.check_availability(1, "2026-10-23", "20:00", 2)
        assert [t.table_type for t in tables] == ["standard", "grass", "anniversary"]

    async def test_party_too_large(self, data_source) -> None:
        assert await data_source.check_availability(1, "2026-10-23", "20:00", 12) == []

    async def test_fully_booked_date(self, data_source) -> None:
        data_source.mark_fully_booked(1, "2026-12-31")
        assert await data_source.check_availability(1, "2026-12-31", "20:00", 2) == []
        assert await data_source.check_availability(1, "2026-12-30", "20:00", 2)

    async def test_custom_tables(self) -> None:
        source = InMemoryRestaurantDataSource(
            tables=[TableOption(table_type="terrace", price=10, capacity=4)]
        )
        tables = await source.check_availability(1, "2026-10-23", "20:00", 4)
        assert [t.table_type for t in tables] == ["terrace"]


# =============================================================================
# Test: Menu
# =============================================================================
class TestMenu:
    """Tests for search_menu()."""

    async def test_whole_menu(self, data_source) -> None:
        items = await data_source.search_menu(1)
        assert len(items) == 10
        assert max(items, key=lambda i: i.price).name == "Lobster Spaghetti"

    async def test_gluten_free_mains(self, data_source) -> None:
        items = await data_source.search_menu(1, is_gluten_free=True, category="Main")
        assert sorted(i.name for i in items) == ["Gemista", "Grilled Sea Bream"]

    async def test_query_matches_words(self, data_source) -> None:
        items = await data_source.search_menu(1, query="lobster")
        assert [i.name for i in items] == ["Lobster Spaghetti"]

    async def test_unmatched_query_returns_everything(self, data_source) -> None:
        items = await data_source.search_menu(1, query="xyz qqq")
        assert len(items) == 10


# =============================================================================
# Test: Celebrations
# =============================================================================
class TestCelebrationPackages:
    """Tests for get_celebration_packages()."""

    async def test_birthday(self, data_source) -> None:
        packages = await data_source.get_celebration_packages(1, ["birthday"])
        assert [p.name for p in packages] == ["Celebration Cake", "Table Decorations"]

    async def test_budget_filter(self, data_source) -> None:
        packages = await data_source.get_celebration_packages(1, ["anniversary"], "premium")
        assert [p.name for p in packages] == ["Champagne"]

    async def test_no_tags_returns_all(self, data_source) -> None:
        assert len(await data_source.get_celebration_packages(1, [])) == 4


# =============================================================================
# Test: Restaurant info
# =============================================================================
class TestRestaurantInfo:
    """Tests for get_restaurant_info()."""

    async def test_contact(self, data_source) -> None:
        info = await data_source.get_restaurant_info(1, "contact")
        assert info["venue_name"] == "Lofaki Taverna"
        assert info["details"]["contact"]["owner"] == "Vasilis Manias"

    async def test_hours(self, data_source) -> None:
        info = await data_source.get_restaurant_info(1, "hours")
        assert info["details"]["hours"]["Sunday"] == "13:00-22:00"

    async def test_general(self, data_source) -> None:
        info = await data_source.get_restaurant_info(1, "general")
        assert set(info["details"]) == {"description", "cuisine", "address", "hours"}


# =============================================================================
# Test: Unknown venue
# =============================================================================
class TestUnknownVenue:
    """Every lookup rejects venues that are not seeded."""

    async def test_unknown_venue(self, data_source) -> None:
        with pytest.raises(ConciergeError) as exc_info:
            await data_source.search_menu(99)
        assert exc_info.value.error_code == "UNKNOWN_VENUE"
        assert exc_info.value.details["venue_id"] == 99
