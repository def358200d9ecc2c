"""
Tests for concierge.infrastructure.reservation_store
======================================================

These tests verify the StoredReservation model and the
InMemoryReservationStore.

What's Being Tested:
    - Auto-increment ids starting at 1
    - get / list_by_venue / count
    - Failure simulation raising PersistenceError

All tests use InMemoryReservationStore — no external dependencies.
"""

import pytest

from concierge.core.exceptions import PersistenceError
from concierge.core.tools import ReservationPayload
from concierge.infrastructure.reservation_store import (
    InMemoryReservationStore,
    ReservationStore,
    StoredReservation,
)


# =============================================================================
# Helpers
# =============================================================================
def _payload(**overrides) -> ReservationPayload:
    """Create a standard booking payload with optional overrides."""
    defaults = {
        "name": "Maria",
        "email": "maria@example.com",
        "phone": "+30 690 000 0000",
        "date": "2026-10-23",
        "time": "20:00",
        "party_size": 4,
        "table_type": "standard",
    }
    defaults.update(overrides)
    return ReservationPayload(**defaults)


# =============================================================================
# Test: Model
# =============================================================================
class TestStoredReservation:
    """Tests for the StoredReservation model."""

    def test_created_at_defaults_to_utc(self) -> None:
        row = StoredReservation(reservation_id=1, venue_id=1, details=_payload())
        assert row.created_at.tzinfo is not None

    def test_is_a_reservation_store(self) -> None:
        assert isinstance(InMemoryReservationStore(), ReservationStore)


# =============================================================================
# Test: InMemoryReservationStore
# =============================================================================
class TestInMemoryReservationStore:
    """Tests for insert/get/list/count."""

    async def test_ids_increment_from_one(self, reservation_store) -> None:
        first = await reservation_store.insert_reservation(_payload(), venue_id=1)
        second = await reservation_store.insert_reservation(_payload(name="Nikos"), venue_id=1)
        assert first.reservation_id == 1
        assert second.reservation_id == 2
        assert await reservation_store.count() == 2

    async def test_get(self, reservation_store) -> None:
        result = await reservation_store.insert_reservation(_payload(), venue_id=1)
        row = await reservation_store.get(result.reservation_id)
        assert row.details.name == "Maria"
        assert row.venue_id == 1
        assert row.created_at == result.created_at

    async def test_get_missing(self, reservation_store) -> None:
        assert await reservation_store.get(42) is None

    async def test_list_by_venue(self, reservation_store) -> None:
        await reservation_store.insert_reservation(_payload(), venue_id=1)
        await reservation_store.insert_reservation(_payload(name="Eleni"), venue_id=2)
        await reservation_store.insert_reservation(_payload(name="Nikos"), venue_id=1)

        rows = await reservation_store.list_by_venue(1)

        assert [r.reservation_id for r in rows] == [1, 3]
        assert await reservation_store.list_by_venue(7) == []

    async def test_failure_simulation(self, reservation_store) -> None:
        reservation_store.set_should_fail(True, "database is down")
        with pytest.raises(PersistenceError, match="database is down") as exc_info:
            await reservation_store.insert_reservation(_payload(), venue_id=1)
        assert exc_info.value.error_code == "PERSISTENCE_ERROR"
        assert await reservation_store.count() == 0

    async def test_recovers_after_failure(self, reservation_store) -> None:
        reservation_store.set_should_fail(True)
        with pytest.raises(PersistenceError):
            await reservation_store.insert_reservation(_payload(), venue_id=1)
        reservation_store.set_should_fail(False)
        result = await reservation_store.insert_reservation(_payload(), venue_id=1)
        assert result.reservation_id == 1
