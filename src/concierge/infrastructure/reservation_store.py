"""
concierge.infrastructure.reservation_store - Reservation Persistence Layer
============================================================================

The persistence collaborator behind the Side-effect Committer. Storing a
finished booking is the only write the orchestrator ever triggers.

Architecture Context:

    ┌──────────────────────┐  ReservationPayload  ┌───────────────────────┐
    │ ReservationCommitter │ ───────────────────→ │  ReservationStore     │
    │ (orchestration)      │ ←── InsertResult ─── │  (ABC)                │
    └──────────────────────┘                      │   └── InMemory...     │
                                                  └───────────────────────┘

Storage Implementations:
    - InMemoryReservationStore: Dict-based, for development/testing
      (auto-increment ids, optional failure simulation)

Usage:
    >>> store = InMemoryReservationStore()
    >>> result = await store.insert_reservation(payload, venue_id=1)
    >>> result.reservation_id
    1
    >>> stored = await store.get(result.reservation_id)
"""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from concierge.core.exceptions import PersistenceError
from concierge.core.models import InsertResult
from concierge.core.tools import ReservationPayload


logger = structlog.get_logger()


# =============================================================================
# Stored Reservation Model
# =============================================================================
class StoredReservation(BaseModel):
    """A reservation row as kept by the store.

    Attributes:
        reservation_id: Auto-assigned primary key.
        venue_id: Restaurant the booking belongs to.
        details: The booking payload that was committed.
        created_at: When the row was inserted (UTC).
    """

    reservation_id: int = Field(description="Primary key")
    venue_id: int = Field(description="Restaurant the booking belongs to")
    details: ReservationPayload = Field(description="Committed booking payload")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the row was inserted (UTC)",
    )


# =============================================================================
# Abstract Base Class
# =============================================================================
class ReservationStore(ABC):
    """Abstract interface for reservation persistence.

    Methods:
        insert_reservation(details, venue_id): Store a booking.
        get(reservation_id): Retrieve a booking by id.
        list_by_venue(venue_id): All bookings for a restaurant.
        count(): Number of stored bookings.
    """

    @abstractmethod
    async def insert_reservation(
        self,
        details: ReservationPayload,
        venue_id: int,
    ) -> InsertResult:
        """Persist a finished booking.

        Raises:
            PersistenceError: If the booking could not be stored.
        """
        ...

    @abstractmethod
    async def get(self, reservation_id: int) -> Optional[StoredReservation]:
        ...

    @abstractmethod
    async def list_by_venue(self, venue_id: int) -> list[StoredReservation]:
        ...

    @abstractmethod
    async def count(self) -> int:
        ...


# =============================================================================
# In-Memory Implementation
# =============================================================================
class InMemoryReservationStore(ReservationStore):
    """In-memory reservation store for development and testing.

    Ids are assigned from an increasing counter starting at 1. Failure
    simulation (``set_should_fail``) lets tests exercise the committer's
    ``insertError`` path.

    Example:
        >>> store = InMemoryReservationStore()
        >>> store.set_should_fail(True, "database is down")
        >>> await store.insert_reservation(payload, venue_id=1)
        Traceback (most recent call last):
        PersistenceError: database is down
    """

    def __init__(self) -> None:
        self._store: dict[int, StoredReservation] = {}
        self._ids = itertools.count(1)
        self._should_fail = False
        self._failure_message = "Reservation insert failed"
        self._logger = logger.bind(component="in_memory_reservation_store")

    def set_should_fail(self, should_fail: bool, message: str = "Reservation insert failed") -> None:
        self._should_fail = should_fail
        self._failure_message = message

    async def insert_reservation(
        self,
        details: ReservationPayload,
        venue_id: int,
    ) -> InsertResult:
        if self._should_fail:
            raise PersistenceError(message=self._failure_message, venue_id=venue_id)

        reservation_id = next(self._ids)
        row = StoredReservation(reservation_id=reservation_id, venue_id=venue_id, details=details)
        self._store[reservation_id] = row

        self._logger.info(
            "reservation_inserted",
            reservation_id=reservation_id,
            venue_id=venue_id,
            date=details.date,
            time=details.time,
            party_size=details.party_size,
        )
        return InsertResult(reservation_id=reservation_id, created_at=row.created_at)

    async def get(self, reservation_id: int) -> Optional[StoredReservation]:
        return self._store.get(reservation_id)

    async def list_by_venue(self, venue_id: int) -> list[StoredReservation]:
        rows = [r for r in self._store.values() if r.venue_id == venue_id]
        return sorted(rows, key=lambda r: r.reservation_id)

    async def count(self) -> int:
        return len(self._store)
