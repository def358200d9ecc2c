"""
concierge.infrastructure - Data & Infrastructure Layer
========================================================

Persistence used by the orchestration layer.

    ┌─────────────── ORCHESTRATION LAYER ─────────────────┐
    │  Dispatcher → ReservationCommitter                   │
    └─────────────────────┬───────────────────────────────┘
                          │ insert_reservation()
                          ▼
    ┌─────────────── INFRASTRUCTURE LAYER ────────────────┐
    │  ReservationStore (ABC)                              │
    │    └── InMemoryReservationStore                      │
    └──────────────────────────────────────────────────────┘

Usage:
    from concierge.infrastructure import InMemoryReservationStore
"""

from concierge.infrastructure.reservation_store import (
    InMemoryReservationStore,
    ReservationStore,
    StoredReservation,
)

__all__ = [
    "InMemoryReservationStore",
    "ReservationStore",
    "StoredReservation",
]
