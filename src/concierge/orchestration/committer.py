"""
concierge.orchestration.committer - Side-effect Committer
===========================================================

Persists a finished booking through the ReservationStore. Invoked at most
once per turn, only for a complete ReservationPayload.

    ReservationPayload ──→ commit() ──→ store.insert_reservation()
                              │                (persistence_timeout_seconds)
                              ├── ok       → CommitOutcome(receipt)
                              └── failure  → CommitOutcome(error)   (never raises)

Idempotency:
    A payload carrying ``idempotency_key`` is inserted once; replays with
    the same key return the first receipt. The dispatcher keys every commit
    with ``booking_key()`` (session, venue and booking slots), so a guest
    re-sending the same booking in one session does not create a second
    row. Receipts are kept for the ``max_receipts`` most recent keys.
    Payloads without a key are always inserted.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
from collections import OrderedDict
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from concierge.core.exceptions import PersistenceError
from concierge.core.models import CommitReceipt
from concierge.core.tools import ReservationPayload
from concierge.infrastructure.reservation_store import ReservationStore


logger = structlog.get_logger()


def booking_key(session_id: str, venue_id: int, payload: ReservationPayload) -> str:
    """Derive a stable idempotency key for one booking in one session."""
    slots = payload.model_dump(
        mode="json",
        include={"name", "email", "phone", "date", "time", "party_size", "table_type"},
    )
    raw = json.dumps([session_id, venue_id, slots], sort_keys=True)
    return hashlib.sha256(raw.encode()).hexdigest()


class CommitOutcome(BaseModel):
    """Either a receipt or the error that prevented the insert."""

    receipt: Optional[CommitReceipt] = Field(default=None)
    error: Optional[str] = Field(default=None)

    @property
    def ok(self) -> bool:
        return self.receipt is not None


class ReservationCommitter:
    """Commits finished bookings and converts failures into outcomes."""

    def __init__(
        self,
        store: ReservationStore,
        timeout_seconds: float = 10.0,
        max_receipts: int = 1000,
    ) -> None:
        self._store = store
        self._timeout = timeout_seconds
        self._max_receipts = max_receipts
        self._receipts: OrderedDict[str, CommitReceipt] = OrderedDict()
        self._logger = logger.bind(component="committer")

    async def commit(self, payload: ReservationPayload, venue_id: int) -> CommitOutcome:
        """Insert ``payload`` for ``venue_id``. Never raises."""
        key = payload.idempotency_key
        if key and key in self._receipts:
            self._receipts.move_to_end(key)
            first = self._receipts[key]
            self._logger.info("commit_replayed", idempotency_key=key, reservation_id=first.reservation_id)
            return CommitOutcome(receipt=first.model_copy(update={"replayed": True}))

        try:
            try:
                inserted = await asyncio.wait_for(
                    self._store.insert_reservation(payload, venue_id),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError as e:
                raise PersistenceError(
                    f"Reservation insert timed out after {self._timeout}s",
                    venue_id=venue_id,
                ) from e
        except PersistenceError as e:
            self._logger.error("commit_failed", venue_id=venue_id, error=e.message)
            return CommitOutcome(error=e.message)

        receipt = CommitReceipt(reservation_id=inserted.reservation_id, created_at=inserted.created_at)
        if key:
            self._remember(key, receipt)
        self._logger.info("reservation_committed", reservation_id=receipt.reservation_id, venue_id=venue_id)
        return CommitOutcome(receipt=receipt)

    @property
    def remembered_keys(self) -> int:
        return len(self._receipts)

    def _remember(self, key: str, receipt: CommitReceipt) -> None:
        self._receipts[key] = receipt
        while len(self._receipts) > self._max_receipts:
            evicted, _ = self._receipts.popitem(last=False)
            self._logger.debug("receipt_evicted", idempotency_key=evicted)
