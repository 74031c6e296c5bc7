"""
Result queue primitives composed by the delivery engine.

Every operation is a synchronous read-modify-write of the full list held by
the record store, followed by a status recompute.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Callable

from loguru import logger

from .exceptions import ResultQueueError
from .models import PendingResult, generate_result_id, utc_now, with_client_result_id
from .status import StatusTracker
from .store import RecordStore


class ResultQueue:
    """Ordered set of pending submissions, oldest first."""

    def __init__(
        self,
        store: RecordStore,
        tracker: StatusTracker | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.tracker = tracker or StatusTracker(store)
        self.clock = clock

    def enqueue(self, payload: dict[str, Any]) -> str:
        """
        Queue a payload for later delivery.

        Args:
            payload: Result payload; a clientResultId is assigned if missing

        Returns:
            Local queue id of the new record

        Raises:
            ResultQueueError: If the record could not be persisted
        """
        records = self.store.load()
        record = PendingResult(
            id=generate_result_id(),
            created_at=self.clock(),
            payload=with_client_result_id(payload),
        )
        records.append(record)

        if not self.store.save(records):
            raise ResultQueueError(
                f"Could not persist result {record.client_result_id}"
            )
        self.tracker.update()

        logger.info(
            "Saved result offline: {} clientResultId: {}",
            record.id,
            record.client_result_id,
        )
        return record.id

    def remove(self, record_id: str) -> bool:
        """
        Remove a record from the queue.

        Returns:
            True if the record was present
        """
        records = self.store.load()
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            logger.debug("Offline result {} not in queue", record_id)
            return False

        self.store.save(remaining)
        self.tracker.update()
        logger.info("Removed offline result: {}", record_id)
        return True

    def record_attempt(self, record_id: str) -> PendingResult | None:
        """
        Count a delivery attempt before it is made.

        Returns:
            The updated record, or None if it is no longer queued
        """
        records = self.store.load()
        updated: PendingResult | None = None
        for index, record in enumerate(records):
            if record.id == record_id:
                updated = replace(
                    record,
                    attempts=record.attempts + 1,
                    last_attempt_at=self.clock(),
                )
                records[index] = updated
                break

        if updated is None:
            logger.warning("Cannot record attempt - result {} not in queue", record_id)
            return None

        self.store.save(records)
        return updated

    def get(self, record_id: str) -> PendingResult | None:
        for record in self.store.load():
            if record.id == record_id:
                return record
        return None

    def pending(self) -> list[PendingResult]:
        return self.store.load()

    def has_pending(self) -> bool:
        return len(self.store.load()) > 0

    def clear(self) -> None:
        """Drop every queued result and the status (debugging aid)."""
        self.store.clear()
