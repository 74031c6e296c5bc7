"""
Delivery engine for queued results.

One drain is a single pass over a snapshot of the queue:
- Records attempted within the cool-down are held back for this pass
- Each attempt is counted before it is made
- Accepted records are removed, failed ones stay queued
- Records that reach the attempt ceiling are evicted regardless of outcome

Drains are single-flight per engine instance. The engine owns no timers; the
sync trigger decides when a drain happens.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from loguru import logger

from .client import ResultSender
from .models import DrainResult, PendingResult, utc_now
from .queue import ResultQueue
from .status import StatusTracker

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_COOLDOWN_SECONDS = 60.0
DEFAULT_INTER_RECORD_DELAY_SECONDS = 0.5


class DeliveryEngine:
    """Drains the result queue against the submission endpoint."""

    def __init__(
        self,
        queue: ResultQueue,
        sender: ResultSender,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        inter_record_delay_seconds: float = DEFAULT_INTER_RECORD_DELAY_SECONDS,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.queue = queue
        self.sender = sender
        self.max_attempts = max_attempts
        self.cooldown = timedelta(seconds=cooldown_seconds)
        self.inter_record_delay_seconds = inter_record_delay_seconds
        self.clock = clock
        self.sleep = sleep

        self._draining = False

    @property
    def is_syncing(self) -> bool:
        """True only while a drain is in flight in this process."""
        return self._draining

    @property
    def tracker(self) -> StatusTracker:
        return self.queue.tracker

    def recover_stale_status(self) -> None:
        """Clear a persisted syncing flag left behind by an interrupted drain."""
        status = self.tracker.get()
        if status.is_syncing and not self._draining:
            logger.warning("Clearing stale syncing flag from an interrupted drain")
            self.tracker.update(is_syncing=False)

    def _in_cooldown(self, record: PendingResult, now: datetime) -> bool:
        if record.last_attempt_at is None:
            return False
        # A last attempt in the future (clock set back) does not hold the record
        return timedelta(0) <= now - record.last_attempt_at < self.cooldown

    async def _deliver(self, record: PendingResult) -> bool:
        try:
            return bool(await self.sender.submit(record.payload))
        except Exception as exc:
            logger.error("Delivery of result {} raised: {}", record.id, exc)
            return False

    async def drain(self) -> DrainResult | None:
        """
        Attempt every currently queued record once.

        Returns:
            Drain counts, or None if another drain is already in flight
        """
        if self._draining:
            logger.debug("Drain already in progress - skipping")
            return None

        snapshot = self.queue.pending()
        if not snapshot:
            return DrainResult()

        self._draining = True
        try:
            return await self._drain_snapshot(snapshot)
        finally:
            self._draining = False

    async def _drain_snapshot(self, snapshot: list[PendingResult]) -> DrainResult:
        logger.info("Starting sync of {} results...", len(snapshot))
        self.tracker.update(
            is_syncing=True,
            last_sync_attempt_at=self.clock(),
            last_error=None,
        )

        result = DrainResult(total=len(snapshot))
        try:
            for index, record in enumerate(snapshot):
                if self._in_cooldown(record, self.clock()):
                    logger.info("Skipping recently attempted result: {}", record.id)
                    result.failed += 1
                    result.skipped += 1
                    continue

                attempted = self.queue.record_attempt(record.id)
                if attempted is None:
                    # Removed since the snapshot was taken; not part of this drain
                    result.total -= 1
                    continue

                if await self._deliver(attempted):
                    self.queue.remove(attempted.id)
                    result.synced += 1
                else:
                    result.failed += 1
                    if attempted.attempts >= self.max_attempts:
                        logger.warning(
                            "Too many attempts ({}), removing result: {} clientResultId: {}",
                            attempted.attempts,
                            attempted.id,
                            attempted.client_result_id,
                        )
                        self.queue.remove(attempted.id)
                        result.evicted.append(attempted)

                if index < len(snapshot) - 1 and self.inter_record_delay_seconds > 0:
                    await self.sleep(self.inter_record_delay_seconds)
        finally:
            status = self.tracker.update(
                is_syncing=False,
                last_error=f"Failed to sync {result.failed} results" if result.failed else None,
            )

        logger.info(
            "Sync complete: {} synced, {} failed, {} remaining",
            result.synced,
            result.failed,
            status.pending_count,
        )
        return result
