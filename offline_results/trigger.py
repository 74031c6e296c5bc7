"""
Sync trigger for the app shell.

Two entry points drive the delivery engine:
- trigger_initial_sync(): at startup, after a settle delay, if anything is queued
- retry_sync(): user-initiated retry, immediately

Each drain is turned into a SyncNotice (syncing / success / error) that the UI
renders and the user can dismiss.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from loguru import logger

from .engine import DeliveryEngine
from .models import DrainResult


class NoticeState(str, Enum):
    """UI state of the sync notice."""

    IDLE = "idle"
    SYNCING = "syncing"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class SyncNotice:
    """What the app shell should show about offline results."""

    state: NoticeState
    message: str = ""
    pending_count: int = 0
    can_retry: bool = False


IDLE_NOTICE = SyncNotice(state=NoticeState.IDLE)


def _eviction_suffix(result: DrainResult) -> str:
    if not result.evicted:
        return ""
    return f" {len(result.evicted)} results could not be delivered and were discarded."


def notice_for(result: DrainResult) -> SyncNotice:
    """Map a drain outcome to the notice shown to the user."""
    if result.synced > 0:
        if result.failed > 0:
            message = f"Synced {result.synced} of {result.total} results"
        else:
            message = f"Successfully synced {result.synced} results"
        return SyncNotice(
            state=NoticeState.SUCCESS,
            message=message + _eviction_suffix(result),
            pending_count=result.remaining,
        )

    if result.failed > 0:
        return SyncNotice(
            state=NoticeState.ERROR,
            message=(
                f"Could not sync {result.failed} results. "
                "Check your internet connection." + _eviction_suffix(result)
            ),
            pending_count=result.remaining,
            can_retry=True,
        )

    return IDLE_NOTICE


class SyncTrigger:
    """Decides when the delivery engine runs and reports the outcome."""

    def __init__(
        self,
        engine: DeliveryEngine,
        startup_delay_seconds: float = 2.0,
        on_notice: Callable[[SyncNotice], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.engine = engine
        self.startup_delay_seconds = startup_delay_seconds
        self.on_notice = on_notice
        self.sleep = sleep

        self._notice = IDLE_NOTICE

    @property
    def notice(self) -> SyncNotice:
        """Current notice."""
        return self._notice

    def _publish(self, notice: SyncNotice) -> SyncNotice:
        self._notice = notice
        if self.on_notice:
            try:
                self.on_notice(notice)
            except Exception as exc:
                logger.warning("Notice callback failed: {}", exc)
        return notice

    def dismiss(self) -> None:
        """Close the current notice."""
        self._publish(IDLE_NOTICE)

    async def trigger_initial_sync(self) -> DrainResult | None:
        """
        Drain once at startup if results are queued.

        Returns:
            Drain counts, or None if nothing was queued or a drain was in flight
        """
        self.engine.recover_stale_status()
        if not self.engine.queue.has_pending():
            return None

        pending_count = self.engine.tracker.get().pending_count

        # Let the app finish mounting before hitting the network
        await self.sleep(self.startup_delay_seconds)

        return await self._run(f"Syncing {pending_count} results...", pending_count)

    async def retry_sync(self) -> DrainResult | None:
        """
        User-initiated retry.

        Returns:
            Drain counts, or None if a drain is already in flight
        """
        pending_count = self.engine.tracker.get().pending_count
        return await self._run(f"Retrying sync of {pending_count} results...", pending_count)

    async def _run(self, message: str, pending_count: int) -> DrainResult | None:
        if self.engine.is_syncing:
            logger.debug("Sync already in progress - not starting another")
            return None

        self._publish(SyncNotice(
            state=NoticeState.SYNCING,
            message=message,
            pending_count=pending_count,
        ))

        try:
            result = await self.engine.drain()
        except Exception as exc:
            logger.error("Sync error: {}", exc)
            self._publish(SyncNotice(
                state=NoticeState.ERROR,
                message="Sync error. Please try again later.",
                pending_count=pending_count,
                can_retry=True,
            ))
            return None

        if result is None:
            return None

        self._publish(notice_for(result))
        return result
