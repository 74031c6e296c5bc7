"""Wiring of store, queue, engine and trigger from settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .client import SubmissionClient
from .config import Settings, get_settings
from .engine import DeliveryEngine
from .queue import ResultQueue
from .status import StatusTracker
from .store import RecordStore, build_store
from .submitter import ResultSubmitter
from .trigger import SyncNotice, SyncTrigger


@dataclass
class OfflineResultsPipeline:
    """All collaborators of one app-shell instance."""

    store: RecordStore
    tracker: StatusTracker
    queue: ResultQueue
    client: SubmissionClient
    engine: DeliveryEngine
    trigger: SyncTrigger
    submitter: ResultSubmitter

    async def __aenter__(self) -> "OfflineResultsPipeline":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.close()


def create_pipeline(
    settings: Settings | None = None,
    store: RecordStore | None = None,
    on_notice: Callable[[SyncNotice], None] | None = None,
) -> OfflineResultsPipeline:
    """
    Build a pipeline from settings.

    Args:
        settings: Settings to use (defaults to get_settings())
        store: Store override (defaults to the configured backend)
        on_notice: Callback receiving every sync notice
    """
    settings = settings or get_settings()
    store = store or build_store(settings)
    tracker = StatusTracker(store)
    queue = ResultQueue(store, tracker)
    client = SubmissionClient(
        settings.results_url,
        token=settings.api_token,
        timeout_seconds=settings.request_timeout_seconds,
    )
    engine = DeliveryEngine(
        queue,
        client,
        max_attempts=settings.max_attempts,
        cooldown_seconds=settings.cooldown_seconds,
        inter_record_delay_seconds=settings.inter_record_delay_seconds,
    )
    trigger = SyncTrigger(
        engine,
        startup_delay_seconds=settings.startup_delay_seconds,
        on_notice=on_notice,
    )
    return OfflineResultsPipeline(
        store=store,
        tracker=tracker,
        queue=queue,
        client=client,
        engine=engine,
        trigger=trigger,
        submitter=ResultSubmitter(queue, client),
    )


def create_queue(settings: Settings | None = None) -> ResultQueue:
    """Build only the local queue, for callers that never touch the network."""
    settings = settings or get_settings()
    store = build_store(settings)
    return ResultQueue(store, StatusTracker(store))
