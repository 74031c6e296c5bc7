"""Sync status tracking for the offline result queue."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from .models import SyncStatus
from .store import RecordStore


class StatusTracker:
    """
    Merge partial updates into the persisted SyncStatus.

    pending_count is always recomputed from the live queue, so a crash between
    a queue write and a status write never leaves a stale count visible.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def get(self) -> SyncStatus:
        status = self.store.load_status() or SyncStatus()
        status.pending_count = len(self.store.load())
        return status

    def update(self, **changes: Any) -> SyncStatus:
        """
        Merge changes into the current status and persist it.

        Args:
            **changes: SyncStatus fields to overwrite (pending_count is ignored)

        Returns:
            The merged status as persisted
        """
        changes.pop("pending_count", None)
        status = replace(self.get(), **changes)
        self.store.save_status(status)
        return status
