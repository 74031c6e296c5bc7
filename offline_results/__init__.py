"""
Offline result delivery for the quiz client.

Graded results that could not be submitted are kept in a durable local queue
and redelivered later under the same clientResultId.

Components:
- RecordStore: JSON file / SQLite / in-memory persistence
- ResultQueue: Enqueue, attempt bookkeeping, removal
- StatusTracker: Sync status summary with live pending count
- DeliveryEngine: Drain with cool-down and eviction ceiling
- SyncTrigger: Startup and manual-retry entry points, UI notices
- ResultSubmitter: Submit now, queue on failure
"""

from .client import SubmissionClient
from .engine import DeliveryEngine
from .exceptions import OfflineResultsError, ResultQueueError
from .models import DrainResult, PendingResult, SyncStatus
from .pipeline import OfflineResultsPipeline, create_pipeline
from .queue import ResultQueue
from .status import StatusTracker
from .store import JsonFileStore, MemoryStore, RecordStore, SqliteStore, build_store
from .submitter import ResultSubmitter, SubmissionOutcome
from .trigger import NoticeState, SyncNotice, SyncTrigger

__all__ = [
    # Models
    "PendingResult",
    "SyncStatus",
    "DrainResult",
    # Persistence
    "RecordStore",
    "JsonFileStore",
    "SqliteStore",
    "MemoryStore",
    "build_store",
    # Queue & delivery
    "ResultQueue",
    "StatusTracker",
    "DeliveryEngine",
    "SubmissionClient",
    "ResultSubmitter",
    "SubmissionOutcome",
    # App shell
    "SyncTrigger",
    "SyncNotice",
    "NoticeState",
    "OfflineResultsPipeline",
    "create_pipeline",
    # Errors
    "OfflineResultsError",
    "ResultQueueError",
]
