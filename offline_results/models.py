"""
Data classes for queued results and sync status.

Persisted forms use camelCase keys. Records written by the web client, which
stores `timestamp` and `lastAttempt` as epoch milliseconds, are read as well.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

CLIENT_RESULT_ID_KEY = "clientResultId"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_result_id() -> str:
    """Generate a unique identifier for a result."""
    return f"result_{uuid.uuid4().hex}"


def with_client_result_id(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of the payload that carries a clientResultId.

    An existing non-empty token is kept as-is; it is the idempotency key the
    server deduplicates on and must never be regenerated.
    """
    prepared = dict(payload)
    if not prepared.get(CLIENT_RESULT_ID_KEY):
        prepared[CLIENT_RESULT_ID_KEY] = generate_result_id()
    return prepared


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (``Z`` suffix allowed) or epoch milliseconds."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"timestamp out of range: {value!r}") from exc
    if not isinstance(value, str):
        raise TypeError(f"not a timestamp: {value!r}")
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass
class PendingResult:
    """A submission that was attempted but not yet confirmed by the server."""

    id: str
    created_at: datetime
    payload: dict[str, Any]
    attempts: int = 0
    last_attempt_at: datetime | None = None

    @property
    def client_result_id(self) -> str:
        return self.payload[CLIENT_RESULT_ID_KEY]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted JSON layout."""
        data: dict[str, Any] = {
            "id": self.id,
            "createdAt": _format_timestamp(self.created_at),
            "attempts": self.attempts,
            "payload": self.payload,
        }
        if self.last_attempt_at is not None:
            data["lastAttemptAt"] = _format_timestamp(self.last_attempt_at)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingResult:
        """
        Parse a persisted record.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        payload = data["payload"]
        if not isinstance(payload, dict):
            raise TypeError("payload must be an object")
        token = payload.get(CLIENT_RESULT_ID_KEY)
        if not isinstance(token, str) or not token:
            raise ValueError("payload has no clientResultId")

        attempts = int(data.get("attempts", 0))
        if attempts < 0:
            raise ValueError(f"negative attempt count: {attempts}")
        created_at = _parse_timestamp(data.get("createdAt", data.get("timestamp")))
        if created_at is None:
            raise ValueError("record has no createdAt")

        return cls(
            id=str(data["id"]),
            created_at=created_at,
            payload=payload,
            attempts=attempts,
            last_attempt_at=_parse_timestamp(data.get("lastAttemptAt", data.get("lastAttempt"))),
        )


@dataclass
class SyncStatus:
    """Cached sync summary shown by the app shell."""

    is_syncing: bool = False
    pending_count: int = 0
    last_sync_attempt_at: datetime | None = None
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "isSyncing": self.is_syncing,
            "pendingCount": self.pending_count,
            "lastSyncAttemptAt": _format_timestamp(self.last_sync_attempt_at),
            "lastError": self.last_error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncStatus:
        return cls(
            is_syncing=bool(data.get("isSyncing", False)),
            pending_count=int(data.get("pendingCount", 0)),
            last_sync_attempt_at=_parse_timestamp(
                data.get("lastSyncAttemptAt", data.get("lastSyncAttempt"))
            ),
            last_error=data.get("lastError"),
        )


@dataclass
class DrainResult:
    """Outcome of one pass of the delivery engine over a queue snapshot."""

    synced: int = 0
    failed: int = 0
    total: int = 0
    skipped: int = 0  # Held back by the cool-down; also counted in failed
    evicted: list[PendingResult] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        """Snapshot records that were neither delivered nor evicted."""
        return self.total - self.synced - len(self.evicted)
