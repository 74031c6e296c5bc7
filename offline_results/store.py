"""
Durable record store for the offline result queue.

Persists two named entries:
- offlineTestResults: JSON array of pending results, oldest first
- offlineResultsSyncStatus: JSON sync status summary

Storage problems never propagate: unreadable or corrupt state is treated as
empty, failed writes are logged and reported through the return value. Data
that cannot be parsed is never overwritten: unparseable entries are written
back on save, and a corrupt document is moved to offlineTestResultsCorrupt.

Backends:
- JsonFileStore: one JSON file per entry under a data directory
- SqliteStore: key/value table in a SQLite database
- MemoryStore: process-local, for tests and ephemeral sessions
"""

from __future__ import annotations

import json
import os
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

from .models import PendingResult, SyncStatus

if TYPE_CHECKING:
    from .config import Settings

RESULTS_KEY = "offlineTestResults"
STATUS_KEY = "offlineResultsSyncStatus"
CORRUPT_KEY = "offlineTestResultsCorrupt"


class RecordStore:
    """
    Base store owning serialization and corruption tolerance.

    Subclasses implement raw text access by key.
    """

    # =========================================================================
    # Raw access (backend specific)
    # =========================================================================

    def _read(self, key: str) -> str | None:
        raise NotImplementedError

    def _write(self, key: str, value: str) -> None:
        raise NotImplementedError

    def _delete(self, key: str) -> None:
        raise NotImplementedError

    # =========================================================================
    # Pending results
    # =========================================================================

    def _decode(self, raw: str) -> tuple[list[PendingResult], list[tuple[Any, Exception]]]:
        """
        Split a stored list into parsed records and entries that failed to parse.

        Raises:
            ValueError: If the document is not a JSON list
        """
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("offline results entry is not a list")

        records: list[PendingResult] = []
        unreadable: list[tuple[Any, Exception]] = []
        for item in data:
            try:
                records.append(PendingResult.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                unreadable.append((item, exc))
        return records, unreadable

    def load(self) -> list[PendingResult]:
        """
        Load all pending results.

        Returns:
            Records in insertion order, or [] if storage is empty, corrupt or absent
        """
        try:
            raw = self._read(RESULTS_KEY)
        except (OSError, sqlite3.Error) as exc:
            logger.error("Error reading offline results: {}", exc)
            return []
        if not raw:
            return []

        try:
            records, unreadable = self._decode(raw)
        except ValueError as exc:
            logger.error("Offline results entry is corrupt - treating as empty: {}", exc)
            return []

        for item, exc in unreadable:
            logger.warning("Skipping unreadable offline result {!r}: {}", item, exc)
        return records

    def _unreadable_entries(self) -> list[Any]:
        """
        Stored entries that load() cannot parse, to be written back on save.

        A stored document that is not a JSON list is moved to the corrupt entry.
        """
        raw = self._read(RESULTS_KEY)
        if not raw:
            return []

        try:
            _, unreadable = self._decode(raw)
        except ValueError:
            self._quarantine(raw)
            return []
        return [item for item, _ in unreadable]

    def _quarantine(self, raw: str) -> None:
        try:
            documents = json.loads(self._read(CORRUPT_KEY) or "[]")
        except ValueError:
            documents = []
        if not isinstance(documents, list):
            documents = [documents]
        documents.append(raw)
        self._write(CORRUPT_KEY, json.dumps(documents))
        logger.error("Moved corrupt offline results to {}", CORRUPT_KEY)

    def save(self, records: list[PendingResult]) -> bool:
        """
        Replace the stored list of pending results.

        Entries already stored that cannot be parsed are kept after the records.

        Returns:
            True if the list was persisted
        """
        try:
            entries = [r.to_dict() for r in records] + self._unreadable_entries()
            self._write(RESULTS_KEY, json.dumps(entries))
            return True
        except (OSError, sqlite3.Error, TypeError, ValueError) as exc:
            logger.error("Error saving offline results: {}", exc)
            return False

    # =========================================================================
    # Sync status
    # =========================================================================

    def load_status(self) -> SyncStatus | None:
        """Load the persisted sync status, None if absent or corrupt."""
        try:
            raw = self._read(STATUS_KEY)
            if not raw:
                return None
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("status entry is not an object")
            return SyncStatus.from_dict(data)
        except (OSError, sqlite3.Error, TypeError, ValueError) as exc:
            logger.error("Error reading sync status: {}", exc)
            return None

    def save_status(self, status: SyncStatus) -> bool:
        try:
            self._write(STATUS_KEY, json.dumps(status.to_dict()))
            return True
        except (OSError, sqlite3.Error, TypeError, ValueError) as exc:
            logger.error("Error saving sync status: {}", exc)
            return False

    def clear(self) -> None:
        """Remove both persisted entries."""
        for key in (RESULTS_KEY, STATUS_KEY):
            try:
                self._delete(key)
            except (OSError, sqlite3.Error) as exc:
                logger.error("Error clearing {}: {}", key, exc)
        logger.info("Cleared all offline results")


class MemoryStore(RecordStore):
    """In-process store; nothing survives the interpreter."""

    def __init__(self) -> None:
        self.entries: dict[str, str] = {}

    def _read(self, key: str) -> str | None:
        return self.entries.get(key)

    def _write(self, key: str, value: str) -> None:
        self.entries[key] = value

    def _delete(self, key: str) -> None:
        self.entries.pop(key, None)


class JsonFileStore(RecordStore):
    """
    File-backed store.

    Each entry lives in {data_dir}/{key}.json. Writes go through a temporary
    file and os.replace so a reader never sees a half-written list.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(value)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)

    def _delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()


class SqliteStore(RecordStore):
    """SQLite-backed key/value store (default file: {data_dir}/offline_results.db)."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn: sqlite3.Connection | None = None
        self._init_schema()

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
        return self._conn

    def _init_schema(self) -> None:
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        self.conn.commit()

    def _read(self, key: str) -> str | None:
        row = self.conn.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        return row[0] if row else None

    def _write(self, key: str, value: str) -> None:
        with self.conn:
            self.conn.execute(
                "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def _delete(self, key: str) -> None:
        with self.conn:
            self.conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


def build_store(settings: Settings) -> RecordStore:
    """Create the store backend selected in settings."""
    if settings.store_backend == "sqlite":
        return SqliteStore(settings.data_dir / "offline_results.db")
    if settings.store_backend == "memory":
        return MemoryStore()
    return JsonFileStore(settings.data_dir)
