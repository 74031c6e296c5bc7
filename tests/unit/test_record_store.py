"""
Unit tests for the durable record store backends.

Storage problems must degrade to "no persisted state" and never raise.
"""

import json
from datetime import datetime, timezone

import pytest

from offline_results.config import Settings
from offline_results.models import PendingResult, SyncStatus
from offline_results.store import (
    CORRUPT_KEY,
    RESULTS_KEY,
    STATUS_KEY,
    JsonFileStore,
    MemoryStore,
    SqliteStore,
    build_store,
)


def _record(record_id="result_1", token="token-1", attempts=0):
    return PendingResult(
        id=record_id,
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        payload={"clientResultId": token, "score": 5},
        attempts=attempts,
    )


@pytest.fixture(params=["memory", "json", "sqlite"])
def any_store(request, tmp_path):
    if request.param == "json":
        return JsonFileStore(tmp_path)
    if request.param == "sqlite":
        return SqliteStore(tmp_path / "offline_results.db")
    return MemoryStore()


class TestCorruptionTolerance:
    """Corrupt or absent state is treated as empty."""

    def test_absent(self, any_store):
        assert any_store.load() == []
        assert any_store.load_status() is None

    def test_invalid_json(self, any_store):
        any_store._write(RESULTS_KEY, "{not json")
        any_store._write(STATUS_KEY, "[[[")

        assert any_store.load() == []
        assert any_store.load_status() is None

    def test_not_a_list(self, any_store):
        any_store._write(RESULTS_KEY, json.dumps({"id": "result_1"}))

        assert any_store.load() == []

    def test_malformed_entries_skipped(self, any_store):
        good = _record().to_dict()
        no_token = _record("result_2").to_dict()
        no_token["payload"] = {"score": 1}
        any_store._write(RESULTS_KEY, json.dumps([good, "garbage", no_token, {"id": "x"}]))

        assert [r.id for r in any_store.load()] == ["result_1"]


def test_persisted_layout(any_store):
    """Records are stored as a camelCase JSON array, oldest first."""
    first = _record("result_1", "token-1")
    second = _record("result_2", "token-2", attempts=2)
    second.last_attempt_at = datetime(2025, 1, 1, 0, 5, tzinfo=timezone.utc)
    assert any_store.save([first, second]) is True

    data = json.loads(any_store._read(RESULTS_KEY))

    assert [item["id"] for item in data] == ["result_1", "result_2"]
    assert set(data[1]) == {"id", "createdAt", "attempts", "lastAttemptAt", "payload"}
    assert "lastAttemptAt" not in data[0]
    assert any_store.load() == [first, second]


def test_status_saved_and_loaded(any_store):
    status = SyncStatus(is_syncing=True, pending_count=3, last_error="boom")
    assert any_store.save_status(status) is True

    assert any_store.load_status() == status


def test_clear(any_store):
    any_store.save([_record()])
    any_store.save_status(SyncStatus(pending_count=1))

    any_store.clear()

    assert any_store.load() == []
    assert any_store.load_status() is None


class TestJsonFileStore:
    """File store specifics."""

    def test_survives_reopen(self, tmp_path):
        JsonFileStore(tmp_path).save([_record()])

        assert [r.id for r in JsonFileStore(tmp_path).load()] == ["result_1"]

    def test_corrupt_file_on_disk(self, tmp_path):
        (tmp_path / f"{RESULTS_KEY}.json").write_text("\x00\x01garbage", encoding="utf-8")

        assert JsonFileStore(tmp_path).load() == []

    def test_no_temp_file_left(self, tmp_path):
        JsonFileStore(tmp_path).save([_record()])

        assert sorted(p.name for p in tmp_path.iterdir()) == [f"{RESULTS_KEY}.json"]

    def test_save_failure_reported(self, tmp_path):
        store = JsonFileStore(tmp_path / "data")
        (tmp_path / "data").rmdir()
        (tmp_path / "data").write_text("not a directory")

        assert store.save([_record()]) is False


def test_sqlite_survives_reopen(tmp_path):
    db_path = tmp_path / "offline_results.db"
    store = SqliteStore(db_path)
    store.save([_record()])
    store.close()

    assert [r.id for r in SqliteStore(db_path).load()] == ["result_1"]


@pytest.mark.parametrize("backend,expected", [
    ("json", JsonFileStore),
    ("sqlite", SqliteStore),
    ("memory", MemoryStore),
])
def test_build_store(tmp_path, backend, expected):
    settings = Settings(data_dir=tmp_path, store_backend=backend)

    assert isinstance(build_store(settings), expected)


class TestWebClientLayout:
    """Entries written by the web client are read, not dropped."""

    def test_epoch_millisecond_fields(self, any_store):
        any_store._write(RESULTS_KEY, json.dumps([{
            "id": "result_1_abc",
            "timestamp": 1735732800000,
            "attempts": 1,
            "lastAttempt": 1735732860000,
            "payload": {"clientResultId": "tok-1"},
        }]))

        [record] = any_store.load()

        assert record.client_result_id == "tok-1"
        assert record.created_at == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert record.last_attempt_at == datetime(2025, 1, 1, 12, 1, tzinfo=timezone.utc)
        assert record.attempts == 1

    def test_zulu_suffix(self, any_store):
        any_store._write(RESULTS_KEY, json.dumps([{
            "id": "result_1",
            "createdAt": "2025-01-01T12:00:00.000Z",
            "lastAttemptAt": "2025-01-01T12:01:00.000Z",
            "payload": {"clientResultId": "tok-1"},
        }]))

        [record] = any_store.load()

        assert record.created_at == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert record.last_attempt_at == datetime(2025, 1, 1, 12, 1, tzinfo=timezone.utc)

    def test_status_last_sync_attempt(self, any_store):
        any_store._write(STATUS_KEY, json.dumps({
            "isSyncing": False,
            "pendingCount": 2,
            "lastSyncAttempt": 1735732800000,
            "lastError": None,
        }))

        status = any_store.load_status()

        assert status.last_sync_attempt_at == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestUnreadableDataKept:
    """A save never destroys stored data it could not parse."""

    def test_unparseable_entries_written_back(self, any_store):
        odd = {"id": "result_odd", "createdAt": "yesterday", "payload": {"clientResultId": "tok-odd"}}
        any_store._write(RESULTS_KEY, json.dumps([_record().to_dict(), odd, "garbage"]))

        assert any_store.save([_record("result_2", "token-2")]) is True

        data = json.loads(any_store._read(RESULTS_KEY))
        assert data[0]["id"] == "result_2"
        assert data[1:] == [odd, "garbage"]
        assert [r.id for r in any_store.load()] == ["result_2"]

    def test_corrupt_document_moved_aside(self, any_store):
        any_store._write(RESULTS_KEY, "{not json")

        assert any_store.save([_record()]) is True

        assert json.loads(any_store._read(CORRUPT_KEY)) == ["{not json"]
        assert [r.id for r in any_store.load()] == ["result_1"]

    def test_earlier_corrupt_documents_kept(self, any_store):
        any_store._write(RESULTS_KEY, "first")
        any_store.save([])
        any_store._write(RESULTS_KEY, json.dumps({"id": "second"}))
        any_store.save([])

        assert json.loads(any_store._read(CORRUPT_KEY)) == ["first", '{"id": "second"}']
