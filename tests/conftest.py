"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from offline_results.engine import DeliveryEngine  # noqa: E402
from offline_results.queue import ResultQueue  # noqa: E402
from offline_results.store import MemoryStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class ScriptedSender:
    """Sender that answers from a script of outcomes and records every payload."""

    def __init__(self, outcomes=None, default=True):
        self.outcomes = list(outcomes or [])
        self.default = default
        self.payloads = []

    async def submit(self, payload):
        self.payloads.append(dict(payload))
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class SleepRecorder:
    """Stand-in for asyncio.sleep that returns immediately."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def queue(store, clock):
    return ResultQueue(store, clock=clock)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def make_engine(queue, clock, sleeper):
    """Build a DeliveryEngine over the shared queue with a given sender."""

    def _make(sender, **kwargs):
        return DeliveryEngine(queue, sender, clock=clock, sleep=sleeper, **kwargs)

    return _make


@pytest.fixture
def sample_payload():
    """Provide a sample graded result payload."""
    return {
        "userEmail": "student@example.com",
        "testId": "test-001",
        "testTitle": "The OSI Reference Model",
        "score": 7,
        "total": 10,
        "answers": [0, 2, 1],
        "mistakes": [1],
        "startTime": "2025-01-01T11:50:00Z",
        "endTime": "2025-01-01T11:58:00Z",
        "duration": 480,
        "timePerQuestion": [40, 52, 31],
        "mode": "training",
    }
