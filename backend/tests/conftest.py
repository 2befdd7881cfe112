"""Shared fixtures for engine tests."""
from datetime import datetime, timedelta
from typing import List

import pytest
import pytest_asyncio

from uptime.schemas.status import Outcome, ServiceStatus
from uptime.schemas.target import Target
from uptime.services.alerter import NotificationDispatcher
from uptime.services.event_store import CheckEvent, EventLogStore
from uptime.services.status_cache import StatusCache


class RecordingNotifier:
    """Notifier that remembers every call."""

    def __init__(self, result: bool = True):
        self.result = result
        self.calls: List[tuple] = []

    async def notify(self, target_name, address, old_status, new_status, latency_ms) -> bool:
        self.calls.append((target_name, address, old_status, new_status, latency_ms))
        return self.result


@pytest_asyncio.fixture
async def store(tmp_path):
    """Event log store on a fresh SQLite file."""
    store = EventLogStore(f"sqlite+aiosqlite:///{tmp_path / 'uptime.db'}")
    await store.init()
    yield store
    await store.close()


@pytest.fixture
def cache():
    return StatusCache()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest_asyncio.fixture
async def dispatcher(notifier):
    dispatcher = NotificationDispatcher(notifier, max_size=10)
    dispatcher.start()
    yield dispatcher
    await dispatcher.stop()


@pytest.fixture
def target():
    return Target(id="api", name="API", url="http://api.test/health", method="HTTP", interval=1, timeout=1)


def make_event(
    target_id: str = "api",
    outcome: Outcome = Outcome.HEALTHY,
    timestamp: datetime = None,
    latency_ms: float = 12.5,
    error: str = None,
) -> CheckEvent:
    return CheckEvent(
        target_id=target_id,
        timestamp=timestamp or datetime(2024, 1, 1, 12, 0, 0),
        latency_ms=latency_ms,
        outcome=outcome,
        error=error,
    )


def minutes_after(base: datetime, minutes: int) -> datetime:
    return base + timedelta(minutes=minutes)

