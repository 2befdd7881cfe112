"""Tests for the status/history query surface."""
from datetime import timedelta

import pytest

from uptime.schemas.status import Outcome, ServiceStatus
from uptime.services.monitor import HEARTBEAT_COUNT, MonitorService
from uptime.utils.time_utils import utcnow

from .conftest import make_event


@pytest.fixture
def monitor(store, cache):
    cache.register("api", "API")
    cache.register("db", "Database")
    return MonitorService(store, cache)


class TestCurrentStatuses:

    async def test_combines_cache_and_log(self, monitor, store, cache):
        now = utcnow()
        outcomes = [Outcome.HEALTHY, Outcome.UNREACHABLE, Outcome.DEGRADED, Outcome.HEALTHY]
        for i, outcome in enumerate(outcomes):
            await store.append(make_event(
                outcome=outcome,
                timestamp=now - timedelta(minutes=10 - i),
                latency_ms=10.0 * (i + 1),
            ))
        # Outside the 24h window
        await store.append(make_event(outcome=Outcome.UNREACHABLE, timestamp=now - timedelta(days=2)))
        cache.upsert("api", ServiceStatus.OPERATIONAL, 40.0)

        summaries = await monitor.current_statuses()

        assert [s.id for s in summaries] == ["api", "db"]
        api = summaries[0]
        assert api.name == "API"
        assert api.status == ServiceStatus.OPERATIONAL
        assert api.latency == 40.0
        assert api.uptime_24h == 75.0
        # (10 + 30 + 40) / 3
        assert api.avg_latency_24h == pytest.approx(26.67)
        assert api.heartbeats == [2, 0, 2, 1, 0]

    async def test_target_without_events(self, monitor):
        summaries = await monitor.current_statuses()
        db = summaries[1]
        assert db.status == ServiceStatus.OPERATIONAL
        assert db.uptime_24h == 0.0
        assert db.heartbeats == []

    async def test_heartbeats_are_capped(self, monitor, store):
        now = utcnow()
        for i in range(HEARTBEAT_COUNT + 5):
            await store.append(make_event(timestamp=now - timedelta(seconds=100 - i)))

        summaries = await monitor.current_statuses()
        assert len(summaries[0].heartbeats) == HEARTBEAT_COUNT


class TestHistory:

    async def test_returns_chronological_events(self, monitor, store):
        now = utcnow()
        events = [make_event(timestamp=now - timedelta(minutes=5 - i)) for i in range(5)]
        for event in reversed(events):
            await store.append(event)

        assert await monitor.history("api", 3) == events[-3:]

    async def test_unknown_target(self, monitor):
        with pytest.raises(KeyError):
            await monitor.history("nope")
