"""Monitor service - status and history queries for the API layer."""
import asyncio
import logging
from datetime import timedelta
from typing import List

from ..schemas.status import ServiceSummary
from ..utils.time_utils import utcnow
from .event_store import CheckEvent, EventLogStore
from .status_cache import StatusCache, StatusRecord

logger = logging.getLogger(__name__)

UPTIME_WINDOW = timedelta(hours=24)
HEARTBEAT_COUNT = 20
DEFAULT_HISTORY_LIMIT = 100


class MonitorService:
    """Combines the live status cache with aggregates from the event log."""

    def __init__(self, store: EventLogStore, cache: StatusCache):
        self.store = store
        self.cache = cache

    async def current_statuses(self) -> List[ServiceSummary]:
        """Current status of every target with 24h uptime and recent heartbeats."""
        records = self.cache.snapshot_all()
        since = utcnow() - UPTIME_WINDOW
        return list(await asyncio.gather(*[self._summarize(record, since) for record in records]))

    async def _summarize(self, record: StatusRecord, since) -> ServiceSummary:
        uptime = await self.store.uptime_ratio(record.target_id, since)
        avg_latency = await self.store.average_latency(record.target_id, since)
        recent = await self.store.recent(record.target_id, HEARTBEAT_COUNT)

        return ServiceSummary(
            id=record.target_id,
            name=record.name,
            status=record.status,
            latency=round(record.latency_ms, 2),
            uptime_24h=round(uptime, 2),
            avg_latency_24h=round(avg_latency, 2),
            heartbeats=[event.outcome.heartbeat for event in recent],
        )

    async def history(self, target_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[CheckEvent]:
        """Recent events for one target, oldest first.

        Raises:
            KeyError: If the target is not configured
        """
        if self.cache.get(target_id) is None:
            raise KeyError(target_id)
        return await self.store.recent(target_id, limit)
