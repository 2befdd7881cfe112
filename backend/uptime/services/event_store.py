"""Event log store - append-only check history with aggregate queries."""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncEngine

from ..database import create_engine, create_session_factory, init_db
from ..models import CheckEventRow
from ..schemas.status import Outcome
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckEvent:
    """Immutable record of one completed probe."""
    target_id: str
    timestamp: datetime  # Naive UTC
    latency_ms: float
    outcome: Outcome
    error: Optional[str] = None


def _to_event(row: CheckEventRow) -> CheckEvent:
    return CheckEvent(
        target_id=row.target_id,
        timestamp=row.timestamp,
        latency_ms=row.latency_ms,
        outcome=Outcome(row.outcome),
        error=row.error,
    )


class EventLogStore:
    """Durable log of check events backed by SQLite.

    Writers are serialized by a lock owned by the store, so any number of
    polling jobs can append concurrently. Queries never take the lock; WAL
    mode gives each read a consistent snapshot of committed rows.
    """

    def __init__(self, database_url: Optional[str] = None, engine: Optional[AsyncEngine] = None):
        if engine is None:
            if database_url is None:
                raise ValueError("database_url or engine is required")
            engine = create_engine(database_url)
        self.engine = engine
        self._session = create_session_factory(engine)
        self._write_lock = asyncio.Lock()

    async def init(self):
        """Create the schema if it does not exist."""
        await init_db(self.engine)

    async def close(self):
        """Close database connections."""
        await self.engine.dispose()

    async def append(self, event: CheckEvent):
        """Record one event. Returns once the row is committed."""
        async def _insert():
            async with self._session() as session:
                session.add(CheckEventRow(
                    target_id=event.target_id,
                    timestamp=event.timestamp,
                    latency_ms=event.latency_ms,
                    outcome=event.outcome.value,
                    error=event.error,
                ))
                await session.commit()

        async with self._write_lock:
            await retry_on_lock(_insert)

    async def recent(self, target_id: str, limit: int) -> List[CheckEvent]:
        """Get up to ``limit`` most recent events, oldest first."""
        if limit <= 0:
            return []

        async with self._session() as session:
            result = await session.execute(
                select(CheckEventRow)
                .where(CheckEventRow.target_id == target_id)
                .order_by(CheckEventRow.timestamp.desc(), CheckEventRow.id.desc())
                .limit(limit)
            )
            rows = result.scalars().all()

        # Newest first from the query; reverse to chronological
        return [_to_event(row) for row in reversed(rows)]

    async def uptime_ratio(self, target_id: str, since: datetime) -> float:
        """Percentage of events at or after ``since`` that were reachable.

        Returns 0.0 for an empty window.
        """
        async with self._session() as session:
            result = await session.execute(
                select(
                    func.count(case((CheckEventRow.outcome != Outcome.UNREACHABLE.value, 1))),
                    func.count(),
                )
                .select_from(CheckEventRow)
                .where(
                    CheckEventRow.target_id == target_id,
                    CheckEventRow.timestamp >= since,
                )
            )
            up, total = result.one()

        if not total:
            return 0.0
        return (up / total) * 100

    async def average_latency(self, target_id: str, since: datetime) -> float:
        """Mean latency in ms of reachable events at or after ``since``, or 0.0."""
        async with self._session() as session:
            result = await session.execute(
                select(func.avg(CheckEventRow.latency_ms))
                .where(
                    CheckEventRow.target_id == target_id,
                    CheckEventRow.timestamp >= since,
                    CheckEventRow.outcome != Outcome.UNREACHABLE.value,
                )
            )
            avg = result.scalar()

        return float(avg) if avg is not None else 0.0

    async def count(self, target_id: str) -> int:
        """Total number of events recorded for a target."""
        async with self._session() as session:
            result = await session.execute(
                select(func.count())
                .select_from(CheckEventRow)
                .where(CheckEventRow.target_id == target_id)
            )
            return result.scalar_one()
