"""Scheduler service - runs one polling job per target.

Design:
- Each target gets its own APScheduler interval job, first fired at startup
- max_instances=1 keeps checks for one target strictly serialized; targets
  run concurrently and independently of each other
- Each tick probes, classifies, appends to the event log, updates the status
  cache, and queues a notification when the coarse status changes
"""
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..schemas.status import Outcome, ServiceStatus
from ..schemas.target import Target
from ..utils.time_utils import utcnow
from .alerter import NotificationDispatcher, StatusChange
from .checker import ProbeResult, run_probe
from .event_store import CheckEvent, EventLogStore
from .status_cache import StatusCache

logger = logging.getLogger(__name__)

ProbeFunc = Callable[[str, str, float], Awaitable[ProbeResult]]

_STATUS_BY_OUTCOME = {
    Outcome.UNREACHABLE: ServiceStatus.OUTAGE,
    Outcome.DEGRADED: ServiceStatus.DEGRADED,
    Outcome.HEALTHY: ServiceStatus.OPERATIONAL,
}


def classify(result: ProbeResult, timeout: float) -> Outcome:
    """Classify one probe. Slow successes (over half the timeout) are degraded."""
    if not result.success:
        return Outcome.UNREACHABLE
    if result.latency_ms > (timeout * 1000) / 2:
        return Outcome.DEGRADED
    return Outcome.HEALTHY


def derive_status(outcome: Outcome) -> ServiceStatus:
    """Coarse status from the most recent outcome only; no debounce."""
    return _STATUS_BY_OUTCOME[outcome]


class SchedulerService:
    """Service for scheduling and running periodic checks per target."""

    def __init__(
        self,
        targets: List[Target],
        store: EventLogStore,
        cache: StatusCache,
        dispatcher: NotificationDispatcher,
        probe: ProbeFunc = run_probe,
    ):
        self.targets = list(targets)
        self.store = store
        self.cache = cache
        self.dispatcher = dispatcher
        self._probe = probe
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False
        self._stopped = asyncio.Event()
        self._in_flight: Set[asyncio.Task] = set()

        for target in self.targets:
            self.cache.register(target.id, target.name)

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        """Start one interval job per target, each probing immediately."""
        if self._running:
            return

        self._stopped.clear()
        self.scheduler = AsyncIOScheduler()
        now = datetime.now()

        for target in self.targets:
            self.scheduler.add_job(
                self._tick,
                trigger=IntervalTrigger(seconds=target.interval),
                args=[target],
                id=self.job_id(target),
                name=target.name,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
                misfire_grace_time=max(1, int(target.interval)),
                next_run_time=now,
            )

        self.scheduler.start()
        self._running = True
        logger.info(f"Scheduler started with {len(self.targets)} targets")

    def stop(self):
        """Stop scheduling further ticks.

        In-flight probes run to completion or their own timeout; their
        results are discarded.
        """
        self._stopped.set()
        if self.scheduler and self._running:
            # Jobs await shielded ticks; cancelling them leaves probes running
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    async def join(self):
        """Wait for ticks that were in flight when the scheduler stopped."""
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    @staticmethod
    def job_id(target: Target) -> str:
        return f"check:{target.id}"

    def job_ids(self) -> List[str]:
        if not self.scheduler:
            return []
        return [job.id for job in self.scheduler.get_jobs()]

    async def _tick(self, target: Target) -> Optional[CheckEvent]:
        task = asyncio.ensure_future(self.run_check(target))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return await asyncio.shield(task)

    async def run_check(self, target: Target) -> Optional[CheckEvent]:
        """Run one tick for a target.

        Returns the recorded event, or None if the result was discarded
        because of shutdown or a failure to persist it.
        """
        try:
            return await self._check_target(target)
        except Exception as e:
            logger.error(f"Error checking target {target.id}: {e}")
            return None

    async def _check_target(self, target: Target) -> Optional[CheckEvent]:
        started_at = utcnow()
        result = await self._probe(target.method, target.url, target.timeout)

        if self._stopped.is_set():
            logger.debug(f"Discarding result for {target.id} after shutdown")
            return None

        outcome = classify(result, target.timeout)
        new_status = derive_status(outcome)
        event = CheckEvent(
            target_id=target.id,
            timestamp=started_at,
            latency_ms=result.latency_ms,
            outcome=outcome,
            error=result.error,
        )

        try:
            await self.store.append(event)
        except Exception as e:
            logger.error(f"Failed to record check for {target.id}: {e}")
            return None

        previous = self.cache.upsert(target.id, new_status, result.latency_ms, name=target.name)

        if previous.status != new_status:
            logger.info(f"Target {target.name}: {previous.status.value} -> {new_status.value}")
            self.dispatcher.submit(StatusChange(
                target_name=target.name,
                address=target.url,
                old_status=previous.status,
                new_status=new_status,
                latency_ms=result.latency_ms,
            ))
        else:
            logger.debug(f"Target {target.name}: {new_status.value}")

        return event
