"""Alerter service - sends webhook notifications on status changes."""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol

import httpx

from ..schemas.status import ServiceStatus
from ..schemas.target import NotificationSettings

logger = logging.getLogger(__name__)

# Embed colours by new status
STATUS_COLORS = {
    ServiceStatus.OPERATIONAL: 0x00FF00,
    ServiceStatus.DEGRADED: 0xFFFF00,
    ServiceStatus.OUTAGE: 0xFF0000,
}

DEFAULT_QUEUE_SIZE = 100


class Notifier(Protocol):
    """Delivers one status-change notification."""

    async def notify(
        self,
        target_name: str,
        address: str,
        old_status: ServiceStatus,
        new_status: ServiceStatus,
        latency_ms: float,
    ) -> bool:
        ...


class NullNotifier:
    """Notifier used when notifications are disabled."""

    async def notify(self, target_name, address, old_status, new_status, latency_ms) -> bool:
        return True


class WebhookNotifier:
    """Posts a Discord-style embed to a webhook URL."""

    def __init__(
        self,
        webhook_url: str,
        username: str = "Uptime Engine",
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.username = username
        self.timeout = timeout
        self._transport = transport

    def build_payload(
        self,
        target_name: str,
        address: str,
        old_status: ServiceStatus,
        new_status: ServiceStatus,
        latency_ms: float,
    ) -> dict:
        """Build the webhook body."""
        return {
            "username": self.username,
            "embeds": [
                {
                    "title": f"Status Change: {target_name}",
                    "description": (
                        f"Service **{target_name}** ({address}) is now **{new_status.value}**.\n"
                        f"Previous status: {old_status.value}\n"
                        f"Latency: {latency_ms:.0f}ms"
                    ),
                    "color": STATUS_COLORS.get(new_status, 0x00FF00),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            ],
        }

    async def notify(
        self,
        target_name: str,
        address: str,
        old_status: ServiceStatus,
        new_status: ServiceStatus,
        latency_ms: float,
    ) -> bool:
        """Send the notification. Never raises; returns delivery success."""
        if not self.webhook_url:
            return True

        payload = self.build_payload(target_name, address, old_status, new_status, latency_ms)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.webhook_url, json=payload)
            if response.status_code < 400:
                logger.info(f"Webhook sent: {old_status.value} -> {new_status.value} for {target_name}")
                return True
            logger.warning(f"Webhook returned {response.status_code}")
            return False
        except Exception as e:
            logger.error(f"Failed to send webhook: {e}")
            return False


def build_notifier(config: NotificationSettings) -> Notifier:
    """Pick the notifier for the configured settings."""
    if config.enabled and config.webhook_url:
        return WebhookNotifier(config.webhook_url, username=config.username)
    return NullNotifier()


@dataclass(frozen=True)
class StatusChange:
    """A pending notification."""
    target_name: str
    address: str
    old_status: ServiceStatus
    new_status: ServiceStatus
    latency_ms: float


class NotificationDispatcher:
    """Bounded queue that delivers notifications off the polling path.

    ``submit`` never waits and never raises. When the queue is full the
    change is dropped with a warning. Delivery results and errors are logged
    and go no further.
    """

    def __init__(self, notifier: Notifier, max_size: int = DEFAULT_QUEUE_SIZE):
        self.notifier = notifier
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_size)
        self._worker: Optional[asyncio.Task] = None

    def start(self):
        """Start the delivery worker on the running loop."""
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name="notification-dispatcher")

    async def stop(self):
        """Cancel the worker. Pending notifications are discarded."""
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    def submit(self, change: StatusChange) -> bool:
        """Queue a change for delivery. Returns False if it was dropped."""
        try:
            self._queue.put_nowait(change)
            return True
        except asyncio.QueueFull:
            logger.warning(
                f"Notification queue full, dropping {change.old_status.value} -> "
                f"{change.new_status.value} for {change.target_name}"
            )
            return False

    async def join(self):
        """Wait until every queued change has been handled."""
        await self._queue.join()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def _run(self):
        while True:
            change = await self._queue.get()
            try:
                delivered = await self.notifier.notify(
                    change.target_name,
                    change.address,
                    change.old_status,
                    change.new_status,
                    change.latency_ms,
                )
                if not delivered:
                    logger.warning(f"Notification for {change.target_name} was not delivered")
            except Exception as e:
                logger.error(f"Notifier error for {change.target_name}: {e}")
            finally:
                self._queue.task_done()
