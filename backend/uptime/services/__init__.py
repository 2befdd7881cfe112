"""Services for probing, scheduling, storage and alerting."""
from .checker import ProbeResult, run_probe
from .event_store import CheckEvent, EventLogStore
from .status_cache import StatusCache, StatusRecord
from .alerter import NotificationDispatcher, WebhookNotifier, NullNotifier
from .scheduler import SchedulerService
from .monitor import MonitorService

__all__ = [
    "ProbeResult",
    "run_probe",
    "CheckEvent",
    "EventLogStore",
    "StatusCache",
    "StatusRecord",
    "NotificationDispatcher",
    "WebhookNotifier",
    "NullNotifier",
    "SchedulerService",
    "MonitorService",
]
