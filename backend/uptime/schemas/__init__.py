"""Pydantic schemas for configuration and API response models."""
from .target import (
    Target,
    NotificationSettings,
    MonitorConfig,
    parse_duration,
)
from .status import (
    Outcome,
    ServiceStatus,
    ServiceSummary,
    CheckEventResponse,
)

__all__ = [
    "Target",
    "NotificationSettings",
    "MonitorConfig",
    "parse_duration",
    "Outcome",
    "ServiceStatus",
    "ServiceSummary",
    "CheckEventResponse",
]
