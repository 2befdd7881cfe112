"""Status and history schemas."""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class Outcome(str, Enum):
    """Classification of a single completed check."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNREACHABLE = "unreachable"

    @property
    def heartbeat(self) -> int:
        """Integer code used in sparkline payloads."""
        return _HEARTBEAT_CODES[self]


_HEARTBEAT_CODES = {
    Outcome.HEALTHY: 0,
    Outcome.DEGRADED: 1,
    Outcome.UNREACHABLE: 2,
}


class ServiceStatus(str, Enum):
    """Coarse status shown to consumers."""
    OPERATIONAL = "operational"
    DEGRADED = "degraded"
    OUTAGE = "outage"


class ServiceSummary(BaseModel):
    """Current status of a target with derived fields."""
    id: str
    name: str
    status: ServiceStatus
    latency: float  # ms, from the most recent check
    uptime_24h: float  # Percentage
    avg_latency_24h: float  # ms, unreachable checks excluded
    heartbeats: List[int]  # Last N outcomes, oldest first (0=up, 1=degraded, 2=down)


class CheckEventResponse(BaseModel):
    """Individual check event record."""
    target_id: str
    timestamp: datetime
    latency_ms: float
    outcome: Outcome
    error: Optional[str] = None

    class Config:
        from_attributes = True
