"""Status and history API."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..config import settings
from ..schemas.status import CheckEventResponse, ServiceSummary
from ..services.monitor import MonitorService

router = APIRouter(prefix="/api", tags=["status"])


def get_monitor(request: Request) -> MonitorService:
    """Dependency to get the monitor service created at startup."""
    return request.app.state.monitor


@router.get("/status", response_model=List[ServiceSummary])
async def get_status(monitor: MonitorService = Depends(get_monitor)):
    """Current status of every target."""
    return await monitor.current_statuses()


@router.get("/history/{target_id}", response_model=List[CheckEventResponse])
async def get_history(
    target_id: str,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    monitor: MonitorService = Depends(get_monitor),
):
    """Recent check events for one target, oldest first."""
    try:
        events = await monitor.history(target_id, limit or settings.history_limit)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown target: {target_id}")
    return [CheckEventResponse.model_validate(event) for event in events]
