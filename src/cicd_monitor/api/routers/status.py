"""
cicd_monitor.api.routers.status

Loop status endpoint for operators.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from cicd_monitor.api.deps import monitor_dep, settings_dep
from cicd_monitor.services.monitor_service import MonitorService
from cicd_monitor.settings import Settings

router = APIRouter(prefix="/v1", tags=["status"])


@router.get("/status")
async def status(
    monitor: MonitorService = Depends(monitor_dep),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    return {
        "organization": settings.organization,
        "project": settings.project,
        "tick_interval_seconds": settings.tick_interval_seconds,
        **monitor.snapshot.as_dict(),
    }
