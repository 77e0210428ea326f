"""
cicd_monitor.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`): ready while the tick loop is running.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from cicd_monitor.api.deps import monitor_dep
from cicd_monitor.services.monitor_service import MonitorService

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", response_model=None)
async def readyz(monitor: MonitorService = Depends(monitor_dep)) -> dict[str, str] | JSONResponse:
    if not monitor.is_running:
        return JSONResponse(
            status_code=HTTP_503_SERVICE_UNAVAILABLE, content={"status": "loop stopped"}
        )
    return {"status": "ready"}


# --- Module Notes -----------------------------------------------------------
# Kubernetes typically uses /healthz for liveness and /readyz for readiness gating.
