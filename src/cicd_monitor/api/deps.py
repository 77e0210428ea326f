"""
cicd_monitor.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Encapsulate app.state access patterns (settings, monitor service).
"""

from __future__ import annotations

from fastapi import Request

from cicd_monitor.services.monitor_service import MonitorService
from cicd_monitor.settings import Settings


def settings_dep(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def monitor_dep(request: Request) -> MonitorService:
    # Set by the lifespan handler in `cicd_monitor.api.app.create_app`.
    return request.app.state.monitor  # type: ignore[no-any-return]
