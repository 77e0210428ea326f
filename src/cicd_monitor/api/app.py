"""
cicd_monitor.api.app

FastAPI app factory for the monitor's operational surface.

Responsibilities:
- Build the FastAPI application and register routers.
- Start the tick loop on startup and stop it (plus close HTTP clients) on shutdown.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI

from cicd_monitor import __version__
from cicd_monitor.api.routers.health import router as health_router
from cicd_monitor.api.routers.status import router as status_router
from cicd_monitor.observability.logging import configure_logging, get_logger
from cicd_monitor.services.monitor_service import MonitorService
from cicd_monitor.services.wiring import open_engine
from cicd_monitor.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings, service: MonitorService | None = None) -> FastAPI:
    """
    `service` is injected by tests; otherwise the engine is wired from settings on startup.
    """

    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        async with AsyncExitStack() as stack:
            svc = service
            if svc is None:
                engine = await stack.enter_async_context(open_engine(settings))
                svc = MonitorService(
                    engine=engine,
                    interval_seconds=settings.tick_interval_seconds,
                    tick_on_start=settings.tick_on_start,
                )
            app.state.monitor = svc
            svc.start()
            try:
                yield
            finally:
                # Let the in-flight tick finish before HTTP clients are closed.
                await svc.stop()
                log.info("shutdown")

    app = FastAPI(
        title="CI/CD Promotion Monitor",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.include_router(health_router, tags=["health"])
    app.include_router(status_router)
    return app


# --- Module Notes -----------------------------------------------------------
# Business logic stays in the engine/services; this module only composes and manages
# lifecycle.
