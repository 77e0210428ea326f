"""
cicd_monitor.services.monitor_service

Fixed-interval loop around `PromotionEngine.tick`.

Responsibilities:
- Run one tick at a time, then sleep for the configured interval.
- Keep the loop alive across failing ticks (the next tick is the retry).
- Expose a snapshot of the loop for health/status endpoints.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from cicd_monitor.monitor.engine import PromotionEngine, TickResult
from cicd_monitor.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(slots=True)
class MonitorSnapshot:
    running: bool = False
    ticks: int = 0
    failed_ticks: int = 0
    last_tick_at: datetime | None = None
    last_result: TickResult | None = None
    last_error: str | None = None
    started_at: datetime | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "ticks": self.ticks,
            "failed_ticks": self.failed_ticks,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "last_tick_at": self.last_tick_at.isoformat() if self.last_tick_at else None,
            "last_result": self.last_result.as_dict() if self.last_result else None,
            "last_error": self.last_error,
        }


class MonitorService:
    def __init__(
        self,
        *,
        engine: PromotionEngine,
        interval_seconds: float,
        tick_on_start: bool = True,
    ) -> None:
        self._engine = engine
        self._interval = interval_seconds
        self._tick_on_start = tick_on_start
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.snapshot = MonitorSnapshot()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self.run_forever(), name="cicd-monitor-loop")

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            await self._task
            self._task = None

    async def run_forever(self) -> None:
        self.snapshot.running = True
        self.snapshot.started_at = datetime.now(tz=UTC)
        log.info("monitor.started", interval_seconds=self._interval)
        try:
            if not self._tick_on_start and await self._wait():
                return
            while True:
                await self.run_once()
                if await self._wait():
                    return
        finally:
            self.snapshot.running = False
            log.info("monitor.stopped", ticks=self.snapshot.ticks)

    async def run_once(self) -> TickResult | None:
        """
        Run a single tick, recording its outcome. Never raises for a failed tick.
        """

        self.snapshot.ticks += 1
        self.snapshot.last_tick_at = datetime.now(tz=UTC)
        try:
            result = await self._engine.tick()
        except Exception as e:
            log.exception("monitor.tick_crashed")
            self.snapshot.failed_ticks += 1
            self.snapshot.last_error = str(e) or type(e).__name__
            return None

        self.snapshot.last_result = result
        if result.ok:
            self.snapshot.last_error = None
        else:
            self.snapshot.failed_ticks += 1
            self.snapshot.last_error = result.error
        return result

    async def _wait(self) -> bool:
        # True when a stop was requested during the wait.
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
        except TimeoutError:
            return False
        return True


# --- Module Notes -----------------------------------------------------------
# Cancellation is coarse: `stop()` takes effect between ticks; an in-flight tick finishes
# (each remote call is bounded by the httpx timeout).
