"""
cicd_monitor.monitor.engine

The promotion engine: one tick = load (or create) today's record -> dispatch by state
-> persist.

Responsibilities:
- Select exactly one action from the record's state (total match over PromotionState).
- Persist after every tick, including ticks whose action failed.
- Guarantee a failed action never writes a partially mutated record.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal, assert_never

from cicd_monitor.clients.models import BuildGateway, ReleaseGateway
from cicd_monitor.monitor import actions
from cicd_monitor.monitor.config import PromotionConfig
from cicd_monitor.monitor.errors import MonitorError, StoreError
from cicd_monitor.monitor.state import PromotionRecord, PromotionState, new_record, record_key
from cicd_monitor.observability.logging import get_logger, tick_context
from cicd_monitor.store.base import RecordStore

ActionName = Literal["trigger_build", "monitor_build", "trigger_release", "monitor_release"]

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TickResult:
    date: str
    action: ActionName | None
    state_before: PromotionState | None
    state_after: PromotionState | None
    error: str | None = None
    persisted: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.persisted

    def as_dict(self) -> dict[str, object]:
        return {
            "date": self.date,
            "action": self.action,
            "state_before": self.state_before.value if self.state_before else None,
            "state_after": self.state_after.value if self.state_after else None,
            "error": self.error,
            "persisted": self.persisted,
        }


def dispatch(state: PromotionState) -> ActionName | None:
    """
    Map a state to the action that advances it; None for terminal states.
    """

    match state:
        case PromotionState.none | PromotionState.build_failed:
            return "trigger_build"
        case PromotionState.not_start | PromotionState.build_in_progress:
            return "monitor_build"
        case PromotionState.build_succeeded:
            return "trigger_release"
        case PromotionState.release_in_progress:
            return "monitor_release"
        case PromotionState.release_failed | PromotionState.release_succeeded:
            return None
        case _:
            assert_never(state)


class PromotionEngine:
    def __init__(
        self,
        *,
        config: PromotionConfig,
        store: RecordStore,
        builds: BuildGateway,
        releases: ReleaseGateway,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._builds = builds
        self._releases = releases
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._ticks = itertools.count(1)

    @property
    def config(self) -> PromotionConfig:
        return self._config

    async def tick(self, *, now: datetime | None = None) -> TickResult:
        now = now or self._clock()
        date = record_key(now)
        with tick_context(tick=next(self._ticks), date=date):
            return await self._tick(date=date, now=now)

    async def _tick(self, *, date: str, now: datetime) -> TickResult:
        try:
            loaded = await self._load_or_create(date)
        except StoreError as e:
            # Nothing was loaded, so there is nothing safe to write back.
            log.error("tick.load_failed", error=str(e))
            return TickResult(
                date=date, action=None, state_before=None, state_after=None, error=str(e)
            )

        action = dispatch(loaded.state)
        log.info("tick.dispatch", state=loaded.state.value, action=action)

        error: str | None = None
        try:
            updated = await self._run(action, loaded.model_copy(deep=True), now=now)
        except MonitorError as e:
            log.error("tick.action_failed", action=action, error=str(e))
            updated, error = loaded, str(e)
        except Exception:
            log.exception("tick.action_crashed", action=action)
            await self._persist(date, loaded)
            raise

        persisted = await self._persist(date, updated)
        if not persisted and error is None:
            error = "record was not persisted"
        log.info(
            "tick.done",
            action=action,
            state_before=loaded.state.value,
            state_after=updated.state.value,
            persisted=persisted,
        )
        return TickResult(
            date=date,
            action=action,
            state_before=loaded.state,
            state_after=updated.state,
            error=error,
            persisted=persisted,
        )

    async def _load_or_create(self, date: str) -> PromotionRecord:
        record = await self._store.load(date)
        if record is not None:
            return record
        log.info("record.created")
        return new_record(
            date,
            validation_definition_id=self._config.validation_definition_id,
            release_targets=self._config.release_targets,
        )

    async def _run(
        self, action: ActionName | None, record: PromotionRecord, *, now: datetime
    ) -> PromotionRecord:
        match action:
            case "trigger_build":
                return await actions.trigger_build(
                    record, builds=self._builds, config=self._config, now=now
                )
            case "monitor_build":
                return await actions.monitor_build(record, builds=self._builds)
            case "trigger_release":
                return await actions.trigger_release(
                    record, releases=self._releases, config=self._config
                )
            case "monitor_release":
                return await actions.monitor_release(
                    record, releases=self._releases, config=self._config
                )
            case None:
                return record
            case _:
                assert_never(action)

    async def _persist(self, date: str, record: PromotionRecord) -> bool:
        try:
            await self._store.save(date, record)
        except StoreError as e:
            # The next tick reloads the previous record and re-runs the same action.
            log.error("tick.save_failed", error=str(e))
            return False
        return True


# --- Module Notes -----------------------------------------------------------
# The engine is single-instance: two processes ticking the same date race on the store
# (last write wins). Scheduling lives in `services.monitor_service`.
