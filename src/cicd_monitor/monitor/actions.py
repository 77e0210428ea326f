"""
cicd_monitor.monitor.actions

The four actions the engine dispatches to, one per promotion stage.

Contract (shared by every action):
- The engine passes a private deep copy of the loaded record.
- An action mutates and returns that copy, or raises a `MonitorError` subclass.
- On error the engine discards the copy and persists the loaded record verbatim,
  so a half-applied mutation is never written.
- Per-target failures inside a release batch are isolated: logged and skipped,
  never raised.
"""

from __future__ import annotations

from datetime import datetime

from cicd_monitor.clients.models import BuildGateway, BuildSummary, ReleaseGateway
from cicd_monitor.monitor.config import PromotionConfig
from cicd_monitor.monitor.errors import GatewayError, RecordStateError
from cicd_monitor.monitor.state import (
    BuildTracking,
    PromotionRecord,
    PromotionState,
    reconcile_release_targets,
)
from cicd_monitor.monitor.status import BUILD_STATUS_COMPLETED, map_build_status, release_outcome
from cicd_monitor.observability.logging import get_logger

log = get_logger(__name__)


async def trigger_build(
    record: PromotionRecord,
    *,
    builds: BuildGateway,
    config: PromotionConfig,
    now: datetime,
) -> PromotionRecord:
    """
    Queue the downstream build against the newest successful validation run.
    Leaves the record unchanged when no validation run is visible in the lookback window.
    """

    alog = log.bind(action="trigger_build", validation_definition_id=record.validation.id)

    candidates = await builds.find_recent_successful_builds(
        definition_id=record.validation.id,
        min_time=now - config.lookback,
        limit=config.lookback_limit,
    )
    validation = _newest_with_commit(candidates)
    if validation is None:
        alog.info("validation.not_found", candidates=len(candidates))
        return record

    queued = await builds.queue_build(
        definition_id=config.build_definition_id,
        commit_id=validation.source_version or "",
        branch=validation.source_branch,
        variables=config.build_variables,
    )

    record.validation.commit_id = validation.source_version
    record.validation.branch = validation.source_branch

    if record.build is None:
        record.build = BuildTracking(id=queued.id, build_number=queued.build_number, retry_count=1)
    else:
        record.build.id = queued.id
        record.build.build_number = queued.build_number
        record.build.status = None
        record.build.result = None
        record.build.retry_count += 1

    record.state = PromotionState.not_start
    alog.info(
        "build.queued",
        validation_build_id=validation.id,
        commit_id=validation.source_version,
        build_id=queued.id,
        build_number=queued.build_number,
        retry_count=record.build.retry_count,
    )
    return record


def _newest_with_commit(candidates: list[BuildSummary]) -> BuildSummary | None:
    # Gateway returns most-recent-first; a run without a commit cannot be rebuilt.
    return next((b for b in candidates if b.source_version), None)


async def monitor_build(
    record: PromotionRecord,
    *,
    builds: BuildGateway,
) -> PromotionRecord:
    if record.build is None:
        raise RecordStateError(f"state {record.state.value!r} has no build to monitor")

    details = await builds.get_build(build_id=record.build.id)
    new_state = map_build_status(details.status, details.result)

    record.build.status = details.status
    if details.status == BUILD_STATUS_COMPLETED:
        record.build.result = details.result
    if record.build.build_number is None:
        record.build.build_number = details.build_number
    record.state = new_state

    log.info(
        "build.observed",
        action="monitor_build",
        build_id=record.build.id,
        status=details.status,
        result=details.result,
        state=new_state.value,
    )
    return record


async def trigger_release(
    record: PromotionRecord,
    *,
    releases: ReleaseGateway,
    config: PromotionConfig,
) -> PromotionRecord:
    """
    Create one release per configured target from the successful build.

    A failed target is logged and left without a release id; the batch still moves the
    record to releaseInProgress.
    """

    alog = log.bind(action="trigger_release")
    if record.build is None or record.build.build_number is None:
        raise RecordStateError("successful build has no build number to release")

    record.releases = reconcile_release_targets(record.releases, config.release_targets)
    description = config.release_description(record.date)

    failed: list[int] = []
    for target in record.releases:
        if target.release_id is not None:
            continue
        try:
            created = await releases.create_release(
                definition_id=target.definition_id,
                source_alias=target.source_alias,
                build_id=record.build.id,
                build_number=record.build.build_number,
                description=description,
            )
        except GatewayError as e:
            failed.append(target.definition_id)
            alog.error(
                "release.create_failed",
                definition_id=target.definition_id,
                source_alias=target.source_alias,
                error=str(e),
            )
            continue
        target.release_id = created.id
        target.release_name = created.name
        alog.info(
            "release.created",
            definition_id=target.definition_id,
            release_id=created.id,
            release_name=created.name,
        )

    record.state = PromotionState.release_in_progress
    if failed:
        alog.warning("release.batch_incomplete", failed_definition_ids=failed)
    return record


async def monitor_release(
    record: PromotionRecord,
    *,
    releases: ReleaseGateway,
    config: PromotionConfig,
) -> PromotionRecord:
    alog = log.bind(action="monitor_release")

    for target in record.releases:
        if target.release_id is None:
            alog.warning(
                "release.missing",
                definition_id=target.definition_id,
                source_alias=target.source_alias,
            )
            continue
        try:
            details = await releases.get_release(release_id=target.release_id)
        except GatewayError as e:
            alog.error("release.fetch_failed", release_id=target.release_id, error=str(e))
            continue

        by_name = {env.name.casefold(): env for env in details.environments}
        for staging in target.stagings:
            env = by_name.get(staging.name.casefold())
            if env is not None:
                staging.status = env.status
        alog.info(
            "release.observed",
            release_id=target.release_id,
            stagings={s.name: s.status for s in target.stagings},
        )

    if config.auto_complete_releases:
        outcome = release_outcome(record.releases)
        if outcome is not None:
            record.state = outcome
            alog.info("release.completed", state=outcome.value)
    return record
