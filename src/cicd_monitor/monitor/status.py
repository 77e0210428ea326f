"""
cicd_monitor.monitor.status

Pure mapping rules from external build/release status vocabularies to PromotionState.
"""

from __future__ import annotations

from collections.abc import Sequence

from cicd_monitor.monitor.state import PromotionState, ReleaseTracking

BUILD_STATUS_COMPLETED = "completed"
BUILD_RESULT_SUCCEEDED = "succeeded"

ENVIRONMENT_SUCCEEDED = "succeeded"
# Environment statuses after which a staging will not progress on its own.
ENVIRONMENT_FAILED = frozenset({"rejected", "canceled", "partiallysucceeded"})


def map_build_status(status: str | None, result: str | None) -> PromotionState:
    """
    completed + succeeded -> buildSucceeded; completed + anything else -> buildFailed;
    every other status (queued, notStarted, inProgress, unknown, missing) -> buildInProgress.
    """

    if status == BUILD_STATUS_COMPLETED:
        if result == BUILD_RESULT_SUCCEEDED:
            return PromotionState.build_succeeded
        return PromotionState.build_failed
    return PromotionState.build_in_progress


def release_outcome(releases: Sequence[ReleaseTracking]) -> PromotionState | None:
    """
    Decide whether a release batch has finished.

    - any staging in a failed terminal status -> releaseFailed
    - every target created and every staging succeeded -> releaseSucceeded
    - otherwise None (keep monitoring)
    """

    stagings = [s for r in releases for s in r.stagings]
    if any((s.status or "").casefold() in ENVIRONMENT_FAILED for s in stagings):
        return PromotionState.release_failed
    if not releases or any(r.release_id is None for r in releases):
        return None
    if stagings and all((s.status or "").casefold() == ENVIRONMENT_SUCCEEDED for s in stagings):
        return PromotionState.release_succeeded
    return None
