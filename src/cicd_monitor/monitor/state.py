"""
cicd_monitor.monitor.state

Durable state schema for the daily promotion record.

Responsibilities:
- Define the record persisted once per UTC date (validation -> build -> releases).
- Provide the JSON codec used by the state store (unset optionals are omitted).
- Create a fresh record for a new date and align release tracking with configuration.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from cicd_monitor.monitor.errors import StoreError
from cicd_monitor.settings import ReleaseTargetConfig

DATE_FORMAT = "%Y-%m-%d"


class PromotionState(enum.StrEnum):
    # Enum values are persisted in the record; treat as stable wire contract.
    none = "none"
    not_start = "notStart"
    build_in_progress = "buildInProgress"
    build_failed = "buildFailed"
    build_succeeded = "buildSucceeded"
    release_in_progress = "releaseInProgress"
    release_failed = "releaseFailed"
    release_succeeded = "releaseSucceeded"

    @property
    def is_terminal(self) -> bool:
        return self in (PromotionState.release_failed, PromotionState.release_succeeded)


class _WireModel(BaseModel):
    # Python names internally, legacy JSON keys on the wire.
    model_config = ConfigDict(populate_by_name=True)


class ValidationRun(_WireModel):
    id: int
    commit_id: str | None = None
    branch: str | None = None


class BuildTracking(_WireModel):
    id: int
    build_number: str | None = None
    status: str | None = None
    result: str | None = None
    retry_count: int = Field(default=0, alias="count")


class Staging(_WireModel):
    name: str = Field(alias="staging_name")
    status: str | None = Field(default=None, alias="staging_status")


class ReleaseTracking(_WireModel):
    definition_id: int
    source_alias: str
    release_id: int | None = None
    release_name: str | None = None
    stagings: list[Staging] = Field(default_factory=list, alias="staging")

    def matches(self, target: ReleaseTargetConfig) -> bool:
        return (
            self.definition_id == target.definition_id
            and self.source_alias == target.source_alias
        )


class PromotionRecord(_WireModel):
    """
    One record per calendar date; `state` alone decides the next action.
    """

    validation: ValidationRun = Field(alias="e2e_master_validation")
    build: BuildTracking | None = Field(default=None, alias="ev2_aks_build")
    releases: list[ReleaseTracking] = Field(default_factory=list, alias="ev2_aks_release")
    state: PromotionState = PromotionState.none
    date: str

    @model_validator(mode="after")
    def _build_present_iff_triggered(self) -> PromotionRecord:
        # A build exists exactly when the record has left `none`.
        if self.state is not PromotionState.none and self.build is None:
            raise ValueError(f"state {self.state.value!r} requires ev2_aks_build")
        if self.state is PromotionState.none and self.build is not None:
            raise ValueError("state 'none' must not carry ev2_aks_build")
        return self


def record_key(now: datetime) -> str:
    """
    Store key for the record covering `now` (always evaluated in UTC).
    """

    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(UTC).strftime(DATE_FORMAT)


def build_release_targets(configured: Iterable[ReleaseTargetConfig]) -> list[ReleaseTracking]:
    # Staging names are known in advance; statuses stay unknown until observed.
    return [
        ReleaseTracking(
            definition_id=t.definition_id,
            source_alias=t.source_alias,
            stagings=[Staging(name=n) for n in t.staging_names],
        )
        for t in configured
    ]


def reconcile_release_targets(
    existing: Sequence[ReleaseTracking],
    configured: Sequence[ReleaseTargetConfig],
) -> list[ReleaseTracking]:
    """
    Return release tracking entries in configured order.

    Entries already tracked for the same (definition_id, source_alias) are kept as-is,
    missing ones are created fresh, and entries no longer configured are dropped.
    """

    out: list[ReleaseTracking] = []
    remaining = list(existing)
    for target in configured:
        match = next((r for r in remaining if r.matches(target)), None)
        if match is None:
            out.extend(build_release_targets([target]))
            continue
        remaining.remove(match)
        known = {s.name.casefold() for s in match.stagings}
        for name in target.staging_names:
            if name.casefold() not in known:
                match.stagings.append(Staging(name=name))
        out.append(match)
    return out


def new_record(
    date: str,
    *,
    validation_definition_id: int,
    release_targets: Iterable[ReleaseTargetConfig] = (),
) -> PromotionRecord:
    return PromotionRecord(
        validation=ValidationRun(id=validation_definition_id),
        releases=build_release_targets(release_targets),
        state=PromotionState.none,
        date=date,
    )


def dump_record(record: PromotionRecord) -> bytes:
    # exclude_none keeps "never observed" distinct from "observed as empty".
    return record.model_dump_json(by_alias=True, exclude_none=True, indent=1).encode("utf-8")


def load_record(raw: bytes | str) -> PromotionRecord:
    try:
        return PromotionRecord.model_validate_json(raw)
    except ValidationError as e:
        raise StoreError(f"stored record is not valid: {e}") from e


# --- Module Notes -----------------------------------------------------------
# Wire keys (e2e_master_validation, ev2_aks_build, ev2_aks_release, count, staging_name, ...)
# match records written by earlier monitor versions, so existing blobs stay readable.
