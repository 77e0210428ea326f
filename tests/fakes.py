"""
tests.fakes

In-process fakes for the gateways and the record store.

Responsibilities:
- Let engine/action tests run without network or blob storage.
- Record every gateway call so tests can assert on what the engine asked for.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from cicd_monitor.clients.models import (
    BuildDetails,
    BuildSummary,
    CreatedRelease,
    QueuedBuild,
    ReleaseDetails,
)
from cicd_monitor.monitor.errors import GatewayError
from cicd_monitor.monitor.state import PromotionRecord, dump_record, load_record

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
TODAY = "2024-01-01"


class FakeBuilds:
    def __init__(self) -> None:
        self.recent: list[BuildSummary] = []
        self.details: dict[int, BuildDetails] = {}
        self.next_id = 100
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_find: Exception | None = None
        self.fail_queue: Exception | None = None
        self.fail_get: Exception | None = None

    async def find_recent_successful_builds(
        self, *, definition_id: int, min_time: datetime, limit: int
    ) -> list[BuildSummary]:
        self.calls.append(
            ("find", {"definition_id": definition_id, "min_time": min_time, "limit": limit})
        )
        if self.fail_find is not None:
            raise self.fail_find
        return self.recent[:limit]

    async def queue_build(
        self,
        *,
        definition_id: int,
        commit_id: str,
        branch: str | None,
        variables: Mapping[str, str],
    ) -> QueuedBuild:
        self.calls.append(
            (
                "queue",
                {
                    "definition_id": definition_id,
                    "commit_id": commit_id,
                    "branch": branch,
                    "variables": dict(variables),
                },
            )
        )
        if self.fail_queue is not None:
            raise self.fail_queue
        build_id = self.next_id
        self.next_id += 1
        return QueuedBuild(
            id=build_id,
            build_number=f"20240101.{build_id}",
            uri=f"vstfs:///Build/Build/{build_id}",
        )

    async def get_build(self, *, build_id: int) -> BuildDetails:
        self.calls.append(("get", {"build_id": build_id}))
        if self.fail_get is not None:
            raise self.fail_get
        return self.details[build_id]


class FakeReleases:
    def __init__(self) -> None:
        self.releases: dict[int, ReleaseDetails] = {}
        self.failing_definitions: set[int] = set()
        self.failing_releases: set[int] = set()
        self.created: list[dict[str, Any]] = []
        self.fetched: list[int] = []
        self.next_id = 500

    async def create_release(
        self,
        *,
        definition_id: int,
        source_alias: str,
        build_id: int,
        build_number: str,
        description: str,
    ) -> CreatedRelease:
        if definition_id in self.failing_definitions:
            raise GatewayError(f"create release for {definition_id} failed", status_code=500)
        self.created.append(
            {
                "definition_id": definition_id,
                "source_alias": source_alias,
                "build_id": build_id,
                "build_number": build_number,
                "description": description,
            }
        )
        release_id = self.next_id
        self.next_id += 1
        return CreatedRelease(id=release_id, name=f"Release-{release_id}")

    async def get_release(self, *, release_id: int) -> ReleaseDetails:
        self.fetched.append(release_id)
        if release_id in self.failing_releases:
            raise GatewayError(f"get release {release_id} failed", status_code=503)
        return self.releases[release_id]


class MemoryStore:
    """
    Keeps encoded bytes (not objects) so every test also exercises the JSON codec.
    """

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.saves = 0
        self.fail_load: Exception | None = None
        self.fail_save: Exception | None = None

    def put(self, record: PromotionRecord) -> None:
        self.blobs[record.date] = dump_record(record)

    def get(self, date: str) -> PromotionRecord:
        return load_record(self.blobs[date])

    async def load(self, date: str) -> PromotionRecord | None:
        if self.fail_load is not None:
            raise self.fail_load
        raw = self.blobs.get(date)
        return None if raw is None else load_record(raw)

    async def save(self, date: str, record: PromotionRecord) -> None:
        if self.fail_save is not None:
            raise self.fail_save
        self.saves += 1
        self.blobs[date] = dump_record(record)
