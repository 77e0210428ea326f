"""
cicd_monitor.clients.models

Gateway contracts consumed by the promotion engine.

Responsibilities:
- Define the small, vendor-neutral result types returned by the gateways.
- Define the Protocols the engine depends on, so tests can pass in-process fakes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class BuildSummary:
    id: int
    build_number: str | None = None
    source_version: str | None = None
    source_branch: str | None = None
    finish_time: str | None = None


@dataclass(frozen=True, slots=True)
class QueuedBuild:
    id: int
    build_number: str | None
    uri: str | None = None


@dataclass(frozen=True, slots=True)
class BuildDetails:
    id: int
    status: str | None
    result: str | None
    build_number: str | None = None


@dataclass(frozen=True, slots=True)
class CreatedRelease:
    id: int
    name: str | None


@dataclass(frozen=True, slots=True)
class ReleaseEnvironment:
    name: str
    status: str | None


@dataclass(frozen=True, slots=True)
class ReleaseDetails:
    id: int
    environments: tuple[ReleaseEnvironment, ...] = ()


class BuildGateway(Protocol):
    async def find_recent_successful_builds(
        self, *, definition_id: int, min_time: datetime, limit: int
    ) -> list[BuildSummary]:
        """Most-recent-first."""
        ...

    async def queue_build(
        self,
        *,
        definition_id: int,
        commit_id: str,
        branch: str | None,
        variables: Mapping[str, str],
    ) -> QueuedBuild: ...

    async def get_build(self, *, build_id: int) -> BuildDetails: ...


class ReleaseGateway(Protocol):
    async def create_release(
        self,
        *,
        definition_id: int,
        source_alias: str,
        build_id: int,
        build_number: str,
        description: str,
    ) -> CreatedRelease: ...

    async def get_release(self, *, release_id: int) -> ReleaseDetails: ...
