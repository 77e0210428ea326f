"""
tests.conftest

Shared fixtures wiring the in-process fakes (see `tests.fakes`) into an engine.
"""

from __future__ import annotations

import pytest

from cicd_monitor.monitor.config import PromotionConfig
from cicd_monitor.monitor.engine import PromotionEngine
from cicd_monitor.monitor.errors import StoreError
from cicd_monitor.settings import ReleaseTargetConfig
from tests.fakes import NOW, FakeBuilds, FakeReleases, MemoryStore


@pytest.fixture
def release_targets() -> tuple[ReleaseTargetConfig, ...]:
    return (
        ReleaseTargetConfig(definition_id=1, source_alias="A", staging_names=("stage1", "stage2")),
        ReleaseTargetConfig(definition_id=2, source_alias="B", staging_names=("stage1",)),
    )


@pytest.fixture
def config(release_targets: tuple[ReleaseTargetConfig, ...]) -> PromotionConfig:
    return PromotionConfig(
        validation_definition_id=7,
        build_definition_id=9,
        release_targets=release_targets,
        build_variables={"FORCE": "true"},
    )


@pytest.fixture
def builds() -> FakeBuilds:
    return FakeBuilds()


@pytest.fixture
def releases() -> FakeReleases:
    return FakeReleases()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def engine(
    config: PromotionConfig, store: MemoryStore, builds: FakeBuilds, releases: FakeReleases
) -> PromotionEngine:
    return PromotionEngine(
        config=config, store=store, builds=builds, releases=releases, clock=lambda: NOW
    )


@pytest.fixture
def store_error() -> StoreError:
    return StoreError("blob service unavailable")
