"""
cicd_monitor.monitor.config

Explicit engine configuration, built once from Settings and passed in at construction.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from types import MappingProxyType

from cicd_monitor.monitor.errors import ConfigurationError
from cicd_monitor.settings import ReleaseTargetConfig, Settings


@dataclass(frozen=True, slots=True)
class PromotionConfig:
    validation_definition_id: int
    build_definition_id: int
    release_targets: tuple[ReleaseTargetConfig, ...] = ()
    lookback: timedelta = timedelta(hours=24)
    lookback_limit: int = 10
    build_variables: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    release_description_template: str = "Daily release: {date}"
    auto_complete_releases: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> PromotionConfig:
        if settings.validation_definition_id is None or settings.build_definition_id is None:
            raise ConfigurationError("validation and build definition ids are required")
        return cls(
            validation_definition_id=settings.validation_definition_id,
            build_definition_id=settings.build_definition_id,
            release_targets=tuple(settings.release_targets),
            lookback=timedelta(hours=settings.lookback_hours),
            lookback_limit=settings.lookback_limit,
            build_variables=MappingProxyType(dict(settings.build_variables)),
            release_description_template=settings.release_description_template,
            auto_complete_releases=settings.auto_complete_releases,
        )

    def release_description(self, date: str) -> str:
        return self.release_description_template.format(date=date)
