"""
cicd_monitor.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Accept the JSON config file layout used by existing monitor deployments.
- Hide secrets from repr/logging (e.g., storage SAS token).
- Offer a cached settings instance for the CLI and API entrypoints.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from cicd_monitor.monitor.errors import ConfigurationError


class ReleaseTargetConfig(BaseModel):
    """
    One release definition to fan out to after the downstream build succeeds.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    definition_id: int
    source_alias: str
    # The legacy config file calls this list "staging".
    staging_names: tuple[str, ...] = Field(default=(), alias="staging")


class MonitorConfigFile(BaseModel):
    # Mirrors the JSON file passed via `--config`; keys are a stable external contract.
    model_config = ConfigDict(extra="ignore")

    organization: str = ""
    project: str = ""
    master_validation_e2e_id: int | None = None
    aks_build_id: int | None = None
    aks_release: list[ReleaseTargetConfig] = Field(default_factory=list)
    azure_storage_account: str = ""
    azure_storage_container: str = ""

    def to_settings_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "organization": self.organization,
            "project": self.project,
            "validation_definition_id": self.master_validation_e2e_id,
            "build_definition_id": self.aks_build_id,
            "release_targets": list(self.aks_release),
            "storage_account": self.azure_storage_account,
            "storage_container": self.azure_storage_container,
        }
        # Empty values in the file must not shadow env-provided settings.
        return {k: v for k, v in kwargs.items() if v not in ("", None, [])}


class Settings(BaseSettings):
    """
    Single settings object injected into the engine factory, the API and the CLI.
    """

    model_config = SettingsConfigDict(env_prefix="MONITOR_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "cicd-monitor"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Azure DevOps
    organization: str = ""
    project: str = ""
    validation_definition_id: int | None = None
    build_definition_id: int | None = None
    release_targets: list[ReleaseTargetConfig] = Field(default_factory=list)
    build_variables: dict[str, str] = Field(default_factory=dict)
    release_description_template: str = "Daily release: {date}"
    pat_env_var: str = "PERSONAL_ACCESS_TOKEN"
    http_timeout_seconds: float = 30.0

    # State store
    store_backend: Literal["blob", "file"] = "blob"
    storage_account: str = ""
    storage_container: str = ""
    storage_sas_token: str = Field(default="", repr=False)
    local_store_dir: str = "./records"

    # Loop
    tick_interval_seconds: float = 300.0
    tick_on_start: bool = True
    lookback_hours: int = 24
    lookback_limit: int = 10
    auto_complete_releases: bool = False

    def validate_for_run(self) -> None:
        """
        Fail fast before the loop starts; these values are never re-checked mid-loop.
        """

        missing: list[str] = []
        if not self.organization:
            missing.append("organization")
        if not self.project:
            missing.append("project")
        if self.validation_definition_id is None:
            missing.append("validation_definition_id")
        if self.build_definition_id is None:
            missing.append("build_definition_id")
        if self.store_backend == "blob":
            if not self.storage_account:
                missing.append("storage_account")
            if not self.storage_container:
                missing.append("storage_container")
            if not self.storage_sas_token:
                missing.append("storage_sas_token")
        if missing:
            raise ConfigurationError(f"missing required settings: {', '.join(missing)}")
        if self.tick_interval_seconds <= 0:
            raise ConfigurationError("tick_interval_seconds must be positive")
        if self.lookback_limit <= 0:
            raise ConfigurationError("lookback_limit must be positive")


def load_settings(config_file: str | Path | None = None, **overrides: Any) -> Settings:
    """
    Build settings from env, optionally layered with a JSON config file.

    Precedence: explicit overrides > config file > environment > defaults.
    """

    kwargs: dict[str, Any] = {}
    if config_file is not None:
        path = Path(config_file)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            kwargs.update(MonitorConfigFile.model_validate(raw).to_settings_kwargs())
        except OSError as e:
            raise ConfigurationError(f"cannot read config file {path}: {e}") from e
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigurationError(f"invalid config file {path}: {e}") from e
    kwargs.update(overrides)
    try:
        return Settings(**kwargs)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars on every dependency lookup.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Secrets that authenticate to Azure DevOps are read by `clients.pat` at call time and
# are not stored here; only the storage SAS token lives on Settings.
