"""
cicd_monitor.clients.pat

Personal access token (PAT) providers for the Azure DevOps gateways.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Protocol

from cicd_monitor.monitor.errors import ConfigurationError

DEFAULT_PAT_ENV_VAR = "PERSONAL_ACCESS_TOKEN"


class PatProvider(Protocol):
    def get_pat(self) -> str: ...


@dataclass(frozen=True, slots=True)
class EnvPatProvider:
    # Read on every call so a rotated token is picked up without a restart.
    env_var: str = DEFAULT_PAT_ENV_VAR

    def get_pat(self) -> str:
        pat = os.environ.get(self.env_var, "")
        if not pat:
            raise ConfigurationError(f"env {self.env_var} not set")
        return pat


@dataclass(frozen=True, slots=True)
class StaticPatProvider:
    pat: str = field(repr=False)

    def get_pat(self) -> str:
        return self.pat
