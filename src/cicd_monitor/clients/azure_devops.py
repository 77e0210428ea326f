"""
cicd_monitor.clients.azure_devops

HTTP plumbing shared by the Azure DevOps build and release gateways.

Responsibilities:
- Attach PAT credentials (basic auth, empty user name) to every request.
- Pin the REST api-version.
- Convert transport/HTTP failures into `GatewayError` so the engine can retry next tick.
"""

from __future__ import annotations

import base64
from typing import Any

import httpx

from cicd_monitor.clients.pat import PatProvider
from cicd_monitor.monitor.errors import ConfigurationError, GatewayError
from cicd_monitor.observability.logging import get_logger

API_VERSION = "7.1"
BUILD_BASE_URL = "https://dev.azure.com/{organization}/{project}/"
RELEASE_BASE_URL = "https://vsrm.dev.azure.com/{organization}/{project}/"

log = get_logger(__name__)


class AzureDevOpsClient:
    """
    Base class for the vendor gateways. The `httpx.AsyncClient` is owned by the caller
    (see `services.wiring`) and must carry the organization/project base URL.
    """

    def __init__(self, *, http: httpx.AsyncClient, pat_provider: PatProvider) -> None:
        self._http = http
        self._pat = pat_provider

    def _authz(self) -> dict[str, str]:
        # PAT is fetched per call, mirroring a fresh connection per operation.
        try:
            pat = self._pat.get_pat()
        except ConfigurationError as e:
            # Checked at startup; losing it mid-loop is retried like any remote failure.
            raise GatewayError(f"credential unavailable: {e}") from e
        token = base64.b64encode(f":{pat}".encode()).decode("ascii")
        return {"Authorization": f"Basic {token}"}

    async def _request(
        self,
        method: str,
        url: str,
        *,
        action: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> dict[str, Any]:
        query = {"api-version": API_VERSION, **(params or {})}
        try:
            r = await self._http.request(
                method, url, params=query, json=json, headers=self._authz()
            )
            r.raise_for_status()
            payload = r.json()
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            log.warning("azure_devops.http_error", action=action, status_code=code)
            raise GatewayError(f"{action} failed with HTTP {code}", status_code=code) from e
        except httpx.HTTPError as e:
            log.warning("azure_devops.transport_error", action=action, error=str(e))
            raise GatewayError(f"{action} failed: {e}") from e
        except ValueError as e:
            # Non-JSON body (e.g. an HTML sign-in page when the PAT is rejected).
            raise GatewayError(f"{action} returned a non-JSON response") from e

        if not isinstance(payload, dict):
            raise GatewayError(f"{action} returned an unexpected payload")
        return payload


def require_int(payload: dict[str, Any], key: str, *, action: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise GatewayError(f"{action} response has no integer {key!r}")
    return value


def optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


# --- Module Notes -----------------------------------------------------------
# Timeouts are set on the shared httpx client from `Settings.http_timeout_seconds`;
# no retries happen here because the tick interval is the retry mechanism.
