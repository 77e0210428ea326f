"""
cicd_monitor.clients.releases

Release system gateway (Azure DevOps Release REST API, vsrm host).

Responsibilities:
- Create a release for a definition from a specific build artifact.
- Fetch a release with its environment ("staging") statuses.
"""

from __future__ import annotations

from cicd_monitor.clients.azure_devops import AzureDevOpsClient, optional_str, require_int
from cicd_monitor.clients.models import CreatedRelease, ReleaseDetails, ReleaseEnvironment


class AzureReleaseClient(AzureDevOpsClient):
    async def create_release(
        self,
        *,
        definition_id: int,
        source_alias: str,
        build_id: int,
        build_number: str,
        description: str,
    ) -> CreatedRelease:
        body = {
            "definitionId": definition_id,
            "description": description,
            "isDraft": False,
            "artifacts": [
                {
                    "alias": source_alias,
                    "instanceReference": {"id": str(build_id), "name": build_number},
                }
            ],
        }
        payload = await self._request(
            "POST", "_apis/release/releases", action="create_release", json=body
        )
        return CreatedRelease(
            id=require_int(payload, "id", action="create_release"),
            name=optional_str(payload.get("name")),
        )

    async def get_release(self, *, release_id: int) -> ReleaseDetails:
        payload = await self._request(
            "GET", f"_apis/release/releases/{release_id}", action="get_release"
        )
        environments = tuple(
            ReleaseEnvironment(name=env["name"], status=optional_str(env.get("status")))
            for env in payload.get("environments", []) or []
            if isinstance(env, dict) and isinstance(env.get("name"), str)
        )
        return ReleaseDetails(
            id=require_int(payload, "id", action="get_release"),
            environments=environments,
        )
