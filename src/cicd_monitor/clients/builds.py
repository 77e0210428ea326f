"""
cicd_monitor.clients.builds

Build system gateway (Azure DevOps Build REST API).

Responsibilities:
- Find recent successful validation builds.
- Queue the downstream build against a validation commit.
- Fetch a build's lifecycle status/result.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime

from cicd_monitor.clients.azure_devops import AzureDevOpsClient, optional_str, require_int
from cicd_monitor.clients.models import BuildDetails, BuildSummary, QueuedBuild
from cicd_monitor.monitor.errors import GatewayError

DEFAULT_BRANCH = "refs/heads/master"


class AzureBuildClient(AzureDevOpsClient):
    async def find_recent_successful_builds(
        self, *, definition_id: int, min_time: datetime, limit: int
    ) -> list[BuildSummary]:
        payload = await self._request(
            "GET",
            "_apis/build/builds",
            action="list_builds",
            params={
                "definitions": definition_id,
                "minTime": _iso(min_time),
                "$top": limit,
                "resultFilter": "succeeded",
                "queryOrder": "finishTimeDescending",
            },
        )
        builds: list[BuildSummary] = []
        for item in payload.get("value", []) or []:
            if not isinstance(item, dict) or not isinstance(item.get("id"), int):
                continue
            builds.append(
                BuildSummary(
                    id=item["id"],
                    build_number=optional_str(item.get("buildNumber")),
                    source_version=optional_str(item.get("sourceVersion")),
                    source_branch=optional_str(item.get("sourceBranch")),
                    finish_time=optional_str(item.get("finishTime")),
                )
            )
        return builds

    async def queue_build(
        self,
        *,
        definition_id: int,
        commit_id: str,
        branch: str | None,
        variables: Mapping[str, str],
    ) -> QueuedBuild:
        body = {
            "definition": {"id": definition_id},
            "sourceBranch": branch or DEFAULT_BRANCH,
            "sourceVersion": commit_id,
            # The build API takes queue-time variables as a JSON-encoded string.
            "parameters": json.dumps(dict(variables)),
        }
        payload = await self._request("POST", "_apis/build/builds", action="queue_build", json=body)
        uri = optional_str(payload.get("uri"))
        build_id = payload.get("id")
        if not isinstance(build_id, int) or isinstance(build_id, bool):
            build_id = build_id_from_uri(uri)
        return QueuedBuild(
            id=build_id,
            build_number=optional_str(payload.get("buildNumber")),
            uri=uri,
        )

    async def get_build(self, *, build_id: int) -> BuildDetails:
        payload = await self._request("GET", f"_apis/build/builds/{build_id}", action="get_build")
        return BuildDetails(
            id=require_int(payload, "id", action="get_build"),
            status=optional_str(payload.get("status")),
            result=optional_str(payload.get("result")),
            build_number=optional_str(payload.get("buildNumber")),
        )


def build_id_from_uri(uri: str | None) -> int:
    """
    "vstfs:///Build/Build/34898972" -> 34898972
    """

    tail = (uri or "").rstrip("/").rsplit("/", 1)[-1]
    try:
        return int(tail)
    except ValueError as e:
        raise GatewayError(f"cannot parse build id from uri {uri!r}") from e


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

