"""
tests.test_clients

Azure DevOps gateways against an `httpx.MockTransport`.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Callable
from datetime import UTC, datetime

import httpx
import pytest

from cicd_monitor.clients.builds import AzureBuildClient, build_id_from_uri
from cicd_monitor.clients.pat import EnvPatProvider, StaticPatProvider
from cicd_monitor.clients.releases import AzureReleaseClient
from cicd_monitor.monitor.errors import ConfigurationError, GatewayError

BASE = "https://dev.azure.com/contoso/aks/"
VSRM = "https://vsrm.dev.azure.com/contoso/aks/"
PAT = StaticPatProvider("s3cret")

Handler = Callable[[httpx.Request], httpx.Response]


def _http(handler: Handler, base_url: str = BASE) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=base_url)


def _expected_auth() -> str:
    return "Basic " + base64.b64encode(b":s3cret").decode()


@pytest.mark.asyncio
async def test_find_recent_successful_builds_query_and_parse() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "count": 2,
                "value": [
                    {
                        "id": 12,
                        "buildNumber": "20240101.2",
                        "sourceVersion": "def456",
                        "sourceBranch": "refs/heads/master",
                        "finishTime": "2024-01-01T10:00:00Z",
                    },
                    {"id": 11, "buildNumber": "20240101.1"},
                ],
            },
        )

    async with _http(handler) as http:
        client = AzureBuildClient(http=http, pat_provider=PAT)
        builds = await client.find_recent_successful_builds(
            definition_id=7, min_time=datetime(2023, 12, 31, 12, tzinfo=UTC), limit=10
        )

    (request,) = seen
    assert request.method == "GET"
    assert request.url.path == "/contoso/aks/_apis/build/builds"
    assert request.url.params["definitions"] == "7"
    assert request.url.params["$top"] == "10"
    assert request.url.params["resultFilter"] == "succeeded"
    assert request.url.params["minTime"] == "2023-12-31T12:00:00Z"
    assert request.url.params["api-version"] == "7.1"
    assert request.headers["Authorization"] == _expected_auth()

    assert [b.id for b in builds] == [12, 11]
    assert builds[0].source_version == "def456"
    assert builds[1].source_version is None


@pytest.mark.asyncio
async def test_queue_build_posts_commit_and_variables() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={"id": 34898972, "buildNumber": "20240101.5", "uri": "vstfs:///Build/Build/34898972"},
        )

    async with _http(handler) as http:
        client = AzureBuildClient(http=http, pat_provider=PAT)
        queued = await client.queue_build(
            definition_id=9, commit_id="abc123", branch=None, variables={"FORCE": "true"}
        )

    assert bodies == [
        {
            "definition": {"id": 9},
            "sourceBranch": "refs/heads/master",
            "sourceVersion": "abc123",
            "parameters": '{"FORCE": "true"}',
        }
    ]
    assert queued.id == 34898972
    assert queued.build_number == "20240101.5"


@pytest.mark.asyncio
async def test_queue_build_falls_back_to_uri_for_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"buildNumber": "1", "uri": "vstfs:///Build/Build/77"})

    async with _http(handler) as http:
        client = AzureBuildClient(http=http, pat_provider=PAT)
        queued = await client.queue_build(
            definition_id=9, commit_id="abc", branch="refs/heads/release", variables={}
        )

    assert queued.id == 77


def test_build_id_from_uri() -> None:
    assert build_id_from_uri("vstfs:///Build/Build/34898972") == 34898972
    with pytest.raises(GatewayError):
        build_id_from_uri("vstfs:///Build/Build/")
    with pytest.raises(GatewayError):
        build_id_from_uri(None)


@pytest.mark.asyncio
async def test_get_build_returns_status_and_result() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/_apis/build/builds/42")
        return httpx.Response(
            200,
            json={"id": 42, "status": "completed", "result": "succeeded", "buildNumber": "b"},
        )

    async with _http(handler) as http:
        details = await AzureBuildClient(http=http, pat_provider=PAT).get_build(build_id=42)

    assert (details.status, details.result, details.build_number) == ("completed", "succeeded", "b")


@pytest.mark.asyncio
async def test_http_error_becomes_gateway_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="unauthorized")

    async with _http(handler) as http:
        client = AzureBuildClient(http=http, pat_provider=PAT)
        with pytest.raises(GatewayError) as exc:
            await client.get_build(build_id=42)

    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_transport_error_becomes_gateway_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _http(handler) as http:
        client = AzureBuildClient(http=http, pat_provider=PAT)
        with pytest.raises(GatewayError) as exc:
            await client.get_build(build_id=42)

    assert exc.value.status_code is None


@pytest.mark.asyncio
async def test_non_json_body_becomes_gateway_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>sign in</html>")

    async with _http(handler) as http:
        with pytest.raises(GatewayError):
            await AzureBuildClient(http=http, pat_provider=PAT).get_build(build_id=42)


@pytest.mark.asyncio
async def test_create_release_references_build_artifact() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.host == "vsrm.dev.azure.com"
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"id": 900, "name": "Release-900"})

    async with _http(handler, VSRM) as http:
        created = await AzureReleaseClient(http=http, pat_provider=PAT).create_release(
            definition_id=1,
            source_alias="A",
            build_id=42,
            build_number="20240101.1",
            description="Daily release: 2024-01-01",
        )

    assert (created.id, created.name) == (900, "Release-900")
    (body,) = bodies
    assert body["definitionId"] == 1
    assert body["description"] == "Daily release: 2024-01-01"
    assert body["artifacts"] == [
        {"alias": "A", "instanceReference": {"id": "42", "name": "20240101.1"}}
    ]


@pytest.mark.asyncio
async def test_get_release_returns_environment_statuses() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/_apis/release/releases/900")
        return httpx.Response(
            200,
            json={
                "id": 900,
                "environments": [
                    {"name": "stage1", "status": "succeeded"},
                    {"name": "stage2", "status": "inProgress"},
                    {"status": "orphan"},
                ],
            },
        )

    async with _http(handler, VSRM) as http:
        details = await AzureReleaseClient(http=http, pat_provider=PAT).get_release(release_id=900)

    assert [(e.name, e.status) for e in details.environments] == [
        ("stage1", "succeeded"),
        ("stage2", "inProgress"),
    ]


def test_env_pat_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MY_PAT", "token")
    assert EnvPatProvider("MY_PAT").get_pat() == "token"

    monkeypatch.delenv("MY_PAT")
    with pytest.raises(ConfigurationError):
        EnvPatProvider("MY_PAT").get_pat()


@pytest.mark.asyncio
async def test_pat_lost_mid_loop_is_a_retryable_gateway_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("MY_PAT", raising=False)
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": 42})

    async with _http(handler) as http:
        client = AzureBuildClient(http=http, pat_provider=EnvPatProvider("MY_PAT"))
        with pytest.raises(GatewayError) as exc:
            await client.get_build(build_id=42)

    assert not isinstance(exc.value, ConfigurationError)
    assert seen == []


def test_static_pat_is_hidden_from_repr() -> None:
    assert "s3cret" not in repr(PAT)
