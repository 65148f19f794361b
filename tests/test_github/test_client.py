"""Tests for the httpx Git Data API client."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from gitbatch.config import Settings
from gitbatch.errors import RemoteError
from gitbatch.github.client import HttpxGitDataClient
from gitbatch.github.schemas import TreeEntry


class Recorder:
    """MockTransport handler that replays canned responses."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": "Not Found"})
        return self.routes[key]

    def body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


def _client(recorder: Recorder, token: str = "t0ken") -> HttpxGitDataClient:
    return HttpxGitDataClient(
        token,
        base_url="https://api.example.test",
        transport=httpx.MockTransport(recorder),
    )


@pytest.mark.asyncio
async def test_get_ref_strips_refs_prefix() -> None:
    rec = Recorder({
        ("GET", "/repos/octo/demo/git/ref/heads/main"): httpx.Response(
            200,
            json={"ref": "refs/heads/main", "object": {"sha": "abc"}},
        )
    })
    async with _client(rec) as client:
        ref = await client.get_ref("octo", "demo", "refs/heads/main")
    assert ref.ref == "refs/heads/main"
    assert ref.sha == "abc"


@pytest.mark.asyncio
async def test_headers_sent() -> None:
    rec = Recorder({
        ("GET", "/repos/o/r/git/commits/c1"): httpx.Response(
            200, json={"sha": "c1", "tree": {"sha": "t1"}}
        )
    })
    async with _client(rec) as client:
        commit = await client.get_commit("o", "r", "c1")
    assert commit.tree_sha == "t1"
    headers = rec.requests[0].headers
    assert headers["Authorization"] == "Bearer t0ken"
    assert headers["X-GitHub-Api-Version"] == "2022-11-28"
    assert headers["Accept"] == "application/vnd.github+json"


@pytest.mark.asyncio
async def test_no_auth_header_without_token() -> None:
    rec = Recorder({
        ("GET", "/repos/o/r/git/commits/c1"): httpx.Response(
            200, json={"sha": "c1", "tree": {"sha": "t1"}}
        )
    })
    async with _client(rec, token="") as client:
        await client.get_commit("o", "r", "c1")
    assert "Authorization" not in rec.requests[0].headers


@pytest.mark.asyncio
async def test_create_tree_payload_marks_deletions() -> None:
    rec = Recorder({
        ("POST", "/repos/o/r/git/trees"): httpx.Response(
            201, json={"sha": "tree2"}
        )
    })
    entries = [
        TreeEntry(path="keep.txt", content="hi"),
        TreeEntry(path="gone.txt"),
    ]
    async with _client(rec) as client:
        tree = await client.create_tree("o", "r", "tree1", entries)

    assert tree.sha == "tree2"
    assert rec.body() == {
        "base_tree": "tree1",
        "tree": [
            {
                "path": "keep.txt",
                "mode": "100644",
                "type": "blob",
                "content": "hi",
            },
            {
                "path": "gone.txt",
                "mode": "100644",
                "type": "blob",
                "sha": None,
            },
        ],
    }


@pytest.mark.asyncio
async def test_create_commit_and_update_ref_payloads() -> None:
    rec = Recorder({
        ("POST", "/repos/o/r/git/commits"): httpx.Response(
            201, json={"sha": "c2", "tree": {"sha": "t2"}}
        ),
        ("PATCH", "/repos/o/r/git/refs/heads/main"): httpx.Response(
            200,
            json={"ref": "refs/heads/main", "object": {"sha": "c2"}},
        ),
    })
    async with _client(rec) as client:
        commit = await client.create_commit("o", "r", "msg", "t2", ["c1"])
        ref = await client.update_ref("o", "r", "refs/heads/main", commit.sha)

    assert rec.body(0) == {"message": "msg", "tree": "t2", "parents": ["c1"]}
    assert rec.body(1) == {"sha": "c2", "force": False}
    assert ref.sha == "c2"


@pytest.mark.asyncio
async def test_branch_with_slash_in_path() -> None:
    rec = Recorder({
        ("GET", "/repos/o/r/git/ref/heads/feature/x"): httpx.Response(
            200,
            json={"ref": "refs/heads/feature/x", "object": {"sha": "s"}},
        )
    })
    async with _client(rec) as client:
        ref = await client.get_ref("o", "r", "refs/heads/feature/x")
    assert ref.sha == "s"


@pytest.mark.asyncio
async def test_error_status_raises_remote_error() -> None:
    rec = Recorder({
        ("PATCH", "/repos/o/r/git/refs/heads/main"): httpx.Response(
            422, json={"message": "Update is not a fast forward"}
        )
    })
    async with _client(rec) as client:
        with pytest.raises(RemoteError) as exc_info:
            await client.update_ref("o", "r", "refs/heads/main", "c2")
    assert exc_info.value.status_code == 422
    assert exc_info.value.message == "Update is not a fast forward"


@pytest.mark.asyncio
async def test_error_without_json_uses_text() -> None:
    rec = Recorder({
        ("GET", "/repos/o/r/git/commits/x"): httpx.Response(
            502, text="upstream unavailable"
        )
    })
    async with _client(rec) as client:
        with pytest.raises(RemoteError) as exc_info:
            await client.get_commit("o", "r", "x")
    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "upstream unavailable"


@pytest.mark.asyncio
async def test_transport_error_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = HttpxGitDataClient(
        base_url="https://api.example.test",
        transport=httpx.MockTransport(handler),
    )
    async with client:
        with pytest.raises(RemoteError) as exc_info:
            await client.get_commit("o", "r", "x")
    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


def test_from_settings() -> None:
    settings = Settings(  # type: ignore[call-arg]
        _env_file=None,
        github_token="abc",
        github_api_url="https://ghe.example.test/api/v3",
    )
    client = HttpxGitDataClient.from_settings(settings)
    assert str(client._http.base_url).startswith(
        "https://ghe.example.test/api/v3"
    )
    assert client._http.headers["Authorization"] == "Bearer abc"


@pytest.mark.asyncio
async def test_success_with_non_json_body_raises_remote_error() -> None:
    rec = Recorder({
        ("POST", "/repos/o/r/git/trees"): httpx.Response(
            200, text="<html>proxy</html>"
        )
    })
    async with _client(rec) as client:
        with pytest.raises(RemoteError) as exc_info:
            await client.create_tree("o", "r", "t1", [])
    err = exc_info.value
    assert err.status_code == 200
    assert err.message.startswith("malformed response: POST")
    assert isinstance(err.__cause__, ValueError)


@pytest.mark.parametrize(
    "body",
    [
        {"sha": "c1"},
        {"sha": "c1", "tree": None},
        {"sha": None, "tree": {"sha": "t1"}},
        ["c1"],
    ],
)
@pytest.mark.asyncio
async def test_success_with_unexpected_shape_raises_remote_error(
    body: Any,
) -> None:
    rec = Recorder({
        ("GET", "/repos/o/r/git/commits/c1"): httpx.Response(200, json=body)
    })
    async with _client(rec) as client:
        with pytest.raises(RemoteError) as exc_info:
            await client.get_commit("o", "r", "c1")
    assert exc_info.value.status_code == 200
    assert "malformed response" in exc_info.value.message
