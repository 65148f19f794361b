"""GitHub Git Data API client: the five calls a commit needs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, Self
from urllib.parse import quote

import httpx

from gitbatch import __version__
from gitbatch.constants import (
    ERROR_TRUNCATION_CHARS,
    GITHUB_API_URL,
    GITHUB_API_VERSION,
    HTTP_TIMEOUT_SECONDS,
)
from gitbatch.errors import RemoteError
from gitbatch.github.schemas import GitCommit, GitRef, GitTree, TreeEntry

if TYPE_CHECKING:
    from gitbatch.config import Settings

logger = logging.getLogger(__name__)


class GitDataClient(Protocol):
    """Remote object store operations used by the commit pipeline.

    Implementations raise RemoteError on failure.
    """

    async def get_ref(self, owner: str, repo: str, ref: str) -> GitRef: ...
    async def get_commit(
        self, owner: str, repo: str, sha: str
    ) -> GitCommit: ...
    async def create_tree(
        self,
        owner: str,
        repo: str,
        base_tree: str,
        entries: list[TreeEntry],
    ) -> GitTree: ...
    async def create_commit(
        self,
        owner: str,
        repo: str,
        message: str,
        tree: str,
        parents: list[str],
    ) -> GitCommit: ...
    async def update_ref(
        self,
        owner: str,
        repo: str,
        ref: str,
        sha: str,
        *,
        force: bool = False,
    ) -> GitRef: ...


def _ref_path(ref: str) -> str:
    """``refs/heads/main`` -> ``heads/main`` as the URL expects."""
    return quote(ref.removeprefix("refs/"), safe="/")


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    text = response.text.strip()
    if text:
        return text[:ERROR_TRUNCATION_CHARS]
    return response.reason_phrase or f"HTTP {response.status_code}"


class HttpxGitDataClient:
    """GitDataClient over the GitHub REST API using httpx.

    Usage::

        async with HttpxGitDataClient(token) as client:
            ref = await client.get_ref("octo", "demo", "refs/heads/main")
    """

    def __init__(
        self,
        token: str = "",
        *,
        base_url: str = GITHUB_API_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": f"gitbatch/{__version__}",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpxGitDataClient:
        return cls(
            settings.github_token,
            base_url=settings.github_api_url,
            timeout=settings.http_timeout_seconds,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request[T](
        self,
        method: str,
        path: str,
        parse: Callable[[dict[str, Any]], T],
        payload: dict[str, Any] | None = None,
    ) -> T:
        try:
            response = await self._http.request(method, path, json=payload)
        except httpx.HTTPError as exc:
            raise RemoteError(f"{method} {path}: {exc}") from exc
        if response.is_error:
            message = _error_message(response)
            logger.debug(
                "event=github_error method=%s path=%s status=%d message=%s",
                method,
                path,
                response.status_code,
                message,
            )
            raise RemoteError(message, response.status_code)
        # A success status with an unreadable body is still a remote failure.
        try:
            return parse(response.json())
        except (ValueError, KeyError, TypeError) as exc:
            logger.debug(
                "event=github_malformed method=%s path=%s status=%d",
                method,
                path,
                response.status_code,
            )
            message = f"malformed response: {method} {path}: {exc!r}"
            raise RemoteError(
                message[:ERROR_TRUNCATION_CHARS], response.status_code
            ) from exc

    async def get_ref(self, owner: str, repo: str, ref: str) -> GitRef:
        return await self._request(
            "GET",
            f"/repos/{owner}/{repo}/git/ref/{_ref_path(ref)}",
            GitRef.from_api,
        )

    async def get_commit(
        self, owner: str, repo: str, sha: str
    ) -> GitCommit:
        return await self._request(
            "GET",
            f"/repos/{owner}/{repo}/git/commits/{sha}",
            GitCommit.from_api,
        )

    async def create_tree(
        self,
        owner: str,
        repo: str,
        base_tree: str,
        entries: list[TreeEntry],
    ) -> GitTree:
        return await self._request(
            "POST",
            f"/repos/{owner}/{repo}/git/trees",
            GitTree.from_api,
            {
                "base_tree": base_tree,
                "tree": [e.to_api() for e in entries],
            },
        )

    async def create_commit(
        self,
        owner: str,
        repo: str,
        message: str,
        tree: str,
        parents: list[str],
    ) -> GitCommit:
        return await self._request(
            "POST",
            f"/repos/{owner}/{repo}/git/commits",
            GitCommit.from_api,
            {"message": message, "tree": tree, "parents": parents},
        )

    async def update_ref(
        self,
        owner: str,
        repo: str,
        ref: str,
        sha: str,
        *,
        force: bool = False,
    ) -> GitRef:
        return await self._request(
            "PATCH",
            f"/repos/{owner}/{repo}/git/refs/{_ref_path(ref)}",
            GitRef.from_api,
            {"sha": sha, "force": force},
        )
