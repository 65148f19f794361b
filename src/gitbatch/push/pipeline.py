"""One atomic commit against the remote object store.

Five remote steps: read branch tip, read base commit, create tree,
create commit, advance the ref (non-force). Nothing mutates the branch
before the last step, so a failure needs no rollback. A concurrent
writer makes the final step fail instead of being overwritten.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from gitbatch.constants import (
    BRANCH_REF_PREFIX,
    MAX_TOTAL_PUSH_SIZE_BYTES,
    PipelineStep,
    RateClass,
)
from gitbatch.errors import CommitStepError, RemoteError
from gitbatch.github.client import GitDataClient
from gitbatch.github.schemas import GitRef, TreeEntry
from gitbatch.push.schemas import (
    CommitResult,
    DeleteResult,
    FileEntry,
    RepoRef,
)
from gitbatch.push.validation import validate_chunk_size
from gitbatch.resilience.ratelimit import RateLimiter
from gitbatch.resilience.retry import RetryConfig, retry_with_backoff

logger = logging.getLogger(__name__)


class CommitPipeline:
    """Commits groups of tree entries to a branch, one commit per call.

    Every remote call first takes a core token from ``limiter``. When
    ``retry`` is given, each step is retried with backoff; otherwise a
    remote failure fails the commit immediately.
    """

    def __init__(
        self,
        client: GitDataClient,
        limiter: RateLimiter,
        *,
        retry: RetryConfig | None = None,
        cancel: asyncio.Event | None = None,
        max_total_bytes: int = MAX_TOTAL_PUSH_SIZE_BYTES,
    ) -> None:
        self._client = client
        self._limiter = limiter
        self._retry = retry
        self._cancel = cancel
        self._max_total_bytes = max_total_bytes

    async def commit_chunk(
        self,
        repo: RepoRef,
        branch: str,
        files: Sequence[FileEntry],
        message: str,
    ) -> str:
        """Commit ``files`` on top of the branch tip; return the new sha."""
        commit_sha, _ = await self._commit_files(repo, branch, files, message)
        return commit_sha

    async def commit_files(
        self,
        repo: RepoRef,
        branch: str,
        files: Sequence[FileEntry],
        message: str,
    ) -> CommitResult:
        commit_sha, ref = await self._commit_files(
            repo, branch, files, message
        )
        return CommitResult(
            commit_sha=commit_sha,
            files=[f.path for f in files],
            files_pushed=len(files),
            ref=ref.ref,
        )

    async def delete_paths(
        self,
        repo: RepoRef,
        branch: str,
        paths: Sequence[str],
        message: str,
    ) -> DeleteResult:
        """Remove ``paths`` from the branch in a single commit."""
        entries = [TreeEntry(path=p) for p in paths]
        commit_sha, ref = await self._commit_tree(
            repo, branch, entries, message
        )
        return DeleteResult(
            commit_sha=commit_sha,
            deleted_files=list(paths),
            files_deleted=len(paths),
            ref=ref.ref,
        )

    async def _commit_files(
        self,
        repo: RepoRef,
        branch: str,
        files: Sequence[FileEntry],
        message: str,
    ) -> tuple[str, GitRef]:
        validate_chunk_size(files, self._max_total_bytes)
        entries = [TreeEntry(path=f.path, content=f.content) for f in files]
        return await self._commit_tree(repo, branch, entries, message)

    async def _commit_tree(
        self,
        repo: RepoRef,
        branch: str,
        entries: list[TreeEntry],
        message: str,
    ) -> tuple[str, GitRef]:
        owner, name = repo.owner, repo.repo
        ref_name = BRANCH_REF_PREFIX + branch

        ref = await self._call(
            PipelineStep.GET_REF,
            lambda: self._client.get_ref(owner, name, ref_name),
        )
        base = await self._call(
            PipelineStep.GET_COMMIT,
            lambda: self._client.get_commit(owner, name, ref.sha),
        )
        tree = await self._call(
            PipelineStep.CREATE_TREE,
            lambda: self._client.create_tree(
                owner, name, base.tree_sha, entries
            ),
        )
        commit = await self._call(
            PipelineStep.CREATE_COMMIT,
            lambda: self._client.create_commit(
                owner, name, message, tree.sha, [base.sha]
            ),
        )
        updated = await self._call(
            PipelineStep.UPDATE_REF,
            lambda: self._client.update_ref(
                owner, name, ref.ref, commit.sha, force=False
            ),
        )
        logger.info(
            "event=commit_created repo=%s branch=%s sha=%s entries=%d",
            repo,
            branch,
            commit.sha,
            len(entries),
        )
        return commit.sha, updated

    async def _call[T](
        self,
        step: PipelineStep,
        fn: Callable[[], Awaitable[T]],
    ) -> T:
        async def _attempt() -> T:
            await self._limiter.acquire(RateClass.CORE, self._cancel)
            return await fn()

        try:
            if self._retry is None:
                return await _attempt()
            return await retry_with_backoff(
                _attempt, self._retry, self._cancel
            )
        except RemoteError as exc:
            raise CommitStepError.from_remote(step, exc) from exc
