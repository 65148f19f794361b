"""Batch orchestration: validate, plan and commit chunks in order.

Chunks run strictly one after another because each commit builds on
the branch tip left by the previous one. Validation and planning errors
abort before any remote call; per-chunk failures are recorded in the
chunk outcome and, unless ``continue_on_error`` is set, stop the batch.
Earlier commits are never rolled back.
"""

from __future__ import annotations

import asyncio
import logging
import time

from gitbatch.config import Settings
from gitbatch.constants import (
    ERROR_TRUNCATION_CHARS,
    MIB,
    PUSH_RECOMMENDATIONS,
    ChunkState,
    ErrorCode,
)
from gitbatch.errors import GitBatchError, PushValidationError
from gitbatch.github.client import GitDataClient
from gitbatch.push.chunker import plan_chunks
from gitbatch.push.pipeline import CommitPipeline
from gitbatch.push.schemas import (
    BatchResult,
    Chunk,
    ChunkedPushRequest,
    ChunkOutcome,
    CommitResult,
    DeleteRequest,
    DeleteResult,
    FileEntry,
    PushLimits,
    PushRequest,
    ValidationResult,
)
from gitbatch.push.validation import (
    validate_file_count,
    validate_file_size,
    validate_files,
    validate_paths,
    validate_total_size,
)
from gitbatch.resilience.errors import ErrorClass, classify_error
from gitbatch.resilience.ratelimit import RateLimiter, RateLimiterStats
from gitbatch.resilience.retry import RetryConfig
from gitbatch.services.events import ChunkEvent, ProgressCallback

logger = logging.getLogger(__name__)


def chunk_message(message: str, index: int, total: int) -> str:
    """Commit message for chunk ``index`` (1-based) of ``total``."""
    if total > 1:
        return f"{message} [chunk {index}/{total}]"
    return message


def push_limits(settings: Settings) -> PushLimits:
    """Configured ceilings, so callers can pre-size requests."""
    return PushLimits(
        max_files_per_push=settings.max_files_per_push,
        max_file_size_bytes=settings.max_file_size_bytes,
        max_file_size_mb=settings.max_file_size_bytes // MIB,
        max_total_push_size_bytes=settings.max_total_push_size_bytes,
        max_total_push_size_mb=settings.max_total_push_size_bytes // MIB,
        default_chunk_size=settings.default_chunk_size,
        max_chunk_size=settings.max_chunk_size,
        max_chunk_bytes=settings.max_chunk_bytes,
        recommendations=dict(PUSH_RECOMMENDATIONS),
    )


class BulkCommitService:
    """Entry point for push, chunked push and bulk delete operations.

    One instance is shared by all callers; it owns no per-batch state.
    The rate limiter is process-wide and shared across batches.
    """

    def __init__(
        self,
        client: GitDataClient,
        limiter: RateLimiter,
        settings: Settings | None = None,
        *,
        retry: RetryConfig | None = None,
    ) -> None:
        self._client = client
        self._limiter = limiter
        self._settings = settings or Settings()
        if retry is None and self._settings.retry_enabled:
            retry = RetryConfig.from_settings(self._settings)
        self._retry = retry

    @property
    def settings(self) -> Settings:
        return self._settings

    def _pipeline(self, cancel: asyncio.Event | None) -> CommitPipeline:
        return CommitPipeline(
            self._client,
            self._limiter,
            retry=self._retry,
            cancel=cancel,
            max_total_bytes=self._settings.max_total_push_size_bytes,
        )

    # ── Queries ────────────────────────────────────────

    def limits(self) -> PushLimits:
        return push_limits(self._settings)

    def rate_limit_stats(self) -> RateLimiterStats:
        return self._limiter.stats()

    # ── Validation ─────────────────────────────────────

    def _validate(
        self, files: list[object]
    ) -> tuple[ValidationResult, list[FileEntry]]:
        if not files:
            raise PushValidationError(
                ErrorCode.EMPTY_FILE_LIST,
                "files array cannot be empty",
                "Provide at least one file object with path and content",
            )
        result, entries = validate_files(
            files, self._settings.max_file_size_bytes
        )
        if result.oversized_files:
            sizes = {e.path: e.size for e in entries}
            path = result.oversized_files[0]
            validate_file_size(
                path, sizes[path], self._settings.max_file_size_bytes
            )
        return result, entries

    # ── Operations ─────────────────────────────────────

    async def push_files(
        self,
        request: PushRequest,
        cancel: asyncio.Event | None = None,
    ) -> CommitResult:
        """Push all files in one commit, within single-push limits."""
        validate_file_count(
            len(request.files), self._settings.max_files_per_push
        )
        result, entries = self._validate(request.files)
        validate_total_size(
            result.total_size, self._settings.max_total_push_size_bytes
        )
        return await self._pipeline(cancel).commit_files(
            request.repo_ref, request.branch, entries, request.message
        )

    async def delete_files(
        self,
        request: DeleteRequest,
        cancel: asyncio.Event | None = None,
    ) -> DeleteResult:
        """Delete all paths in one commit (no chunking)."""
        paths = validate_paths(
            request.paths, self._settings.max_files_per_push
        )
        return await self._pipeline(cancel).delete_paths(
            request.repo_ref, request.branch, paths, request.message
        )

    async def push_files_chunked(
        self,
        request: ChunkedPushRequest,
        cancel: asyncio.Event | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Push files as a sequence of commits, one per planned chunk."""
        chunk_size = min(
            max(request.chunk_size, 1), self._settings.max_chunk_size
        )
        validation, entries = self._validate(request.files)
        chunks = plan_chunks(
            entries, chunk_size, self._settings.max_chunk_bytes
        )
        total = len(chunks)
        logger.info(
            "event=batch_start repo=%s branch=%s files=%d bytes=%d "
            "chunks=%d chunk_size=%d",
            request.repo_ref,
            request.branch,
            validation.file_count,
            validation.total_size,
            total,
            chunk_size,
        )

        def _emit(event: ChunkEvent) -> None:
            logger.debug(
                "event=chunk_state %s state=%s", event.label, event.state
            )
            if on_progress is not None:
                on_progress(event)

        for i, chunk in enumerate(chunks, start=1):
            _emit(ChunkEvent(i, total, ChunkState.PENDING, len(chunk)))

        pipeline = self._pipeline(cancel)
        outcomes: list[ChunkOutcome] = []
        succeeded = 0
        failed = 0
        final_sha: str | None = None
        start = time.monotonic()

        for index, chunk in enumerate(chunks, start=1):
            _emit(ChunkEvent(index, total, ChunkState.RUNNING, len(chunk)))
            outcome = await self._run_chunk(
                pipeline, request, chunk, index, total
            )
            outcomes.append(outcome)
            if outcome.success:
                succeeded += 1
                final_sha = outcome.commit_sha
                _emit(
                    ChunkEvent(
                        index,
                        total,
                        ChunkState.SUCCEEDED,
                        len(chunk),
                        commit_sha=outcome.commit_sha,
                    )
                )
                continue

            failed += 1
            _emit(
                ChunkEvent(
                    index,
                    total,
                    ChunkState.FAILED,
                    len(chunk),
                    error=outcome.error,
                )
            )
            cancelled = outcome.error_kind == ErrorClass.CANCELLED.value
            if cancelled or not request.continue_on_error:
                logger.warning(
                    "event=batch_stopped chunk=%d/%d kind=%s",
                    index,
                    total,
                    outcome.error_kind,
                )
                break

        logger.info(
            "event=batch_end repo=%s branch=%s succeeded=%d failed=%d "
            "not_attempted=%d duration_ms=%.0f",
            request.repo_ref,
            request.branch,
            succeeded,
            failed,
            total - len(outcomes),
            (time.monotonic() - start) * 1000,
        )
        return BatchResult(
            total_files=len(entries),
            total_chunks=total,
            successful_chunks=succeeded,
            failed_chunks=failed,
            final_commit_sha=final_sha,
            chunks=outcomes,
            fully_successful=failed == 0,
        )

    async def _run_chunk(
        self,
        pipeline: CommitPipeline,
        request: ChunkedPushRequest,
        chunk: Chunk,
        index: int,
        total: int,
    ) -> ChunkOutcome:
        paths = [f.path for f in chunk]
        try:
            commit_sha = await pipeline.commit_chunk(
                request.repo_ref,
                request.branch,
                chunk,
                chunk_message(request.message, index, total),
            )
        except GitBatchError as exc:
            kind = classify_error(exc)
            logger.warning(
                "event=chunk_failed chunk=%d/%d kind=%s error=%s",
                index,
                total,
                kind.value,
                str(exc)[:ERROR_TRUNCATION_CHARS],
            )
            return ChunkOutcome(
                chunk_index=index,
                files_in_chunk=len(chunk),
                success=False,
                error=str(exc),
                error_kind=kind.value,
                files=paths,
            )
        return ChunkOutcome(
            chunk_index=index,
            files_in_chunk=len(chunk),
            commit_sha=commit_sha,
            success=True,
            files=paths,
        )
