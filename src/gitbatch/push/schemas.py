"""Data model for the bulk commit flow.

Value objects that never leave the process are frozen dataclasses;
request and result shapes exchanged with callers are pydantic models.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gitbatch.constants import DEFAULT_CHUNK_SIZE


@dataclass(frozen=True)
class FileEntry:
    """A file to be committed. Size is the UTF-8 byte length."""

    path: str
    content: str

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))


type Chunk = tuple[FileEntry, ...]


def chunk_bytes(files: tuple[FileEntry, ...] | list[FileEntry]) -> int:
    """Cumulative byte size of a group of files."""
    return sum(f.size for f in files)


@dataclass(frozen=True)
class ValidationResult:
    """Aggregate view over one validated batch."""

    total_size: int = 0
    file_count: int = 0
    largest_file: str = ""
    largest_file_size: int = 0
    duplicates: Mapping[str, tuple[int, ...]] = field(
        default_factory=lambda: dict[str, tuple[int, ...]]()
    )
    oversized_files: tuple[str, ...] = ()


@dataclass(frozen=True)
class RepoRef:
    """Owner/name pair identifying a GitHub repository."""

    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


# ── Requests ─────────────────────────────────────────────


class PushRequest(BaseModel):
    """Single-commit push. ``files`` is raw caller input."""

    owner: str
    repo: str
    branch: str
    files: list[Any]
    message: str

    @property
    def repo_ref(self) -> RepoRef:
        return RepoRef(self.owner, self.repo)


class ChunkedPushRequest(PushRequest):
    """Push split into several commits of at most ``chunk_size`` files."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    continue_on_error: bool = False


class DeleteRequest(BaseModel):
    """Delete ``paths`` from ``branch`` in one commit."""

    owner: str
    repo: str
    branch: str
    paths: list[Any]
    message: str

    @property
    def repo_ref(self) -> RepoRef:
        return RepoRef(self.owner, self.repo)


# ── Results ──────────────────────────────────────────────


class ChunkOutcome(BaseModel):
    """Result of one chunk attempt."""

    model_config = ConfigDict(frozen=True)

    chunk_index: int
    files_in_chunk: int
    commit_sha: str | None = None
    success: bool
    error: str | None = None
    error_kind: str | None = None
    files: list[str] = Field(default_factory=lambda: list[str]())

    @model_validator(mode="after")
    def _check_consistency(self) -> Self:
        if self.success != (self.commit_sha is not None):
            raise ValueError(
                "commit_sha must be set if and only if success is true"
            )
        if self.success == (self.error is not None):
            raise ValueError(
                "error must be set if and only if success is false"
            )
        return self


class BatchResult(BaseModel):
    """Overall result of a chunked push."""

    model_config = ConfigDict(frozen=True)

    total_files: int
    total_chunks: int
    successful_chunks: int = 0
    failed_chunks: int = 0
    final_commit_sha: str | None = None
    chunks: list[ChunkOutcome] = Field(
        default_factory=lambda: list[ChunkOutcome]()
    )
    fully_successful: bool = False

    @model_validator(mode="after")
    def _check_accounting(self) -> Self:
        if self.successful_chunks + self.failed_chunks != len(self.chunks):
            raise ValueError(
                "successful + failed chunks must equal recorded outcomes"
            )
        if self.fully_successful != (self.failed_chunks == 0):
            raise ValueError(
                "fully_successful must equal (failed_chunks == 0)"
            )
        return self


class CommitResult(BaseModel):
    """Result of a single-commit push."""

    commit_sha: str
    files: list[str]
    files_pushed: int
    ref: str


class DeleteResult(BaseModel):
    """Result of a bulk delete."""

    commit_sha: str
    deleted_files: list[str]
    files_deleted: int
    ref: str


class PushLimits(BaseModel):
    """Configured ceilings, so callers can pre-size requests."""

    max_files_per_push: int
    max_file_size_bytes: int
    max_file_size_mb: int
    max_total_push_size_bytes: int
    max_total_push_size_mb: int
    default_chunk_size: int
    max_chunk_size: int
    max_chunk_bytes: int
    recommendations: dict[str, str] = Field(
        default_factory=lambda: dict[str, str]()
    )
