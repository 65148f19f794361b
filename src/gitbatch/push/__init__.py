"""Bulk push pipeline: validate, chunk and commit files to a branch."""

from gitbatch.push.chunker import plan_chunks
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
    RepoRef,
    ValidationResult,
)
from gitbatch.push.validation import validate_files

__all__ = [
    "BatchResult",
    "Chunk",
    "ChunkOutcome",
    "ChunkedPushRequest",
    "CommitResult",
    "DeleteRequest",
    "DeleteResult",
    "FileEntry",
    "PushLimits",
    "PushRequest",
    "RepoRef",
    "ValidationResult",
    "plan_chunks",
    "validate_files",
]
