"""Progress events emitted while a batch is committed chunk by chunk."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from gitbatch.constants import ChunkState


@dataclass(frozen=True)
class ChunkEvent:
    """A chunk changed state."""

    chunk_index: int  # 1-based
    total_chunks: int
    state: ChunkState
    files_in_chunk: int
    commit_sha: str | None = None
    error: str | None = None

    @property
    def label(self) -> str:
        return f"chunk {self.chunk_index}/{self.total_chunks}"


type ProgressCallback = Callable[[ChunkEvent], None]
