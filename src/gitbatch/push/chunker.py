"""Greedy, order-preserving partition of a batch into commit-sized chunks."""

from __future__ import annotations

from collections.abc import Sequence

from gitbatch.push.schemas import Chunk, FileEntry


def plan_chunks(
    entries: Sequence[FileEntry],
    max_files_per_chunk: int,
    max_bytes_per_chunk: int,
) -> list[Chunk]:
    """Split ``entries`` into consecutive chunks within both limits.

    A new chunk starts when adding the next file would push the open
    chunk over ``max_bytes_per_chunk`` or it already holds
    ``max_files_per_chunk`` files. A file bigger than the byte limit on
    its own still gets a chunk of its own; the hard ceiling is checked
    again right before that chunk is sent.
    """
    if max_files_per_chunk < 1:
        raise ValueError("max_files_per_chunk must be at least 1")

    chunks: list[Chunk] = []
    current: list[FileEntry] = []
    current_bytes = 0

    for entry in entries:
        size = entry.size
        would_exceed_size = current_bytes + size > max_bytes_per_chunk
        would_exceed_count = len(current) >= max_files_per_chunk
        if current and (would_exceed_size or would_exceed_count):
            chunks.append(tuple(current))
            current = []
            current_bytes = 0
        current.append(entry)
        current_bytes += size

    if current:
        chunks.append(tuple(current))
    return chunks
