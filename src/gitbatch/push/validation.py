"""Pure validation of push batches: shape, duplicates and size ceilings.

Nothing here performs I/O. Every failure raises PushValidationError with
a code, a message quoting actual vs. maximum values, and a suggestion.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from gitbatch.constants import (
    MAX_FILE_SIZE_BYTES,
    MAX_FILES_PER_PUSH,
    MAX_TOTAL_PUSH_SIZE_BYTES,
    MIB,
    ErrorCode,
)
from gitbatch.errors import PushValidationError
from gitbatch.push.schemas import FileEntry, ValidationResult, chunk_bytes

_SIZE_UNITS = "KMGTPE"


def validate_files(
    files: Sequence[Any],
    max_file_size: int = MAX_FILE_SIZE_BYTES,
) -> tuple[ValidationResult, list[FileEntry]]:
    """Validate raw ``{"path", "content"}`` objects into FileEntry values.

    Stops at the first malformed entry. Oversized files are collected
    in the result rather than raised; duplicates raise after the scan
    so the error can name every index of the offending path.
    """
    total_size = 0
    largest_file = ""
    largest_size = 0
    oversized: list[str] = []
    seen: dict[str, int] = {}
    duplicates: dict[str, list[int]] = {}
    entries: list[FileEntry] = []

    for i, raw in enumerate(files):
        entry = _parse_entry(i, raw)

        if entry.path in seen:
            duplicates.setdefault(entry.path, [seen[entry.path]]).append(i)
        seen[entry.path] = i

        size = entry.size
        total_size += size
        if not largest_file or size > largest_size:
            largest_file = entry.path
            largest_size = size
        if size > max_file_size:
            oversized.append(entry.path)

        entries.append(entry)

    result = ValidationResult(
        total_size=total_size,
        file_count=len(entries),
        largest_file=largest_file,
        largest_file_size=largest_size,
        duplicates={p: tuple(idx) for p, idx in duplicates.items()},
        oversized_files=tuple(oversized),
    )

    if duplicates:
        path, indices = next(iter(duplicates.items()))
        raise PushValidationError(
            ErrorCode.DUPLICATE_FILE_PATHS,
            (
                f"duplicate file path '{path}' found at indices "
                f"{indices} - each file path must be unique"
            ),
            (
                f"Remove duplicate entries for '{path}' and ensure "
                "each path appears only once"
            ),
            {
                "path": path,
                "indices": list(indices),
                "duplicates": {p: list(v) for p, v in duplicates.items()},
            },
        )

    return result, entries


def _parse_entry(index: int, raw: Any) -> FileEntry:
    if not isinstance(raw, Mapping):
        raise PushValidationError(
            ErrorCode.INVALID_FILE_FORMAT,
            (
                f"file at index {index} must be an object "
                "with path and content"
            ),
            (
                "Ensure each file has both 'path' (string) "
                "and 'content' (string) fields"
            ),
            {"index": index},
        )
    path = raw.get("path")
    if not isinstance(path, str) or not path:
        raise PushValidationError(
            ErrorCode.MISSING_FILE_PATH,
            f"file at index {index} must have a non-empty path",
            "Add a valid 'path' field to each file object",
            {"index": index},
        )
    content = raw.get("content")
    if not isinstance(content, str):
        raise PushValidationError(
            ErrorCode.MISSING_FILE_CONTENT,
            f"file at index {index} must have content",
            (
                "Add a 'content' field to the file object "
                "(can be empty string)"
            ),
            {"index": index},
        )
    return FileEntry(path=path, content=content)


def validate_paths(
    paths: Sequence[Any], max_files: int = MAX_FILES_PER_PUSH
) -> list[str]:
    """Validate a raw list of paths for deletion."""
    if not paths:
        raise PushValidationError(
            ErrorCode.EMPTY_FILE_LIST,
            "paths array cannot be empty",
            "Provide at least one file path to delete",
        )
    if len(paths) > max_files:
        raise PushValidationError(
            ErrorCode.TOO_MANY_FILES,
            (
                f"too many files to delete: {len(paths)} exceeds "
                f"maximum of {max_files} per operation"
            ),
            "Split the deletion into several bulk_delete_files calls",
            {"count": len(paths), "max_files": max_files},
        )
    result: list[str] = []
    first_seen: dict[str, int] = {}
    for i, p in enumerate(paths):
        if not isinstance(p, str) or not p:
            raise PushValidationError(
                ErrorCode.INVALID_PATH,
                f"path at index {i} must be a non-empty string",
                "Pass each path as a non-empty string",
                {"index": i},
            )
        if p in first_seen:
            raise PushValidationError(
                ErrorCode.DUPLICATE_FILE_PATHS,
                (
                    f"duplicate path '{p}' found at indices "
                    f"{[first_seen[p], i]}"
                ),
                f"Remove duplicate entries for '{p}'",
                {"path": p, "indices": [first_seen[p], i]},
            )
        first_seen[p] = i
        result.append(p)
    return result


def validate_file_count(
    count: int, max_files: int = MAX_FILES_PER_PUSH
) -> None:
    if count > max_files:
        raise PushValidationError(
            ErrorCode.TOO_MANY_FILES,
            f"file count {count} exceeds maximum {max_files}",
            (
                f"Use push_files_chunked for batches over {max_files} "
                "files, or split into multiple push_files calls"
            ),
            {"count": count, "max_files": max_files},
        )


def validate_file_size(
    path: str, size: int, max_bytes: int = MAX_FILE_SIZE_BYTES
) -> None:
    if size > max_bytes:
        size_mb = size / MIB
        max_mb = max_bytes / MIB
        raise PushValidationError(
            ErrorCode.FILE_TOO_LARGE,
            (
                f"file '{path}' is {size_mb:.2f} MB ({size} bytes), "
                f"exceeds limit of {max_mb:.0f} MB ({max_bytes} bytes)"
            ),
            (
                f"Split '{path}' into smaller files or use "
                "Git LFS for large files"
            ),
            {
                "path": path,
                "file_size_bytes": size,
                "file_size_mb": size_mb,
                "max_bytes": max_bytes,
                "max_mb": max_mb,
            },
        )


def validate_total_size(
    total_size: int, max_bytes: int = MAX_TOTAL_PUSH_SIZE_BYTES
) -> None:
    if total_size > max_bytes:
        size_mb = total_size / MIB
        max_mb = max_bytes / MIB
        raise PushValidationError(
            ErrorCode.TOTAL_SIZE_TOO_LARGE,
            (
                f"total size {size_mb:.2f} MB ({total_size} bytes) "
                f"exceeds limit of {max_mb:.0f} MB ({max_bytes} bytes)"
            ),
            (
                "Use push_files_chunked to split into multiple commits, "
                "or reduce the number of files per push"
            ),
            {
                "total_size_bytes": total_size,
                "total_size_mb": size_mb,
                "max_bytes": max_bytes,
                "max_mb": max_mb,
            },
        )


def validate_chunk_size(
    files: Iterable[FileEntry],
    max_bytes: int = MAX_TOTAL_PUSH_SIZE_BYTES,
) -> None:
    """Last check before a chunk is sent, against the hard ceiling."""
    group = list(files)
    size = chunk_bytes(group)
    if size > max_bytes:
        size_mb = size / MIB
        max_mb = max_bytes / MIB
        raise PushValidationError(
            ErrorCode.CHUNK_TOO_LARGE,
            (
                f"chunk size ({size_mb:.2f} MB, {size} bytes) exceeds "
                f"maximum of {max_mb:.0f} MB ({max_bytes} bytes) - "
                f"this chunk contains {len(group)} files totaling "
                "too much data"
            ),
            "Reduce chunk_size parameter to use smaller chunks",
            {
                "chunk_size_bytes": size,
                "chunk_size_mb": size_mb,
                "max_bytes": max_bytes,
                "max_mb": max_mb,
                "file_count": len(group),
            },
        )


def format_file_size(size: int) -> str:
    """Human-readable size in binary units: ``1536`` -> ``"1.50 KB"``."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.2f} {_SIZE_UNITS[exp]}B"
