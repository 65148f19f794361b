"""Local file ingestion for the push CLI."""

from pathlib import Path

from gitbatch.constants import BINARY_DETECTION_BUFFER

__all__ = ["collect_files", "is_binary"]


def is_binary(path: Path) -> bool:
    """Return True if the file appears to be binary (null byte in first N bytes)."""
    try:
        with open(path, "rb") as f:
            chunk = f.read(BINARY_DETECTION_BUFFER)
        return b"\x00" in chunk
    except OSError:
        return True


def collect_files(
    root: Path, prefix: str = ""
) -> list[dict[str, str]]:
    """Read a local directory into raw push entries."""
    from gitbatch.ingestion.local_files import collect_files as _impl

    return _impl(root, prefix)
