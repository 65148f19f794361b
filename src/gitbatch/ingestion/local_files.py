"""Collect a local directory into raw push entries."""

from __future__ import annotations

import logging
from pathlib import Path

import pathspec

from gitbatch.ingestion import is_binary

logger = logging.getLogger(__name__)

DEFAULT_SKIP_DIRS = frozenset({
    ".git",
    "node_modules",
    ".venv",
    "__pycache__",
})


def collect_files(
    root: Path,
    prefix: str = "",
    skip_dirs: frozenset[str] = DEFAULT_SKIP_DIRS,
) -> list[dict[str, str]]:
    """Read every text file under ``root`` as ``{"path", "content"}``.

    Respects ``root/.gitignore``. Binary and non-UTF-8 files are
    skipped with a warning. Paths are POSIX, relative to ``root`` and
    joined onto ``prefix`` when given.
    """
    root = Path(root)
    if not root.is_dir():
        msg = f"Local path does not exist: {root}"
        raise FileNotFoundError(msg)

    ignore = _load_gitignore(root)
    entries: list[dict[str, str]] = []
    for path in _walk(root, root, skip_dirs, ignore, root.resolve()):
        rel = path.relative_to(root).as_posix()
        if is_binary(path):
            logger.warning("Skipping binary file: %s", rel)
            continue
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable file %s: %s", rel, exc)
            continue
        target = f"{prefix.strip('/')}/{rel}" if prefix.strip("/") else rel
        entries.append({"path": target, "content": content})
    return entries


def _walk(
    current: Path,
    root: Path,
    skip_dirs: frozenset[str],
    ignore: pathspec.PathSpec,
    resolved_root: Path,
) -> list[Path]:
    """Recursive walk with symlink protection."""
    files: list[Path] = []
    for item in sorted(current.iterdir()):
        if item.is_symlink():
            resolved = item.resolve()
            if not resolved.is_relative_to(resolved_root):
                continue
        rel = item.relative_to(root).as_posix()
        if item.is_dir():
            if item.name in skip_dirs:
                continue
            if ignore.match_file(rel + "/"):
                continue
            files.extend(
                _walk(item, root, skip_dirs, ignore, resolved_root)
            )
        elif item.is_file():
            if not ignore.match_file(rel):
                files.append(item)
    return files


def _load_gitignore(root: Path) -> pathspec.PathSpec:
    """Load .gitignore patterns using pathspec."""
    gitignore = root / ".gitignore"
    if not gitignore.exists():
        return pathspec.PathSpec.from_lines("gitignore", [])
    try:
        with open(gitignore, encoding="utf-8") as f:
            return pathspec.PathSpec.from_lines("gitignore", f)
    except OSError:
        return pathspec.PathSpec.from_lines("gitignore", [])
