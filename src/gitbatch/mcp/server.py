"""MCP server: FastMCP instance with configure/run helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastmcp import FastMCP

from gitbatch import __version__
from gitbatch.mcp.tools import register_tools

if TYPE_CHECKING:
    from gitbatch.services.push_service import BulkCommitService

mcp = FastMCP(
    name="gitbatch",
    version=__version__,
    instructions=(
        "Bulk file commits to GitHub: push large batches in "
        "size-aware chunks, delete many files in one commit, "
        "and inspect push limits and rate limiter statistics"
    ),
)

_service: BulkCommitService | None = None

register_tools(mcp)


def configure(service: BulkCommitService) -> None:
    """Set the service the MCP tools delegate to.

    Must be called before serving requests.
    """
    global _service  # noqa: PLW0603
    _service = service


def get_service() -> BulkCommitService:
    """Get the configured service."""
    if _service is None:
        msg = (
            "MCP server not configured. "
            "Call configure(service) first."
        )
        raise RuntimeError(msg)
    return _service
