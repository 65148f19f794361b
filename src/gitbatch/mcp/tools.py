"""MCP tool definitions: thin adapters over BulkCommitService."""

# pyright: reportUnusedFunction=false
# All functions are registered via @mcp.tool decorator

from __future__ import annotations

import json
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from gitbatch.errors import GitBatchError
from gitbatch.push.schemas import (
    ChunkedPushRequest,
    DeleteRequest,
    PushRequest,
)

if TYPE_CHECKING:
    from gitbatch.services.push_service import BulkCommitService


def register_tools(mcp: FastMCP) -> None:
    """Register the push, delete and limits tools."""

    @mcp.tool()
    async def push_files(
        owner: str,
        repo: str,
        branch: str,
        files: list[dict[str, Any]],
        message: str,
    ) -> str:
        """Push multiple files to a GitHub repository in a single commit.

        Each file is an object with path (string) and content (string).
        Use push_files_chunked for batches above the per-push limit.
        """
        service = _service()
        request = PushRequest(
            owner=owner,
            repo=repo,
            branch=branch,
            files=files,
            message=message,
        )
        try:
            result = await service.push_files(request)
        except GitBatchError as exc:
            raise ToolError(str(exc)) from exc
        return result.model_dump_json()

    @mcp.tool()
    async def push_files_chunked(
        owner: str,
        repo: str,
        branch: str,
        files: list[dict[str, Any]],
        message: str,
        chunk_size: int | None = None,
        continue_on_error: bool = False,
    ) -> str:
        """Push files in chunks, creating one commit per chunk.

        Use this for large batches that exceed push_files limits. The
        chunk number is appended to the commit message when more than
        one chunk is needed.
        """
        service = _service()
        request = ChunkedPushRequest(
            owner=owner,
            repo=repo,
            branch=branch,
            files=files,
            message=message,
            chunk_size=(
                chunk_size
                if chunk_size is not None
                else service.settings.default_chunk_size
            ),
            continue_on_error=continue_on_error,
        )
        try:
            result = await service.push_files_chunked(request)
        except GitBatchError as exc:
            raise ToolError(str(exc)) from exc
        return result.model_dump_json()

    @mcp.tool()
    async def bulk_delete_files(
        owner: str,
        repo: str,
        branch: str,
        paths: list[str],
        message: str,
    ) -> str:
        """Delete multiple files from a GitHub repository in one commit."""
        service = _service()
        request = DeleteRequest(
            owner=owner,
            repo=repo,
            branch=branch,
            paths=paths,
            message=message,
        )
        try:
            result = await service.delete_files(request)
        except GitBatchError as exc:
            raise ToolError(str(exc)) from exc
        return result.model_dump_json()

    @mcp.tool()
    async def get_push_limits() -> str:
        """Get the current limits for file push operations."""
        return _service().limits().model_dump_json()

    @mcp.tool()
    async def get_rate_limit_stats() -> str:
        """Get client-side rate limiter wait counts and total wait time."""
        return json.dumps(asdict(_service().rate_limit_stats()))


def _service() -> BulkCommitService:
    """Resolve the configured service lazily (avoids import cycle)."""
    from gitbatch.mcp.server import get_service

    return get_service()
