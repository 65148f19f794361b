"""CLI entry point: ``gitbatch push``, ``gitbatch limits`` and ``gitbatch mcp``."""

from __future__ import annotations

# Phase 1: Singleton logging, before fastmcp is imported
from gitbatch.logging_config import setup_logging

setup_logging()

import argparse  # noqa: E402
import asyncio  # noqa: E402
import json  # noqa: E402
import logging  # noqa: E402
import sys  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import TYPE_CHECKING  # noqa: E402

from gitbatch import __version__  # noqa: E402
from gitbatch.config import Settings  # noqa: E402
from gitbatch.constants import ChunkState  # noqa: E402
from gitbatch.errors import GitBatchError  # noqa: E402
from gitbatch.logging_config import (  # noqa: E402
    cleanup_third_party_handlers,
)
from gitbatch.services.events import (  # noqa: E402
    ChunkEvent,
    ProgressCallback,
)

if TYPE_CHECKING:
    from gitbatch.github.client import HttpxGitDataClient
    from gitbatch.push.schemas import BatchResult, ChunkedPushRequest
    from gitbatch.services.push_service import BulkCommitService

# Phase 2: Clear fastmcp's own handlers after all imports
cleanup_third_party_handlers()


def main() -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.version:
        print(f"gitbatch {__version__}")
        return

    if args.command == "push":
        _run_push(args)
    elif args.command == "limits":
        _run_limits()
    elif args.command == "mcp":
        _run_mcp(args)
    else:
        parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="gitbatch",
        description=(
            "Size-aware bulk commits to GitHub "
            "with client-side rate limiting."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    push = sub.add_parser(
        "push",
        help="Push a local directory to a branch in chunks",
    )
    push.add_argument(
        "local_dir",
        type=str,
        help="Directory whose files are pushed",
    )
    push.add_argument("--owner", required=True, help="Repository owner")
    push.add_argument("--repo", required=True, help="Repository name")
    push.add_argument(
        "--branch",
        "-b",
        default="main",
        help="Branch to push to (default: main)",
    )
    push.add_argument(
        "--message",
        "-m",
        required=True,
        help="Base commit message (chunk number is appended)",
    )
    push.add_argument(
        "--prefix",
        default="",
        help="Path prefix inside the repository (default: root)",
    )
    push.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Files per chunk (default: from settings)",
    )
    push.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Keep pushing remaining chunks after a failure",
    )
    push.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )

    sub.add_parser(
        "limits",
        help="Print configured push limits as JSON",
    )

    mcp_parser = sub.add_parser(
        "mcp",
        help="Start MCP server",
    )
    mcp_parser.add_argument(
        "--transport",
        "-t",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    mcp_parser.add_argument(
        "--host",
        default="0.0.0.0",
        help=(
            "Bind address for SSE transport "
            "(default: 0.0.0.0)"
        ),
    )
    mcp_parser.add_argument(
        "--port",
        type=int,
        default=8001,
        help="Port for SSE transport (default: 8001)",
    )

    return parser


def _build_service(
    settings: Settings,
) -> tuple[HttpxGitDataClient, BulkCommitService]:
    """Wire client, limiter and service from settings."""
    from gitbatch.github.client import HttpxGitDataClient
    from gitbatch.resilience.ratelimit import RateLimiter
    from gitbatch.services.push_service import BulkCommitService

    client = HttpxGitDataClient.from_settings(settings)
    limiter = RateLimiter.from_settings(settings)
    return client, BulkCommitService(client, limiter, settings)


def _run_push(args: argparse.Namespace) -> None:
    """Execute the push command."""
    from gitbatch.ingestion import collect_files
    from gitbatch.push.schemas import ChunkedPushRequest
    from gitbatch.push.validation import format_file_size

    local_dir = Path(args.local_dir).resolve()
    if not local_dir.is_dir():
        print(f"Error: {local_dir} is not a directory", file=sys.stderr)
        sys.exit(1)

    settings = Settings()
    if not settings.github_token:
        print("Error: GITHUB_TOKEN is not set", file=sys.stderr)
        sys.exit(1)

    files = collect_files(local_dir, args.prefix)
    if not files:
        print(f"Error: no text files found in {local_dir}", file=sys.stderr)
        sys.exit(1)

    request = ChunkedPushRequest(
        owner=args.owner,
        repo=args.repo,
        branch=args.branch,
        files=files,
        message=args.message,
        chunk_size=args.chunk_size or settings.default_chunk_size,
        continue_on_error=args.continue_on_error,
    )

    def on_progress(event: ChunkEvent) -> None:
        if not args.verbose:
            return
        if event.state == ChunkState.RUNNING:
            print(f"  {event.label} ({event.files_in_chunk} files)...")
        elif event.state == ChunkState.FAILED:
            print(f"  {event.label} FAILED: {event.error}")

    total_bytes = sum(len(f["content"].encode("utf-8")) for f in files)
    print(
        f"Pushing {len(files)} files ({format_file_size(total_bytes)}) to "
        f"{args.owner}/{args.repo}@{args.branch}"
    )
    try:
        result = asyncio.run(_push(settings, request, on_progress))
    except GitBatchError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.verbose:
        for outcome in result.chunks:
            status = "ok" if outcome.success else "FAILED"
            print(
                f"  [{status}] chunk {outcome.chunk_index} "
                f"({outcome.files_in_chunk} files) "
                f"{outcome.commit_sha or outcome.error}"
            )

    print(
        f"\nDone! {result.successful_chunks}/{result.total_chunks} "
        f"chunks committed ({result.failed_chunks} failed)"
    )
    if result.final_commit_sha:
        print(f"Head: {result.final_commit_sha}")
    if not result.fully_successful:
        sys.exit(2)


async def _push(
    settings: Settings,
    request: ChunkedPushRequest,
    on_progress: ProgressCallback,
) -> BatchResult:
    """Run one chunked push, closing the HTTP client afterwards."""
    client, service = _build_service(settings)
    async with client:
        return await service.push_files_chunked(
            request, on_progress=on_progress
        )


def _run_limits() -> None:
    """Print the configured push limits."""
    from gitbatch.services.push_service import push_limits

    print(json.dumps(push_limits(Settings()).model_dump(), indent=2))


def _run_mcp(args: argparse.Namespace) -> None:
    """Start the MCP server."""
    settings = Settings()
    logging.getLogger().setLevel(settings.log_level.upper())
    asyncio.run(
        _setup_and_run_mcp(
            settings,
            args.transport,
            args.host,
            args.port,
        )
    )


async def _setup_and_run_mcp(
    settings: Settings,
    transport: str = "stdio",
    host: str = "0.0.0.0",
    port: int = 8001,
) -> None:
    """Wire the service, run MCP, close the HTTP client."""
    from gitbatch.mcp.server import configure, mcp

    client, service = _build_service(settings)
    configure(service)

    try:
        if transport == "stdio":
            await mcp.run_async(transport="stdio")
        else:
            await mcp.run_async(
                transport="sse", host=host, port=port
            )
    finally:
        await client.aclose()


if __name__ == "__main__":
    main()
