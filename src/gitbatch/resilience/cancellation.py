"""Cancellable waits driven by an ``asyncio.Event`` signal."""

from __future__ import annotations

import asyncio

from gitbatch.errors import OperationCancelledError


def check_cancelled(cancel: asyncio.Event | None) -> None:
    """Raise OperationCancelledError if the signal has already fired."""
    if cancel is not None and cancel.is_set():
        raise OperationCancelledError()


async def sleep_or_cancel(
    delay: float, cancel: asyncio.Event | None = None
) -> None:
    """Sleep for ``delay`` seconds unless ``cancel`` fires first.

    Raises OperationCancelledError as soon as the signal is set,
    including when it was set before the call.
    """
    if cancel is None:
        await asyncio.sleep(max(delay, 0.0))
        return
    check_cancelled(cancel)
    if delay <= 0:
        return
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay)
    except TimeoutError:
        return
    raise OperationCancelledError()
