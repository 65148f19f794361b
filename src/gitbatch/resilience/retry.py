"""Bounded exponential backoff around any fallible async operation.

Every failure is retried until the attempt budget runs out; error
content is not inspected. Deciding whether to retry at all is the
caller's choice. The cancellation signal always wins over an
operation error.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gitbatch.constants import (
    ERROR_TRUNCATION_CHARS,
    RETRY_BACKOFF_FACTOR,
    RETRY_INITIAL_BACKOFF,
    RETRY_MAX_BACKOFF,
    RETRY_MAX_RETRIES,
)
from gitbatch.errors import OperationCancelledError
from gitbatch.resilience.cancellation import sleep_or_cancel

if TYPE_CHECKING:
    from gitbatch.config import Settings

logger = logging.getLogger(__name__)

type SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryConfig:
    """Retry budget and backoff curve (durations in seconds)."""

    max_retries: int = RETRY_MAX_RETRIES
    initial_backoff: float = RETRY_INITIAL_BACKOFF
    max_backoff: float = RETRY_MAX_BACKOFF
    backoff_factor: float = RETRY_BACKOFF_FACTOR

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be at least 1")
        # max_backoff caps every wait, the first one included.
        if self.initial_backoff > self.max_backoff:
            raise ValueError("initial_backoff must not exceed max_backoff")

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryConfig:
        return cls(
            max_retries=settings.retry_max_retries,
            initial_backoff=settings.retry_initial_backoff,
            max_backoff=settings.retry_max_backoff,
            backoff_factor=settings.retry_backoff_factor,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    delay = (
        retry_state.next_action.sleep
        if retry_state.next_action is not None
        else 0.0
    )
    logger.warning(
        "event=retry attempt=%d delay=%.2fs error=%s",
        retry_state.attempt_number,
        delay,
        str(error)[:ERROR_TRUNCATION_CHARS],
    )


async def retry_with_backoff[T](
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig,
    cancel: asyncio.Event | None = None,
    *,
    sleep: SleepFn | None = None,
) -> T:
    """Run ``operation`` up to ``config.max_retries + 1`` times.

    Backoff starts at ``initial_backoff`` and is multiplied by
    ``backoff_factor`` after each wait, capped at ``max_backoff``.
    No wait follows the final attempt; its error is re-raised.

    Raises:
        OperationCancelledError: ``cancel`` was set when an attempt
            failed, or fired during a backoff wait.
    """

    async def _attempt() -> T:
        try:
            return await operation()
        except OperationCancelledError:
            raise
        except Exception as exc:
            if cancel is not None and cancel.is_set():
                raise OperationCancelledError() from exc
            raise

    retrying = AsyncRetrying(
        sleep=sleep or partial(sleep_or_cancel, cancel=cancel),
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(
            multiplier=config.initial_backoff,
            exp_base=config.backoff_factor,
            max=config.max_backoff,
        ),
        retry=retry_if_not_exception_type(OperationCancelledError),
        before_sleep=_log_retry,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await _attempt()
    # reraise=True: an exhausted budget raises from the iterator
    raise RuntimeError("unreachable: retry loop exited without outcome")
