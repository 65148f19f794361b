"""Client-side rate limiting for GitHub API calls.

One token bucket per endpoint class (core, search, graphql). Each bucket
holds up to ``burst`` tokens and refills continuously at 90% of the
documented GitHub quota, so a well-behaved client never trips
server-side throttling.

Bucket state and counters are guarded by ``threading.Lock`` held only
across non-awaiting sections: safe for concurrent coroutines and threads.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gitbatch.constants import (
    CORE_BURST,
    CORE_REQUESTS_PER_HOUR,
    GRAPHQL_BURST,
    GRAPHQL_POINTS_PER_HOUR,
    RATE_SAFETY_FACTOR,
    SEARCH_BURST,
    SEARCH_REQUESTS_PER_MINUTE,
    RateClass,
)
from gitbatch.errors import OperationCancelledError
from gitbatch.resilience.cancellation import (
    check_cancelled,
    sleep_or_cancel,
)

if TYPE_CHECKING:
    from gitbatch.config import Settings

logger = logging.getLogger(__name__)

type Clock = Callable[[], float]

_HOUR = 3600.0
_MINUTE = 60.0


@dataclass(frozen=True)
class RateLimits:
    """Documented GitHub quotas and local burst sizes."""

    core_requests_per_hour: int = CORE_REQUESTS_PER_HOUR
    search_requests_per_minute: int = SEARCH_REQUESTS_PER_MINUTE
    graphql_points_per_hour: int = GRAPHQL_POINTS_PER_HOUR
    core_burst: int = CORE_BURST
    search_burst: int = SEARCH_BURST
    graphql_burst: int = GRAPHQL_BURST

    @classmethod
    def default(cls) -> RateLimits:
        """Limits for an authenticated GitHub user."""
        return cls()

    @classmethod
    def from_settings(cls, settings: Settings) -> RateLimits:
        return cls(
            core_requests_per_hour=settings.rate_core_requests_per_hour,
            search_requests_per_minute=(
                settings.rate_search_requests_per_minute
            ),
            graphql_points_per_hour=settings.rate_graphql_points_per_hour,
            core_burst=settings.rate_core_burst,
            search_burst=settings.rate_search_burst,
            graphql_burst=settings.rate_graphql_burst,
        )


@dataclass(frozen=True)
class RateLimiterStats:
    """Read-only snapshot of limiter counters."""

    core_waits: int = 0
    search_waits: int = 0
    graphql_waits: int = 0
    total_wait_ms: int = 0

    def waits(self, rate_class: RateClass) -> int:
        return {
            RateClass.CORE: self.core_waits,
            RateClass.SEARCH: self.search_waits,
            RateClass.GRAPHQL: self.graphql_waits,
        }[rate_class]


def per_second(quota: int, window_seconds: float) -> float:
    """Refill rate for ``quota`` per window, less the safety factor."""
    return quota * RATE_SAFETY_FACTOR / window_seconds


class TokenBucket:
    """Token bucket with continuous refill on a monotonic clock.

    ``reserve()`` always takes a token, letting the level go negative;
    the returned delay is how long the caller must wait for its token
    to exist. Later callers queue behind earlier reservations.
    """

    def __init__(
        self,
        rate: float,
        burst: int,
        clock: Clock = time.monotonic,
    ) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self._rate = rate
        self._burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._last = clock()
        self._lock = threading.Lock()

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def burst(self) -> int:
        return self._burst

    @property
    def tokens(self) -> float:
        """Current token level (negative while reservations are pending)."""
        with self._lock:
            self._advance()
            return self._tokens

    def _advance(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last)
        self._last = now
        self._tokens = min(
            float(self._burst), self._tokens + elapsed * self._rate
        )

    def try_acquire(self) -> bool:
        with self._lock:
            self._advance()
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False

    def reserve(self) -> float:
        """Take one token now; return seconds until it is usable."""
        with self._lock:
            self._advance()
            self._tokens -= 1
            if self._tokens >= 0:
                return 0.0
            return -self._tokens / self._rate

    def refund(self) -> None:
        """Return a reserved token that will not be used."""
        with self._lock:
            self._advance()
            self._tokens = min(float(self._burst), self._tokens + 1)

    def set_burst(self, burst: int) -> None:
        if burst < 1:
            raise ValueError("burst must be at least 1")
        with self._lock:
            self._advance()
            self._burst = burst
            self._tokens = min(self._tokens, float(burst))


class RateLimiter:
    """Per-endpoint-class gate in front of every GitHub API call.

    Usage::

        limiter = RateLimiter()
        await limiter.acquire(RateClass.CORE, cancel_event)
        ...issue the request...
    """

    def __init__(
        self,
        limits: RateLimits | None = None,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        limits = limits or RateLimits.default()
        self._limits = limits
        self._clock = clock
        self._buckets: dict[RateClass, TokenBucket] = {
            RateClass.CORE: TokenBucket(
                per_second(limits.core_requests_per_hour, _HOUR),
                limits.core_burst,
                clock,
            ),
            RateClass.SEARCH: TokenBucket(
                per_second(limits.search_requests_per_minute, _MINUTE),
                limits.search_burst,
                clock,
            ),
            RateClass.GRAPHQL: TokenBucket(
                per_second(limits.graphql_points_per_hour, _HOUR),
                limits.graphql_burst,
                clock,
            ),
        }
        self._stats_lock = threading.Lock()
        self._waits: dict[RateClass, int] = dict.fromkeys(RateClass, 0)
        self._total_wait_ms = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> RateLimiter:
        return cls(RateLimits.from_settings(settings))

    @property
    def limits(self) -> RateLimits:
        return self._limits

    def bucket(self, rate_class: RateClass) -> TokenBucket:
        return self._buckets[rate_class]

    def try_acquire(self, rate_class: RateClass) -> bool:
        """Take a token if one is available right now; never waits."""
        return self._buckets[rate_class].try_acquire()

    async def acquire(
        self,
        rate_class: RateClass,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """Wait for permission to issue one request of ``rate_class``.

        Raises OperationCancelledError if ``cancel`` fires first; the
        reserved token is returned and counters are left untouched.
        """
        check_cancelled(cancel)
        bucket = self._buckets[rate_class]
        start = self._clock()
        delay = bucket.reserve()
        if delay > 0:
            logger.debug(
                "event=rate_limit_wait class=%s delay=%.3fs",
                rate_class,
                delay,
            )
            try:
                await sleep_or_cancel(delay, cancel)
            except (OperationCancelledError, asyncio.CancelledError):
                bucket.refund()
                raise
        elapsed_ms = int((self._clock() - start) * 1000)
        with self._stats_lock:
            self._waits[rate_class] += 1
            self._total_wait_ms += elapsed_ms

    def stats(self) -> RateLimiterStats:
        with self._stats_lock:
            return RateLimiterStats(
                core_waits=self._waits[RateClass.CORE],
                search_waits=self._waits[RateClass.SEARCH],
                graphql_waits=self._waits[RateClass.GRAPHQL],
                total_wait_ms=self._total_wait_ms,
            )

    def reset_stats(self) -> None:
        """Zero all counters. Bucket levels are not affected."""
        with self._stats_lock:
            self._waits = dict.fromkeys(RateClass, 0)
            self._total_wait_ms = 0

    def set_burst(self, core: int, search: int, graphql: int) -> None:
        self._buckets[RateClass.CORE].set_burst(core)
        self._buckets[RateClass.SEARCH].set_burst(search)
        self._buckets[RateClass.GRAPHQL].set_burst(graphql)
