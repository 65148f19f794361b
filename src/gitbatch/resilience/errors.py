"""Error classification for chunk outcomes and structured logging.

Classifies exceptions by category so that:
- Chunk outcomes can tell a cancelled chunk apart from a failed one
- Logs show which remote failures were transient vs permanent

Retry never consults this classification.
"""

from __future__ import annotations

from enum import Enum

import httpx

from gitbatch.errors import (
    CommitStepError,
    OperationCancelledError,
    PushValidationError,
    RemoteError,
)


class ErrorClass(Enum):
    CANCELLED = "cancelled"  # caller's cancellation signal fired
    VALIDATION = "validation"  # ceiling violation, caught before send
    TRANSIENT = "transient"  # 429, network errors
    SERVER = "server"  # 500, 502, 503
    TIMEOUT = "timeout"  # deadline exceeded
    CLIENT = "client"  # 400, 401, 403, 404, 409, 422
    UNKNOWN = "unknown"


def classify_error(error: BaseException) -> ErrorClass:
    """Classify an error to determine how it is reported.

    Checks our own types first, then structured status codes,
    then falls back to string matching for untyped exceptions.
    """
    if isinstance(error, OperationCancelledError):
        return ErrorClass.CANCELLED
    if isinstance(error, PushValidationError):
        return ErrorClass.VALIDATION

    # 1. Structured status_code (RemoteError, CommitStepError)
    status_code = getattr(error, "status_code", None)
    if (
        isinstance(error, (RemoteError, CommitStepError))
        and status_code is None
        and error.__cause__ is not None
    ):
        # Transport failure: classify the underlying httpx error
        return classify_error(error.__cause__)
    if isinstance(status_code, int):
        if status_code == 429:
            return ErrorClass.TRANSIENT
        if 400 <= status_code < 500:
            return ErrorClass.CLIENT
        if 500 <= status_code < 600:
            return ErrorClass.SERVER

    # 2. Timeout types
    if isinstance(error, (TimeoutError, httpx.TimeoutException)):
        return ErrorClass.TIMEOUT
    if isinstance(error, httpx.TransportError):
        return ErrorClass.TRANSIENT

    # 3. String matching
    msg = str(error).lower()

    if "timeout" in msg or "timed out" in msg:
        return ErrorClass.TIMEOUT
    if "rate limit" in msg or "secondary rate" in msg:
        return ErrorClass.TRANSIENT
    if "connection" in msg:
        return ErrorClass.TRANSIENT

    return ErrorClass.UNKNOWN

