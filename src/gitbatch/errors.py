"""Exception taxonomy for bulk commit operations.

Every error carries a human-readable message. Validation errors add a
machine-readable code, an actionable suggestion and structured details.
"""

from __future__ import annotations

from typing import Any

from gitbatch.constants import ErrorCode, PipelineStep


class GitBatchError(Exception):
    """Base class for all gitbatch errors."""

    def __init__(
        self, message: str, suggestion: str = ""
    ) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}. Suggestion: {self.suggestion}"
        return self.message


class PushValidationError(GitBatchError):
    """Caller input defect or numeric ceiling violation.

    Raised before any remote call is made.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, suggestion)
        self.code = code
        self.details: dict[str, Any] = details or {}


class RemoteError(GitBatchError):
    """Failure reported by the remote object store (or its transport).

    ``status_code`` is None when no HTTP response was received.
    """

    def __init__(
        self, message: str, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code


class CommitStepError(GitBatchError):
    """A remote failure wrapped with the pipeline step that failed."""

    def __init__(
        self,
        step: PipelineStep,
        detail: str,
        status_code: int | None = None,
    ) -> None:
        status = f" (status {status_code})" if status_code else ""
        super().__init__(f"{step}: {detail}{status}")
        self.step = step
        self.detail = detail
        self.status_code = status_code

    @classmethod
    def from_remote(
        cls, step: PipelineStep, error: RemoteError
    ) -> CommitStepError:
        return cls(step, error.message, error.status_code)


class OperationCancelledError(GitBatchError):
    """The caller's cancellation signal fired during a wait or attempt."""

    def __init__(self, message: str = "operation cancelled") -> None:
        super().__init__(message)
