"""Environment-based configuration."""

from __future__ import annotations

import logging
from typing import Self

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

from gitbatch.constants import (
    CHUNK_SAFETY_MARGIN,
    CORE_BURST,
    CORE_REQUESTS_PER_HOUR,
    DEFAULT_CHUNK_SIZE,
    GITHUB_API_URL,
    GRAPHQL_BURST,
    GRAPHQL_POINTS_PER_HOUR,
    HTTP_TIMEOUT_SECONDS,
    MAX_CHUNK_SIZE,
    MAX_FILE_SIZE_BYTES,
    MAX_FILES_PER_PUSH,
    MAX_TOTAL_PUSH_SIZE_BYTES,
    RETRY_BACKOFF_FACTOR,
    RETRY_INITIAL_BACKOFF,
    RETRY_MAX_BACKOFF,
    RETRY_MAX_RETRIES,
    SEARCH_BURST,
    SEARCH_REQUESTS_PER_MINUTE,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # GitHub
    github_token: str = ""
    github_api_url: str = GITHUB_API_URL
    http_timeout_seconds: float = HTTP_TIMEOUT_SECONDS

    # Logging
    log_level: str = "INFO"

    # Push limits
    max_files_per_push: int = MAX_FILES_PER_PUSH
    max_file_size_bytes: int = MAX_FILE_SIZE_BYTES
    max_total_push_size_bytes: int = MAX_TOTAL_PUSH_SIZE_BYTES
    default_chunk_size: int = DEFAULT_CHUNK_SIZE
    max_chunk_size: int = MAX_CHUNK_SIZE
    chunk_safety_margin: float = CHUNK_SAFETY_MARGIN

    # Rate limits (documented GitHub quotas; 90% is used)
    rate_core_requests_per_hour: int = CORE_REQUESTS_PER_HOUR
    rate_search_requests_per_minute: int = SEARCH_REQUESTS_PER_MINUTE
    rate_graphql_points_per_hour: int = GRAPHQL_POINTS_PER_HOUR
    rate_core_burst: int = CORE_BURST
    rate_search_burst: int = SEARCH_BURST
    rate_graphql_burst: int = GRAPHQL_BURST

    # Retry (off unless enabled; remote errors are never retried implicitly)
    retry_enabled: bool = False
    retry_max_retries: int = RETRY_MAX_RETRIES
    retry_initial_backoff: float = RETRY_INITIAL_BACKOFF
    retry_max_backoff: float = RETRY_MAX_BACKOFF
    retry_backoff_factor: float = RETRY_BACKOFF_FACTOR

    @field_validator("chunk_safety_margin")
    @classmethod
    def _validate_margin(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError(
                "chunk_safety_margin must be in (0, 1]"
            )
        return v

    @field_validator(
        "max_files_per_push",
        "default_chunk_size",
        "max_chunk_size",
        "rate_core_burst",
        "rate_search_burst",
        "rate_graphql_burst",
    )
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @model_validator(mode="after")
    def _validate_chunk_sizes(self) -> Self:
        if self.default_chunk_size > self.max_chunk_size:
            raise ValueError(
                "default_chunk_size must not exceed max_chunk_size"
            )
        if self.retry_initial_backoff > self.retry_max_backoff:
            raise ValueError(
                "retry_initial_backoff must not exceed retry_max_backoff"
            )
        if self.max_file_size_bytes > self.max_total_push_size_bytes:
            logger.warning(
                "MAX_FILE_SIZE_BYTES (%d) exceeds "
                "MAX_TOTAL_PUSH_SIZE_BYTES (%d)",
                self.max_file_size_bytes,
                self.max_total_push_size_bytes,
            )
        return self

    @property
    def max_chunk_bytes(self) -> int:
        """Byte ceiling the chunk planner aims for."""
        return int(
            self.max_total_push_size_bytes * self.chunk_safety_margin
        )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }
