"""Shared constants: single source of truth for cross-module values.

Numeric ceilings mirror the limits GitHub enforces on Git Data API
payloads. StrEnum members are str-compatible, so JSON payloads and
log lines work unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class ErrorCode(StrEnum):
    """Machine-readable codes carried by PushValidationError."""

    INVALID_FILE_FORMAT = "INVALID_FILE_FORMAT"
    MISSING_FILE_PATH = "MISSING_FILE_PATH"
    MISSING_FILE_CONTENT = "MISSING_FILE_CONTENT"
    DUPLICATE_FILE_PATHS = "DUPLICATE_FILE_PATHS"
    EMPTY_FILE_LIST = "EMPTY_FILE_LIST"
    INVALID_PATH = "INVALID_PATH"
    TOO_MANY_FILES = "TOO_MANY_FILES"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    TOTAL_SIZE_TOO_LARGE = "TOTAL_SIZE_TOO_LARGE"
    CHUNK_TOO_LARGE = "CHUNK_TOO_LARGE"


class PipelineStep(StrEnum):
    """Remote steps of a single commit, valued by their failure prefix."""

    GET_REF = "failed to get branch reference"
    GET_COMMIT = "failed to get base commit"
    CREATE_TREE = "failed to create tree"
    CREATE_COMMIT = "failed to create commit"
    UPDATE_REF = "failed to update reference"


class ChunkState(StrEnum):
    """Lifecycle of one chunk inside a batch run."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RateClass(StrEnum):
    """GitHub endpoint classes with independent quotas."""

    CORE = "core"
    SEARCH = "search"
    GRAPHQL = "graphql"


# ── Push Limits ──────────────────────────────────────────

MIB = 1024 * 1024

MAX_FILES_PER_PUSH = 100
MAX_FILE_SIZE_BYTES = 25 * MIB
MAX_TOTAL_PUSH_SIZE_BYTES = 100 * MIB
DEFAULT_CHUNK_SIZE = 50
MAX_CHUNK_SIZE = 100

# Request envelopes are larger than the raw content they carry
CHUNK_SAFETY_MARGIN = 0.80

# ── Git Objects ──────────────────────────────────────────

BLOB_FILE_MODE = "100644"
BLOB_TYPE = "blob"
BRANCH_REF_PREFIX = "refs/heads/"

# ── Rate Limits ──────────────────────────────────────────

RATE_SAFETY_FACTOR = 0.9

CORE_REQUESTS_PER_HOUR = 5000
SEARCH_REQUESTS_PER_MINUTE = 30
GRAPHQL_POINTS_PER_HOUR = 5000

CORE_BURST = 10
SEARCH_BURST = 5
GRAPHQL_BURST = 10

# ── Retry Strategy ───────────────────────────────────────

RETRY_MAX_RETRIES = 3
RETRY_INITIAL_BACKOFF = 1.0
RETRY_MAX_BACKOFF = 30.0
RETRY_BACKOFF_FACTOR = 2.0

# ── HTTP ─────────────────────────────────────────────────

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
HTTP_TIMEOUT_SECONDS = 30.0

# ── Misc ─────────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 200
BINARY_DETECTION_BUFFER = 8192

PUSH_RECOMMENDATIONS: dict[str, str] = {
    "small_batch": "Use push_files for <= 100 files",
    "large_batch": "Use push_files_chunked for > 100 files",
    "single_file": "Use create_or_update_file for single files",
}
