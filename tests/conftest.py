"""Shared test fixtures: in-memory Git Data API, roomy rate limiter."""

import os

# Force a demo token for all tests so no test ever reaches real GitHub
# credentials from the shell environment.
os.environ["GITHUB_TOKEN"] = "for-demo-purposes-only"

from typing import Any

import pytest

from gitbatch.config import Settings
from gitbatch.github.fakes import FakeGitDataClient
from gitbatch.push.schemas import RepoRef
from gitbatch.resilience.ratelimit import RateLimiter, RateLimits
from gitbatch.services.push_service import BulkCommitService

OWNER = "octo"
REPO = "demo"


def make_files(
    count: int, size: int = 10, prefix: str = "file"
) -> list[dict[str, Any]]:
    """Raw push entries ``{prefix}_000.txt``... each ``size`` bytes."""
    return [
        {"path": f"{prefix}_{i:03d}.txt", "content": "x" * size}
        for i in range(count)
    ]


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def fake_client() -> FakeGitDataClient:
    client = FakeGitDataClient()
    client.seed(OWNER, REPO, "main", {"README.md": "# demo\n"})
    return client


@pytest.fixture
def limiter() -> RateLimiter:
    """Burst large enough that tests never wait on a token."""
    return RateLimiter(
        RateLimits(core_burst=10_000, search_burst=100, graphql_burst=100)
    )


@pytest.fixture
def repo_ref() -> RepoRef:
    return RepoRef(OWNER, REPO)


@pytest.fixture
def service(
    fake_client: FakeGitDataClient,
    limiter: RateLimiter,
    settings: Settings,
) -> BulkCommitService:
    return BulkCommitService(fake_client, limiter, settings)
