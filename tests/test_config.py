"""Tests for Settings defaults and validators."""

from __future__ import annotations

import logging

import pytest

from gitbatch.config import Settings
from gitbatch.constants import MIB


def _settings(**kwargs: object) -> Settings:
    return Settings(_env_file=None, **kwargs)  # type: ignore[arg-type]


class TestDefaults:
    def test_push_limits(self) -> None:
        s = _settings()
        assert s.max_files_per_push == 100
        assert s.max_file_size_bytes == 25 * MIB
        assert s.max_total_push_size_bytes == 100 * MIB
        assert s.default_chunk_size == 50
        assert s.max_chunk_size == 100

    def test_max_chunk_bytes_applies_margin(self) -> None:
        """80% of the 100 MiB ceiling."""
        assert _settings().max_chunk_bytes == 83_886_080

    def test_retry_disabled_by_default(self) -> None:
        assert _settings().retry_enabled is False

    def test_github_defaults(self) -> None:
        s = _settings()
        assert s.github_api_url == "https://api.github.com"
        assert s.http_timeout_seconds == 30.0


class TestEnvironment:
    def test_reads_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_FILES_PER_PUSH", "20")
        monkeypatch.setenv("RETRY_ENABLED", "true")
        s = _settings()
        assert s.max_files_per_push == 20
        assert s.retry_enabled is True


class TestValidation:
    @pytest.mark.parametrize("margin", [0.0, -0.5, 1.5])
    def test_margin_out_of_range_raises(self, margin: float) -> None:
        with pytest.raises(ValueError, match="chunk_safety_margin"):
            _settings(chunk_safety_margin=margin)

    def test_margin_of_one_allowed(self) -> None:
        s = _settings(chunk_safety_margin=1.0)
        assert s.max_chunk_bytes == s.max_total_push_size_bytes

    def test_zero_chunk_size_raises(self) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            _settings(default_chunk_size=0)

    def test_default_above_max_chunk_size_raises(self) -> None:
        with pytest.raises(ValueError, match="must not exceed"):
            _settings(default_chunk_size=60, max_chunk_size=50)

    def test_initial_backoff_above_max_raises(self) -> None:
        with pytest.raises(ValueError, match="retry_initial_backoff"):
            _settings(retry_initial_backoff=60.0, retry_max_backoff=30.0)

    def test_file_limit_above_total_warns(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="gitbatch.config"):
            _settings(
                max_file_size_bytes=200 * MIB,
                max_total_push_size_bytes=100 * MIB,
            )
        assert "exceeds" in caplog.text

    def test_no_warning_with_defaults(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="gitbatch.config"):
            _settings()
        assert "exceeds" not in caplog.text
