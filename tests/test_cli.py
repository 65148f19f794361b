"""Tests for CLI argument parsing and the push/limits commands."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from gitbatch.cli import _build_parser, _run_limits, _run_push
from gitbatch.config import Settings
from gitbatch.github.fakes import FakeGitDataClient
from gitbatch.resilience.ratelimit import RateLimiter, RateLimits
from gitbatch.services.push_service import BulkCommitService


class TestArgParser:
    def test_version_flag(self) -> None:
        parser = _build_parser()
        args = parser.parse_args(["--version"])
        assert args.version is True

    def test_push_defaults(self) -> None:
        parser = _build_parser()
        args = parser.parse_args(
            ["push", "./site", "--owner", "o", "--repo", "r", "-m", "msg"]
        )
        assert args.command == "push"
        assert args.local_dir == "./site"
        assert args.branch == "main"
        assert args.prefix == ""
        assert args.chunk_size is None
        assert args.continue_on_error is False
        assert args.verbose is False

    def test_push_with_options(self) -> None:
        parser = _build_parser()
        args = parser.parse_args(
            [
                "push",
                "./site",
                "--owner",
                "o",
                "--repo",
                "r",
                "--message",
                "deploy",
                "--branch",
                "gh-pages",
                "--prefix",
                "docs",
                "--chunk-size",
                "20",
                "--continue-on-error",
                "--verbose",
            ]
        )
        assert args.branch == "gh-pages"
        assert args.prefix == "docs"
        assert args.chunk_size == 20
        assert args.continue_on_error is True
        assert args.verbose is True

    def test_push_requires_owner(self) -> None:
        parser = _build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["push", "./site", "--repo", "r", "-m", "x"])

    def test_no_command_prints_help(self) -> None:
        parser = _build_parser()
        args = parser.parse_args([])
        assert args.command is None


def _push_args(local_dir: Path, **overrides: object) -> object:
    parser = _build_parser()
    args = parser.parse_args(
        [
            "push",
            str(local_dir),
            "--owner",
            "octo",
            "--repo",
            "demo",
            "-m",
            "import",
        ]
    )
    for key, value in overrides.items():
        setattr(args, key, value)
    return args


@pytest.fixture
def wired_fake() -> FakeGitDataClient:
    """Patch service wiring so the push command talks to the fake."""
    client = FakeGitDataClient()
    client.seed("octo", "demo")
    return client


def _patch_build(client: FakeGitDataClient):  # type: ignore[no-untyped-def]
    def _build(settings: Settings) -> tuple[object, BulkCommitService]:
        limiter = RateLimiter(RateLimits(core_burst=1000))
        return client, BulkCommitService(client, limiter, settings)

    return patch("gitbatch.cli._build_service", _build)


class TestRunPush:
    def test_push_directory(
        self,
        tmp_path: Path,
        wired_fake: FakeGitDataClient,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        (tmp_path / "a.txt").write_text("a")
        (tmp_path / "b.txt").write_text("b")

        with _patch_build(wired_fake):
            _run_push(_push_args(tmp_path, prefix="site"))  # type: ignore[arg-type]

        out = capsys.readouterr().out
        assert "Pushing 2 files (2 B) to octo/demo@main" in out
        assert "1/1 chunks committed" in out
        assert set(wired_fake.files_at("octo", "demo")) == {
            "site/a.txt",
            "site/b.txt",
        }
        assert wired_fake.closed is True

    def test_failed_chunk_exits_2(
        self, tmp_path: Path, wired_fake: FakeGitDataClient
    ) -> None:
        for i in range(3):
            (tmp_path / f"f{i}.txt").write_text(str(i))
        wired_fake.fail("update_ref", 2)

        with _patch_build(wired_fake), pytest.raises(SystemExit) as exc_info:
            _run_push(_push_args(tmp_path, chunk_size=1))  # type: ignore[arg-type]
        assert exc_info.value.code == 2

    def test_validation_error_exits_1(
        self,
        tmp_path: Path,
        wired_fake: FakeGitDataClient,
        capsys: pytest.CaptureFixture[str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        (tmp_path / "big.txt").write_text("x" * 50)
        monkeypatch.setenv("MAX_FILE_SIZE_BYTES", "10")

        with _patch_build(wired_fake), pytest.raises(SystemExit) as exc_info:
            _run_push(_push_args(tmp_path))  # type: ignore[arg-type]
        assert exc_info.value.code == 1
        assert "big.txt" in capsys.readouterr().err

    def test_not_a_directory_exits_1(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _run_push(_push_args(tmp_path / "missing"))  # type: ignore[arg-type]
        assert exc_info.value.code == 1

    def test_missing_token_exits_1(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "a.txt").write_text("a")
        monkeypatch.setenv("GITHUB_TOKEN", "")
        with pytest.raises(SystemExit) as exc_info:
            _run_push(_push_args(tmp_path))  # type: ignore[arg-type]
        assert exc_info.value.code == 1


def test_limits_prints_json(capsys: pytest.CaptureFixture[str]) -> None:
    _run_limits()
    data = json.loads(capsys.readouterr().out)
    assert data["max_files_per_push"] == 100
    assert data["default_chunk_size"] == 50
