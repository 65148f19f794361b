"""Tests for two-phase singleton logging configuration."""

from __future__ import annotations

import logging
import os
from unittest.mock import patch

import pytest

from gitbatch.logging_config import (
    _SUPPRESSED_LOGGERS,
    LOG_DATEFMT,
    LOG_FORMAT,
    cleanup_third_party_handlers,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _reset_flags() -> None:
    """Reset singleton flags before each test."""
    import gitbatch.logging_config as mod

    mod._phase1_done = False
    mod._phase2_done = False


def test_setup_logging_is_idempotent() -> None:
    """Phase 1 executes once even when called twice."""
    with patch("gitbatch.logging_config.logging.basicConfig") as mock_bc:
        setup_logging()
        setup_logging()  # second call is no-op
        mock_bc.assert_called_once()


def test_setup_logging_uses_format() -> None:
    with patch("gitbatch.logging_config.logging.basicConfig") as mock_bc:
        setup_logging("debug")
    kwargs = mock_bc.call_args.kwargs
    assert kwargs["level"] == logging.DEBUG
    assert kwargs["format"] == LOG_FORMAT
    assert kwargs["datefmt"] == LOG_DATEFMT


def test_fastmcp_log_env_var_set() -> None:
    """Phase 1 sets FASTMCP_LOG_LEVEL=WARNING before fastmcp import."""
    os.environ.pop("FASTMCP_LOG_LEVEL", None)
    setup_logging()
    assert os.environ.get("FASTMCP_LOG_LEVEL") == "WARNING"


def test_fastmcp_log_env_var_preserves_existing() -> None:
    """Phase 1 uses setdefault, so a user-set value wins."""
    os.environ["FASTMCP_LOG_LEVEL"] = "ERROR"
    try:
        setup_logging()
        assert os.environ["FASTMCP_LOG_LEVEL"] == "ERROR"
    finally:
        os.environ.pop("FASTMCP_LOG_LEVEL", None)


def test_suppressed_loggers_at_warning() -> None:
    setup_logging()
    for name in _SUPPRESSED_LOGGERS:
        lg = logging.getLogger(name)
        assert lg.level == logging.WARNING, (
            f"Logger {name!r} level is {lg.level}, expected WARNING"
        )


def test_cleanup_clears_fastmcp_handlers() -> None:
    """Phase 2 removes fastmcp's duplicate handlers."""
    lg = logging.getLogger("fastmcp")
    lg.addHandler(logging.StreamHandler())
    assert len(lg.handlers) >= 1

    cleanup_third_party_handlers()
    assert len(lg.handlers) == 0


def test_cleanup_enables_propagation() -> None:
    lg = logging.getLogger("FastMCP")
    lg.propagate = False

    cleanup_third_party_handlers()
    assert lg.propagate is True


def test_cleanup_is_idempotent() -> None:
    cleanup_third_party_handlers()
    lg = logging.getLogger("fastmcp")
    handler = logging.StreamHandler()
    lg.addHandler(handler)

    cleanup_third_party_handlers()  # no-op: already done
    assert handler in lg.handlers
    lg.removeHandler(handler)
