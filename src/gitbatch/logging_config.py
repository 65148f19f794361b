"""Singleton logging configuration: two-phase initialization.

Phase 1: setup_logging(), call BEFORE fastmcp is imported.
  Sets FASTMCP_LOG_LEVEL and configures the root logger.

Phase 2: cleanup_third_party_handlers(), call AFTER all imports.
  Clears the handlers fastmcp attaches to its own logger at import time.

Both phases are idempotent (guarded by module-level flags).
"""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Third-party loggers to suppress to WARNING
_SUPPRESSED_LOGGERS = (
    "httpx",
    "httpcore",
    "mcp.server.lowlevel.server",
)

# Loggers that install their own handlers on import
_SELF_HANDLED_LOGGERS = ("fastmcp", "FastMCP")

_phase1_done = False
_phase2_done = False


def setup_logging(level: str = "INFO") -> None:
    """Phase 1: Configure root logger and set env vars.

    Idempotent; a second call is a no-op.
    """
    global _phase1_done  # noqa: PLW0603
    if _phase1_done:
        return
    _phase1_done = True

    # fastmcp reads this at import time
    os.environ.setdefault("FASTMCP_LOG_LEVEL", "WARNING")

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )

    for name in _SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def cleanup_third_party_handlers() -> None:
    """Phase 2: Remove fastmcp's own handlers.

    fastmcp attaches a handler to its logger, so records appear twice
    (its handler + root propagation). This clears them and lets
    records propagate to root only.
    """
    global _phase2_done  # noqa: PLW0603
    if _phase2_done:
        return
    _phase2_done = True

    for name in _SELF_HANDLED_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True
