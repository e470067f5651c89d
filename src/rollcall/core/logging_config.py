"""Logging configuration for the service process."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the ``rollcall`` logger tree.

    Safe to call more than once; an existing handler is reused.
    """
    logger = logging.getLogger("rollcall")
    logger.setLevel(level.upper())
    if any(getattr(handler, "_rollcall", False) for handler in logger.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._rollcall = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
