"""Logging configuration for Timekeep."""

from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Attach a stream handler to the ``timekeep`` logger.

    The level comes from *level*, then TIMEKEEP_LOG_LEVEL, then INFO.
    Calling this twice does not add a second handler.
    """
    name = (level or os.environ.get("TIMEKEEP_LOG_LEVEL") or "INFO").upper()
    numeric_level = getattr(logging, name, None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root_logger = logging.getLogger("timekeep")
    root_logger.setLevel(numeric_level)
    if not any(getattr(h, "_timekeep", False) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._timekeep = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)
