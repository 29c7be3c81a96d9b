"""Logging setup for the BingPaper client."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOGGER_NAME = "bingpaper"


def setup_logger(
    name: str = LOGGER_NAME,
    level: int | str = logging.INFO,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return a logger.

    Args:
        name: Logger name.
        level: Logging level (int or name such as "DEBUG").
        log_file: Optional path to a log file. If None, logs to stderr only.

    Returns:
        Configured logger.
    """
    log = logging.getLogger(name)
    log.setLevel(level.upper() if isinstance(level, str) else level)
    if log.handlers:
        return log

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    h = logging.StreamHandler(sys.stderr)
    h.setFormatter(fmt)
    log.addHandler(h)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        log.addHandler(fh)

    return log


def get_logger(suffix: str | None = None) -> logging.Logger:
    """Return the application logger (or a child such as `bingpaper.queries`)."""
    return logging.getLogger(f"{LOGGER_NAME}.{suffix}" if suffix else LOGGER_NAME)
