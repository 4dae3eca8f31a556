"""Logging configuration for the viewer process."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
        level: int | str = logging.INFO,
        log_file: str | Path | None = None,
        *,
        max_bytes: int = 2_000_000,
        backup_count: int = 5,
    ) -> Path | None:
    """
    Configure root logging.

    - Console handler on stdout
    - Rotating file handler when ``log_file`` is given

    Returns:
        Resolved log file path, or None when logging to console only
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Prevent duplicate registration of handlers.
    if root.handlers:
        root.handlers.clear()

    fmt = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    if not log_file:
        return None

    log_path = Path(log_file).resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    fh = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    fh.setLevel(level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.getLogger(__name__).debug("Logging to %s", log_path)
    return log_path
