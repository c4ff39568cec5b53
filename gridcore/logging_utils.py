"""gridcore/logging_utils.py — Rotating file logging for hosts embedding the grid."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .settings import resolve_log_path


def configure_logging(*, debug: bool = False, log_path: Optional[str] = None) -> str:
    """Configure logging for a host application embedding the grid.

    - Always logs to a rotating file (GRIDCORE_LOG_DIR or ~/.gridcore/logs)
    - Also logs to the console when debug is enabled

    Returns the log file path in use.
    """
    level = logging.DEBUG if debug else logging.INFO
    if log_path is None:
        log_path = resolve_log_path()

    root = logging.getLogger()
    root.setLevel(level)

    # Calling twice must not duplicate handlers.
    if getattr(root, "_gridcore_configured", False):
        return getattr(root, "_gridcore_log_path", log_path)

    Path(log_path).parent.mkdir(parents=True, exist_ok=True)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    if debug:
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(fmt)
        root.addHandler(console)

    setattr(root, "_gridcore_configured", True)
    setattr(root, "_gridcore_log_path", log_path)
    return log_path
