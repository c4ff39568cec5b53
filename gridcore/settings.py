"""gridcore/settings.py — Grid look-and-feel defaults, overridable via GRIDCORE_* environment variables."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


ENV_ROW_HEIGHT         = "GRIDCORE_ROW_HEIGHT"
ENV_FALLBACK_WIDTH     = "GRIDCORE_FALLBACK_WIDTH"
ENV_FONT_FAMILY        = "GRIDCORE_FONT_FAMILY"
ENV_FONT_SIZE          = "GRIDCORE_FONT_SIZE"
ENV_CHAR_WIDTH         = "GRIDCORE_CHAR_WIDTH"
ENV_AUTO_WIDTH_PADDING = "GRIDCORE_AUTO_WIDTH_PADDING"
ENV_AUTO_WIDTH_MINIMUM = "GRIDCORE_AUTO_WIDTH_MINIMUM"
ENV_LOG_DIR            = "GRIDCORE_LOG_DIR"


@dataclass(frozen=True)
class GridSettings:
    """Layout constants. Defaults match the grid's stock look."""
    default_row_height: float = 24
    fallback_column_width: float = 120
    font_family: str = "Roboto"
    font_size: int = 10
    auto_width_padding: float = 20
    auto_width_minimum: float = 60
    char_width: float = 8
    min_column_width: float = 120
    actions_column_width: float = 100
    editable_fill: str = "rgb(232, 241, 254)"


_ENV_FIELDS = {
    ENV_ROW_HEIGHT: "default_row_height",
    ENV_FALLBACK_WIDTH: "fallback_column_width",
    ENV_FONT_FAMILY: "font_family",
    ENV_FONT_SIZE: "font_size",
    ENV_CHAR_WIDTH: "char_width",
    ENV_AUTO_WIDTH_PADDING: "auto_width_padding",
    ENV_AUTO_WIDTH_MINIMUM: "auto_width_minimum",
}


def _coerce(name: str, raw: str, default):
    if isinstance(default, str):
        return raw.strip() or default
    try:
        value = int(raw) if isinstance(default, int) and name == "font_size" else float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> GridSettings:
    """Build settings from GRIDCORE_* environment variables over the defaults.

    Malformed values keep the default and log a warning.
    """
    env = os.environ if environ is None else environ
    base = GridSettings()
    defaults = {f.name: getattr(base, f.name) for f in fields(base)}

    changes = {}
    for var, name in _ENV_FIELDS.items():
        raw = env.get(var)
        if raw is None:
            continue
        changes[name] = _coerce(name, raw, defaults[name])
    return replace(base, **changes)


def resolve_log_path(environ: Optional[Mapping[str, str]] = None) -> str:
    """Resolve the log file path.

    Priority:
    1) GRIDCORE_LOG_DIR env var
    2) User-home scoped default: ~/.gridcore/logs/gridcore.log
    """
    env = os.environ if environ is None else environ
    log_dir = env.get(ENV_LOG_DIR)
    base = Path(log_dir) if log_dir else Path.home() / ".gridcore" / "logs"
    return str(base / "gridcore.log")
