"""
gridcore/measure.py — Pixel width of cell text.

TextMeasurer asks Tk for the rendered width of a string in the grid font.
Creating a Tk root can fail (no display, no Tcl); in that case, and on any
error while measuring, width falls back to len(text) * char_width.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .settings import GridSettings, load_settings

logger = logging.getLogger(__name__)


class FallbackMeasurer:
    """Character-count measurement. Deterministic, so tests use it."""

    def __init__(self, char_width: float = 8):
        self.char_width = char_width

    def measure(self, text: str) -> float:
        return len(text) * self.char_width


class TextMeasurer:
    """tkinter.font backed measurer with a silent character-count fallback."""

    def __init__(self, settings: Optional[GridSettings] = None):
        self.settings = settings or load_settings()
        self._fallback = FallbackMeasurer(self.settings.char_width)
        self._root: Any = None
        self._font: Any = None
        self._unavailable = False

    def _ensure_font(self):
        if self._font is not None or self._unavailable:
            return self._font
        try:
            import tkinter as tk
            import tkinter.font as _tkf
            self._root = tk.Tk()
            self._root.withdraw()
            self._font = _tkf.Font(
                root=self._root,
                family=self.settings.font_family,
                size=self.settings.font_size,
            )
        except Exception as e:
            logger.debug("Tk font unavailable, measuring by character count: %s", e)
            self._unavailable = True
            self._font = None
        return self._font

    def measure(self, text: str) -> float:
        font = self._ensure_font()
        if font is None:
            return self._fallback.measure(text)
        try:
            return float(font.measure(text))
        except Exception as e:
            logger.debug("Font measure failed for %r: %s", text[:40], e)
            return self._fallback.measure(text)

    def close(self) -> None:
        if self._root is not None:
            try:
                self._root.destroy()
            except Exception as e:
                logger.debug("Tk root destroy failed: %s", e)
        self._root = None
        self._font = None


_measurers: Dict[GridSettings, TextMeasurer] = {}


def default_measurer(settings: Optional[GridSettings] = None) -> TextMeasurer:
    """Shared measurer for the given settings (environment settings when None), created on first use."""
    settings = settings or load_settings()
    measurer = _measurers.get(settings)
    if measurer is None:
        measurer = _measurers[settings] = TextMeasurer(settings)
    return measurer
