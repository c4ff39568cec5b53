"""
gridcore/layout.py — Row height and column width.

Row height is fixed unless a wrapped cell in the row is wider than its
column, in which case the renderer sizes the row itself ("auto").
Column auto-resize fits the widest of the header and the cell texts.
Width maps are never edited in place; every change returns a new dict.
"""
from __future__ import annotations

from numbers import Number
from typing import Any, Dict, Iterable, Optional, Union

from .models import ColumnWidths, Row, WrapConfig
from .settings import GridSettings, load_settings

AUTO = "auto"


def _measurer(measurer, settings: GridSettings):
    if measurer is not None:
        return measurer
    from .measure import default_measurer
    return default_measurer(settings)


def _wrappable_text(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Number):
        return str(value)
    return None


def get_dynamic_row_height(
    row: Row,
    wrap_config: Optional[WrapConfig],
    column_widths: Optional[ColumnWidths],
    measurer=None,
    settings: Optional[GridSettings] = None,
) -> Union[float, str]:
    """Fixed height, or "auto" once a wrapped cell overflows its column."""
    settings = settings or load_settings()
    if not wrap_config:
        return settings.default_row_height

    widths = column_widths or {}
    prefix = f"{row.get('id')}|"
    m = None
    for key, enabled in wrap_config.items():
        if not enabled or not key.startswith(prefix):
            continue
        fld = key[len(prefix):]
        text = _wrappable_text(row.get(fld))
        if text is None:
            continue
        m = m or _measurer(measurer, settings)
        if m.measure(text) > widths.get(fld, settings.fallback_column_width):
            return AUTO
    return settings.default_row_height


def auto_resize_column(
    field: str,
    header_text: Optional[str],
    cell_texts: Iterable[Any],
    column_widths: Optional[ColumnWidths],
    measurer=None,
    settings: Optional[GridSettings] = None,
) -> Dict[str, float]:
    """Fit field's width to its widest text plus padding, never below the minimum."""
    settings = settings or load_settings()
    m = _measurer(measurer, settings)

    widest = m.measure(header_text if header_text is not None else field)
    for value in cell_texts:
        if value is None:
            continue
        widest = max(widest, m.measure(str(value)))

    width = max(widest + settings.auto_width_padding, settings.auto_width_minimum)
    return set_column_width(column_widths, field, width)


def set_column_width(column_widths: Optional[ColumnWidths], field: str, width: float) -> Dict[str, float]:
    out = dict(column_widths or {})
    out[field] = width
    return out
