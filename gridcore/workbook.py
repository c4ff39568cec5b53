"""
gridcore/workbook.py — Load a grid from, and export a grid to, an .xlsx file.

Loading reads the first row as headers and every later row as a grid row.
Row ids are 1-based data row numbers (sheet row 2 -> id 1), so a blank row
in the sheet leaves a gap in the ids rather than renumbering what follows.
Solid fills, font colors and bold / italic / underline / strikethrough are
read into a Formatting Store.

Exporting writes the header plus rows in the order given (callers pass the
sorted view), styled from the Formatting Store. None values are never
written: openpyxl registers a cell for an explicit None, which inflates
max_row / max_column.

All failures are raised as AppError.
"""
from __future__ import annotations

import logging
import os
import re
from datetime import date, datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from .errors import (
    AppError,
    EMPTY_SHEET,
    FILE_LOCKED,
    MISSING_DEST_PATH,
    SAVE_FAILED,
    SHEET_NOT_FOUND,
    SOURCE_READ_FAILED,
)
from .formatting import cell_key, update_cell_formatting
from .models import ColumnSchema, FormattingEntry, Row

logger = logging.getLogger(__name__)


# Excel column width is in characters; the grid works in pixels.
PIXELS_PER_CHAR = 7.0

_HEX6_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")
_HEX8_RE = re.compile(r"^([0-9a-fA-F]{2})([0-9a-fA-F]{6})$")
_RGB_RE  = re.compile(r"^rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})")


@dataclass
class WorkbookGrid:
    schema: List[ColumnSchema]
    rows: List[Dict[str, Any]]
    formatting: Dict[str, FormattingEntry] = field(default_factory=dict)
    column_widths: Dict[str, float] = field(default_factory=dict)
    sheet_name: str = ""


# ── Colors ───────────────────────────────────────────────────────────────────

def color_to_argb(color: Optional[str]) -> Optional[str]:
    """'#1a2b3c' / 'rgb(26, 43, 60)' -> 'FF1A2B3C'. None when unrecognised."""
    if not color:
        return None
    s = color.strip()
    m = _HEX6_RE.match(s)
    if m:
        return "FF" + m.group(1).upper()
    m = _RGB_RE.match(s)
    if m:
        parts = [min(int(p), 255) for p in m.groups()]
        return "FF" + "".join(f"{p:02X}" for p in parts)
    return None


def argb_to_color(argb: Any) -> Optional[str]:
    """'FF1A2B3C' -> '#1A2B3C'. Theme / indexed colors give None."""
    if not isinstance(argb, str):
        return None
    m = _HEX8_RE.match(argb)
    if m:
        return "#" + m.group(2).upper()
    m = _HEX6_RE.match(argb)
    if m:
        return "#" + m.group(1).upper()
    return None


def _rgb_of(color_obj: Any) -> Optional[str]:
    if color_obj is None or getattr(color_obj, "type", None) != "rgb":
        return None
    return argb_to_color(color_obj.rgb)


# ── Load ─────────────────────────────────────────────────────────────────────

def _field_names(headers: Sequence[Any]) -> List[str]:
    names: List[str] = []
    seen: Dict[str, int] = {}
    for idx, h in enumerate(headers, start=1):
        base = str(h).strip() if h not in (None, "") else f"Column{get_column_letter(idx)}"
        n = seen.get(base, 0) + 1
        seen[base] = n
        names.append(base if n == 1 else f"{base}_{n}")
    return names


def _cell_formatting(cell) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    fill = cell.fill
    if fill is not None and fill.fill_type == "solid":
        fill_color = _rgb_of(fill.fgColor)
        if fill_color and fill_color != "#000000":
            out["fill_color"] = fill_color

    font = cell.font
    if font is not None:
        text_color = _rgb_of(font.color)
        if text_color and text_color != "#000000":
            out["text_color"] = text_color
        if font.b:
            out["bold"] = True
        if font.i:
            out["italic"] = True
        if font.u:
            out["underline"] = True
        if font.strike:
            out["strikethrough"] = True
    return out


def _infer_type(values: Sequence[Any]) -> Optional[str]:
    for v in values:
        if v is None or v == "":
            continue
        if isinstance(v, bool):
            return "boolean"
        if isinstance(v, (int, float)):
            return "number"
        if isinstance(v, (datetime, date)):
            return "date"
        return "string"
    return None


def _open(path: str):
    try:
        return load_workbook(path, data_only=True)
    except PermissionError as e:
        raise AppError(FILE_LOCKED, f"Permission denied: {e}", {"path": path})
    except FileNotFoundError:
        raise AppError(SOURCE_READ_FAILED, f"No such file: {path}", {"path": path})
    except Exception as e:
        raise AppError(SOURCE_READ_FAILED, f"Failed to read workbook: {e}", {"path": path})


def load_workbook_grid(path: str, sheet_name: Optional[str] = None) -> WorkbookGrid:
    """Read a header row plus data rows (with cell formatting) from an .xlsx sheet."""
    wb = _open(path)
    if sheet_name:
        if sheet_name not in wb.sheetnames:
            raise AppError(SHEET_NOT_FOUND, f"Sheet not found: {sheet_name}", {"path": path, "sheet": sheet_name})
        ws = wb[sheet_name]
    else:
        ws = wb.active

    rows_iter = ws.iter_rows()
    header_cells = next(rows_iter, None)
    if not header_cells or all(c.value in (None, "") for c in header_cells):
        raise AppError(EMPTY_SHEET, f"Sheet '{ws.title}' has no header row", {"path": path, "sheet": ws.title})

    headers = [c.value for c in header_cells]
    # trailing blank header cells are not columns
    while headers and headers[-1] in (None, ""):
        headers.pop()
    names = _field_names(headers)

    rows: List[Dict[str, Any]] = []
    store: Dict[str, FormattingEntry] = {}
    for data_idx, cells in enumerate(rows_iter, start=1):
        values = [c.value for c in cells[:len(names)]]
        if all(v in (None, "") for v in values):
            continue
        row: Dict[str, Any] = {"id": data_idx}
        for name, cell in zip(names, cells):
            row[name] = cell.value
            fmt = _cell_formatting(cell)
            if fmt:
                store = update_cell_formatting(store, cell_key(data_idx, name), fmt)
        rows.append(row)

    schema = [
        ColumnSchema(column_name=str(h) if h is not None else name, alias_name=name,
                     data_type=_infer_type([r.get(name) for r in rows]))
        for h, name in zip(headers, names)
    ]

    widths: Dict[str, float] = {}
    for idx, name in enumerate(names, start=1):
        dim = ws.column_dimensions.get(get_column_letter(idx))
        if dim is not None and dim.customWidth and dim.width:
            widths[name] = round(dim.width * PIXELS_PER_CHAR, 2)

    logger.info("Loaded %d row(s) x %d column(s) from %s [%s]", len(rows), len(names), path, ws.title)
    return WorkbookGrid(schema=schema, rows=rows, formatting=store, column_widths=widths, sheet_name=ws.title)


# ── Export ───────────────────────────────────────────────────────────────────

def _export_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        if value.get("label") is not None:
            return value["label"]
        return value.get("value")
    return value


def _style_cell(cell, entry: FormattingEntry) -> None:
    fill = color_to_argb(entry.fill_color)
    if fill:
        cell.fill = PatternFill(fill_type="solid", fgColor=fill, bgColor=fill)

    text = color_to_argb(entry.text_color)
    if text or entry.bold or entry.italic or entry.underline or entry.strikethrough:
        cell.font = Font(
            color=text,
            bold=bool(entry.bold),
            italic=bool(entry.italic),
            underline="single" if entry.underline else None,
            strike=bool(entry.strikethrough),
        )


def export_grid(
    path: str,
    schema: Sequence[ColumnSchema],
    rows: Sequence[Row],
    formatting: Optional[Mapping[str, FormattingEntry]] = None,
    column_widths: Optional[Mapping[str, float]] = None,
    sheet_name: str = "Grid",
) -> int:
    """
    Write the grid to a new workbook at path. Rows are written in the order
    given. Returns the number of data rows written.
    """
    if not path or not str(path).strip():
        raise AppError(MISSING_DEST_PATH, "Export path is empty")

    formatting = formatting or {}
    widths = column_widths or {}

    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    for c_idx, col in enumerate(schema, start=1):
        header = ws.cell(row=1, column=c_idx, value=col.column_name or col.alias_name)
        header.font = Font(bold=True)
        width = widths.get(col.alias_name)
        if width:
            ws.column_dimensions[get_column_letter(c_idx)].width = round(float(width) / PIXELS_PER_CHAR, 2)

    for r_idx, row in enumerate(rows, start=2):
        rid = row.get("id")
        for c_idx, col in enumerate(schema, start=1):
            value = _export_value(row.get(col.alias_name))
            entry = formatting.get(cell_key(rid, col.alias_name))
            if value is None and entry is None:
                continue
            cell = ws.cell(row=r_idx, column=c_idx)
            if value is not None:
                cell.value = value
            if entry is not None:
                _style_cell(cell, entry)

    try:
        wb.save(path)
    except PermissionError as e:
        raise AppError(FILE_LOCKED, f"Permission denied: {e}", {"path": path})
    except OSError as e:
        raise AppError(SAVE_FAILED, f"Save failed: {e}", {"path": path})

    logger.info("Exported %d row(s) to %s", len(rows), os.path.basename(path))
    return len(rows)
