"""
gridcore/projection.py — Sort key projection.

Color sorting reuses the ordinary comparator machinery by projecting cell
formatting into synthetic sort keys:

  __bgColor_{field}    <- FormattingEntry.fill_color
  __fontColor_{field}  <- FormattingEntry.text_color

A cell without that formatting gets NO key at all (absence is the signal);
comparators read a missing key as "".

The keys live in a side table (SortKeyTable) keyed by (row_id, synthetic
field). preprocess_rows() additionally hands the rendering layer row copies
carrying the same keys. Both must be rebuilt on every recompute because
formatting changes independently of row data.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .formatting import cell_key
from .models import FormattingStore, Row, RowId


BG_PREFIX   = "__bgColor_"
FONT_PREFIX = "__fontColor_"

SortKeyTable = Mapping[Tuple[RowId, str], str]


def bg_color_key(field: str) -> str:
    return f"{BG_PREFIX}{field}"


def font_color_key(field: str) -> str:
    return f"{FONT_PREFIX}{field}"


def is_synthetic_field(name: str) -> bool:
    return name.startswith(BG_PREFIX) or name.startswith(FONT_PREFIX)


def _data_fields(row: Row) -> List[str]:
    return [k for k in row.keys() if not is_synthetic_field(k)]


def _color_keys(row: Row, formatting: FormattingStore) -> Dict[str, str]:
    out: Dict[str, str] = {}
    rid = row.get("id")
    for field in _data_fields(row):
        entry = formatting.get(cell_key(rid, field))
        if entry is None:
            continue
        if entry.fill_color:
            out[bg_color_key(field)] = entry.fill_color
        if entry.text_color:
            out[font_color_key(field)] = entry.text_color
    return out


def project_sort_keys(rows: Sequence[Row], formatting: Optional[FormattingStore]) -> Dict[Tuple[RowId, str], str]:
    """Build the (row_id, synthetic field) -> color side table."""
    table: Dict[Tuple[RowId, str], str] = {}
    if not formatting:
        return table
    for row in rows:
        rid = row.get("id")
        for name, color in _color_keys(row, formatting).items():
            table[(rid, name)] = color
    return table


def preprocess_rows(rows: Sequence[Row], formatting: Optional[FormattingStore]) -> List[Row]:
    """
    Return row copies annotated with synthetic color keys.
    Stale synthetic keys on the input are dropped first, so feeding the
    output back in yields the same result.
    """
    out: List[Row] = []
    for row in rows:
        clean: Dict[str, Any] = {k: v for k, v in row.items() if not is_synthetic_field(k)}
        if formatting:
            clean.update(_color_keys(clean, formatting))
        out.append(clean)
    return out


def lookup_sort_key(
    row: Row,
    synthetic_field: str,
    sort_keys: Optional[SortKeyTable] = None,
) -> str:
    """Synthetic key for a row, from the side table when given, else the row."""
    if sort_keys is not None:
        value = sort_keys.get((row.get("id"), synthetic_field))
    else:
        value = row.get(synthetic_field)
    return "" if value is None else str(value)
