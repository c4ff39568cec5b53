"""
gridcore/sorting.py — Comparator factory and multi-column sort engine.

Comparator semantics (ascending; "desc" negates the whole result):
  numeric       — Number()-coerced a - b. Uncoercible values compare equal.
  date          — epoch milliseconds. Unparsable dates compare equal.
  alphanumeric  — default, and fallback for unknown/None types.
                  dict values use "value", then "label", then "".
                  None / missing sorts after defined values (mirrored for desc).
                  Strings compare case- and accent-insensitively first,
                  then unaccented before accented, lower case first on ties.
  fillColor     — synthetic __bgColor_{field} key as a plain string.
  fontColor     — synthetic __fontColor_{field} key as a plain string.

Sort model editing always removes the field's level and (for asc/desc)
re-appends it at the end, so a freshly sorted column is always the lowest
tie-break priority. Priorities are renumbered 1..n on every change.
"""
from __future__ import annotations

import calendar
import functools
import logging
import math
import unicodedata
from dataclasses import replace
from datetime import date, datetime
from numbers import Number
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from .cell_format import number_to_str, to_number
from .models import Row, SortLevel
from .projection import SortKeyTable, bg_color_key, font_color_key, lookup_sort_key

logger = logging.getLogger(__name__)


Comparator = Callable[[Row, Row], int]

ALPHANUMERIC = "alphanumeric"
NUMERIC      = "numeric"
DATE         = "date"
FILL_COLOR   = "fillColor"
FONT_COLOR   = "fontColor"

SORT_TYPES = (ALPHANUMERIC, NUMERIC, DATE, FONT_COLOR, FILL_COLOR)

_MISSING = object()

_DATE_FORMATS = (
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d %b %Y",
    "%b %d, %Y",
)


# ── Value helpers ────────────────────────────────────────────────────────────

def _sign(x: float) -> int:
    if math.isnan(x) or x == 0:
        return 0
    return 1 if x > 0 else -1


def _datetime_millis(dt: datetime) -> float:
    if dt.tzinfo is None:
        return calendar.timegm(dt.timetuple()) * 1000.0 + dt.microsecond / 1000.0
    return dt.timestamp() * 1000.0


def parse_datetime(value: Any) -> Optional[datetime]:
    """datetime/date objects and the date strings the grid shows; None otherwise."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None
    iso = s[:-1] + "+00:00" if s.endswith("Z") else s
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


def to_epoch_millis(value: Any) -> float:
    """Parse a cell value as a date. Numbers are epoch millis. NaN when unreadable."""
    if isinstance(value, bool) or value is None:
        return math.nan
    if isinstance(value, Number):
        return float(value)
    dt = parse_datetime(value)
    if dt is None:
        return math.nan
    return _datetime_millis(dt)


def _js_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return number_to_str(value)
    return str(value)


def comparable_text(value: Any) -> Optional[str]:
    """
    Alphanumeric sort text for a raw cell value. None means "no value"
    (sorted after everything when ascending).
    """
    if value is None or value is _MISSING:
        return None
    if isinstance(value, Mapping):
        if value.get("value") is not None:
            return _js_string(value["value"])
        if value.get("label") is not None:
            return _js_string(value["label"])
        return ""
    return _js_string(value)


def _base_letters(s: str) -> str:
    decomposed = unicodedata.normalize("NFD", s)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _collation_key(s: str) -> Tuple[str, str, str]:
    # base letters, then accents, then lower case before upper case
    folded = s.casefold()
    return (_base_letters(folded), unicodedata.normalize("NFD", folded), s.swapcase())


def compare_text(a: str, b: str) -> int:
    ka = _collation_key(a)
    kb = _collation_key(b)
    return (ka > kb) - (ka < kb)


# ── Comparator factory ───────────────────────────────────────────────────────

def _numeric_cmp(field: str) -> Comparator:
    def cmp(a: Row, b: Row) -> int:
        va = a.get(field, _MISSING)
        vb = b.get(field, _MISSING)
        na = math.nan if va is _MISSING else to_number(va)
        nb = math.nan if vb is _MISSING else to_number(vb)
        return _sign(na - nb)
    return cmp


def _date_cmp(field: str) -> Comparator:
    def cmp(a: Row, b: Row) -> int:
        return _sign(to_epoch_millis(a.get(field)) - to_epoch_millis(b.get(field)))
    return cmp


def _alphanumeric_cmp(field: str) -> Comparator:
    def cmp(a: Row, b: Row) -> int:
        ta = comparable_text(a.get(field, _MISSING))
        tb = comparable_text(b.get(field, _MISSING))
        if ta is None and tb is None:
            return 0
        if ta is None:
            return 1
        if tb is None:
            return -1
        return compare_text(ta, tb)
    return cmp


def _color_cmp(synthetic_field: str, sort_keys: Optional[SortKeyTable]) -> Comparator:
    def cmp(a: Row, b: Row) -> int:
        ka = lookup_sort_key(a, synthetic_field, sort_keys)
        kb = lookup_sort_key(b, synthetic_field, sort_keys)
        return (ka > kb) - (ka < kb)
    return cmp


def make_comparator(
    sort_type: Optional[str],
    direction: Optional[str],
    field: str,
    sort_keys: Optional[SortKeyTable] = None,
) -> Comparator:
    """Two-row comparator for one sort level."""
    if sort_type == NUMERIC:
        base = _numeric_cmp(field)
    elif sort_type == DATE:
        base = _date_cmp(field)
    elif sort_type == FILL_COLOR:
        base = _color_cmp(bg_color_key(field), sort_keys)
    elif sort_type == FONT_COLOR:
        base = _color_cmp(font_color_key(field), sort_keys)
    else:
        if sort_type not in (None, ALPHANUMERIC):
            logger.debug("Unknown sort type %r for %r, using alphanumeric", sort_type, field)
        base = _alphanumeric_cmp(field)

    if direction == "desc":
        return lambda a, b: -base(a, b)
    return base


def apply_multi_column_sort(
    rows: Sequence[Row],
    levels: Sequence[SortLevel],
    sort_keys: Optional[SortKeyTable] = None,
) -> Sequence[Row]:
    """
    Sort a copy of rows by levels, tie-breaking in list order (the caller
    supplies levels already in priority order). Python's sort is stable, so
    rows tying on every level keep their relative order.
    """
    if not levels:
        return rows

    comparators = [make_comparator(lvl.type, lvl.direction, lvl.field, sort_keys) for lvl in levels]

    def combined(a: Row, b: Row) -> int:
        for cmp in comparators:
            result = cmp(a, b)
            if result != 0:
                return result
        return 0

    return sorted(rows, key=functools.cmp_to_key(combined))


# ── Sort model editing ───────────────────────────────────────────────────────

def _renumber(levels: Sequence[SortLevel]) -> List[SortLevel]:
    return [replace(lvl, priority=i) for i, lvl in enumerate(levels, start=1)]


def _without(model: Sequence[SortLevel], field: str) -> List[SortLevel]:
    return [lvl for lvl in (model or []) if lvl.field != field]


def _append(model: Sequence[SortLevel], field: str, sort_type: Optional[str], direction: str) -> List[SortLevel]:
    kept = _renumber(_without(model, field))
    kept.append(SortLevel(field=field, type=sort_type or ALPHANUMERIC, direction=direction, priority=len(kept) + 1))
    logger.debug("Sort model: %s %s (%s) at priority %d", field, direction, sort_type or ALPHANUMERIC, len(kept))
    return kept


def get_sort_asc_model(model: Sequence[SortLevel], field: str, sort_type: Optional[str] = None) -> List[SortLevel]:
    return _append(model, field, sort_type, "asc")


def get_sort_desc_model(model: Sequence[SortLevel], field: str, sort_type: Optional[str] = None) -> List[SortLevel]:
    return _append(model, field, sort_type, "desc")


def get_clear_sort_model(model: Sequence[SortLevel], field: str) -> List[SortLevel]:
    return _renumber(_without(model, field))


def column_sort_state(
    model: Sequence[SortLevel],
    field: str,
) -> Tuple[Optional[str], Optional[int], Optional[str]]:
    """(direction, 1-based position, type) for a column header; Nones if unsorted."""
    for idx, lvl in enumerate(model or [], start=1):
        if lvl.field == field:
            return lvl.direction, idx, lvl.type
    return None, None, None
