"""
gridcore/cell_format.py — Number parsing and cell formatting actions.

Coercion follows the grid's JavaScript heritage:
  to_number            — Number()-style: None/"" -> 0, bools -> 0/1,
                         numeric strings -> float, anything else -> NaN.
  parse_number_string  — to_number after stripping thousands separators,
                         currency symbols and inner whitespace. NaN on failure.
  raw_number           — parse_number_string, but unparsable input -> 0.0.
                         Used for cached raw values; never raises.

Formatting actions take the current selection plus the Formatting Store and
return a FormatResult with the updated cells and a NEW store.
"""
from __future__ import annotations

import locale
import logging
import math
import re
import unicodedata
from dataclasses import dataclass, replace
from numbers import Number
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .formatting import cell_key, get_cell_formatting, update_cell_formatting
from .models import ColumnConfiguration, FormattingEntry, FormattingStore, SelectedCell

logger = logging.getLogger(__name__)


_NUMERIC_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_HEX_RE     = re.compile(r"^0[xX][0-9a-fA-F]+$")

MAX_DECIMALS = 6

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
}

# format key -> (currency code, indian lakh/crore grouping)
CURRENCY_FORMATS: Dict[str, Tuple[str, bool]] = {
    "currency-INR": ("INR", True),
    "currency-USD": ("USD", False),
    "currency-EUR": ("EUR", False),
    "currency-GBP": ("GBP", False),
    "currency-JPY": ("JPY", False),
}
LOCALE_CURRENCY_KEYS = ("currency-IN-LOCALE", "currency-DEFAULT", "currency-LOCALE")


# ── Coercion ─────────────────────────────────────────────────────────────────

def to_number(value: Any) -> float:
    """Number()-style coercion. Returns NaN instead of raising."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, Number):
        try:
            return float(value)
        except (TypeError, ValueError):
            return math.nan
    if isinstance(value, str):
        s = value.strip()
        if s == "":
            return 0.0
        if s in ("Infinity", "+Infinity"):
            return math.inf
        if s == "-Infinity":
            return -math.inf
        if _NUMERIC_RE.match(s):
            return float(s)
        if _HEX_RE.match(s):
            return float(int(s, 16))
        return math.nan
    return math.nan


def _strip_number_noise(s: str) -> str:
    return "".join(
        ch for ch in s
        if ch != "," and not ch.isspace() and unicodedata.category(ch) != "Sc"
    )


def parse_number_string(value: Any) -> float:
    """Parse "23,433.00" / "$1,200" / 42 into a float. NaN when unparsable."""
    if isinstance(value, str):
        return to_number(_strip_number_noise(value))
    return to_number(value)


def raw_number(value: Any) -> float:
    """parse_number_string with unparsable input coerced to 0.0."""
    n = parse_number_string(value)
    return 0.0 if math.isnan(n) else n


def is_valid_number(n: float) -> bool:
    return not math.isnan(n)


def number_to_str(n: float) -> str:
    """Render a float the way the grid shows plain numbers (no trailing .0)."""
    if math.isfinite(n) and n == int(n):
        return str(int(n))
    return repr(n)


# ── Number / currency rendering ──────────────────────────────────────────────

def decimal_places_of(value: Any) -> int:
    s = str(value)
    dot = s.find(".")
    return 0 if dot == -1 else len(s) - dot - 1


def format_number(value: Any, decimal_places: int, use_comma: bool = False) -> str:
    """Fixed-point rendering with optional thousands separators."""
    num = parse_number_string(value)
    if math.isnan(num):
        return str(value)
    if use_comma:
        return f"{num:,.{decimal_places}f}"
    return f"{num:.{decimal_places}f}"


def _indian_grouping(integer: str) -> str:
    last_three = integer[-3:]
    others = integer[:-3]
    if not others:
        return last_three
    groups: List[str] = []
    while len(others) > 2:
        groups.insert(0, others[-2:])
        others = others[:-2]
    if others:
        groups.insert(0, others)
    return ",".join(groups) + "," + last_three


def format_currency_value(value: float, currency: str, indian_format: bool = False) -> str:
    """
    Two-decimal currency rendering. INR with indian_format uses lakh/crore
    grouping (₹12,34,567.00); everything else groups by thousands.
    """
    sign = "-" if value < 0 else ""
    if indian_format:
        integer, fraction = f"{abs(value):.2f}".split(".")
        return f"{sign}₹{_indian_grouping(integer)}.{fraction}"
    symbol = CURRENCY_SYMBOLS.get(currency, currency + " ")
    return f"{sign}{symbol}{abs(value):,.2f}"


def system_currency() -> str:
    """Best-effort currency code for the current locale; USD when unknown."""
    try:
        code = (locale.localeconv().get("int_curr_symbol") or "").strip()
    except (ValueError, locale.Error):
        code = ""
    return code if code in CURRENCY_SYMBOLS else "USD"


def currency_formatter(key: str) -> Callable[[float], str]:
    if key in CURRENCY_FORMATS:
        code, indian = CURRENCY_FORMATS[key]
        return lambda v: format_currency_value(v, code, indian)
    if key in LOCALE_CURRENCY_KEYS:
        code = system_currency()
        return lambda v: format_currency_value(v, code)
    return number_to_str


# ── Selection formatting actions ─────────────────────────────────────────────

@dataclass(frozen=True)
class FormatResult:
    cells: Tuple[SelectedCell, ...]
    formatting: Dict[str, FormattingEntry]


def editable_fields(configuration: Optional[Sequence[ColumnConfiguration]]) -> List[str]:
    return [c.alias_name for c in (configuration or []) if c.is_editable]


def _editable_only(
    cells: Iterable[SelectedCell],
    configuration: Optional[Sequence[ColumnConfiguration]],
) -> List[SelectedCell]:
    allowed = set(editable_fields(configuration))
    return [c for c in cells if c.field in allowed]


def _with_formatting(cell: SelectedCell, value: Any, extra: Mapping[str, Any]) -> SelectedCell:
    merged = dict(cell.formatting)
    merged.update(extra)
    return replace(cell, value=value, formatting=merged)


def _cell_raw(cell: SelectedCell) -> float:
    raw = cell.formatting.get("raw_value")
    if raw is not None:
        return to_number(raw)
    return parse_number_string(cell.value)


def apply_numeric_formatting(
    cells: Sequence[SelectedCell],
    store: Optional[FormattingStore],
    get_formatting: Callable[[SelectedCell, float], Mapping[str, Any]],
) -> FormatResult:
    """
    Shared driver for decimal/comma actions. Cells whose value does not
    parse as a number are passed through untouched.
    """
    out_store: Dict[str, FormattingEntry] = dict(store or {})
    updated: List[SelectedCell] = []
    for cell in cells:
        raw = _cell_raw(cell)
        if math.isnan(raw):
            updated.append(cell)
            continue
        fmt = dict(get_formatting(cell, raw))
        out_store = update_cell_formatting(out_store, cell_key(cell.row_id, cell.field), {**fmt, "raw_value": raw})
        places = fmt.get("decimal_places")
        if places is None:
            places = decimal_places_of(cell.value)
        text = format_number(raw, places, bool(fmt.get("use_comma")))
        updated.append(_with_formatting(cell, text, {**fmt, "raw_value": raw}))
    return FormatResult(cells=tuple(updated), formatting=out_store)


def _current_places(cell: SelectedCell, persisted: FormattingEntry) -> int:
    if persisted.decimal_places is not None:
        return persisted.decimal_places
    if cell.formatting.get("decimal_places") is not None:
        return int(cell.formatting["decimal_places"])
    return decimal_places_of(cell.value)


def _current_comma(cell: SelectedCell, persisted: FormattingEntry) -> Optional[bool]:
    if persisted.use_comma is not None:
        return persisted.use_comma
    return cell.formatting.get("use_comma")


def increase_decimal(cells: Sequence[SelectedCell], store: Optional[FormattingStore]) -> FormatResult:
    def _fmt(cell: SelectedCell, _raw: float) -> Dict[str, Any]:
        persisted = get_cell_formatting(store, cell_key(cell.row_id, cell.field))
        return {
            "decimal_places": min(_current_places(cell, persisted) + 1, MAX_DECIMALS),
            "use_comma": _current_comma(cell, persisted),
        }
    return apply_numeric_formatting(cells, store, _fmt)


def decrease_decimal(cells: Sequence[SelectedCell], store: Optional[FormattingStore]) -> FormatResult:
    def _fmt(cell: SelectedCell, _raw: float) -> Dict[str, Any]:
        persisted = get_cell_formatting(store, cell_key(cell.row_id, cell.field))
        return {
            "decimal_places": max(_current_places(cell, persisted) - 1, 0),
            "use_comma": _current_comma(cell, persisted),
        }
    return apply_numeric_formatting(cells, store, _fmt)


def comma_separator(cells: Sequence[SelectedCell], store: Optional[FormattingStore]) -> FormatResult:
    return apply_numeric_formatting(cells, store, lambda _c, _r: {"decimal_places": 2, "use_comma": True})


def apply_currency_format(
    key: str,
    cells: Sequence[SelectedCell],
    store: Optional[FormattingStore],
    configuration: Optional[Sequence[ColumnConfiguration]],
) -> FormatResult:
    """Render editable numeric cells with the currency format named by key."""
    formatter = currency_formatter(key)
    out_store: Dict[str, FormattingEntry] = dict(store or {})
    updated: List[SelectedCell] = []
    for cell in _editable_only(cells, configuration):
        raw = _cell_raw(cell)
        if math.isnan(raw):
            updated.append(cell)
            continue
        out_store = update_cell_formatting(
            out_store, cell_key(cell.row_id, cell.field), {"currency": key, "raw_value": raw}
        )
        updated.append(_with_formatting(cell, formatter(raw), {"currency": key, "raw_value": raw}))
    return FormatResult(cells=tuple(updated), formatting=out_store)


COLOR_ATTRIBUTES = ("fill_color", "text_color")


def apply_color_formatting(
    attr: str,
    color: str,
    cells: Sequence[SelectedCell],
    store: Optional[FormattingStore],
    configuration: Optional[Sequence[ColumnConfiguration]],
) -> FormatResult:
    """Set fill_color / text_color on every editable selected cell."""
    if attr not in COLOR_ATTRIBUTES:
        logger.debug("Ignoring unknown color attribute %r", attr)
        return FormatResult(cells=tuple(cells), formatting=dict(store or {}))

    out_store: Dict[str, FormattingEntry] = dict(store or {})
    updated: List[SelectedCell] = []
    for cell in _editable_only(cells, configuration):
        out_store = update_cell_formatting(out_store, cell_key(cell.row_id, cell.field), {attr: color})
        updated.append(_with_formatting(cell, cell.value, {attr: color}))
    return FormatResult(cells=tuple(updated), formatting=out_store)


def apply_date_format(
    key: str,
    cells: Sequence[SelectedCell],
    store: Optional[FormattingStore],
    configuration: Optional[Sequence[ColumnConfiguration]],
) -> FormatResult:
    """Tag editable cells with a date format key; values are left as-is."""
    out_store: Dict[str, FormattingEntry] = dict(store or {})
    updated: List[SelectedCell] = []
    for cell in _editable_only(cells, configuration):
        out_store = update_cell_formatting(out_store, cell_key(cell.row_id, cell.field), {"date_format": key})
        updated.append(_with_formatting(cell, cell.value, {"date_format": key}))
    return FormatResult(cells=tuple(updated), formatting=out_store)


def apply_cell_formatting_action(
    action: str,
    cells: Sequence[SelectedCell],
    store: Optional[FormattingStore],
) -> FormatResult:
    """Dispatch the toolbar's number-format actions by name."""
    if action == "increaseDecimal":
        return increase_decimal(cells, store)
    if action == "decreaseDecimal":
        return decrease_decimal(cells, store)
    if action == "comma":
        return comma_separator(cells, store)
    # currency keys are applied through apply_currency_format; others are no-ops
    return FormatResult(cells=tuple(cells), formatting=dict(store or {}))
