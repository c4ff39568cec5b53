"""
gridcore/bulk_edit.py — Bulk edit of several cells from one column.

Flow:
  1. can_bulk_edit() gates the gesture: more than one cell, all one field.
  2. detect_data_type() picks the editor (text / number / currency / date / select).
  3. validate_value() checks the typed value against that config.
  4. apply_bulk_edit() writes the formatted value into the selected cells,
     merges formatting into the store and always leaves bulk-edit mode.

submit_bulk_edit() runs 3 and 4 together the way the bulk-edit dialog's
"Apply" button does.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .cell_format import parse_number_string, raw_number
from .columns import DROPDOWN_OPTIONS
from .formatting import cell_key, update_cell_formatting
from .models import FormattingStore, FormattingEntry, Row, SelectedCell, SelectionState
from .selection import update_selected_cells
from .sorting import parse_datetime

logger = logging.getLogger(__name__)


class BulkEditDataType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"
    SELECT = "select"


DEFAULT_DATE_FORMAT = "YYYY-MM-DD"


@dataclass(frozen=True)
class BulkEditConfig:
    """Editor settings for one bulk edit, as detected from the selection."""
    data_type: BulkEditDataType = BulkEditDataType.TEXT
    options: Optional[Tuple[str, ...]] = None
    currency_format: Optional[str] = None
    date_format: Optional[str] = None
    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass(frozen=True)
class ApplyConfig:
    """
    What apply_bulk_edit needs to know. formatting is merged into each cell
    when it is not None (an empty dict still counts and caches raw_value).
    """
    data_type: str = BulkEditDataType.TEXT.value
    formatting: Optional[Mapping[str, Any]] = None
    format_value: Optional[Callable[[Any], Any]] = None


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error_message: Optional[str] = None


@dataclass(frozen=True)
class BulkEditResult:
    state: SelectionState
    formatting: Dict[str, FormattingEntry]
    applied: bool = False


# ── Mode ─────────────────────────────────────────────────────────────────────

def can_bulk_edit(cells: Sequence[SelectedCell], field: Optional[str] = None) -> bool:
    """True when more than one cell is selected and they all share one field."""
    candidates = [c for c in (cells or ()) if field is None or c.field == field]
    if len(candidates) <= 1:
        return False
    first = candidates[0].field
    return all(c.field == first for c in candidates)


def start_bulk_edit(state: SelectionState) -> SelectionState:
    return replace(state, is_bulk_edit_mode=True)


def cancel_bulk_edit(state: SelectionState) -> SelectionState:
    return replace(state, is_bulk_edit_mode=False)


# ── Apply ────────────────────────────────────────────────────────────────────

def _cached_raw(data_type: str, formatted: Any) -> Any:
    if data_type in (BulkEditDataType.NUMBER.value, BulkEditDataType.CURRENCY.value):
        return raw_number(formatted)
    return formatted


def apply_bulk_edit(
    state: SelectionState,
    store: Optional[FormattingStore],
    cells: Sequence[SelectedCell],
    value: Any,
    config: Optional[ApplyConfig] = None,
) -> BulkEditResult:
    """
    Write value (run through config.format_value) into every selected cell
    that matches one of cells. A selection spanning several columns is left
    untouched. Bulk-edit mode is switched off either way.
    """
    config = config or ApplyConfig()
    out_store: Dict[str, FormattingEntry] = dict(store or {})

    if not can_bulk_edit(cells):
        logger.debug("Bulk edit skipped: %d cell(s) not from a single column", len(cells or ()))
        return BulkEditResult(state=cancel_bulk_edit(state), formatting=out_store)

    formatted = config.format_value(value) if config.format_value else value
    data_type = getattr(config.data_type, "value", config.data_type)
    targets = {c.key for c in cells}
    extra = dict(config.formatting or {})

    updated: List[SelectedCell] = []
    for cell in state.selected_cells:
        if cell.key in targets:
            merged = dict(cell.formatting)
            merged.update(extra)
            cell = replace(cell, value=formatted, formatting=merged)
        updated.append(cell)
    new_state = update_selected_cells(state, updated)

    if config.formatting is not None:
        cached = _cached_raw(data_type, formatted)
        for cell in cells:
            out_store = update_cell_formatting(
                out_store, cell_key(cell.row_id, cell.field), {**extra, "raw_value": cached}
            )

    logger.info("Bulk edit applied to %d cell(s) in %r", len(targets), cells[0].field)
    return BulkEditResult(state=cancel_bulk_edit(new_state), formatting=out_store, applied=True)


def get_updated_rows(rows: Sequence[Row], cells: Sequence[SelectedCell]) -> Sequence[Row]:
    """New row dicts carrying the selected cells' values. Rows without edits are reused."""
    if not cells:
        return rows
    edits: Dict[Any, Dict[str, Any]] = {}
    for cell in cells:
        edits.setdefault(cell.row_id, {})[cell.field] = cell.value

    out: List[Row] = []
    for row in rows:
        changes = edits.get(row.get("id"))
        out.append({**row, **changes} if changes else row)
    return out


# ── Data type service ────────────────────────────────────────────────────────

def _is_numeric_cell(cell: SelectedCell) -> bool:
    raw = cell.formatting.get("raw_value")
    source = raw if raw is not None else cell.value
    return not math.isnan(parse_number_string(source))


def detect_data_type(
    cells: Sequence[SelectedCell],
    dropdown_options: Mapping[str, Sequence[str]] = DROPDOWN_OPTIONS,
) -> BulkEditConfig:
    """Choose the bulk-edit editor for a selection."""
    if not cells:
        return BulkEditConfig()

    fld = cells[0].field
    if any(c.field != fld for c in cells):
        return BulkEditConfig(options=())

    if fld in dropdown_options:
        return BulkEditConfig(data_type=BulkEditDataType.SELECT, options=tuple(dropdown_options[fld]))

    if "date" in fld.lower():
        return BulkEditConfig(data_type=BulkEditDataType.DATE, date_format=DEFAULT_DATE_FORMAT)

    currencies = [c.formatting.get("currency") for c in cells]
    if all(currencies):
        return BulkEditConfig(data_type=BulkEditDataType.CURRENCY, currency_format=currencies[0])

    if all(_is_numeric_cell(c) for c in cells):
        return BulkEditConfig(data_type=BulkEditDataType.NUMBER)

    return BulkEditConfig()


def _fmt_bound(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)


def validate_value(value: Any, config: BulkEditConfig) -> ValidationResult:
    empty = value is None or (isinstance(value, str) and value.strip() == "")
    if empty:
        if config.required:
            return ValidationResult(False, "This field is required")
        return ValidationResult(True)

    dtype = config.data_type
    if dtype in (BulkEditDataType.NUMBER, BulkEditDataType.CURRENCY):
        n = parse_number_string(value)
        if math.isnan(n):
            return ValidationResult(False, "Please enter a valid number")
        if config.min is not None and n < config.min:
            return ValidationResult(False, f"Value must be at least {_fmt_bound(config.min)}")
        if config.max is not None and n > config.max:
            return ValidationResult(False, f"Value must be at most {_fmt_bound(config.max)}")
    elif dtype == BulkEditDataType.DATE:
        if parse_datetime(value) is None:
            return ValidationResult(False, "Please enter a valid date")
    elif dtype == BulkEditDataType.SELECT:
        if value not in (config.options or ()):
            return ValidationResult(False, "Please select a valid option")
    return ValidationResult(True)


def _display_date(dt) -> str:
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt.month}/{dt.day}/{dt.year} {hour}:{dt.minute:02d}:{dt.second:02d} {meridiem}"


def format_value(value: Any, config: BulkEditConfig) -> Any:
    """Convert the editor's text into the value stored in the cells."""
    dtype = config.data_type
    if dtype in (BulkEditDataType.NUMBER, BulkEditDataType.CURRENCY):
        return parse_number_string(value)
    if dtype == BulkEditDataType.DATE:
        dt = parse_datetime(value)
        if dt is None:
            return value
        # the date picker gives a calendar day; show it at local midnight
        return _display_date(dt.replace(hour=0, minute=0, second=0, microsecond=0))
    return value


def initial_value(cells: Sequence[SelectedCell]) -> str:
    """The editor's starting text: the shared value of all cells, else ""."""
    if not cells:
        return ""
    first = cells[0].value
    if any(c.value != first for c in cells):
        return ""
    return "" if first is None else str(first)


def formatting_for(config: BulkEditConfig) -> Dict[str, Any]:
    if config.data_type == BulkEditDataType.CURRENCY and config.currency_format:
        return {"currency": config.currency_format}
    if config.data_type == BulkEditDataType.DATE and config.date_format:
        return {"date_format": config.date_format}
    return {}


def submit_bulk_edit(
    state: SelectionState,
    store: Optional[FormattingStore],
    value: Any,
    config: BulkEditConfig,
) -> Tuple[Optional[BulkEditResult], ValidationResult]:
    """
    Validate and apply a bulk edit over the current cell selection.
    Returns (None, failed_validation) when the value is rejected; the
    state is then left as-is so the editor can stay open.
    """
    check = validate_value(value, config)
    if not check.is_valid:
        return None, check

    apply_config = ApplyConfig(
        data_type=config.data_type.value,
        formatting=formatting_for(config),
        format_value=lambda v: format_value(v, config),
    )
    result = apply_bulk_edit(state, store, state.selected_cells, value, apply_config)
    return result, check
