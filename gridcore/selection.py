"""
gridcore/selection.py — Selection model.

Every transition takes a SelectionState and returns a NEW one; the input is
never mutated. numeric_cell_values is re-derived after each change so the
footer statistics always describe the current cell selection.

Rules:
  select_cell        — non-additive clears then selects; additive toggles.
                       The row-checkbox pseudo-column is ignored entirely.
  select_rows        — replaces the row selection with exactly the rows whose
                       id is listed (no incremental toggling for rows).
  numeric values     — Number()-coerced, NaN and zero dropped, selection order.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from .cell_format import to_number
from .models import CHECKBOX_FIELD, Row, RowId, SelectedCell, SelectionState


# ── Derivation ───────────────────────────────────────────────────────────────

def derive_numeric_values(cells: Iterable[SelectedCell]) -> Tuple[float, ...]:
    out = []
    for cell in cells:
        n = to_number(cell.value)
        if math.isnan(n) or n == 0:
            continue
        out.append(n)
    return tuple(out)


def _with_cells(state: SelectionState, cells: Tuple[SelectedCell, ...]) -> SelectionState:
    return replace(state, selected_cells=cells, numeric_cell_values=derive_numeric_values(cells))


def _contains(cells: Iterable[SelectedCell], cell: SelectedCell) -> bool:
    return any(c.same_cell(cell) for c in cells)


# ── Cell transitions ─────────────────────────────────────────────────────────

def add_selected_cell(state: SelectionState, cell: SelectedCell) -> SelectionState:
    if _contains(state.selected_cells, cell):
        return replace(state, numeric_cell_values=derive_numeric_values(state.selected_cells))
    return _with_cells(state, state.selected_cells + (cell,))


def remove_selected_cell(state: SelectionState, row_id: RowId, field: str) -> SelectionState:
    kept = tuple(c for c in state.selected_cells if not (c.row_id == row_id and c.field == field))
    return _with_cells(state, kept)


def clear_selected_cells(state: SelectionState) -> SelectionState:
    return _with_cells(state, ())


def update_selected_cells(state: SelectionState, cells: Sequence[SelectedCell]) -> SelectionState:
    """Replace the whole cell selection (used after formatting actions)."""
    unique = []
    for cell in cells:
        if not _contains(unique, cell):
            unique.append(cell)
    return _with_cells(state, tuple(unique))


def select_cell(state: SelectionState, cell: SelectedCell, additive: bool) -> SelectionState:
    """
    Handle a click on a cell. additive corresponds to Ctrl/Cmd-click.
    Clicks on the checkbox column return the state unchanged.
    """
    if cell.field == CHECKBOX_FIELD:
        return state

    if additive:
        if _contains(state.selected_cells, cell):
            return remove_selected_cell(state, cell.row_id, cell.field)
        return add_selected_cell(state, cell)

    return add_selected_cell(clear_selected_cells(state), cell)


def store_numeric_cell_values(state: SelectionState, values: Iterable[float]) -> SelectionState:
    """
    Explicitly overwrite numeric_cell_values. The next selection change
    recomputes them from the cells again.
    """
    return replace(state, numeric_cell_values=tuple(values))


# ── Row transitions ──────────────────────────────────────────────────────────

def _row_id(row: Any) -> Any:
    if isinstance(row, Mapping):
        return row.get("id")
    return row


def _with_rows(state: SelectionState, rows: Tuple[Row, ...]) -> SelectionState:
    return replace(state, selected_rows=rows, numeric_cell_values=derive_numeric_values(state.selected_cells))


def add_selected_row(state: SelectionState, row: Row) -> SelectionState:
    rid = _row_id(row)
    if any(_row_id(r) == rid for r in state.selected_rows):
        return _with_rows(state, state.selected_rows)
    return _with_rows(state, state.selected_rows + (row,))


def remove_selected_row(state: SelectionState, row_id: RowId) -> SelectionState:
    return _with_rows(state, tuple(r for r in state.selected_rows if _row_id(r) != row_id))


def clear_selected_rows(state: SelectionState) -> SelectionState:
    return _with_rows(state, ())


def select_rows(state: SelectionState, ids: Optional[Iterable[RowId]], all_rows: Sequence[Row]) -> SelectionState:
    """Row checkbox change: selected rows become exactly the rows listed in ids."""
    wanted = list(ids or [])
    rows = []
    for row in all_rows:
        if row.get("id") in wanted and not any(_row_id(r) == row.get("id") for r in rows):
            rows.append(row)
    return _with_rows(state, tuple(rows))


def reset_selection(state: SelectionState) -> SelectionState:
    """Clear cells, rows and footer values; bulk-edit mode is left alone."""
    return replace(state, selected_cells=(), selected_rows=(), numeric_cell_values=())


# ── Footer statistics ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SelectionSummary:
    count: int
    total: Optional[float] = None
    average: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None


def summarize_numeric(values: Sequence[float]) -> SelectionSummary:
    if not values:
        return SelectionSummary(count=0)
    total = math.fsum(values)
    return SelectionSummary(
        count=len(values),
        total=total,
        average=total / len(values),
        minimum=min(values),
        maximum=max(values),
    )
