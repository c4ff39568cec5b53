"""
test_selection.py — Tests for gridcore/selection.py.

Covers:
  - Non-additive click replaces the selection
  - Additive click toggles, and toggling twice restores the selection
  - Checkbox pseudo-column clicks are ignored (same object back)
  - Duplicate cells / rows are ignored
  - Numeric value derivation (NaN and zero dropped, order kept)
  - select_rows replaces the row selection exactly
  - reset_selection keeps bulk-edit mode
  - store_numeric_cell_values overrides until the next change
  - summarize_numeric footer statistics
"""
from __future__ import annotations

import math

from gridcore.models import CHECKBOX_FIELD, SelectedCell, SelectionState
from gridcore.selection import (
    add_selected_cell,
    add_selected_row,
    clear_selected_cells,
    derive_numeric_values,
    remove_selected_cell,
    reset_selection,
    select_cell,
    select_rows,
    store_numeric_cell_values,
    summarize_numeric,
    update_selected_cells,
)


# ── helpers ───────────────────────────────────────────────────────────────────

def _cell(row_id, field="amount", value=None):
    return SelectedCell(row_id=row_id, field=field, value=value)


def _keys(state):
    return [c.key for c in state.selected_cells]


ROWS = [
    {"id": 1, "name": "Ann", "amount": 10},
    {"id": 2, "name": "Bob", "amount": 20},
    {"id": 3, "name": "Cy", "amount": 30},
]


# ═══════════════════════════════════════════════════════════════════════════════
# CELL CLICKS
# ═══════════════════════════════════════════════════════════════════════════════

def test_plain_click_selects_single_cell():
    s = select_cell(SelectionState(), _cell(1, value=10), additive=False)
    assert _keys(s) == [(1, "amount")]
    assert s.numeric_cell_values == (10.0,)


def test_plain_click_replaces_previous_selection():
    s = select_cell(SelectionState(), _cell(1, value=10), additive=False)
    s = select_cell(s, _cell(2, value=20), additive=True)
    s = select_cell(s, _cell(3, value=30), additive=False)
    assert _keys(s) == [(3, "amount")]
    assert s.numeric_cell_values == (30.0,)


def test_additive_click_appends_in_order():
    s = SelectionState()
    for rid in (3, 1, 2):
        s = select_cell(s, _cell(rid, value=rid), additive=True)
    assert _keys(s) == [(3, "amount"), (1, "amount"), (2, "amount")]
    assert s.numeric_cell_values == (3.0, 1.0, 2.0)


def test_additive_toggle_twice_is_identity():
    s = select_cell(SelectionState(), _cell(1, value=5), additive=True)
    s = select_cell(s, _cell(2, value=6), additive=True)
    before = s
    s = select_cell(s, _cell(9, field="name", value="x"), additive=True)
    s = select_cell(s, _cell(9, field="name", value="x"), additive=True)
    assert s.selected_cells == before.selected_cells
    assert s.numeric_cell_values == before.numeric_cell_values


def test_additive_click_on_selected_cell_removes_it():
    s = select_cell(SelectionState(), _cell(1, value=5), additive=True)
    s = select_cell(s, _cell(1, value=5), additive=True)
    assert s.selected_cells == ()
    assert s.numeric_cell_values == ()


def test_checkbox_column_click_returns_same_state():
    s = select_cell(SelectionState(), _cell(1, value=5), additive=False)
    out = select_cell(s, _cell(1, field=CHECKBOX_FIELD), additive=False)
    assert out is s


def test_select_cell_does_not_mutate_input():
    s = select_cell(SelectionState(), _cell(1, value=5), additive=False)
    select_cell(s, _cell(2, value=6), additive=True)
    assert _keys(s) == [(1, "amount")]


# ═══════════════════════════════════════════════════════════════════════════════
# LOW-LEVEL TRANSITIONS
# ═══════════════════════════════════════════════════════════════════════════════

def test_add_selected_cell_ignores_duplicate():
    s = add_selected_cell(SelectionState(), _cell(1, value=1))
    s = add_selected_cell(s, _cell(1, value=1))
    assert len(s.selected_cells) == 1


def test_remove_selected_cell_by_row_and_field():
    s = add_selected_cell(SelectionState(), _cell(1, value=1))
    s = add_selected_cell(s, _cell(1, field="name", value="Ann"))
    s = remove_selected_cell(s, 1, "amount")
    assert _keys(s) == [(1, "name")]


def test_clear_selected_cells_resets_numeric_values():
    s = add_selected_cell(SelectionState(), _cell(1, value=7))
    s = clear_selected_cells(s)
    assert s.selected_cells == ()
    assert s.numeric_cell_values == ()


def test_update_selected_cells_replaces_and_dedupes():
    s = add_selected_cell(SelectionState(), _cell(1, value=1))
    s = update_selected_cells(s, [_cell(2, value=4), _cell(2, value=4), _cell(3, value=5)])
    assert _keys(s) == [(2, "amount"), (3, "amount")]
    assert s.numeric_cell_values == (4.0, 5.0)


# ═══════════════════════════════════════════════════════════════════════════════
# NUMERIC VALUES
# ═══════════════════════════════════════════════════════════════════════════════

def test_numeric_extraction_drops_text_zero_and_nan():
    cells = [_cell(i, value=v) for i, v in enumerate(["John", 0, "30", math.nan])]
    assert derive_numeric_values(cells) == (30.0,)


def test_numeric_extraction_coercion_rules():
    cells = [_cell(i, value=v) for i, v in enumerate([None, "", True, " 2.5 ", {"value": 3}, "1e2"])]
    assert derive_numeric_values(cells) == (1.0, 2.5, 100.0)


def test_store_numeric_values_overrides_until_next_change():
    s = add_selected_cell(SelectionState(), _cell(1, value=10))
    s = store_numeric_cell_values(s, [99.0])
    assert s.numeric_cell_values == (99.0,)
    s = add_selected_cell(s, _cell(2, value=20))
    assert s.numeric_cell_values == (10.0, 20.0)


def test_store_numeric_values_overridden_by_row_selection_change():
    s = add_selected_cell(SelectionState(), _cell(3, value="30"))
    s = store_numeric_cell_values(s, [99, 100])
    s = select_rows(s, [1], ROWS)
    assert s.numeric_cell_values == (30.0,)
    s = store_numeric_cell_values(s, [5])
    s = add_selected_row(s, ROWS[1])
    assert s.numeric_cell_values == (30.0,)


# ═══════════════════════════════════════════════════════════════════════════════
# ROWS
# ═══════════════════════════════════════════════════════════════════════════════

def test_select_rows_exact_membership_in_row_order():
    s = select_rows(SelectionState(), [3, 1], ROWS)
    assert [r["id"] for r in s.selected_rows] == [1, 3]


def test_select_rows_replaces_previous_rows():
    s = select_rows(SelectionState(), [1, 2], ROWS)
    s = select_rows(s, [3], ROWS)
    assert [r["id"] for r in s.selected_rows] == [3]


def test_select_rows_none_clears():
    s = select_rows(SelectionState(), [1], ROWS)
    s = select_rows(s, None, ROWS)
    assert s.selected_rows == ()


def test_add_selected_row_ignores_duplicate_id():
    s = add_selected_row(SelectionState(), ROWS[0])
    s = add_selected_row(s, dict(ROWS[0]))
    assert len(s.selected_rows) == 1


def test_reset_selection_keeps_bulk_edit_flag():
    s = SelectionState(is_bulk_edit_mode=True)
    s = add_selected_cell(s, _cell(1, value=1))
    s = select_rows(s, [1], ROWS)
    s = reset_selection(s)
    assert s.selected_cells == () and s.selected_rows == () and s.numeric_cell_values == ()
    assert s.is_bulk_edit_mode is True


# ═══════════════════════════════════════════════════════════════════════════════
# FOOTER STATISTICS
# ═══════════════════════════════════════════════════════════════════════════════

def test_summarize_numeric_values():
    summary = summarize_numeric((10.0, 20.0, 30.0))
    assert summary.count == 3
    assert summary.total == 60.0
    assert summary.average == 20.0
    assert summary.minimum == 10.0
    assert summary.maximum == 30.0


def test_summarize_numeric_empty():
    summary = summarize_numeric(())
    assert summary.count == 0
    assert summary.total is None


# ═══════════════════════════════════════════════════════════════════════════════
# CELL IDENTITY
# ═══════════════════════════════════════════════════════════════════════════════

def test_selected_cells_are_hashable_by_row_and_field():
    a = SelectedCell(1, "a", "x", {"bold": True})
    b = SelectedCell(1, "a", {"value": "o", "label": "Open"})
    assert hash(a) == hash(b)
    assert len({a, SelectedCell(1, "a", "x", {"bold": True}), SelectedCell(2, "a", "x")}) == 2
