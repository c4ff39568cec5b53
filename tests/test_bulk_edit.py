"""
test_bulk_edit.py — Tests for gridcore/bulk_edit.py.

Covers:
  - can_bulk_edit homogeneity (single cell, mixed fields, field filter)
  - apply_bulk_edit writes values, merges formatting, caches raw_value
  - Non-homogeneous selections are a no-op but still leave bulk-edit mode
  - get_updated_rows writes edits back onto new row dicts
  - detect_data_type / validate_value / format_value / initial_value
  - submit_bulk_edit end to end
"""
from __future__ import annotations

from gridcore.bulk_edit import (
    ApplyConfig,
    BulkEditConfig,
    BulkEditDataType,
    apply_bulk_edit,
    can_bulk_edit,
    cancel_bulk_edit,
    detect_data_type,
    format_value,
    get_updated_rows,
    initial_value,
    start_bulk_edit,
    submit_bulk_edit,
    validate_value,
)
from gridcore.models import SelectedCell, SelectionState
from gridcore.selection import update_selected_cells


# ── helpers ───────────────────────────────────────────────────────────────────

def _cell(row_id, field="price", value=None, **formatting):
    return SelectedCell(row_id=row_id, field=field, value=value, formatting=formatting)


def _state(*cells, bulk=True):
    return update_selected_cells(SelectionState(is_bulk_edit_mode=bulk), cells)


# ═══════════════════════════════════════════════════════════════════════════════
# HOMOGENEITY
# ═══════════════════════════════════════════════════════════════════════════════

def test_can_bulk_edit_requires_more_than_one_cell():
    assert not can_bulk_edit([])
    assert not can_bulk_edit([_cell(1)])
    assert can_bulk_edit([_cell(1), _cell(2)])


def test_can_bulk_edit_rejects_mixed_fields():
    assert not can_bulk_edit([_cell(1, "a"), _cell(2, "b")])


def test_can_bulk_edit_with_field_filter():
    cells = [_cell(1, "a"), _cell(2, "a"), _cell(3, "b")]
    assert can_bulk_edit(cells, "a")
    assert not can_bulk_edit(cells, "b")


def test_start_and_cancel_toggle_mode():
    s = start_bulk_edit(SelectionState())
    assert s.is_bulk_edit_mode
    assert not cancel_bulk_edit(s).is_bulk_edit_mode


# ═══════════════════════════════════════════════════════════════════════════════
# APPLY
# ═══════════════════════════════════════════════════════════════════════════════

def test_apply_updates_matching_cells_and_exits_mode():
    cells = (_cell(1, value=1), _cell(2, value=2))
    state = _state(*cells)
    result = apply_bulk_edit(state, {}, cells, "9")
    assert [c.value for c in result.state.selected_cells] == ["9", "9"]
    assert result.state.is_bulk_edit_mode is False
    assert result.state.numeric_cell_values == (9.0, 9.0)
    assert result.formatting == {}
    assert result.applied


def test_apply_formats_value_and_caches_raw_number():
    cells = (_cell(1, value=1), _cell(2, value=2))
    config = ApplyConfig(data_type="currency", formatting={"currency": "$"}, format_value=lambda v: f"${v}")
    result = apply_bulk_edit(_state(*cells), {}, cells, "1,250", config)
    assert result.state.selected_cells[0].value == "$1,250"
    assert result.state.selected_cells[0].formatting["currency"] == "$"
    entry = result.formatting["1:price"]
    assert entry.currency == "$"
    assert entry.raw_value == 1250.0


def test_apply_unparsable_number_caches_zero():
    cells = (_cell(1), _cell(2))
    config = ApplyConfig(data_type="number", formatting={})
    result = apply_bulk_edit(_state(*cells), {}, cells, "abc", config)
    assert result.formatting["2:price"].raw_value == 0.0


def test_apply_text_caches_formatted_value():
    cells = (_cell(1, "note"), _cell(2, "note"))
    config = ApplyConfig(data_type="text", formatting={})
    result = apply_bulk_edit(_state(*cells), {}, cells, "done", config)
    assert result.formatting["1:note"].raw_value == "done"


def test_apply_leaves_unmatched_selected_cells():
    selected = (_cell(1, value=1), _cell(2, value=2), _cell(3, value=3))
    result = apply_bulk_edit(_state(*selected), {}, selected[:2], 7)
    assert [c.value for c in result.state.selected_cells] == [7, 7, 3]


def test_apply_mixed_columns_is_noop_but_clears_mode():
    cells = (_cell(1, "a", value=1), _cell(2, "b", value=2))
    state = _state(*cells)
    store = {}
    result = apply_bulk_edit(state, store, cells, "x", ApplyConfig(formatting={"bold": True}))
    assert result.state.selected_cells == state.selected_cells
    assert result.state.is_bulk_edit_mode is False
    assert result.formatting == {}
    assert not result.applied


def test_apply_single_cell_is_noop():
    cells = (_cell(1, value=1),)
    result = apply_bulk_edit(_state(*cells), {}, cells, "x")
    assert result.state.selected_cells[0].value == 1
    assert result.state.is_bulk_edit_mode is False


def test_get_updated_rows_writes_back():
    rows = [{"id": 1, "price": 1}, {"id": 2, "price": 2}, {"id": 3, "price": 3}]
    out = get_updated_rows(rows, [_cell(1, value=10), _cell(3, value=30)])
    assert [r["price"] for r in out] == [10, 2, 30]
    assert rows[0]["price"] == 1
    assert out[1] is rows[1]


def test_get_updated_rows_empty_cells_returns_input():
    rows = [{"id": 1}]
    assert get_updated_rows(rows, []) is rows


# ═══════════════════════════════════════════════════════════════════════════════
# DATA TYPE SERVICE
# ═══════════════════════════════════════════════════════════════════════════════

def test_detect_default_is_text():
    assert detect_data_type([]) == BulkEditConfig(data_type=BulkEditDataType.TEXT)


def test_detect_select_column():
    config = detect_data_type([_cell(1, "Status", "Open")])
    assert config.data_type == BulkEditDataType.SELECT
    assert config.options == ("Open", "In Progress", "Closed")


def test_detect_date_columns():
    for fld in ("BillDate", "InvoiceDate"):
        config = detect_data_type([_cell(1, fld, "2023-01-01")])
        assert config.data_type == BulkEditDataType.DATE
        assert config.date_format == "YYYY-MM-DD"


def test_detect_mixed_columns_text_with_empty_options():
    config = detect_data_type([_cell(1, "Name", "John"), _cell(2, "Age", 30)])
    assert config.data_type == BulkEditDataType.TEXT
    assert config.options == ()


def test_detect_currency_cells():
    cells = [_cell(1, value="100.00", currency="$"), _cell(2, value="200.00", currency="$")]
    config = detect_data_type(cells)
    assert config.data_type == BulkEditDataType.CURRENCY
    assert config.currency_format == "$"


def test_detect_numeric_and_text():
    assert detect_data_type([_cell(1, "Qty", 10), _cell(2, "Qty", 20)]).data_type == BulkEditDataType.NUMBER
    assert detect_data_type([_cell(1, "Mixed", 10), _cell(2, "Mixed", "text")]).data_type == BulkEditDataType.TEXT


def test_detect_numeric_uses_raw_value():
    cells = [_cell(1, "Amount", "USD 100.00", raw_value=100), _cell(2, "Amount", "USD 200.00", raw_value=200)]
    assert detect_data_type(cells).data_type == BulkEditDataType.NUMBER


def test_validate_text_and_required():
    text = BulkEditConfig()
    assert validate_value("", text).is_valid
    required = BulkEditConfig(required=True)
    check = validate_value("", required)
    assert not check.is_valid
    assert check.error_message == "This field is required"


def test_validate_numbers_and_bounds():
    config = BulkEditConfig(data_type=BulkEditDataType.NUMBER, min=10, max=100)
    assert validate_value("50", config).is_valid
    assert validate_value("5", config).error_message == "Value must be at least 10"
    assert validate_value("150", config).error_message == "Value must be at most 100"
    assert validate_value("nope", config).error_message == "Please enter a valid number"


def test_validate_currency_accepts_symbols():
    config = BulkEditConfig(data_type=BulkEditDataType.CURRENCY)
    assert validate_value("$100.50", config).is_valid
    assert not validate_value("not-money", config).is_valid


def test_validate_date_and_select():
    date_cfg = BulkEditConfig(data_type=BulkEditDataType.DATE)
    assert validate_value("2023-01-01", date_cfg).is_valid
    assert validate_value("not-a-date", date_cfg).error_message == "Please enter a valid date"

    select_cfg = BulkEditConfig(data_type=BulkEditDataType.SELECT, options=("Option 1", "Option 2"))
    assert validate_value("Option 1", select_cfg).is_valid
    assert validate_value("Option 4", select_cfg).error_message == "Please select a valid option"


def test_format_value_by_type():
    assert format_value("text value", BulkEditConfig()) == "text value"
    assert format_value("123.45", BulkEditConfig(data_type=BulkEditDataType.NUMBER)) == 123.45
    assert format_value("$123.45", BulkEditConfig(data_type=BulkEditDataType.CURRENCY)) == 123.45
    date_cfg = BulkEditConfig(data_type=BulkEditDataType.DATE, date_format="YYYY-MM-DD")
    assert format_value("2023-01-15", date_cfg) == "1/15/2023 12:00:00 AM"
    assert format_value("not-a-date", date_cfg) == "not-a-date"


def test_initial_value_shared_or_empty():
    assert initial_value([_cell(1, value=5), _cell(2, value=5)]) == "5"
    assert initial_value([_cell(1, value=5), _cell(2, value=6)]) == ""
    assert initial_value([_cell(1, value=None), _cell(2, value=None)]) == ""
    assert initial_value([]) == ""


# ═══════════════════════════════════════════════════════════════════════════════
# SUBMIT
# ═══════════════════════════════════════════════════════════════════════════════

def test_submit_rejects_invalid_value_and_keeps_mode():
    state = _state(_cell(1, value=1), _cell(2, value=2))
    result, check = submit_bulk_edit(state, {}, "abc", BulkEditConfig(data_type=BulkEditDataType.NUMBER))
    assert result is None
    assert check.error_message == "Please enter a valid number"


def test_submit_currency_stores_format_and_raw_value():
    state = _state(_cell(1, value="1.00", currency="$"), _cell(2, value="2.00", currency="$"))
    config = detect_data_type(state.selected_cells)
    result, check = submit_bulk_edit(state, {}, "$3.50", config)
    assert check.is_valid
    assert [c.value for c in result.state.selected_cells] == [3.5, 3.5]
    assert result.formatting["1:price"].currency == "$"
    assert result.formatting["1:price"].raw_value == 3.5
    assert result.state.is_bulk_edit_mode is False


def test_submit_date_stores_date_format():
    state = _state(_cell(1, "DueDate", "2023-01-01"), _cell(2, "DueDate", "2023-02-01"))
    result, _ = submit_bulk_edit(state, {}, "2023-03-05", detect_data_type(state.selected_cells))
    assert result.state.selected_cells[0].value == "3/5/2023 12:00:00 AM"
    assert result.formatting["1:DueDate"].date_format == "YYYY-MM-DD"
