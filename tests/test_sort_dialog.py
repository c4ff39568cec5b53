"""
test_sort_dialog.py — Tests for gridcore/sort_dialog.py.

Covers:
  - Sort On options and order labels
  - selectable_columns hides the actions column and hidden columns
  - initial / reconcile levels
  - add / delete (never below one) / copy / change level
  - levels_to_sort_model dedupe (last wins) and renumbering
  - Dialog levels applied through the sort engine
"""
from __future__ import annotations

from gridcore.models import ACTION_FIELD
from gridcore.sort_dialog import (
    SORT_ON_OPTIONS,
    DialogLevel,
    add_level,
    change_level,
    copy_level,
    delete_level,
    initial_levels,
    levels_to_sort_model,
    order_options,
    reconcile_levels,
    selectable_columns,
    sort_model_to_levels,
)
from gridcore.sorting import apply_multi_column_sort


COLUMNS = [
    {"field": "name", "header_name": "Name"},
    {"field": "age", "header_name": "Age"},
    {"field": "secret", "header_name": "Secret", "hide": True},
    {"field": ACTION_FIELD, "header_name": ""},
]


def test_sort_on_options_values():
    assert [v for v, _ in SORT_ON_OPTIONS] == ["alphanumeric", "numeric", "date", "fontColor", "fillColor"]


def test_order_labels_per_type():
    assert dict(order_options("alphanumeric"))["asc"] == "A to Z, 1 to 9"
    assert dict(order_options("numeric"))["desc"] == "Largest to Smallest"
    assert dict(order_options("date"))["asc"] == "Earliest to Latest"
    assert dict(order_options("fillColor"))["asc"] == "Ascending"


def test_selectable_columns_excludes_actions_and_hidden():
    opts = selectable_columns(COLUMNS)
    assert opts == [{"value": "name", "label": "Name"}, {"value": "age", "label": "Age"}]


def test_initial_levels_default_to_first_column():
    assert initial_levels(None, COLUMNS) == [DialogLevel("name")]
    assert initial_levels([], []) == []
    existing = [DialogLevel("age", "numeric", "desc")]
    assert initial_levels(existing, COLUMNS) == existing


def test_reconcile_resets_when_first_column_vanishes():
    levels = [DialogLevel("gone")]
    assert reconcile_levels(levels, COLUMNS) == [DialogLevel("name")]
    keep = [DialogLevel("age")]
    assert reconcile_levels(keep, COLUMNS) == keep


def test_add_delete_copy_levels():
    levels = [DialogLevel("age", "numeric", "desc")]
    levels = add_level(levels, COLUMNS)
    assert levels[-1] == DialogLevel("name")
    levels = copy_level(levels)
    assert len(levels) == 3 and levels[-1] == levels[-2]
    levels = delete_level(delete_level(delete_level(levels)))
    assert levels == [DialogLevel("age", "numeric", "desc")]


def test_change_level_valid_and_invalid():
    levels = [DialogLevel("name")]
    assert change_level(levels, 0, "order", "desc")[0].order == "desc"
    assert change_level(levels, 0, "sort_on", "date")[0].sort_on == "date"
    assert change_level(levels, 0, "order", "sideways") == levels
    assert change_level(levels, 5, "order", "desc") == levels
    assert change_level(levels, 0, "colour", "red") == levels


def test_levels_to_model_dedupes_last_wins():
    levels = [DialogLevel("name"), DialogLevel("age", "numeric"), DialogLevel("name", "alphanumeric", "desc")]
    model = levels_to_sort_model(levels)
    assert [(m.field, m.direction, m.priority) for m in model] == [("age", "asc", 1), ("name", "desc", 2)]


def test_levels_round_trip_to_dialog():
    levels = [DialogLevel("age", "numeric", "desc")]
    assert sort_model_to_levels(levels_to_sort_model(levels)) == levels


def test_dialog_levels_drive_sort():
    rows = [{"id": 1, "name": "b", "age": 2}, {"id": 2, "name": "a", "age": 2}, {"id": 3, "name": "c", "age": 1}]
    model = levels_to_sort_model([DialogLevel("age", "numeric", "desc"), DialogLevel("name")])
    assert [r["id"] for r in apply_multi_column_sort(rows, model)] == [2, 1, 3]
