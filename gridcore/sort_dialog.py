"""
gridcore/sort_dialog.py — Model behind the multi-level "Sort" dialog.

The dialog edits an ordered list of DialogLevel rows (Sort by / Sort On /
Order). Level editing never leaves the dialog empty once it has columns,
and "OK" converts the levels into a sort model for apply_multi_column_sort.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .models import ACTION_FIELD, SortLevel
from .sorting import ALPHANUMERIC, DATE, FILL_COLOR, FONT_COLOR, NUMERIC


@dataclass(frozen=True)
class DialogLevel:
    sort_by: str
    sort_on: str = ALPHANUMERIC
    order: str = "asc"


SORT_ON_OPTIONS = (
    (ALPHANUMERIC, "Alphanumeric"),
    (NUMERIC, "Numeric"),
    (DATE, "Date"),
    (FONT_COLOR, "Font Color"),
    (FILL_COLOR, "Fill Color"),
)

_ORDER_LABELS = {
    ALPHANUMERIC: (("asc", "A to Z, 1 to 9"), ("desc", "Z to A, 9 to 1")),
    NUMERIC: (("asc", "Smallest to Largest"), ("desc", "Largest to Smallest")),
    DATE: (("asc", "Earliest to Latest"), ("desc", "Latest to Earliest")),
}
_DEFAULT_ORDER_LABELS = (("asc", "Ascending"), ("desc", "Descending"))


def order_options(sort_on: str):
    """(value, label) pairs for the Order dropdown of a level."""
    return _ORDER_LABELS.get(sort_on, _DEFAULT_ORDER_LABELS)


def _field(col: Mapping[str, Any]) -> str:
    return col.get("field") or ""


def selectable_columns(columns: Sequence[Mapping[str, Any]]) -> List[Dict[str, str]]:
    """Options for "Sort by": everything except the actions column and hidden columns."""
    return [
        {"value": _field(col), "label": col.get("header_name") or _field(col)}
        for col in columns
        if _field(col) != ACTION_FIELD and not col.get("hide")
    ]


def _default_level(columns: Sequence[Mapping[str, Any]]) -> DialogLevel:
    return DialogLevel(sort_by=_field(columns[0]) if columns else "")


def initial_levels(
    levels: Optional[Sequence[DialogLevel]],
    columns: Sequence[Mapping[str, Any]],
) -> List[DialogLevel]:
    if levels:
        return list(levels)
    if columns:
        return [_default_level(columns)]
    return []


def reconcile_levels(
    levels: Sequence[DialogLevel],
    columns: Sequence[Mapping[str, Any]],
) -> List[DialogLevel]:
    """Reset to one default level when the first level points at a vanished column."""
    if not columns:
        return list(levels)
    fields = {_field(col) for col in columns}
    if not levels or levels[0].sort_by not in fields:
        return [_default_level(columns)]
    return list(levels)


def add_level(levels: Sequence[DialogLevel], columns: Sequence[Mapping[str, Any]]) -> List[DialogLevel]:
    return list(levels) + [_default_level(columns)]


def delete_level(levels: Sequence[DialogLevel]) -> List[DialogLevel]:
    """Drop the last level; the dialog always keeps at least one."""
    if len(levels) > 1:
        return list(levels[:-1])
    return list(levels)


def copy_level(levels: Sequence[DialogLevel]) -> List[DialogLevel]:
    if not levels:
        return []
    return list(levels) + [levels[-1]]


def change_level(levels: Sequence[DialogLevel], idx: int, attr: str, value: str) -> List[DialogLevel]:
    """Edit one cell of the dialog. Unknown attributes and bad orders are ignored."""
    if not 0 <= idx < len(levels) or not isinstance(value, str):
        return list(levels)
    if attr == "order" and value not in ("asc", "desc"):
        return list(levels)
    if attr not in ("sort_by", "sort_on", "order"):
        return list(levels)
    out = list(levels)
    out[idx] = replace(out[idx], **{attr: value})
    return out


def levels_to_sort_model(levels: Sequence[DialogLevel]) -> List[SortLevel]:
    """
    Convert dialog rows to a sort model. A field listed twice keeps its last
    setting at the position of that last occurrence.
    """
    model: List[SortLevel] = []
    for lvl in levels:
        if not lvl.sort_by:
            continue
        model = [m for m in model if m.field != lvl.sort_by]
        model.append(SortLevel(field=lvl.sort_by, type=lvl.sort_on or ALPHANUMERIC, direction=lvl.order))
    return [replace(m, priority=i) for i, m in enumerate(model, start=1)]


def sort_model_to_levels(model: Sequence[SortLevel]) -> List[DialogLevel]:
    return [DialogLevel(sort_by=m.field, sort_on=m.type, order=m.direction) for m in model]
