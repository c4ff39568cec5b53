"""
gridcore/columns.py — Column definitions for the rendering layer.

Turns the column schema plus optional per-column configuration into plain
ColumnDef records: editability, width (fixed or flex), select options,
editable-neighbour borders and the sort decoration for each header.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .formatting import get_cell_formatting, wrap_key
from .models import (
    ACTION_FIELD,
    ColumnConfiguration,
    ColumnSchema,
    ColumnWidths,
    FormattingStore,
    RowId,
    SelectedCell,
    SortLevel,
    WrapConfig,
)
from .settings import GridSettings, load_settings
from .sorting import column_sort_state


SELECT_TYPE = "select"

# Fixed dropdown values for select-typed columns, by field.
DROPDOWN_OPTIONS: Dict[str, Tuple[str, ...]] = {
    "Status": ("Open", "In Progress", "Closed"),
    "priority": ("Low", "Medium", "High"),
}


@dataclass
class ColumnDef:
    field: str
    header_name: str
    editable: bool = False
    width: Optional[float] = None
    flex: Optional[int] = 1
    min_width: float = 120
    type: str = "string"
    value_options: Optional[List[str]] = None
    right_border: bool = False
    sort_direction: Optional[str] = None
    sort_priority: Optional[int] = None
    sort_type: Optional[str] = None
    is_actions: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)


def find_configuration(
    configuration: Optional[Sequence[ColumnConfiguration]],
    alias_name: Optional[str],
) -> Optional[ColumnConfiguration]:
    if alias_name is None:
        return None
    for cfg in configuration or []:
        if cfg.alias_name == alias_name:
            return cfg
    return None


def is_select_column(cfg: Optional[ColumnConfiguration]) -> bool:
    return cfg is not None and cfg.type == SELECT_TYPE


def is_editable_column(cfg: Optional[ColumnConfiguration]) -> bool:
    return bool(cfg and cfg.is_editable)


def generate_columns(
    schema: Sequence[ColumnSchema],
    configuration: Optional[Sequence[ColumnConfiguration]] = None,
    column_widths: Optional[ColumnWidths] = None,
    sort_model: Optional[Sequence[SortLevel]] = None,
    include_actions: bool = False,
    settings: Optional[GridSettings] = None,
) -> List[ColumnDef]:
    """Column definitions in schema order, optionally followed by the actions column."""
    settings = settings or load_settings()
    widths = column_widths or {}
    columns: List[ColumnDef] = []

    for idx, col in enumerate(schema):
        cfg = find_configuration(configuration, col.alias_name)
        next_col = schema[idx + 1] if idx + 1 < len(schema) else None
        next_cfg = find_configuration(configuration, next_col.alias_name if next_col else None)

        fld = col.alias_name
        editable = is_editable_column(cfg)
        select = is_select_column(cfg)
        width = widths.get(fld)
        direction, priority, sort_type = column_sort_state(sort_model or [], fld)

        columns.append(ColumnDef(
            field=fld,
            header_name=fld,
            editable=editable,
            width=width,
            flex=None if width else 1,
            min_width=settings.min_column_width,
            type="singleSelect" if select else "string",
            value_options=list(DROPDOWN_OPTIONS.get(fld, ())) if select else None,
            right_border=editable and is_editable_column(next_cfg),
            sort_direction=direction,
            sort_priority=priority,
            sort_type=sort_type,
        ))

    if include_actions:
        columns.append(ColumnDef(
            field=ACTION_FIELD,
            header_name="",
            width=widths.get(ACTION_FIELD, settings.actions_column_width),
            flex=None,
            min_width=0,
            is_actions=True,
        ))

    return columns


# ── Per-cell rendering helpers ───────────────────────────────────────────────

def is_cell_selected(selected_cells: Sequence[SelectedCell], row_id: RowId, field: str) -> bool:
    return any(c.row_id == row_id and c.field == field for c in selected_cells or ())


def cell_background(
    formatting: Optional[FormattingStore],
    key: str,
    editable: bool,
    settings: Optional[GridSettings] = None,
) -> Optional[str]:
    """Fill color if the cell has one, the editable tint otherwise, else None."""
    entry = get_cell_formatting(formatting, key)
    if entry.fill_color:
        return entry.fill_color
    if editable:
        return (settings or load_settings()).editable_fill
    return None


def should_wrap_edit_cell(
    wrap_config: Optional[WrapConfig],
    row_id: RowId,
    col: ColumnDef,
) -> bool:
    """Editors wrap only for editable, non-select columns with wrapping on."""
    wrapped = bool((wrap_config or {}).get(wrap_key(row_id, col.field)))
    return wrapped and col.editable and col.type != "singleSelect"
