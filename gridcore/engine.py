"""
gridcore/engine.py — View pipeline and the interactive grid session.

build_view() is the only way sorted rows are produced: it re-projects
formatting into sort keys and then sorts, on every call, so color sorts
never see stale keys.

GridSession keeps the grid's state values and exposes one method per user
gesture. Each method computes the new values completely before assigning
them, and malformed input degrades to a no-op instead of raising.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .bulk_edit import (
    BulkEditConfig,
    ValidationResult,
    can_bulk_edit,
    cancel_bulk_edit,
    detect_data_type,
    get_updated_rows,
    start_bulk_edit,
    submit_bulk_edit,
)
from .cell_format import (
    FormatResult,
    apply_cell_formatting_action,
    apply_color_formatting,
    apply_currency_format,
    apply_date_format,
)
from .columns import ColumnDef, generate_columns
from .formatting import cell_key, wrap_key
from .layout import auto_resize_column, get_dynamic_row_height, set_column_width
from .models import (
    ColumnConfiguration,
    ColumnSchema,
    FormattingEntry,
    Row,
    RowId,
    SelectedCell,
    SelectionState,
    SortLevel,
)
from .projection import SortKeyTable, preprocess_rows, project_sort_keys
from .selection import select_cell, select_rows, update_selected_cells
from .settings import GridSettings, load_settings
from .sort_dialog import DialogLevel, levels_to_sort_model, sort_model_to_levels
from .sorting import apply_multi_column_sort, get_clear_sort_model, get_sort_asc_model, get_sort_desc_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridView:
    rows: Tuple[Row, ...]
    sort_keys: SortKeyTable
    sort_model: Tuple[SortLevel, ...] = ()


@dataclass(frozen=True)
class RefreshResult:
    rows: Sequence[Row]
    token: Any = None


def build_view(
    rows: Sequence[Row],
    formatting: Optional[Dict[str, FormattingEntry]],
    sort_model: Optional[Sequence[SortLevel]],
) -> GridView:
    """Project formatting into sort keys, then sort."""
    annotated = preprocess_rows(rows, formatting)
    sort_keys = project_sort_keys(annotated, formatting)
    ordered = apply_multi_column_sort(annotated, list(sort_model or []), sort_keys)
    return GridView(rows=tuple(ordered), sort_keys=sort_keys, sort_model=tuple(sort_model or ()))


def accept_refresh(
    result: RefreshResult,
    formatting: Optional[Dict[str, FormattingEntry]],
    sort_model: Optional[Sequence[SortLevel]],
) -> GridView:
    rows = list(result.rows or [])
    logger.info("Refresh accepted: %d row(s)", len(rows))
    return build_view(rows, formatting, sort_model)


async def refresh(
    fetch: Callable[[], Awaitable[RefreshResult]],
    formatting: Optional[Dict[str, FormattingEntry]],
    sort_model: Optional[Sequence[SortLevel]],
) -> GridView:
    """Await the host's fetch and rebuild the view from what it returns."""
    result = await fetch()
    return accept_refresh(result, formatting, sort_model)


@dataclass
class GridSession:
    """State holder for one grid on screen."""
    rows: List[Row] = field(default_factory=list)
    schema: List[ColumnSchema] = field(default_factory=list)
    configuration: List[ColumnConfiguration] = field(default_factory=list)
    selection: SelectionState = field(default_factory=SelectionState)
    formatting: Dict[str, FormattingEntry] = field(default_factory=dict)
    sort_model: List[SortLevel] = field(default_factory=list)
    column_widths: Dict[str, float] = field(default_factory=dict)
    wrap_config: Dict[str, bool] = field(default_factory=dict)
    settings: GridSettings = field(default_factory=load_settings)
    measurer: Any = None

    # ── Derived views ───────────────────────────────────────────────────────

    def view(self) -> GridView:
        return build_view(self.rows, self.formatting, self.sort_model)

    def columns(self, include_actions: bool = False) -> List[ColumnDef]:
        return generate_columns(
            self.schema, self.configuration, self.column_widths, self.sort_model,
            include_actions=include_actions, settings=self.settings,
        )

    def _find_row(self, row_id: RowId) -> Optional[Row]:
        for row in self.rows:
            if row.get("id") == row_id:
                return row
        return None

    # ── Data ────────────────────────────────────────────────────────────────

    def accept(self, result: RefreshResult) -> GridView:
        """Take a refreshed row snapshot; selection and formatting are kept."""
        self.rows = list(result.rows or [])
        return accept_refresh(result, self.formatting, self.sort_model)

    async def refresh(self, fetch: Callable[[], Awaitable[RefreshResult]]) -> GridView:
        result = await fetch()
        return self.accept(result)

    # ── Selection ───────────────────────────────────────────────────────────

    def click_cell(self, row_id: RowId, field: str, additive: bool = False) -> SelectionState:
        row = self._find_row(row_id)
        value = row.get(field) if row is not None else None
        entry = self.formatting.get(cell_key(row_id, field))
        cell = SelectedCell(row_id=row_id, field=field, value=value,
                            formatting=entry.as_dict() if entry else {})
        self.selection = select_cell(self.selection, cell, additive)
        return self.selection

    def select_rows(self, ids: Optional[Sequence[RowId]]) -> SelectionState:
        self.selection = select_rows(self.selection, ids, self.rows)
        return self.selection

    # ── Sorting ─────────────────────────────────────────────────────────────

    def sort_asc(self, field: str, sort_type: Optional[str] = None) -> GridView:
        self.sort_model = get_sort_asc_model(self.sort_model, field, sort_type)
        return self.view()

    def sort_desc(self, field: str, sort_type: Optional[str] = None) -> GridView:
        self.sort_model = get_sort_desc_model(self.sort_model, field, sort_type)
        return self.view()

    def clear_sort(self, field: str) -> GridView:
        self.sort_model = get_clear_sort_model(self.sort_model, field)
        return self.view()

    def dialog_levels(self) -> List[DialogLevel]:
        return sort_model_to_levels(self.sort_model)

    def apply_sort_dialog(self, levels: Sequence[DialogLevel]) -> GridView:
        self.sort_model = levels_to_sort_model(levels)
        return self.view()

    # ── Bulk edit ───────────────────────────────────────────────────────────

    def start_bulk_edit(self) -> bool:
        """Enter bulk-edit mode when the selection allows it."""
        if not can_bulk_edit(self.selection.selected_cells):
            return False
        self.selection = start_bulk_edit(self.selection)
        return True

    def cancel_bulk_edit(self) -> None:
        self.selection = cancel_bulk_edit(self.selection)

    def bulk_edit(self, value: Any, config: Optional[BulkEditConfig] = None) -> ValidationResult:
        """Validate and apply value to every selected cell, then write it onto the rows."""
        config = config or detect_data_type(self.selection.selected_cells)
        result, check = submit_bulk_edit(self.selection, self.formatting, value, config)
        if result is None:
            return check
        rows = get_updated_rows(self.rows, result.state.selected_cells) if result.applied else self.rows
        self.selection, self.formatting, self.rows = result.state, result.formatting, list(rows)
        return check

    # ── Cell formatting ─────────────────────────────────────────────────────

    def _take(self, result: FormatResult) -> None:
        cells = {c.key: c for c in result.cells}
        merged = [cells.get(c.key, c) for c in self.selection.selected_cells]
        self.selection = update_selected_cells(self.selection, merged)
        self.formatting = result.formatting

    def format_cells(self, action: str) -> None:
        self._take(apply_cell_formatting_action(action, self.selection.selected_cells, self.formatting))

    def format_currency(self, key: str) -> None:
        self._take(apply_currency_format(key, self.selection.selected_cells, self.formatting, self.configuration))

    def format_color(self, attr: str, color: str) -> None:
        self._take(apply_color_formatting(attr, color, self.selection.selected_cells,
                                          self.formatting, self.configuration))

    def format_date(self, key: str) -> None:
        self._take(apply_date_format(key, self.selection.selected_cells, self.formatting, self.configuration))

    # ── Layout ──────────────────────────────────────────────────────────────

    def set_wrap(self, row_id: RowId, field: str, enabled: bool = True) -> None:
        self.wrap_config = {**self.wrap_config, wrap_key(row_id, field): bool(enabled)}

    def resize_column(self, field: str, width: float) -> Dict[str, float]:
        try:
            width = float(width)
        except (TypeError, ValueError):
            logger.debug("Ignoring resize of %r to %r", field, width)
            return self.column_widths
        self.column_widths = set_column_width(self.column_widths, field, width)
        return self.column_widths

    def auto_resize(self, field: str) -> Dict[str, float]:
        texts = [row.get(field) for row in self.rows]
        self.column_widths = auto_resize_column(
            field, field, texts, self.column_widths, measurer=self.measurer, settings=self.settings,
        )
        return self.column_widths

    def row_height(self, row: Row) -> Union[float, str]:
        return get_dynamic_row_height(
            row, self.wrap_config, self.column_widths, measurer=self.measurer, settings=self.settings,
        )
