"""
gridcore/models.py — Data model shared by the selection, sort, formatting and layout modules.

Rows are plain mappings keyed by field with a stable "id". Everything else is
a dataclass; selection and sort state are frozen so transitions return copies.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union


RowId = Union[int, str]
Row = Mapping[str, Any]
"""A grid row: field -> value, plus a stable "id" key. Never mutated."""

CHECKBOX_FIELD = "__check__"      # row-selection pseudo-column
ACTION_FIELD   = "__action__"     # trailing actions column

SortDirection = Literal["asc", "desc"]


# ---- Selection ----

@dataclass(frozen=True)
class SelectedCell:
    """
    One selected (row_id, field) cell. A selection holds at most one
    SelectedCell per (row_id, field) pair.
    formatting carries whatever bulk edit / formatting actions merged in.
    Hashing uses (row_id, field) only, so cells can live in sets.
    """
    row_id: RowId
    field: str
    value: Any = field(default=None, hash=False)
    formatting: Mapping[str, Any] = field(default_factory=dict, hash=False)

    @property
    def key(self) -> Tuple[RowId, str]:
        return (self.row_id, self.field)

    def same_cell(self, other: "SelectedCell") -> bool:
        return self.row_id == other.row_id and self.field == other.field


@dataclass(frozen=True)
class SelectionState:
    """
    Aggregate selection owned by the selection model.
    numeric_cell_values is always re-derived from selected_cells, except
    right after an explicit store_numeric_cell_values().
    """
    selected_cells: Tuple[SelectedCell, ...] = ()
    selected_rows: Tuple[Row, ...] = ()
    numeric_cell_values: Tuple[float, ...] = ()
    is_bulk_edit_mode: bool = False


# ---- Sorting ----

@dataclass(frozen=True)
class SortLevel:
    """
    One column's contribution to a multi-column sort.
    priority is 1-based and contiguous across the active model.
    """
    field: str
    type: str = "alphanumeric"
    direction: SortDirection = "asc"
    priority: int = 1


# ---- Formatting ----

@dataclass(frozen=True)
class FormattingEntry:
    """
    Per-cell visual formatting, keyed in the store by "{row_id}:{field}".
    Entries are merged on update and never replaced wholesale.
    Unknown keys land in extra.
    """
    fill_color: Optional[str] = None
    text_color: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    strikethrough: Optional[bool] = None
    raw_value: Any = None
    decimal_places: Optional[int] = None
    use_comma: Optional[bool] = None
    currency: Optional[str] = None
    date_format: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def merged(self, update: Union["FormattingEntry", Mapping[str, Any], None]) -> "FormattingEntry":
        """Return a new entry with update layered over this one."""
        if update is None:
            return self
        if isinstance(update, FormattingEntry):
            update = update.as_dict()

        known = {f.name for f in fields(self)} - {"extra"}
        changes: Dict[str, Any] = {}
        extra = dict(self.extra)
        for k, v in update.items():
            if k == "extra":
                extra.update(v or {})
            elif k in known:
                changes[k] = v
            else:
                extra[k] = v
        return replace(self, extra=extra, **changes)

    def as_dict(self) -> Dict[str, Any]:
        """Set attributes only, with extra flattened in."""
        out: Dict[str, Any] = {}
        for f in fields(self):
            if f.name == "extra":
                continue
            v = getattr(self, f.name)
            if v is not None:
                out[f.name] = v
        out.update(self.extra)
        return out

    def is_empty(self) -> bool:
        return not self.as_dict()


FormattingStore = Mapping[str, FormattingEntry]
ColumnWidths = Mapping[str, float]
WrapConfig = Mapping[str, bool]


# ---- Column inputs ----

@dataclass
class ColumnSchema:
    """
    One column of the table schema. alias_name is the field key used
    everywhere else in the engine.
    """
    column_name: str
    alias_name: str
    data_type: Optional[str] = None


@dataclass
class ColumnConfiguration:
    """
    Optional per-column settings. Unconfigured columns are non-editable
    generic text columns.
    """
    alias_name: str
    type: str = ""                    # "select" for fixed dropdown columns
    is_editable: bool = False
    column_name: str = ""
