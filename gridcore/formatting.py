"""
gridcore/formatting.py — Formatting Store.

The store is a plain mapping "{row_id}:{field}" -> FormattingEntry.
Every update returns a NEW mapping (callers detect changes by identity);
entries are merged, never replaced wholesale, and never deleted.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

from .models import FormattingEntry, FormattingStore, RowId


_EMPTY = FormattingEntry()


def cell_key(row_id: RowId, field: str) -> str:
    return f"{row_id}:{field}"


def wrap_key(row_id: RowId, field: str) -> str:
    return f"{row_id}|{field}"


def get_cell_formatting(store: Optional[FormattingStore], key: str) -> FormattingEntry:
    """Entry for key, or an empty entry when the cell was never formatted."""
    if not store:
        return _EMPTY
    return store.get(key) or _EMPTY


def update_cell_formatting(
    store: Optional[FormattingStore],
    key: str,
    formatting: Union[FormattingEntry, Mapping[str, Any]],
) -> Dict[str, FormattingEntry]:
    """Merge formatting into the entry at key (creating it if needed)."""
    out: Dict[str, FormattingEntry] = dict(store or {})
    out[key] = out.get(key, _EMPTY).merged(formatting)
    return out


def update_many(
    store: Optional[FormattingStore],
    updates: Mapping[str, Union[FormattingEntry, Mapping[str, Any]]],
) -> Dict[str, FormattingEntry]:
    """Apply several merge-updates in one replacement."""
    out: Dict[str, FormattingEntry] = dict(store or {})
    for key, formatting in updates.items():
        out[key] = out.get(key, _EMPTY).merged(formatting)
    return out


def coerce_store(raw: Optional[Mapping[str, Any]]) -> Dict[str, FormattingEntry]:
    """
    Accept a store whose values may still be plain dicts (as handed over by
    a host state container) and return a store of FormattingEntry values.
    """
    out: Dict[str, FormattingEntry] = {}
    for key, value in (raw or {}).items():
        if isinstance(value, FormattingEntry):
            out[key] = value
        else:
            out[key] = _EMPTY.merged(value or {})
    return out
