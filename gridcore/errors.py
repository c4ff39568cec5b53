"""gridcore/errors.py — AppError, workbook error codes, and friendly messages."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class AppError(Exception):
    """
    User-facing error with a short code and structured details.
    Only workbook import/export raises AppError; the interaction engine
    itself recovers locally from malformed input.
    """
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if self.details:
            return f"{self.code}: {self.message} ({self.details})"
        return f"{self.code}: {self.message}"


# ── Error codes (keep stable for tests and host UI) ───────────────────────────

SOURCE_READ_FAILED = "SOURCE_READ_FAILED"
SHEET_NOT_FOUND    = "SHEET_NOT_FOUND"
FILE_LOCKED        = "FILE_LOCKED"
SAVE_FAILED        = "SAVE_FAILED"
MISSING_DEST_PATH  = "MISSING_DEST_PATH"
EMPTY_SHEET        = "EMPTY_SHEET"


# ── Friendly message lookup ───────────────────────────────────────────────────

def _file_suffix(e: AppError) -> str:
    if e.details and "path" in e.details:
        return f" ({os.path.basename(e.details['path'])})"
    return ""


def friendly_message(e: AppError) -> str:
    """
    Return a plain-English one-liner suitable for display in a dialog.
    Never exposes raw tracebacks or internal code paths.
    """
    code = e.code
    msg  = e.message or ""

    if code == FILE_LOCKED:
        return f"File is open in another program{_file_suffix(e)}. Close it and try again."

    if code == SAVE_FAILED:
        fname = _file_suffix(e)
        if "permission" in msg.lower() or "locked" in msg.lower() or "access" in msg.lower():
            return f"Could not save, the file is open in another program{fname}. Close it and try again."
        return f"Could not save the grid{fname}. Check that the path is valid and the folder exists."

    if code == SHEET_NOT_FOUND:
        return f"Sheet not found in the workbook. Check that the sheet name is correct.\n({msg})"

    if code == SOURCE_READ_FAILED:
        if "permission" in msg.lower() or "locked" in msg.lower() or "access" in msg.lower():
            return "Workbook is open in another program. Close it and try again."
        if "no such file" in msg.lower() or "not found" in msg.lower():
            return "Workbook not found. Check that the file path is correct."
        return f"Could not read the workbook. Check that it is a valid XLSX file.\n({msg})"

    if code == EMPTY_SHEET:
        return "The sheet has no header row, so there is nothing to load."

    if code == MISSING_DEST_PATH:
        return "No export file path set. Choose where the grid should be saved."

    clean = msg.splitlines()[0] if msg else "An unexpected error occurred."
    return clean
