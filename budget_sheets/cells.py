"""Bounds-checked cell access shared by the inferencer and the normalizers.

Rows coming out of spreadsheets are ragged: trailing empty cells are usually
omitted, blank rows may arrive as ``None``, and XLSX readers hand back numbers
and datetimes rather than text. Everything here reads such rows without
raising: an index past the end of a row, a ``None`` row and a ``None`` cell
all read as ``""``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from datetime import date, datetime, time

from .models import Cell, Grid, Row


def format_cell(value: Cell | object) -> str:
    """Render one raw cell as the text a spreadsheet UI would show."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def cell_text(row: Row | None, index: int | None) -> str:
    if row is None or index is None or index < 0 or index >= len(row):
        return ""
    return format_cell(row[index])


def column_values(rows: Grid, index: int, limit: int | None = None) -> list[str]:
    """Return the text of column ``index`` for the first ``limit`` rows."""

    window = rows if limit is None else rows[:limit]
    return [cell_text(row, index) for row in window]


def grid_width(headers: Sequence[object], rows: Grid) -> int:
    return max([len(headers), *(len(r) for r in rows if r is not None)])


# Leading numeric prefix: "85.50USD" reads as 85.5.
_LEADING_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def leading_number(text: str) -> float | None:
    """Parse the number at the start of ``text``; ``None`` when there is none.

    Trailing text is ignored (``"12.00-"`` reads as ``12.0``). Non-finite
    results such as ``"1e999"`` count as no number.
    """

    match = _LEADING_NUMBER_RE.match(text)
    if match is None:
        return None
    value = float(match.group(0))
    return value if math.isfinite(value) else None


__all__ = ["cell_text", "column_values", "format_cell", "grid_width", "leading_number"]
