"""Grid boundary: header detection and ragged-row normalization.

This is the one place that validates the *structure* of incoming data. The
inferencer and normalizers read cells defensively and never raise; anything
that is not a sequence of row sequences is rejected here with a
:class:`GridError` before it reaches them.

Header detection is heuristic. A header row is text-dominant with few
numeric cells, while the rows beneath it carry dates and amounts. Exported
statements often put a few preamble lines (account name, export date) above
the real header, so :func:`find_header_row_index` scans a small window rather
than trusting row 0.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass

from .cells import format_cell
from .logging_setup import get_logger
from .models import Cell, Grid
from .schema import looks_like_amount, looks_like_date_value

_logger = get_logger("budget_sheets.grid")

HEADER_SCAN_LIMIT = 10
HEADER_LOOKAHEAD = 5

_NUMERIC_DATE_RE = (
    re.compile(r"^\d{4}[/\-]\d{1,2}([/\-]\d{1,2})?$"),
    re.compile(r"^\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}$"),
)


class GridError(ValueError):
    """Raised when input is not a grid of cell rows."""


@dataclass(frozen=True, slots=True)
class SheetGrid:
    """A rectangular, all-text view of one sheet.

    ``headers`` is all-empty when no header row was found. ``rows`` holds the
    data rows only, each padded to :attr:`width`.
    """

    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    has_header: bool
    header_row_index: int | None = None

    @property
    def width(self) -> int:
        return len(self.headers)

    def as_rows(self) -> list[list[str]]:
        """Rebuild the grid, header row first when present."""

        body = [list(r) for r in self.rows]
        return [list(self.headers), *body] if self.has_header else body


@dataclass(frozen=True, slots=True)
class _RowMetrics:
    non_empty: int
    text: int
    numeric: int


def _row_metrics(row: Sequence[Cell] | None) -> _RowMetrics:
    non_empty = text = numeric = 0
    for cell in row or ():
        value = format_cell(cell).strip()
        if not value:
            continue
        non_empty += 1
        if looks_like_date_value(value) or any(p.match(value) for p in _NUMERIC_DATE_RE):
            numeric += 1
        elif any(ch.isalpha() for ch in value):
            text += 1
        elif looks_like_amount([value]):
            numeric += 1
    return _RowMetrics(non_empty, text, numeric)


def is_likely_header_row(first_row: Sequence[Cell] | None, following_rows: Grid) -> bool:
    """Return True when ``first_row`` reads like column headers.

    A text-dominant row with at most one numeric cell (or 20% of cells) is a
    header. A row that is mostly numeric is not. In between, the row is a
    header only when it is text-dominant and the next row carries more
    numeric cells than it does.
    """

    if not first_row:
        return False
    first = _row_metrics(first_row)
    if first.non_empty == 0:
        return False

    nxt = _row_metrics(following_rows[0] if following_rows else None)

    text_dominant = first.text >= max(2, math.ceil(first.non_empty * 0.5))
    numeric_light = first.numeric <= max(1, math.floor(first.non_empty * 0.2))
    next_has_numeric = nxt.numeric >= max(1, math.ceil(nxt.non_empty * 0.3))

    if text_dominant and numeric_light:
        return True
    if first.numeric >= math.ceil(first.non_empty * 0.6):
        return False
    return text_dominant and next_has_numeric and nxt.numeric > first.numeric


def find_header_row_index(rows: Grid, scan_limit: int = HEADER_SCAN_LIMIT) -> int | None:
    """Return the index of the first header-looking row within ``scan_limit`` rows."""

    for i in range(min(scan_limit, len(rows))):
        row = rows[i]
        if not row:
            continue
        if is_likely_header_row(row, rows[i + 1 : i + 1 + HEADER_LOOKAHEAD]):
            return i
    return None


def _validate(raw_rows: object) -> list[Sequence[Cell] | None]:
    if raw_rows is None or isinstance(raw_rows, (str, bytes)) or not isinstance(raw_rows, Sequence):
        raise GridError(f"expected a sequence of rows, got {type(raw_rows).__name__}")
    out: list[Sequence[Cell] | None] = []
    for i, row in enumerate(raw_rows):
        if row is not None and (isinstance(row, (str, bytes)) or not isinstance(row, Sequence)):
            raise GridError(f"row {i} is not a sequence of cells (got {type(row).__name__})")
        out.append(row)
    return out


def normalize_grid(raw_rows: Grid) -> SheetGrid:
    """Validate and rectangularize a raw grid, detecting its header row.

    Raises
    ------
    GridError
        When ``raw_rows`` is not a sequence of row sequences.
    """

    rows = _validate(raw_rows)
    if not rows:
        return SheetGrid(headers=(), rows=(), has_header=False)

    width = max((len(r) for r in rows if r is not None), default=0)

    def _pad(row: Sequence[Cell] | None) -> tuple[str, ...]:
        cells = [format_cell(c) for c in (row or ())]
        return tuple(cells + [""] * (width - len(cells)))

    header_idx = find_header_row_index(rows)
    if header_idx is None:
        _logger.debug("grid:no_header rows=%d width=%d", len(rows), width)
        return SheetGrid(
            headers=("",) * width,
            rows=tuple(_pad(r) for r in rows),
            has_header=False,
        )

    if header_idx > 0:
        _logger.debug("grid:preamble_skipped rows=%d", header_idx)
    return SheetGrid(
        headers=_pad(rows[header_idx]),
        rows=tuple(_pad(r) for r in rows[header_idx + 1 :]),
        has_header=True,
        header_row_index=header_idx,
    )


__all__ = [
    "GridError",
    "SheetGrid",
    "find_header_row_index",
    "is_likely_header_row",
    "normalize_grid",
]
