"""Serialize a :class:`~budget_sheets.models.Transaction` into an append row.

The row is laid out for a sheet whose columns were mapped by
:func:`budget_sheets.schema.infer_schema`. Cells holding live formulas (for
example a running balance) are left empty so the spreadsheet keeps computing
them; indices the sheet does not have are skipped rather than growing the row.
"""

from __future__ import annotations

from collections.abc import Set
from datetime import date

from .cells import format_cell, grid_width
from .grid import normalize_grid
from .logging_setup import get_logger
from .models import AppendCell, ColumnMapping, Grid, Transaction, WriteSchema
from .schema import infer_schema

_logger = get_logger("budget_sheets.writeback")


def build_append_row(
    mapping: ColumnMapping,
    transaction: Transaction,
    column_count: int,
    formula_columns: Set[int] = frozenset(),
    *,
    today: date | None = None,
) -> list[AppendCell]:
    """Return a row of exactly ``column_count`` cells for ``transaction``.

    Parameters
    ----------
    mapping:
        Column roles of the target sheet.
    transaction:
        The record to write. Its signed amount is written (negative for
        outflows), synthesized from ``type`` when the record carries none.
    column_count:
        Width of the target sheet.
    formula_columns:
        Indices that must stay empty because the sheet computes them.
    today:
        Date written when the transaction has none; defaults to
        :meth:`datetime.date.today`.

    Raises
    ------
    ValueError
        When ``column_count`` is negative.
    """

    if column_count < 0:
        raise ValueError(f"column_count must be >= 0, got {column_count}")

    row: list[AppendCell] = [""] * column_count

    def _set(slot: str, idx: int | None, value: AppendCell) -> None:
        if idx is None:
            return
        if idx >= column_count or idx in formula_columns:
            _logger.debug(
                "writeback:skip slot=%s column=%d reason=%s",
                slot,
                idx,
                "formula" if idx in formula_columns else "out_of_range",
            )
            return
        row[idx] = value

    tx_date = transaction.date or (today or date.today()).isoformat()
    _set("date", mapping.date_column, tx_date)
    _set("description", mapping.description_column, transaction.description)
    _set("amount", mapping.amount_column, transaction.effective_signed_amount)
    _set("category", mapping.category_column, transaction.category)
    return row


# ---------------------------------------------------------------------------
# Write schema discovery
# ---------------------------------------------------------------------------


def detect_formula_columns(rows: Grid) -> frozenset[int]:
    """Indices whose cell in the first non-empty row starts with ``=``.

    ``rows`` are data rows (no header). Only the first row with any
    non-blank cell is inspected; later rows are assumed to follow it.
    """

    for row in rows:
        cells = [format_cell(c).strip() for c in (row or ())]
        if not any(cells):
            continue
        return frozenset(i for i, text in enumerate(cells) if text.startswith("="))
    return frozenset()


def build_write_schema(raw_rows: Grid) -> WriteSchema:
    """Analyze a fetched sheet and return what an append needs.

    ``column_count`` is the widest row (header included), never less than 1.
    """

    grid = normalize_grid(raw_rows)
    mapping = infer_schema(grid.headers, grid.rows)
    formula_columns = detect_formula_columns(grid.rows)
    column_count = max(1, grid_width(grid.headers, grid.rows))
    _logger.debug(
        "writeback:schema columns=%d formulas=%s mapping=%s",
        column_count,
        sorted(formula_columns),
        mapping.assigned_columns(),
    )
    return WriteSchema(mapping=mapping, column_count=column_count, formula_columns=formula_columns)


# ---------------------------------------------------------------------------
# A1 notation helpers
# ---------------------------------------------------------------------------


def column_letter(index: int) -> str:
    """0-based column index to A1 letters (``0`` → ``A``, ``26`` → ``AA``)."""

    if index < 0:
        raise ValueError(f"column index must be >= 0, got {index}")
    letters = ""
    n = index + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


__all__ = [
    "build_append_row",
    "build_write_schema",
    "column_letter",
    "detect_formula_columns",
]
