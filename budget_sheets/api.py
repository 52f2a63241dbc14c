"""Public orchestration surface for ``budget_sheets``.

The building blocks (:func:`~budget_sheets.schema.infer_schema`,
:func:`~budget_sheets.normalizers.parse_transactions`,
:func:`~budget_sheets.writeback.build_append_row`) work on already-shaped
inputs. The helpers here take a raw grid exactly as a sheet or file reader
returns it, run header detection once, and chain the steps together.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from .grid import SheetGrid, normalize_grid
from .logging_setup import get_logger
from .models import AppendCell, ColumnMapping, Grid, Transaction
from .normalizers import IdFactory, parse_transactions
from .schema import infer_schema
from .writeback import build_append_row, build_write_schema

_logger = get_logger("budget_sheets.api")


@dataclass(frozen=True, slots=True)
class SheetAnalysis:
    """A normalized grid together with the mapping inferred from it."""

    grid: SheetGrid
    mapping: ColumnMapping


def analyze_rows(raw_rows: Grid) -> SheetAnalysis:
    """Detect the header row and infer column roles for ``raw_rows``.

    Raises
    ------
    budget_sheets.grid.GridError
        When ``raw_rows`` is not a grid.
    """

    grid = normalize_grid(raw_rows)
    mapping = infer_schema(grid.headers, grid.rows)
    _logger.info(
        "api:analyzed rows=%d width=%d has_header=%s mapping=%s",
        len(grid.rows),
        grid.width,
        grid.has_header,
        mapping.assigned_columns(),
    )
    return SheetAnalysis(grid=grid, mapping=mapping)


def import_transactions(
    raw_rows: Grid,
    *,
    mapping: ColumnMapping | None = None,
    id_factory: IdFactory | None = None,
) -> list[Transaction]:
    """Normalize every data row of ``raw_rows`` into transactions.

    ``mapping`` overrides inference, typically with one read back from the
    mapping cache. Header detection still runs so preamble lines and the
    header row are skipped.
    """

    analysis = analyze_rows(raw_rows)
    grid = analysis.grid
    return parse_transactions(
        grid.as_rows(),
        mapping or analysis.mapping,
        has_header=grid.has_header,
        id_factory=id_factory,
    )


def prepare_append_row(
    raw_rows: Grid,
    transaction: Transaction,
    *,
    today: date | None = None,
) -> list[AppendCell]:
    """Build the row that appends ``transaction`` to the sheet in ``raw_rows``.

    Raises
    ------
    ValueError
        When the sheet has no recognizable date, amount or description
        column, since the appended row would carry no data.
    """

    schema = build_write_schema(raw_rows)
    mapping = schema.mapping
    if (
        mapping.date_column is None
        and mapping.amount_column is None
        and mapping.description_column is None
    ):
        raise ValueError(
            "Could not detect date, amount, or description columns in the sheet"
        )
    return build_append_row(
        mapping,
        transaction,
        schema.column_count,
        schema.formula_columns,
        today=today,
    )


__all__ = [
    "SheetAnalysis",
    "analyze_rows",
    "import_transactions",
    "prepare_append_row",
]
