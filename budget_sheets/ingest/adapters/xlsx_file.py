"""XLSX adapter built on ``openpyxl``.

The workbook is opened with ``data_only=False`` so formula cells come back as
their ``=...`` source text rather than a cached value; that is what lets the
write path spot computed columns and leave them alone.
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

from ...logging_setup import get_logger

_logger = get_logger("budget_sheets.ingest.xlsx_file")


def read_xlsx_rows(path: str | PathLike[str], sheet: str | None = None) -> list[list[Any]]:
    """Return every row of ``sheet`` (default: the active sheet) as a list of cells.

    Raises
    ------
    ValueError
        When the workbook has no sheet named ``sheet``.
    """

    wb = load_workbook(Path(path), read_only=True, data_only=False)
    try:
        if sheet is None:
            ws = wb.active
        elif sheet in wb.sheetnames:
            ws = wb[sheet]
        else:
            raise ValueError(
                f"sheet {sheet!r} not found; available: {', '.join(wb.sheetnames)}"
            )
        rows = [list(r) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()
    _logger.debug("ingest:xlsx_read path=%s sheet=%s rows=%d", path, sheet, len(rows))
    return rows


__all__ = ["read_xlsx_rows"]
