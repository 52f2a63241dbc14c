"""Ingest utilities shared by CLI commands and library callers."""

from __future__ import annotations

from os import PathLike
from pathlib import Path
from typing import Any

SUPPORTED_SUFFIXES = (".csv", ".xlsx")


def load_rows(path: str | PathLike[str], sheet: str | None = None) -> list[list[Any]]:
    """Read the raw grid from a ``.csv`` or ``.xlsx`` file.

    ``sheet`` selects a worksheet in XLSX files and is ignored for CSV.

    Raises
    ------
    ValueError
        For any other file extension.
    """

    from .adapters.csv_file import read_csv_rows
    from .adapters.xlsx_file import read_xlsx_rows

    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".csv":
        return read_csv_rows(p)
    if suffix == ".xlsx":
        return read_xlsx_rows(p, sheet=sheet)
    raise ValueError(
        f"unsupported file type {suffix or '(none)'!r}; expected one of {', '.join(SUPPORTED_SUFFIXES)}"
    )


__all__ = ["SUPPORTED_SUFFIXES", "load_rows"]
