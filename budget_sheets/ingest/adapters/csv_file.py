"""CSV adapter: a sheet stored as a plain CSV file.

Rows come back as lists of strings exactly as the ``csv`` module yields them
(ragged when the file is ragged). A UTF-8 byte-order mark, as written by
spreadsheet exports, is dropped so it does not leak into the first header.
"""

from __future__ import annotations

import csv
from collections.abc import Sequence
from os import PathLike
from pathlib import Path

from ...logging_setup import get_logger
from ...models import AppendCell

_logger = get_logger("budget_sheets.ingest.csv_file")


def read_csv_rows(path: str | PathLike[str]) -> list[list[str]]:
    with Path(path).open(encoding="utf-8-sig", newline="") as f:
        rows = [list(row) for row in csv.reader(f)]
    _logger.debug("ingest:csv_read path=%s rows=%d", path, len(rows))
    return rows


def _ends_with_newline(path: Path) -> bool:
    with path.open("rb") as f:
        f.seek(0, 2)
        if f.tell() == 0:
            return True
        f.seek(-1, 2)
        return f.read(1) in (b"\n", b"\r")


def append_csv_row(path: str | PathLike[str], row: Sequence[AppendCell]) -> None:
    """Append one row to the CSV at ``path``, creating the file if needed.

    A missing final line ending is added first so the new row never fuses
    with the last existing one.
    """

    p = Path(path)
    needs_break = p.exists() and not _ends_with_newline(p)
    with p.open("a", encoding="utf-8", newline="") as f:
        if needs_break:
            f.write("\r\n")
        csv.writer(f).writerow(list(row))
    _logger.debug("ingest:csv_append path=%s cells=%d", path, len(row))


__all__ = ["append_csv_row", "read_csv_rows"]
