from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

from budget_sheets.api import import_transactions
from budget_sheets.ingest.adapters.csv_file import append_csv_row, read_csv_rows
from budget_sheets.ingest.adapters.xlsx_file import read_xlsx_rows
from budget_sheets.ingest.utils import load_rows
from budget_sheets.writeback import build_write_schema


def _write_xlsx(path: Path) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = "Summary"
    ws.append(["Nothing to see here"])
    ledger = wb.create_sheet("Ledger")
    ledger.append(["Date", "Description", "Amount", "Balance"])
    ledger.append([datetime(2026, 1, 1), "Opening deposit", 100, "=C2"])
    ledger.append([datetime(2026, 1, 2), "Coffee", -4.5, "=D2+C3"])
    wb.save(path)
    return path


def test_read_csv_rows_strips_bom(tmp_path: Path):
    p = tmp_path / "sheet.csv"
    p.write_text("\ufeffDate,Amount\r\n2026-01-01,-5\r\n", encoding="utf-8")
    assert read_csv_rows(p) == [["Date", "Amount"], ["2026-01-01", "-5"]]


def test_append_csv_row_adds_missing_line_break(tmp_path: Path):
    p = tmp_path / "sheet.csv"
    p.write_text("Date,Amount\n2026-01-01,-5", encoding="utf-8")
    append_csv_row(p, ["2026-01-02", -7.5])
    assert read_csv_rows(p)[-2:] == [["2026-01-01", "-5"], ["2026-01-02", "-7.5"]]


def test_append_csv_row_creates_file(tmp_path: Path):
    p = tmp_path / "new.csv"
    append_csv_row(p, ["a", "b,c"])
    assert read_csv_rows(p) == [["a", "b,c"]]


def test_read_xlsx_rows_keeps_formulas(tmp_path: Path):
    p = _write_xlsx(tmp_path / "book.xlsx")
    rows = read_xlsx_rows(p, sheet="Ledger")
    assert rows[0] == ["Date", "Description", "Amount", "Balance"]
    assert rows[1][1:] == ["Opening deposit", 100, "=C2"]
    assert rows[1][0] == datetime(2026, 1, 1)

    schema = build_write_schema(rows)
    assert schema.formula_columns == frozenset({3})


def test_read_xlsx_rows_defaults_to_active_sheet(tmp_path: Path):
    p = _write_xlsx(tmp_path / "book.xlsx")
    assert read_xlsx_rows(p) == [["Nothing to see here"]]


def test_read_xlsx_rows_unknown_sheet(tmp_path: Path):
    p = _write_xlsx(tmp_path / "book.xlsx")
    with pytest.raises(ValueError, match="Ledger"):
        read_xlsx_rows(p, sheet="Missing")


def test_xlsx_cells_normalize_into_transactions(tmp_path: Path):
    p = _write_xlsx(tmp_path / "book.xlsx")
    txs = import_transactions(load_rows(p, sheet="Ledger"))
    assert [(t.date, t.signed_amount) for t in txs] == [
        ("2026-01-01", 100.0),
        ("2026-01-02", -4.5),
    ]


def test_load_rows_dispatch(tmp_path: Path):
    p = tmp_path / "Sheet.CSV"
    p.write_text("Date,Amount\n", encoding="utf-8")
    assert load_rows(p) == [["Date", "Amount"]]

    with pytest.raises(ValueError, match="unsupported"):
        load_rows(tmp_path / "sheet.ods")
    with pytest.raises(FileNotFoundError):
        load_rows(tmp_path / "missing.csv")
