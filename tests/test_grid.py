from datetime import datetime

import pytest

from budget_sheets.grid import (
    GridError,
    find_header_row_index,
    is_likely_header_row,
    normalize_grid,
)
from tests.helpers import sheets


def test_header_row_detected_for_standard_sheet():
    grid = normalize_grid(sheets.grid(sheets.STANDARD))
    assert grid.has_header
    assert grid.header_row_index == 0
    assert grid.headers == ("Date", "Description", "Amount", "Category")
    assert len(grid.rows) == 8
    assert grid.as_rows()[0] == ["Date", "Description", "Amount", "Category"]


@pytest.mark.parametrize(
    "sheet",
    [sheets.MINIMAL, sheets.BANK_STATEMENT, sheets.INDONESIAN, sheets.ACCOUNTING],
)
def test_header_rows_of_known_layouts(sheet):
    headers, rows = sheet
    assert is_likely_header_row(headers, rows)
    assert not is_likely_header_row(rows[0], rows[1:])


def test_headerless_sheet_gets_blank_headers():
    _, rows = sheets.NO_HEADER
    grid = normalize_grid(rows)
    assert not grid.has_header
    assert grid.header_row_index is None
    assert grid.headers == ("", "", "", "")
    assert len(grid.rows) == 4
    assert grid.as_rows() == [list(r) for r in rows]


def test_preamble_lines_are_skipped():
    assert find_header_row_index(sheets.WITH_PREAMBLE) == 2
    grid = normalize_grid(sheets.WITH_PREAMBLE)
    assert grid.header_row_index == 2
    assert grid.headers == ("Date", "Description", "Amount", "Category")
    assert [r[1] for r in grid.rows] == ["Coffee", "Refund"]


def test_month_name_dates_do_not_make_a_header():
    rows = [
        ["Jan 15", "Coffee", "-4.50", "Food"],
        ["Jan 16", "Lunch", "-12.00", "Food"],
    ]
    assert find_header_row_index(rows) is None


def test_ragged_rows_are_padded_and_stringified():
    raw = [
        ["Date", "Description", "Amount"],
        ["2026-01-01", "Coffee", -4.5, "extra"],
        None,
        [datetime(2026, 1, 2), None, 12.0],
    ]
    grid = normalize_grid(raw)
    assert grid.width == 4
    assert grid.headers == ("Date", "Description", "Amount", "")
    assert grid.rows == (
        ("2026-01-01", "Coffee", "-4.5", "extra"),
        ("", "", "", ""),
        ("2026-01-02", "", "12", ""),
    )


def test_empty_grid():
    grid = normalize_grid([])
    assert grid.headers == ()
    assert grid.rows == ()
    assert not grid.has_header
    assert not is_likely_header_row([], [])
    assert not is_likely_header_row(["", ""], [])


@pytest.mark.parametrize("bad", [None, "Date,Amount", 42, {"a": 1}])
def test_non_grid_input_raises(bad):
    with pytest.raises(GridError):
        normalize_grid(bad)


def test_non_row_entries_raise():
    with pytest.raises(GridError, match="row 1"):
        normalize_grid([["Date"], "2026-01-01"])
