# ruff: noqa: E501
import pytest

from budget_sheets.models import ColumnMapping
from budget_sheets.schema import (
    build_header_classifiers,
    infer_schema,
    looks_like_amount,
    looks_like_category_values,
    looks_like_date,
    looks_like_text,
    normalize_header,
)
from tests.helpers import sheets


def _slots(m: ColumnMapping) -> tuple[int | None, int | None, int | None, int | None]:
    return (m.date_column, m.description_column, m.amount_column, m.category_column)


# ---- Known layouts -----------------------------------------------------------


@pytest.mark.parametrize(
    ("sheet", "expected"),
    [
        (sheets.STANDARD, (0, 1, 2, 3)),
        (sheets.BANK_STATEMENT, (0, 2, None, None)),
        (sheets.MINIMAL, (0, None, 1, None)),
        (sheets.INDONESIAN, (0, 1, 2, 3)),
        (sheets.DAY_FIRST, (0, 1, 2, 3)),
        (sheets.ACCOUNTING, (0, 1, 2, 3)),
        (sheets.NO_HEADER, (0, 1, 2, None)),
        (sheets.CURRENCY, (0, 1, 2, 3)),
    ],
)
def test_known_layouts(sheet, expected):
    headers, rows = sheet
    mapping = infer_schema(headers, rows)
    assert _slots(mapping) == expected
    assert mapping.headers == tuple(headers)


def test_header_synonyms_across_locales():
    m = infer_schema(["Fecha", "Concepto", "Importe", "Categoría"], [])
    assert _slots(m) == (0, 1, 2, 3)

    m = infer_schema(["Buchungstag", "Verwendungszweck", "Betrag", "Kategorie"], [])
    assert _slots(m) == (0, 1, 2, 3)


def test_header_normalization_handles_snake_and_camel_case():
    assert normalize_header("  txn_Date ") == "txn date"
    assert normalize_header("postedDate") == "posted date"
    assert normalize_header(None) == ""

    m = infer_schema(["transactionDate", "payee_name", "AMOUNT", "budget-category"], [])
    assert _slots(m) == (0, 1, 2, 3)


# AmEx enhanced-details export header.
AMEX_HEADERS = [
    "Date", "Description", "Card Member", "Account #", "Amount", "Extended Details",
    "Appears On Your Statement As", "Address", "City/State", "Zip Code", "Country",
    "Reference", "Category",
]


@pytest.mark.parametrize(
    ("headers", "expected"),
    [
        (AMEX_HEADERS, (0, 1, 4, 12)),
        (["Transaction ID", "Date", "Description", "Amount"], (1, 2, 3, None)),
        (["Date", "Description", "Expense Category", "Amount"], (0, 1, 3, 2)),
        (["Date", "Account Number", "Memo", "Amount", "Category"], (0, 2, 3, 4)),
    ],
)
def test_headers_must_equal_a_keyword_to_claim_a_slot(headers, expected):
    assert _slots(infer_schema(headers, [])) == expected


def test_multi_word_phrases_claim_their_slot():
    m = infer_schema(["Posting Date", "Payee Name", "Transaction Amount", "Account Name"], [])
    assert _slots(m) == (0, 1, 2, 3)

    m = infer_schema(["Value Date", "Ref No.", "Amount"], [])
    assert _slots(m) == (0, 1, 2, None)


def test_currency_glyph_header_is_amount():
    m = infer_schema(["When", "What", "€", "Bucket"], [])
    assert _slots(m) == (0, 1, 2, 3)

    m = infer_schema(["Date", "Item", "Spent ($)"], [])
    assert m.amount_column == 2


def test_first_matching_header_wins_slot():
    # Two date-like headers: the left-most wins, the second stays unassigned.
    m = infer_schema(["Date", "Posted", "Details", "Amount"], [])
    assert _slots(m) == (0, 2, 3, None)


def test_header_falls_through_to_next_classifier_when_slot_taken():
    # "total" is both an amount and a category keyword here; the second
    # "Total" column falls through to category once amount is taken.
    table = {"xx": {"amount": ("total",), "category": ("total", "group")}}
    clfs = build_header_classifiers(("xx",), keywords=table)
    m = infer_schema(["Total", "Total"], [], classifiers=clfs)
    assert (m.amount_column, m.category_column) == (0, 1)


def test_empty_inputs_yield_empty_mapping():
    m = infer_schema([], [])
    assert m.is_empty
    assert m.headers == ()

    m = infer_schema(["", "", ""], None)
    assert m.is_empty


def test_data_fallback_uses_only_first_five_rows():
    rows = [["2026-01-01", "x"]] * 5 + [["not a date", "y"]] * 20
    m = infer_schema(["", ""], rows)
    assert m.date_column == 0


def test_data_fallback_never_reuses_a_claimed_column():
    # Header claims column 0 as amount; its values also look like dates but
    # the column cannot take a second role.
    rows = [["2026-01-01", "Coffee"], ["2026-01-02", "Tea"]]
    m = infer_schema(["Amount", ""], rows)
    assert m.amount_column == 0
    assert m.date_column is None
    assert m.description_column == 1


def test_ragged_rows_and_none_cells_do_not_raise():
    rows = [["2026-01-01"], None, ["2026-01-03", None, "-5.00", "Food", "extra"]]
    m = infer_schema(["", ""], rows)
    assert m.date_column == 0
    assert m.amount_column == 2


def test_category_labels_column_is_found_from_data():
    headers = ["", "", "", ""]
    rows = [
        ["2026-01-01", "Salary deposit", "5500", "Income"],
        ["2026-01-02", "Groceries run", "85.5", "Expense"],
        ["2026-01-03", "Power bill", "120", "expense"],
    ]
    m = infer_schema(headers, rows)
    assert _slots(m) == (0, 1, 2, 3)


def test_category_labels_left_of_memo_are_not_taken_as_description():
    headers = ["", "", "", ""]
    rows = [
        ["2026-01-01", "Expense", "-85.50", "Groceries at Woolworths"],
        ["2026-01-02", "Income", "5500.00", "Salary deposit"],
        ["2026-01-03", "Expense", "-15.99", "Netflix subscription"],
    ]
    m = infer_schema(headers, rows)
    assert _slots(m) == (0, 3, 2, 1)


def test_custom_classifiers_restrict_locales():
    en_only = build_header_classifiers(("en",))
    m = infer_schema(["Tanggal", "Jumlah"], [], classifiers=en_only)
    assert m.is_empty

    with pytest.raises(ValueError):
        build_header_classifiers(("xx",))


def test_inference_is_deterministic():
    headers, rows = sheets.BANK_STATEMENT
    assert infer_schema(headers, rows) == infer_schema(headers, rows)


# ---- Predicates ----------------------------------------------------------------


def test_looks_like_date_patterns():
    assert looks_like_date(["2026-01-15", "15/01/2026", "01-15-2026", "1/5/26"])
    assert looks_like_date(["Jan 15", "15 Jan 2026", "", ""])
    assert looks_like_date(["2026-01-15T10:00:00", "garbage"])  # exactly half
    assert not looks_like_date(["garbage", "more garbage", "2026-01-01"])
    assert not looks_like_date(["", None, "  "])
    assert not looks_like_date([])


def test_looks_like_amount_strips_noise():
    assert looks_like_amount(["$1,234.56", "(85.50)", " -12 ", "£3", "€4.00"])
    assert not looks_like_amount(["abc", "def", "12"])
    assert not looks_like_amount(["", None])
    assert not looks_like_amount(["inf", "nan"])


def test_looks_like_amount_reads_leading_number():
    assert looks_like_amount(["85.50 USD", "12.00-", "IDR"])
    assert not looks_like_amount(["USD 85.50", "-", "."])


def test_looks_like_text_counts_empties_in_denominator():
    assert looks_like_text(["Coffee", "", "", "", "Tea"])  # 2/5 = 40%
    assert not looks_like_text(["Coffee", "", "", "", ""])
    assert not looks_like_text(["12.50", "$4", "--", "ab"])


def test_looks_like_category_values_needs_two_labels():
    assert looks_like_category_values(["Income", "expense", "Food"])
    assert not looks_like_category_values(["Income"])
    assert not looks_like_category_values(["Income", "Food", "Rent", "Fuel", "Bills"])
