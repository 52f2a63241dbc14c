"""Column-role inference for arbitrary spreadsheet grids.

:func:`infer_schema` looks at header text and a small sample of data rows and
decides which columns hold the transaction date, description, amount and
category. It runs in two passes:

1. Header classification. Each normalized header is tested against an
   ordered list of :class:`HeaderClassifier` records (date, amount, category,
   description) and matches only when it equals one keyword or phrase, so
   "Account #" never claims the category slot meant for "Category". The
   first classifier that matches and whose slot is still free claims the
   column. Keyword sets are grouped by locale in :data:`LOCALE_KEYWORDS`, so
   adding a language means adding a dictionary entry, not editing the loop.
2. Data-pattern fallback. Columns still unclaimed are sampled (first
   :data:`SAMPLE_SIZE` rows) and tested with :func:`looks_like_date`,
   :func:`looks_like_amount`, then a column of bare income/expense labels is
   looked for and finally :func:`looks_like_text` picks the description.

A column is never assigned to two roles. When the sheet splits money into
separate debit and credit columns the amount slot is left ``None``; merging
the two sides is the caller's problem.

The function is pure and never raises; unclassified roles stay ``None``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from .cells import column_values, grid_width, leading_number
from .logging_setup import get_logger
from .models import ColumnMapping, Grid, Slot

_logger = get_logger("budget_sheets.schema")

# Rows inspected per column by the data-pattern predicates.
SAMPLE_SIZE = 5
# Rows inspected when looking for an income/expense label column.
CATEGORY_SAMPLE_SIZE = 8

DATE_MATCH_RATIO = 0.5
AMOUNT_MATCH_RATIO = 0.5
TEXT_MATCH_RATIO = 0.4

CURRENCY_GLYPHS = "$£€"

# ---------------------------------------------------------------------------
# Header keyword sets
# ---------------------------------------------------------------------------

# Classifier evaluation order per header. Date wins over amount wins over
# category wins over description when a header matches several sets.
HEADER_SLOT_ORDER: tuple[Slot, ...] = ("date", "amount", "category", "description")

LOCALE_KEYWORDS: dict[str, dict[str, tuple[str, ...]]] = {
    "en": {
        "date": (
            "date", "dated", "time", "when", "day", "month", "year", "period",
            "posted", "posting", "transaction date", "posting date", "posted date",
            "post date", "date posted", "booking date", "value date", "txn date",
            "trans date",
        ),
        "amount": (
            "amount", "amt", "total", "sum", "price", "cost", "value", "money",
            "expense", "expenses", "income", "credit", "credits", "debit", "debits",
            "withdrawal", "withdrawals", "deposit", "deposits", "inflow", "outflow",
            "balance", "transaction amount", "net amount",
        ),
        "category": (
            "category", "categories", "subcategory", "sub category", "type", "group",
            "class", "kind", "tag", "tags", "label", "department", "account",
            "bucket", "account name", "expense category", "budget category",
            "transaction type",
        ),
        "description": (
            "description", "desc", "name", "title", "memo", "note", "notes",
            "detail", "details", "item", "transaction", "what", "merchant",
            "vendor", "payee", "narration", "reference", "ref", "particulars",
            "remarks", "ref no", "reference no", "reference number", "payee name",
            "merchant name", "transaction description", "transaction details",
        ),
    },
    "id": {
        "date": ("tanggal", "tgl", "waktu"),
        "amount": ("jumlah", "nominal", "nilai", "saldo", "debet", "kredit"),
        "category": ("kategori", "jenis"),
        "description": ("keterangan", "uraian", "deskripsi", "catatan"),
    },
    "es": {
        "date": ("fecha",),
        "amount": ("importe", "monto", "cantidad"),
        "category": ("categoria", "categoría", "tipo"),
        "description": ("concepto", "descripcion", "descripción"),
    },
    "de": {
        "date": ("datum", "buchungstag"),
        "amount": ("betrag", "soll", "haben"),
        "category": ("kategorie",),
        "description": ("beschreibung", "verwendungszweck", "buchungstext"),
    },
}

# Sides of a debit/credit split. A sheet carrying both sides has no single
# signed amount column.
_DEBIT_SIDE_KEYWORDS = ("debit", "debits", "withdrawal", "withdrawals", "outflow", "debet", "soll")
_CREDIT_SIDE_KEYWORDS = ("credit", "credits", "deposit", "deposits", "inflow", "kredit", "haben")
_BALANCE_KEYWORDS = ("balance", "saldo")


def _keyword_pattern(
    keywords: Iterable[str],
    *,
    whole: bool = False,
    extra: str | None = None,
) -> re.Pattern[str]:
    """Compile ``keywords`` into one alternation.

    With ``whole`` the normalized header must equal one keyword (``"account #"``
    is not ``"account"``); otherwise a keyword anywhere on word boundaries
    matches. ``extra`` is an unanchored alternative searched anywhere.
    """

    # Longest first so multi-word keywords win over their prefixes.
    ordered = sorted(set(keywords), key=len, reverse=True)
    alternation = "(?:" + "|".join(re.escape(k) for k in ordered) + ")"
    body = rf"^{alternation}$" if whole else rf"\b{alternation}\b"
    if extra:
        body = f"{body}|{extra}"
    return re.compile(body)


_DEBIT_SIDE_RE = _keyword_pattern(_DEBIT_SIDE_KEYWORDS)
_CREDIT_SIDE_RE = _keyword_pattern(_CREDIT_SIDE_KEYWORDS)
_BALANCE_RE = _keyword_pattern(_BALANCE_KEYWORDS)


@dataclass(frozen=True, slots=True)
class HeaderClassifier:
    """A named header predicate: claims ``slot`` when ``pattern`` matches."""

    slot: Slot
    pattern: re.Pattern[str]

    def matches(self, normalized_header: str) -> bool:
        return bool(normalized_header) and self.pattern.search(normalized_header) is not None


def build_header_classifiers(
    locales: Sequence[str] = ("en", "id", "es", "de"),
    *,
    keywords: Mapping[str, Mapping[str, Sequence[str]]] | None = None,
) -> tuple[HeaderClassifier, ...]:
    """Build the ordered classifier list for the given locales.

    ``keywords`` defaults to :data:`LOCALE_KEYWORDS`; pass a custom mapping of
    the same shape to plug in additional languages or house conventions.
    """

    table = LOCALE_KEYWORDS if keywords is None else keywords
    unknown = [loc for loc in locales if loc not in table]
    if unknown:
        raise ValueError(f"unknown locale(s): {unknown}")

    classifiers: list[HeaderClassifier] = []
    for slot in HEADER_SLOT_ORDER:
        words: list[str] = []
        for loc in locales:
            words.extend(table[loc].get(slot, ()))
        if not words:
            continue
        # Currency glyphs anywhere in a header are amount evidence.
        extra = f"[{re.escape(CURRENCY_GLYPHS)}]" if slot == "amount" else None
        pattern = _keyword_pattern(words, whole=True, extra=extra)
        classifiers.append(HeaderClassifier(slot, pattern))
    return tuple(classifiers)


DEFAULT_HEADER_CLASSIFIERS: tuple[HeaderClassifier, ...] = build_header_classifiers()

# ---------------------------------------------------------------------------
# Header normalization
# ---------------------------------------------------------------------------

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS_RE = re.compile(r"[_\-./\\]+")


def normalize_header(header: object) -> str:
    """Lower-case and trim a header, splitting camelCase and snake_case words."""

    text = "" if header is None else str(header)
    text = _CAMEL_BOUNDARY_RE.sub(" ", text)
    text = _SEPARATORS_RE.sub(" ", text)
    return " ".join(text.lower().split())


# ---------------------------------------------------------------------------
# Data-pattern predicates
# ---------------------------------------------------------------------------

_MONTHS = "jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec"

_DATE_VALUE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\d{4}-\d{2}-\d{2}"),  # 2026-01-15
    re.compile(r"^\d{2}/\d{2}/\d{4}"),  # 15/01/2026 or 01/15/2026
    re.compile(r"^\d{2}-\d{2}-\d{4}"),  # 15-01-2026
    re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}"),  # 1/15/26
    re.compile(rf"^(?:{_MONTHS})[a-z]*\.?\s+\d{{1,2}}\b", re.IGNORECASE),  # Jan 15
    re.compile(rf"^\d{{1,2}}\s+(?:{_MONTHS})", re.IGNORECASE),  # 15 Jan
)

_AMOUNT_NOISE_RE = re.compile(rf"[{re.escape(CURRENCY_GLYPHS)},\s()]")

# Digits, punctuation, symbols and whitespace only; no letters.
_NON_TEXT_RE = re.compile(r"[\d\W_]+")

_CATEGORY_LABELS = frozenset({"income", "expense", "expenses"})


def _texts(values: Iterable[object]) -> list[str]:
    return ["" if v is None else str(v).strip() for v in values]


def _has_leading_number(text: str) -> bool:
    return leading_number(text) is not None


def looks_like_date_value(value: object) -> bool:
    text = "" if value is None else str(value).strip()
    return bool(text) and any(p.match(text) for p in _DATE_VALUE_PATTERNS)


def looks_like_date(values: Iterable[object]) -> bool:
    """True when at least half of the non-empty values look like dates."""

    non_empty = [v for v in _texts(values) if v]
    if not non_empty:
        return False
    hits = sum(1 for v in non_empty if looks_like_date_value(v))
    return hits >= len(non_empty) * DATE_MATCH_RATIO


def looks_like_amount(values: Iterable[object]) -> bool:
    """True when at least half of the non-empty values start with a number.

    Currency glyphs, thousands separators, whitespace and accounting
    parentheses are ignored; trailing text such as a currency code is too.
    """

    non_empty = [v for v in _texts(values) if v]
    if not non_empty:
        return False
    hits = sum(1 for v in non_empty if _has_leading_number(_AMOUNT_NOISE_RE.sub("", v)))
    return hits >= len(non_empty) * AMOUNT_MATCH_RATIO


def is_text_value(value: object) -> bool:
    text = "" if value is None else str(value).strip()
    return len(text) > 2 and _NON_TEXT_RE.fullmatch(text) is None


def looks_like_text(values: Iterable[object]) -> bool:
    """True when at least 40% of all sampled values (empties included) are text."""

    texts = _texts(values)
    if not texts:
        return False
    hits = sum(1 for v in texts if is_text_value(v))
    return hits >= len(texts) * TEXT_MATCH_RATIO


def looks_like_category_values(values: Iterable[object]) -> bool:
    """True when the column mostly holds bare ``income``/``expense`` labels."""

    non_empty = [v.lower() for v in _texts(values) if v]
    if not non_empty:
        return False
    hits = sum(1 for v in non_empty if v in _CATEGORY_LABELS)
    return hits >= max(2, math.ceil(len(non_empty) * 0.5))


# ---------------------------------------------------------------------------
# Inference
# ---------------------------------------------------------------------------


def _split_amount_columns(normalized: Sequence[str]) -> frozenset[int]:
    """Return indices the amount classifier must skip for debit/credit sheets.

    Empty unless the headers carry both a debit side and a credit side. When
    they do, the debit, credit and running-balance columns are all excluded.
    """

    debit = {i for i, h in enumerate(normalized) if _DEBIT_SIDE_RE.search(h)}
    credit = {i for i, h in enumerate(normalized) if _CREDIT_SIDE_RE.search(h)}
    if not debit or not credit or debit == credit:
        return frozenset()
    balance = {i for i, h in enumerate(normalized) if _BALANCE_RE.search(h)}
    return frozenset(debit | credit | balance)


def infer_schema(
    headers: Sequence[object],
    sample_rows: Grid | None,
    *,
    classifiers: Sequence[HeaderClassifier] = DEFAULT_HEADER_CLASSIFIERS,
) -> ColumnMapping:
    """Infer a :class:`ColumnMapping` from header text and sample data.

    Parameters
    ----------
    headers:
        Header cells, left to right. A headerless sheet passes all-empty
        strings (one per column).
    sample_rows:
        Data rows (full grid or a representative prefix). Only the first
        :data:`SAMPLE_SIZE` rows feed the pattern predicates.
    classifiers:
        Ordered header classifiers; defaults to every built-in locale.
    """

    headers = list(headers or ())
    rows: list = list(sample_rows or ())
    normalized = [normalize_header(h) for h in headers]
    slots: dict[str, int | None] = {
        "date": None,
        "description": None,
        "amount": None,
        "category": None,
    }
    claimed: set[int] = set()

    def _claim(slot: str, idx: int, reason: str) -> None:
        slots[slot] = idx
        claimed.add(idx)
        _logger.debug("schema:claim slot=%s column=%d via=%s", slot, idx, reason)

    split_columns = _split_amount_columns(normalized)
    if split_columns:
        _logger.debug(
            "schema:debit_credit_split columns=%s; amount slot left unassigned",
            sorted(split_columns),
        )

    # Pass 1: header text
    for idx, header in enumerate(normalized):
        for clf in classifiers:
            if clf.slot not in slots or slots[clf.slot] is not None:
                continue
            if clf.slot == "amount" and idx in split_columns:
                continue
            if clf.matches(header):
                _claim(clf.slot, idx, f"header:{headers[idx]!r}")
                break

    # Pass 2: data patterns
    if rows:
        width = grid_width(headers, rows)
        sample = rows[:SAMPLE_SIZE]

        for idx in range(width):
            if idx in claimed:
                continue
            values = column_values(sample, idx)
            if slots["date"] is None and looks_like_date(values):
                _claim("date", idx, "data:date")
            elif slots["amount"] is None and not split_columns and looks_like_amount(values):
                _claim("amount", idx, "data:amount")

        # Label column before the description scan: "Income"/"Expense" cells
        # also read as text.
        if slots["category"] is None:
            category_sample = rows[:CATEGORY_SAMPLE_SIZE]
            for idx in range(width):
                if idx in claimed:
                    continue
                if looks_like_category_values(column_values(category_sample, idx)):
                    _claim("category", idx, "data:labels")
                    break

        if slots["description"] is None:
            for idx in range(width):
                if idx in claimed:
                    continue
                if looks_like_text(column_values(sample, idx)):
                    _claim("description", idx, "data:text")
                    break

    return ColumnMapping(
        date_column=slots["date"],
        description_column=slots["description"],
        amount_column=slots["amount"],
        category_column=slots["category"],
        headers=tuple("" if h is None else str(h) for h in headers),
    )


__all__ = [
    "DEFAULT_HEADER_CLASSIFIERS",
    "HeaderClassifier",
    "LOCALE_KEYWORDS",
    "SAMPLE_SIZE",
    "build_header_classifiers",
    "infer_schema",
    "is_text_value",
    "looks_like_amount",
    "looks_like_category_values",
    "looks_like_date",
    "looks_like_date_value",
    "looks_like_text",
    "normalize_header",
]
