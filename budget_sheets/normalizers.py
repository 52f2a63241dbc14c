"""Grid rows → canonical :class:`~budget_sheets.models.Transaction` records.

Amount handling follows what people actually type into budget sheets:

- currency glyphs (``$ £ €``), whitespace and comma thousands separators are
  stripped (``"$5,500.00"`` → ``5500.0``);
- accounting notation wraps a negative in parentheses (``"(85.50)"`` →
  ``-85.5``) and always yields an expense, whatever sign sits inside;
- anything else is read by its leading number, so trailing text is ignored
  (``"85.50USD"`` → ``85.5``, ``"12.00-"`` → ``12.0``); a cell with no leading
  number reads as ``0`` so a single bad cell never aborts an import.

Dates are passed through as text. Blank trailing rows (no date and a zero
amount) are dropped; zero-amount rows that carry a date are kept and classify
as income.
"""

from __future__ import annotations

import re
import secrets
import time
from collections.abc import Callable
from typing import TypeAlias

from .cells import cell_text, leading_number
from .logging_setup import get_logger
from .models import (
    DEFAULT_CATEGORY,
    DEFAULT_DESCRIPTION,
    ColumnMapping,
    Grid,
    Transaction,
    TransactionType,
)

_logger = get_logger("budget_sheets.normalizers")

IdFactory: TypeAlias = Callable[[int], str]
"""Maps a 0-based data-row position to a transaction id."""

_AMOUNT_STRIP_RE = re.compile(r"[$£€,\s]")

# ---------------------------------------------------------------------------
# Amount helpers
# ---------------------------------------------------------------------------


def clean_amount(raw: object) -> str:
    """Strip currency glyphs, whitespace and thousands separators."""

    text = "" if raw is None else str(raw)
    return _AMOUNT_STRIP_RE.sub("", text)


def _to_float(text: str) -> float:
    value = leading_number(text)
    return 0.0 if value is None else value


def parse_amount(raw: object) -> tuple[float, TransactionType]:
    """Return ``(signed_amount, type)`` for a raw amount cell.

    Accounting parentheses force a negative expense. Otherwise the sign of
    the parsed value decides: ``>= 0`` is income (zero included), ``< 0`` is
    expense.
    """

    cleaned = clean_amount(raw)
    parenthesized = len(cleaned) >= 2 and cleaned.startswith("(") and cleaned.endswith(")")
    if parenthesized:
        signed = -abs(_to_float(cleaned[1:-1]))
    else:
        signed = _to_float(cleaned)
    if signed == 0.0:
        # Normalize -0.0 so it cannot leak a negative sign into write-back.
        signed = 0.0
    if parenthesized:
        return signed, "expense"
    return signed, ("income" if signed >= 0 else "expense")


# ---------------------------------------------------------------------------
# Id strategies
# ---------------------------------------------------------------------------


def unique_row_id(index: int) -> str:
    """Globally unique id: row position + epoch milliseconds + random suffix."""

    return f"tx_{index}_{time.time_ns() // 1_000_000}_{secrets.token_hex(4)[:5]}"


def sequential_ids(prefix: str = "tx") -> IdFactory:
    """Deterministic ids (``<prefix>_<index>``) for tests and reproducible imports."""

    def _factory(index: int) -> str:
        return f"{prefix}_{index}"

    return _factory


# ---------------------------------------------------------------------------
# Row parsing
# ---------------------------------------------------------------------------


def parse_transactions(
    rows: Grid,
    mapping: ColumnMapping,
    has_header: bool = True,
    *,
    id_factory: IdFactory | None = None,
) -> list[Transaction]:
    """Normalize raw grid rows into transactions using ``mapping``.

    Parameters
    ----------
    rows:
        The grid, including the header row when ``has_header`` is true.
    mapping:
        Column roles, usually from :func:`budget_sheets.schema.infer_schema`.
    has_header:
        Skip ``rows[0]`` when true.
    id_factory:
        Called with the 0-based data-row position; defaults to
        :func:`unique_row_id`.
    """

    make_id = id_factory or unique_row_id
    data_rows = list(rows or ())[1:] if has_header else list(rows or ())

    out: list[Transaction] = []
    dropped = 0
    for position, row in enumerate(data_rows):
        date_val = cell_text(row, mapping.date_column).strip()
        desc_val = cell_text(row, mapping.description_column).strip()
        category_val = cell_text(row, mapping.category_column).strip()
        amount_raw = (
            cell_text(row, mapping.amount_column) if mapping.amount_column is not None else "0"
        )

        signed, tx_type = parse_amount(amount_raw)
        amount = abs(signed)

        # Blank filler rows at the end of a sheet are not transactions.
        if not date_val and amount == 0:
            dropped += 1
            continue

        out.append(
            Transaction(
                id=make_id(position),
                date=date_val,
                description=desc_val or DEFAULT_DESCRIPTION,
                category=category_val or DEFAULT_CATEGORY,
                amount=amount,
                type=tx_type,
                signed_amount=signed,
            )
        )

    _logger.debug(
        "normalize:parsed rows=%d transactions=%d dropped_blank=%d",
        len(data_rows),
        len(out),
        dropped,
    )
    return out


__all__ = [
    "IdFactory",
    "clean_amount",
    "parse_amount",
    "parse_transactions",
    "sequential_ids",
    "unique_row_id",
]
