"""Data models and type aliases for ``budget_sheets``.

The in-memory records (:class:`ColumnMapping`, :class:`Transaction`,
:class:`WriteSchema`) are frozen ``dataclass`` instances: they are created once
and never mutated; corrections produce new instances via
:func:`dataclasses.replace`. The on-disk mapping cache uses a Pydantic DTO
(:class:`MappingCacheFile`) so reads are validated strictly.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Grid and slot vocabulary
# ---------------------------------------------------------------------------

Cell: TypeAlias = str | int | float | None
"""A raw spreadsheet cell as delivered by the file/sheet access layer."""

Row: TypeAlias = Sequence[Cell]
Grid: TypeAlias = Sequence[Row | None]
"""A rectangular-ish grid of cells; rows may be ragged or missing."""

AppendCell: TypeAlias = str | float
"""A cell in a row produced for write-back: text, or the signed amount."""

TransactionType: TypeAlias = Literal["income", "expense"]

TRANSACTION_TYPES: tuple[str, ...] = ("income", "expense")

Slot: TypeAlias = Literal["date", "description", "amount", "category"]

# Fixed order used by the serializer and by ``ColumnMapping.assigned_columns``.
SLOTS: tuple[str, ...] = ("date", "description", "amount", "category")

DEFAULT_DESCRIPTION = "No description"
DEFAULT_CATEGORY = "Uncategorized"


# ---------------------------------------------------------------------------
# Column mapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """The inferred assignment of column indices to semantic roles.

    Attributes
    ----------
    date_column, description_column, amount_column, category_column:
        0-based column index for each role, or ``None`` when the role could
        not be identified. ``amount_column`` also stays ``None`` when the
        sheet splits money into separate debit and credit columns.
    headers:
        The original header strings, verbatim (all empty for headerless
        sheets). Used for display and row-width calculations.
    """

    date_column: int | None = None
    description_column: int | None = None
    amount_column: int | None = None
    category_column: int | None = None
    headers: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate that indices are non-negative and unique across roles."""

        # Accept any sequence for headers but store an immutable tuple.
        if not isinstance(self.headers, tuple):
            object.__setattr__(self, "headers", tuple(self.headers))

        seen: dict[int, str] = {}
        for slot, idx in self.assigned_columns().items():
            if isinstance(idx, bool) or not isinstance(idx, int) or idx < 0:
                raise ValueError(f"ColumnMapping.{slot}_column must be a non-negative int")
            if idx in seen:
                raise ValueError(
                    f"column {idx} cannot be both {seen[idx]!r} and {slot!r}"
                )
            seen[idx] = slot

    def column_for(self, slot: str) -> int | None:
        if slot not in SLOTS:
            raise ValueError(f"unknown slot: {slot!r}")
        return getattr(self, f"{slot}_column")

    def assigned_columns(self) -> dict[str, int]:
        """Return ``{slot: index}`` for every non-null role, in slot order."""

        out: dict[str, int] = {}
        for slot in SLOTS:
            idx = getattr(self, f"{slot}_column")
            if idx is not None:
                out[slot] = idx
        return out

    @property
    def is_empty(self) -> bool:
        return not self.assigned_columns()

    def to_dict(self) -> dict[str, Any]:
        return {
            "date_column": self.date_column,
            "description_column": self.description_column,
            "amount_column": self.amount_column,
            "category_column": self.category_column,
            "headers": list(self.headers),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ColumnMapping:
        return cls(
            date_column=data.get("date_column"),
            description_column=data.get("description_column"),
            amount_column=data.get("amount_column"),
            category_column=data.get("category_column"),
            headers=tuple(str(h) for h in (data.get("headers") or ())),
        )


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """Canonical in-app representation of one ledger entry.

    ``date`` is the raw date cell passed through as text; this package does
    not convert dates into calendar values. ``amount`` is always the
    magnitude. ``signed_amount`` carries the direction of flow (negative means
    money leaving the tracked account) and may be ``None`` for transactions
    entered by hand, in which case :attr:`effective_signed_amount` derives it
    from ``type``.
    """

    id: str
    date: str
    description: str
    category: str
    amount: float
    type: TransactionType
    signed_amount: float | None = None

    def __post_init__(self) -> None:
        if self.type not in TRANSACTION_TYPES:
            raise ValueError(
                f"Transaction.type must be one of {list(TRANSACTION_TYPES)}, got {self.type!r}"
            )
        if not math.isfinite(self.amount) or self.amount < 0:
            raise ValueError("Transaction.amount must be a finite non-negative number")
        if self.signed_amount is not None and abs(self.signed_amount) != self.amount:
            raise ValueError(
                "Transaction.amount must equal abs(signed_amount) "
                f"(amount={self.amount!r}, signed_amount={self.signed_amount!r})"
            )

    @property
    def effective_signed_amount(self) -> float:
        if self.signed_amount is not None:
            return self.signed_amount
        return self.amount if self.type == "income" else -self.amount

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "description": self.description,
            "category": self.category,
            "amount": self.amount,
            "signed_amount": self.signed_amount,
            "type": self.type,
        }


# ---------------------------------------------------------------------------
# Write-back schema
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class WriteSchema:
    """Everything a write-back transport needs to append one row.

    ``formula_columns`` lists indices holding live spreadsheet formulas; the
    serializer never writes into them.
    """

    mapping: ColumnMapping
    column_count: int
    formula_columns: frozenset[int] = frozenset()


# ---------------------------------------------------------------------------
# DTOs for typed mapping-cache I/O
# ---------------------------------------------------------------------------


class MappingCacheFile(BaseModel):
    """Top-level schema for one cached column mapping JSON file."""

    model_config = ConfigDict(strict=True, extra="forbid")

    schema_version: int
    spreadsheet_id: str
    tab: str
    date_column: int | None = None
    description_column: int | None = None
    amount_column: int | None = None
    category_column: int | None = None
    headers: list[str]

    @field_validator("date_column", "description_column", "amount_column", "category_column")
    @classmethod
    def _non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("column index must be non-negative")
        return v

    def to_mapping(self) -> ColumnMapping:
        return ColumnMapping(
            date_column=self.date_column,
            description_column=self.description_column,
            amount_column=self.amount_column,
            category_column=self.category_column,
            headers=tuple(self.headers),
        )


__all__ = [
    "AppendCell",
    "Cell",
    "ColumnMapping",
    "DEFAULT_CATEGORY",
    "DEFAULT_DESCRIPTION",
    "Grid",
    "MappingCacheFile",
    "Row",
    "SLOTS",
    "Slot",
    "TRANSACTION_TYPES",
    "Transaction",
    "TransactionType",
    "WriteSchema",
]
