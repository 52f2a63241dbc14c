"""Public interface for the ``budget_sheets`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import (
    SheetAnalysis,
    analyze_rows,
    import_transactions,
    prepare_append_row,
)
from .grid import GridError, SheetGrid, normalize_grid
from .models import (
    ColumnMapping,
    Transaction,
    TransactionType,
    WriteSchema,
)
from .normalizers import parse_transactions
from .schema import infer_schema
from .writeback import build_append_row, build_write_schema

__all__ = [
    # Core operations
    "infer_schema",
    "parse_transactions",
    "build_append_row",
    # Orchestration
    "analyze_rows",
    "import_transactions",
    "prepare_append_row",
    "build_write_schema",
    "normalize_grid",
    # Models / types
    "ColumnMapping",
    "Transaction",
    "TransactionType",
    "WriteSchema",
    "SheetAnalysis",
    "SheetGrid",
    "GridError",
]
