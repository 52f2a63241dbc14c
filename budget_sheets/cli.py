"""CLI for the ``budget_sheets`` package.

This module exposes callable command handlers (``cmd_infer``, ``cmd_parse``,
``cmd_append``) and a Typer-based console interface. Environment variables
(``BUDGET_SHEETS_LOG_LEVEL``, ``BUDGET_SHEETS_CACHE_DIR``) are loaded from a
local ``.env`` using ``python-dotenv`` before any command runs. Business
logic lives in ``budget_sheets.api`` and related modules; handlers only read
files, call the API and print.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from typer.models import ArgumentInfo, OptionInfo

from .logging_setup import configure_logging

console = Console()


# ---- Small module-level helpers used by CLI commands -------------------------


def _cache_identity(path: Path, sheet: str | None) -> tuple[str, str]:
    """Mapping-cache key for a local file: its resolved path and the sheet name."""

    return str(path.resolve()), sheet or ""


def _load_grid(path: Path, sheet: str | None) -> list | None:
    """Read ``path`` or print an error and return ``None``."""

    from .ingest.utils import load_rows

    try:
        return load_rows(path, sheet=sheet)
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
    except PermissionError:
        print(f"Error: Permission denied: {path}", file=sys.stderr)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
    except Exception as e:
        print(f"Error: Unexpected failure reading '{path}': {e}", file=sys.stderr)
    return None


def _mapping_table(mapping, headers: tuple[str, ...]) -> Table:
    from .writeback import column_letter

    table = Table(title="Column mapping")
    table.add_column("Role", style="cyan")
    table.add_column("Column", justify="right")
    table.add_column("Header")
    for slot in ("date", "description", "amount", "category"):
        idx = mapping.column_for(slot)
        if idx is None:
            table.add_row(slot, "-", "[yellow]not detected[/yellow]")
        else:
            header = headers[idx] if idx < len(headers) else ""
            table.add_row(slot, column_letter(idx), header or "[dim](no header)[/dim]")
    return table


# ---- Command handlers ----------------------------------------------------------


def cmd_infer(path: str, *, sheet: str | None = None, as_json: bool = False) -> int:
    """Infer and cache the column mapping for a sheet file, then print it.

    Inference always runs afresh, so this doubles as the way to refresh a
    stale cached mapping after columns were rearranged.
    """

    from .api import analyze_rows
    from .cache import write_mapping
    from .grid import GridError

    p = Path(path)
    raw = _load_grid(p, sheet)
    if raw is None:
        return 1

    try:
        analysis = analyze_rows(raw)
    except GridError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    mapping = analysis.mapping
    try:
        write_mapping(*_cache_identity(p, sheet), mapping)
    except OSError as e:
        print(f"Error: failed to write mapping cache: {e}", file=sys.stderr)
        return 1

    if as_json:
        payload = {
            **mapping.to_dict(),
            "has_header": analysis.grid.has_header,
            "header_row_index": analysis.grid.header_row_index,
        }
        print(json.dumps(payload, ensure_ascii=False))
        return 0

    console.print(_mapping_table(mapping, mapping.headers))
    if analysis.grid.header_row_index:
        console.print(
            f"[cyan]Header found on row {analysis.grid.header_row_index + 1}[/cyan] "
            "(preamble skipped)"
        )
    elif not analysis.grid.has_header:
        console.print("[yellow]No header row detected; roles inferred from data.[/yellow]")
    return 0


def cmd_parse(
    path: str,
    *,
    sheet: str | None = None,
    as_json: bool = False,
    refresh: bool = False,
) -> int:
    """Print the normalized transactions of a sheet file.

    Uses the cached mapping for the file when present (unless ``refresh``)
    and caches a freshly inferred one otherwise.
    """

    from .api import analyze_rows, import_transactions
    from .cache import invalidate_mapping, read_mapping, write_mapping
    from .grid import GridError

    p = Path(path)
    raw = _load_grid(p, sheet)
    if raw is None:
        return 1

    key = _cache_identity(p, sheet)
    if refresh:
        invalidate_mapping(*key)
    mapping = read_mapping(*key)

    try:
        if mapping is None:
            mapping = analyze_rows(raw).mapping
            write_mapping(*key, mapping)
        transactions = import_transactions(raw, mapping=mapping)
    except GridError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: failed to write mapping cache: {e}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps([t.to_dict() for t in transactions], ensure_ascii=False))
        return 0

    table = Table(title=f"{len(transactions)} transaction(s)")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Category")
    table.add_column("Amount", justify="right")
    table.add_column("Type")
    for t in transactions:
        style = "green" if t.type == "income" else "red"
        table.add_row(
            t.date,
            t.description,
            t.category,
            f"{t.effective_signed_amount:,.2f}",
            f"[{style}]{t.type}[/{style}]",
        )
    console.print(table)
    return 0


def cmd_append(
    path: str,
    *,
    amount: float,
    tx_type: str | None = None,
    tx_date: str | None = None,
    description: str | None = None,
    category: str | None = None,
    dry_run: bool = False,
) -> int:
    """Append one transaction to a CSV sheet, leaving formula columns empty.

    Without ``tx_type`` the sign of ``amount`` decides the type (negative is an
    expense). With it, ``amount`` is read as a magnitude.
    """

    from .api import prepare_append_row
    from .ingest.adapters.csv_file import append_csv_row
    from .models import DEFAULT_CATEGORY, DEFAULT_DESCRIPTION, Transaction, TRANSACTION_TYPES

    p = Path(path)
    if p.suffix.lower() != ".csv" and not dry_run:
        print(
            "Error: appending is only supported for .csv files (use --dry-run to preview)",
            file=sys.stderr,
        )
        return 1
    if tx_type is not None and tx_type not in TRANSACTION_TYPES:
        print(f"Error: --type must be one of {', '.join(TRANSACTION_TYPES)}", file=sys.stderr)
        return 1

    raw = _load_grid(p, None)
    if raw is None:
        return 1

    try:
        if tx_type is None:
            resolved_type = "income" if amount >= 0 else "expense"
            signed: float | None = amount
        else:
            resolved_type, signed = tx_type, None
        transaction = Transaction(
            id="cli",
            date=(tx_date or "").strip(),
            description=description or DEFAULT_DESCRIPTION,
            category=category or DEFAULT_CATEGORY,
            amount=abs(amount),
            type=resolved_type,
            signed_amount=signed,
        )
        row = prepare_append_row(raw, transaction)
    except ValueError as e:  # includes GridError
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if dry_run:
        print(json.dumps(row, ensure_ascii=False))
        return 0

    try:
        append_csv_row(p, row)
    except OSError as e:
        print(f"Error: failed to append to '{p}': {e}", file=sys.stderr)
        return 1
    console.print(f"[green]Appended[/green] {len(row)} cell(s) to {p}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Infer column roles of budget sheets (CSV/XLSX), normalize their rows "
        "into transactions, and append new rows. Loads settings from a local .env."
    ),
)

# Module-level argument/option objects to satisfy ruff B008 (no calls in
# parameter defaults).
FILE_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Path to a .csv or .xlsx sheet",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)

SHEET_OPTION: OptionInfo = typer.Option(
    None, "--sheet", help="Worksheet name for .xlsx files (default: active sheet)."
)

LOG_LEVEL_OPTION: OptionInfo = typer.Option(
    None,
    "--log-level",
    help="Logging level (DEBUG, INFO, WARNING...). Overrides BUDGET_SHEETS_LOG_LEVEL.",
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("infer")
def infer_cmd(
    path: Annotated[Path, FILE_ARGUMENT],
    sheet: str | None = SHEET_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Print the mapping as JSON."),
) -> None:
    """Detect which columns hold date, description, amount and category."""

    _exit(cmd_infer(str(path), sheet=sheet, as_json=as_json))


@app.command("parse")
def parse_cmd(
    path: Annotated[Path, FILE_ARGUMENT],
    sheet: str | None = SHEET_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Print transactions as JSON."),
    refresh: bool = typer.Option(
        False, "--refresh", help="Ignore and replace the cached column mapping."
    ),
) -> None:
    """Normalize every data row into a transaction."""

    _exit(cmd_parse(str(path), sheet=sheet, as_json=as_json, refresh=refresh))


@app.command("append")
def append_cmd(
    path: Annotated[Path, FILE_ARGUMENT],
    amount: float = typer.Option(..., "--amount", help="Amount; negative means expense."),
    tx_type: str | None = typer.Option(
        None, "--type", help="income or expense (default: from the sign of --amount)."
    ),
    tx_date: str | None = typer.Option(None, "--date", help="Transaction date (default: today)."),
    description: str | None = typer.Option(None, "--description", help="Description text."),
    category: str | None = typer.Option(None, "--category", help="Category label."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the row instead of writing it."),
) -> None:
    """Append a transaction row to a CSV sheet."""

    _exit(
        cmd_append(
            str(path),
            amount=amount,
            tx_type=tx_type,
            tx_date=tx_date,
            description=description,
            category=category,
            dry_run=dry_run,
        )
    )


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context, log_level: str | None = LOG_LEVEL_OPTION) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level, force=log_level is not None)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    app()
