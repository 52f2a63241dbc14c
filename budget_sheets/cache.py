"""On-disk cache of inferred column mappings.

Inference runs once per (spreadsheet, tab); later reads and appends reuse the
stored mapping until the caller invalidates it (for example after the user
rearranges columns).

Cache layout (relative to the cache root, default: ``./.cache/mappings``):

  ``<cache_root>/<key>.json`` where ``key`` is the sha256 of the spreadsheet id
  and tab name.

Atomicity: writes target ``.tmp`` first and then ``os.replace`` into place.
"""

from __future__ import annotations

import contextlib
import hashlib
import json
import os
from pathlib import Path

from pydantic import ValidationError

from .logging_setup import get_logger
from .models import ColumnMapping, MappingCacheFile

# Bump only when the on-disk mapping JSON shape changes.
SCHEMA_VERSION: int = 1

_logger = get_logger("budget_sheets.cache")


def _get_cache_root() -> Path:
    """Return the cache root directory.

    Default: ``./.cache/mappings`` under the current working directory.
    Override: ``BUDGET_SHEETS_CACHE_DIR`` environment variable.
    """

    root = os.getenv("BUDGET_SHEETS_CACHE_DIR")
    if root and root.strip():
        return Path(root).expanduser().resolve()
    return (Path.cwd() / ".cache" / "mappings").resolve()


def cache_key(spreadsheet_id: str, tab: str) -> str:
    """Stable filename-safe key for one (spreadsheet, tab) pair."""

    payload = json.dumps([spreadsheet_id, tab], separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _mapping_path(spreadsheet_id: str, tab: str) -> Path:
    return _get_cache_root() / f"{cache_key(spreadsheet_id, tab)}.json"


def read_mapping(spreadsheet_id: str, tab: str) -> ColumnMapping | None:
    """Return the cached mapping when present and valid; otherwise ``None``."""

    path = _mapping_path(spreadsheet_id, tab)
    if not path.exists():
        return None

    try:
        text = path.read_text(encoding="utf-8")
        parsed = MappingCacheFile.model_validate_json(text)
        mapping = parsed.to_mapping()
    except (OSError, UnicodeDecodeError, ValidationError, ValueError):
        _logger.debug(
            "mapping_cache:read_failed; treating as miss spreadsheet_id=%s tab=%s path=%s",
            spreadsheet_id,
            tab,
            os.fspath(path),
            exc_info=True,
        )
        return None

    # Identity checks; a hash collision or stale schema is a miss.
    if (
        parsed.schema_version != SCHEMA_VERSION
        or parsed.spreadsheet_id != spreadsheet_id
        or parsed.tab != tab
    ):
        _logger.debug("mapping_cache:stale spreadsheet_id=%s tab=%s", spreadsheet_id, tab)
        return None
    return mapping


def write_mapping(spreadsheet_id: str, tab: str, mapping: ColumnMapping) -> Path:
    """Persist ``mapping`` for the pair and return the file path."""

    path = _mapping_path(spreadsheet_id, tab)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")

    record = MappingCacheFile(
        schema_version=SCHEMA_VERSION,
        spreadsheet_id=spreadsheet_id,
        tab=tab,
        date_column=mapping.date_column,
        description_column=mapping.description_column,
        amount_column=mapping.amount_column,
        category_column=mapping.category_column,
        headers=list(mapping.headers),
    )

    try:
        tmp.write_text(
            json.dumps(record.model_dump(mode="json"), ensure_ascii=False, separators=(",", ":")),
            encoding="utf-8",
        )
        os.replace(tmp, path)
    except Exception:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
        raise
    _logger.debug("mapping_cache:written spreadsheet_id=%s tab=%s", spreadsheet_id, tab)
    return path


def invalidate_mapping(spreadsheet_id: str, tab: str) -> bool:
    """Drop the cached mapping; return True when a file was removed."""

    path = _mapping_path(spreadsheet_id, tab)
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    _logger.debug("mapping_cache:invalidated spreadsheet_id=%s tab=%s", spreadsheet_id, tab)
    return True


__all__ = [
    "SCHEMA_VERSION",
    "cache_key",
    "invalidate_mapping",
    "read_mapping",
    "write_mapping",
]
