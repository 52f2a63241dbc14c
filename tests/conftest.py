"""Pytest configuration for test isolation.

The mapping cache persists JSON files under a default project-relative
directory (``./.cache/mappings``). When tests run in the same working tree,
those files would leak between tests (a CLI run could pick up a mapping
cached by an earlier test for the same path).

To keep tests hermetic, we redirect the cache root to a unique temporary
directory for each test via an autouse fixture.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from budget_sheets import logging_setup


@pytest.fixture(autouse=True)
def _isolate_cache_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Force a per-test cache root so tests don't share on-disk state.

    The application reads ``BUDGET_SHEETS_CACHE_DIR`` (when set) to override
    the default location. We point it at the test's own temporary directory.
    """

    cache_root = tmp_path / "cache"
    cache_root.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("BUDGET_SHEETS_CACHE_DIR", os.fspath(cache_root))


@pytest.fixture(autouse=True)
def _reset_package_logging() -> Iterator[None]:
    """Drop any handler a test or CLI invocation installed."""

    yield
    logging_setup.reset_logging()
