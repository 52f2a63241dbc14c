"""Centralized logging configuration for the ``budget_sheets`` package.

Public helpers:

- ``configure_logging(...)``: attach one ``StreamHandler`` to the package root
  logger (``"budget_sheets"``). Entrypoints (the CLI) call it at startup; a
  second call is a no-op unless ``force`` asks to replace the handler, which
  is how ``budget-sheets --log-level debug`` wins over an earlier default.
- ``reset_logging()``: detach the installed handler again (tests, embedding
  applications that reconfigure).
- ``get_logger(name)``: acquire a logger by name, ensuring that the package
  root logger has at least a ``NullHandler`` attached when not configured.

Library modules never attach their own handlers. They call
``get_logger("budget_sheets.<module>")`` and log ``"area:event key=value"``
messages, leaving output to the host application.

Environment:

- ``BUDGET_SHEETS_LOG_LEVEL``: level name or number used when no explicit
  level is passed.
- ``BUDGET_SHEETS_LOG_FORMAT``: ``logging.Formatter`` format string used when
  no explicit ``fmt`` is passed.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "budget_sheets"
_LEVEL_ENV_VAR = "BUDGET_SHEETS_LOG_LEVEL"
_FORMAT_ENV_VAR = "BUDGET_SHEETS_LOG_FORMAT"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# The handler installed by configure_logging, or None while unconfigured.
_handler: logging.Handler | None = None


def _level_from_name(name: str) -> int | None:
    # Accept numeric strings or standard level names (INFO/DEBUG/WARN/etc.).
    text = name.strip().upper()
    if text.isdigit():
        return int(text)
    numeric = logging.getLevelNamesMapping().get(text)
    return numeric if isinstance(numeric, int) else None


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        parsed = _level_from_name(level)
        if parsed is not None:
            return parsed
    # Env override when explicit ``level`` is None or unrecognized
    env_val = os.getenv(_LEVEL_ENV_VAR)
    if env_val:
        parsed = _level_from_name(env_val)
        if parsed is not None:
            return parsed
    return logging.INFO


def _resolve_format(fmt: str | None) -> str:
    if fmt:
        return fmt
    env_fmt = os.getenv(_FORMAT_ENV_VAR)
    return env_fmt if env_fmt and env_fmt.strip() else DEFAULT_FORMAT


def is_configured() -> bool:
    return _handler is not None


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
    force: bool = False,
) -> None:
    """Configure the package root logger.

    Parameters
    ----------
    level:
        Logging level as ``int`` or level-name string (e.g., ``"DEBUG"``). If
        ``None``, defaults to ``BUDGET_SHEETS_LOG_LEVEL`` when set, otherwise
        ``logging.INFO``.
    fmt:
        Format string; defaults to ``BUDGET_SHEETS_LOG_FORMAT`` when set,
        otherwise :data:`DEFAULT_FORMAT`.
    stream:
        Output stream for the single ``StreamHandler`` (``sys.stderr``).
    force:
        Replace a handler installed by an earlier call instead of keeping it.
    """

    global _handler
    if _handler is not None:
        if not force:
            return
        reset_logging()

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    # Remove any existing NullHandlers to avoid swallowing logs after config.
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(_resolve_format(fmt)))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    # Avoid double emission via the root logger.
    logger.propagate = False
    _handler = handler


def reset_logging() -> None:
    """Detach the handler installed by :func:`configure_logging`, if any."""

    global _handler
    if _handler is None:
        return
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    logger.removeHandler(_handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    _handler = None


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name, ensuring safe defaults for library use.

    Until :func:`configure_logging` runs, the package root logger carries a
    ``NullHandler`` so importing applications see no "No handler" warnings.
    """

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = [
    "DEFAULT_FORMAT",
    "configure_logging",
    "get_logger",
    "is_configured",
    "reset_logging",
]
