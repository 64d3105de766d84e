"""Logging for the pivot engine and its CLI.

Stdout belongs to the TSV export, so diagnostics (rows with unreadable
amounts, missing date columns, pivot sizes at DEBUG) go to stderr through one
handler on the ``"studio_pivot"`` logger. The CLI installs that handler via
:func:`configure_logging`; engine modules only ever call
``get_logger("studio_pivot.<module>")``. Imported as a library without the
CLI, the package stays silent.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "studio_pivot"
_LEVEL_ENV = "STUDIO_PIVOT_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    """Resolve ``level``, then ``STUDIO_PIVOT_LOG_LEVEL``, then WARNING."""

    if level is None:
        level = os.getenv(_LEVEL_ENV)
    if isinstance(level, int):
        return level
    text = (level or "").strip().upper()
    if text.isdigit():
        return int(text)
    named = logging.getLevelNamesMapping().get(text)
    return named if named is not None else logging.WARNING


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Send ``studio_pivot`` records to ``stream`` (stderr by default).

    Only the first call has an effect. ``level`` accepts an int or a level
    name; unset, it comes from ``STUDIO_PIVOT_LOG_LEVEL`` and otherwise
    WARNING, so a normal export prints nothing besides the table.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(pkg_logger.handlers):
        if isinstance(h, logging.NullHandler):
            pkg_logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    pkg_logger.setLevel(resolved)
    pkg_logger.addHandler(handler)
    # The host's root handlers must not repeat export diagnostics.
    pkg_logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Logger for an engine module; silent until :func:`configure_logging` runs."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
