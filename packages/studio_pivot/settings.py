"""Environment-backed settings.

Values are read from the process environment on each call, so a ``.env``
loaded by the CLI (``python-dotenv``) or a test's ``monkeypatch.setenv`` is
picked up without re-importing anything.

- ``STUDIO_PIVOT_ANCHOR_DATE``: ``YYYY-MM-DD`` date used as "now" by the
  bucket generators. Unset means :func:`datetime.date.today`.
- ``STUDIO_PIVOT_FIELD_MAPPING``: path to a JSON :class:`FieldMapping` used by
  the CLI when ``--mapping`` is not given.
- ``STUDIO_PIVOT_LOG_LEVEL``: see :mod:`studio_pivot.logging_setup`.
"""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path

ANCHOR_DATE_ENV = "STUDIO_PIVOT_ANCHOR_DATE"
FIELD_MAPPING_ENV = "STUDIO_PIVOT_FIELD_MAPPING"


def anchor_date(default: date | None = None) -> date:
    """Return the configured anchor date, ``default``, or today.

    A malformed ``STUDIO_PIVOT_ANCHOR_DATE`` raises ``ValueError`` naming the
    variable; silently falling back to today would shift every bucket.
    """

    if default is not None:
        return default
    raw = os.getenv(ANCHOR_DATE_ENV)
    if raw and raw.strip():
        try:
            return date.fromisoformat(raw.strip())
        except ValueError as exc:
            raise ValueError(f"{ANCHOR_DATE_ENV} must be YYYY-MM-DD, got {raw!r}") from exc
    return date.today()


def field_mapping_path() -> Path | None:
    raw = os.getenv(FIELD_MAPPING_ENV)
    if raw and raw.strip():
        return Path(raw.strip()).expanduser()
    return None


__all__ = ["ANCHOR_DATE_ENV", "FIELD_MAPPING_ENV", "anchor_date", "field_mapping_path"]
