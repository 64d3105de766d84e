"""Date normalization for heterogeneous record date fields.

Upstream exports carry dates as ``dd/mm/yyyy`` strings, ISO-8601 strings (with
or without a time component) and the occasional long-form English date. All of
them are reduced to a :class:`datetime.date`; anything else is reported as
unparsable by returning ``None``. No function in this module raises on bad
input.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from functools import lru_cache

_DMY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

# Tried in order after the day-first and ISO forms.
_FALLBACK_FORMATS: tuple[str, ...] = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%B %d, %Y",
    "%a %b %d %Y",
)


@lru_cache(maxsize=8192)
def _parse_text(text: str) -> date | None:
    m = _DMY_RE.match(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_date(value: str | date | None) -> date | None:
    """Return the calendar date for ``value`` or ``None`` when unparsable.

    ``dd/mm/yyyy`` is always read day-first. Other strings go through ISO-8601
    parsing and then a short list of long-form formats. ``date``/``datetime``
    instances pass through (a ``datetime`` is truncated to its date).
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    return _parse_text(text)


def month_key(d: date) -> str:
    """Canonical ``YYYY-MM`` bucket key for a date."""

    return f"{d.year:04d}-{d.month:02d}"


def record_month_key(value: str | date | None) -> str | None:
    d = parse_date(value)
    return month_key(d) if d is not None else None


def split_month_key(key: str) -> tuple[int, int]:
    """Split ``"YYYY-MM"`` into ``(year, month)``.

    Raises ``ValueError`` for malformed keys; keys are produced by this
    package, so a bad one is a caller bug.
    """

    year_str, _, month_str = key.partition("-")
    year, month = int(year_str), int(month_str)
    if not 1 <= month <= 12:
        raise ValueError(f"invalid month key: {key!r}")
    return year, month


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``delta`` months from ``(year, month)``; negative goes back."""

    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


__all__ = [
    "month_key",
    "parse_date",
    "record_month_key",
    "shift_month",
    "split_month_key",
]
