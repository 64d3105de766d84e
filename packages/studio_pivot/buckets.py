"""Calendar-month bucket generation.

A :class:`Bucket` is one month column of a pivot. Generators are pure
functions of their anchor ("now") and window arguments: the same inputs
always produce the same list. Display order is the caller's choice; the
``descending`` flags and :func:`order_buckets` only reorder, they never change
which months are included.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from .dates import month_key, parse_date, shift_month, split_month_key
from .settings import anchor_date

_MONTH_ABBR: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


# Each month appears once as current and once as prior year.
MAX_YOY_MONTHS = 12


@dataclass(frozen=True, slots=True)
class Bucket:
    key: str
    display: str
    year: int
    month: int

    def contains(self, d: date) -> bool:
        return d.year == self.year and d.month == self.month


def make_bucket(year: int, month: int) -> Bucket:
    """Build the bucket for ``(year, month)``; ``display`` reads like ``"Mar 2024"``."""

    return Bucket(
        key=month_key(date(year, month, 1)),
        display=f"{_MONTH_ABBR[month - 1]} {year}",
        year=year,
        month=month,
    )


def bucket_for_key(key: str) -> Bucket:
    year, month = split_month_key(key)
    return make_bucket(year, month)


def order_buckets(buckets: Iterable[Bucket], *, descending: bool = False) -> list[Bucket]:
    return sorted(buckets, key=lambda b: (b.year, b.month), reverse=descending)


def _require_positive(count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise ValueError(f"window length must be a positive integer, got {count!r}")
    return count


def rolling_months(
    count: int, *, anchor: date | None = None, descending: bool = False
) -> list[Bucket]:
    """``count`` consecutive months ending at the anchor's month.

    Ascending (oldest first) unless ``descending`` is set.
    """

    _require_positive(count)
    now = anchor_date(anchor)
    buckets = [
        make_bucket(*shift_month(now.year, now.month, offset))
        for offset in range(-(count - 1), 1)
    ]
    return order_buckets(buckets, descending=descending)


def year_over_year_months(count: int = 12, *, anchor: date | None = None) -> list[Bucket]:
    """Current-year / prior-year month pairs, newest pair first.

    For each of the ``count`` months ending at the anchor month, the list holds
    that month followed by the same month one year earlier. ``count`` is at
    most 12; a longer window would repeat prior-year months as current ones.
    """

    _require_positive(count)
    if count > MAX_YOY_MONTHS:
        raise ValueError(
            f"year-over-year window is at most {MAX_YOY_MONTHS} months, got {count}"
        )
    now = anchor_date(anchor)
    buckets: list[Bucket] = []
    for offset in range(count):
        year, month = shift_month(now.year, now.month, -offset)
        buckets.append(make_bucket(year, month))
        buckets.append(make_bucket(year - 1, month))
    return buckets


def month_range(
    start: date | str,
    end: date | str | None = None,
    *,
    anchor: date | None = None,
    descending: bool = False,
) -> list[Bucket]:
    """Every month from ``start`` through ``end`` inclusive.

    ``end`` defaults to the anchor month. Strings are parsed with
    :func:`studio_pivot.dates.parse_date`; ``"YYYY-MM"`` keys are accepted too.
    """

    first = _coerce_month(start)
    last = _coerce_month(end) if end is not None else anchor_date(anchor)
    if (first.year, first.month) > (last.year, last.month):
        raise ValueError(f"month range start {month_key(first)} is after end {month_key(last)}")
    buckets: list[Bucket] = []
    year, month = first.year, first.month
    while (year, month) <= (last.year, last.month):
        buckets.append(make_bucket(year, month))
        year, month = shift_month(year, month, 1)
    return order_buckets(buckets, descending=descending)


def year_to_date_months(*, anchor: date | None = None, descending: bool = False) -> list[Bucket]:
    """January of the anchor year through the anchor month."""

    now = anchor_date(anchor)
    return month_range(date(now.year, 1, 1), now, descending=descending)


def _coerce_month(value: date | str) -> date:
    if isinstance(value, date):
        return value
    text = value.strip()
    if len(text) == 7 and text[4] == "-":
        year, month = split_month_key(text)
        return date(year, month, 1)
    parsed = parse_date(text)
    if parsed is None:
        raise ValueError(f"unparsable month bound: {value!r}")
    return parsed


__all__ = [
    "Bucket",
    "MAX_YOY_MONTHS",
    "bucket_for_key",
    "make_bucket",
    "month_range",
    "order_buckets",
    "rolling_months",
    "year_over_year_months",
    "year_to_date_months",
]
