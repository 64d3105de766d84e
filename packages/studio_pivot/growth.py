"""Period-over-period growth with an explicit zero-baseline policy.

:func:`growth_percentage` is the only place the policy lives:

- current and previous both zero -> ``None`` (no meaningful growth; render
  as a dash);
- previous zero, current non-zero -> the ``"+100"`` sentinel, since the true
  percentage is undefined;
- otherwise ``(current - previous) / previous * 100`` with one decimal, as a
  string. A drop to zero is therefore a real ``"-100.0"``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from .aggregation import GroupNode
from .buckets import Bucket
from .dates import shift_month, split_month_key

type GrowthMode = Literal["mom", "yoy"]

ZERO_BASELINE_SENTINEL = "+100"


def growth_percentage(current: float, previous: float) -> str | None:
    if previous == 0 and current == 0:
        return None
    if previous == 0:
        return ZERO_BASELINE_SENTINEL
    text = f"{(current - previous) / previous * 100:.1f}"
    # A change that rounds to zero has no direction.
    return "0.0" if text == "-0.0" else text


def growth_value(indicator: str | None) -> float | None:
    """Numeric reading of an indicator (the sentinel reads as ``100.0``)."""

    if indicator is None:
        return None
    return float(indicator)


def previous_month_key(key: str) -> str:
    year, month = split_month_key(key)
    prev_year, prev_month = shift_month(year, month, -1)
    return f"{prev_year:04d}-{prev_month:02d}"


def year_ago_key(key: str) -> str:
    year, month = split_month_key(key)
    return f"{year - 1:04d}-{month:02d}"


def comparison_key(key: str, mode: GrowthMode) -> str:
    if mode == "mom":
        return previous_month_key(key)
    if mode == "yoy":
        return year_ago_key(key)
    raise ValueError(f"unknown growth mode: {mode!r} (expected 'mom' or 'yoy')")


def node_growth(node: GroupNode, bucket_key: str, mode: GrowthMode) -> str | None:
    """Growth of ``node`` at ``bucket_key`` against its comparison bucket.

    A comparison bucket outside the pivot window reads as zero, matching how
    the tables treat months they did not compute.
    """

    current = node.monthly_values.get(bucket_key, 0.0)
    previous = node.monthly_values.get(comparison_key(bucket_key, mode), 0.0)
    return growth_percentage(current, previous)


def growth_row(
    node: GroupNode, buckets: Sequence[Bucket], mode: GrowthMode
) -> dict[str, str | None]:
    return {b.key: node_growth(node, b.key, mode) for b in buckets}


def format_growth(indicator: str | None) -> str:
    """Display form: ``"-"`` for no growth, otherwise signed with a ``%``."""

    if indicator is None:
        return "-"
    if indicator.startswith(("+", "-")):
        return f"{indicator}%"
    return f"+{indicator}%"


__all__ = [
    "GrowthMode",
    "ZERO_BASELINE_SENTINEL",
    "comparison_key",
    "format_growth",
    "growth_percentage",
    "growth_row",
    "growth_value",
    "node_growth",
    "previous_month_key",
    "year_ago_key",
]
