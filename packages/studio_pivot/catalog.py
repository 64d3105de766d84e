"""Metric catalog and display formatting.

The catalog is a fixed, ordered tuple of :class:`MetricDefinition`. Its order
is the tab order shown to users and the block order of the all-metrics
export. ``format_kind`` only affects how a number is rendered; it never
changes a computed value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

type FormatKind = Literal["currency", "number", "percentage", "duration-days"]


@dataclass(frozen=True, slots=True)
class MetricDefinition:
    id: str
    label: str
    format_kind: FormatKind


METRIC_CATALOG: tuple[MetricDefinition, ...] = (
    MetricDefinition("revenue", "Revenue", "currency"),
    MetricDefinition("units", "Units Sold", "number"),
    MetricDefinition("transactions", "Transactions", "number"),
    MetricDefinition("members", "Members", "number"),
    MetricDefinition("auv", "AUV", "currency"),
    MetricDefinition("atv", "ATV", "currency"),
    MetricDefinition("asv", "ASV", "currency"),
    MetricDefinition("upt", "UPT", "number"),
    MetricDefinition("vat", "VAT", "currency"),
    MetricDefinition("discountAmount", "Discount ₹", "currency"),
    MetricDefinition("discountPercentage", "Discount %", "percentage"),
    MetricDefinition("purchaseFrequency", "Purchase Freq.", "duration-days"),
)

_BY_ID: dict[str, MetricDefinition] = {m.id: m for m in METRIC_CATALOG}

METRIC_IDS: tuple[str, ...] = tuple(_BY_ID)


def get_metric(metric_id: str) -> MetricDefinition:
    try:
        return _BY_ID[metric_id]
    except KeyError:
        raise ValueError(
            f"unknown metric: {metric_id!r} (expected one of {', '.join(METRIC_IDS)})"
        ) from None


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def _group_indian(digits: str) -> str:
    # en-IN grouping: last three digits, then pairs (12,34,567).
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs: list[str] = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs) + "," + tail


def _format_grouped(value: float, decimals: int) -> str:
    text = f"{abs(value):.{decimals}f}"
    whole, _, frac = text.partition(".")
    frac = frac.rstrip("0")
    sign = "-" if value < 0 and float(text) != 0 else ""
    grouped = _group_indian(whole)
    return f"{sign}{grouped}.{frac}" if frac else f"{sign}{grouped}"


def format_value(value: float, kind: FormatKind) -> str:
    """Render ``value`` for display according to ``kind``."""

    if kind == "currency":
        text = _format_grouped(value, 0)
        if text.startswith("-"):
            return f"-₹{text[1:]}"
        return f"₹{text}"
    if kind == "percentage":
        return f"{value:.1f}%"
    if kind == "duration-days":
        return f"{value:.1f} days"
    return _format_grouped(value, 2)


def format_metric_value(value: float, metric_id: str) -> str:
    return format_value(value, get_metric(metric_id).format_kind)


__all__ = [
    "FormatKind",
    "METRIC_CATALOG",
    "METRIC_IDS",
    "MetricDefinition",
    "format_metric_value",
    "format_value",
    "get_metric",
]
