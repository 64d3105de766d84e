"""Metric calculation over a flat list of :class:`SalesRecord`.

Every catalog metric is derived from a :class:`MetricSummary`, which gathers
the base quantities (sums, distinct identifier counts, distinct purchase
dates) in a single pass over the rows. Ratios are always computed from these
pooled quantities; callers aggregating a parent node must summarize the union
of its rows rather than combine child ratios.

Division by zero yields ``0.0``; an empty row set yields ``0.0`` for every
metric.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from .catalog import METRIC_IDS, get_metric
from .dates import parse_date
from .records import SalesRecord


def _safe_div(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


# Metrics read straight off a summary field.
_DIRECT_FIELDS: dict[str, str] = {
    "transactions": "transactions",
    "members": "members",
    "units": "units",
    "vat": "vat",
    "discountAmount": "discount_amount",
    "purchaseFrequency": "purchase_frequency",
}


@dataclass(frozen=True, slots=True)
class MetricSummary:
    """Base quantities for a row set.

    ``transactions`` and ``units`` already include the row-count fallback
    applied when no row carries the corresponding identifier.
    """

    row_count: int = 0
    revenue: float = 0.0
    vat: float = 0.0
    discount_amount: float = 0.0
    transactions: int = 0
    members: int = 0
    units: int = 0
    discounted_rows: int = 0
    discount_percentage_sum: float = 0.0
    purchase_frequency: float = 0.0

    def value(self, metric_id: str, *, net_of_vat: bool = False) -> float:
        get_metric(metric_id)
        revenue = self.revenue - self.vat if net_of_vat else self.revenue
        if metric_id == "revenue":
            return revenue
        if metric_id == "atv":
            return _safe_div(revenue, self.transactions)
        if metric_id in {"auv", "asv"}:
            # Same formula; two catalog entries for display.
            return _safe_div(revenue, self.members)
        if metric_id == "upt":
            return _safe_div(self.units, self.transactions)
        if metric_id == "discountPercentage":
            return _safe_div(self.discount_percentage_sum, self.discounted_rows)
        return float(getattr(self, _DIRECT_FIELDS[metric_id]))


def _mean_gap_days(dates: set[date]) -> float:
    # Mean gap between consecutive distinct dates telescopes to span / (n - 1).
    if len(dates) < 2:
        return 0.0
    ordered = sorted(dates)
    return (ordered[-1] - ordered[0]).days / (len(ordered) - 1)


def summarize(records: Iterable[SalesRecord]) -> MetricSummary:
    """Collect every base quantity of ``records`` in one pass."""

    row_count = 0
    revenue = vat = discount_amount = discount_pct_sum = 0.0
    discounted = 0
    txn_ids: set[str] = set()
    member_ids: set[str] = set()
    item_ids: set[str] = set()
    purchase_dates: set[date] = set()

    for r in records:
        row_count += 1
        revenue += r.amount
        vat += r.vat
        discount_amount += r.discount_amount
        if r.discount_amount != 0:
            discounted += 1
            discount_pct_sum += r.discount_percentage
        if r.transaction_id:
            txn_ids.add(r.transaction_id)
        if r.member_id:
            member_ids.add(r.member_id)
        if r.item_id:
            item_ids.add(r.item_id)
        d = parse_date(r.date)
        if d is not None:
            purchase_dates.add(d)

    return MetricSummary(
        row_count=row_count,
        revenue=revenue,
        vat=vat,
        discount_amount=discount_amount,
        transactions=len(txn_ids) if txn_ids else row_count,
        members=len(member_ids),
        units=len(item_ids) if item_ids else row_count,
        discounted_rows=discounted,
        discount_percentage_sum=discount_pct_sum,
        purchase_frequency=_mean_gap_days(purchase_dates),
    )


def compute_metric(
    records: Iterable[SalesRecord], metric_id: str, *, net_of_vat: bool = False
) -> float:
    """Compute one catalog metric for ``records``.

    ``net_of_vat`` subtracts VAT from revenue before any revenue-derived
    metric (``revenue``, ``atv``, ``auv``, ``asv``) is computed.
    """

    get_metric(metric_id)
    return summarize(records).value(metric_id, net_of_vat=net_of_vat)


def compute_all(
    records: Iterable[SalesRecord], *, net_of_vat: bool = False
) -> dict[str, float]:
    """Every catalog metric for ``records``, keyed by metric id in catalog order."""

    summary = summarize(records)
    return {mid: summary.value(mid, net_of_vat=net_of_vat) for mid in METRIC_IDS}


__all__ = ["MetricSummary", "compute_all", "compute_metric", "summarize"]
