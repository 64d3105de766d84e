"""Public orchestration helpers for the ``studio_pivot`` package.

These functions compose the engine modules for the two things callers do
most: list the metric tabs, and turn a record list plus a view into export
text. Everything here is synchronous and pure apart from debug logging.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Literal

from .aggregation import build_pivot
from .catalog import METRIC_CATALOG, get_metric
from .export import serialize_all_metrics, serialize_pivot
from .records import SalesRecord
from .view_state import ViewState
from .views import PivotView


def metric_tabs() -> list[dict[str, str]]:
    """The catalog as ``{"id", "label", "formatKind"}`` dicts, in tab order."""

    return [{"id": m.id, "label": m.label, "formatKind": m.format_kind} for m in METRIC_CATALOG]


def pivot_report(
    records: Iterable[SalesRecord],
    view: PivotView,
    *,
    metric: str | None = "revenue",
    state: ViewState | None = None,
    anchor: date | None = None,
    growth: Literal["mom", "yoy"] | None = None,
    include_total: bool = False,
    include_group_rows: bool = False,
    net_of_vat: bool = False,
    primary_keys: Sequence[str] | None = None,
    formatted: bool = True,
) -> str:
    """Build ``view`` over ``records`` and return its tab-separated export.

    ``metric=None`` exports every catalog metric, one block each. Otherwise
    only the named metric is exported. ``formatted=False`` writes plain
    numbers instead of display labels.
    """

    rows = list(records)
    buckets = view.buckets(anchor=anchor)
    if metric is None:
        return serialize_all_metrics(
            rows,
            primary=view.primary,
            secondary=view.secondary,
            buckets=buckets,
            state=state,
            title=view.title,
            primary_keys=primary_keys,
            net_of_vat=net_of_vat,
            include_group_rows=include_group_rows,
            include_total=include_total,
            growth=growth,
            formatted=formatted,
        )

    definition = get_metric(metric)
    table = build_pivot(
        rows,
        primary=view.primary,
        secondary=view.secondary,
        metric=definition.id,
        buckets=buckets,
        primary_keys=primary_keys,
        net_of_vat=net_of_vat,
    )
    return serialize_pivot(
        table,
        state,
        title=f"{view.title} - {definition.label}",
        include_group_rows=include_group_rows,
        include_total=include_total,
        growth=growth,
        formatted=formatted,
    )


__all__ = ["metric_tabs", "pivot_report"]
