"""Named pivot views.

A view is configuration only: which dimensions to group by and which bucket
window to show. All computation goes through :func:`build_pivot`.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .aggregation import PivotTable, build_pivot
from .buckets import (
    MAX_YOY_MONTHS,
    Bucket,
    month_range,
    rolling_months,
    year_over_year_months,
    year_to_date_months,
)
from .records import SalesRecord, validate_dimension

# First month of the standard range used by the product, payment-method and
# sold-by tables.
STANDARD_RANGE_START = "2024-01"


class PivotView(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    name: str
    title: str
    primary: str
    secondary: str | None = None
    window: Literal["rolling", "yoy", "range", "ytd"] = "rolling"
    months: int = Field(default=12, ge=1)
    range_start: str | None = None
    descending: bool = True
    growth_mode: Literal["mom", "yoy"] = "mom"

    @field_validator("primary", "secondary")
    @classmethod
    def _known_dimension(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return validate_dimension(v)

    @model_validator(mode="after")
    def _check_window(self) -> PivotView:
        if self.window == "range" and not self.range_start:
            raise ValueError("window 'range' requires range_start")
        if self.window == "yoy" and self.months > MAX_YOY_MONTHS:
            raise ValueError(f"window 'yoy' allows at most {MAX_YOY_MONTHS} months")
        if self.secondary is not None and self.secondary == self.primary:
            raise ValueError("secondary dimension must differ from primary")
        return self

    def buckets(self, *, anchor: date | None = None) -> list[Bucket]:
        """Bucket columns for this view, in display order."""

        if self.window == "yoy":
            return year_over_year_months(self.months, anchor=anchor)
        if self.window == "range":
            return month_range(
                self.range_start or STANDARD_RANGE_START,
                anchor=anchor,
                descending=self.descending,
            )
        if self.window == "ytd":
            return year_to_date_months(anchor=anchor, descending=self.descending)
        return rolling_months(self.months, anchor=anchor, descending=self.descending)


VIEWS: dict[str, PivotView] = {
    v.name: v
    for v in (
        PivotView(
            name="product-performance",
            title="Product Performance Analysis",
            primary="category",
            secondary="product",
            window="range",
            range_start=STANDARD_RANGE_START,
        ),
        PivotView(
            name="month-on-month",
            title="Month-on-Month Analysis",
            primary="category",
            secondary="product",
            months=18,
        ),
        PivotView(
            name="year-on-year",
            title="Year-on-Year Analysis",
            primary="category",
            secondary="product",
            window="yoy",
            growth_mode="yoy",
        ),
        PivotView(
            name="sold-by",
            title="Sold By Month-on-Month",
            primary="sold_by",
            window="range",
            range_start=STANDARD_RANGE_START,
        ),
        PivotView(
            name="payment-method",
            title="Payment Method Month-on-Month",
            primary="payment_method",
            window="range",
            range_start=STANDARD_RANGE_START,
        ),
        PivotView(
            name="lead-sources",
            title="Lead Sources by Month",
            primary="source",
            secondary="month",
            months=12,
        ),
        PivotView(
            name="lead-funnel",
            title="Lead Funnel Year-to-Date",
            primary="source",
            secondary="stage",
            window="ytd",
            descending=False,
        ),
    )
}


def get_view(name: str) -> PivotView:
    try:
        return VIEWS[name]
    except KeyError:
        raise ValueError(f"unknown view: {name!r} (expected one of {', '.join(VIEWS)})") from None


def build_view(
    records: Iterable[SalesRecord],
    view: PivotView,
    *,
    metric: str = "revenue",
    anchor: date | None = None,
    net_of_vat: bool = False,
) -> PivotTable:
    return build_pivot(
        records,
        primary=view.primary,
        secondary=view.secondary,
        metric=metric,
        buckets=view.buckets(anchor=anchor),
        net_of_vat=net_of_vat,
    )


__all__ = ["PivotView", "STANDARD_RANGE_START", "VIEWS", "build_view", "get_view"]
