"""Public interface for the ``studio_pivot`` package.

Time-bucketed, two-level metric pivots over studio sales and lead records,
with growth indicators, display ordering and tab-separated export. This
module holds no runtime logic, only symbol re-exports.
"""

from .aggregation import DrillDown, GroupNode, PivotTable, build_pivot, drill_down, find_node
from .api import metric_tabs, pivot_report
from .buckets import (
    Bucket,
    month_range,
    order_buckets,
    rolling_months,
    year_over_year_months,
    year_to_date_months,
)
from .catalog import METRIC_CATALOG, MetricDefinition, format_metric_value, get_metric
from .dates import parse_date
from .export import serialize_all_metrics, serialize_pivot
from .growth import growth_percentage, growth_row, node_growth
from .ingest import load_records, records_from_rows
from .metrics import MetricSummary, compute_all, compute_metric, summarize
from .records import LEADS_FIELD_MAPPING, SALES_FIELD_MAPPING, FieldMapping, SalesRecord
from .view_state import DisplayRow, ViewState, display_rows
from .views import VIEWS, PivotView, build_view, get_view

__all__ = [
    # Records / ingestion
    "SalesRecord",
    "FieldMapping",
    "SALES_FIELD_MAPPING",
    "LEADS_FIELD_MAPPING",
    "load_records",
    "records_from_rows",
    # Dates / buckets
    "parse_date",
    "Bucket",
    "rolling_months",
    "year_over_year_months",
    "month_range",
    "year_to_date_months",
    "order_buckets",
    # Metrics
    "METRIC_CATALOG",
    "MetricDefinition",
    "get_metric",
    "format_metric_value",
    "MetricSummary",
    "summarize",
    "compute_metric",
    "compute_all",
    # Aggregation
    "GroupNode",
    "PivotTable",
    "DrillDown",
    "build_pivot",
    "drill_down",
    "find_node",
    # Growth
    "growth_percentage",
    "node_growth",
    "growth_row",
    # Display / export
    "ViewState",
    "DisplayRow",
    "display_rows",
    "serialize_pivot",
    "serialize_all_metrics",
    # Views / API
    "PivotView",
    "VIEWS",
    "get_view",
    "build_view",
    "metric_tabs",
    "pivot_report",
]
