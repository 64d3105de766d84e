"""Tab-separated clipboard export of pivots.

Block layout (one metric)::

    <title>
    Category/Product<TAB>[Total<TAB>]Mar 2024<TAB>Apr 2024
    ---<TAB>---<TAB>...
    <one line per display row, children indented by two spaces>
    TOTALS<TAB>...

Rows come from :func:`studio_pivot.view_state.display_rows`, so sort order
and collapsed groups match what the view shows. Row type is read from the
node ``kind`` tag, never inferred from labels. Group header rows are skipped
unless ``include_group_rows=True``; leaf rows and the totals row are
always written.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .aggregation import GroupNode, PivotTable, build_pivot
from .buckets import Bucket
from .catalog import METRIC_CATALOG, MetricDefinition, format_value
from .growth import GrowthMode, format_growth, node_growth
from .logging_setup import get_logger
from .records import DIMENSION_LABELS, SalesRecord
from .view_state import ViewState, display_rows

_logger = get_logger("studio_pivot.export")

SEPARATOR_CELL = "---"
TOTALS_LABEL = "TOTALS"


def first_column_label(primary: str, secondary: str | None) -> str:
    """Header of the label column, e.g. ``"Category/Product"``."""

    labels = [DIMENSION_LABELS[primary]]
    if secondary is not None:
        labels.append(DIMENSION_LABELS[secondary])
    return "/".join(labels)


def _plain_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.4f}".rstrip("0").rstrip(".")


def _cell(text: str) -> str:
    # Tabs or newlines inside a label would shift spreadsheet columns.
    return text.replace("\t", " ").replace("\r", " ").replace("\n", " ")


class _RowWriter:
    def __init__(
        self,
        table: PivotTable,
        *,
        include_total: bool,
        growth: GrowthMode | None,
        formatted: bool,
    ) -> None:
        self.table = table
        self.include_total = include_total
        self.growth = growth
        self.formatted = formatted

    def value(self, value: float) -> str:
        if self.formatted:
            return format_value(value, self.table.metric.format_kind)
        return _plain_number(value)

    def bucket_cell(self, node: GroupNode, bucket: Bucket) -> str:
        if self.growth is not None:
            return format_growth(node_growth(node, bucket.key, self.growth))
        return self.value(node.monthly_values.get(bucket.key, 0.0))

    def line(self, label: str, node: GroupNode) -> str:
        cells = [_cell(label)]
        if self.include_total:
            cells.append(self.value(node.total_value))
        cells.extend(self.bucket_cell(node, b) for b in self.table.buckets)
        return "\t".join(cells)


def serialize_pivot(
    table: PivotTable,
    state: ViewState | None = None,
    *,
    title: str | None = None,
    include_group_rows: bool = False,
    include_total: bool = False,
    growth: GrowthMode | None = None,
    formatted: bool = True,
) -> str:
    """Render one metric's pivot as tab-separated text.

    Parameters
    ----------
    state:
        Sort/collapse state; defaults to total-descending, all expanded.
    title:
        First line; defaults to the metric label.
    include_group_rows:
        ``True`` also writes group rows with their recomputed subtotals; by
        default only leaves and totals are written, the layout of a plain
        table copy.
    include_total:
        Adds a ``Total`` column after the label column.
    growth:
        ``"mom"``/``"yoy"`` writes growth indicators instead of values in the
        bucket columns.
    formatted:
        ``False`` writes plain numbers instead of currency/percent/day labels.
    """

    state = state or ViewState()
    writer = _RowWriter(table, include_total=include_total, growth=growth, formatted=formatted)

    header = [first_column_label(table.primary, table.secondary)]
    if include_total:
        header.append("Total")
    header.extend(b.display for b in table.buckets)

    lines = [_cell(title or table.metric.label), "\t".join(header)]
    lines.append("\t".join(SEPARATOR_CELL for _ in header))

    for row in display_rows(table, state):
        if row.kind == "total":
            lines.append(writer.line(TOTALS_LABEL, row.node))
        elif row.kind == "group" and not include_group_rows:
            continue
        else:
            lines.append(writer.line("  " * row.depth + row.node.key, row.node))

    return "\n".join(lines) + "\n"


def serialize_all_metrics(
    records: Iterable[SalesRecord],
    *,
    primary: str,
    secondary: str | None = None,
    buckets: Sequence[Bucket],
    state: ViewState | None = None,
    title: str = "Pivot",
    metrics: Sequence[MetricDefinition] = METRIC_CATALOG,
    primary_keys: Sequence[str] | None = None,
    net_of_vat: bool = False,
    include_group_rows: bool = False,
    include_total: bool = False,
    growth: GrowthMode | None = None,
    formatted: bool = True,
) -> str:
    """Re-aggregate ``records`` once per metric and concatenate the blocks.

    Each block is preceded by a banner: the upper-cased metric label and a
    dash rule.
    """

    rows = list(records)
    parts = [f"{title} - All Metrics\n"]
    for definition in metrics:
        table = build_pivot(
            rows,
            primary=primary,
            secondary=secondary,
            metric=definition.id,
            buckets=buckets,
            primary_keys=primary_keys,
            net_of_vat=net_of_vat,
        )
        banner = definition.label.upper()
        parts.append(f"\n{banner}\n{'-' * (len(banner) + 10)}\n")
        parts.append(
            serialize_pivot(
                table,
                state,
                title=f"{title} - {definition.label}",
                include_group_rows=include_group_rows,
                include_total=include_total,
                growth=growth,
                formatted=formatted,
            )
        )
    _logger.debug("exported %d metrics over %d records", len(metrics), len(rows))
    return "".join(parts)


__all__ = [
    "SEPARATOR_CELL",
    "TOTALS_LABEL",
    "first_column_label",
    "serialize_all_metrics",
    "serialize_pivot",
]
