"""Two-level pivot aggregation over time buckets.

:func:`build_pivot` partitions a flat record list by a primary dimension and an
optional secondary dimension, then attaches one metric value per bucket and an
all-time total to every node. Values at every level, the grand total included,
come from summarizing that node's own rows; a parent's value is never derived
from its children's values, so ratio metrics (ATV, UPT, ...) stay correct.

Records are visited once. Each record's bucket key is computed a single time
during that pass and the record is appended to its leaf's per-bucket list, so
no leaf is re-filtered per bucket. Records whose date cannot be parsed (or
falls outside the window) belong to no bucket but still count toward totals.

Trees are immutable value objects rebuilt from scratch for every change of
input, metric, bucket window, or dimensions.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Literal

from .buckets import Bucket
from .catalog import MetricDefinition, get_metric
from .dates import record_month_key
from .logging_setup import get_logger
from .metrics import summarize
from .records import SalesRecord, dimension_value, validate_dimension

_logger = get_logger("studio_pivot.aggregation")

type NodeKind = Literal["group", "leaf", "total"]

TOTAL_KEY = "TOTALS"


@dataclass(frozen=True, slots=True)
class GroupNode:
    """One row of a pivot.

    ``kind`` is ``"group"`` for a primary-dimension node with children,
    ``"leaf"`` for a node without children, and ``"total"`` for the grand
    total. ``rows`` holds every record under the node and ``bucket_rows`` the
    subset falling in each bucket; both back drill-down requests.
    """

    key: str
    kind: NodeKind
    path: tuple[str, ...]
    monthly_values: Mapping[str, float]
    total_value: float
    children: tuple[GroupNode, ...] = ()
    rows: tuple[SalesRecord, ...] = field(default=(), repr=False)
    bucket_rows: Mapping[str, tuple[SalesRecord, ...]] = field(default_factory=dict, repr=False)

    def value_for(self, sort_key: str) -> float:
        """Value used for ordering: ``"total"`` or a bucket key (missing -> 0)."""

        if sort_key == "total":
            return self.total_value
        return self.monthly_values.get(sort_key, 0.0)

    def rows_for(self, bucket_key: str | None = None) -> tuple[SalesRecord, ...]:
        if bucket_key is None:
            return self.rows
        return self.bucket_rows.get(bucket_key, ())


@dataclass(frozen=True, slots=True)
class PivotTable:
    metric: MetricDefinition
    primary: str
    secondary: str | None
    buckets: tuple[Bucket, ...]
    groups: tuple[GroupNode, ...]
    totals: GroupNode
    net_of_vat: bool = False

    @property
    def group_keys(self) -> tuple[str, ...]:
        return tuple(g.key for g in self.groups)

    def group(self, key: str) -> GroupNode:
        for node in self.groups:
            if node.key == key:
                return node
        raise KeyError(f"unknown group: {key!r}")

    def bucket(self, key: str) -> Bucket:
        for b in self.buckets:
            if b.key == key:
                return b
        raise KeyError(f"unknown bucket: {key!r}")


# ---------------------------------------------------------------------------
# Accumulation (mutable, private) and freezing
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _RowSet:
    rows: list[SalesRecord] = field(default_factory=list)
    bucket_rows: dict[str, list[SalesRecord]] = field(default_factory=dict)

    def add(self, record: SalesRecord, bucket_key: str | None) -> None:
        self.rows.append(record)
        if bucket_key is not None:
            self.bucket_rows.setdefault(bucket_key, []).append(record)


@dataclass(slots=True)
class _GroupSlot:
    key: str
    own: _RowSet = field(default_factory=_RowSet)
    sub_index: dict[str, int] = field(default_factory=dict)
    subs: list[tuple[str, _RowSet]] = field(default_factory=list)

    def sub(self, key: str) -> _RowSet:
        idx = self.sub_index.get(key)
        if idx is None:
            idx = len(self.subs)
            self.sub_index[key] = idx
            self.subs.append((key, _RowSet()))
        return self.subs[idx][1]


class _Freezer:
    """Turns accumulated row sets into immutable nodes for one metric."""

    def __init__(self, metric_id: str, buckets: Sequence[Bucket], net_of_vat: bool) -> None:
        self.metric_id = metric_id
        self.bucket_keys = [b.key for b in buckets]
        self.net_of_vat = net_of_vat

    def _value(self, rows: Iterable[SalesRecord]) -> float:
        return summarize(rows).value(self.metric_id, net_of_vat=self.net_of_vat)

    def node(
        self,
        key: str,
        kind: NodeKind,
        path: tuple[str, ...],
        row_set: _RowSet,
        children: tuple[GroupNode, ...] = (),
    ) -> GroupNode:
        bucket_rows = {k: tuple(v) for k, v in row_set.bucket_rows.items()}
        monthly = {k: self._value(bucket_rows.get(k, ())) for k in self.bucket_keys}
        return GroupNode(
            key=key,
            kind=kind,
            path=path,
            monthly_values=monthly,
            total_value=self._value(row_set.rows),
            children=children,
            rows=tuple(row_set.rows),
            bucket_rows=bucket_rows,
        )


def build_pivot(
    records: Iterable[SalesRecord],
    *,
    primary: str,
    secondary: str | None = None,
    metric: str = "revenue",
    buckets: Sequence[Bucket],
    primary_keys: Sequence[str] | None = None,
    net_of_vat: bool = False,
) -> PivotTable:
    """Aggregate ``records`` into a primary -> secondary pivot for ``metric``.

    Parameters
    ----------
    records:
        Canonical records; consumed once.
    primary / secondary:
        Dimension keys (see :data:`studio_pivot.records.DIMENSION_FALLBACKS`).
        Without ``secondary`` the top-level nodes are leaves.
    metric:
        Catalog metric id.
    buckets:
        Month columns. Records outside them still count toward totals.
    primary_keys:
        Groups to create up front, in this order, even when no record falls in
        them (they show explicit zeros). Groups seen in the data are appended
        after them in first-appearance order.
    net_of_vat:
        Subtract VAT from revenue before revenue-derived metrics.
    """

    definition = get_metric(metric)
    validate_dimension(primary)
    if secondary is not None:
        validate_dimension(secondary)

    bucket_list = tuple(buckets)
    window = {b.key for b in bucket_list}

    group_index: dict[str, int] = {}
    slots: list[_GroupSlot] = []
    everything = _RowSet()

    def slot_for(key: str) -> _GroupSlot:
        idx = group_index.get(key)
        if idx is None:
            idx = len(slots)
            group_index[key] = idx
            slots.append(_GroupSlot(key))
        return slots[idx]

    for key in primary_keys or ():
        slot_for(key)

    unbucketed = 0
    for record in records:
        bucket_key = record_month_key(record.date)
        if bucket_key not in window:
            bucket_key = None
            unbucketed += 1
        everything.add(record, bucket_key)
        slot = slot_for(dimension_value(record, primary))
        slot.own.add(record, bucket_key)
        if secondary is not None:
            slot.sub(dimension_value(record, secondary)).add(record, bucket_key)

    freezer = _Freezer(definition.id, bucket_list, net_of_vat)
    groups: list[GroupNode] = []
    for slot in slots:
        if secondary is None:
            groups.append(freezer.node(slot.key, "leaf", (slot.key,), slot.own))
            continue
        children = tuple(
            freezer.node(sub_key, "leaf", (slot.key, sub_key), row_set)
            for sub_key, row_set in slot.subs
        )
        # The group's own row set is the union of its children's rows.
        groups.append(freezer.node(slot.key, "group", (slot.key,), slot.own, children))

    totals = freezer.node(TOTAL_KEY, "total", (), everything)

    _logger.debug(
        "pivot metric=%s primary=%s secondary=%s: %d records, %d groups, %d outside window",
        definition.id,
        primary,
        secondary,
        len(everything.rows),
        len(groups),
        unbucketed,
    )

    return PivotTable(
        metric=definition,
        primary=primary,
        secondary=secondary,
        buckets=bucket_list,
        groups=tuple(groups),
        totals=totals,
        net_of_vat=net_of_vat,
    )


# ---------------------------------------------------------------------------
# Drill-down
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DrillDown:
    """Rows behind one displayed value, with a human-readable description."""

    path: tuple[str, ...]
    bucket: Bucket | None
    rows: tuple[SalesRecord, ...]
    value: float
    description: str


def find_node(
    table: PivotTable, group: str | None = None, subgroup: str | None = None
) -> GroupNode:
    """Return the grand total, a group, or a subgroup node.

    Raises ``KeyError`` for keys not present in ``table``.
    """

    if group is None:
        if subgroup is not None:
            raise ValueError("subgroup requires group")
        return table.totals
    node = table.group(group)
    if subgroup is None:
        return node
    for child in node.children:
        if child.key == subgroup:
            return child
    raise KeyError(f"unknown subgroup {subgroup!r} in group {group!r}")


def drill_down(
    table: PivotTable,
    *,
    group: str | None = None,
    subgroup: str | None = None,
    bucket: str | None = None,
) -> DrillDown:
    """Expose the leaf rows that produced a node (or node/bucket cell) value."""

    node = find_node(table, group, subgroup)
    selected = table.bucket(bucket) if bucket is not None else None
    rows = node.rows_for(bucket)
    value = node.monthly_values[bucket] if bucket is not None else node.total_value

    name = " / ".join(node.path) if node.path else "Grand Total"
    period = selected.display if selected is not None else "Total"
    return DrillDown(
        path=node.path,
        bucket=selected,
        rows=rows,
        value=value,
        description=f"{name} ({period}) - {table.metric.label}: {len(rows)} records",
    )


__all__ = [
    "DrillDown",
    "GroupNode",
    "NodeKind",
    "PivotTable",
    "TOTAL_KEY",
    "build_pivot",
    "drill_down",
    "find_node",
]
