"""Display ordering and collapse state for a pivot.

:class:`ViewState` is owned by the view, never by the aggregation step. It is
an immutable value: every transition returns a new state, and sort and
collapse transitions never touch each other's fields. :func:`display_rows`
applies a state to a freshly built :class:`PivotTable`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from typing import Literal

from .aggregation import GroupNode, NodeKind, PivotTable

type SortDirection = Literal["asc", "desc"]

SORT_BY_TOTAL = "total"


@dataclass(frozen=True, slots=True)
class ViewState:
    sort_key: str = SORT_BY_TOTAL
    sort_direction: SortDirection = "desc"
    collapsed: frozenset[str] = field(default_factory=frozenset)

    def toggle_sort(self, key: str) -> ViewState:
        """Same key flips direction; a new key starts descending."""

        if key == self.sort_key:
            flipped: SortDirection = "asc" if self.sort_direction == "desc" else "desc"
            return replace(self, sort_direction=flipped)
        return replace(self, sort_key=key, sort_direction="desc")

    def toggle_group(self, key: str) -> ViewState:
        if key in self.collapsed:
            return replace(self, collapsed=self.collapsed - {key})
        return replace(self, collapsed=self.collapsed | {key})

    def collapse_all(self, keys: Iterable[str]) -> ViewState:
        return replace(self, collapsed=frozenset(keys))

    def expand_all(self) -> ViewState:
        return replace(self, collapsed=frozenset())

    def is_collapsed(self, key: str) -> bool:
        return key in self.collapsed


@dataclass(frozen=True, slots=True)
class DisplayRow:
    """A node positioned for display; ``rank`` is 1-based within its level."""

    node: GroupNode
    depth: int
    rank: int
    collapsed: bool = False

    @property
    def kind(self) -> NodeKind:
        return self.node.kind


def order_nodes(nodes: Sequence[GroupNode], state: ViewState) -> list[GroupNode]:
    """Sort by the state's key; ties keep their first-appearance order."""

    return sorted(
        nodes,
        key=lambda n: n.value_for(state.sort_key),
        reverse=state.sort_direction == "desc",
    )


def display_rows(
    table: PivotTable, state: ViewState, *, sort_children: bool = True
) -> list[DisplayRow]:
    """Flatten ``table`` into display order, ending with the totals row.

    Children of a collapsed group are omitted; the group row itself stays.
    """

    rows: list[DisplayRow] = []
    for rank, group in enumerate(order_nodes(table.groups, state), start=1):
        collapsed = state.is_collapsed(group.key)
        rows.append(DisplayRow(group, depth=0, rank=rank, collapsed=collapsed))
        if collapsed or not group.children:
            continue
        children = order_nodes(group.children, state) if sort_children else group.children
        for child_rank, child in enumerate(children, start=1):
            rows.append(DisplayRow(child, depth=1, rank=child_rank))
    rows.append(DisplayRow(table.totals, depth=0, rank=0))
    return rows


__all__ = [
    "DisplayRow",
    "SORT_BY_TOTAL",
    "SortDirection",
    "ViewState",
    "display_rows",
    "order_nodes",
]
