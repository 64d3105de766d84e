import pytest

from studio_pivot.aggregation import TOTAL_KEY, build_pivot, drill_down, find_node
from studio_pivot.metrics import compute_metric
from tests.helpers.records import q1_buckets, rec


def _records():
    return [
        rec("2024-01-10", 100, txn="T1", category="Memberships", product="Monthly"),
        rec("2024-01-10", 50, txn="T1", category="Memberships", product="Annual"),
        rec("15/02/2024", 300, txn="T2", category="Memberships", product="Annual"),
        rec("2024-03-05", 40, txn="T3", category="Retail", product="Water"),
        rec("2024-03-06", 60, txn="T4", category="Retail", product="Towel"),
        rec("2024-03-06", 20, txn="T4", category=None, product=None),
    ]


def test_groups_children_and_kinds():
    table = build_pivot(
        _records(), primary="category", secondary="product", buckets=q1_buckets()
    )
    assert table.group_keys == ("Memberships", "Retail", "Uncategorized")
    memberships = table.group("Memberships")
    assert memberships.kind == "group"
    assert [c.key for c in memberships.children] == ["Monthly", "Annual"]
    assert all(c.kind == "leaf" for c in memberships.children)
    assert memberships.children[1].path == ("Memberships", "Annual")
    assert table.group("Uncategorized").children[0].key == "Unknown"
    assert table.totals.kind == "total"
    assert table.totals.key == TOTAL_KEY


def test_single_level_pivot_has_leaf_groups():
    table = build_pivot(_records(), primary="category", buckets=q1_buckets())
    assert all(g.kind == "leaf" and g.children == () for g in table.groups)
    assert table.secondary is None


def test_revenue_is_additive_across_levels():
    table = build_pivot(
        _records(), primary="category", secondary="product", buckets=q1_buckets()
    )
    for group in table.groups:
        assert group.total_value == sum(c.total_value for c in group.children)
        for key, value in group.monthly_values.items():
            assert value == sum(c.monthly_values[key] for c in group.children)
    assert table.totals.total_value == 570
    assert table.totals.monthly_values == {"2024-01": 150, "2024-02": 300, "2024-03": 120}


def test_ratio_metrics_pool_rows_instead_of_averaging_children():
    table = build_pivot(
        _records(),
        primary="category",
        secondary="product",
        metric="atv",
        buckets=q1_buckets(),
    )
    memberships = table.group("Memberships")
    # Two transactions over 450 of revenue; the children's ATVs are 100 and 175.
    assert memberships.total_value == 225
    assert [c.total_value for c in memberships.children] == [100, 175]
    assert table.totals.total_value == compute_metric(_records(), "atv")
    assert table.totals.monthly_values["2024-03"] == 60


def test_day_first_and_iso_dates_share_a_bucket():
    rows = [
        rec("15/03/2024", 10, category="A"),
        rec("2024-03-15", 20, category="A"),
    ]
    table = build_pivot(rows, primary="category", buckets=q1_buckets())
    assert table.group("A").monthly_values["2024-03"] == 30


def test_unparsable_and_out_of_window_dates_count_only_in_totals():
    rows = [
        rec("2024-01-02", 10, category="A"),
        rec("not-a-date", 5, category="A"),
        rec("2023-06-01", 7, category="B"),
    ]
    table = build_pivot(rows, primary="category", buckets=q1_buckets())
    a = table.group("A")
    assert a.total_value == 15
    assert sum(a.monthly_values.values()) == 10
    assert table.group("B").monthly_values == {"2024-01": 0, "2024-02": 0, "2024-03": 0}
    assert table.totals.total_value == 22
    assert len(table.totals.rows) == 3


def test_primary_keys_create_empty_groups_first():
    table = build_pivot(
        _records(),
        primary="category",
        buckets=q1_buckets(),
        primary_keys=["Classes", "Retail"],
    )
    assert table.group_keys[:2] == ("Classes", "Retail")
    classes = table.group("Classes")
    assert classes.total_value == 0
    assert set(classes.monthly_values.values()) == {0}


def test_build_is_idempotent():
    kwargs = dict(primary="category", secondary="product", metric="upt", buckets=q1_buckets())
    assert build_pivot(_records(), **kwargs) == build_pivot(_records(), **kwargs)


def test_empty_input():
    table = build_pivot([], primary="category", buckets=q1_buckets())
    assert table.groups == ()
    assert table.totals.total_value == 0


def test_month_dimension_groups_by_record_month():
    table = build_pivot(_records(), primary="month", buckets=q1_buckets())
    assert table.group_keys == ("2024-01", "2024-02", "2024-03")


def test_invalid_arguments():
    with pytest.raises(ValueError, match="unknown dimension"):
        build_pivot(_records(), primary="colour", buckets=q1_buckets())
    with pytest.raises(ValueError, match="unknown metric"):
        build_pivot(_records(), primary="category", metric="profit", buckets=q1_buckets())
    table = build_pivot(_records(), primary="category", buckets=q1_buckets())
    with pytest.raises(KeyError):
        table.group("Nope")


def test_drill_down_cell_and_total():
    table = build_pivot(
        _records(), primary="category", secondary="product", buckets=q1_buckets()
    )
    cell = drill_down(table, group="Memberships", subgroup="Annual", bucket="2024-02")
    assert cell.value == 300
    assert len(cell.rows) == 1
    assert cell.description == "Memberships / Annual (Feb 2024) - Revenue: 1 records"

    whole = drill_down(table)
    assert whole.path == ()
    assert len(whole.rows) == 6
    assert whole.description == "Grand Total (Total) - Revenue: 6 records"


def test_find_node_errors():
    table = build_pivot(
        _records(), primary="category", secondary="product", buckets=q1_buckets()
    )
    assert find_node(table, "Retail", "Water").total_value == 40
    with pytest.raises(KeyError):
        find_node(table, "Retail", "Shoes")
    with pytest.raises(ValueError):
        find_node(table, None, "Water")
    with pytest.raises(KeyError):
        drill_down(table, group="Retail", bucket="2025-01")


def test_distinct_counts_add_up_when_children_share_no_ids():
    rows = [
        rec("2024-01-03", 10, txn="T1", member="M1", category="Retail", product="Water"),
        rec("2024-01-03", 10, txn="T1", member="M1", category="Retail", product="Water"),
        rec("2024-01-09", 30, txn="T2", member="M2", category="Retail", product="Towel"),
        rec("2024-02-11", 25, txn="T3", member="M3", category="Retail", product="Towel"),
    ]
    for metric in ("transactions", "members"):
        table = build_pivot(
            rows, primary="category", secondary="product", metric=metric, buckets=q1_buckets()
        )
        retail = table.group("Retail")
        assert retail.total_value == sum(c.total_value for c in retail.children) == 3
        for key, value in retail.monthly_values.items():
            assert value == sum(c.monthly_values[key] for c in retail.children)
