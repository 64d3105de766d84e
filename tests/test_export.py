from studio_pivot.aggregation import build_pivot
from studio_pivot.catalog import METRIC_CATALOG, get_metric
from studio_pivot.export import first_column_label, serialize_all_metrics, serialize_pivot
from studio_pivot.view_state import ViewState
from tests.helpers.records import q1_buckets, rec


def _rows():
    return [
        rec("2024-01-10", 100, txn="T1", category="Memberships", product="Monthly"),
        rec("2024-02-10", 300, txn="T2", category="Memberships", product="Annual"),
        rec("2024-03-05", 40, txn="T3", category="Retail", product="Water"),
    ]


def _table(metric="revenue"):
    return build_pivot(
        _rows(), primary="category", secondary="product", metric=metric, buckets=q1_buckets()
    )


def test_serialize_pivot_layout_skips_group_headers():
    text = serialize_pivot(_table(), title="Sales")
    assert text.splitlines() == [
        "Sales",
        "Category/Product\tJan 2024\tFeb 2024\tMar 2024",
        "---\t---\t---\t---",
        "  Annual\t₹0\t₹300\t₹0",
        "  Monthly\t₹100\t₹0\t₹0",
        "  Water\t₹0\t₹0\t₹40",
        "TOTALS\t₹100\t₹300\t₹40",
    ]
    assert text.endswith("\n")


def test_group_rows_carry_subtotals_when_requested():
    text = serialize_pivot(_table(), title="Sales", include_group_rows=True)
    assert text.splitlines()[3:] == [
        "Memberships\t₹100\t₹300\t₹0",
        "  Annual\t₹0\t₹300\t₹0",
        "  Monthly\t₹100\t₹0\t₹0",
        "Retail\t₹0\t₹0\t₹40",
        "  Water\t₹0\t₹0\t₹40",
        "TOTALS\t₹100\t₹300\t₹40",
    ]


def test_every_line_has_the_same_number_of_columns():
    text = serialize_pivot(_table(), include_total=True)
    widths = {len(line.split("\t")) for line in text.splitlines()[1:]}
    assert widths == {5}


def test_title_defaults_to_metric_label():
    assert serialize_pivot(_table("atv")).splitlines()[0] == "ATV"


def test_collapsed_groups_and_sort_order_are_respected():
    state = ViewState().toggle_sort("total").toggle_group("Memberships")
    lines = serialize_pivot(_table(), state, include_group_rows=True).splitlines()
    assert [line.split("\t")[0] for line in lines[3:]] == [
        "Retail",
        "  Water",
        "Memberships",
        "TOTALS",
    ]


def test_collapsed_group_hides_its_leaves_from_export():
    state = ViewState().toggle_group("Memberships")
    lines = serialize_pivot(_table(), state).splitlines()
    assert [line.split("\t")[0] for line in lines[3:]] == ["  Water", "TOTALS"]


def test_default_export_keeps_leaves_and_totals():
    lines = serialize_pivot(_table()).splitlines()
    assert [line.split("\t")[0] for line in lines[3:]] == [
        "  Annual",
        "  Monthly",
        "  Water",
        "TOTALS",
    ]


def test_total_column_and_plain_numbers():
    lines = serialize_pivot(_table(), include_total=True, formatted=False).splitlines()
    assert lines[1].split("\t")[:2] == ["Category/Product", "Total"]
    assert lines[-1] == "TOTALS\t440\t100\t300\t40"


def test_growth_cells():
    lines = serialize_pivot(_table(), growth="mom").splitlines()
    assert lines[-1] == "TOTALS\t+100%\t+200.0%\t-86.7%"
    assert lines[3] == "  Annual\t-\t+100%\t-100.0%"


def test_labels_with_tabs_do_not_shift_columns():
    table = build_pivot(
        [rec("2024-01-01", 5, category="Odd\tName")], primary="category", buckets=q1_buckets()
    )
    assert serialize_pivot(table).splitlines()[3].startswith("Odd Name\t")


def test_first_column_label():
    assert first_column_label("category", "product") == "Category/Product"
    assert first_column_label("payment_method", None) == "Payment Method"


def test_serialize_all_metrics_blocks():
    text = serialize_all_metrics(
        _rows(), primary="category", secondary="product", buckets=q1_buckets(), title="Sales"
    )
    lines = text.splitlines()
    assert lines[0] == "Sales - All Metrics"
    for definition in METRIC_CATALOG:
        banner = definition.label.upper()
        idx = lines.index(banner)
        assert lines[idx + 1] == "-" * (len(banner) + 10)
        assert lines[idx + 2] == f"Sales - {definition.label}"
    # Title line + (blank, banner, rule, 7-line block) per metric.
    assert len(lines) == 1 + 12 * 10


def test_serialize_all_metrics_subset():
    text = serialize_all_metrics(
        _rows(),
        primary="category",
        buckets=q1_buckets(),
        metrics=[get_metric("transactions")],
        formatted=False,
    )
    lines = text.splitlines()
    assert lines[:5] == [
        "Pivot - All Metrics",
        "",
        "TRANSACTIONS",
        "-" * 22,
        "Pivot - Transactions",
    ]
    assert lines[-1] == "TOTALS\t1\t1\t1"
