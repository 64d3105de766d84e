import pytest

from studio_pivot.api import metric_tabs
from studio_pivot.catalog import (
    METRIC_CATALOG,
    format_metric_value,
    format_value,
    get_metric,
)


def test_catalog_order_and_kinds():
    assert [m.id for m in METRIC_CATALOG] == [
        "revenue",
        "units",
        "transactions",
        "members",
        "auv",
        "atv",
        "asv",
        "upt",
        "vat",
        "discountAmount",
        "discountPercentage",
        "purchaseFrequency",
    ]
    assert get_metric("discountPercentage").format_kind == "percentage"
    assert get_metric("purchaseFrequency").format_kind == "duration-days"
    assert get_metric("upt").format_kind == "number"


def test_metric_tabs_shape():
    tabs = metric_tabs()
    assert len(tabs) == 12
    assert tabs[0] == {"id": "revenue", "label": "Revenue", "formatKind": "currency"}


def test_get_metric_unknown():
    with pytest.raises(ValueError, match="unknown metric: 'nope'"):
        get_metric("nope")


@pytest.mark.parametrize(
    ("value", "kind", "expected"),
    [
        (1234567, "currency", "₹12,34,567"),
        (999.6, "currency", "₹1,000"),
        (0, "currency", "₹0"),
        (-1500, "currency", "-₹1,500"),
        (12.345, "percentage", "12.3%"),
        (10, "duration-days", "10.0 days"),
        (1.5, "number", "1.5"),
        (2, "number", "2"),
        (123456.789, "number", "1,23,456.79"),
    ],
)
def test_format_value(value, kind, expected):
    assert format_value(value, kind) == expected


def test_format_metric_value_uses_catalog_kind():
    assert format_metric_value(350, "revenue") == "₹350"
    assert format_metric_value(1.5, "upt") == "1.5"
