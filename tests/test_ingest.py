# ruff: noqa: E501
import csv
import json
import textwrap

import pytest
from pydantic import ValidationError

from studio_pivot.ingest import (
    load_field_mapping,
    load_records,
    load_records_from_csv,
    records_from_rows,
)
from studio_pivot.metrics import compute_metric
from studio_pivot.records import LEADS_FIELD_MAPPING, FieldMapping, parse_number


def _dedent(s: str) -> str:
    return textwrap.dedent(s).lstrip("\n")


def test_sales_csv_maps_alternate_column_names(tmp_path):
    path = tmp_path / "sales.csv"
    path.write_text(
        _dedent(
            """
            paymentDate,paymentValue,paymentVAT,memberId,transactionId,saleItemId,cleanedCategory,cleanedProduct,soldBy,paymentMethod
            15/03/2024,"₹1,180",180,M1,T1,I1,Memberships,Monthly,Asha,UPI
            2024-03-20,500,,M2,T2,I2,Retail,Water,,Card
            """
        ),
        encoding="utf-8",
    )
    records = load_records(path)
    assert len(records) == 2
    first = records[0]
    assert (first.date, first.amount, first.vat) == ("15/03/2024", 1180.0, 180.0)
    assert (first.transaction_id, first.item_id) == ("T1", "I1")
    assert (first.sold_by, first.payment_method) == ("Asha", "UPI")
    assert records[1].vat == 0.0
    assert records[1].sold_by is None
    assert first.raw["cleanedCategory"] == "Memberships"
    assert compute_metric(records, "revenue") == 1680


def test_csv_with_bom_and_overflow_cells(tmp_path):
    path = tmp_path / "bom.csv"
    path.write_bytes("\ufeffdate,amount\n2024-01-01,10,extra\n".encode())
    records = load_records_from_csv(path)
    assert records[0].amount == 10
    assert None not in records[0].raw


def test_csv_without_header_raises(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    with pytest.raises(csv.Error):
        load_records_from_csv(path)


def test_json_records_with_leads_mapping(tmp_path):
    path = tmp_path / "leads.json"
    path.write_text(
        json.dumps(
            [
                {"createdAt": "2024-02-01", "source": "Instagram", "stage": "Trial", "ltv": 0},
                {"createdAt": "2024-02-03", "source": "Walk-in", "associate": "Ravi"},
            ]
        ),
        encoding="utf-8",
    )
    records = load_records(path, LEADS_FIELD_MAPPING)
    assert [r.source for r in records] == ["Instagram", "Walk-in"]
    assert records[1].trainer == "Ravi"
    assert records[1].stage is None


def test_json_must_be_array_of_objects(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text('{"rows": []}', encoding="utf-8")
    with pytest.raises(ValueError, match="JSON array"):
        load_records(path)


def test_unreadable_numbers_degrade_to_zero_and_are_counted():
    mapping = FieldMapping(amount="amt")
    resolved = mapping.resolve(["amt"])
    records, bad = resolved.convert([{"amt": "12"}, {"amt": "n/a"}, {"amt": ""}])
    assert [r.amount for r in records] == [12.0, 0.0, 0.0]
    assert bad == 1


def test_records_from_rows_uses_union_of_keys():
    rows = [{"paymentValue": "10"}, {"paymentDate": "2024-01-01", "paymentValue": "5"}]
    records = records_from_rows(rows)
    assert records[0].date is None
    assert records[1].date == "2024-01-01"


def test_first_present_candidate_wins():
    mapping = FieldMapping(item_id=("salesItemId", "itemId"))
    resolved = mapping.resolve(["itemId", "salesItemId"])
    assert resolved.columns["item_id"] == "salesItemId"


def test_field_mapping_file(tmp_path):
    path = tmp_path / "mapping.json"
    path.write_text(json.dumps({"date": "When", "amount": ["Total", "Amount"]}), encoding="utf-8")
    mapping = load_field_mapping(path)
    assert mapping.date == ("When",)
    assert mapping.amount == ("Total", "Amount")

    path.write_text(json.dumps({"colour": "x"}), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_field_mapping(path)


def test_field_mapping_rejects_blank_candidates():
    with pytest.raises(ValidationError):
        FieldMapping(date=("",))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("₹1,23,456", 123456.0),
        ("(250.50)", -250.5),
        ("-₹40", -40.0),
        ("12.5%", 12.5),
        (7, 7.0),
        ("", None),
        ("abc", None),
        (True, None),
        (float("nan"), None),
    ],
)
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected
