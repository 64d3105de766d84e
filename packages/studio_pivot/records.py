"""Normalized record shape and the field-mapping layer that produces it.

Raw exports name the same concept differently from sheet to sheet (for
example ``salesItemId`` vs ``itemId`` vs ``saleItemId``). Rather than probing
alternative names on every metric evaluation, a :class:`FieldMapping` lists the
candidate source columns per canonical field and is resolved once against the
input header. Every row is then converted into a :class:`SalesRecord`, which
is the only shape the metric and aggregation modules read.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from .dates import record_month_key

# ---------------------------------------------------------------------------
# Canonical record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SalesRecord:
    """One transactional row in canonical form.

    ``date`` keeps the raw date text; parsing happens in
    :mod:`studio_pivot.dates` so that unparsable values remain visible to
    all-time aggregates. Identifier fields are ``None`` when absent or blank
    and are used only for distinct counting.
    """

    date: str | None = None
    amount: float = 0.0
    vat: float = 0.0
    discount_amount: float = 0.0
    discount_percentage: float = 0.0
    member_id: str | None = None
    transaction_id: str | None = None
    item_id: str | None = None
    category: str | None = None
    product: str | None = None
    source: str | None = None
    stage: str | None = None
    trainer: str | None = None
    location: str | None = None
    sold_by: str | None = None
    payment_method: str | None = None
    # Source row, carried for drill-down detail views only.
    raw: Mapping[str, Any] | None = field(default=None, compare=False, repr=False)


DIMENSION_FALLBACKS: dict[str, str] = {
    "category": "Uncategorized",
    "product": "Unknown",
    "source": "Unknown",
    "stage": "Unknown",
    "trainer": "Unknown",
    "location": "Unknown",
    "sold_by": "Unknown",
    "payment_method": "Unknown",
    "month": "Unknown",
}

DIMENSION_LABELS: dict[str, str] = {
    "category": "Category",
    "product": "Product",
    "source": "Source",
    "stage": "Stage",
    "trainer": "Trainer",
    "location": "Location",
    "sold_by": "Sold By",
    "payment_method": "Payment Method",
    "month": "Month",
}


def validate_dimension(key: str) -> str:
    if key not in DIMENSION_FALLBACKS:
        raise ValueError(
            f"unknown dimension: {key!r} (expected one of {', '.join(DIMENSION_FALLBACKS)})"
        )
    return key


def dimension_value(record: SalesRecord, key: str) -> str:
    """Return the grouping label of ``record`` for dimension ``key``.

    Missing or blank values resolve to the dimension's fallback label so that
    grouping never yields an empty key. ``month`` is derived from the record
    date.
    """

    validate_dimension(key)
    if key == "month":
        value = record_month_key(record.date)
    else:
        value = getattr(record, key)
    if value is None:
        return DIMENSION_FALLBACKS[key]
    text = value.strip()
    return text or DIMENSION_FALLBACKS[key]


# ---------------------------------------------------------------------------
# Cell coercion
# ---------------------------------------------------------------------------


def parse_number(raw: Any) -> float | None:
    """Parse a numeric cell; ``None`` when it cannot be read as a number.

    Accepts plain numbers and strings carrying currency symbols, thousands
    separators, a trailing percent sign, or parenthesized negatives.
    """

    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        value = float(raw)
        return value if math.isfinite(value) else None
    s = str(raw).strip()
    if not s:
        return None

    negative = False
    if s.startswith("(") and s.endswith(")") and len(s) >= 2:
        negative = True
        s = s[1:-1].strip()
    if s.startswith("-"):
        negative = not negative
        s = s[1:].lstrip()
    elif s.startswith("+"):
        s = s[1:].lstrip()
    s = s.lstrip("₹$€£").rstrip("%").replace(",", "").strip()

    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    if not d.is_finite():
        return None
    value = float(d)
    return -value if negative else value


def _clean_text(raw: Any) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    text = str(raw).strip()
    return text or None


# ---------------------------------------------------------------------------
# Field mapping
# ---------------------------------------------------------------------------

_NUMERIC_FIELDS: tuple[str, ...] = ("amount", "vat", "discount_amount", "discount_percentage")
_TEXT_FIELDS: tuple[str, ...] = (
    "date",
    "member_id",
    "transaction_id",
    "item_id",
    "category",
    "product",
    "source",
    "stage",
    "trainer",
    "location",
    "sold_by",
    "payment_method",
)


class FieldMapping(BaseModel):
    """Candidate source column names per canonical :class:`SalesRecord` field.

    Candidates are tried in order; the first one present in the input header
    wins. A field with no candidates (or none present) keeps its default.
    A bare string is accepted as a single candidate.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    date: tuple[str, ...] = ()
    amount: tuple[str, ...] = ()
    vat: tuple[str, ...] = ()
    discount_amount: tuple[str, ...] = ()
    discount_percentage: tuple[str, ...] = ()
    member_id: tuple[str, ...] = ()
    transaction_id: tuple[str, ...] = ()
    item_id: tuple[str, ...] = ()
    category: tuple[str, ...] = ()
    product: tuple[str, ...] = ()
    source: tuple[str, ...] = ()
    stage: tuple[str, ...] = ()
    trainer: tuple[str, ...] = ()
    location: tuple[str, ...] = ()
    sold_by: tuple[str, ...] = ()
    payment_method: tuple[str, ...] = ()

    @field_validator("*", mode="before")
    @classmethod
    def _wrap_single_column(cls, v: Any) -> Any:
        if isinstance(v, str):
            return (v,)
        return v

    @field_validator("*")
    @classmethod
    def _non_empty_candidates(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if any(not c for c in v):
            raise ValueError("column candidates must be non-empty strings")
        return v

    def resolve(self, columns: Iterable[str]) -> ResolvedMapping:
        """Pick one source column per field for the given header."""

        present = set(columns)
        chosen: dict[str, str] = {}
        for name in (*_NUMERIC_FIELDS, *_TEXT_FIELDS):
            for candidate in getattr(self, name):
                if candidate in present:
                    chosen[name] = candidate
                    break
        return ResolvedMapping(columns=chosen)


@dataclass(frozen=True, slots=True)
class ResolvedMapping:
    """A :class:`FieldMapping` bound to a concrete header."""

    columns: Mapping[str, str]

    def to_record(self, row: Mapping[str, Any]) -> tuple[SalesRecord, int]:
        """Convert one row; returns the record and its count of bad numbers.

        A present-but-unreadable numeric cell becomes ``0.0`` and counts as
        bad; an absent or blank one is simply ``0.0``.
        """

        values: dict[str, Any] = {}
        bad = 0
        for name in _NUMERIC_FIELDS:
            column = self.columns.get(name)
            if column is None:
                continue
            raw = row.get(column)
            parsed = parse_number(raw)
            if parsed is None:
                if raw is not None and str(raw).strip():
                    bad += 1
                parsed = 0.0
            values[name] = parsed
        for name in _TEXT_FIELDS:
            column = self.columns.get(name)
            if column is not None:
                values[name] = _clean_text(row.get(column))
        return SalesRecord(raw=row, **values), bad

    def convert(self, rows: Iterable[Mapping[str, Any]]) -> tuple[list[SalesRecord], int]:
        records: list[SalesRecord] = []
        bad_total = 0
        for row in rows:
            record, bad = self.to_record(row)
            records.append(record)
            bad_total += bad
        return records, bad_total


SALES_FIELD_MAPPING = FieldMapping(
    date=("paymentDate", "Payment Date", "date"),
    amount=("paymentValue", "Payment Value", "amount"),
    vat=("paymentVAT", "vat", "Payment VAT"),
    discount_amount=("discountAmount", "Discount Amount"),
    discount_percentage=("discountPercentage", "Discount Percentage"),
    member_id=("memberId", "Member ID"),
    transaction_id=("paymentTransactionId", "transactionId", "Payment Transaction ID"),
    item_id=("salesItemId", "itemId", "saleItemId", "Sale Item ID"),
    category=("cleanedCategory", "Cleaned Category", "category"),
    product=("cleanedProduct", "Cleaned Product", "product"),
    sold_by=("soldBy", "Sold By"),
    payment_method=("paymentMethod", "Payment Method"),
    location=("calculatedLocation", "Calculated Location", "location"),
)

LEADS_FIELD_MAPPING = FieldMapping(
    date=("createdAt", "Created At", "date"),
    amount=("ltv", "LTV"),
    member_id=("memberId", "Member ID"),
    transaction_id=("id", "Lead ID"),
    source=("source", "Source"),
    stage=("stage", "Stage"),
    trainer=("associate", "Associate"),
    location=("center", "Center"),
)


__all__ = [
    "DIMENSION_FALLBACKS",
    "DIMENSION_LABELS",
    "FieldMapping",
    "LEADS_FIELD_MAPPING",
    "ResolvedMapping",
    "SALES_FIELD_MAPPING",
    "SalesRecord",
    "dimension_value",
    "parse_number",
    "validate_dimension",
]
