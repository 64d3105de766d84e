"""Load canonical records from CSV or JSON exports.

The field mapping is resolved once against the file header (or, for JSON,
the union of row keys) and then applied to every row. Cells that cannot be
read degrade to defaults rather than failing the load; malformed files
(no header, not a JSON array) raise.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable, Mapping, Sequence
from os import PathLike
from pathlib import Path
from typing import Any

from .logging_setup import get_logger
from .records import SALES_FIELD_MAPPING, FieldMapping, SalesRecord

_logger = get_logger("studio_pivot.ingest")


def load_field_mapping(path: str | PathLike[str]) -> FieldMapping:
    """Read a JSON :class:`FieldMapping` (``pydantic.ValidationError`` on bad shape)."""

    return FieldMapping.model_validate_json(Path(path).read_text(encoding="utf-8"))


def records_from_rows(
    rows: Iterable[Mapping[str, Any]],
    mapping: FieldMapping = SALES_FIELD_MAPPING,
    *,
    columns: Sequence[str] | None = None,
) -> list[SalesRecord]:
    """Convert raw mapping rows to :class:`SalesRecord` objects.

    ``columns`` is the header to resolve against; when omitted it is the
    union of keys over all rows.
    """

    materialized = list(rows)
    if columns is None:
        seen: dict[str, None] = {}
        for row in materialized:
            seen.update(dict.fromkeys(row))
        columns = list(seen)

    resolved = mapping.resolve(columns)
    for required in ("date", "amount"):
        if required not in resolved.columns:
            _logger.warning("no column found for %r; every record uses the default", required)

    records, bad_numbers = resolved.convert(materialized)
    if bad_numbers:
        _logger.warning("%d numeric cells could not be parsed and were read as 0", bad_numbers)
    _logger.debug("loaded %d records using columns %s", len(records), dict(resolved.columns))
    return records


def load_records_from_csv(
    csv_path: str | PathLike[str], mapping: FieldMapping = SALES_FIELD_MAPPING
) -> list[SalesRecord]:
    p = Path(csv_path)
    # utf-8-sig drops the BOM spreadsheet exports tend to prepend.
    with p.open(encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        headers = reader.fieldnames
        if not headers:
            raise csv.Error(f"CSV appears to have no header row: {csv_path}")
        rows: list[dict[str, str]] = []
        for row in reader:
            # DictReader collects overflow cells under a None key; drop them.
            rows.append({k: (v if v is not None else "") for k, v in row.items() if k is not None})
    return records_from_rows(rows, mapping, columns=headers)


def load_records_from_json(
    json_path: str | PathLike[str], mapping: FieldMapping = SALES_FIELD_MAPPING
) -> list[SalesRecord]:
    data = json.loads(Path(json_path).read_text(encoding="utf-8"))
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise ValueError(f"expected a JSON array of objects: {json_path}")
    return records_from_rows(data, mapping)


def load_records(
    path: str | PathLike[str], mapping: FieldMapping = SALES_FIELD_MAPPING
) -> list[SalesRecord]:
    """Dispatch on file extension (``.json`` or anything else as CSV)."""

    if Path(path).suffix.lower() == ".json":
        return load_records_from_json(path, mapping)
    return load_records_from_csv(path, mapping)


__all__ = [
    "load_field_mapping",
    "load_records",
    "load_records_from_csv",
    "load_records_from_json",
    "records_from_rows",
]
