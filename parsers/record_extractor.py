"""
Supplier record extraction.

Applies a column mapping to parsed rows and produces SupplierRecords.
"""

import re
from typing import Optional

import structlog

from models.supplier import ColumnMapping, SupplierRecord

logger = structlog.get_logger(__name__)

NON_NUMERIC = re.compile(r"[^\d.\-]")
# Longest numeric prefix, the way a lenient float/int reader sees it
FLOAT_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)")
INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


def clean_cost_value(value: Optional[str]) -> float:
    """
    Clean a cost cell (currency symbols, spaces, thousands separators).

    Everything except digits, "." and "-" is stripped, then the leading
    number is read. Unreadable input gives 0.

        "$12.50" -> 12.5
        " 7 "    -> 7.0
        "abc"    -> 0.0
    """
    cleaned = NON_NUMERIC.sub("", value or "")
    match = FLOAT_PREFIX.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


def parse_stock_value(value: Optional[str]) -> int:
    """
    Read a stock-on-hand cell as an integer.

    Leading integer digits are used ("12.7" -> 12, "5 units" -> 5);
    anything unreadable gives 0.
    """
    match = INT_PREFIX.match(value or "")
    if not match:
        return 0
    return int(match.group(1))


def _cell(row: list[str], index: int, default: str = "") -> str:
    if index < len(row):
        return row[index]
    return default


def extract_supplier_records(
    rows: list[list[str]],
    mapping: ColumnMapping,
) -> list[SupplierRecord]:
    """
    Extract supplier records from parsed rows.

    Row 0 is the header and is skipped. Rows with an empty SKU are
    dropped. stock_on_hand is only set when a real stock column is mapped;
    its absence tells the commit stage no quantity change is requested.

    Args:
        rows: Parsed rows including the header
        mapping: Column mapping chosen by the user

    Returns:
        SupplierRecords in file order (empty if rows or mapping are insufficient)
    """
    if len(rows) < 2:
        return []
    if mapping.identifier_column is None or mapping.cost_column is None:
        return []

    records = []
    skipped = 0

    for row in rows[1:]:
        if not row:
            skipped += 1
            continue

        sku = _cell(row, mapping.identifier_column).strip()
        if not sku:
            skipped += 1
            continue

        cost = clean_cost_value(_cell(row, mapping.cost_column, "0") or "0")

        stock_on_hand = None
        if mapping.has_stock_column:
            stock_on_hand = parse_stock_value(_cell(row, mapping.stock_column, "0") or "0")

        records.append(SupplierRecord(sku=sku, cost=cost, stock_on_hand=stock_on_hand))

    logger.info(
        "supplier_records_extracted",
        record_count=len(records),
        skipped_rows=skipped,
        has_stock=mapping.has_stock_column
    )

    return records
