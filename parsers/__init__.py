"""
Supplier file parsers.
"""

from parsers.csv_parser import parse_csv, decode_upload
from parsers.spreadsheet_parser import parse_spreadsheet, is_spreadsheet
from parsers.record_extractor import (
    extract_supplier_records,
    clean_cost_value,
    parse_stock_value,
)

__all__ = [
    "parse_csv",
    "decode_upload",
    "parse_spreadsheet",
    "is_spreadsheet",
    "extract_supplier_records",
    "clean_cost_value",
    "parse_stock_value",
]
