"""
Spreadsheet reader for supplier uploads.

Some suppliers send .xlsx instead of CSV. The first sheet is read into the
same rows-of-strings shape parse_csv() produces, so the rest of the
pipeline does not care which format arrived.
"""

from io import BytesIO
from pathlib import Path
from typing import Union

import pandas as pd
import structlog

from exceptions import CSVParseError

logger = structlog.get_logger(__name__)

SPREADSHEET_SUFFIXES = (".xlsx", ".xlsm")


def is_spreadsheet(filename: str) -> bool:
    """Check whether an upload should go through the spreadsheet reader."""
    return Path(filename or "").suffix.lower() in SPREADSHEET_SUFFIXES


def parse_spreadsheet(file: Union[str, Path, BytesIO]) -> list[list[str]]:
    """
    Read the first sheet of an Excel workbook as rows of strings.

    Empty cells become "", whole-number floats lose their ".0" (Excel
    stores every number as float), and fully blank rows are skipped.

    Args:
        file: File path or file-like object

    Returns:
        List of rows including the header row

    Raises:
        CSVParseError: If the workbook cannot be read
    """
    logger.info("parsing_spreadsheet", file_type=type(file).__name__)

    try:
        df = pd.read_excel(file, sheet_name=0, header=None, engine="openpyxl")
    except Exception as e:
        logger.error("spreadsheet_read_failed", error=str(e))
        raise CSVParseError(
            message="Failed to read spreadsheet",
            details={"original_error": str(e)}
        )

    rows = []
    for _, series in df.iterrows():
        cells = [_cell_to_text(value) for value in series.tolist()]
        if all(cell == "" for cell in cells):
            continue
        rows.append(cells)

    logger.info("spreadsheet_parsed", row_count=len(rows))
    return rows


def _cell_to_text(value) -> str:
    if pd.isna(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
