"""
Supplier CSV tokenizer.

Turns raw delimited text into rows of trimmed string cells. Row 0 is the
header row; the caller decides what to do with it.
"""

import re

import structlog

logger = structlog.get_logger(__name__)

LINE_BREAK = re.compile(r"\r?\n")


def parse_csv(text: str) -> list[list[str]]:
    """
    Parse CSV text into a list of rows.

    - Blank (whitespace-only) lines are skipped entirely
    - A double quote toggles quoted mode; "" inside quotes is a literal quote
    - A comma outside quotes ends the current cell
    - Every cell is whitespace-trimmed

    Never raises: a malformed line just yields unexpected cell contents.

    Args:
        text: Raw CSV file content

    Returns:
        List of rows, each a list of cell strings
    """
    rows = []

    for line in LINE_BREAK.split(text):
        if line.strip() == "":
            continue
        rows.append(_parse_line(line))

    logger.debug("csv_parsed", row_count=len(rows))
    return rows


def _parse_line(line: str) -> list[str]:
    row = []
    current = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]

        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                # Escaped quote
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            row.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    # Last cell, even when the line had no delimiters
    row.append("".join(current).strip())
    return row


def decode_upload(content: bytes) -> str:
    """
    Decode uploaded bytes to text.

    Tries UTF-8 (with or without BOM) first, then falls back to cp1252,
    which is what spreadsheet exports on Windows usually produce.
    """
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("csv_decode_fallback", encoding="cp1252")
        return content.decode("cp1252", errors="replace")
