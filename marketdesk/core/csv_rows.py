"""CSV Rows - parse an uploaded CSV into spreadsheet rows. Pure, no IO.

Invariants:
    - The first row is a header and is never returned
    - Each data row keeps its values in header column order
    - Blank lines are skipped; short rows are padded with "" to the header width
    - Non-UTF-8 input raises ValidationFailedError
"""

import csv
import io

from marketdesk.core.errors import ValidationFailedError


def decode_csv(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationFailedError(
            "CSV file must be UTF-8 encoded", "file",
        ) from e


def parse_csv_rows(text: str) -> list[list[str]]:
    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if header is None:
        return []
    width = len(header)
    rows: list[list[str]] = []
    for row in reader:
        if not any(cell.strip() for cell in row):
            continue
        if len(row) < width:
            row = row + [""] * (width - len(row))
        rows.append(row[:width] if width else row)
    return rows
