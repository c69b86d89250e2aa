"""Sheet Sync - CSV upload into the sync spreadsheet."""

import logging

from marketdesk.core.csv_rows import decode_csv, parse_csv_rows
from marketdesk.core.repository_protocols import SpreadsheetGateway

logger = logging.getLogger(__name__)


async def import_csv(raw: bytes, sheets: SpreadsheetGateway) -> dict:
    """Parse the CSV (header dropped) and append its rows after the last populated row."""
    rows = parse_csv_rows(decode_csv(raw))
    logger.info(f"Parsed {len(rows)} CSV rows for spreadsheet append")
    result = await sheets.append_rows(rows)
    return {"rows_parsed": len(rows), **result}
