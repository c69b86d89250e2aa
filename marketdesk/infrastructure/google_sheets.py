"""Google Sheets Gateway - read a range and append rows after the last populated row.

Invariants:
    - Rows 1..first_data_row-1 are header rows; data appends never start above first_data_row
    - The append position is the row after the last populated cell in column A
    - Values are written RAW (no formula or date parsing)
    - gspread is blocking: every call runs in a worker thread
    - gspread/google-auth failures surface as SpreadsheetError

Design Decisions:
    - Service-account credentials via google-auth, worksheet opened lazily and reused
"""

import asyncio
import logging
from collections.abc import Callable

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials

from marketdesk.core.errors import SpreadsheetError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

_SHEETS_ERRORS = (gspread.exceptions.GSpreadException, GoogleAuthError, OSError)


def open_worksheet(
    service_account_file: str, spreadsheet_id: str, worksheet: str,
) -> gspread.Worksheet:
    """Authorize with the service account and open the target worksheet."""
    creds = Credentials.from_service_account_file(
        service_account_file, scopes=SCOPES,
    )
    gc = gspread.authorize(creds)
    return gc.open_by_key(spreadsheet_id).worksheet(worksheet)


def next_append_row(column_a: list[str], first_data_row: int) -> int:
    """Row number to start appending at, given column A's values."""
    populated = 0
    for idx, value in enumerate(column_a, start=1):
        if str(value).strip():
            populated = idx
    return max(populated + 1, first_data_row)


class GoogleSheetsGateway:
    """Spreadsheet gateway over a single gspread worksheet."""

    def __init__(
        self,
        worksheet_factory: Callable[[], gspread.Worksheet],
        first_data_row: int = 3,
    ):
        self._factory = worksheet_factory
        self._worksheet: gspread.Worksheet | None = None
        self._first_data_row = first_data_row

    def _ws(self) -> gspread.Worksheet:
        if self._worksheet is None:
            self._worksheet = self._factory()
        return self._worksheet

    async def read_range(self, a1_range: str) -> list[list[str]]:
        try:
            return await asyncio.to_thread(lambda: self._ws().get(a1_range))
        except _SHEETS_ERRORS as e:
            logger.error(f"Sheet read failed: {e}")
            raise SpreadsheetError(str(e), "read") from e

    async def append_rows(self, rows: list[list[str]]) -> dict:
        if not rows:
            return {"updated_rows": 0, "start_row": None}
        try:
            return await asyncio.to_thread(self._append_sync, rows)
        except _SHEETS_ERRORS as e:
            logger.error(f"Sheet append failed: {e}")
            raise SpreadsheetError(str(e), "append") from e

    def _append_sync(self, rows: list[list[str]]) -> dict:
        ws = self._ws()
        start = next_append_row(ws.col_values(1), self._first_data_row)
        result = ws.append_rows(
            rows,
            value_input_option="RAW",
            table_range=f"A{start}",
        )
        logger.info(
            f"Appended {len(rows)} rows starting at row {start}",
        )
        updates = (result or {}).get("updates", {})
        return {
            "updated_rows": updates.get("updatedRows", len(rows)),
            "updated_range": updates.get("updatedRange"),
            "start_row": start,
        }
