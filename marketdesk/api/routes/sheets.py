"""Spreadsheet Routes - read the summary cells, append an uploaded CSV."""

from fastapi import APIRouter, Depends, File, UploadFile

from marketdesk.api.dependencies import get_spreadsheet
from marketdesk.config import get_settings
from marketdesk.core.errors import ValidationFailedError
from marketdesk.core.repository_protocols import SpreadsheetGateway
from marketdesk.schemas.sheets import CsvUploadResponse, SheetDataResponse
from marketdesk.services.sheet_sync import import_csv

router = APIRouter(prefix="/api/v1/sheets", tags=["sheets"])


@router.get("/summary", response_model=SheetDataResponse)
async def get_sheet_summary(sheets: SpreadsheetGateway = Depends(get_spreadsheet)):
    a1_range = get_settings().spreadsheet_summary_range
    data = await sheets.read_range(a1_range)
    return SheetDataResponse(range=a1_range, data=data or [])


@router.post("/upload-csv", response_model=CsvUploadResponse)
async def upload_csv(
    file: UploadFile | None = File(None),
    sheets: SpreadsheetGateway = Depends(get_spreadsheet),
):
    """Append the CSV's data rows (header dropped) to the sheet."""
    if file is None:
        raise ValidationFailedError("No file uploaded.", "file")
    result = await import_csv(await file.read(), sheets)
    return CsvUploadResponse(
        message="CSV data uploaded and appended to sheet successfully!",
        rows_parsed=result["rows_parsed"],
        updated_rows=result.get("updated_rows", 0),
        start_row=result.get("start_row"),
        updated_range=result.get("updated_range"),
    )
