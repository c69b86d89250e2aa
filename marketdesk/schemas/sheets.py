"""Spreadsheet Schemas."""

from pydantic import BaseModel


class SheetDataResponse(BaseModel):
    range: str
    data: list[list[str]]


class CsvUploadResponse(BaseModel):
    message: str
    rows_parsed: int
    updated_rows: int
    start_row: int | None = None
    updated_range: str | None = None
