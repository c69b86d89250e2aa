"""Search Schemas - the summary returned by keyword and image search."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from marketdesk.core.pricing import SearchSummary


class SearchSummaryResponse(BaseModel):
    """Pricing summary plus the raw item summaries, unmodified."""
    total_count: int
    average_price: Decimal
    highest_price: Decimal
    lowest_price: Decimal
    items: list[Any]

    @classmethod
    def from_summary(cls, summary: SearchSummary) -> "SearchSummaryResponse":
        return cls(
            total_count=summary.total_count,
            average_price=summary.average_price,
            highest_price=summary.highest_price,
            lowest_price=summary.lowest_price,
            items=summary.items,
        )
