"""Search Routes - eBay active-listing summary by keyword or by image.

Invariants:
    - Routes delegate to MarketplaceSearch; errors propagate to the global handler
    - Image search requires a non-empty `image` upload (400 otherwise)
"""

import logging
import time

from fastapi import APIRouter, Depends, File, Query, UploadFile

from marketdesk.api.dependencies import get_marketplace
from marketdesk.core.errors import ValidationFailedError
from marketdesk.core.repository_protocols import MarketplaceSearch
from marketdesk.schemas.search import SearchSummaryResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/search", tags=["search"])

MAX_IMAGE_BYTES = 10 * 1024 * 1024


@router.get("", response_model=SearchSummaryResponse)
async def search_active_listings(
    query: str = Query("iphone", min_length=1, max_length=350),
    limit: int = Query(100, ge=1, le=200),
    timeout_seconds: float | None = Query(None, gt=0, le=120),
    marketplace: MarketplaceSearch = Depends(get_marketplace),
):
    """Average/highest/lowest asking price over active fixed-price listings."""
    deadline = time.monotonic() + timeout_seconds if timeout_seconds else None
    summary = await marketplace.search_active(query, limit=limit, deadline=deadline)
    return SearchSummaryResponse.from_summary(summary)


@router.post("/image-search", response_model=SearchSummaryResponse)
async def search_by_image(
    image: UploadFile | None = File(None),
    marketplace: MarketplaceSearch = Depends(get_marketplace),
):
    """Same summary as keyword search, for listings visually matching the upload."""
    if image is None:
        raise ValidationFailedError("Image file is required.", "image")
    content = await image.read()
    if not content:
        raise ValidationFailedError("Image file is empty.", "image")
    if len(content) > MAX_IMAGE_BYTES:
        raise ValidationFailedError("Image file is too large.", "image")
    summary = await marketplace.search_by_image(content)
    return SearchSummaryResponse.from_summary(summary)
