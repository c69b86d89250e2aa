"""Inventory Routes - the signed-in user's stock records.

Invariants:
    - Every route requires a bearer token resolved to a user (401 otherwise)
    - Users only ever see or touch their own rows; foreign ids answer 404
    - POST accepts multipart form fields plus an optional `image` file
"""

import logging
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from marketdesk.api.dependencies import get_current_user, get_image_store
from marketdesk.core.domain_types import AuthenticatedUser
from marketdesk.core.repository_protocols import ImageStore
from marketdesk.infrastructure.database import get_db
from marketdesk.schemas.inventory import ItemCreate, ItemResponse, ItemUpdate
from marketdesk.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])


@router.get("/items", response_model=list[ItemResponse])
async def list_items(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current user's items, newest first."""
    return await InventoryService(db).list_for_user(user.id)


@router.post(
    "/items", response_model=ItemResponse, status_code=status.HTTP_201_CREATED,
)
async def add_item(
    name: str = Form(...),
    purchase_price: Decimal | None = Form(None),
    selling_price: Decimal | None = Form(None),
    storage_location: str | None = Form(None),
    notes: str | None = Form(None),
    item_status: str | None = Form(None, alias="status"),
    image: UploadFile | None = File(None),
    user: AuthenticatedUser = Depends(get_current_user),
    images: ImageStore = Depends(get_image_store),
    db: AsyncSession = Depends(get_db),
):
    """Create an item; an attached image is uploaded first and its URL stored."""
    fields = {
        "name": name,
        "purchase_price": purchase_price,
        "selling_price": selling_price,
        "storage_location": storage_location,
        "notes": notes,
    }
    if item_status:
        fields["status"] = item_status
    try:
        body = ItemCreate(**fields)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e

    upload = None
    if image is not None and image.filename:
        content = await image.read()
        if content:
            upload = (image.filename, content, image.content_type)
    return await InventoryService(db).create_with_image(
        user.id, body, images, upload,
    )


@router.patch("/items/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: UUID,
    body: ItemUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await InventoryService(db).update(item_id, user.id, body)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await InventoryService(db).delete(item_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
