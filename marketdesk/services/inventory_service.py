"""Inventory Service - user-scoped CRUD over inventory_items, with optional image upload.

Invariants:
    - Every read and write filters on user_id; another user's row is indistinguishable
      from a missing one (ResourceNotFoundError)
    - An image is uploaded before the row is inserted; a failed upload inserts nothing
    - update() applies only the fields present in the payload
"""

import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketdesk.core.domain_types import ItemStatus, UserId
from marketdesk.core.errors import ResourceNotFoundError
from marketdesk.core.repository_protocols import ImageStore
from marketdesk.models.inventory_item import InventoryItem
from marketdesk.schemas.inventory import ItemCreate, ItemUpdate

logger = logging.getLogger(__name__)


class InventoryService:
    """Inventory persistence for one request's database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(
        self, user_id: UserId, body: ItemCreate, image_url: str | None = None,
    ) -> InventoryItem:
        item = InventoryItem(
            user_id=user_id,
            name=body.name,
            purchase_price=body.purchase_price,
            selling_price=body.selling_price,
            storage_location=body.storage_location,
            notes=body.notes,
            status=body.status.value,
            image_url=image_url,
        )
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)
        logger.info(
            "Inventory item created",
            extra={"user_id": user_id, "item_id": str(item.id)},
        )
        return item

    async def create_with_image(
        self,
        user_id: UserId,
        body: ItemCreate,
        image_store: ImageStore,
        image: tuple[str, bytes, str | None] | None = None,
    ) -> InventoryItem:
        """Upload the optional image, then insert the row pointing at it."""
        image_url = None
        if image is not None:
            filename, content, content_type = image
            image_url = await image_store.upload(filename, content, content_type)
        return await self.insert(user_id, body, image_url)

    async def list_for_user(self, user_id: UserId) -> list[InventoryItem]:
        result = await self.db.execute(
            select(InventoryItem)
            .where(InventoryItem.user_id == user_id)
            .order_by(InventoryItem.date_added.desc()),
        )
        return list(result.scalars().all())

    async def update(
        self, item_id: UUID, user_id: UserId, body: ItemUpdate,
    ) -> InventoryItem:
        item = await self._get_owned(item_id, user_id)
        changes = body.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if isinstance(value, ItemStatus):
                value = value.value
            setattr(item, field, value)
        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def delete(self, item_id: UUID, user_id: UserId) -> None:
        result = await self.db.execute(
            delete(InventoryItem)
            .where(InventoryItem.id == item_id)
            .where(InventoryItem.user_id == user_id),
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundError("InventoryItem", str(item_id))
        await self.db.commit()
        logger.info(
            "Inventory item deleted",
            extra={"user_id": user_id, "item_id": str(item_id)},
        )

    async def _get_owned(self, item_id: UUID, user_id: UserId) -> InventoryItem:
        result = await self.db.execute(
            select(InventoryItem)
            .where(InventoryItem.id == item_id)
            .where(InventoryItem.user_id == user_id),
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise ResourceNotFoundError("InventoryItem", str(item_id))
        return item
