"""Inventory Item ORM - one reseller-owned stock record.

Invariants:
    - id is a UUID primary key generated client-side
    - user_id is the auth service's opaque id; every query filters on it
    - purchase_price/selling_price are Numeric(12, 2) and may be NULL
    - date_added is set once on insert (UTC) and drives list ordering
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from marketdesk.core.domain_types import ItemStatus
from marketdesk.db.base import Base


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    purchase_price: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), nullable=True,
    )
    selling_price: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), nullable=True,
    )
    storage_location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ItemStatus.IN_STOCK.value,
    )
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    date_added: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
