"""Inventory Schemas - create/update payloads and the public item shape.

Invariants:
    - Prices are non-negative with at most 2 decimal places
    - ItemUpdate carries only the fields the caller sent (exclude_unset)
    - user_id, id, date_added and image_url are never client-writable via update
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from marketdesk.core.domain_types import ItemStatus


class ItemFields(BaseModel):
    """Fields shared by create and update."""
    purchase_price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    selling_price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    storage_location: str | None = Field(None, max_length=200)
    notes: str | None = Field(None, max_length=5000)


class ItemCreate(ItemFields):
    name: str = Field(min_length=1, max_length=200)
    status: ItemStatus = ItemStatus.IN_STOCK

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class ItemUpdate(ItemFields):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=200)
    status: ItemStatus | None = None

    @field_validator("name", "status", mode="before")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    purchase_price: Decimal | None
    selling_price: Decimal | None
    storage_location: str | None
    notes: str | None
    status: str
    image_url: str | None
    date_added: datetime
