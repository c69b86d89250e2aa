"""Domain Types - small value types shared across layers.

Invariants:
    - UserId is the auth service's opaque user id; never parsed
    - ItemStatus values are the only statuses stored on inventory rows
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
ItemId = NewType("ItemId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class ItemStatus(str, Enum):
    """Inventory item lifecycle - maps to DB `status` column."""
    IN_STOCK = "in_stock"
    LISTED = "listed"
    SOLD = "sold"
    SHIPPED = "shipped"


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class AuthenticatedUser:
    """User resolved from a bearer token by the auth service."""
    id: UserId
    email: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
