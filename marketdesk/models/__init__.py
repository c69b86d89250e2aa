"""ORM Models - SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)
    - Every model is imported here so Base.metadata is complete for alembic and tests
"""

from marketdesk.models.inventory_item import InventoryItem  # noqa: F401
