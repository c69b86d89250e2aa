"""SQLAlchemy Declarative Base - shared by every ORM model and by alembic autogenerate."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all MarketDesk ORM models."""
    pass
