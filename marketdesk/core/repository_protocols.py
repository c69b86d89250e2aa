"""Boundary Protocols - contracts between routes/services and the IO adapters.

Invariants:
    - Routes depend on these Protocols, never on a concrete adapter class
    - Implementations are wired in the FastAPI lifespan and swapped in tests
      via app.dependency_overrides

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes need no inheritance
"""

from typing import Protocol

from marketdesk.core.domain_types import AuthenticatedUser
from marketdesk.core.pricing import SearchSummary


class MarketplaceSearch(Protocol):
    """Contract for marketplace listing search (eBay Browse)."""
    async def search_active(
        self, query: str, limit: int = 100, deadline: float | None = None,
    ) -> SearchSummary: ...
    async def search_by_image(self, image_bytes: bytes) -> SearchSummary: ...


class TokenProvider(Protocol):
    """Contract for the marketplace bearer-token cache."""
    async def get_token(self) -> str: ...


class UserDirectory(Protocol):
    """Contract for the hosted auth service."""
    async def resolve(self, access_token: str) -> AuthenticatedUser: ...
    async def sign_up(
        self,
        email: str,
        password: str,
        username: str | None = None,
        display_name: str | None = None,
    ) -> dict: ...
    async def sign_in(self, email: str, password: str) -> dict: ...


class ImageStore(Protocol):
    """Contract for public image storage."""
    async def upload(
        self, filename: str, content: bytes, content_type: str | None,
    ) -> str: ...


class SpreadsheetGateway(Protocol):
    """Contract for the sync spreadsheet."""
    async def read_range(self, a1_range: str) -> list[list[str]]: ...
    async def append_rows(self, rows: list[list[str]]) -> dict: ...
