"""Route test fixtures - async DB + FastAPI test client with faked adapters.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db is overridden to use the test session factory
    - Every adapter dependency is replaced by an in-memory fake
    - Bearer "token-<user>" resolves to user id "<user>"; anything else is 401
"""

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

import marketdesk.models  # noqa: F401
from marketdesk.api.dependencies import (
    get_image_store, get_marketplace, get_spreadsheet, get_token_provider,
    get_user_directory,
)
from marketdesk.core.domain_types import AuthenticatedUser
from marketdesk.core.errors import AuthRejectedError, UnauthorizedError
from marketdesk.core.pricing import SearchSummary, summarize_listings
from marketdesk.db.base import Base
from marketdesk.infrastructure.database import get_db
from marketdesk.main import app


class FakeMarketplace:
    def __init__(self):
        self.summary = SearchSummary(
            total_count=0, average_price=Decimal("0.00"),
            highest_price=Decimal("0.00"), lowest_price=Decimal("0.00"), items=[],
        )
        self.error: Exception | None = None
        self.calls: list[tuple] = []

    async def search_active(self, query, limit=100, deadline=None):
        self.calls.append(("active", query, limit, deadline))
        if self.error:
            raise self.error
        return self.summary

    async def search_by_image(self, image_bytes):
        self.calls.append(("image", image_bytes))
        if self.error:
            raise self.error
        return self.summary

    def returns(self, items, total):
        self.summary = summarize_listings(items, total)


class FakeTokens:
    def __init__(self):
        self.error: Exception | None = None

    async def get_token(self):
        if self.error:
            raise self.error
        return "app-token"


class FakeUsers:
    def __init__(self):
        self.registered: list[dict] = []

    async def resolve(self, access_token):
        if not access_token.startswith("token-"):
            raise UnauthorizedError()
        user_id = access_token.removeprefix("token-")
        return AuthenticatedUser(id=user_id, email=f"{user_id}@example.com")

    async def sign_up(self, email, password, username=None, display_name=None):
        if any(u["email"] == email for u in self.registered):
            raise AuthRejectedError("User already registered")
        user = {"id": f"id-{len(self.registered) + 1}", "email": email,
                "user_metadata": {"username": username, "display_name": display_name}}
        self.registered.append(user)
        return user

    async def sign_in(self, email, password):
        if password != "correct-horse":
            raise AuthRejectedError("Invalid login credentials")
        return {"user": {"id": "u1", "email": email},
                "session": {"access_token": "token-u1", "token_type": "bearer"}}


class FakeImages:
    def __init__(self):
        self.uploads: list[tuple] = []
        self.error: Exception | None = None

    async def upload(self, filename, content, content_type):
        if self.error:
            raise self.error
        self.uploads.append((filename, content, content_type))
        return f"https://cdn.test/images/{filename}"


class FakeSheets:
    def __init__(self):
        self.cells = {"G2:H2": [["Average", "42.10"]]}
        self.appended: list[list[str]] = []
        self.error: Exception | None = None

    async def read_range(self, a1_range):
        if self.error:
            raise self.error
        return self.cells.get(a1_range, [])

    async def append_rows(self, rows):
        if self.error:
            raise self.error
        start = max(len(self.appended) + 3, 3)
        self.appended.extend(rows)
        return {"updated_rows": len(rows), "start_row": start if rows else None}


@pytest.fixture
async def test_engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def fakes():
    return {
        "marketplace": FakeMarketplace(),
        "tokens": FakeTokens(),
        "users": FakeUsers(),
        "images": FakeImages(),
        "sheets": FakeSheets(),
    }


@pytest.fixture
async def client(test_session_factory, fakes):
    """FastAPI test client with DB and adapters overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_marketplace] = lambda: fakes["marketplace"]
    app.dependency_overrides[get_token_provider] = lambda: fakes["tokens"]
    app.dependency_overrides[get_user_directory] = lambda: fakes["users"]
    app.dependency_overrides[get_image_store] = lambda: fakes["images"]
    app.dependency_overrides[get_spreadsheet] = lambda: fakes["sheets"]

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer token-alice"}
