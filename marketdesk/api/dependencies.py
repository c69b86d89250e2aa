"""Request Dependencies - hand the lifespan-built adapters to routes.

Invariants:
    - Adapters live on app.state, built once per process in the lifespan
    - get_current_user rejects missing/invalid bearer tokens with UnauthorizedError (401)
    - Tests replace any of these via app.dependency_overrides
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from marketdesk.core.domain_types import AuthenticatedUser
from marketdesk.core.errors import UnauthorizedError
from marketdesk.core.repository_protocols import (
    ImageStore, MarketplaceSearch, SpreadsheetGateway, TokenProvider, UserDirectory,
)

_bearer = HTTPBearer(auto_error=False)


def get_marketplace(request: Request) -> MarketplaceSearch:
    return request.app.state.marketplace


def get_token_provider(request: Request) -> TokenProvider:
    return request.app.state.ebay_tokens


def get_user_directory(request: Request) -> UserDirectory:
    return request.app.state.users


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.images


def get_spreadsheet(request: Request) -> SpreadsheetGateway:
    return request.app.state.sheets


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    users: UserDirectory = Depends(get_user_directory),
) -> AuthenticatedUser:
    """Resolve the caller's bearer token to a user."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing token")
    return await users.resolve(credentials.credentials)
