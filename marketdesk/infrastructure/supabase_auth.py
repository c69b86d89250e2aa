"""Supabase Auth - GoTrue REST calls for sign-up, sign-in and bearer resolution.

Invariants:
    - resolve() never returns a user for a rejected token (UnauthorizedError instead)
    - sign_up/sign_in rejections surface the service's message as AuthRejectedError
    - Network failures are UpstreamError, never retried
"""

import logging

import httpx

from marketdesk.core.domain_types import AuthenticatedUser
from marketdesk.core.errors import (
    AuthRejectedError, UnauthorizedError, UpstreamError,
)

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


def _json(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError as e:
        raise UpstreamError(
            "response body is not JSON", "supabase_auth",
            status_code=response.status_code,
        ) from e
    return body if isinstance(body, dict) else {}


class SupabaseUserDirectory:
    """User directory backed by the Supabase auth REST API."""

    def __init__(self, http: httpx.AsyncClient, *, base_url: str, api_key: str):
        self._http = http
        self._base = base_url.rstrip("/") + "/auth/v1"
        self._api_key = api_key

    async def resolve(self, access_token: str) -> AuthenticatedUser:
        """Resolve a user bearer token to the user it belongs to."""
        response = await self._request(
            "GET", "/user",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if not response.is_success:
            raise UnauthorizedError()
        body = _json(response)
        if not body.get("id"):
            raise UnauthorizedError()
        return AuthenticatedUser(
            id=str(body["id"]),
            email=body.get("email"),
            metadata=body.get("user_metadata") or {},
        )

    async def sign_up(
        self,
        email: str,
        password: str,
        username: str | None = None,
        display_name: str | None = None,
    ) -> dict:
        response = await self._request(
            "POST", "/signup",
            json={
                "email": email,
                "password": password,
                "data": {"username": username, "display_name": display_name},
            },
        )
        if not response.is_success:
            raise AuthRejectedError(_error_message(response))
        body = _json(response)
        logger.info("User registered")
        # Depending on email confirmation settings, the user is top-level or nested.
        return body.get("user", body)

    async def sign_in(self, email: str, password: str) -> dict:
        response = await self._request(
            "POST", "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if not response.is_success:
            raise AuthRejectedError(_error_message(response))
        body = _json(response)
        return {
            "user": body.get("user"),
            "session": {
                "access_token": body.get("access_token"),
                "refresh_token": body.get("refresh_token"),
                "expires_in": body.get("expires_in"),
                "token_type": body.get("token_type", "bearer"),
            },
        }

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = {"apikey": self._api_key, **kwargs.pop("headers", {})}
        try:
            return await self._http.request(
                method, self._base + path, headers=headers, **kwargs,
            )
        except httpx.HTTPError as e:
            logger.error(f"Supabase auth network error: {e}")
            raise UpstreamError(str(e), "supabase_auth") from e
