"""eBay Token Cache - one cached client-credentials bearer token per process.

Invariants:
    - A token is returned only while clock() < expires_at; expired tokens are never handed out
    - CachedToken is frozen: value and expires_at are replaced together in one assignment
    - Only a successful exchange writes the cache; a failed exchange leaves it untouched
    - Every exchange failure surfaces as EbayAuthError, never retried here

Design Decisions:
    - Injectable instance built once in the lifespan (no module-level token dict)
    - No lock: concurrent refreshes on expiry may each call eBay, and the last write wins
    - clock is injectable (monotonic seconds) so expiry is testable without sleeping
"""

import base64
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from marketdesk.core.errors import EbayAuthError, ErrorContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedToken:
    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


def basic_auth_header(client_id: str, client_secret: str) -> str:
    raw = f"{client_id}:{client_secret}".encode()
    return "Basic " + base64.b64encode(raw).decode("ascii")


class EbayTokenCache:
    """Issues a valid eBay application token, refreshing only when needed."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        client_id: str,
        client_secret: str,
        auth_url: str,
        scope: str,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._http = http
        self._client_id = client_id
        self._client_secret = client_secret
        self._auth_url = auth_url
        self._scope = scope
        self._clock = clock
        self._cached: CachedToken | None = None

    @property
    def cached(self) -> CachedToken | None:
        return self._cached

    def invalidate(self) -> None:
        self._cached = None

    async def get_token(self) -> str:
        """Return the cached token if unexpired, else exchange credentials for a new one."""
        cached = self._cached
        if cached is not None and cached.is_valid(self._clock()):
            logger.debug("Using cached eBay token")
            return cached.value

        logger.info("Fetching new eBay token")
        token = await self._exchange()
        self._cached = token
        logger.info(
            "eBay token acquired",
            extra={"expires_in": round(token.expires_at - self._clock())},
        )
        return token.value

    async def _exchange(self) -> CachedToken:
        try:
            response = await self._http.post(
                self._auth_url,
                data={"grant_type": "client_credentials", "scope": self._scope},
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Authorization": basic_auth_header(
                        self._client_id, self._client_secret,
                    ),
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"eBay token exchange network error: {e}")
            raise EbayAuthError(f"network error: {e}") from e

        if not response.is_success:
            logger.error(
                f"eBay token exchange rejected: {response.text[:500]}",
                extra={"upstream_status": response.status_code},
            )
            raise EbayAuthError(
                f"HTTP {response.status_code}",
                context=ErrorContext(upstream_status=response.status_code),
            )

        try:
            body = response.json()
            value = body["access_token"]
            expires_in = float(body.get("expires_in", 0))
        except (ValueError, KeyError, TypeError) as e:
            raise EbayAuthError(f"malformed token response: {e}") from e

        if not isinstance(value, str) or not value:
            raise EbayAuthError("malformed token response: empty access_token")
        return CachedToken(value=value, expires_at=self._clock() + expires_in)
