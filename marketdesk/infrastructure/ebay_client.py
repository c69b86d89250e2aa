"""eBay Marketplace Client - Browse API search with narrow rate-limit retry and pricing summary.

Invariants:
    - Only the rate-limit error id in the response envelope is retried; every other
      HTTP status, network error or unreadable error body is an immediate UpstreamError
    - At most max_attempts rate-limited attempts; waits are 1000, 2000, 4000, 8000, 16000ms
      by default, and the last wait is followed by RateLimitExceeded
    - Every attempt of one call reuses the token obtained before the first attempt
    - EbayAuthError from the token cache propagates unchanged
    - Image search is a single attempt: any failure (rate limit included) is UpstreamError
    - A failed call never yields a partial SearchSummary

Design Decisions:
    - Wrapper over a shared httpx.AsyncClient: retry logic isolated from routes
    - No jitter: the backoff sequence is fixed and observable
    - sleep and clock injectable: tests assert the exact backoff sequence without waiting
    - Optional deadline (monotonic seconds): the loop gives up with DeadlineExceeded
      rather than start a wait that would end past it
"""

import asyncio
import base64
import logging
import time
from collections.abc import Awaitable, Callable, Sequence

import httpx

from marketdesk.core.errors import (
    DeadlineExceeded, ErrorContext, RateLimitExceeded, UpstreamError,
)
from marketdesk.core.pricing import SearchSummary, summarize_listings
from marketdesk.core.retry_state import RetryState, is_rate_limited
from marketdesk.infrastructure.ebay_token_cache import EbayTokenCache

logger = logging.getLogger(__name__)

ACTIVE_LISTING_FILTER = "buyingOptions:{FIXED_PRICE},condition:{USED,NEW}"
DEFAULT_LIMIT = 100


class EbayMarketplaceClient:
    """Keyword and image search against the eBay Browse API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        token_cache: EbayTokenCache,
        *,
        search_url: str,
        image_search_url: str,
        marketplace_id: str = "EBAY_US",
        max_attempts: int = 5,
        initial_backoff_ms: int = 1000,
        rate_limit_error_ids: Sequence[str] = ("10001",),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._http = http
        self._tokens = token_cache
        self._search_url = search_url
        self._image_search_url = image_search_url
        self._marketplace_id = marketplace_id
        self.max_attempts = max_attempts
        self.initial_backoff_ms = initial_backoff_ms
        self._rate_limit_ids = tuple(str(e) for e in rate_limit_error_ids)
        self._sleep = sleep
        self._clock = clock

    async def search_active(
        self,
        query: str,
        limit: int = DEFAULT_LIMIT,
        deadline: float | None = None,
    ) -> SearchSummary:
        """Fetch fixed-price new/used listings for query and summarize their prices."""
        token = await self._tokens.get_token()
        params = {
            "q": query,
            "limit": str(limit),
            "filter": ACTIVE_LISTING_FILTER,
        }
        response = await self._get_with_retry(params, token, deadline)
        body = self._json_body(response)
        summary = self._summarize(body)
        logger.info(
            f"Active listings found: {summary.total_count}",
            extra={"query": query, "item_count": len(summary.items)},
        )
        return summary

    async def search_by_image(self, image_bytes: bytes) -> SearchSummary:
        """Single-attempt image search; same summary contract as search_active."""
        token = await self._tokens.get_token()
        payload = {"image": base64.b64encode(image_bytes).decode("ascii")}
        try:
            response = await self._http.post(
                self._image_search_url,
                json=payload,
                headers=self._headers(token),
            )
        except httpx.HTTPError as e:
            logger.error(f"eBay image search network error: {e}")
            raise UpstreamError(str(e), "ebay_browse") from e
        if not response.is_success:
            logger.error(
                f"eBay image search failed: HTTP {response.status_code}",
                extra={"upstream_status": response.status_code},
            )
            raise UpstreamError(
                f"HTTP {response.status_code}", "ebay_browse",
                status_code=response.status_code,
            )
        return self._summarize(self._json_body(response))

    async def _get_with_retry(
        self, params: dict, token: str, deadline: float | None,
    ) -> httpx.Response:
        state = RetryState.initial(self.max_attempts, self.initial_backoff_ms)
        while True:
            state = state.requesting()
            response = await self._get_once(params, token)
            if response.is_success:
                state = state.succeeded()
                if state.attempt:
                    logger.info(
                        "eBay search succeeded after rate limiting",
                        extra={"attempt": state.attempt + 1},
                    )
                return response

            if not self._is_rate_limited(response):
                state = state.failed()
                logger.error(
                    f"eBay search failed: HTTP {response.status_code}",
                    extra={
                        "upstream_status": response.status_code,
                        "attempt": state.attempt + 1,
                    },
                )
                raise UpstreamError(
                    f"HTTP {response.status_code}", "ebay_browse",
                    status_code=response.status_code,
                )

            state = state.rate_limited()
            if deadline is not None:
                if self._clock() + state.backoff_ms / 1000 > deadline:
                    raise DeadlineExceeded(
                        state.attempt + 1,
                        context=ErrorContext(upstream_status=response.status_code),
                    )
            logger.warning(
                f"Rate limit exceeded, retrying in {state.backoff_ms}ms",
                extra={"attempt": state.attempt + 1, "backoff_ms": state.backoff_ms},
            )
            await self._sleep(state.backoff_ms / 1000)
            state = state.after_backoff()
            if state.exhausted:
                logger.error("Max retries reached. Could not fetch eBay data.")
                raise RateLimitExceeded(
                    state.attempt,
                    context=ErrorContext(upstream_status=response.status_code),
                )

    async def _get_once(self, params: dict, token: str) -> httpx.Response:
        try:
            return await self._http.get(
                self._search_url, params=params, headers=self._headers(token),
            )
        except httpx.HTTPError as e:
            logger.error(f"eBay search network error: {e}")
            raise UpstreamError(str(e), "ebay_browse") from e

    def _is_rate_limited(self, response: httpx.Response) -> bool:
        try:
            payload = response.json()
        except ValueError:
            return False
        return is_rate_limited(payload, self._rate_limit_ids)

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "X-EBAY-C-MARKETPLACE-ID": self._marketplace_id,
        }

    @staticmethod
    def _json_body(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError(
                "response body is not JSON", "ebay_browse",
                status_code=response.status_code,
            ) from e
        # Non-object JSON carries no fields we read; treat like an empty result.
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _summarize(body: dict) -> SearchSummary:
        items = body.get("itemSummaries")
        if not isinstance(items, list):
            logger.warning("No item summaries found in the response")
            items = []
        total = body.get("total")
        if isinstance(total, bool) or not isinstance(total, int):
            total = 0
        return summarize_listings(items, total)
