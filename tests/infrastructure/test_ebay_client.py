"""Tests for EbayMarketplaceClient - narrow rate-limit retry, backoff sequence, aggregation.

Invariants under test:
    - Rate-limit signal on every attempt -> 5 attempts, waits 1,2,4,8,16s, RateLimitExceeded
    - Any other failure on the first attempt -> UpstreamError, zero retries
    - One token per call, reused across retries
    - Image search is single-attempt
"""

import base64
import json
from decimal import Decimal

import httpx
import pytest

from marketdesk.core.errors import (
    DeadlineExceeded, EbayAuthError, RateLimitExceeded, UpstreamError,
)
from marketdesk.infrastructure.ebay_client import (
    ACTIVE_LISTING_FILTER, EbayMarketplaceClient,
)

SEARCH_URL = "https://api.ebay.test/buy/browse/v1/item_summary/search"
IMAGE_URL = "https://api.ebay.test/buy/browse/v1/item_summary/search_by_image"

RATE_LIMITED = {
    "errors": [{
        "errorId": 10001, "domain": "API_BROWSE", "category": "REQUEST",
        "message": "The request limit has been reached for the resource.",
    }],
}


class FakeTokens:
    def __init__(self, tokens=("tok-1",)):
        self._tokens = list(tokens)
        self.calls = 0

    async def get_token(self) -> str:
        self.calls += 1
        return self._tokens[min(self.calls, len(self._tokens)) - 1]


class FailingTokens:
    async def get_token(self) -> str:
        raise EbayAuthError("HTTP 401")


def _listing(price, **extra):
    return {"itemId": f"v1|{price}|0", "price": {"value": price, "currency": "USD"}, **extra}


def _scripted(responses):
    """Handler replaying `responses` in order; records each request."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        r = responses[min(len(requests), len(responses)) - 1]
        if isinstance(r, Exception):
            raise r
        return r

    return handler, requests


def _client(handler, tokens=None, sleep=None, clock=None, **kwargs):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    extra = {}
    if sleep is not None:
        extra["sleep"] = sleep
    if clock is not None:
        extra["clock"] = clock
    return EbayMarketplaceClient(
        http,
        tokens or FakeTokens(),
        search_url=SEARCH_URL,
        image_search_url=IMAGE_URL,
        **extra,
        **kwargs,
    )


# ==============================================================================
# Keyword search - success path
# ==============================================================================


async def test_summary_scenario_with_unparseable_price(sleep):
    handler, _ = _scripted([httpx.Response(200, json={
        "total": 50,
        "itemSummaries": [_listing("100.00"), _listing("200.00"), _listing("bad")],
    })])
    summary = await _client(handler, sleep=sleep).search_active("iphone")

    assert summary.total_count == 50
    assert summary.average_price == Decimal("150.00")
    assert summary.highest_price == Decimal("200.00")
    assert summary.lowest_price == Decimal("100.00")
    assert len(summary.items) == 3
    assert sleep.delays == []


async def test_empty_result_scenario(sleep):
    handler, _ = _scripted([httpx.Response(200, json={"total": 0, "itemSummaries": []})])
    summary = await _client(handler, sleep=sleep).search_active("nothing")
    assert summary.total_count == 0
    assert summary.average_price == summary.highest_price == summary.lowest_price == 0


async def test_missing_item_summaries_is_empty_not_error(sleep):
    handler, _ = _scripted([httpx.Response(200, json={"total": 12, "href": "x"})])
    summary = await _client(handler, sleep=sleep).search_active("rare")
    assert summary.items == []
    assert summary.total_count == 12
    assert summary.average_price == 0


async def test_missing_total_defaults_to_zero(sleep):
    handler, _ = _scripted([httpx.Response(200, json={"itemSummaries": [_listing("5.00")]})])
    summary = await _client(handler, sleep=sleep).search_active("x")
    assert summary.total_count == 0
    assert summary.average_price == Decimal("5.00")


async def test_request_carries_query_limit_filter_and_bearer(sleep):
    handler, requests = _scripted([httpx.Response(200, json={"total": 0})])
    await _client(handler, sleep=sleep).search_active("lego 10179", limit=25)

    request = requests[0]
    assert request.method == "GET"
    assert request.url.params["q"] == "lego 10179"
    assert request.url.params["limit"] == "25"
    assert request.url.params["filter"] == ACTIVE_LISTING_FILTER
    assert request.headers["authorization"] == "Bearer tok-1"
    assert request.headers["x-ebay-c-marketplace-id"] == "EBAY_US"


async def test_default_limit_is_100(sleep):
    handler, requests = _scripted([httpx.Response(200, json={"total": 0})])
    await _client(handler, sleep=sleep).search_active("iphone")
    assert requests[0].url.params["limit"] == "100"


# ==============================================================================
# Keyword search - rate-limit retry
# ==============================================================================


async def test_rate_limited_every_attempt_exhausts_after_five(sleep):
    handler, requests = _scripted([httpx.Response(429, json=RATE_LIMITED)])
    client = _client(handler, sleep=sleep)

    with pytest.raises(RateLimitExceeded) as exc:
        await client.search_active("iphone")

    assert len(requests) == 5
    assert sleep.delays == [1.0, 2.0, 4.0, 8.0, 16.0]
    assert exc.value.attempts == 5
    assert exc.value.http_status == 429


async def test_recovers_after_rate_limits_reusing_same_token(sleep):
    tokens = FakeTokens(["tok-1", "tok-2"])
    handler, requests = _scripted([
        httpx.Response(429, json=RATE_LIMITED),
        httpx.Response(429, json=RATE_LIMITED),
        httpx.Response(200, json={"total": 1, "itemSummaries": [_listing("9.99")]}),
    ])
    summary = await _client(handler, tokens=tokens, sleep=sleep).search_active("x")

    assert summary.average_price == Decimal("9.99")
    assert len(requests) == 3
    assert sleep.delays == [1.0, 2.0]
    assert tokens.calls == 1
    assert {r.headers["authorization"] for r in requests} == {"Bearer tok-1"}


async def test_finding_style_envelope_also_retried(sleep):
    finding = {"errorMessage": [{"error": [{"errorId": ["10001"]}]}]}
    handler, requests = _scripted([
        httpx.Response(500, json=finding),
        httpx.Response(200, json={"total": 0}),
    ])
    await _client(handler, sleep=sleep).search_active("x")
    assert len(requests) == 2
    assert sleep.delays == [1.0]


async def test_custom_attempts_and_backoff(sleep):
    handler, requests = _scripted([httpx.Response(429, json=RATE_LIMITED)])
    client = _client(handler, sleep=sleep, max_attempts=3, initial_backoff_ms=250)
    with pytest.raises(RateLimitExceeded):
        await client.search_active("x")
    assert len(requests) == 3
    assert sleep.delays == [0.25, 0.5, 1.0]


# ==============================================================================
# Keyword search - non-retryable failures
# ==============================================================================


async def test_server_error_fails_immediately(sleep):
    handler, requests = _scripted([httpx.Response(500, json={"errors": [{"errorId": 12000}]})])
    with pytest.raises(UpstreamError) as exc:
        await _client(handler, sleep=sleep).search_active("x")
    assert len(requests) == 1
    assert sleep.delays == []
    assert exc.value.status_code == 500


async def test_429_without_rate_limit_code_is_not_retried(sleep):
    handler, requests = _scripted([httpx.Response(429, text="slow down")])
    with pytest.raises(UpstreamError):
        await _client(handler, sleep=sleep).search_active("x")
    assert len(requests) == 1
    assert sleep.delays == []


async def test_network_error_fails_immediately(sleep):
    handler, requests = _scripted([httpx.ConnectError("boom")])
    with pytest.raises(UpstreamError):
        await _client(handler, sleep=sleep).search_active("x")
    assert len(requests) == 1
    assert sleep.delays == []


async def test_non_json_success_body_is_upstream_error(sleep):
    handler, _ = _scripted([httpx.Response(200, text="<html>maintenance</html>")])
    with pytest.raises(UpstreamError):
        await _client(handler, sleep=sleep).search_active("x")


async def test_auth_error_propagates_without_search_call(sleep):
    handler, requests = _scripted([httpx.Response(200, json={"total": 0})])
    with pytest.raises(EbayAuthError):
        await _client(handler, tokens=FailingTokens(), sleep=sleep).search_active("x")
    assert requests == []


# ==============================================================================
# Deadline
# ==============================================================================


async def test_deadline_shorter_than_first_backoff_stops_after_one_attempt(clock, sleep):
    handler, requests = _scripted([httpx.Response(429, json=RATE_LIMITED)])
    client = _client(handler, sleep=sleep, clock=clock)

    with pytest.raises(DeadlineExceeded) as exc:
        await client.search_active("x", deadline=clock.now + 0.5)
    assert len(requests) == 1
    assert sleep.delays == []
    assert exc.value.attempts == 1


async def test_deadline_allows_waits_that_fit(clock, sleep):
    handler, requests = _scripted([httpx.Response(429, json=RATE_LIMITED)])
    client = _client(handler, sleep=sleep, clock=clock)

    # 1s + 2s fit in 5s; the 4s wait would end at 7s
    with pytest.raises(DeadlineExceeded) as exc:
        await client.search_active("x", deadline=clock.now + 5)
    assert sleep.delays == [1.0, 2.0]
    assert len(requests) == 3
    assert exc.value.attempts == 3


# ==============================================================================
# Image search
# ==============================================================================


async def test_image_search_posts_base64_payload(sleep):
    handler, requests = _scripted([httpx.Response(200, json={
        "total": 2, "itemSummaries": [_listing("30"), _listing("10")],
    })])
    summary = await _client(handler, sleep=sleep).search_by_image(b"\x89PNGdata")

    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == IMAGE_URL
    assert json.loads(request.content) == {"image": base64.b64encode(b"\x89PNGdata").decode()}
    assert request.headers["authorization"] == "Bearer tok-1"
    assert request.headers["x-ebay-c-marketplace-id"] == "EBAY_US"
    assert summary.average_price == Decimal("20.00")
    assert summary.total_count == 2


async def test_image_search_rate_limit_is_not_retried(sleep):
    handler, requests = _scripted([httpx.Response(429, json=RATE_LIMITED)])
    with pytest.raises(UpstreamError):
        await _client(handler, sleep=sleep).search_by_image(b"img")
    assert len(requests) == 1
    assert sleep.delays == []


async def test_image_search_network_error(sleep):
    handler, _ = _scripted([httpx.ReadTimeout("slow")])
    with pytest.raises(UpstreamError):
        await _client(handler, sleep=sleep).search_by_image(b"img")
