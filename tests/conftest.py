"""
Shared fixtures for the eBay Watch test suite.
"""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from ebay_watch.config import Settings
from ebay_watch.storage import CriteriaStore

OAUTH_URL = "https://auth.test/oauth2/token"
API_BASE = "https://api.test/buy/browse/v1"


@pytest.fixture
def cfg(tmp_path):
    """Settings isolated from the environment and any local .env file."""
    return Settings(
        _env_file=None,
        EBAY_CLIENT_ID="client-id",
        EBAY_CLIENT_SECRET="client-secret",
        EBAY_OAUTH_URL=OAUTH_URL,
        EBAY_API_BASE=API_BASE,
        EMAIL_USER="monitor@example.com",
        EMAIL_PASS="secret",
        ADMIN_EMAIL=None,
        CRITERIA_FILE=str(tmp_path / "search-criteria.json"),
    )


@pytest.fixture
def store(cfg):
    return CriteriaStore(cfg=cfg)


@pytest.fixture
def raw_item():
    """A Browse API item summary ending in 30 minutes."""

    def make(**overrides):
        item = {
            "itemId": "v1|123|0",
            "title": "Canon AE-1 Program camera",
            "price": {"value": "125.50", "currency": "USD"},
            "bidCount": 3,
            "itemEndDate": (datetime.now(timezone.utc) + timedelta(minutes=30)).isoformat(),
            "condition": "Used",
            "itemWebUrl": "https://www.ebay.com/itm/123",
            "image": {"imageUrl": "https://i.ebayimg.com/123.jpg"},
            "seller": {"username": "camera_shop"},
            "shippingOptions": [{"shippingCost": {"value": "9.99", "currency": "USD"}}],
        }
        item.update(overrides)
        return item

    return make


class FakeEbay:
    """httpx.MockTransport handler standing in for the OAuth and Browse endpoints."""

    def __init__(self, items=None, search_status=200, search_body=None, oauth_status=200, expires_in=7200):
        self.items = items or []
        self.search_status = search_status
        self.search_body = search_body
        self.oauth_status = oauth_status
        self.expires_in = expires_in
        self.token_calls = 0
        self.search_requests: list[httpx.Request] = []
        self.reject_tokens: set[str] = set()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == OAUTH_URL:
            self.token_calls += 1
            if self.oauth_status != 200:
                return httpx.Response(self.oauth_status, json={"error": "invalid_client"})
            return httpx.Response(200, json={"access_token": f"token-{self.token_calls}", "expires_in": self.expires_in})

        self.search_requests.append(request)
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        if token in self.reject_tokens:
            return httpx.Response(401, json={"errors": [{"message": "Invalid access token"}]})
        if self.search_status != 200:
            return httpx.Response(self.search_status, json=self.search_body)
        if request.url.path.endswith("/item_summary/search"):
            return httpx.Response(200, json={"total": len(self.items), "itemSummaries": self.items})
        return httpx.Response(200, json={"itemId": request.url.path.rsplit("/", 1)[-1]})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def fake_ebay():
    return FakeEbay
