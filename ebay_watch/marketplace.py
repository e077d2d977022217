# ebay_watch/marketplace.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx

from ebay_watch.config import Settings, settings as default_settings
from ebay_watch.errors import AuthError, ConfigError, SearchError
from ebay_watch.schemas import DEFAULT_MAX_RESULTS, MAX_RESULTS_CAP, Listing, SearchCriteria

logger = logging.getLogger(__name__)

ENDING_SOON_WINDOW = timedelta(hours=1)
PRICE_CEILING = 999999
TOKEN_DEFAULT_TTL = 7200
TOKEN_EXPIRY_MARGIN = 60

# Browse API condition ids for the common names people type into the form
CONDITION_IDS = {
    "new": "1000",
    "open box": "1500",
    "refurbished": "2000",
    "used": "3000",
    "for parts": "7000",
}


@dataclass
class AccessToken:
    value: str
    expires_at: float

    def is_valid(self, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.time()) < self.expires_at


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _number(value: Any) -> Optional[str]:
    """Render a criteria number for the filter grammar; None when unset."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = float(value)
        except ValueError:
            return value
    if isinstance(value, (int, float)):
        if not value:
            return None
        return str(int(value)) if float(value).is_integer() else str(value)
    return None


def _limit(max_results: Any) -> int:
    try:
        requested = int(float(max_results))
    except (TypeError, ValueError, OverflowError):
        requested = 0
    if requested <= 0:
        requested = DEFAULT_MAX_RESULTS
    return min(requested, MAX_RESULTS_CAP)


def _condition_ids(condition: Any) -> Optional[str]:
    if condition is None or condition == "":
        return None
    parts = condition if isinstance(condition, (list, tuple)) else str(condition).split("|")
    ids = []
    for p in parts:
        p = str(p).strip()
        if p:
            ids.append(CONDITION_IDS.get(p.lower(), p))
    return "|".join(ids) or None


def build_filter(criteria: SearchCriteria, now: datetime) -> str:
    end = now + ENDING_SOON_WINDOW
    clauses = [f"itemEndDate:[{_iso(now)}..{_iso(end)}]"]

    if criteria.category not in (None, ""):
        clauses.append(f"categoryId:{criteria.category}")

    conditions = _condition_ids(criteria.condition)
    if conditions:
        clauses.append(f"conditionIds:{{{conditions}}}")

    lo, hi = _number(criteria.min_price), _number(criteria.max_price)
    if lo is not None or hi is not None:
        clauses.append(f"price:[{lo or 0}..{hi or PRICE_CEILING}]")

    min_bids = _number(criteria.min_bids)
    if min_bids is not None:
        clauses.append(f"bidCount:[{min_bids}..]")

    return ",".join(clauses)


def build_search_params(criteria: SearchCriteria, now: datetime) -> dict[str, Any]:
    return {
        "q": _text(criteria.keyword) or "",
        "limit": _limit(criteria.max_results),
        "sort": "endTime",
        "filter": build_filter(criteria, now),
    }


def _dig(obj: Any, *path: Any) -> Any:
    for key in path:
        if isinstance(key, int):
            if not isinstance(obj, list) or len(obj) <= key:
                return None
            obj = obj[key]
        elif isinstance(obj, dict):
            obj = obj.get(key)
        else:
            return None
    return obj


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _scalar(value: Any, default: Any) -> Any:
    if not value:
        return default
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return value
    return str(value)


def _bids(value: Any) -> int:
    try:
        return int(value) if value else 0
    except (TypeError, ValueError, OverflowError):
        return 0


def normalize(raw_items: Any) -> list[Listing]:
    if not isinstance(raw_items, (list, tuple)):
        raw_items = []
    listings = []
    for item in raw_items:
        if not isinstance(item, dict):
            item = {}
        listings.append(
            Listing(
                title=_text(item.get("title")),
                price=_scalar(_dig(item, "price", "value"), "N/A"),
                bids=_bids(item.get("bidCount")),
                end_time=_text(item.get("itemEndDate")),
                condition=_text(item.get("condition")) or "Unknown",
                url=_text(item.get("itemWebUrl")),
                image=_text(_dig(item, "image", "imageUrl")),
                seller=_text(_dig(item, "seller", "username")),
                shipping=_scalar(_dig(item, "shippingOptions", 0, "shippingCost", "value"), "Free"),
            )
        )
    return listings


def _error_payload(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text or None


class EbayClient:
    def __init__(self, cfg: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cfg = cfg or default_settings
        self._transport = transport
        self._token: Optional[AccessToken] = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.cfg.HTTP_TIMEOUT, transport=self._transport)

    def invalidate_token(self) -> None:
        self._token = None

    async def get_access_token(self) -> str:
        if self._token and self._token.is_valid():
            return self._token.value

        if not self.cfg.has_ebay_credentials:
            raise ConfigError("EBAY_CLIENT_ID / EBAY_CLIENT_SECRET are not configured")

        try:
            async with self._client() as client:
                r = await client.post(
                    self.cfg.EBAY_OAUTH_URL,
                    data={"grant_type": "client_credentials", "scope": self.cfg.EBAY_OAUTH_SCOPE},
                    auth=(self.cfg.EBAY_CLIENT_ID, self.cfg.EBAY_CLIENT_SECRET),
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
                r.raise_for_status()
                body = r.json()
        except httpx.HTTPStatusError as e:
            payload = _error_payload(e.response)
            logger.error("Error getting eBay access token: %s", payload)
            raise AuthError(f"token exchange failed with HTTP {e.response.status_code}: {payload}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error getting eBay access token: %s", e)
            raise AuthError(f"token exchange failed: {e}") from e

        value = body.get("access_token") if isinstance(body, dict) else None
        if not value:
            raise AuthError(f"token response without access_token: {body}")
        try:
            ttl = float(body.get("expires_in") or TOKEN_DEFAULT_TTL)
        except (TypeError, ValueError):
            ttl = TOKEN_DEFAULT_TTL
        self._token = AccessToken(value, time.time() + ttl - TOKEN_EXPIRY_MARGIN)
        return value

    def _headers(self, token: str) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        if self.cfg.EBAY_MARKETPLACE_ID:
            headers["X-EBAY-C-MARKETPLACE-ID"] = self.cfg.EBAY_MARKETPLACE_ID
        return headers

    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        url = f"{self.cfg.EBAY_API_BASE}{path}"
        try:
            async with self._client() as client:
                r = await client.get(url, params=params, headers=self._headers(await self.get_access_token()))
                if r.status_code == 401:
                    # stale token: refresh once
                    self.invalidate_token()
                    r = await client.get(url, params=params, headers=self._headers(await self.get_access_token()))
                r.raise_for_status()
                return r.json()
        except httpx.HTTPStatusError as e:
            payload = _error_payload(e.response)
            logger.error("eBay request %s failed: %s", path, payload)
            raise SearchError(
                f"eBay request failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
                payload=payload,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("eBay request %s failed: %s", path, e)
            raise SearchError(f"eBay request failed: {e}") from e

    async def search_ending_soon(self, criteria: SearchCriteria) -> list[Listing]:
        params = build_search_params(criteria, datetime.now(timezone.utc))
        logger.debug("search params: %s", params)
        data = await self._get("/item_summary/search", params=params)
        items = data.get("itemSummaries") if isinstance(data, dict) else None
        return normalize(items)

    async def get_item_details(self, item_id: str) -> dict[str, Any]:
        return await self._get(f"/item/{item_id}")
