# ebay_watch/web/server.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Body, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ebay_watch.config import Settings, settings as default_settings
from ebay_watch.marketplace import EbayClient
from ebay_watch.schemas import Listing, SearchCriteria
from ebay_watch.storage import CriteriaStore

logger = logging.getLogger(__name__)

MOCK_NOTE = "Using mock data - configure eBay API credentials for real results"


def mock_listings(now: Optional[datetime] = None) -> list[dict[str, Any]]:
    now = now or datetime.now(timezone.utc)
    samples = [
        Listing(
            title="Vintage Camera - Canon AE-1 Program",
            price="125.50",
            bids="3",
            end_time=(now + timedelta(minutes=30)).isoformat(),
            condition="Used",
            url="https://www.ebay.com/itm/example1",
        ),
        Listing(
            title="iPhone 12 Pro Max 256GB",
            price="650.00",
            bids="7",
            end_time=(now + timedelta(minutes=45)).isoformat(),
            condition="New",
            url="https://www.ebay.com/itm/example2",
        ),
    ]
    return [l.to_json() for l in samples]


def create_app(
    store: Optional[CriteriaStore] = None,
    client: Optional[EbayClient] = None,
    cfg: Optional[Settings] = None,
) -> FastAPI:
    cfg = cfg or default_settings
    store = store or CriteriaStore(cfg=cfg)
    client = client or EbayClient(cfg)

    app = FastAPI(title="eBay Listing Monitor")
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.post("/api/save-criteria")
    async def save_criteria(criteria: dict[str, Any] = Body(...)):
        if store.save(criteria):
            return {"success": True, "message": "Criteria saved successfully"}
        return JSONResponse(status_code=500, content={"success": False, "message": "Failed to save criteria"})

    @app.get("/api/criteria")
    async def get_criteria():
        return store.load_raw()

    @app.post("/api/search")
    async def search(criteria: dict[str, Any] = Body(...)):
        if cfg.DEMO_MODE or not cfg.has_ebay_credentials:
            logger.warning("Demo mode or no eBay API credentials, using mock data")
            return {"success": True, "listings": mock_listings(), "criteria": criteria, "note": MOCK_NOTE}
        try:
            listings = await client.search_ending_soon(SearchCriteria.model_validate(criteria))
        except Exception as e:
            logger.exception("Search error")
            return JSONResponse(
                status_code=500,
                content={"success": False, "message": "Error searching listings", "error": str(e)},
            )
        return {"success": True, "listings": [l.to_json() for l in listings], "criteria": criteria}

    @app.get("/api/health")
    async def health():
        return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app
