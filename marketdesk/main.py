"""MarketDesk API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map MarketDeskError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - One httpx.AsyncClient, one EbayTokenCache, one EbayMarketplaceClient per process,
      built in the lifespan and closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event
    - Adapters published on app.state and reached through api/dependencies.py
"""

import logging
from contextlib import asynccontextmanager
from functools import partial

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketdesk.api.error_handlers import register_error_handlers
from marketdesk.api.routes import auth, health, inventory, search, sheets
from marketdesk.config import Settings, get_settings
from marketdesk.infrastructure.database import init_db
from marketdesk.infrastructure.ebay_client import EbayMarketplaceClient
from marketdesk.infrastructure.ebay_token_cache import EbayTokenCache
from marketdesk.infrastructure.google_sheets import GoogleSheetsGateway, open_worksheet
from marketdesk.infrastructure.observability import setup_logging
from marketdesk.infrastructure.supabase_auth import SupabaseUserDirectory
from marketdesk.infrastructure.supabase_storage import SupabaseImageStore

logger = logging.getLogger(__name__)


def build_adapters(app: FastAPI, settings: Settings, http: httpx.AsyncClient) -> None:
    """Construct the IO adapters and publish them on app.state."""
    tokens = EbayTokenCache(
        http,
        client_id=settings.ebay_client_id,
        client_secret=settings.ebay_client_secret,
        auth_url=settings.ebay_auth_url,
        scope=settings.ebay_scope,
    )
    app.state.ebay_tokens = tokens
    app.state.marketplace = EbayMarketplaceClient(
        http,
        tokens,
        search_url=settings.ebay_search_url,
        image_search_url=settings.ebay_image_search_url,
        marketplace_id=settings.ebay_marketplace_id,
        max_attempts=settings.ebay_max_attempts,
        initial_backoff_ms=settings.ebay_initial_backoff_ms,
        rate_limit_error_ids=settings.ebay_rate_limit_error_ids,
    )
    app.state.users = SupabaseUserDirectory(
        http, base_url=settings.supabase_url, api_key=settings.supabase_anon_key,
    )
    app.state.images = SupabaseImageStore(
        http,
        base_url=settings.supabase_url,
        service_key=settings.supabase_service_key,
        bucket=settings.supabase_bucket,
    )
    app.state.sheets = GoogleSheetsGateway(
        partial(
            open_worksheet,
            settings.google_service_account_file,
            settings.spreadsheet_id,
            settings.spreadsheet_worksheet,
        ),
        first_data_row=settings.spreadsheet_first_data_row,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    async with httpx.AsyncClient(timeout=settings.ebay_timeout_seconds) as http:
        build_adapters(app, settings, http)
        logger.info("MarketDesk API started")
        yield
        logger.info("MarketDesk API shutting down")
    await db.dispose()


app = FastAPI(title="MarketDesk API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(search.router)
app.include_router(auth.router)
app.include_router(inventory.router)
app.include_router(sheets.router)

register_error_handlers(app)
