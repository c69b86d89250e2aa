"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) - single instance per process
    - eBay retry knobs default to 5 attempts starting at 1000ms

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings, including the public eBay endpoints
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


_ASYNC_SCHEMES = ("postgresql://", "postgres://")


def async_database_url(url: str) -> str:
    """Rewrite a plain Postgres URL (as hosted Postgres hands it out) to the asyncpg driver."""
    for scheme in _ASYNC_SCHEMES:
        if url.startswith(scheme):
            return "postgresql+asyncpg://" + url[len(scheme):]
    return url


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database (Supabase-hosted Postgres in production)
    database_url: str = (
        "postgresql+asyncpg://marketdesk:marketdesk@db:5432/marketdesk"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        return async_database_url(v) if isinstance(v, str) else v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # eBay
    ebay_client_id: str = "ebay-client-id-placeholder"
    ebay_client_secret: str = "ebay-client-secret-placeholder"
    ebay_auth_url: str = "https://api.ebay.com/identity/v1/oauth2/token"
    ebay_scope: str = "https://api.ebay.com/oauth/api_scope"
    ebay_search_url: str = (
        "https://api.ebay.com/buy/browse/v1/item_summary/search"
    )
    ebay_image_search_url: str = (
        "https://api.ebay.com/buy/browse/v1/item_summary/search_by_image"
    )
    ebay_marketplace_id: str = "EBAY_US"
    ebay_max_attempts: int = 5
    ebay_initial_backoff_ms: int = 1000
    ebay_timeout_seconds: float = 30.0
    ebay_rate_limit_error_ids: list[str] = ["10001"]

    # Supabase (auth + storage)
    supabase_url: str = "https://project.supabase.co"
    supabase_service_key: str = "supabase-service-key-placeholder"
    supabase_anon_key: str = "supabase-anon-key-placeholder"
    supabase_bucket: str = "inventory-images"

    # Google Sheets
    google_service_account_file: str = "googleSheetsCredentials.json"
    spreadsheet_id: str = ""
    spreadsheet_worksheet: str = "Sheet1"
    spreadsheet_summary_range: str = "G2:H2"
    spreadsheet_first_data_row: int = 3

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
