"""Root conftest - shared test configuration."""

import os

# Ensure tests never pick up real credentials
os.environ.setdefault("EBAY_CLIENT_ID", "test-client-id")
os.environ.setdefault("EBAY_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("SUPABASE_URL", "https://supabase.test")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
