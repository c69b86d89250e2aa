"""Infrastructure Layer - adapters for eBay, Supabase, Google Sheets, the database and logging."""
