"""Structured Logging - JSON formatter and setup for production observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (attempt, backoff_ms, error_code, ...) surfaced when present
    - Bearer and Basic credentials never reach the log stream, even inside upstream error text
    - JSON format in production, human-readable in development

Design Decisions:
    - setup_logging called once on startup via lifespan
"""

import logging
import json
import re
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "error_code", "path", "attempt", "backoff_ms", "upstream_status",
    "expires_in", "query", "item_count", "user_id", "item_id",
)

_CREDENTIAL = re.compile(r"\b(Bearer|Basic)\s+\S+", re.IGNORECASE)


def redact_credentials(text: str) -> str:
    """Mask Authorization header values (eBay app token, Supabase JWT, client secret)."""
    return _CREDENTIAL.sub(r"\1 [REDACTED]", text)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact_credentials(record.getMessage()),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = redact_credentials(self.formatException(record.exc_info))
        return json.dumps(log, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines for development, with the same credential masking."""

    def format(self, record: logging.LogRecord) -> str:
        return redact_credentials(super().format(record))


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Install a single root handler; calling again replaces it."""
    for existing in list(logging.root.handlers):
        logging.root.removeHandler(existing)
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
