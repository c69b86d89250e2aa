"""Error Hierarchy - typed, categorized exceptions for all MarketDesk failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400-level) are recoverable; upstream/infrastructure errors are not
    - to_response() produces the REST envelope
    - No credentials or tokens in user-facing messages

Design Decisions:
    - Single hierarchy with MarketDeskError base: the FastAPI global handler catches all
    - The three eBay failures (auth, rate limit, upstream) are distinct classes so callers
      can tell "try later" from "credentials broken" from "eBay broken"
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    RATE_LIMIT = "rate_limit"
    INTERNAL = "internal"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    upstream: str | None = None
    upstream_status: int | None = None
    attempts: int | None = None
    debug_info: dict[str, Any] | None = None


class MarketDeskError(Exception):
    """Base exception for all MarketDesk errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "upstream": self.context.upstream,
                    "upstream_status": self.context.upstream_status,
                    "attempts": self.context.attempts,
                },
            }
        }


# ─── Client Errors (400-level) ──────────────────────────────────

class ValidationFailedError(MarketDeskError):
    """Request input rejected after schema validation (missing file, bad CSV)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class UnauthorizedError(MarketDeskError):
    """Bearer token missing, invalid or expired."""
    def __init__(self, message: str = "Invalid or expired token", context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class AuthRejectedError(MarketDeskError):
    """Sign-up or sign-in refused by the auth service."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "AUTH_REJECTED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 400,
        )


class ResourceNotFoundError(MarketDeskError):
    """Requested resource does not exist (or is not owned by the caller)."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── eBay Errors ────────────────────────────────────────────────

class EbayAuthError(MarketDeskError):
    """Client-credentials exchange with eBay failed. Not retried."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.upstream = ctx.upstream or "ebay_oauth"
        super().__init__(
            f"eBay authentication failed: {message}",
            "EBAY_AUTH_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 502,
        )


class RateLimitExceeded(MarketDeskError):
    """eBay kept answering with the rate-limit signal until attempts ran out."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.upstream = ctx.upstream or "ebay_browse"
        ctx.attempts = attempts
        super().__init__(
            f"eBay rate limit exceeded after {attempts} attempts",
            "EBAY_RATE_LIMITED", ErrorCategory.RATE_LIMIT,
            ErrorSeverity.WARNING, ctx, 429,
        )
        self.attempts = attempts


class DeadlineExceeded(MarketDeskError):
    """Next backoff wait would overrun the caller's deadline."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.upstream = ctx.upstream or "ebay_browse"
        ctx.attempts = attempts
        super().__init__(
            f"Deadline reached after {attempts} rate-limited attempts",
            "DEADLINE_EXCEEDED", ErrorCategory.TIMEOUT,
            ErrorSeverity.WARNING, ctx, 504,
        )
        self.attempts = attempts


# ─── Upstream / Infrastructure Errors ───────────────────────────

class UpstreamError(MarketDeskError):
    """Upstream call failed with a non-retryable status or network error."""
    def __init__(
        self,
        message: str,
        upstream: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.upstream = upstream
        ctx.upstream_status = status_code
        super().__init__(
            f"{upstream} request failed: {message}",
            "UPSTREAM_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 502,
        )
        self.status_code = status_code


class StorageError(MarketDeskError):
    """Image upload to object storage failed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.upstream = "storage"
        super().__init__(
            f"Image upload failed: {message}",
            "STORAGE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )


class SpreadsheetError(MarketDeskError):
    """Google Sheets read or append failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.upstream = "google_sheets"
        super().__init__(
            f"Spreadsheet {operation} failed: {message}",
            "SPREADSHEET_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.operation = operation


class DatabaseError(MarketDeskError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
