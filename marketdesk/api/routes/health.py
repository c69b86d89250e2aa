"""Health & Readiness Probes.

Invariants:
    - GET /health/ always returns 200 if the process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable (readiness)
    - GET /health/ebay returns 503 if an eBay token cannot be obtained; the token is never echoed
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from marketdesk.api.dependencies import get_token_provider
from marketdesk.core.errors import EbayAuthError
from marketdesk.core.repository_protocols import TokenProvider
import marketdesk.infrastructure.database as database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe."""
    return {
        "status": "healthy",
        "service": "marketdesk-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe - includes database connectivity."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}


@router.get("/ebay")
async def ebay_auth_check(tokens: TokenProvider = Depends(get_token_provider)):
    """Confirms the eBay credentials can mint an application token."""
    try:
        await tokens.get_token()
    except EbayAuthError as e:
        logger.warning(f"eBay auth check failed: {e.message}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "ebay_auth_failed"},
        )
    return {"status": "ready", "checks": {"ebay_auth": "healthy"}}
