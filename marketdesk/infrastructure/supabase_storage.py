"""Supabase Storage - uploads inventory images and returns their public URL.

Invariants:
    - Object path is images/{epoch_ms}-{filename}; uploads upsert
    - Returned URL points at the bucket's public object endpoint
    - Any failure is StorageError
"""

import logging
import time
from collections.abc import Callable
from urllib.parse import quote

import httpx

from marketdesk.core.errors import StorageError

logger = logging.getLogger(__name__)


class SupabaseImageStore:
    """Image store backed by a public Supabase Storage bucket."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        base_url: str,
        service_key: str,
        bucket: str,
        clock_ms: Callable[[], int] = lambda: int(time.time() * 1000),
    ):
        self._http = http
        self._base = base_url.rstrip("/")
        self._service_key = service_key
        self._bucket = bucket
        self._clock_ms = clock_ms

    def public_url(self, path: str) -> str:
        return f"{self._base}/storage/v1/object/public/{self._bucket}/{path}"

    async def upload(self, filename: str, content: bytes, content_type: str | None) -> str:
        path = f"images/{self._clock_ms()}-{quote(filename or 'upload')}"
        try:
            response = await self._http.post(
                f"{self._base}/storage/v1/object/{self._bucket}/{path}",
                content=content,
                headers={
                    "Authorization": f"Bearer {self._service_key}",
                    "apikey": self._service_key,
                    "Content-Type": content_type or "application/octet-stream",
                    "x-upsert": "true",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Image upload network error: {e}")
            raise StorageError(str(e)) from e
        if not response.is_success:
            logger.error(
                f"Image upload rejected: {response.text[:500]}",
                extra={"upstream_status": response.status_code},
            )
            raise StorageError(f"HTTP {response.status_code}")
        return self.public_url(path)
