"""Object storage integration for scan images.

Talks to the storage REST API: upload an object, sign a time-limited read
URL, remove objects. Paths are relative to the configured bucket.
"""
from typing import Sequence
from urllib.parse import quote

import httpx
import structlog

from styloren.config import settings
from styloren.exceptions import StorageError

logger = structlog.get_logger(__name__)


class ObjectStorageClient:
    """Async client for a single storage bucket."""

    REQUEST_TIMEOUT_SECONDS = 30

    def __init__(
        self,
        base_url: str | None = None,
        service_key: str | None = None,
        bucket: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.storage_url).rstrip("/")
        self.service_key = service_key if service_key is not None else settings.storage_service_key
        self.bucket = bucket or settings.storage_bucket
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.REQUEST_TIMEOUT_SECONDS,
            headers=self._headers(),
            transport=self._transport,
        )

    async def upload(self, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        """
        Store a blob at ``path``; never overwrites an existing object.

        Returns:
            The stored path
        """
        url = f"{self.base_url}/object/{self.bucket}/{quote(path)}"

        try:
            async with self._client() as client:
                response = await client.post(
                    url,
                    content=data,
                    headers={"Content-Type": content_type, "x-upsert": "false"},
                )
        except httpx.HTTPError as e:
            logger.error("storage_upload_failed", path=path, error=str(e))
            raise StorageError(f"Upload failed: {e}") from e

        if response.status_code >= 400:
            logger.error("storage_upload_rejected", path=path, status_code=response.status_code)
            raise StorageError(f"Upload rejected with status {response.status_code}")

        logger.info("storage_uploaded", path=path, size=len(data))
        return path

    async def create_signed_url(self, path: str, expires_in: int | None = None) -> str:
        """Get a time-limited read URL for ``path``."""
        expires_in = expires_in or settings.signed_url_expiry_seconds
        url = f"{self.base_url}/object/sign/{self.bucket}/{quote(path)}"

        try:
            async with self._client() as client:
                response = await client.post(url, json={"expiresIn": expires_in})
        except httpx.HTTPError as e:
            raise StorageError(f"Signing failed: {e}") from e

        if response.status_code >= 400:
            raise StorageError(f"Signing rejected with status {response.status_code}")

        try:
            signed_path = response.json()["signedURL"]
        except (ValueError, KeyError) as e:
            raise StorageError("Storage returned an unexpected signing response") from e

        if signed_path.startswith("http"):
            return signed_path
        return f"{self.base_url}{signed_path}"

    async def remove(self, paths: Sequence[str]) -> None:
        """Delete objects; an empty list is a no-op."""
        if not paths:
            return

        try:
            async with self._client() as client:
                response = await client.request(
                    "DELETE",
                    f"{self.base_url}/object/{self.bucket}",
                    json={"prefixes": list(paths)},
                )
        except httpx.HTTPError as e:
            raise StorageError(f"Removal failed: {e}") from e

        if response.status_code >= 400:
            raise StorageError(f"Removal rejected with status {response.status_code}")

        logger.info("storage_removed", count=len(paths))
