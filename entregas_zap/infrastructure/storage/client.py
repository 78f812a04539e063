"""
Supabase Storage client
Uploads package photos and returns their public URL
"""
import time
from typing import Optional
from urllib.parse import quote, unquote, urlparse

import httpx
import structlog

from entregas_zap.config import settings

logger = structlog.get_logger()


class SupabaseStorageClient:
    """Client for the Supabase Storage REST API (one bucket)"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        service_key: Optional[str] = None,
        bucket: Optional[str] = None,
        folder: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.service_key = service_key or settings.supabase_service_key
        self.bucket = bucket or settings.storage_bucket
        self.folder = folder or settings.storage_folder
        self.headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }
        self._transport = transport

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{quote(self.bucket)}/{quote(path)}"

    def _object_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{quote(self.bucket)}/{quote(path)}"

    async def upload_photo(
        self,
        content: bytes,
        filename: str,
        prefix: str = "entrega",
        content_type: str = "image/jpeg",
    ) -> Optional[str]:
        """
        Upload a photo

        Args:
            content: Raw image bytes
            filename: Original file name (only the extension is kept)
            prefix: Prefix for the stored name, e.g. "entrega"

        Returns:
            Public URL of the photo, or None when the upload failed
        """
        extension = filename.rsplit(".", 1)[-1] if "." in filename else "jpg"
        path = f"{self.folder}/{prefix}-{int(time.time() * 1000)}.{extension}"

        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                response = await client.post(
                    self._object_url(path),
                    headers={
                        **self.headers,
                        "Content-Type": content_type,
                        "cache-control": "3600",
                        "x-upsert": "false",
                    },
                    content=content,
                )

            if response.status_code >= 400:
                logger.error("photo_upload_rejected", path=path, status=response.status_code, body=response.text[:500])
                return None

        except httpx.HTTPError as e:
            logger.error("photo_upload_failed", path=path, error=str(e))
            return None

        url = self.public_url(path)
        logger.info("photo_uploaded", path=path, size=len(content), url=url)
        return url

    async def delete_photo(self, photo_url: str) -> bool:
        """Delete a photo given its public URL"""
        marker = f"/{self.bucket}/"
        url_path = unquote(urlparse(photo_url).path)
        if marker not in url_path:
            logger.warning("photo_url_outside_bucket", url=photo_url, bucket=self.bucket)
            return False
        path = url_path.split(marker, 1)[1]

        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                response = await client.request(
                    "DELETE",
                    f"{self.base_url}/storage/v1/object/{quote(self.bucket)}",
                    headers=self.headers,
                    json={"prefixes": [path]},
                )
        except httpx.HTTPError as e:
            logger.error("photo_delete_failed", path=path, error=str(e))
            return False

        if response.status_code >= 400:
            logger.error("photo_delete_rejected", path=path, status=response.status_code)
            return False

        return True


_client: Optional[SupabaseStorageClient] = None


def get_storage_client() -> SupabaseStorageClient:
    global _client
    if _client is None:
        _client = SupabaseStorageClient()
    return _client
