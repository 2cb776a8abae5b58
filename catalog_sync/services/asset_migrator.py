"""Re-host remote product images into tenant object storage."""

import asyncio
import mimetypes
import secrets
from typing import List, Optional
from urllib.parse import urlparse

import httpx

from .ports import ObjectStorage
from ..utils.config import get_config
from ..utils.exceptions import AssetStorageError
from ..utils.logger import get_import_logger

MAX_IMAGES_PER_ITEM = 20
MIGRATION_WINDOW = 3


class AssetMigrator:
    """
    Copies images into object storage, a few at a time.

    A failed image keeps its original remote URL, so the returned list always
    has the same length as the (capped) input.
    """

    def __init__(self, storage: ObjectStorage, http_client: Optional[httpx.AsyncClient] = None):
        config = get_config()
        self.storage = storage
        self.logger = get_import_logger()
        self.max_image_bytes = config.assets.max_image_bytes
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(
            timeout=config.assets.download_timeout,
            follow_redirects=True,
            headers={"User-Agent": "Catalog-Sync/1.0"},
        )

    async def migrate(self, image_urls: List[str], tenant_id: str, item_slug: str) -> List[str]:
        """
        Re-host up to ``MAX_IMAGES_PER_ITEM`` images, ``MIGRATION_WINDOW`` at a time.

        Args:
            image_urls: Remote image URLs in display order
            tenant_id: Owner of the storage folder
            item_slug: Used as the filename prefix

        Returns:
            New URLs in input order; failed entries keep the remote URL.
        """
        urls = list(image_urls)[:MAX_IMAGES_PER_ITEM]
        migrated: List[str] = []

        for start in range(0, len(urls), MIGRATION_WINDOW):
            window = urls[start:start + MIGRATION_WINDOW]
            migrated.extend(await asyncio.gather(
                *(self._migrate_one(url, tenant_id, item_slug) for url in window)
            ))

        return migrated

    async def _migrate_one(self, url: str, tenant_id: str, item_slug: str) -> str:
        try:
            data, content_type = await self._download(url)
            filename = f"{item_slug}-{secrets.token_hex(4)}{_extension_for(content_type, url)}"
            return await self.storage.store(tenant_id, filename, data, content_type)
        except Exception as e:
            self.logger.warning(f"Keeping remote image {url} for {item_slug}: {str(e) or type(e).__name__}")
            return url

    async def _download(self, url: str):
        """
        Fetch image bytes.

        Raises:
            AssetStorageError: On error status, non-image body or oversize file.
        """
        async with self.http.stream("GET", url) as response:
            if response.status_code != 200:
                raise AssetStorageError(f"Image download failed (HTTP {response.status_code})", details={"url": url})

            content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
            if not content_type.startswith("image/"):
                raise AssetStorageError(f"Not an image ({content_type or 'no content type'})", details={"url": url})

            declared = response.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > self.max_image_bytes:
                raise self._too_large(url, int(declared))

            chunks = []
            size = 0
            async for chunk in response.aiter_bytes():
                size += len(chunk)
                if size > self.max_image_bytes:
                    raise self._too_large(url, size)
                chunks.append(chunk)

        return b"".join(chunks), content_type

    def _too_large(self, url: str, size: int) -> AssetStorageError:
        return AssetStorageError(
            f"Image too large ({size} bytes)",
            details={"url": url, "limit": self.max_image_bytes}
        )

    async def close(self):
        if self._owns_client:
            await self.http.aclose()


def _extension_for(content_type: str, url: str) -> str:
    """File extension from the content type, else from the URL path."""
    if content_type == "image/jpeg":
        return ".jpg"
    ext = mimetypes.guess_extension(content_type)
    if ext:
        return ext
    path = urlparse(url).path
    if "." in path.rsplit("/", 1)[-1]:
        return "." + path.rsplit(".", 1)[-1].lower()
    return ""
