"""Storefront cache invalidation after a catalog import."""

from typing import Optional

import httpx

from .base_client import BaseClient
from ..utils.config import get_config
from ..utils.logger import get_import_logger


class RevalidationWebhook(BaseClient):
    """POSTs ``{"tenant_id", "path"}`` to the storefront's revalidation hook."""

    def __init__(self, url: str, secret: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        headers = {"X-Revalidate-Secret": secret} if secret else None
        super().__init__(base_url=url, headers=headers, transport=transport)

    async def invalidate(self, tenant_id: str, path: str) -> None:
        response = await self.post(self.base_url, json={"tenant_id": tenant_id, "path": path})
        response.raise_for_status()
        self.logger.info(f"Revalidated {path} for tenant {tenant_id}")


class LoggingInvalidator:
    """Stand-in used when no revalidation hook is configured."""

    def __init__(self):
        self.logger = get_import_logger()

    async def invalidate(self, tenant_id: str, path: str) -> None:
        self.logger.info(f"No revalidation hook configured; {path} for tenant {tenant_id} not invalidated")

    async def close(self):
        pass


def create_invalidator():
    """Pick the invalidator for the current configuration."""
    config = get_config()
    if config.env.revalidate_url:
        return RevalidationWebhook(config.env.revalidate_url, config.env.revalidate_secret)
    return LoggingInvalidator()
