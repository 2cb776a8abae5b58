"""Collaborators the importer talks to, described as protocols."""

from typing import Optional, Protocol, runtime_checkable

from ..api.woocommerce_client import CatalogFetchResult
from ..models.catalog import LocalCatalogRecord


@runtime_checkable
class CatalogSource(Protocol):
    async def fetch_all_pages(self) -> CatalogFetchResult:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class CatalogRepository(Protocol):
    async def find_by_tenant_and_sku(self, tenant_id: str, sku: str) -> Optional[LocalCatalogRecord]:
        ...

    async def find_by_tenant_and_name(self, tenant_id: str, name: str) -> Optional[LocalCatalogRecord]:
        ...

    async def insert(self, record: LocalCatalogRecord) -> str:
        ...

    async def update(self, record_id: str, record: LocalCatalogRecord) -> None:
        ...


@runtime_checkable
class ObjectStorage(Protocol):
    async def store(self, tenant_id: str, filename: str, data: bytes, content_type: str) -> str:
        ...


@runtime_checkable
class CacheInvalidator(Protocol):
    async def invalidate(self, tenant_id: str, path: str) -> None:
        ...
