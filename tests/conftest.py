"""Pytest configuration and fixtures."""

import asyncio
import os
from dataclasses import replace
from typing import Dict, List, Optional

import httpx
import pytest

os.environ.setdefault("SUPABASE_URL", "https://project.supabase.test")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key-for-tests")
os.environ.setdefault("IMPORT_API_TOKEN", "test-token")

from catalog_sync.api.woocommerce_client import CatalogFetchResult, RejectedEntry
from catalog_sync.models.catalog import LocalCatalogRecord, RemoteCatalogItem
from catalog_sync.services import catalog_importer
from catalog_sync.services.asset_migrator import AssetMigrator
from catalog_sync.services.catalog_importer import CatalogImporter
from catalog_sync.utils.exceptions import PersistenceError

TENANT = "org-1"


def woo_product(name: str, sku: str = "", **overrides) -> dict:
    """A WooCommerce ``wc/v3`` product dict with sensible defaults."""
    product = {
        "id": abs(hash((name, sku))) % 100000,
        "name": name,
        "slug": "",
        "sku": sku,
        "status": "publish",
        "description": f"<p>{name}</p>",
        "short_description": "",
        "regular_price": "10.00",
        "price": "10.00",
        "sale_price": "",
        "stock_quantity": 5,
        "stock_status": "instock",
        "manage_stock": True,
        "images": [],
        "categories": [{"id": 1, "name": "Mugs"}],
        "attributes": [{"id": 1, "name": "Color", "options": ["Red", "Blue"]}],
    }
    product.update(overrides)
    return product


def make_item(name: str, sku: str = "", **overrides) -> RemoteCatalogItem:
    return RemoteCatalogItem.from_dict(woo_product(name, sku, **overrides))


class FakeRepository:
    """In-memory product table."""

    def __init__(self, fail_on: Optional[set] = None):
        self.records: Dict[str, LocalCatalogRecord] = {}
        self.fail_on = fail_on or set()
        self.inserts = 0
        self.updates = 0
        self._next_id = 1

    def seed(self, record: LocalCatalogRecord) -> LocalCatalogRecord:
        record = replace(record, id=str(self._next_id))
        self._next_id += 1
        self.records[record.id] = record
        return record

    async def find_by_tenant_and_sku(self, tenant_id: str, sku: str):
        await asyncio.sleep(0)
        return next(
            (r for r in self.records.values() if r.tenant_id == tenant_id and r.sku == sku),
            None
        )

    async def find_by_tenant_and_name(self, tenant_id: str, name: str):
        await asyncio.sleep(0)
        return next(
            (r for r in self.records.values() if r.tenant_id == tenant_id and r.name == name),
            None
        )

    async def insert(self, record: LocalCatalogRecord) -> str:
        await asyncio.sleep(0)
        if record.name in self.fail_on:
            raise PersistenceError("Insert failed (HTTP 500): boom")
        self.inserts += 1
        return self.seed(record).id

    async def update(self, record_id: str, record: LocalCatalogRecord) -> None:
        await asyncio.sleep(0)
        if record.name in self.fail_on:
            raise PersistenceError("Update failed (HTTP 500): boom")
        self.updates += 1
        existing = self.records[record_id]
        self.records[record_id] = replace(record, id=record_id, slug=existing.slug, tenant_id=existing.tenant_id)


class FakeStorage:
    """Object storage that tracks how many uploads run at once."""

    def __init__(self, fail_on: Optional[set] = None, delay: float = 0):
        self.fail_on = fail_on or set()
        self.delay = delay
        self.stored: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def store(self, tenant_id: str, filename: str, data: bytes, content_type: str) -> str:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if data in self.fail_on:
                raise RuntimeError("storage unavailable")
            path = f"{tenant_id}/{filename}"
            self.stored.append(path)
            return f"https://cdn.test/{path}"
        finally:
            self.in_flight -= 1


class FakeInvalidator:
    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    async def invalidate(self, tenant_id: str, path: str) -> None:
        self.calls.append((tenant_id, path))
        if self.fail:
            raise RuntimeError("revalidation hook down")


class FakeSource:
    """Catalog source returning a fixed list of items."""

    def __init__(self, items: List[RemoteCatalogItem], warnings: Optional[List[str]] = None, error: Exception = None,
                 rejected: Optional[List[RejectedEntry]] = None):
        self.items = items
        self.warnings = warnings or []
        self.rejected = rejected or []
        self.error = error
        self.closed = False

    async def fetch_all_pages(self) -> CatalogFetchResult:
        if self.error:
            raise self.error
        return CatalogFetchResult(items=list(self.items), warnings=list(self.warnings), rejected=list(self.rejected))

    async def close(self):
        self.closed = True


def image_transport(fail_urls: Optional[set] = None) -> httpx.MockTransport:
    """Serves a small PNG for every URL except ``fail_urls`` (404)."""
    fail_urls = fail_urls or set()

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) in fail_urls:
            return httpx.Response(404)
        return httpx.Response(200, content=str(request.url).encode(), headers={"content-type": "image/png"})

    return httpx.MockTransport(handler)


@pytest.fixture(autouse=True)
def no_batch_pause(monkeypatch):
    """Batches run back to back in tests."""
    monkeypatch.setattr(catalog_importer, "BATCH_PAUSE_SECONDS", 0)


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def invalidator():
    return FakeInvalidator()


@pytest.fixture
def import_request():
    return {
        "target_url": "https://shop.example.com",
        "credential_key": "ck_test",
        "credential_secret": "cs_test",
        "overwrite_existing": False,
    }


@pytest.fixture
def build_importer(repository, storage, invalidator):
    """Factory: ``build_importer(source)`` → CatalogImporter wired to fakes."""

    def _build(source: FakeSource, repo: FakeRepository = None) -> CatalogImporter:
        migrator = AssetMigrator(storage, http_client=httpx.AsyncClient(transport=image_transport()))
        return CatalogImporter(
            repo or repository,
            storage,
            invalidator,
            source_factory=lambda request: source,
            asset_migrator=migrator,
        )

    return _build
