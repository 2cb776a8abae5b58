"""WooCommerce → local catalog import run.

Flow:
  1. Validate the request (no network I/O before this passes).
  2. Fetch every catalog page (fatal on connection / format errors).
  3. Process items in batches of ``BATCH_SIZE``; items of a batch run
     concurrently, batches run one after another with a short pause.
  4. Per item: resolve identity → skip, or migrate images and insert/update.
  5. Invalidate the tenant's catalog listing and return the outcome.
"""

import asyncio
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Union, Any

from .asset_migrator import AssetMigrator
from .identity import IdentityResolver, Resolution, ResolutionAction, slug_for_insert
from .ports import CacheInvalidator, CatalogRepository, CatalogSource, ObjectStorage
from .stock import normalize_stock
from ..api.woocommerce_client import WooCommerceClient
from ..models.catalog import ImportRequest, LocalCatalogRecord, RemoteCatalogItem
from ..models.import_result import ImportOutcome, ResultAggregator
from ..utils.config import get_config
from ..utils.exceptions import BaseAppException, CatalogValidationError
from ..utils.logger import get_import_logger, get_error_logger

BATCH_SIZE = 5
BATCH_PAUSE_SECONDS = 0.2


class CatalogImporter:
    """Runs one bounded import of a remote catalog into a tenant's products."""

    def __init__(
        self,
        repository: CatalogRepository,
        storage: ObjectStorage,
        invalidator: CacheInvalidator,
        source_factory: Callable[[ImportRequest], CatalogSource] = WooCommerceClient,
        asset_migrator: Optional[AssetMigrator] = None,
    ):
        self.config = get_config()
        self.logger = get_import_logger()
        self.error_logger = get_error_logger()
        self.repository = repository
        self.invalidator = invalidator
        self.source_factory = source_factory
        self.asset_migrator = asset_migrator or AssetMigrator(storage)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, request: Union[ImportRequest, Dict[str, Any]], tenant_id: str) -> ImportOutcome:
        """
        Import the whole remote catalog for ``tenant_id``.

        Raises:
            CatalogValidationError: Malformed request or tenant.
            CatalogConnectionError: The remote catalog could not be read.
            CatalogFormatError: The remote catalog answered with garbage.
                Single unreadable entries are item errors, not fatal.
        """
        if not isinstance(request, ImportRequest):
            request = ImportRequest.parse(request)
        if not tenant_id or not str(tenant_id).strip():
            raise CatalogValidationError("Missing tenant id")

        self.logger.info("=" * 60)
        self.logger.info(f"Catalog import for tenant {tenant_id} from {request.base_url}")
        self.logger.info("=" * 60)

        aggregator = ResultAggregator()

        source = self.source_factory(request)
        try:
            fetched = await source.fetch_all_pages()
        finally:
            await source.close()

        for warning in fetched.warnings:
            aggregator.add_warning(warning)
        aggregator.set_total(fetched.total)
        for entry in fetched.rejected:
            self.error_logger.error(f"Import error for catalog entry {entry.label}: {entry.reason}")
            aggregator.record_error(entry.label, entry.reason)
        self.logger.info(f"Fetched {fetched.total} products ({len(fetched.rejected)} unreadable)")

        resolver = IdentityResolver(self.repository, request.overwrite_existing)
        locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        batches = _batches(fetched.items, BATCH_SIZE)

        for index, batch in enumerate(batches, 1):
            await asyncio.gather(*(
                self._process_item(item, tenant_id, resolver, aggregator, locks)
                for item in batch
            ))
            self.logger.info(f"  Batch {index}/{len(batches)} done")

            if index < len(batches):
                await asyncio.sleep(BATCH_PAUSE_SECONDS)

        await self._invalidate_listing(tenant_id)

        outcome = aggregator.snapshot()
        self.logger.info(
            f"Import finished — imported:{outcome.imported} updated:{outcome.updated} "
            f"skipped:{outcome.skipped} failed:{outcome.failed} total:{outcome.total} "
            f"({outcome.duration:.2f}s)"
        )
        return outcome

    # ------------------------------------------------------------------
    # Per item
    # ------------------------------------------------------------------

    async def _process_item(
        self,
        item: RemoteCatalogItem,
        tenant_id: str,
        resolver: IdentityResolver,
        aggregator: ResultAggregator,
        locks: Dict[str, asyncio.Lock],
    ):
        """Import one item; any failure is recorded and never escapes."""
        try:
            # Items sharing a SKU must see each other's inserts.
            if item.sku:
                async with locks[f"sku:{item.sku}"]:
                    await self._import_item(item, tenant_id, resolver, aggregator, locks)
            else:
                await self._import_item(item, tenant_id, resolver, aggregator, locks)
        except Exception as e:
            reason = e.message if isinstance(e, BaseAppException) else (str(e) or type(e).__name__)
            self.logger.error(f"  ✗ {item.name} (id {item.external_id}): {reason}")
            self.error_logger.error(f"Import error for {item.name} (id {item.external_id}): {reason}")
            aggregator.record_error(item.name, reason)

    async def _import_item(
        self,
        item: RemoteCatalogItem,
        tenant_id: str,
        resolver: IdentityResolver,
        aggregator: ResultAggregator,
        locks: Dict[str, asyncio.Lock],
    ):
        resolution = await resolver.resolve(item, tenant_id)

        if resolution.action == ResolutionAction.SKIP:
            self.logger.debug(f"  Skipping existing product: {item.name}")
            aggregator.record_skipped()
            return

        if resolution.action == ResolutionAction.INSERT:
            record = await self._build_record(item, tenant_id, slug_for_insert(item))
            record_id = await self.repository.insert(record)
            aggregator.record_imported()
            self.logger.debug(f"  + {item.name} → {record_id}")
            return

        await self._update_existing(item, tenant_id, resolution, aggregator, locks)

    async def _update_existing(
        self,
        item: RemoteCatalogItem,
        tenant_id: str,
        resolution: Resolution,
        aggregator: ResultAggregator,
        locks: Dict[str, asyncio.Lock],
    ):
        existing = resolution.existing
        async with locks[f"id:{existing.id}"]:
            record = await self._build_record(item, tenant_id, existing.slug)
            await self.repository.update(existing.id, record)
        aggregator.record_updated()
        self.logger.debug(f"  ~ {item.name} → {existing.id}")

    async def _build_record(self, item: RemoteCatalogItem, tenant_id: str, slug: str) -> LocalCatalogRecord:
        images = await self.asset_migrator.migrate(list(item.images), tenant_id, slug)
        return LocalCatalogRecord.from_remote(
            item,
            tenant_id=tenant_id,
            slug=slug,
            images=images,
            stock=normalize_stock(item),
        )

    # ------------------------------------------------------------------
    # Listing invalidation
    # ------------------------------------------------------------------

    async def _invalidate_listing(self, tenant_id: str):
        path = self.config.server.catalog_listing_path
        try:
            await self.invalidator.invalidate(tenant_id, path)
        except Exception as e:
            self.logger.warning(f"Could not invalidate {path} for tenant {tenant_id}: {str(e)}")

    async def close(self):
        await self.asset_migrator.close()


def _batches(items: List[RemoteCatalogItem], size: int) -> List[List[RemoteCatalogItem]]:
    return [items[i:i + size] for i in range(0, len(items), size)]
