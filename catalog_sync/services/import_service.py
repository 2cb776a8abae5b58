"""Caller-facing entry point for catalog imports."""

from contextlib import AsyncExitStack
from typing import Any, Dict, Optional

from .catalog_importer import CatalogImporter
from ..api.revalidation_client import create_invalidator
from ..api.supabase_client import SupabaseCatalogRepository, SupabaseObjectStorage
from ..api.woocommerce_client import WooCommerceClient
from ..models.catalog import ImportRequest
from ..models.import_result import ImportOutcome
from ..utils.config import get_config
from ..utils.exceptions import (
    CatalogConnectionError,
    CatalogFormatError,
    CatalogValidationError,
)
from ..utils.logger import get_import_logger, get_error_logger


class ImportService:
    """
    Wires the Supabase, storage and revalidation adapters into a
    ``CatalogImporter`` and turns fatal errors into a failed outcome.
    """

    def __init__(self):
        self.config = get_config()
        self.logger = get_import_logger()
        self.error_logger = get_error_logger()

    async def import_catalog(self, tenant_id: str, payload: Dict[str, Any]) -> ImportOutcome:
        """
        Run one import and always return an outcome.

        Args:
            tenant_id: Organization that owns the imported products
            payload: ``{target_url, credential_key, credential_secret, overwrite_existing}``

        Returns:
            ``ImportOutcome``; on a fatal error ``success`` is False and the
            error list holds only that error.
        """
        try:
            request = ImportRequest.parse(payload)
        except CatalogValidationError as e:
            self.logger.warning(f"Rejected import request for tenant {tenant_id}: {e.message}")
            return ImportOutcome.failure(e.message, type(e).__name__)

        try:
            # Adapters are closed in reverse order, including when a later one fails to build.
            async with AsyncExitStack() as stack:
                repository = SupabaseCatalogRepository()
                stack.push_async_callback(repository.close)
                storage = SupabaseObjectStorage()
                stack.push_async_callback(storage.close)
                invalidator = create_invalidator()
                stack.push_async_callback(invalidator.close)
                importer = CatalogImporter(repository, storage, invalidator)
                stack.push_async_callback(importer.close)

                outcome = await importer.run(request, tenant_id)

            if outcome.failed:
                self.logger.warning(f"Import for tenant {tenant_id} finished with {outcome.failed} failed items")
            return outcome

        except (CatalogValidationError, CatalogConnectionError, CatalogFormatError) as e:
            self.error_logger.error(f"Import for tenant {tenant_id} aborted: {e.message}", extra={"details": e.details})
            return ImportOutcome.failure(e.message, type(e).__name__)

        except Exception as e:
            self.error_logger.error(f"Critical import error for tenant {tenant_id}: {str(e)}", exc_info=True)
            return ImportOutcome.failure(f"Unexpected error: {str(e)}", type(e).__name__)

    async def test_connections(self, payload: Optional[Dict[str, Any]] = None) -> dict:
        """Test connectivity to Supabase and, when a request is given, the WooCommerce store."""
        self.logger.info("Testing API connections...")

        results = {
            "supabase": {"success": False, "error": None},
            "woocommerce": {"success": False, "error": None},
        }

        try:
            async with SupabaseCatalogRepository() as repository:
                await repository.check_connection()
                results["supabase"]["success"] = True
                self.logger.info("✓ Supabase connection successful")
        except Exception as e:
            results["supabase"]["error"] = str(e)
            self.logger.error(f"✗ Supabase connection failed: {str(e)}")

        if payload is None:
            results["woocommerce"]["error"] = "No store given"
            return results

        try:
            request = ImportRequest.parse(payload)
            async with WooCommerceClient(request) as client:
                await client.check_connection()
                results["woocommerce"]["success"] = True
                self.logger.info("✓ WooCommerce connection successful")
        except Exception as e:
            results["woocommerce"]["error"] = str(e)
            self.logger.error(f"✗ WooCommerce connection failed: {str(e)}")

        return results
