"""WooCommerce REST API client (``wc/v3``) for paging through a store catalog."""

from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from .base_client import BaseClient
from ..models.catalog import ImportRequest, RemoteCatalogItem
from ..utils.exceptions import CatalogConnectionError, CatalogFormatError

PRODUCTS_ENDPOINT = "/wp-json/wc/v3/products"
PAGE_SIZE = 100
MAX_PAGES = 10
PAGE_LIMIT_WARNING = (
    f"Page limit reached ({MAX_PAGES} pages / {MAX_PAGES * PAGE_SIZE} items); "
    "remaining products were not imported"
)


@dataclass
class RejectedEntry:
    """A catalog entry that could not be read as a product."""

    label: str
    reason: str


@dataclass
class CatalogFetchResult:
    """Every item of a catalog read, in page order, plus soft warnings."""

    items: List[RemoteCatalogItem] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    rejected: List[RejectedEntry] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Entries the store returned, readable or not."""
        return len(self.items) + len(self.rejected)


class WooCommerceClient(BaseClient):
    """Read-only client for a WooCommerce store's published products."""

    def __init__(self, request: ImportRequest, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the client for one import run.

        Page reads are not retried: a failed run is cheap to trigger again.

        Args:
            request: Validated import request carrying store URL and API keys
            transport: Optional transport override for tests
        """
        super().__init__(
            base_url=request.base_url,
            auth=(request.credential_key, request.credential_secret),
            max_retries=1,
            transport=transport,
        )

    async def fetch_page(self, page: int) -> CatalogFetchResult:
        """
        Fetch one page of published products.

        An entry that is not an object or has no name does not fail the page;
        it is reported in ``rejected`` with its id, or ``entry N`` (1-based
        position in the catalog) when it has none.

        Raises:
            CatalogConnectionError: On transport failure or non-success status.
            CatalogFormatError: If the body is not a JSON list of products.
        """
        params = {"per_page": PAGE_SIZE, "page": page, "status": "publish"}

        try:
            response = await self.get(PRODUCTS_ENDPOINT, params=params)
        except httpx.HTTPError as e:
            raise CatalogConnectionError(
                f"Could not connect to WooCommerce: {str(e) or type(e).__name__}",
                details={"page": page, "error": type(e).__name__}
            )

        if response.status_code in (401, 403):
            raise CatalogConnectionError(
                f"WooCommerce rejected the credentials (HTTP {response.status_code}). "
                "Verify the consumer key and secret.",
                details={"page": page, "status_code": response.status_code}
            )

        if not response.is_success:
            raise CatalogConnectionError(
                f"WooCommerce request failed (HTTP {response.status_code})",
                details={"page": page, "status_code": response.status_code, "response": response.text[:500]}
            )

        try:
            body = response.json()
        except ValueError:
            raise CatalogFormatError(
                "Invalid response from WooCommerce: body is not JSON",
                details={"page": page}
            )

        if not isinstance(body, list):
            raise CatalogFormatError(
                "Invalid response from WooCommerce: expected a list of products",
                details={"page": page, "body_type": type(body).__name__}
            )

        result = CatalogFetchResult()
        for position, entry in enumerate(body, (page - 1) * PAGE_SIZE + 1):
            try:
                result.items.append(RemoteCatalogItem.from_dict(entry))
            except CatalogFormatError as e:
                label = _entry_label(entry, position)
                self.logger.warning(f"Unreadable catalog entry {label}: {e.message}")
                result.rejected.append(RejectedEntry(label=label, reason=e.message))

        return result

    async def fetch_all_pages(self) -> CatalogFetchResult:
        """
        Walk the catalog from page 1 until a short page or the page cap.

        Reaching the cap with a full last page adds a warning instead of
        failing; the first ``MAX_PAGES * PAGE_SIZE`` entries are still returned.
        Entries that are not usable products are returned as ``rejected``.
        """
        result = CatalogFetchResult()

        for page in range(1, MAX_PAGES + 1):
            page_result = await self.fetch_page(page)
            result.items.extend(page_result.items)
            result.rejected.extend(page_result.rejected)
            self.logger.info(f"Fetched catalog page {page}: {page_result.total} items")

            if page_result.total < PAGE_SIZE:
                break
        else:
            self.logger.warning(PAGE_LIMIT_WARNING)
            result.warnings.append(PAGE_LIMIT_WARNING)

        return result

    async def check_connection(self) -> bool:
        """Read a single product to prove URL and credentials work."""
        response = await self.get(PRODUCTS_ENDPOINT, params={"per_page": 1})
        if not response.is_success:
            raise CatalogConnectionError(
                f"WooCommerce request failed (HTTP {response.status_code})",
                details={"status_code": response.status_code}
            )
        return True


def _entry_label(entry, position: int) -> str:
    if isinstance(entry, dict) and entry.get("id") not in (None, ""):
        return str(entry["id"])
    return f"entry {position}"
