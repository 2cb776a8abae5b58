"""Stock level derivation for imported products."""

from ..models.catalog import RemoteCatalogItem

# Available, quantity unknown.
UNKNOWN_AVAILABLE_STOCK = 999

AVAILABLE_STATUSES = {"instock", "onbackorder"}
OUT_OF_STOCK_STATUS = "outofstock"


def normalize_stock(item: RemoteCatalogItem) -> int:
    """
    Derive a definitive, non-negative stock level.

    Many stores report availability as a status instead of a count, so the
    explicit quantity wins when present and the status is the fallback.
    """
    if item.stock_quantity is not None and item.stock_quantity >= 0:
        return item.stock_quantity

    if item.stock_status in AVAILABLE_STATUSES:
        return UNKNOWN_AVAILABLE_STOCK

    if item.stock_status == OUT_OF_STOCK_STATUS:
        return 0

    if not item.manage_stock and item.is_published:
        return UNKNOWN_AVAILABLE_STOCK

    return 0
