"""Tests for data models."""

import pytest

from catalog_sync.models.catalog import ImportRequest, LocalCatalogRecord, RemoteCatalogItem
from catalog_sync.models.import_result import ImportOutcome, ResultAggregator, MAX_ERROR_MESSAGES
from catalog_sync.utils.exceptions import CatalogFormatError, CatalogValidationError

from conftest import TENANT, make_item, woo_product


class TestRemoteCatalogItem:
    """Tests for RemoteCatalogItem model."""

    def test_from_dict(self):
        """Test mapping a WooCommerce product."""
        item = RemoteCatalogItem.from_dict(woo_product(
            "Blue Mug",
            sku=" MUG-1 ",
            images=[{"src": "https://shop.test/a.jpg"}, {"src": ""}, {"id": 3}],
            categories=[{"name": "Mugs"}, {"name": "Kitchen"}],
        ))

        assert item.name == "Blue Mug"
        assert item.sku == "MUG-1"
        assert item.images == ("https://shop.test/a.jpg",)
        assert item.categories == ("Mugs", "Kitchen")
        assert item.attributes[0].name == "Color"
        assert item.attributes[0].options == ("Red", "Blue")
        assert item.stock_quantity == 5
        assert item.is_published is True

    def test_from_dict_empty_sku_is_none(self):
        """Test that a blank SKU is treated as missing."""
        assert make_item("Mug", sku="").sku is None

    def test_from_dict_null_stock_quantity(self):
        """Test that a null quantity stays None."""
        assert make_item("Mug", stock_quantity=None).stock_quantity is None

    def test_from_dict_not_an_object(self):
        """Test that a non-dict entry raises CatalogFormatError."""
        with pytest.raises(CatalogFormatError, match="not an object"):
            RemoteCatalogItem.from_dict(["nope"])

    def test_from_dict_without_name(self):
        """Test that a nameless entry raises CatalogFormatError."""
        with pytest.raises(CatalogFormatError, match="no name"):
            RemoteCatalogItem.from_dict({"id": 7, "name": "  "})


class TestLocalCatalogRecord:
    """Tests for LocalCatalogRecord model."""

    def test_from_remote(self):
        """Test mapping prices, categories and variants."""
        item = make_item("Blue Mug", sku="MUG-1", regular_price="12.50", sale_price="9.99", status="draft")

        record = LocalCatalogRecord.from_remote(
            item, tenant_id=TENANT, slug="blue-mug-abc123",
            images=["https://cdn.test/1.png", "https://cdn.test/2.png"], stock=5
        )

        assert record.price == 12.5
        assert record.sale_price == 9.99
        assert record.image_url == "https://cdn.test/1.png"
        assert record.categories == ["Mugs"]
        assert record.variants[0].type == "Color"
        assert record.variants[0].values == ["Red", "Blue"]
        assert record.is_active is False
        assert record.sku == "MUG-1"

    def test_from_remote_price_fallbacks(self):
        """Test current price and default category when data is missing."""
        item = make_item("Mug", regular_price="", price="7", categories=[])

        record = LocalCatalogRecord.from_remote(item, TENANT, "mug-x", images=[], stock=0)

        assert record.price == 7.0
        assert record.sale_price is None
        assert record.image_url is None
        assert record.categories == ["General"]

    def test_from_remote_invalid_price(self):
        """Test that an unparseable price raises ValueError."""
        item = make_item("Mug", regular_price="free")

        with pytest.raises(ValueError, match="Invalid price"):
            LocalCatalogRecord.from_remote(item, TENANT, "mug-x", images=[], stock=0)

    def test_negative_stock_rejected(self):
        """Test that negative stock raises ValueError."""
        with pytest.raises(ValueError, match="non-negative"):
            LocalCatalogRecord(tenant_id=TENANT, name="Mug", slug="mug", price=1.0, stock=-1)

    def test_update_payload_keeps_slug_and_tenant_out(self):
        """Test that updates never carry slug or tenant."""
        record = LocalCatalogRecord(tenant_id=TENANT, name="Mug", slug="mug-1", price=1.0, stock=3)

        update = record.to_update_payload()
        insert = record.to_insert_payload()

        assert "slug" not in update
        assert "organization_id" not in update
        assert insert["slug"] == "mug-1"
        assert insert["organization_id"] == TENANT
        assert insert["category"] == "General"

    def test_from_dict(self):
        """Test reading a stored row."""
        record = LocalCatalogRecord.from_dict({
            "id": 42,
            "organization_id": TENANT,
            "name": "Mug",
            "slug": "mug-1",
            "price": "3.5",
            "stock": 2,
            "category": "Mugs",
            "variants": [{"type": "Size", "values": ["S"]}],
        })

        assert record.id == "42"
        assert record.price == 3.5
        assert record.categories == ["Mugs"]
        assert record.variants[0].values == ["S"]


class TestImportRequest:
    """Tests for request validation."""

    def test_parse_valid(self, import_request):
        request = ImportRequest.parse({**import_request, "target_url": "https://shop.example.com/"})

        assert request.base_url == "https://shop.example.com"
        assert request.overwrite_existing is False

    def test_parse_bad_url(self, import_request):
        with pytest.raises(CatalogValidationError, match="target_url"):
            ImportRequest.parse({**import_request, "target_url": "not a url"})

    def test_parse_missing_secret(self, import_request):
        with pytest.raises(CatalogValidationError, match="credential_secret"):
            ImportRequest.parse({**import_request, "credential_secret": ""})

    def test_secret_not_in_repr(self, import_request):
        assert "cs_test" not in repr(ImportRequest.parse(import_request))


class TestResultAggregator:
    """Tests for ResultAggregator and ImportOutcome."""

    def test_snapshot(self):
        aggregator = ResultAggregator()
        aggregator.set_total(4)
        aggregator.record_imported()
        aggregator.record_updated()
        aggregator.record_skipped()
        aggregator.record_error("Mug", "Insert failed")

        outcome = aggregator.snapshot()

        assert outcome.success is True
        assert (outcome.imported, outcome.updated, outcome.skipped, outcome.total) == (1, 1, 1, 4)
        assert outcome.failed == 1
        assert outcome.errors == ("Mug: Insert failed",)

    def test_warnings_listed_separately_and_in_errors(self):
        aggregator = ResultAggregator()
        aggregator.add_warning("Page limit reached")

        outcome = aggregator.snapshot()

        assert outcome.warnings == ("Page limit reached",)
        assert outcome.errors == ("Page limit reached",)
        assert outcome.failed == 0

    def test_error_list_is_bounded(self):
        aggregator = ResultAggregator()
        for i in range(MAX_ERROR_MESSAGES + 3):
            aggregator.record_error(f"Item {i}", "boom")

        outcome = aggregator.snapshot()

        assert len(outcome.errors) == MAX_ERROR_MESSAGES + 1
        assert outcome.errors[-1] == "... and 3 more errors"

    def test_failure_outcome(self):
        outcome = ImportOutcome.failure("Could not connect", "CatalogConnectionError")

        data = outcome.to_dict()

        assert data["success"] is False
        assert data["errors"] == ["Could not connect"]
        assert data["imported"] == 0
        assert data["error_type"] == "CatalogConnectionError"

    def test_outcome_lists_cannot_change(self):
        outcome = ImportOutcome(success=True, total=1, errors=["Mug: boom"], warnings=["Page limit reached"])

        with pytest.raises(AttributeError):
            outcome.errors.append("late error")

        assert outcome.errors == ("Mug: boom",)
        assert outcome.to_dict()["errors"] == ["Mug: boom"]
        assert outcome.to_dict()["warnings"] == ["Page limit reached"]

    def test_get_summary(self):
        outcome = ImportOutcome(success=True, imported=8, updated=1, skipped=1, total=11, errors=["Mug: boom"])

        summary = outcome.get_summary()

        assert "Total items: 11" in summary
        assert "Imported: 8" in summary
        assert "Failed: 1" in summary
        assert "Mug: boom" in summary
