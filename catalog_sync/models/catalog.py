"""Remote and local catalog data models."""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Tuple

from pydantic import BaseModel, Field, HttpUrl, ValidationError

from ..utils.exceptions import CatalogFormatError, CatalogValidationError

DEFAULT_CATEGORY = "General"


class ImportRequest(BaseModel):
    """Caller input for one import run. Credentials live only as long as the run."""

    target_url: HttpUrl
    credential_key: str = Field(..., min_length=1)
    credential_secret: str = Field(..., min_length=1, repr=False)
    overwrite_existing: bool = False

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> "ImportRequest":
        """
        Validate raw caller input.

        Raises:
            CatalogValidationError: With the first field error as message.
        """
        try:
            return cls(**data)
        except ValidationError as e:
            first = e.errors()[0]
            field_name = ".".join(str(part) for part in first.get("loc", ())) or "request"
            raise CatalogValidationError(
                f"Invalid {field_name}: {first.get('msg', 'invalid value')}",
                details={"errors": e.errors(include_url=False)}
            )

    @property
    def base_url(self) -> str:
        return str(self.target_url).rstrip("/")


@dataclass(frozen=True)
class RemoteAttribute:
    """A remote product attribute, e.g. ``Size: [S, M, L]``."""

    name: str
    options: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RemoteCatalogItem:
    """Immutable snapshot of one WooCommerce product as fetched during a run."""

    external_id: str
    name: str
    slug: Optional[str] = None
    sku: Optional[str] = None
    status: str = "publish"
    description: str = ""
    short_description: str = ""
    regular_price: Optional[str] = None
    price: Optional[str] = None
    sale_price: Optional[str] = None
    stock_quantity: Optional[int] = None
    stock_status: Optional[str] = None
    manage_stock: bool = False
    images: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    attributes: Tuple[RemoteAttribute, ...] = ()

    @property
    def is_published(self) -> bool:
        return self.status == "publish"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RemoteCatalogItem":
        """
        Build an item from a WooCommerce ``wc/v3`` product dict.

        Raises:
            CatalogFormatError: If the entry is not an object or has no name.
        """
        if not isinstance(data, dict):
            raise CatalogFormatError(
                "Catalog entry is not an object",
                details={"entry_type": type(data).__name__}
            )

        raw_name = data.get("name")
        name = raw_name.strip() if isinstance(raw_name, str) else ""
        if not name:
            raise CatalogFormatError(
                "Catalog entry has no name",
                details={"id": data.get("id")}
            )

        images = tuple(
            img["src"] for img in data.get("images") or []
            if isinstance(img, dict) and img.get("src")
        )
        categories = tuple(
            cat["name"] for cat in data.get("categories") or []
            if isinstance(cat, dict) and cat.get("name")
        )
        attributes = tuple(
            RemoteAttribute(
                name=attr["name"],
                options=tuple(str(opt) for opt in attr.get("options") or [])
            )
            for attr in data.get("attributes") or []
            if isinstance(attr, dict) and attr.get("name")
        )

        return cls(
            external_id=str(data.get("id", "")),
            name=name,
            slug=data.get("slug") or None,
            sku=str(data.get("sku") or "").strip() or None,
            status=data.get("status") or "publish",
            description=data.get("description") or "",
            short_description=data.get("short_description") or "",
            regular_price=_as_price_text(data.get("regular_price")),
            price=_as_price_text(data.get("price")),
            sale_price=_as_price_text(data.get("sale_price")),
            stock_quantity=_as_optional_int(data.get("stock_quantity")),
            stock_status=data.get("stock_status"),
            manage_stock=bool(data.get("manage_stock")),
            images=images,
            categories=categories,
            attributes=attributes,
        )


@dataclass
class Variant:
    """Local variant definition derived from a remote attribute."""

    type: str
    values: List[str]
    has_price_adjustment: bool = False
    price_adjustments: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "values": list(self.values),
            "hasPriceAdjustment": self.has_price_adjustment,
            "priceAdjustments": dict(self.price_adjustments),
        }


@dataclass
class LocalCatalogRecord:
    """Tenant-scoped product as stored locally."""

    tenant_id: str
    name: str
    slug: str
    price: float
    stock: int
    description: str = ""
    sale_price: Optional[float] = None
    image_url: Optional[str] = None
    images: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=lambda: [DEFAULT_CATEGORY])
    variants: List[Variant] = field(default_factory=list)
    is_active: bool = True
    sku: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        """Validate and normalize data."""
        if not self.name:
            raise ValueError("Name cannot be empty")

        if self.stock is None or self.stock < 0:
            raise ValueError("Stock must be a non-negative integer")

        if not self.categories:
            self.categories = [DEFAULT_CATEGORY]

        if self.image_url is None and self.images:
            self.image_url = self.images[0]

    @classmethod
    def from_remote(
        cls,
        item: RemoteCatalogItem,
        tenant_id: str,
        slug: str,
        images: List[str],
        stock: int,
    ) -> "LocalCatalogRecord":
        """Map a remote item onto the local shape once slug, images and stock are known."""
        price_text = item.regular_price or item.price or "0"
        try:
            price = float(price_text)
            sale_price = float(item.sale_price) if item.sale_price else None
        except ValueError:
            raise ValueError(f"Invalid price '{price_text}' / '{item.sale_price}'")

        return cls(
            tenant_id=tenant_id,
            name=item.name,
            slug=slug,
            description=item.description or item.short_description or "",
            price=price,
            sale_price=sale_price,
            stock=stock,
            image_url=images[0] if images else None,
            images=list(images),
            categories=list(item.categories) or [DEFAULT_CATEGORY],
            variants=[Variant(type=a.name, values=list(a.options)) for a in item.attributes],
            is_active=item.is_published,
            sku=item.sku,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocalCatalogRecord":
        """Create instance from a stored row."""
        categories = data.get("categories") or ([data["category"]] if data.get("category") else [])
        return cls(
            id=str(data["id"]) if data.get("id") is not None else None,
            tenant_id=data["organization_id"],
            name=data["name"],
            slug=data.get("slug") or "",
            description=data.get("description") or "",
            price=float(data.get("price") or 0),
            sale_price=float(data["sale_price"]) if data.get("sale_price") is not None else None,
            stock=int(data.get("stock") or 0),
            image_url=data.get("image_url"),
            images=list(data.get("images") or []),
            categories=list(categories),
            variants=[
                Variant(
                    type=v.get("type", ""),
                    values=list(v.get("values") or []),
                    has_price_adjustment=bool(v.get("hasPriceAdjustment")),
                    price_adjustments=dict(v.get("priceAdjustments") or {}),
                )
                for v in data.get("variants") or []
            ],
            is_active=bool(data.get("is_active", True)),
            sku=data.get("sku"),
        )

    def to_update_payload(self) -> Dict[str, Any]:
        """Columns written on update. Slug and tenant are never overwritten."""
        return {
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "sale_price": self.sale_price,
            "stock": self.stock,
            "image_url": self.image_url,
            "images": list(self.images),
            "category": self.categories[0],
            "categories": list(self.categories),
            "variants": [v.to_dict() for v in self.variants],
            "is_active": self.is_active,
            "sku": self.sku,
        }

    def to_insert_payload(self) -> Dict[str, Any]:
        """Columns written on insert."""
        payload = self.to_update_payload()
        payload.update({
            "organization_id": self.tenant_id,
            "slug": self.slug,
            "options": [],
        })
        return payload


def _as_optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_price_text(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    return str(value)
