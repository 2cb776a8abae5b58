"""Match remote items against existing local records."""

import re
import secrets
import string
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .ports import CatalogRepository
from ..models.catalog import LocalCatalogRecord, RemoteCatalogItem

SLUG_TOKEN_LENGTH = 6
_SLUG_ALPHABET = string.ascii_lowercase + string.digits
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


class ResolutionAction(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    SKIP = "skip"


@dataclass(frozen=True)
class Resolution:
    action: ResolutionAction
    existing: Optional[LocalCatalogRecord] = None


def slugify(text: str) -> str:
    """Lower-case, collapse non-alphanumeric runs to ``-`` and trim hyphens."""
    slug = _NON_ALNUM.sub("-", text.lower()).strip("-")
    return slug or "product"


def slug_for_insert(item: RemoteCatalogItem) -> str:
    """Base slug plus a random suffix so repeated imports never collide."""
    base = slugify(item.slug) if item.slug else slugify(item.name)
    token = "".join(secrets.choice(_SLUG_ALPHABET) for _ in range(SLUG_TOKEN_LENGTH))
    return f"{base}-{token}"


class IdentityResolver:
    """
    Decide insert / update / skip for one remote item.

    SKU is matched first; the exact name is only consulted when the item
    has no SKU or the SKU is unknown locally.
    """

    def __init__(self, repository: CatalogRepository, overwrite_existing: bool):
        self.repository = repository
        self.overwrite_existing = overwrite_existing

    async def find_existing(self, item: RemoteCatalogItem, tenant_id: str) -> Optional[LocalCatalogRecord]:
        if item.sku:
            existing = await self.repository.find_by_tenant_and_sku(tenant_id, item.sku)
            if existing is not None:
                return existing

        return await self.repository.find_by_tenant_and_name(tenant_id, item.name)

    async def resolve(self, item: RemoteCatalogItem, tenant_id: str) -> Resolution:
        existing = await self.find_existing(item, tenant_id)

        if existing is None:
            return Resolution(ResolutionAction.INSERT)

        if not self.overwrite_existing:
            return Resolution(ResolutionAction.SKIP, existing)

        return Resolution(ResolutionAction.UPDATE, existing)
