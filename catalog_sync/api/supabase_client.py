"""Supabase REST clients: the ``products`` table (PostgREST) and Storage."""

from typing import Any, Dict, List, Optional

import httpx

from .base_client import BaseClient
from ..models.catalog import LocalCatalogRecord
from ..utils.config import get_config
from ..utils.exceptions import AssetStorageError, PersistenceError

PRODUCTS_TABLE = "/rest/v1/products"


class SupabaseClient(BaseClient):
    """Authenticated client for a Supabase project using the service key."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        config = get_config()
        service_key = config.env.supabase_service_key

        headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
        }

        super().__init__(base_url=config.env.supabase_url, headers=headers, transport=transport)


class SupabaseCatalogRepository(SupabaseClient):
    """Tenant-scoped reads and writes on the ``products`` table."""

    async def _find_one(self, filters: Dict[str, str]) -> Optional[LocalCatalogRecord]:
        params = {"select": "*", "limit": "1", **filters}

        try:
            response = await self.get(PRODUCTS_TABLE, params=params)
        except httpx.HTTPError as e:
            raise PersistenceError(f"Product lookup failed: {str(e)}", details={"filters": filters})

        if response.status_code != 200:
            raise PersistenceError(
                f"Product lookup failed (HTTP {response.status_code})",
                details={"filters": filters, "response": response.text}
            )

        rows: List[Dict[str, Any]] = response.json()
        return LocalCatalogRecord.from_dict(rows[0]) if rows else None

    async def check_connection(self) -> bool:
        response = await self.get(PRODUCTS_TABLE, params={"select": "id", "limit": "1"})
        if response.status_code != 200:
            raise PersistenceError(f"Supabase request failed (HTTP {response.status_code})")
        return True

    async def find_by_tenant_and_sku(self, tenant_id: str, sku: str) -> Optional[LocalCatalogRecord]:
        return await self._find_one({"organization_id": f"eq.{tenant_id}", "sku": f"eq.{sku}"})

    async def find_by_tenant_and_name(self, tenant_id: str, name: str) -> Optional[LocalCatalogRecord]:
        return await self._find_one({"organization_id": f"eq.{tenant_id}", "name": f"eq.{name}"})

    async def insert(self, record: LocalCatalogRecord) -> str:
        """
        Insert a new product row.

        Returns:
            The id PostgREST assigned to the row.

        Raises:
            PersistenceError: If the row is rejected.
        """
        try:
            response = await self.post(
                PRODUCTS_TABLE,
                json=record.to_insert_payload(),
                headers={"Prefer": "return=representation"},
            )
        except httpx.HTTPError as e:
            raise PersistenceError(f"Insert failed: {str(e)}")

        if response.status_code not in (200, 201):
            raise PersistenceError(
                f"Insert failed (HTTP {response.status_code}): {_postgrest_message(response)}",
                details={"slug": record.slug}
            )

        rows = response.json()
        return str(rows[0]["id"])

    async def update(self, record_id: str, record: LocalCatalogRecord) -> None:
        """
        Overwrite the mutable columns of an existing row. Slug and tenant stay as they are.

        Raises:
            PersistenceError: If the update is rejected.
        """
        params = {"id": f"eq.{record_id}", "organization_id": f"eq.{record.tenant_id}"}

        try:
            response = await self.patch(
                PRODUCTS_TABLE,
                params=params,
                json=record.to_update_payload(),
                headers={"Prefer": "return=minimal"},
            )
        except httpx.HTTPError as e:
            raise PersistenceError(f"Update failed: {str(e)}")

        if response.status_code not in (200, 204):
            raise PersistenceError(
                f"Update failed (HTTP {response.status_code}): {_postgrest_message(response)}",
                details={"id": record_id}
            )


class SupabaseObjectStorage(SupabaseClient):
    """Uploads files into a public Storage bucket, one folder per tenant."""

    def __init__(self, bucket: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(transport=transport)
        self.bucket = bucket or self.config.env.storage_bucket

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"

    async def store(self, tenant_id: str, filename: str, data: bytes, content_type: str) -> str:
        """
        Upload ``data`` to ``<bucket>/<tenant_id>/<filename>``.

        Returns:
            Public URL of the stored object.

        Raises:
            AssetStorageError: If the upload fails.
        """
        path = f"{tenant_id}/{filename}"

        try:
            response = await self.post(
                f"/storage/v1/object/{self.bucket}/{path}",
                content=data,
                headers={
                    "Content-Type": content_type,
                    "Cache-Control": "3600",
                    "x-upsert": "false",
                },
            )
        except httpx.HTTPError as e:
            raise AssetStorageError(f"Upload failed: {str(e)}", details={"path": path})

        if response.status_code not in (200, 201):
            raise AssetStorageError(
                f"Upload failed (HTTP {response.status_code})",
                details={"path": path, "response": response.text}
            )

        return self.public_url(path)


def _postgrest_message(response: httpx.Response) -> str:
    """Extract PostgREST's error message, falling back to the raw body."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return body.get("message") or response.text
    return response.text
