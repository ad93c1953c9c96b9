"""
Product repository backed by the Supabase products table.

Uniqueness of external_price_id and of the default flag is enforced
by the database (see backend/migrations/001_initial_schema.sql), not here.
"""

from typing import Any, Optional

from shared.repository import BaseRepository

from .exceptions import DefaultProductMissingError
from .models import Product


class ProductRepository(BaseRepository[Product]):
    """Supabase implementation of IProductRepository."""

    table = "products"

    async def find_by_id(self, product_id: str) -> Optional[Product]:
        row = await self._fetch_one(self.table, "id", product_id)
        return self._map_to_product(row) if row else None

    async def find_by_external_price_id(self, external_price_id: str) -> Optional[Product]:
        row = await self._fetch_one(self.table, "external_price_id", external_price_id)
        return self._map_to_product(row) if row else None

    async def list_active(self) -> list[Product]:
        result = await (
            self._db.table(self.table)
            .select("*")
            .eq("active", True)
            .order("price")
            .execute()
        )
        return [self._map_to_product(row) for row in result.data or []]

    async def get_default(self) -> Product:
        row = await self._fetch_one(self.table, "is_default", True)
        if row is None:
            raise DefaultProductMissingError()
        return self._map_to_product(row)

    def _map_to_product(self, data: dict[str, Any]) -> Product:
        """Map database row to Product model."""
        return Product(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description"),
            price=int(data.get("price", 0)),
            currency=data.get("currency") or "usd",
            external_price_id=data.get("external_price_id"),
            external_product_id=data.get("external_product_id"),
            active=bool(data.get("active", True)),
            is_default=bool(data.get("is_default", False)),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )
