"""
Product catalog interface.

The catalog is read-only from the billing module's point of view.
"""

from typing import Protocol, Optional, runtime_checkable

from .models import Product


@runtime_checkable
class IProductRepository(Protocol):
    """Read operations on the product catalog."""

    async def find_by_id(self, product_id: str) -> Optional[Product]:
        """Get a product by internal ID."""
        ...

    async def find_by_external_price_id(self, external_price_id: str) -> Optional[Product]:
        """
        Get a product by its Stripe price ID.

        Returns:
            Product if found, None otherwise
        """
        ...

    async def list_active(self) -> list[Product]:
        """Products on sale, cheapest first."""
        ...

    async def get_default(self) -> Product:
        """
        Get the default (free tier) product.

        Raises:
            DefaultProductMissingError: If no default product is configured
        """
        ...
