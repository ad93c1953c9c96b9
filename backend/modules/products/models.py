"""
Product catalog data models.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Product(BaseModel):
    """
    A sellable plan in the catalog.

    Prices are integer minor-currency units (e.g. 2999 = $29.99).
    The default product ("free tier") usually has no external identifiers.
    """

    id: str = Field(..., description="Product ID (UUID)")
    name: str = Field(..., description="Display name")
    description: Optional[str] = Field(None, description="Product description")
    price: int = Field(..., ge=0, description="Price in minor currency units")
    currency: str = Field(default="usd", description="ISO currency code")
    external_price_id: Optional[str] = Field(None, description="Stripe price ID")
    external_product_id: Optional[str] = Field(None, description="Stripe product ID")
    active: bool = Field(default=True, description="Whether the product is on sale")
    is_default: bool = Field(default=False, description="Whether this is the free tier")
    created_at: Optional[datetime] = Field(None, description="Creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")

    @property
    def purchasable(self) -> bool:
        """Whether a checkout session can be opened for this product."""
        return self.active and bool(self.external_price_id)
