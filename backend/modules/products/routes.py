"""
Product catalog API endpoints.

Public and read-only. Clients pick a product id here and pass it to
POST /api/billing/checkout-session.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_product_repository

from .exceptions import ProductNotFoundError
from .interfaces import IProductRepository
from .models import Product

router = APIRouter()


@router.get("", response_model=list[Product])
async def list_products(
    products: IProductRepository = Depends(get_product_repository),
) -> list[Product]:
    """List the products on sale, cheapest first."""
    return await products.list_active()


@router.get("/{product_id}", response_model=Product)
async def get_product(
    product_id: str,
    products: IProductRepository = Depends(get_product_repository),
) -> Product:
    product = await products.find_by_id(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product
