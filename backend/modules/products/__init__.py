"""
Product catalog module.

Maps internal products to Stripe prices and designates the single
default (free tier) product.

Public API:
- IProductRepository: Interface for catalog lookups
- Product: Catalog entry
- Catalog exceptions: ProductNotFoundError, DefaultProductMissingError

HTTP: GET /api/products and GET /api/products/{id} (routes.py).
"""

from .interfaces import IProductRepository
from .models import Product
from .exceptions import ProductNotFoundError, DefaultProductMissingError

__all__ = [
    "IProductRepository",
    "Product",
    "ProductNotFoundError",
    "DefaultProductMissingError",
]
