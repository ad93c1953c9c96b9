"""
Product catalog exceptions.
"""

from typing import Optional

from shared.exceptions import NotFoundError, SubledgerError


class ProductNotFoundError(NotFoundError):
    """Raised when a product doesn't exist or can't be purchased."""

    def __init__(self, product_ref: str, reason: Optional[str] = None):
        message = f"Product not found: {product_ref}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(
            message,
            code="PRODUCT_NOT_FOUND",
            details={"product": product_ref},
        )
        if reason:
            self.details["reason"] = reason


class DefaultProductMissingError(SubledgerError):
    """
    Raised when the catalog has no default (free tier) product.

    This is a configuration error: the catalog must always carry
    exactly one default product.
    """

    def __init__(self):
        super().__init__(
            "No default product is configured in the catalog",
            code="DEFAULT_PRODUCT_MISSING",
        )
