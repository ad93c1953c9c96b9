"""
Invariant checks shared by the session gateway and the reconciler.
"""

from typing import Optional

from modules.products.exceptions import ProductNotFoundError
from modules.products.models import Product
from modules.users.exceptions import EmailNotVerifiedError
from modules.users.models import User

from .exceptions import BillingNotFoundError, CustomerNotFoundError
from .models import Billing, BillingStatus


def ensure_email_verified(user: User) -> None:
    """No purchase without a verified email."""
    if not user.email_verified:
        raise EmailNotVerifiedError(user.id)


def ensure_purchasable(product: Optional[Product], product_ref: str) -> Product:
    """A product can be sold only if it exists, is active and has a Stripe price."""
    if product is None:
        raise ProductNotFoundError(product_ref)
    if not product.purchasable:
        raise ProductNotFoundError(product_ref, reason="not available for purchase")
    return product


def require_customer_id(billing: Optional[Billing], user_id: str) -> str:
    """Return the Stripe customer for a user's billing row."""
    if billing is None:
        raise BillingNotFoundError(user_id)
    if not billing.external_customer_id:
        raise CustomerNotFoundError(user_id, billing.id)
    return billing.external_customer_id


def has_active_subscription(billing: Optional[Billing]) -> bool:
    return billing is not None and billing.status == BillingStatus.ACTIVE
