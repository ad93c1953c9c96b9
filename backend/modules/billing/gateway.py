"""
Session gateway.

Synchronous, user-initiated entry points into Stripe: opening a checkout
session to buy a plan and opening the self-service customer portal.
All preconditions are checked before any call leaves the process.
"""

import logging
from typing import Optional

from modules.products.interfaces import IProductRepository
from modules.products.models import Product
from modules.users.exceptions import UserNotFoundError
from modules.users.interfaces import IUserRepository

from .exceptions import InvalidSessionRequestError, SessionCreationFailedError
from .interfaces import IBillingRepository, IPaymentProcessor
from .invariants import (
    ensure_email_verified,
    ensure_purchasable,
    has_active_subscription,
    require_customer_id,
)
from .models import CheckoutSession, PortalSession, UserBillingSummary

logger = logging.getLogger(__name__)


class SessionGateway:
    """Checkout and portal session creation for authenticated users."""

    def __init__(
        self,
        billings: IBillingRepository,
        products: IProductRepository,
        users: IUserRepository,
        processor: IPaymentProcessor,
    ):
        self._billings = billings
        self._products = products
        self._users = users
        self._processor = processor

    async def create_checkout_session(
        self,
        user_id: str,
        success_url: str,
        cancel_url: str,
        product_id: Optional[str] = None,
        price_id: Optional[str] = None,
    ) -> CheckoutSession:
        """
        Open a Stripe checkout session for a subscription.

        Args:
            user_id: Authenticated user ID
            success_url: Redirect after successful payment
            cancel_url: Redirect if the user abandons checkout
            product_id: Internal product ID (exclusive with price_id)
            price_id: Stripe price ID (exclusive with product_id)

        Returns:
            CheckoutSession with the Stripe session ID and redirect URL

        Raises:
            UserNotFoundError: User record missing
            EmailNotVerifiedError: User's email is not verified
            InvalidSessionRequestError: Neither or both product references given
            ProductNotFoundError: Product missing or not purchasable
            SessionCreationFailedError: Stripe returned no URL
            PaymentProcessorError: Stripe call failed
        """
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        ensure_email_verified(user)

        product = await self._resolve_product(product_id, price_id)

        # Reuse the Stripe customer so repeat purchases don't duplicate it
        billing = await self._billings.find_by_user_id(user.id)
        customer_id = billing.external_customer_id if billing else None

        session_id, url = await self._processor.create_checkout_session(
            price_id=product.external_price_id,
            success_url=success_url,
            cancel_url=cancel_url,
            customer_id=customer_id,
            customer_email=None if customer_id else user.email,
            metadata={"product_id": product.id, "user_id": user.id},
        )
        if not url:
            logger.error(f"Checkout session {session_id} for user {user.id} has no URL")
            raise SessionCreationFailedError(session_id)

        logger.info(f"Checkout session {session_id} opened for user {user.id}, product {product.id}")
        return CheckoutSession(session_id=session_id, url=url)

    async def create_portal_session(self, user_id: str, return_url: str) -> PortalSession:
        """
        Open the Stripe customer portal.

        Raises:
            BillingNotFoundError: User has no billing record
            CustomerNotFoundError: Billing record lacks a Stripe customer
            PaymentProcessorError: Stripe call failed
        """
        billing = await self._billings.find_by_user_id(user_id)
        customer_id = require_customer_id(billing, user_id)

        url = await self._processor.create_portal_session(
            customer_id=customer_id,
            return_url=return_url,
        )
        return PortalSession(url=url)

    async def get_user_billing(self, user_id: str) -> UserBillingSummary:
        """
        Get the user's billing record and currently assigned product.

        Works for free-tier users too: billing is None and the product is
        whatever the user directory points at.
        """
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        billing = await self._billings.find_by_user_id(user_id)
        product = (
            await self._products.find_by_id(user.current_product_id)
            if user.current_product_id
            else None
        )
        return UserBillingSummary(
            has_subscription=has_active_subscription(billing),
            billing=billing,
            product=product,
        )

    async def _resolve_product(
        self,
        product_id: Optional[str],
        price_id: Optional[str],
    ) -> Product:
        if bool(product_id) == bool(price_id):
            raise InvalidSessionRequestError("provide exactly one of product_id or price_id")

        if product_id:
            return ensure_purchasable(await self._products.find_by_id(product_id), product_id)
        return ensure_purchasable(
            await self._products.find_by_external_price_id(price_id),
            price_id,
        )
