"""
Billing module interfaces.

Other modules and the API layer should depend on IBillingService, not the
concrete implementation. The reconciler and gateway depend on
IBillingRepository and IPaymentProcessor so they can be exercised without
Supabase or Stripe.
"""

from typing import Any, Mapping, Protocol, Optional, runtime_checkable

from .models import (
    Billing,
    BillingUpdate,
    CheckoutSession,
    NewBilling,
    PortalSession,
    UserBillingSummary,
    WebhookAck,
)


@runtime_checkable
class IBillingRepository(Protocol):
    """Durable per-user subscription records."""

    async def find_by_user_id(self, user_id: str) -> Optional[Billing]:
        """Get the billing row owned by a user, if any."""
        ...

    async def find_by_external_subscription_id(
        self,
        external_subscription_id: str,
    ) -> Optional[Billing]:
        """Get the billing row for a Stripe subscription, if any."""
        ...

    async def create(self, billing: NewBilling) -> Billing:
        """
        Insert a billing row.

        Raises:
            DuplicateBillingError: If the user already has a billing row
        """
        ...

    async def update(self, billing_id: str, updates: BillingUpdate) -> Billing:
        """
        Apply a partial update to a billing row.

        Raises:
            BillingNotFoundError: If the row doesn't exist
        """
        ...


@runtime_checkable
class IPaymentProcessor(Protocol):
    """Outbound calls to the payment processor."""

    async def create_checkout_session(
        self,
        *,
        price_id: str,
        success_url: str,
        cancel_url: str,
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        metadata: Optional[dict[str, str]] = None,
    ) -> tuple[str, Optional[str]]:
        """
        Create a subscription checkout session.

        Returns:
            (session_id, url); url is None if the processor returned none

        Raises:
            PaymentProcessorError: If the processor call fails
        """
        ...

    async def create_portal_session(self, *, customer_id: str, return_url: str) -> str:
        """
        Create a customer portal session.

        Returns:
            Portal URL

        Raises:
            PaymentProcessorError: If the processor call fails
        """
        ...


@runtime_checkable
class IWebhookVerifier(Protocol):
    """Authenticates inbound webhook deliveries."""

    def verify(self, payload: bytes, signature: Optional[str]) -> Mapping[str, Any]:
        """
        Check the signature and decode the event.

        Raises:
            WebhookVerificationError: If the signature is missing or invalid
        """
        ...


@runtime_checkable
class IBillingService(Protocol):
    """
    Interface for billing operations.

    This protocol defines the contract that the billing module exposes
    to the API layer.
    """

    async def process_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookAck:
        """
        Verify, normalize and reconcile one Stripe webhook delivery.

        Returns:
            WebhookAck for any understood event, including no-ops

        Raises:
            WebhookVerificationError: Signature missing or invalid
            MalformedEventError: Event lacks a required field
            BillingError: Reconciliation failed and should be retried
        """
        ...

    async def create_checkout_session(
        self,
        user_id: str,
        success_url: str,
        cancel_url: str,
        product_id: Optional[str] = None,
        price_id: Optional[str] = None,
    ) -> CheckoutSession:
        """
        Start a subscription purchase for a verified user.

        Raises:
            EmailNotVerifiedError: User's email is not verified
            ProductNotFoundError: Product missing or not purchasable
            SessionCreationFailedError: Stripe returned no redirect URL
            PaymentProcessorError: Stripe unavailable or rejected the call
        """
        ...

    async def create_portal_session(self, user_id: str, return_url: str) -> PortalSession:
        """
        Open the Stripe self-service portal for a subscribed user.

        Raises:
            BillingNotFoundError: User has no billing record
            CustomerNotFoundError: Billing record has no Stripe customer
            PaymentProcessorError: Stripe unavailable or rejected the call
        """
        ...

    async def get_user_billing(self, user_id: str) -> UserBillingSummary:
        """Get the user's billing record and current product."""
        ...
