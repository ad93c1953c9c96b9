"""
Billing module data models.

These models define the data structures used by the billing module
and exposed to other modules through the interface.

Webhook events are modelled as a closed, discriminated union
(BillingEvent) that the normalizer builds once per delivery, so the
reconciler never looks at raw Stripe payloads.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from modules.products.models import Product


class BillingStatus(str, Enum):
    """Internal subscription status."""

    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


class Billing(BaseModel):
    """
    A user's subscription record.

    At most one row exists per user. Rows are mutated in place by
    webhook reconciliation and are never deleted.
    """

    id: str = Field(..., description="Billing ID (UUID)")
    user_id: str = Field(..., description="Owning user ID")
    product_id: str = Field(..., description="Subscribed product ID")
    external_subscription_id: Optional[str] = Field(None, description="Stripe subscription ID")
    external_customer_id: Optional[str] = Field(None, description="Stripe customer ID")
    status: BillingStatus = Field(..., description="Subscription status")
    expires_at: datetime = Field(..., description="End of the paid access window")
    created_at: Optional[datetime] = Field(None, description="Creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")


class NewBilling(BaseModel):
    """Fields required to create a billing row."""

    user_id: str
    product_id: str
    external_subscription_id: str
    external_customer_id: Optional[str] = None
    status: BillingStatus = BillingStatus.ACTIVE
    expires_at: datetime


class BillingUpdate(BaseModel):
    """Partial update for a billing row. Unset fields are left unchanged."""

    product_id: Optional[str] = None
    external_subscription_id: Optional[str] = None
    external_customer_id: Optional[str] = None
    status: Optional[BillingStatus] = None
    expires_at: Optional[datetime] = None


# =============================================================================
# Canonical webhook events
# =============================================================================


class EventKind(str, Enum):
    """Canonical event kinds produced by the normalizer."""

    INVOICE_PAID = "invoice_paid"
    INVOICE_PAYMENT_FAILED = "invoice_payment_failed"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    SUBSCRIPTION_DELETED = "subscription_deleted"
    IGNORED = "ignored"


class _BaseEvent(BaseModel):
    """Fields common to every canonical event."""

    model_config = {"frozen": True}

    event_id: Optional[str] = Field(None, description="Stripe event ID")
    event_type: str = Field(..., description="Stripe event type string")


class InvoicePaidEvent(_BaseEvent):
    """A subscription invoice was paid."""

    kind: Literal[EventKind.INVOICE_PAID] = EventKind.INVOICE_PAID
    customer_email: str
    customer_id: str
    external_price_id: str
    external_subscription_id: str
    period_end: datetime


class InvoicePaymentFailedEvent(_BaseEvent):
    """A subscription invoice payment attempt failed."""

    kind: Literal[EventKind.INVOICE_PAYMENT_FAILED] = EventKind.INVOICE_PAYMENT_FAILED
    external_subscription_id: str


class SubscriptionUpdatedEvent(_BaseEvent):
    """A subscription changed status, period, plan or cancellation schedule."""

    kind: Literal[EventKind.SUBSCRIPTION_UPDATED] = EventKind.SUBSCRIPTION_UPDATED
    external_subscription_id: str
    status: Optional[BillingStatus] = None
    current_period_end: datetime
    cancel_at: Optional[datetime] = None
    external_price_id: Optional[str] = None
    # Set for Stripe statuses that end paid access; unpaid is stored as past_due
    revokes_access: bool = False

    @property
    def effective_expiry(self) -> datetime:
        """A scheduled cancellation wins over the rolling period end."""
        return self.cancel_at or self.current_period_end


class SubscriptionDeletedEvent(_BaseEvent):
    """A subscription ended."""

    kind: Literal[EventKind.SUBSCRIPTION_DELETED] = EventKind.SUBSCRIPTION_DELETED
    external_subscription_id: str


class IgnoredEvent(_BaseEvent):
    """An event that was understood but needs no reconciliation."""

    kind: Literal[EventKind.IGNORED] = EventKind.IGNORED
    reason: str


BillingEvent = Annotated[
    Union[
        InvoicePaidEvent,
        InvoicePaymentFailedEvent,
        SubscriptionUpdatedEvent,
        SubscriptionDeletedEvent,
        IgnoredEvent,
    ],
    Field(discriminator="kind"),
]


# =============================================================================
# Reconciliation results
# =============================================================================


class ReconciliationOutcome(str, Enum):
    """What a handler did with an event."""

    APPLIED = "applied"  # State was written
    NOOP = "noop"        # Recognised, nothing to change (unknown subscription/price)
    IGNORED = "ignored"  # Event kind not reconciled


class ReconciliationResult(BaseModel):
    """Result of reconciling one event."""

    kind: EventKind
    outcome: ReconciliationOutcome
    billing_id: Optional[str] = None
    detail: Optional[str] = None


# =============================================================================
# Sessions and API payloads
# =============================================================================


class CheckoutSession(BaseModel):
    """
    Stripe checkout session info.

    Returned when initiating a subscription purchase.
    """

    session_id: str = Field(..., description="Stripe checkout session ID")
    url: str = Field(..., description="Checkout URL to redirect user to")


class PortalSession(BaseModel):
    """Stripe customer portal session info."""

    url: str = Field(..., description="Portal URL to redirect user to")


class CheckoutSessionRequest(BaseModel):
    """Request to start a checkout. Exactly one of product_id/price_id."""

    product_id: Optional[str] = Field(None, description="Internal product ID")
    price_id: Optional[str] = Field(None, description="Stripe price ID")
    success_url: str = Field(..., min_length=1, description="Redirect after payment")
    cancel_url: str = Field(..., min_length=1, description="Redirect on abandon")


class PortalSessionRequest(BaseModel):
    """Request to open the customer portal."""

    return_url: str = Field(..., min_length=1, description="Redirect when leaving the portal")


class UserBillingSummary(BaseModel):
    """API response for the current user's billing state."""

    has_subscription: bool = Field(..., description="Whether an active subscription exists")
    billing: Optional[Billing] = Field(None, description="Billing record, if any")
    product: Optional[Product] = Field(None, description="Currently assigned product")


class WebhookAck(BaseModel):
    """Acknowledgement returned to Stripe for an understood event."""

    received: bool = True
    kind: EventKind
    outcome: ReconciliationOutcome
