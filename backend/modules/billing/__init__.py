"""
Billing module.

Handles Stripe integration: webhook reconciliation of subscription state
and checkout/portal session creation.

Public API:
- IBillingService: Interface for billing operations
- Billing, BillingStatus: Per-user subscription record
- BillingEvent and its members: Canonical webhook events
- CheckoutSession, PortalSession: Stripe redirect sessions
- Billing exceptions: MalformedEventError, BillingNotFoundError, etc.
"""

from .interfaces import IBillingService, IBillingRepository, IPaymentProcessor, IWebhookVerifier
from .models import (
    Billing,
    BillingStatus,
    BillingEvent,
    EventKind,
    InvoicePaidEvent,
    InvoicePaymentFailedEvent,
    SubscriptionUpdatedEvent,
    SubscriptionDeletedEvent,
    IgnoredEvent,
    ReconciliationOutcome,
    ReconciliationResult,
    CheckoutSession,
    PortalSession,
    UserBillingSummary,
)
from .exceptions import (
    BillingError,
    MalformedEventError,
    InvalidSessionRequestError,
    WebhookVerificationError,
    BillingNotFoundError,
    CustomerNotFoundError,
    SessionCreationFailedError,
    PaymentProcessorError,
    BillingUserNotFoundError,
    DuplicateBillingError,
    ReconciliationError,
)

__all__ = [
    # Interfaces
    "IBillingService",
    "IBillingRepository",
    "IPaymentProcessor",
    "IWebhookVerifier",
    # Models
    "Billing",
    "BillingStatus",
    "BillingEvent",
    "EventKind",
    "InvoicePaidEvent",
    "InvoicePaymentFailedEvent",
    "SubscriptionUpdatedEvent",
    "SubscriptionDeletedEvent",
    "IgnoredEvent",
    "ReconciliationOutcome",
    "ReconciliationResult",
    "CheckoutSession",
    "PortalSession",
    "UserBillingSummary",
    # Exceptions
    "BillingError",
    "MalformedEventError",
    "InvalidSessionRequestError",
    "WebhookVerificationError",
    "BillingNotFoundError",
    "CustomerNotFoundError",
    "SessionCreationFailedError",
    "PaymentProcessorError",
    "BillingUserNotFoundError",
    "DuplicateBillingError",
    "ReconciliationError",
]
