"""
Billing module exceptions.

These exceptions are raised by the billing module and can be caught
by API error handlers to return appropriate HTTP responses.

Webhook-side "not found" cases (unknown subscription, unknown price)
are NOT errors; the reconciler reports them as no-ops.
"""

from typing import Optional

from shared.exceptions import (
    ExternalServiceError,
    NotFoundError,
    SubledgerError,
    ValidationError,
)


class BillingError(SubledgerError):
    """Base exception for billing-related errors."""

    pass


class MalformedEventError(ValidationError):
    """Raised when a webhook payload lacks a field its event type requires."""

    def __init__(self, event_type: str, reason: str, event_id: Optional[str] = None):
        super().__init__(
            f"Malformed {event_type} event: {reason}",
            code="MALFORMED_EVENT",
            details={"event_type": event_type, "reason": reason},
        )
        if event_id:
            self.details["event_id"] = event_id


class InvalidSessionRequestError(ValidationError):
    """Raised when a session request is structurally invalid."""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid session request: {reason}",
            code="INVALID_SESSION_REQUEST",
            details={"reason": reason},
        )


class WebhookVerificationError(BillingError):
    """Raised when Stripe webhook signature verification fails."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            "Webhook signature verification failed",
            code="WEBHOOK_VERIFICATION_FAILED",
            details={"reason": reason} if reason else {},
        )


class BillingNotFoundError(NotFoundError):
    """Raised when a user (or a billing id) has no billing record."""

    def __init__(self, user_id: Optional[str] = None, billing_id: Optional[str] = None):
        details = {}
        if user_id:
            details["user_id"] = user_id
        if billing_id:
            details["billing_id"] = billing_id
        super().__init__(
            "User billing not found",
            code="BILLING_NOT_FOUND",
            details=details,
        )


class CustomerNotFoundError(NotFoundError):
    """Raised when a billing record has no Stripe customer attached."""

    def __init__(self, user_id: str, billing_id: str):
        super().__init__(
            "Stripe customer not found",
            code="CUSTOMER_NOT_FOUND",
            details={"user_id": user_id, "billing_id": billing_id},
        )


class SessionCreationFailedError(BillingError):
    """Raised when Stripe accepted the request but returned no redirect URL."""

    def __init__(self, session_id: Optional[str] = None):
        super().__init__(
            "Checkout URL not available",
            code="SESSION_CREATION_FAILED",
            details={"session_id": session_id} if session_id else {},
        )


class PaymentProcessorError(ExternalServiceError):
    """Raised when Stripe is unreachable or rejects a request."""

    def __init__(self, operation: str, stripe_error: Optional[str] = None):
        super().__init__(
            f"Payment processor request failed: {operation}",
            service="stripe",
            code="PAYMENT_PROCESSOR_ERROR",
            details={"operation": operation},
        )
        if stripe_error:
            self.details["stripe_error"] = stripe_error


class BillingUserNotFoundError(BillingError):
    """
    Raised when a paid invoice names an email with no matching user.

    This means Stripe and the user directory have diverged; it must be
    surfaced to operators, and Stripe should keep retrying.
    """

    def __init__(self, email: str, external_subscription_id: str):
        super().__init__(
            f"No user matches invoice email for subscription {external_subscription_id}",
            code="BILLING_USER_NOT_FOUND",
            details={
                "email": email,
                "external_subscription_id": external_subscription_id,
            },
        )


class DuplicateBillingError(BillingError):
    """Raised when a billing row already exists for a user."""

    def __init__(self, user_id: str):
        super().__init__(
            f"Billing already exists for user: {user_id}",
            code="DUPLICATE_BILLING",
            details={"user_id": user_id},
        )


class ReconciliationError(BillingError):
    """Raised when a multi-step reconciliation only partially completed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, code="RECONCILIATION_INCOMPLETE", details=details)
