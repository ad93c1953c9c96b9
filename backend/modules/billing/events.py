"""
Stripe webhook event normalizer.

Turns a decoded (already signature-verified) Stripe event into one of the
canonical BillingEvent models. This is the only place that knows Stripe's
payload layout, and the only place that converts Unix timestamps.

Stripe has moved several fields between API versions (e.g. the invoice's
subscription id now lives under ``parent.subscription_details``, and the
subscription period end moved onto the subscription items), so each lookup
tries the current location first and falls back to the older ones.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from .exceptions import MalformedEventError
from .models import (
    BillingEvent,
    BillingStatus,
    IgnoredEvent,
    InvoicePaidEvent,
    InvoicePaymentFailedEvent,
    SubscriptionDeletedEvent,
    SubscriptionUpdatedEvent,
)

logger = logging.getLogger(__name__)

INVOICE_PAID = "invoice.paid"
INVOICE_PAYMENT_FAILED = "invoice.payment_failed"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"

# Stripe subscription status -> internal status
STRIPE_STATUS_MAP: dict[str, BillingStatus] = {
    "active": BillingStatus.ACTIVE,
    "trialing": BillingStatus.ACTIVE,
    "past_due": BillingStatus.PAST_DUE,
    "unpaid": BillingStatus.PAST_DUE,
    "incomplete": BillingStatus.PAST_DUE,
    "paused": BillingStatus.PAST_DUE,
    "canceled": BillingStatus.CANCELED,
    "incomplete_expired": BillingStatus.CANCELED,
}

# Stripe statuses that move the user back to the default product
ACCESS_REVOKING_STATUSES = frozenset({"canceled", "unpaid", "incomplete_expired"})


def from_unix_timestamp(value: Any) -> datetime:
    """Convert Stripe seconds-since-epoch into an aware UTC datetime."""
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _dig(data: Any, *path: str) -> Any:
    """Walk nested mappings, returning None on the first missing key."""
    current = data
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def _first(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


def _as_id(value: Any) -> Optional[str]:
    """Stripe references are either an id string or an expanded object."""
    if isinstance(value, Mapping):
        value = value.get("id")
    return str(value) if value else None


class _EventContext:
    """Carries event identity so field errors can name the event."""

    def __init__(self, payload: Mapping[str, Any]):
        self.event_id: Optional[str] = payload.get("id")
        self.event_type: str = str(payload.get("type") or "")
        self.obj = _dig(payload, "data", "object")

    def fail(self, reason: str) -> MalformedEventError:
        return MalformedEventError(self.event_type, reason, event_id=self.event_id)

    def require(self, value: Any, field: str) -> Any:
        if value is None or value == "":
            raise self.fail(f"missing {field}")
        return value


def _line_price_id(line: Mapping[str, Any]) -> Optional[str]:
    return _first(
        _as_id(line.get("price")),
        _dig(line, "pricing", "price_details", "price"),
        _as_id(line.get("plan")),
    )


def _invoice_subscription_id(invoice: Mapping[str, Any]) -> Optional[str]:
    lines = _dig(invoice, "lines", "data") or []
    first_line = lines[0] if lines else {}
    return _first(
        _as_id(invoice.get("subscription")),
        _as_id(_dig(invoice, "parent", "subscription_details", "subscription")),
        _as_id(first_line.get("subscription")),
        _as_id(_dig(first_line, "parent", "subscription_item_details", "subscription")),
    )


def _normalize_invoice_paid(ctx: _EventContext) -> BillingEvent:
    invoice = ctx.obj
    lines = _dig(invoice, "lines", "data") or []
    if not lines:
        # $0 invoices unrelated to activation arrive with no line items
        return IgnoredEvent(
            event_id=ctx.event_id,
            event_type=ctx.event_type,
            reason="invoice has no line items",
        )

    line = lines[0]
    period_end = ctx.require(_dig(line, "period", "end"), "line period end")

    return InvoicePaidEvent(
        event_id=ctx.event_id,
        event_type=ctx.event_type,
        customer_email=ctx.require(invoice.get("customer_email"), "customer_email"),
        customer_id=ctx.require(_as_id(invoice.get("customer")), "customer"),
        external_price_id=ctx.require(_line_price_id(line), "line item price id"),
        external_subscription_id=ctx.require(
            _invoice_subscription_id(invoice), "subscription id"
        ),
        period_end=from_unix_timestamp(period_end),
    )


def _normalize_invoice_payment_failed(ctx: _EventContext) -> BillingEvent:
    return InvoicePaymentFailedEvent(
        event_id=ctx.event_id,
        event_type=ctx.event_type,
        external_subscription_id=ctx.require(
            _invoice_subscription_id(ctx.obj), "subscription id"
        ),
    )


def _normalize_subscription_updated(ctx: _EventContext) -> BillingEvent:
    subscription = ctx.obj
    items = _dig(subscription, "items", "data") or []
    if not items:
        raise ctx.fail("subscription has no items")
    item = items[0]

    status: Optional[BillingStatus] = None
    raw_status = subscription.get("status")
    if raw_status:
        status = STRIPE_STATUS_MAP.get(raw_status)
        if status is None:
            raise ctx.fail(f"unknown subscription status '{raw_status}'")

    period_end = ctx.require(
        _first(subscription.get("current_period_end"), item.get("current_period_end")),
        "current_period_end",
    )
    cancel_at = subscription.get("cancel_at")

    return SubscriptionUpdatedEvent(
        event_id=ctx.event_id,
        event_type=ctx.event_type,
        external_subscription_id=ctx.require(subscription.get("id"), "subscription id"),
        status=status,
        current_period_end=from_unix_timestamp(period_end),
        cancel_at=from_unix_timestamp(cancel_at) if cancel_at else None,
        external_price_id=_line_price_id(item),
        revokes_access=raw_status in ACCESS_REVOKING_STATUSES,
    )


def _normalize_subscription_deleted(ctx: _EventContext) -> BillingEvent:
    return SubscriptionDeletedEvent(
        event_id=ctx.event_id,
        event_type=ctx.event_type,
        external_subscription_id=ctx.require(ctx.obj.get("id"), "subscription id"),
    )


_NORMALIZERS: dict[str, Callable[[_EventContext], BillingEvent]] = {
    INVOICE_PAID: _normalize_invoice_paid,
    INVOICE_PAYMENT_FAILED: _normalize_invoice_payment_failed,
    SUBSCRIPTION_UPDATED: _normalize_subscription_updated,
    SUBSCRIPTION_DELETED: _normalize_subscription_deleted,
}


def normalize_event(payload: Mapping[str, Any]) -> BillingEvent:
    """
    Map a Stripe event payload to a canonical BillingEvent.

    Args:
        payload: Decoded Stripe event ({"id", "type", "data": {"object": ...}})

    Returns:
        One of the BillingEvent models. Event types that are not reconciled
        come back as IgnoredEvent.

    Raises:
        MalformedEventError: If a field required by the event type is missing
    """
    ctx = _EventContext(payload)
    if not ctx.event_type:
        raise ctx.fail("missing event type")

    normalizer = _NORMALIZERS.get(ctx.event_type)
    if normalizer is None:
        logger.debug(f"Ignoring unhandled Stripe event type: {ctx.event_type}")
        return IgnoredEvent(
            event_id=ctx.event_id,
            event_type=ctx.event_type,
            reason="event type not reconciled",
        )

    if not isinstance(ctx.obj, Mapping):
        raise ctx.fail("missing data.object")

    return normalizer(ctx)
