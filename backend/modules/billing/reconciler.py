"""
Billing reconciliation engine.

Applies canonical webhook events to the billing store, the user directory
and (read-only) the product catalog. Every handler is idempotent under
redelivery of the same event:

- invoice.paid converges on the single billing row per user (create once,
  update thereafter);
- the other handlers key on the Stripe subscription id, and a lookup miss
  is a silent no-op, never an error.

A user has one billing row whatever subscription it currently carries, so
writes are serialized per user id through a KeyedLock. Subscription-keyed
handlers re-read the row under that lock and drop the event when the row
has since moved to another subscription. There is no event-timestamp
comparison: two out-of-order updates for the same subscription leave the
state of whichever was applied last.

The reconciler never retries. Any exception propagates so the webhook
responds with a failure and Stripe redelivers the event.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable, Optional

from modules.products.interfaces import IProductRepository
from modules.products.models import Product
from modules.users.interfaces import IUserRepository
from modules.users.models import User

from .exceptions import BillingUserNotFoundError, DuplicateBillingError, ReconciliationError
from .interfaces import IBillingRepository
from .locks import KeyedLock
from .models import (
    Billing,
    BillingEvent,
    BillingStatus,
    BillingUpdate,
    EventKind,
    IgnoredEvent,
    InvoicePaidEvent,
    InvoicePaymentFailedEvent,
    NewBilling,
    ReconciliationOutcome,
    ReconciliationResult,
    SubscriptionDeletedEvent,
    SubscriptionUpdatedEvent,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BillingReconciler:
    """
    Reconciles Stripe subscription events into per-user billing state.

    This is the only writer of billing rows and of User.current_product_id.
    """

    def __init__(
        self,
        billings: IBillingRepository,
        products: IProductRepository,
        users: IUserRepository,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._billings = billings
        self._products = products
        self._users = users
        self._locks = locks or KeyedLock()
        self._clock = clock
        self._handlers: dict[EventKind, Callable[..., Awaitable[ReconciliationResult]]] = {
            EventKind.INVOICE_PAID: self.handle_invoice_paid,
            EventKind.INVOICE_PAYMENT_FAILED: self.handle_invoice_payment_failed,
            EventKind.SUBSCRIPTION_UPDATED: self.handle_subscription_updated,
            EventKind.SUBSCRIPTION_DELETED: self.handle_subscription_deleted,
            EventKind.IGNORED: self.handle_ignored,
        }

    async def reconcile(self, event: BillingEvent) -> ReconciliationResult:
        """Dispatch a canonical event to its handler."""
        return await self._handlers[event.kind](event)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    async def handle_invoice_paid(self, event: InvoicePaidEvent) -> ReconciliationResult:
        """
        Grant or extend access after a successful payment.

        An unknown price is acknowledged and dropped (product no longer sold
        or catalog mismatch). An unknown email is a data-integrity failure
        and raises BillingUserNotFoundError.
        """
        product = await self._products.find_by_external_price_id(event.external_price_id)
        if product is None:
            logger.warning(
                f"invoice.paid for unknown price {event.external_price_id} "
                f"(subscription {event.external_subscription_id}); discarding"
            )
            return self._noop(event, "unknown price id")

        user = await self._users.find_by_email(event.customer_email)
        if user is None:
            logger.error(
                f"invoice.paid for subscription {event.external_subscription_id} "
                f"names an email with no matching user; billing and user directory have diverged"
            )
            raise BillingUserNotFoundError(
                event.customer_email,
                event.external_subscription_id,
            )

        async with self._locks.hold(user.id):
            # A cancellation may have moved the user since the lookup
            user = await self._users.find_by_id(user.id) or user
            billing = await self._upsert_paid_billing(user, product, event)
            await self._assign_product(user, product.id)

            logger.info(
                f"Billing {billing.id} active for user {user.id} on product {product.id} "
                f"until {billing.expires_at.isoformat()}"
            )
            return self._applied(event, billing)

    async def handle_invoice_payment_failed(
        self,
        event: InvoicePaymentFailedEvent,
    ) -> ReconciliationResult:
        """Mark the subscription past due. The access window is left alone."""
        async with self._subscription_row(event) as billing:
            if billing is None:
                return self._unknown_subscription(event)

            billing = await self._billings.update(
                billing.id,
                BillingUpdate(status=BillingStatus.PAST_DUE),
            )
            logger.info(f"Billing {billing.id} marked past_due after failed payment")
            return self._applied(event, billing)

    async def handle_subscription_updated(
        self,
        event: SubscriptionUpdatedEvent,
    ) -> ReconciliationResult:
        """
        Sync status and expiry from Stripe.

        Expiry is the scheduled cancellation time when one is set, the
        current period end otherwise. A plan change moves both the billing
        row and the user. A canceled or unpaid status moves the user to the
        default product.
        """
        async with self._subscription_row(event) as billing:
            if billing is None:
                return self._unknown_subscription(event)

            updates = BillingUpdate(expires_at=event.effective_expiry, status=event.status)
            user_product_id: Optional[str] = None

            if event.external_price_id:
                product = await self._products.find_by_external_price_id(event.external_price_id)
                if product is None:
                    logger.warning(
                        f"Subscription {event.external_subscription_id} moved to unknown "
                        f"price {event.external_price_id}; keeping product {billing.product_id}"
                    )
                elif product.id != billing.product_id:
                    updates.product_id = product.id
                    user_product_id = product.id

            if event.revokes_access or event.status == BillingStatus.CANCELED:
                user_product_id = (await self._products.get_default()).id

            billing = await self._billings.update(billing.id, updates)
            if user_product_id is not None:
                await self._users.update_current_product(billing.user_id, user_product_id)

            logger.info(
                f"Billing {billing.id} synced: status={billing.status.value} "
                f"expires_at={billing.expires_at.isoformat()}"
            )
            return self._applied(event, billing)

    async def handle_subscription_deleted(
        self,
        event: SubscriptionDeletedEvent,
    ) -> ReconciliationResult:
        """
        Revoke access immediately and downgrade the user to the free tier.

        The billing row is written first. If moving the user then fails, the
        error is logged as an incomplete cascade and re-raised; Stripe's
        redelivery replays both steps, which are idempotent.
        """
        async with self._subscription_row(event) as billing:
            if billing is None:
                return self._unknown_subscription(event)

            # Resolve before writing so a catalog misconfiguration fails cleanly
            default_product = await self._products.get_default()

            billing = await self._billings.update(
                billing.id,
                BillingUpdate(status=BillingStatus.CANCELED, expires_at=self._clock()),
            )

            try:
                await self._users.update_current_product(billing.user_id, default_product.id)
            except Exception as e:
                logger.error(
                    f"Cancellation cascade incomplete: billing {billing.id} canceled but "
                    f"user {billing.user_id} is still on a paid product: {e}",
                    exc_info=True,
                )
                raise ReconciliationError(
                    "Cancellation cascade incomplete",
                    details={
                        "billing_id": billing.id,
                        "user_id": billing.user_id,
                        "external_subscription_id": event.external_subscription_id,
                    },
                ) from e

            logger.info(
                f"Billing {billing.id} canceled; user {billing.user_id} "
                f"moved to default product {default_product.id}"
            )
            return self._applied(event, billing)

    async def handle_ignored(self, event: IgnoredEvent) -> ReconciliationResult:
        logger.debug(f"Acknowledged {event.event_type} without reconciliation: {event.reason}")
        return ReconciliationResult(
            kind=event.kind,
            outcome=ReconciliationOutcome.IGNORED,
            detail=event.reason,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _subscription_row(self, event: BillingEvent) -> AsyncIterator[Optional[Billing]]:
        """
        Hold the lock of the user whose row carries the event's subscription.

        Yields the row as re-read under the lock, or None when no row
        carries that subscription (never did, or the user has resubscribed).
        """
        found = await self._billings.find_by_external_subscription_id(
            event.external_subscription_id
        )
        if found is None:
            yield None
            return

        async with self._locks.hold(found.user_id):
            current = await self._billings.find_by_user_id(found.user_id)
            if current is not None and current.external_subscription_id == event.external_subscription_id:
                yield current
            else:
                yield None

    async def _upsert_paid_billing(
        self,
        user: User,
        product: Product,
        event: InvoicePaidEvent,
    ) -> Billing:
        """Create the user's billing row, or update the one that exists."""
        existing = await self._billings.find_by_user_id(user.id)
        if existing is None:
            try:
                return await self._billings.create(
                    NewBilling(
                        user_id=user.id,
                        product_id=product.id,
                        external_subscription_id=event.external_subscription_id,
                        external_customer_id=event.customer_id,
                        status=BillingStatus.ACTIVE,
                        expires_at=event.period_end,
                    )
                )
            except DuplicateBillingError:
                # Another process created the row between our read and insert
                logger.info(f"Billing for user {user.id} created concurrently; updating instead")
                existing = await self._billings.find_by_user_id(user.id)
                if existing is None:
                    raise

        updates = BillingUpdate(
            expires_at=event.period_end,
            status=BillingStatus.ACTIVE,
            external_subscription_id=event.external_subscription_id,
            external_customer_id=event.customer_id,
        )
        if existing.product_id != product.id:
            updates.product_id = product.id
        return await self._billings.update(existing.id, updates)

    async def _assign_product(self, user: User, product_id: str) -> None:
        if user.current_product_id != product_id:
            await self._users.update_current_product(user.id, product_id)

    def _applied(self, event: BillingEvent, billing: Billing) -> ReconciliationResult:
        return ReconciliationResult(
            kind=event.kind,
            outcome=ReconciliationOutcome.APPLIED,
            billing_id=billing.id,
        )

    def _noop(self, event: BillingEvent, detail: str) -> ReconciliationResult:
        return ReconciliationResult(
            kind=event.kind,
            outcome=ReconciliationOutcome.NOOP,
            detail=detail,
        )

    def _unknown_subscription(self, event: BillingEvent) -> ReconciliationResult:
        logger.info(
            f"{event.event_type}: no billing row carries subscription "
            f"{event.external_subscription_id}; nothing to reconcile"
        )
        return self._noop(event, "unknown subscription id")
