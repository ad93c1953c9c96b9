"""
Billing service implementation.

Thin facade that the API layer talks to. Webhook deliveries go
verifier -> normalizer -> reconciler; user-initiated session requests
go to the session gateway.
"""

import logging
from typing import Optional

from .events import normalize_event
from .gateway import SessionGateway
from .interfaces import IBillingService, IWebhookVerifier
from .models import CheckoutSession, PortalSession, UserBillingSummary, WebhookAck
from .reconciler import BillingReconciler

logger = logging.getLogger(__name__)


class BillingService(IBillingService):
    """
    Implementation of the billing service.

    Collaborators are injected by the service container so tests can swap
    in fakes for Stripe and Supabase.
    """

    def __init__(
        self,
        verifier: IWebhookVerifier,
        reconciler: BillingReconciler,
        gateway: SessionGateway,
    ):
        self._verifier = verifier
        self._reconciler = reconciler
        self._gateway = gateway

    async def process_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookAck:
        """Verify, normalize and reconcile one webhook delivery."""
        raw_event = self._verifier.verify(payload, signature)
        event = normalize_event(raw_event)

        logger.info(f"Processing webhook: {event.event_type} (ID: {event.event_id})")
        result = await self._reconciler.reconcile(event)

        return WebhookAck(kind=result.kind, outcome=result.outcome)

    async def create_checkout_session(
        self,
        user_id: str,
        success_url: str,
        cancel_url: str,
        product_id: Optional[str] = None,
        price_id: Optional[str] = None,
    ) -> CheckoutSession:
        return await self._gateway.create_checkout_session(
            user_id,
            success_url,
            cancel_url,
            product_id=product_id,
            price_id=price_id,
        )

    async def create_portal_session(self, user_id: str, return_url: str) -> PortalSession:
        return await self._gateway.create_portal_session(user_id, return_url)

    async def get_user_billing(self, user_id: str) -> UserBillingSummary:
        return await self._gateway.get_user_billing(user_id)
