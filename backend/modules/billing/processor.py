"""
Stripe adapter.

StripeProcessor implements IPaymentProcessor with the blocking Stripe SDK
calls pushed onto a worker thread; StripeWebhookVerifier implements
IWebhookVerifier on top of stripe.Webhook.construct_event. Stripe errors are translated into
PaymentProcessorError so callers can tell "Stripe is unavailable" apart
from domain validation errors.
"""

import asyncio
import json
import logging
from typing import Any, Mapping, Optional

import stripe

from .exceptions import PaymentProcessorError, WebhookVerificationError

logger = logging.getLogger(__name__)


class StripeProcessor:
    """Outbound Stripe calls used by the session gateway."""

    def __init__(self, api_key: str, api_version: Optional[str] = None):
        if not api_key:
            logger.warning("STRIPE_SECRET_KEY is not set. Stripe functionality will be unavailable.")
        self._request_options: dict[str, Any] = {"api_key": api_key}
        if api_version:
            self._request_options["stripe_version"] = api_version

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
        params: dict[str, Any] = {
            "mode": "subscription",
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata or {},
            "allow_promotion_codes": True,
        }
        # Stripe rejects requests that set both
        if customer_id:
            params["customer"] = customer_id
        elif customer_email:
            params["customer_email"] = customer_email

        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                **params,
                **self._request_options,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating checkout session: {e}")
            raise PaymentProcessorError("create_checkout_session", str(e)) from e

        logger.info(f"Checkout session created: {session.id}")
        return session.id, session.url

    async def create_portal_session(self, *, customer_id: str, return_url: str) -> str:
        try:
            portal = await asyncio.to_thread(
                stripe.billing_portal.Session.create,
                customer=customer_id,
                return_url=return_url,
                **self._request_options,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating portal session: {e}")
            raise PaymentProcessorError("create_portal_session", str(e)) from e

        return portal.url


class StripeWebhookVerifier:
    """Verifies the Stripe-Signature header before any payload is trusted."""

    def __init__(self, webhook_secret: str, tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE):
        self._secret = webhook_secret
        self._tolerance = tolerance

    def verify(self, payload: bytes, signature: Optional[str]) -> Mapping[str, Any]:
        """
        Check the signature and decode the event body.

        Raises:
            WebhookVerificationError: If the secret is unset, the signature
                is missing/invalid, or the body isn't valid JSON
        """
        if not self._secret:
            logger.error("Webhook secret not configured - rejecting webhook")
            raise WebhookVerificationError("webhook secret not configured")
        if not signature:
            logger.warning("No Stripe signature found on request")
            raise WebhookVerificationError("missing signature")

        try:
            stripe.Webhook.construct_event(
                payload,
                signature,
                self._secret,
                tolerance=self._tolerance,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise WebhookVerificationError("invalid signature") from e
        except ValueError as e:
            logger.warning(f"Webhook payload is not valid JSON: {e}")
            raise WebhookVerificationError("invalid payload") from e

        # Plain dicts keep the normalizer independent of StripeObject
        return json.loads(payload)
