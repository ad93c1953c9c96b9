"""
Billing API endpoints.

- POST /webhook: Stripe event sink (signature-verified, unauthenticated)
- POST /checkout-session: start a subscription purchase
- POST /portal-session: open the Stripe customer portal
- GET /me: current user's billing summary

Domain errors raised by the service are translated to HTTP responses by
the application-level SubledgerError handler.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from api.dependencies import get_billing_service
from api.middleware.auth import get_current_user
from shared.models import AuthenticatedUser

from .exceptions import WebhookVerificationError
from .interfaces import IBillingService
from .models import (
    CheckoutSession,
    CheckoutSessionRequest,
    PortalSession,
    PortalSessionRequest,
    UserBillingSummary,
    WebhookAck,
)

router = APIRouter()


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    service: IBillingService = Depends(get_billing_service),
) -> WebhookAck:
    """
    Receive a Stripe webhook.

    Returns 200 for every understood event, including no-ops and
    event types that aren't reconciled. Returns 400 when the signature
    or payload is bad, and 5xx when reconciliation failed and Stripe
    should redeliver.
    """
    payload = await request.body()
    try:
        return await service.process_webhook(payload, stripe_signature)
    except WebhookVerificationError:
        raise HTTPException(status_code=400, detail="Webhook signature verification failed")


@router.post("/checkout-session", response_model=CheckoutSession)
async def create_checkout_session(
    body: CheckoutSessionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IBillingService = Depends(get_billing_service),
) -> CheckoutSession:
    """
    Create a Stripe checkout session for the current user.

    Requires a verified email address.
    """
    return await service.create_checkout_session(
        user.id,
        body.success_url,
        body.cancel_url,
        product_id=body.product_id,
        price_id=body.price_id,
    )


@router.post("/portal-session", response_model=PortalSession)
async def create_portal_session(
    body: PortalSessionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IBillingService = Depends(get_billing_service),
) -> PortalSession:
    """Create a Stripe customer portal session for the current user."""
    return await service.create_portal_session(user.id, body.return_url)


@router.get("/me", response_model=UserBillingSummary)
async def get_my_billing(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IBillingService = Depends(get_billing_service),
) -> UserBillingSummary:
    """Get the current user's billing record and product."""
    return await service.get_user_billing(user.id)
