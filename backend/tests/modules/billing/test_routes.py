"""
Tests for billing API routes.

The app runs with a real StripeWebhookVerifier, normalizer and reconciler
over in-memory repositories; only Stripe's outbound API is faked.
"""

import json
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import get_auth_service, get_billing_service
from modules.auth.service import AuthService
from modules.billing.gateway import SessionGateway
from modules.billing.models import BillingStatus
from modules.billing.processor import StripeWebhookVerifier
from modules.billing.reconciler import BillingReconciler
from modules.billing.service import BillingService
from tests.conftest import TEST_JWT_SECRET, create_test_token
from tests.fakes import RecordingProcessor, processor_down, sign_payload

WEBHOOK_SECRET = "whsec_routes"


def invoice_paid(email="test@example.com", price="price_pro") -> bytes:
    return json.dumps(
        {
            "id": "evt_paid",
            "object": "event",
            "type": "invoice.paid",
            "data": {
                "object": {
                    "customer": "cus_1",
                    "customer_email": email,
                    "subscription": "sub_1",
                    "lines": {"data": [{"price": {"id": price}, "period": {"end": 1735689600}}]},
                }
            },
        }
    ).encode()


def subscription_deleted() -> bytes:
    return json.dumps(
        {
            "id": "evt_deleted",
            "object": "event",
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_1", "status": "canceled"}},
        }
    ).encode()


class BillingApp:
    """Wires a test app and exposes helpers for posting webhooks."""

    def __init__(self, billings, products, users, processor):
        self.billings = billings
        self.users = users
        self.processor = processor
        self.service = BillingService(
            verifier=StripeWebhookVerifier(WEBHOOK_SECRET),
            reconciler=BillingReconciler(billings, products, users),
            gateway=SessionGateway(billings, products, users, processor),
        )
        self.app = create_app()
        self.app.dependency_overrides[get_billing_service] = lambda: self.service
        self.app.dependency_overrides[get_auth_service] = lambda: AuthService(jwt_secret=TEST_JWT_SECRET)
        self.client = TestClient(self.app, raise_server_exceptions=False)

    def webhook(self, body: bytes, signature: str | None = "sign"):
        headers = {"Content-Type": "application/json"}
        if signature == "sign":
            signature = sign_payload(body, WEBHOOK_SECRET)
        if signature:
            headers["Stripe-Signature"] = signature
        return self.client.post("/api/billing/webhook", content=body, headers=headers)


@pytest.fixture
def billing_app(billings, products, users, processor) -> BillingApp:
    return BillingApp(billings, products, users, processor)


class TestWebhookRoute:
    def test_invoice_paid_then_deleted(self, billing_app, test_user_id):
        """Purchase then cancellation, end to end through the webhook."""
        response = billing_app.webhook(invoice_paid())
        assert response.status_code == 200
        assert response.json() == {"received": True, "kind": "invoice_paid", "outcome": "applied"}
        assert billing_app.users.users[test_user_id].current_product_id == "prod-pro"

        response = billing_app.webhook(subscription_deleted())
        assert response.status_code == 200
        row = next(iter(billing_app.billings.rows.values()))
        assert row.status == BillingStatus.CANCELED
        assert billing_app.users.users[test_user_id].current_product_id == "prod-free"

    def test_redelivery_returns_200(self, billing_app):
        body = invoice_paid()
        assert billing_app.webhook(body).status_code == 200
        assert billing_app.webhook(body).status_code == 200
        assert len(billing_app.billings.rows) == 1

    def test_unknown_subscription_is_acknowledged(self, billing_app):
        response = billing_app.webhook(subscription_deleted())

        assert response.status_code == 200
        assert response.json()["outcome"] == "noop"

    def test_unhandled_type_is_acknowledged(self, billing_app):
        body = json.dumps({"id": "evt_x", "object": "event", "type": "charge.refunded", "data": {"object": {}}}).encode()

        response = billing_app.webhook(body)

        assert response.status_code == 200
        assert response.json()["outcome"] == "ignored"

    def test_missing_signature(self, billing_app):
        response = billing_app.webhook(invoice_paid(), signature=None)

        assert response.status_code == 400
        assert billing_app.billings.rows == {}

    def test_bad_signature(self, billing_app):
        response = billing_app.webhook(invoice_paid(), signature="t=1,v1=deadbeef")

        assert response.status_code == 400
        assert billing_app.billings.rows == {}

    def test_malformed_event(self, billing_app):
        body = json.dumps(
            {"id": "evt_bad", "object": "event", "type": "customer.subscription.deleted", "data": {"object": {}}}
        ).encode()

        response = billing_app.webhook(body)

        assert response.status_code == 400
        assert response.json()["error"] == "MALFORMED_EVENT"

    def test_unknown_user_asks_for_redelivery(self, billing_app):
        """A paid invoice for an unknown email is a server-side failure."""
        response = billing_app.webhook(invoice_paid(email="ghost@example.com"))

        assert response.status_code == 500
        assert response.json()["error"] == "BILLING_USER_NOT_FOUND"

    def test_incomplete_cascade_asks_for_redelivery(self, billing_app):
        billing_app.webhook(invoice_paid())
        billing_app.users.fail_updates = ConnectionError("users table unavailable")

        response = billing_app.webhook(subscription_deleted())

        assert response.status_code == 500
        assert response.json()["error"] == "RECONCILIATION_INCOMPLETE"

    def test_unexpected_error_is_opaque(self, billing_app):
        billing_app.service.process_webhook = AsyncMock(side_effect=RuntimeError("db exploded"))

        response = billing_app.webhook(invoice_paid())

        assert response.status_code == 500
        assert response.json()["error"] == "INTERNAL_ERROR"
        assert "exploded" not in response.text


class TestCheckoutRoute:
    URL = "/api/billing/checkout-session"
    BODY = {
        "product_id": "prod-pro",
        "success_url": "https://app.test/success",
        "cancel_url": "https://app.test/cancel",
    }

    def test_creates_session(self, billing_app, auth_headers):
        response = billing_app.client.post(self.URL, json=self.BODY, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"session_id": "cs_test_1", "url": billing_app.processor.checkout_url}

    def test_requires_auth(self, billing_app):
        response = billing_app.client.post(self.URL, json=self.BODY)
        assert response.status_code == 401

    def test_unverified_email(self, billing_app, auth_headers, test_user_id):
        user = billing_app.users.users[test_user_id]
        billing_app.users.users[test_user_id] = user.model_copy(update={"email_verified": False})

        response = billing_app.client.post(self.URL, json=self.BODY, headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "EMAIL_NOT_VERIFIED"
        assert billing_app.processor.call_count == 0

    def test_unknown_product(self, billing_app, auth_headers):
        body = {**self.BODY, "product_id": "prod-missing"}

        response = billing_app.client.post(self.URL, json=body, headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "PRODUCT_NOT_FOUND"

    def test_both_references(self, billing_app, auth_headers):
        body = {**self.BODY, "price_id": "price_pro"}

        response = billing_app.client.post(self.URL, json=body, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_SESSION_REQUEST"

    def test_stripe_unavailable(self, billings, products, users, auth_headers):
        billing_app = BillingApp(billings, products, users, RecordingProcessor(error=processor_down()))

        response = billing_app.client.post(self.URL, json=self.BODY, headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["details"]["service"] == "stripe"

    def test_missing_checkout_url(self, billings, products, users, auth_headers):
        billing_app = BillingApp(billings, products, users, RecordingProcessor(checkout_url=None))

        response = billing_app.client.post(self.URL, json=self.BODY, headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["error"] == "SESSION_CREATION_FAILED"


class TestPortalRoute:
    URL = "/api/billing/portal-session"

    def test_no_billing(self, billing_app, auth_headers):
        response = billing_app.client.post(
            self.URL, json={"return_url": "https://app.test/account"}, headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["error"] == "BILLING_NOT_FOUND"

    def test_opens_portal_after_purchase(self, billing_app, auth_headers):
        billing_app.webhook(invoice_paid())

        response = billing_app.client.post(
            self.URL, json={"return_url": "https://app.test/account"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["url"] == billing_app.processor.portal_url
        assert billing_app.processor.portal_calls[0]["customer_id"] == "cus_1"


class TestMyBillingRoute:
    URL = "/api/billing/me"

    def test_free_user(self, billing_app, auth_headers):
        response = billing_app.client.get(self.URL, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["has_subscription"] is False
        assert data["billing"] is None
        assert data["product"]["id"] == "prod-free"

    def test_after_purchase(self, billing_app, auth_headers):
        billing_app.webhook(invoice_paid())

        data = billing_app.client.get(self.URL, headers=auth_headers).json()

        assert data["has_subscription"] is True
        assert data["billing"]["status"] == "active"
        assert data["product"]["id"] == "prod-pro"

    def test_expired_token(self, billing_app):
        token = create_test_token(expired=True)
        response = billing_app.client.get(self.URL, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
