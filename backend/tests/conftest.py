"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import pytest
from datetime import datetime, timezone, timedelta
import jwt  # PyJWT

from api.dependencies import reset_container
from tests.fakes import (
    InMemoryBillingRepository,
    InMemoryProductRepository,
    InMemoryUserRepository,
    RecordingProcessor,
    make_product,
    make_user,
)


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    expired: bool = False,
    email_verified: bool = True,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        expired: If True, creates an expired token
        email_verified: Whether the email should be marked as verified

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "email_confirmed_at": now.isoformat() if email_verified else None,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


@pytest.fixture(autouse=True)
def reset_services():
    """Reset the DI container before and after each test."""
    reset_container()
    yield
    reset_container()


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return "test@example.com"


@pytest.fixture
def auth_token(test_user_id: str, test_user_email: str) -> str:
    """Create a valid auth token for testing."""
    return create_test_token(user_id=test_user_id, email=test_user_email)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}


# -----------------------------------------------------------------------------
# Billing fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def free_product():
    return make_product(id="prod-free", name="Free", price=0, is_default=True)


@pytest.fixture
def pro_product():
    return make_product(
        id="prod-pro",
        name="Pro",
        price=2999,
        external_price_id="price_pro",
        external_product_id="prod_stripe_pro",
    )


@pytest.fixture
def team_product():
    return make_product(
        id="prod-team",
        name="Team",
        price=9999,
        external_price_id="price_team",
        external_product_id="prod_stripe_team",
    )


@pytest.fixture
def products(free_product, pro_product, team_product) -> InMemoryProductRepository:
    return InMemoryProductRepository([free_product, pro_product, team_product])


@pytest.fixture
def user(test_user_id, test_user_email, free_product):
    return make_user(id=test_user_id, email=test_user_email, current_product_id=free_product.id)


@pytest.fixture
def users(user) -> InMemoryUserRepository:
    return InMemoryUserRepository([user])


@pytest.fixture
def billings() -> InMemoryBillingRepository:
    return InMemoryBillingRepository()


@pytest.fixture
def processor() -> RecordingProcessor:
    return RecordingProcessor()
