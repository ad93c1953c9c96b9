import pytest
from unittest.mock import patch
import jwt
from datetime import datetime, timedelta, timezone

from api.dependencies import get_container, reset_container
from modules.auth.service import AuthService
from modules.auth.exceptions import (
    InvalidTokenError,
    ExpiredTokenError,
    MissingTokenError,
)


def _encode(secret: str = "test-secret", **overrides) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "user-123",
        "email": "test@example.com",
        "exp": now + timedelta(hours=1),
        "iat": now,
        "aud": "authenticated",
        "role": "authenticated",
    }
    payload.update(overrides)
    return jwt.encode({k: v for k, v in payload.items() if v is not None}, secret, algorithm="HS256")


class TestAuthService:
    @pytest.fixture
    def service(self):
        """Create auth service with a known secret."""
        return AuthService(jwt_secret="test-secret")

    @pytest.mark.asyncio
    async def test_validate_valid_token(self, service):
        """Should validate a valid token and return user."""
        user = await service.validate_token(_encode())
        assert user.id == "user-123"
        assert user.email == "test@example.com"
        assert user.role == "user"
        assert user.last_sign_in is not None

    @pytest.mark.asyncio
    async def test_email_confirmed_at_marks_verified(self, service):
        token = _encode(email_confirmed_at="2024-01-01T00:00:00Z")
        user = await service.validate_token(token)
        assert user.email_verified is True

    @pytest.mark.asyncio
    async def test_unconfirmed_email_is_not_verified(self, service):
        user = await service.validate_token(_encode())
        assert user.email_verified is False

    @pytest.mark.asyncio
    async def test_explicit_email_verified_claim_wins(self, service):
        token = _encode(email_confirmed_at="2024-01-01T00:00:00Z", email_verified=False)
        user = await service.validate_token(token)
        assert user.email_verified is False

    @pytest.mark.asyncio
    async def test_validate_expired_token(self, service):
        """Should raise ExpiredTokenError for expired token."""
        now = datetime.now(timezone.utc)
        token = _encode(exp=now - timedelta(hours=1), iat=now - timedelta(hours=2))
        with pytest.raises(ExpiredTokenError) as exc_info:
            await service.validate_token(token)
        assert exc_info.value.code == "TOKEN_EXPIRED"
        assert exc_info.value.details == {"reason": "exp"}

    @pytest.mark.asyncio
    async def test_validate_invalid_token(self, service):
        """Should raise InvalidTokenError for malformed token."""
        with pytest.raises(InvalidTokenError):
            await service.validate_token("not-a-valid-token")

    @pytest.mark.asyncio
    async def test_wrong_secret_rejected(self, service):
        with pytest.raises(InvalidTokenError) as exc_info:
            await service.validate_token(_encode(secret="other-secret"))
        assert exc_info.value.details["reason"] == "InvalidSignatureError"

    @pytest.mark.asyncio
    async def test_wrong_audience_rejected(self, service):
        with pytest.raises(InvalidTokenError) as exc_info:
            await service.validate_token(_encode(aud="anon"))
        assert exc_info.value.details["reason"] == "InvalidAudienceError"

    @pytest.mark.asyncio
    async def test_missing_email_rejected(self, service):
        with pytest.raises(InvalidTokenError, match="email"):
            await service.validate_token(_encode(email=None))

    @pytest.mark.asyncio
    async def test_validate_missing_token(self, service):
        """Should raise MissingTokenError for empty token."""
        with pytest.raises(MissingTokenError):
            await service.validate_token("")

    @pytest.mark.asyncio
    async def test_validate_none_token(self, service):
        """Should raise MissingTokenError for None token."""
        with pytest.raises(MissingTokenError):
            await service.validate_token(None)

    @pytest.mark.asyncio
    async def test_unconfigured_secret(self):
        """Without a secret every token is rejected."""
        service = AuthService(jwt_secret="")
        with pytest.raises(InvalidTokenError, match="not configured"):
            await service.validate_token(_encode())


class TestAuthServiceConfig:
    def test_secret_defaults_to_settings(self):
        with patch("modules.auth.service.get_settings") as mock_settings:
            mock_settings.return_value.supabase_jwt_secret = "from-settings"
            service = AuthService()
        assert service._jwt_secret == "from-settings"

    def test_container_caches_auth_service(self):
        with patch("modules.auth.service.get_settings") as mock_settings:
            mock_settings.return_value.supabase_jwt_secret = "secret"
            first = get_container().auth
            second = get_container().auth
            reset_container()
            third = get_container().auth
        assert first is second
        assert first is not third
