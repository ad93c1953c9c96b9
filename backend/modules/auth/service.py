"""
Authentication service implementation.

Validates HS256 JWT access tokens.
"""

from datetime import datetime, timezone
from typing import Optional
import jwt

from shared.config import get_settings
from shared.models import AuthenticatedUser

from .interfaces import IAuthService
from .models import JWTPayload
from .exceptions import (
    InvalidTokenError,
    ExpiredTokenError,
    MissingTokenError,
)


class AuthService(IAuthService):
    """Validates access tokens signed with the shared JWT secret."""

    def __init__(self, jwt_secret: Optional[str] = None):
        self._jwt_secret = jwt_secret if jwt_secret is not None else get_settings().supabase_jwt_secret

    async def validate_token(self, token: str) -> AuthenticatedUser:
        if not token:
            raise MissingTokenError()
        if not self._jwt_secret:
            raise InvalidTokenError("Server authentication not configured", reason="secret")

        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=["HS256"],
                audience="authenticated",
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(str(e), reason=type(e).__name__)

        jwt_payload = JWTPayload(**payload)
        if not jwt_payload.email:
            raise InvalidTokenError("Token has no email claim", reason="email")

        return AuthenticatedUser(
            id=jwt_payload.sub,
            email=jwt_payload.email,
            email_verified=jwt_payload.is_email_verified,
            last_sign_in=datetime.fromtimestamp(jwt_payload.iat, tz=timezone.utc),
            role=jwt_payload.role if jwt_payload.role != "authenticated" else "user",
        )
