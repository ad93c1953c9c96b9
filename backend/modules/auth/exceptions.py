"""
Authentication module exceptions.

Each error carries the RFC 6750 error code the API layer puts in the
WWW-Authenticate challenge. A missing token has none.
"""

from typing import Optional

from shared.exceptions import AuthenticationError


class TokenError(AuthenticationError):
    """Base class for bearer token failures."""

    challenge_error: Optional[str] = "invalid_token"

    def __init__(self, message: str, code: str, reason: Optional[str] = None):
        details = {"reason": reason} if reason else None
        super().__init__(message, code=code, details=details)


class InvalidTokenError(TokenError):
    """Raised when a JWT is malformed, badly signed or lacks required claims."""

    def __init__(self, message: str = "Invalid authentication token", reason: Optional[str] = None):
        super().__init__(message, code="INVALID_TOKEN", reason=reason)


class ExpiredTokenError(TokenError):
    """Raised when a JWT has expired."""

    def __init__(self, message: str = "Authentication token has expired"):
        super().__init__(message, code="TOKEN_EXPIRED", reason="exp")


class MissingTokenError(TokenError):
    """Raised when no token is provided."""

    challenge_error = None

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="MISSING_TOKEN")
