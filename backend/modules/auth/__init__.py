"""
Authentication module.

Handles JWT access token validation for the API layer.

Public API:
- IAuthService: Interface for auth operations
- JWTPayload: Decoded token claims
- Auth exceptions: TokenError and its InvalidTokenError, ExpiredTokenError,
  MissingTokenError subclasses
"""

from .interfaces import IAuthService
from .models import JWTPayload
from .exceptions import (
    TokenError,
    InvalidTokenError,
    ExpiredTokenError,
    MissingTokenError,
)

__all__ = [
    # Interface
    "IAuthService",
    # Models
    "JWTPayload",
    # Exceptions
    "TokenError",
    "InvalidTokenError",
    "ExpiredTokenError",
    "MissingTokenError",
]
