"""
Bearer token authentication for route handlers.

Failures become 401 responses with an RFC 6750 ``WWW-Authenticate``
challenge, so clients can tell an expired session from a missing one.
"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from shared.exceptions import AuthenticationError
from shared.models import AuthenticatedUser
from modules.auth.interfaces import IAuthService
from ..dependencies import get_auth_service

bearer_scheme = HTTPBearer(auto_error=False)


def challenge(error: Optional[str] = None, description: Optional[str] = None) -> str:
    """Build the WWW-Authenticate header value."""
    if error is None:
        return "Bearer"
    value = f'Bearer error="{error}"'
    if description:
        value += ', error_description="' + description.replace('"', "'") + '"'
    return value


class AuthError(HTTPException):
    def __init__(self, detail: str, error: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": challenge(error, detail if error else None)},
        )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: IAuthService = Depends(get_auth_service),
) -> AuthenticatedUser:
    """
    Resolve the caller from the Authorization header.

    Usage:
        @router.post("/checkout")
        async def checkout(user: AuthenticatedUser = Depends(get_current_user)):
            ...
    """
    if credentials is None:
        raise AuthError("Missing authorization header")

    try:
        return await auth.validate_token(credentials.credentials)
    except AuthenticationError as e:
        raise AuthError(e.message, getattr(e, "challenge_error", "invalid_token"))
