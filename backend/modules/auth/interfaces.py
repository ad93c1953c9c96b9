"""
Authentication module interface.

The API layer resolves callers through IAuthService; tests swap in an
AuthService bound to a throwaway secret.
"""

from typing import Protocol, runtime_checkable

from shared.models import AuthenticatedUser


@runtime_checkable
class IAuthService(Protocol):
    async def validate_token(self, token: str) -> AuthenticatedUser:
        """
        Turn a bearer token into the caller's identity.

        ``email_verified`` on the result reflects the token claims only;
        billing decisions re-read the user directory instead.

        Raises:
            MissingTokenError: If token is empty
            InvalidTokenError: If the signature, audience or claims are bad
            ExpiredTokenError: If the token has expired
        """
        ...
