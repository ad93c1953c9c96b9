"""
User directory exceptions.
"""

from shared.exceptions import AuthorizationError, NotFoundError


class UserNotFoundError(NotFoundError):
    """Raised when a user record doesn't exist."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            code="USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class EmailNotVerifiedError(AuthorizationError):
    """
    Raised when an unverified account attempts a purchase.

    The UI should prompt the user to confirm their email address
    before retrying checkout.
    """

    def __init__(self, user_id: str):
        super().__init__(
            "Email address must be verified before purchasing a subscription",
            code="EMAIL_NOT_VERIFIED",
            details={"user_id": user_id},
        )
