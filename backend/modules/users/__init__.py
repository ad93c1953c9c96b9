"""
User directory module.

Account records as seen by billing: lookup by id/email, email
verification state, and current product assignment.

Public API:
- IUserRepository: Interface for user record access
- User: Account record
- User exceptions: UserNotFoundError, EmailNotVerifiedError
"""

from .interfaces import IUserRepository
from .models import User
from .exceptions import UserNotFoundError, EmailNotVerifiedError

__all__ = [
    # Interface
    "IUserRepository",
    # Models
    "User",
    # Exceptions
    "UserNotFoundError",
    "EmailNotVerifiedError",
]
