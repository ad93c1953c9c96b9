"""
User directory interface.

The billing module depends on IUserRepository, not on Supabase.
"""

from typing import Protocol, Optional, runtime_checkable

from .models import User


@runtime_checkable
class IUserRepository(Protocol):
    """Read/write operations the billing module needs on user records."""

    async def find_by_id(self, user_id: str) -> Optional[User]:
        """
        Get a user by ID.

        Returns:
            User if found, None otherwise
        """
        ...

    async def find_by_email(self, email: str) -> Optional[User]:
        """
        Get a user by email address (compared lowercased).

        Returns:
            User if found, None otherwise
        """
        ...

    async def update_current_product(self, user_id: str, product_id: str) -> User:
        """
        Point a user at a product.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
        ...
