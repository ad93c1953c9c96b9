"""
User repository backed by the Supabase users table.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from shared.repository import BaseRepository

from .exceptions import UserNotFoundError
from .models import User


class UserRepository(BaseRepository[User]):
    """Supabase implementation of IUserRepository."""

    table = "users"

    async def find_by_id(self, user_id: str) -> Optional[User]:
        row = await self._fetch_one(self.table, "id", user_id)
        return self._map_to_user(row) if row else None

    async def find_by_email(self, email: str) -> Optional[User]:
        # Emails are stored lowercased
        row = await self._fetch_one(self.table, "email", email.strip().lower())
        return self._map_to_user(row) if row else None

    async def update_current_product(self, user_id: str, product_id: str) -> User:
        data = {
            "current_product_id": product_id,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        result = await self._db.table(self.table).update(data).eq("id", user_id).execute()
        if not result.data:
            raise UserNotFoundError(user_id)
        return self._map_to_user(result.data[0])

    def _map_to_user(self, data: dict[str, Any]) -> User:
        """Map database row to User model."""
        return User(
            id=str(data["id"]),
            email=data["email"],
            name=data.get("name"),
            password=data.get("password"),
            age=data.get("age"),
            phone=data.get("phone"),
            email_verified=bool(data.get("email_verified", False)),
            current_product_id=(
                str(data["current_product_id"]) if data.get("current_product_id") else None
            ),
            refresh_token=data.get("refresh_token"),
            email_token=data.get("email_token"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )
