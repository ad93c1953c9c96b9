"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
Supabase client access and providing shared utilities for data operations.
"""

from typing import Any, Optional, TypeVar, Generic

from supabase import AsyncClient


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - Generic type parameter for model type hints
    - Single-row fetch helper shared by the lookup methods

    Subclasses should implement domain-specific data access methods
    and handle dict-to-Pydantic model mapping internally.

    Example:
        class BillingRepository(BaseRepository[Billing]):
            async def find_by_user_id(self, user_id: str) -> Optional[Billing]:
                row = await self._fetch_one("billings", "user_id", user_id)
                return self._map_to_billing(row) if row else None
    """

    def __init__(self, db: AsyncClient) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase async client instance for database operations.
        """
        self._db = db

    async def _fetch_one(self, table: str, column: str, value: Any) -> Optional[dict[str, Any]]:
        """Return the first row where column == value, or None."""
        result = await self._db.table(table).select("*").eq(column, value).limit(1).execute()
        if not result.data:
            return None
        return result.data[0]
