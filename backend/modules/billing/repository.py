"""
Billing repository for database access.

Encapsulates all Supabase queries and data mapping for the billings table.
The table carries unique indexes on user_id and external_subscription_id;
a violation on insert surfaces as DuplicateBillingError so the reconciler
can fall back to an update.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from postgrest.exceptions import APIError

from shared.repository import BaseRepository

from .exceptions import BillingNotFoundError, DuplicateBillingError
from .models import Billing, BillingStatus, BillingUpdate, NewBilling

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


class BillingRepository(BaseRepository[Billing]):
    """
    Repository for billing records.

    Note: This repository does NOT perform authorization checks or
    business validation. The reconciler owns all invariants.
    """

    table = "billings"

    async def find_by_user_id(self, user_id: str) -> Optional[Billing]:
        row = await self._fetch_one(self.table, "user_id", user_id)
        return self._map_to_billing(row) if row else None

    async def find_by_external_subscription_id(
        self,
        external_subscription_id: str,
    ) -> Optional[Billing]:
        row = await self._fetch_one(self.table, "external_subscription_id", external_subscription_id)
        return self._map_to_billing(row) if row else None

    async def create(self, billing: NewBilling) -> Billing:
        """
        Create a new billing record.

        Raises:
            DuplicateBillingError: If the user already has a row
        """
        data = billing.model_dump(mode="json")
        try:
            result = await self._db.table(self.table).insert(data).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise DuplicateBillingError(billing.user_id) from e
            raise
        return self._map_to_billing(result.data[0])

    async def update(self, billing_id: str, updates: BillingUpdate) -> Billing:
        """
        Update only the fields set on ``updates``.

        Raises:
            BillingNotFoundError: If no row has this id
        """
        data: dict[str, Any] = updates.model_dump(mode="json", exclude_none=True)
        data["updated_at"] = datetime.now(timezone.utc).isoformat()

        result = await self._db.table(self.table).update(data).eq("id", billing_id).execute()
        if not result.data:
            raise BillingNotFoundError(billing_id=billing_id)
        return self._map_to_billing(result.data[0])

    def _map_to_billing(self, data: dict[str, Any]) -> Billing:
        """Map database row to Billing model."""
        return Billing(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            product_id=str(data["product_id"]),
            external_subscription_id=data.get("external_subscription_id"),
            external_customer_id=data.get("external_customer_id"),
            status=BillingStatus(data["status"]),
            expires_at=data["expires_at"],
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )
