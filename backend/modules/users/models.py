"""
User directory data models.

The user record is owned by the account layer; the billing module only
reads it and moves current_product_id.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class User(BaseModel):
    """An account record as stored in the users table."""

    id: str = Field(..., description="User ID (UUID)")
    email: EmailStr = Field(..., description="Email address (globally unique)")
    name: Optional[str] = Field(None, description="Display name")
    password: Optional[str] = Field(
        None,
        description="Password credential (absent for federated accounts)",
        repr=False,
    )
    age: Optional[int] = Field(None, ge=0, description="Age in years")
    phone: Optional[str] = Field(None, description="Phone number")
    email_verified: bool = Field(default=False, description="Whether email is verified")
    current_product_id: Optional[str] = Field(
        None,
        description="Assigned product (null until billing is established)",
    )
    refresh_token: Optional[str] = Field(None, description="Single active refresh token", repr=False)
    email_token: Optional[str] = Field(
        None,
        description="Pending email verification/change token",
        repr=False,
    )
    created_at: Optional[datetime] = Field(None, description="Account creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")
