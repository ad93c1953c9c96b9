"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class AuthenticatedUser(BaseModel):
    """
    Represents an authenticated user in the system.

    This model is populated from JWT claims and made available
    to route handlers via dependency injection.

    The billing module never trusts email_verified from here for purchases;
    it re-reads the user record from the user directory.
    """

    id: str = Field(..., description="User ID (UUID)")
    email: EmailStr = Field(..., description="User's email address")
    email_verified: bool = Field(default=False, description="Whether email is verified")

    last_sign_in: Optional[datetime] = Field(None, description="Last sign-in time")
    role: str = Field(default="user", description="User role")

    model_config = {
        "frozen": True,  # Immutable
        "extra": "ignore",  # Ignore extra fields from JWT
    }
