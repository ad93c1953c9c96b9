"""
Authentication module data models.
"""

from typing import Optional
from pydantic import BaseModel, Field


class JWTPayload(BaseModel):
    """
    Decoded access token payload.

    Matches the Supabase Auth JWT layout; a boolean ``email_verified``
    claim is also honoured for tokens issued by the account service.
    """

    sub: str = Field(..., description="Subject (user ID)")
    email: Optional[str] = Field(None, description="User's email")
    email_confirmed_at: Optional[str] = Field(None, description="Email confirmation time")
    email_verified: Optional[bool] = Field(None, description="Explicit verification claim")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    aud: str = Field(default="authenticated", description="Audience")
    role: str = Field(default="authenticated", description="User role")

    @property
    def is_email_verified(self) -> bool:
        if self.email_verified is not None:
            return self.email_verified
        return self.email_confirmed_at is not None
