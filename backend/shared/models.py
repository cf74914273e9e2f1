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
    to route handlers via dependency injection. Its id is the
    subject id every entitlement is keyed by.
    """

    id: str = Field(..., description="User ID (UUID from Supabase)")
    email: EmailStr = Field(..., description="User's email address")
    email_verified: bool = Field(default=False, description="Whether email is verified")

    last_sign_in: Optional[datetime] = Field(None, description="Last sign-in time")

    role: str = Field(default="user", description="User role from the JWT")

    model_config = {
        "frozen": True,
        "extra": "ignore",  # Ignore extra fields from JWT
    }
