"""
JWT token models.

The claims the auth middleware reads from a Supabase access token.
"""

from pydantic import BaseModel, ConfigDict
from typing import Optional


class TokenPayload(BaseModel):
    """JWT token payload structure."""
    model_config = ConfigDict(extra="ignore")

    sub: str  # User ID, used as the entitlement subject id
    email: str
    email_confirmed_at: Optional[str] = None
    aud: str  # Audience
    exp: int  # Expiration timestamp
    iat: int  # Issued at timestamp
    role: str = "authenticated"
