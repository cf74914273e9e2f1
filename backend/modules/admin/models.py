"""
Admin module data models.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from modules.entitlements.models import DurationClass


class PrivilegeLevel(str, Enum):
    """Admin privilege levels, ordered: super > standard."""

    STANDARD = "standard"
    SUPER = "super"

    @property
    def rank(self) -> int:
        return _PRIVILEGE_RANK[self]

    def satisfies(self, required: "PrivilegeLevel") -> bool:
        return self.rank >= required.rank


_PRIVILEGE_RANK = {
    PrivilegeLevel.STANDARD: 1,
    PrivilegeLevel.SUPER: 2,
}


class AdminProfile(BaseModel):
    """A user who may open admin sessions."""

    admin_id: str = Field(..., description="User ID of the admin")
    email: Optional[str] = Field(None, description="Admin email, for display")
    privilege_level: PrivilegeLevel = Field(default=PrivilegeLevel.STANDARD)
    is_active: bool = Field(default=True, description="Disabled admins cannot authenticate")


class AdminSession(BaseModel):
    """
    A time-bounded elevated session.

    Expiry is checked whenever the session is used; nothing runs when it
    lapses.
    """

    id: str = Field(..., description="Session ID (UUID)")
    admin_id: str = Field(..., description="Admin user ID")
    granted_at: datetime = Field(..., description="When the session was opened")
    expires_at: datetime = Field(..., description="When elevated access ends")
    privilege_level: PrivilegeLevel = Field(..., description="Privilege held by the session")

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def remaining(self, now: datetime) -> timedelta:
        return max(self.expires_at - now, timedelta(0))


# ============================================================================
# Request / Response Models
# ============================================================================


class AdminSessionResponse(BaseModel):
    """Admin session as returned to the dashboard."""

    session_id: str
    admin_id: str
    privilege_level: PrivilegeLevel
    expires_at: datetime
    remaining_seconds: int

    @classmethod
    def from_session(cls, session: AdminSession, now: datetime) -> "AdminSessionResponse":
        return cls(
            session_id=session.id,
            admin_id=session.admin_id,
            privilege_level=session.privilege_level,
            expires_at=session.expires_at,
            remaining_seconds=int(session.remaining(now).total_seconds()),
        )


class AdminGrantRequest(BaseModel):
    """Manual entitlement grant."""

    subject_id: str = Field(..., min_length=1, description="Subject receiving access")
    duration_class: DurationClass = Field(..., description="Duration to grant")
