"""
Admin module interfaces.
"""

from datetime import datetime, timedelta
from typing import Optional, Protocol, runtime_checkable

from shared.models import AuthenticatedUser
from .models import AdminProfile, AdminSession, PrivilegeLevel


@runtime_checkable
class IAdminDirectory(Protocol):
    """Lookup of users allowed to act as admins."""

    def get_profile(self, admin_id: str) -> Optional[AdminProfile]:
        ...


@runtime_checkable
class IAdminSessionRepository(Protocol):
    """Storage for admin sessions."""

    def get(self, session_id: str) -> Optional[AdminSession]:
        ...

    def insert(self, session: AdminSession) -> None:
        ...

    def update_expiry(self, session_id: str, expires_at: datetime) -> None:
        ...

    def delete(self, session_id: str) -> bool:
        ...


@runtime_checkable
class IAdminSessionGuard(Protocol):
    """Opens admin sessions and checks them before privileged actions."""

    def authenticate(self, user: AuthenticatedUser) -> AdminSession:
        ...

    def authorize(
        self,
        session_id: str,
        required_level: PrivilegeLevel = PrivilegeLevel.STANDARD,
        actor_id: Optional[str] = None,
    ) -> AdminSession:
        """Check a session; when actor_id is given it must own the session."""
        ...

    def refresh(self, session_id: str, actor_id: Optional[str] = None) -> AdminSession:
        ...

    def time_remaining(self, session_id: str) -> timedelta:
        ...

    def end(self, session_id: str, actor_id: Optional[str] = None) -> None:
        ...
