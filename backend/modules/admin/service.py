"""
Admin session guard.

Every privileged operation calls authorize() first. Expiry is checked
lazily on each call, so an expired session is refused the moment it is
next used without any timer having to fire.
"""

import logging
import uuid
from datetime import timedelta
from typing import Optional

from shared.clock import Clock, SystemClock
from shared.models import AuthenticatedUser
from modules.audit.interfaces import IAuditLog
from modules.audit.service import record_safely

from .interfaces import IAdminDirectory, IAdminSessionRepository
from .models import AdminSession, PrivilegeLevel
from .exceptions import (
    AdminAuthenticationError,
    AdminSessionExpiredError,
    AdminSessionNotFoundError,
    InsufficientPrivilegeError,
)

logger = logging.getLogger(__name__)


class AdminSessionGuard:
    """Implementation of the admin session guard."""

    def __init__(
        self,
        directory: IAdminDirectory,
        sessions: IAdminSessionRepository,
        audit: IAuditLog,
        clock: Optional[Clock] = None,
        ttl_seconds: int = 1800,
    ):
        self._directory = directory
        self._sessions = sessions
        self._audit = audit
        self._clock = clock or SystemClock()
        self._ttl = timedelta(seconds=ttl_seconds)

    def authenticate(self, user: AuthenticatedUser) -> AdminSession:
        """
        Open an admin session for an authenticated user.

        Both successful and refused attempts are audited.

        Raises:
            AdminAuthenticationError: If the user is not an active admin
        """
        now = self._clock.now()
        profile = self._directory.get_profile(user.id)

        if profile is None or not profile.is_active:
            logger.warning("Admin authentication refused for %s", user.id)
            record_safely(
                self._audit,
                actor=user.id,
                action="admin.auth_failed",
                details={"email": user.email},
                timestamp=now,
            )
            raise AdminAuthenticationError(user.id)

        session = AdminSession(
            id=str(uuid.uuid4()),
            admin_id=user.id,
            granted_at=now,
            expires_at=now + self._ttl,
            privilege_level=profile.privilege_level,
        )
        self._sessions.insert(session)

        logger.info("Admin session opened for %s (%s)", user.id, profile.privilege_level.value)
        record_safely(
            self._audit,
            actor=user.id,
            action="admin.authenticated",
            target=session.id,
            details={"privilege_level": profile.privilege_level.value},
            timestamp=now,
        )
        return session

    def authorize(
        self,
        session_id: str,
        required_level: PrivilegeLevel = PrivilegeLevel.STANDARD,
        actor_id: Optional[str] = None,
    ) -> AdminSession:
        """
        Check a session before a privileged action.

        Args:
            session_id: Session presented by the caller
            required_level: Lowest privilege the action needs
            actor_id: Signed-in user making the call; must own the session

        Raises:
            AdminSessionNotFoundError: If the session does not exist or
                belongs to another user
            AdminSessionExpiredError: If now >= expires_at
            InsufficientPrivilegeError: If the session's level is too low
        """
        session = self._get(session_id, actor_id)

        if session.is_expired(self._clock.now()):
            raise AdminSessionExpiredError(session_id)
        if not session.privilege_level.satisfies(required_level):
            logger.warning(
                "Admin %s denied: %s privileges required, session holds %s",
                session.admin_id,
                required_level.value,
                session.privilege_level.value,
            )
            raise InsufficientPrivilegeError(
                session_id, session.privilege_level.value, required_level.value
            )
        return session

    def refresh(self, session_id: str, actor_id: Optional[str] = None) -> AdminSession:
        """Extend a live session to a full TTL from now."""
        session = self.authorize(session_id, actor_id=actor_id)
        now = self._clock.now()
        expires_at = now + self._ttl
        self._sessions.update_expiry(session_id, expires_at)
        record_safely(self._audit, actor=session.admin_id, action="admin.refreshed", target=session_id, timestamp=now)
        return session.model_copy(update={"expires_at": expires_at})

    def time_remaining(self, session_id: str) -> timedelta:
        return self._get(session_id).remaining(self._clock.now())

    def end(self, session_id: str, actor_id: Optional[str] = None) -> None:
        session = self._get(session_id, actor_id)
        self._sessions.delete(session_id)
        logger.info("Admin session %s ended by %s", session_id, session.admin_id)
        record_safely(self._audit, actor=session.admin_id, action="admin.signed_out", target=session_id)

    def _get(self, session_id: str, actor_id: Optional[str] = None) -> AdminSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise AdminSessionNotFoundError(session_id)
        if actor_id is not None and session.admin_id != actor_id:
            # Reported as an unknown session
            logger.warning("Admin session %s presented by %s, owned by %s", session_id, actor_id, session.admin_id)
            raise AdminSessionNotFoundError(session_id)
        return session
