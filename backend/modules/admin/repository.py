"""
Admin directory and session repositories.

Provides both in-memory (for testing) and Supabase-backed (for production)
implementations.
"""

import threading
from datetime import datetime
from typing import Any, Optional

from supabase import Client

from shared.repository import BaseRepository
from .models import AdminProfile, AdminSession, PrivilegeLevel


class InMemoryAdminDirectory:
    """Admin directory held in a dict."""

    def __init__(self, profiles: Optional[list[AdminProfile]] = None) -> None:
        self._profiles: dict[str, AdminProfile] = {}
        for profile in profiles or []:
            self.add(profile)

    def add(self, profile: AdminProfile) -> None:
        self._profiles[profile.admin_id] = profile

    def get_profile(self, admin_id: str) -> Optional[AdminProfile]:
        return self._profiles.get(admin_id)


class SupabaseAdminDirectory(BaseRepository[AdminProfile]):
    """Admin directory backed by the `admin_profiles` table."""

    TABLE = "admin_profiles"

    def __init__(self, db: Client) -> None:
        super().__init__(db)

    def get_profile(self, admin_id: str) -> Optional[AdminProfile]:
        result = self._execute(self._db.table(self.TABLE).select("*").eq("user_id", admin_id))
        if not result.data:
            return None
        row = result.data[0]
        return AdminProfile(
            admin_id=row["user_id"],
            email=row.get("email"),
            privilege_level=PrivilegeLevel(row.get("admin_level") or PrivilegeLevel.STANDARD.value),
            is_active=row.get("is_active", True),
        )


class InMemoryAdminSessionRepository:
    """Admin session repository with in-memory storage."""

    def __init__(self) -> None:
        self._sessions: dict[str, AdminSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[AdminSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy() if session else None

    def insert(self, session: AdminSession) -> None:
        with self._lock:
            self._sessions[session.id] = session.model_copy()

    def update_expiry(self, session_id: str, expires_at: datetime) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._sessions[session_id] = session.model_copy(update={"expires_at": expires_at})

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None


class SupabaseAdminSessionRepository(BaseRepository[AdminSession]):
    """Admin session repository backed by the `admin_sessions` table."""

    TABLE = "admin_sessions"

    def __init__(self, db: Client) -> None:
        super().__init__(db)

    def get(self, session_id: str) -> Optional[AdminSession]:
        result = self._execute(self._db.table(self.TABLE).select("*").eq("id", session_id))
        if not result.data:
            return None
        return self._map_to_session(result.data[0])

    def insert(self, session: AdminSession) -> None:
        self._execute(
            self._db.table(self.TABLE).insert({
                "id": session.id,
                "admin_id": session.admin_id,
                "granted_at": self._to_iso(session.granted_at),
                "expires_at": self._to_iso(session.expires_at),
                "privilege_level": session.privilege_level.value,
            })
        )

    def update_expiry(self, session_id: str, expires_at: datetime) -> None:
        self._execute(
            self._db.table(self.TABLE)
            .update({"expires_at": self._to_iso(expires_at)})
            .eq("id", session_id)
        )

    def delete(self, session_id: str) -> bool:
        result = self._execute(self._db.table(self.TABLE).delete().eq("id", session_id))
        return bool(result.data)

    def _map_to_session(self, row: dict[str, Any]) -> AdminSession:
        return AdminSession(
            id=row["id"],
            admin_id=row["admin_id"],
            granted_at=self._from_iso(row["granted_at"]),
            expires_at=self._from_iso(row["expires_at"]),
            privilege_level=PrivilegeLevel(row["privilege_level"]),
        )
