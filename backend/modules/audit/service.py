"""
Audit log implementations.

Provides both in-memory (for testing) and Supabase-backed (for production)
implementations of the append-only audit trail.
"""

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from supabase import Client

from shared.repository import BaseRepository
from .interfaces import IAuditLog
from .models import AuditLogEntry

logger = logging.getLogger(__name__)


class AuditLog:
    """Audit log with in-memory storage."""

    def __init__(self) -> None:
        self._entries: list[AuditLogEntry] = []
        self._lock = threading.Lock()

    def record(
        self,
        actor: str,
        action: str,
        target: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            id=str(uuid.uuid4()),
            actor=actor,
            action=action,
            target=target,
            timestamp=timestamp or datetime.now(timezone.utc),
            details=details or {},
        )
        with self._lock:
            self._entries.append(entry)
        return entry

    def list_entries(
        self,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        target: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditLogEntry]:
        with self._lock:
            entries = list(reversed(self._entries))

        filtered = [
            e for e in entries
            if (actor is None or e.actor == actor)
            and (action is None or e.action == action)
            and (target is None or e.target == target)
        ]
        return filtered[offset : offset + limit]


class SupabaseAuditLog(BaseRepository[AuditLogEntry]):
    """Audit log persisted to the `audit_log` table (insert-only)."""

    TABLE = "audit_log"

    def __init__(self, db: Client) -> None:
        super().__init__(db)

    def record(
        self,
        actor: str,
        action: str,
        target: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            id=str(uuid.uuid4()),
            actor=actor,
            action=action,
            target=target,
            timestamp=timestamp or datetime.now(timezone.utc),
            details=details or {},
        )
        self._execute(
            self._db.table(self.TABLE).insert({
                "id": entry.id,
                "actor": entry.actor,
                "action": entry.action,
                "target": entry.target,
                "timestamp": self._to_iso(entry.timestamp),
                # default=str keeps datetimes and Decimals serializable
                "details": json.loads(json.dumps(entry.details, default=str)),
            })
        )
        return entry

    def list_entries(
        self,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        target: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditLogEntry]:
        query = self._db.table(self.TABLE).select("*")
        if actor:
            query = query.eq("actor", actor)
        if action:
            query = query.eq("action", action)
        if target:
            query = query.eq("target", target)

        query = query.order("timestamp", desc=True).range(offset, offset + limit - 1)
        result = self._execute(query)

        return [
            AuditLogEntry(
                id=row["id"],
                actor=row["actor"],
                action=row["action"],
                target=row.get("target"),
                timestamp=self._from_iso(row["timestamp"]),
                details=row.get("details") or {},
            )
            for row in result.data
        ]


def record_safely(
    audit: IAuditLog,
    actor: str,
    action: str,
    target: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    timestamp: Optional[datetime] = None,
) -> Optional[AuditLogEntry]:
    """
    Append an entry after a state change has already been committed.

    A failing audit write here is logged rather than raised: the change
    it describes has happened and must still be reported as a success.
    """
    try:
        return audit.record(actor, action, target=target, details=details, timestamp=timestamp)
    except Exception:
        logger.exception("Failed to write audit entry %s for %s", action, target)
        return None
