"""
Payment session repository implementations.

Provides both in-memory (for testing) and Supabase-backed (for production)
implementations of IPaymentSessionRepository.
"""

import threading
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from supabase import Client

from shared.repository import BaseRepository
from modules.entitlements.models import DurationClass
from .models import PaymentMethod, PaymentSession, PaymentStatus

OPEN_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PROCESSING)


class InMemoryPaymentSessionRepository:
    """Payment session repository with in-memory storage."""

    def __init__(self) -> None:
        self._sessions: dict[str, PaymentSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[PaymentSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy() if session else None

    def insert(self, session: PaymentSession) -> None:
        with self._lock:
            self._sessions[session.id] = session.model_copy()

    def transition(
        self,
        session_id: str,
        expected: tuple[PaymentStatus, ...],
        new_status: PaymentStatus,
        now: datetime,
        external_reference: Optional[str] = None,
    ) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.status not in expected:
                return False
            update: dict[str, Any] = {"status": new_status, "updated_at": now}
            if external_reference is not None:
                update["external_reference"] = external_reference
            self._sessions[session_id] = session.model_copy(update=update)
            return True

    def list_open(self) -> list[PaymentSession]:
        with self._lock:
            return [s.model_copy() for s in self._sessions.values() if s.status in OPEN_STATUSES]


class SupabasePaymentSessionRepository(BaseRepository[PaymentSession]):
    """Payment session repository backed by the `payment_sessions` table."""

    TABLE = "payment_sessions"

    def __init__(self, db: Client) -> None:
        super().__init__(db)

    def get(self, session_id: str) -> Optional[PaymentSession]:
        result = self._execute(self._db.table(self.TABLE).select("*").eq("id", session_id))
        if not result.data:
            return None
        return self._map_to_session(result.data[0])

    def insert(self, session: PaymentSession) -> None:
        self._execute(self._db.table(self.TABLE).insert(self._to_row(session)))

    def transition(
        self,
        session_id: str,
        expected: tuple[PaymentStatus, ...],
        new_status: PaymentStatus,
        now: datetime,
        external_reference: Optional[str] = None,
    ) -> bool:
        update: dict[str, Any] = {
            "status": new_status.value,
            "updated_at": self._to_iso(now),
        }
        if external_reference is not None:
            update["external_reference"] = external_reference
        result = self._execute(
            self._db.table(self.TABLE)
            .update(update)
            .eq("id", session_id)
            .in_("status", [s.value for s in expected])
        )
        return bool(result.data)

    def list_open(self) -> list[PaymentSession]:
        result = self._execute(
            self._db.table(self.TABLE)
            .select("*")
            .in_("status", [s.value for s in OPEN_STATUSES])
        )
        return [self._map_to_session(row) for row in result.data]

    def _to_row(self, session: PaymentSession) -> dict[str, Any]:
        return {
            "id": session.id,
            "subject_id": session.subject_id,
            "method": session.method.value,
            "plan": session.plan.value,
            "amount": str(session.amount),
            "currency": session.currency,
            "status": session.status.value,
            "created_at": self._to_iso(session.created_at),
            "ttl_seconds": session.ttl_seconds,
            "external_reference": session.external_reference,
            "updated_at": self._to_iso(session.updated_at),
        }

    def _map_to_session(self, row: dict[str, Any]) -> PaymentSession:
        return PaymentSession(
            id=row["id"],
            subject_id=row["subject_id"],
            method=PaymentMethod(row["method"]),
            plan=DurationClass(row["plan"]),
            amount=Decimal(str(row["amount"])),
            currency=row["currency"],
            status=PaymentStatus(row["status"]),
            created_at=self._from_iso(row["created_at"]),
            ttl_seconds=row["ttl_seconds"],
            external_reference=row.get("external_reference"),
            updated_at=self._from_iso(row.get("updated_at")),
        )
