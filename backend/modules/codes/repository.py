"""
Code repository implementations.

Provides both in-memory (for testing) and Supabase-backed (for production)
implementations of ICodeRepository.
"""

import threading
from datetime import datetime
from typing import Any, Optional

from supabase import Client

from shared.repository import BaseRepository
from modules.entitlements.models import DurationClass
from .models import AccessCode, CodeStatus


class InMemoryCodeRepository:
    """Code repository with in-memory storage, safe across threads."""

    def __init__(self) -> None:
        self._codes: dict[str, AccessCode] = {}
        self._lock = threading.Lock()

    def get(self, code: str) -> Optional[AccessCode]:
        with self._lock:
            record = self._codes.get(code)
            return record.model_copy() if record else None

    def insert(self, access_code: AccessCode) -> bool:
        with self._lock:
            if access_code.code in self._codes:
                return False
            self._codes[access_code.code] = access_code.model_copy()
            return True

    def mark_redeemed(self, code: str, subject_id: str, now: datetime) -> bool:
        with self._lock:
            record = self._codes.get(code)
            if record is None or record.status != CodeStatus.UNREDEEMED:
                return False
            self._codes[code] = record.model_copy(update={
                "status": CodeStatus.REDEEMED,
                "redeemed_by": subject_id,
                "redeemed_at": now,
            })
            return True

    def release(self, code: str, subject_id: str) -> bool:
        with self._lock:
            record = self._codes.get(code)
            if (
                record is None
                or record.status != CodeStatus.REDEEMED
                or record.redeemed_by != subject_id
            ):
                return False
            self._codes[code] = record.model_copy(update={
                "status": CodeStatus.UNREDEEMED,
                "redeemed_by": None,
                "redeemed_at": None,
            })
            return True

    def mark_revoked(self, code: str, now: datetime) -> bool:
        with self._lock:
            record = self._codes.get(code)
            if record is None or record.status != CodeStatus.UNREDEEMED:
                return False
            self._codes[code] = record.model_copy(update={
                "status": CodeStatus.REVOKED,
                "revoked_at": now,
            })
            return True

    def list_codes(
        self,
        status: Optional[CodeStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AccessCode]:
        with self._lock:
            codes = sorted(self._codes.values(), key=lambda c: c.created_at, reverse=True)
        if status is not None:
            codes = [c for c in codes if c.status == status]
        return [c.model_copy() for c in codes[offset : offset + limit]]


class SupabaseCodeRepository(BaseRepository[AccessCode]):
    """
    Code repository backed by the `access_codes` table.

    Status transitions are UPDATE ... WHERE status = 'unredeemed', so only
    one concurrent caller sees its update return a row.
    """

    TABLE = "access_codes"

    def __init__(self, db: Client) -> None:
        super().__init__(db)

    def get(self, code: str) -> Optional[AccessCode]:
        result = self._execute(self._db.table(self.TABLE).select("*").eq("code", code))
        if not result.data:
            return None
        return self._map_to_code(result.data[0])

    def insert(self, access_code: AccessCode) -> bool:
        result = self._execute(
            self._db.table(self.TABLE).upsert(
                self._to_row(access_code),
                on_conflict="code",
                ignore_duplicates=True,
            )
        )
        return bool(result.data)

    def mark_redeemed(self, code: str, subject_id: str, now: datetime) -> bool:
        result = self._execute(
            self._db.table(self.TABLE)
            .update({
                "status": CodeStatus.REDEEMED.value,
                "redeemed_by": subject_id,
                "redeemed_at": self._to_iso(now),
            })
            .eq("code", code)
            .eq("status", CodeStatus.UNREDEEMED.value)
        )
        return bool(result.data)

    def release(self, code: str, subject_id: str) -> bool:
        result = self._execute(
            self._db.table(self.TABLE)
            .update({
                "status": CodeStatus.UNREDEEMED.value,
                "redeemed_by": None,
                "redeemed_at": None,
            })
            .eq("code", code)
            .eq("status", CodeStatus.REDEEMED.value)
            .eq("redeemed_by", subject_id)
        )
        return bool(result.data)

    def mark_revoked(self, code: str, now: datetime) -> bool:
        result = self._execute(
            self._db.table(self.TABLE)
            .update({
                "status": CodeStatus.REVOKED.value,
                "revoked_at": self._to_iso(now),
            })
            .eq("code", code)
            .eq("status", CodeStatus.UNREDEEMED.value)
        )
        return bool(result.data)

    def list_codes(
        self,
        status: Optional[CodeStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AccessCode]:
        query = self._db.table(self.TABLE).select("*")
        if status is not None:
            query = query.eq("status", status.value)
        query = query.order("created_at", desc=True).range(offset, offset + limit - 1)
        result = self._execute(query)
        return [self._map_to_code(row) for row in result.data]

    def _to_row(self, access_code: AccessCode) -> dict[str, Any]:
        return {
            "code": access_code.code,
            "duration_class": access_code.duration_class.value,
            "status": access_code.status.value,
            "created_at": self._to_iso(access_code.created_at),
            "created_by": access_code.created_by,
            "valid_until": self._to_iso(access_code.valid_until),
            "redeemed_by": access_code.redeemed_by,
            "redeemed_at": self._to_iso(access_code.redeemed_at),
            "revoked_at": self._to_iso(access_code.revoked_at),
        }

    def _map_to_code(self, row: dict[str, Any]) -> AccessCode:
        return AccessCode(
            code=row["code"],
            duration_class=DurationClass(row["duration_class"]),
            status=CodeStatus(row["status"]),
            created_at=self._from_iso(row["created_at"]),
            created_by=row["created_by"],
            valid_until=self._from_iso(row.get("valid_until")),
            redeemed_by=row.get("redeemed_by"),
            redeemed_at=self._from_iso(row.get("redeemed_at")),
            revoked_at=self._from_iso(row.get("revoked_at")),
        )
