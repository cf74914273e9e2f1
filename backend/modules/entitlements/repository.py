"""
Entitlement store implementations.

Provides both in-memory (for testing) and Supabase-backed (for production)
implementations of IEntitlementStore.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Optional

from supabase import Client

from shared.repository import BaseRepository
from .models import (
    ActivationSource,
    DurationClass,
    Entitlement,
    EntitlementTier,
)


class InMemoryEntitlementStore:
    """
    Entitlement store with in-memory storage.

    A single mutex makes each conditional write atomic, so the store is
    safe to share between threads as well as tasks.
    """

    def __init__(self) -> None:
        self._rows: dict[str, Entitlement] = {}
        self._lock = threading.Lock()

    def get(self, subject_id: str) -> Optional[Entitlement]:
        with self._lock:
            row = self._rows.get(subject_id)
            return row.model_copy() if row else None

    def create(self, entitlement: Entitlement) -> bool:
        with self._lock:
            if entitlement.subject_id in self._rows:
                return False
            self._rows[entitlement.subject_id] = entitlement.model_copy()
            return True

    def compare_and_set(self, entitlement: Entitlement, expected_version: int) -> bool:
        with self._lock:
            current = self._rows.get(entitlement.subject_id)
            if current is None or current.version != expected_version:
                return False
            self._rows[entitlement.subject_id] = entitlement.model_copy()
            return True

    def __len__(self) -> int:
        return len(self._rows)


class SupabaseEntitlementStore(BaseRepository[Entitlement]):
    """
    Entitlement store backed by the `entitlements` table.

    create() relies on the subject_id primary key and compare_and_set()
    on a `version` filter in the UPDATE, so both are atomic in Postgres.
    """

    TABLE = "entitlements"

    def __init__(self, db: Client) -> None:
        super().__init__(db)

    def get(self, subject_id: str) -> Optional[Entitlement]:
        result = self._execute(
            self._db.table(self.TABLE).select("*").eq("subject_id", subject_id)
        )
        if not result.data:
            return None
        return self._map_to_entitlement(result.data[0])

    def create(self, entitlement: Entitlement) -> bool:
        result = self._execute(
            self._db.table(self.TABLE).upsert(
                self._to_row(entitlement),
                on_conflict="subject_id",
                ignore_duplicates=True,
            )
        )
        # Ignored duplicates come back as an empty result
        return bool(result.data)

    def compare_and_set(self, entitlement: Entitlement, expected_version: int) -> bool:
        result = self._execute(
            self._db.table(self.TABLE)
            .update(self._to_row(entitlement))
            .eq("subject_id", entitlement.subject_id)
            .eq("version", expected_version)
        )
        return bool(result.data)

    def _to_row(self, entitlement: Entitlement) -> dict[str, Any]:
        return {
            "subject_id": entitlement.subject_id,
            "is_active": entitlement.is_active,
            "tier": entitlement.tier.value,
            "duration_class": entitlement.duration_class.value if entitlement.duration_class else None,
            "activated_at": self._to_iso(entitlement.activated_at),
            "expires_at": self._to_iso(entitlement.expires_at),
            "activation_source": entitlement.activation_source.value,
            "activation_reference": entitlement.activation_reference,
            "trial_granted_at": self._to_iso(entitlement.trial_granted_at),
            "grace_granted_at": self._to_iso(entitlement.grace_granted_at),
            "version": entitlement.version,
            "updated_at": self._to_iso(entitlement.updated_at or datetime.now(timezone.utc)),
        }

    def _map_to_entitlement(self, row: dict[str, Any]) -> Entitlement:
        return Entitlement(
            subject_id=row["subject_id"],
            is_active=row.get("is_active", True),
            tier=EntitlementTier(row["tier"]),
            duration_class=DurationClass(row["duration_class"]) if row.get("duration_class") else None,
            activated_at=self._from_iso(row["activated_at"]),
            expires_at=self._from_iso(row.get("expires_at")),
            activation_source=ActivationSource(row["activation_source"]),
            activation_reference=row.get("activation_reference"),
            trial_granted_at=self._from_iso(row.get("trial_granted_at")),
            grace_granted_at=self._from_iso(row.get("grace_granted_at")),
            version=row.get("version", 1),
            updated_at=self._from_iso(row.get("updated_at")),
        )
