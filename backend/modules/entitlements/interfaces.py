"""
Entitlement module interfaces.

Only the ActivationReconciler writes through IEntitlementStore; every
other module reads entitlements through the reconciler or the access
facade.
"""

from typing import Callable, Optional, Protocol, runtime_checkable
from datetime import datetime

from .models import Entitlement, Grant, ReconcileResult


# Evaluated against the freshly read entitlement inside the write loop.
# Raises a rejection to abort the grant without writing.
GrantGuard = Callable[[Optional[Entitlement], datetime], None]


@runtime_checkable
class IEntitlementStore(Protocol):
    """
    Storage for the one-row-per-subject entitlement table.

    Writes are conditional so concurrent writers cannot overwrite each
    other: create only succeeds if no row exists, and compare_and_set
    only succeeds if the stored version still matches.
    """

    def get(self, subject_id: str) -> Optional[Entitlement]:
        """Get the subject's entitlement, or None if it has never been activated."""
        ...

    def create(self, entitlement: Entitlement) -> bool:
        """
        Insert the first entitlement for a subject.

        Returns:
            False if a row already exists for the subject
        """
        ...

    def compare_and_set(self, entitlement: Entitlement, expected_version: int) -> bool:
        """
        Replace the subject's row if its version equals expected_version.

        Returns:
            False if another writer changed the row first
        """
        ...


@runtime_checkable
class IActivationReconciler(Protocol):
    """The single entry point for changing a subject's entitlement."""

    async def reconcile(
        self,
        subject_id: str,
        grant: Grant,
        guard: Optional[GrantGuard] = None,
        actor: Optional[str] = None,
    ) -> ReconcileResult:
        """
        Merge a grant into the subject's entitlement.

        Args:
            subject_id: Subject receiving the grant
            grant: The activation event
            guard: Optional precondition checked atomically with the write
            actor: Who caused the grant, for the audit trail

        Returns:
            ReconcileResult with the resulting entitlement

        Raises:
            ConcurrentModificationError: If the write kept losing races
            StorageError: If the store is unavailable
        """
        ...

    def get_entitlement(self, subject_id: str) -> Optional[Entitlement]:
        """Read the subject's entitlement as of now."""
        ...
