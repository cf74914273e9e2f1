"""
Activation reconciler.

The only writer of the entitlement store. Code redemption, payment
completion, admin grants, trials and grace periods all call reconcile()
with a different Grant, so stacking behaves identically for every source.
"""

import logging
from datetime import datetime
from typing import Optional

from shared.clock import Clock, SystemClock
from shared.locks import KeyedLock
from modules.audit.interfaces import IAuditLog
from modules.audit.service import record_safely

from .interfaces import IEntitlementStore, GrantGuard
from .models import (
    ActivationSource,
    Entitlement,
    EntitlementTier,
    Grant,
    ReconcileResult,
)
from .exceptions import ConcurrentModificationError

logger = logging.getLogger(__name__)


def apply_grant(
    subject_id: str,
    current: Optional[Entitlement],
    grant: Grant,
    now: datetime,
) -> Optional[Entitlement]:
    """
    Compute the entitlement that results from merging a grant.

    Pure function of (current state, grant, now).

    Args:
        subject_id: Subject receiving the grant
        current: Existing entitlement, or None if the subject has none
        grant: The activation event
        now: Current time

    Returns:
        The new entitlement, or None if the grant is a no-op
        (an existing lifetime tier dominates every grant)
    """
    if current is not None and current.tier == EntitlementTier.LIFETIME:
        return None

    # Stack onto remaining time, but never start from the past
    base = now
    if current is not None and current.expires_at is not None:
        base = max(current.expires_at, now)

    expires_at = None if grant.is_lifetime else base + grant.delta

    trial_granted_at = current.trial_granted_at if current else None
    grace_granted_at = current.grace_granted_at if current else None
    if grant.source == ActivationSource.TRIAL:
        trial_granted_at = now
    elif grant.source == ActivationSource.GRACE:
        grace_granted_at = now

    return Entitlement(
        subject_id=subject_id,
        is_active=True,
        tier=grant.tier,
        duration_class=grant.duration_class,
        activated_at=now,
        expires_at=expires_at,
        activation_source=grant.source,
        activation_reference=grant.reference,
        trial_granted_at=trial_granted_at,
        grace_granted_at=grace_granted_at,
        version=(current.version + 1) if current else 1,
        updated_at=now,
    )


class ActivationReconciler:
    """
    Merges grants into entitlements with optimistic concurrency.

    Each reconcile is a read-compute-conditional-write loop. Within this
    process writes for one subject are also serialized by a keyed lock,
    so retries only happen when another process wins the race.
    """

    def __init__(
        self,
        store: IEntitlementStore,
        audit: IAuditLog,
        clock: Optional[Clock] = None,
        max_retries: int = 5,
    ):
        """
        Initialize the reconciler.

        Args:
            store: Entitlement store (only this class writes to it)
            audit: Audit log for activation records
            clock: Time source. Defaults to the system clock.
            max_retries: Conditional-write attempts before giving up
        """
        self._store = store
        self._audit = audit
        self._clock = clock or SystemClock()
        self._max_retries = max_retries
        self._locks = KeyedLock()

    def get_entitlement(self, subject_id: str) -> Optional[Entitlement]:
        """Read the subject's entitlement with is_active as of now."""
        entitlement = self._store.get(subject_id)
        if entitlement is None:
            return None
        return entitlement.as_of(self._clock.now())

    async def reconcile(
        self,
        subject_id: str,
        grant: Grant,
        guard: Optional[GrantGuard] = None,
        actor: Optional[str] = None,
    ) -> ReconcileResult:
        """Merge a grant into the subject's entitlement."""
        async with self._locks.hold(subject_id):
            for attempt in range(1, self._max_retries + 1):
                now = self._clock.now()
                current = self._store.get(subject_id)

                if guard is not None:
                    guard(current, now)

                updated = apply_grant(subject_id, current, grant, now)

                if updated is None:
                    logger.info(
                        "Grant from %s for %s ignored: lifetime access already held",
                        grant.source.value,
                        subject_id,
                    )
                    record_safely(
                        self._audit,
                        actor=actor or subject_id,
                        action="entitlement.noop",
                        target=subject_id,
                        details=self._grant_details(grant),
                        timestamp=now,
                    )
                    return ReconcileResult(
                        entitlement=current.as_of(now),
                        applied=False,
                        previous_expires_at=current.expires_at,
                    )

                if current is None:
                    written = self._store.create(updated)
                else:
                    written = self._store.compare_and_set(updated, current.version)

                if written:
                    previous = current.expires_at if current else None
                    logger.info(
                        "Entitlement for %s reconciled via %s: tier=%s expires_at=%s (was %s)",
                        subject_id,
                        grant.source.value,
                        updated.tier.value,
                        updated.expires_at.isoformat() if updated.expires_at else "never",
                        previous.isoformat() if previous else "none",
                    )
                    details = self._grant_details(grant)
                    details.update({
                        "previous_expires_at": previous.isoformat() if previous else None,
                        "expires_at": updated.expires_at.isoformat() if updated.expires_at else None,
                        "tier": updated.tier.value,
                    })
                    record_safely(
                        self._audit,
                        actor=actor or subject_id,
                        action="entitlement.reconciled",
                        target=subject_id,
                        details=details,
                        timestamp=now,
                    )
                    return ReconcileResult(
                        entitlement=updated,
                        applied=True,
                        previous_expires_at=previous,
                    )

                logger.debug(
                    "Entitlement write for %s lost a race (attempt %d/%d), retrying",
                    subject_id,
                    attempt,
                    self._max_retries,
                )

        logger.error("Giving up on entitlement write for %s after %d attempts", subject_id, self._max_retries)
        raise ConcurrentModificationError(subject_id, self._max_retries)

    @staticmethod
    def _grant_details(grant: Grant) -> dict:
        return {
            "source": grant.source.value,
            "reference": grant.reference,
            "grant_tier": grant.tier.value,
            "duration_class": grant.duration_class.value if grant.duration_class else None,
        }
