"""
Trial and grace manager.

Both grants go through the activation reconciler with an eligibility
guard, so the check and the write happen against the same entitlement
version and two concurrent requests cannot both succeed.
"""

import logging
from datetime import datetime
from typing import Optional

from shared.clock import Clock, SystemClock
from modules.entitlements.interfaces import IActivationReconciler
from modules.entitlements.models import Entitlement, EntitlementTier, Grant

from .models import TrialEligibility
from .exceptions import GraceIneligibleError, TrialAlreadyGrantedError

logger = logging.getLogger(__name__)


def grace_ineligibility_reason(entitlement: Optional[Entitlement], now: datetime) -> Optional[str]:
    """Return why grace cannot be granted, or None if it can."""
    if entitlement is None:
        return "no trial on record"
    if entitlement.grace_granted_at is not None:
        return "grace period already used"
    if entitlement.tier != EntitlementTier.TRIAL or entitlement.trial_granted_at is None:
        return "access is not from a trial"
    if entitlement.expires_at is None or entitlement.expires_at > now:
        return "trial has not expired yet"
    return None


class TrialManager:
    """Grants the one-time trial and the one-time grace period."""

    def __init__(
        self,
        reconciler: IActivationReconciler,
        clock: Optional[Clock] = None,
        trial_days: int = 30,
        grace_days: int = 3,
    ):
        self._reconciler = reconciler
        self._clock = clock or SystemClock()
        self._trial_days = trial_days
        self._grace_days = grace_days

    async def grant_initial_trial(self, subject_id: str) -> Entitlement:
        """
        Grant the initial trial.

        Raises:
            TrialAlreadyGrantedError: If the subject has any entitlement record
        """

        def guard(current: Optional[Entitlement], now: datetime) -> None:
            if current is not None:
                raise TrialAlreadyGrantedError(subject_id)

        result = await self._reconciler.reconcile(
            subject_id,
            Grant.trial(self._trial_days),
            guard=guard,
            actor=subject_id,
        )
        logger.info("Trial granted to %s until %s", subject_id, result.entitlement.expires_at)
        return result.entitlement

    async def grant_grace_period(self, subject_id: str) -> Entitlement:
        """
        Grant the one-time grace period after an expired trial.

        Raises:
            GraceIneligibleError: With the reason grace is unavailable
        """

        def guard(current: Optional[Entitlement], now: datetime) -> None:
            reason = grace_ineligibility_reason(current, now)
            if reason is not None:
                raise GraceIneligibleError(subject_id, reason)

        result = await self._reconciler.reconcile(
            subject_id,
            Grant.grace(self._grace_days),
            guard=guard,
            actor=subject_id,
        )
        logger.info("Grace period granted to %s until %s", subject_id, result.entitlement.expires_at)
        return result.entitlement

    def check_eligibility(self, subject_id: str) -> TrialEligibility:
        entitlement = self._reconciler.get_entitlement(subject_id)
        reason = grace_ineligibility_reason(entitlement, self._clock.now())
        return TrialEligibility(
            subject_id=subject_id,
            needs_trial=entitlement is None,
            grace_eligible=reason is None,
            reason=reason,
        )
