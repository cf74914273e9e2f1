"""
Trial module interfaces.
"""

from typing import Protocol, runtime_checkable

from modules.entitlements.models import Entitlement
from .models import TrialEligibility


@runtime_checkable
class ITrialManager(Protocol):
    """One-time trial and grace grants."""

    async def grant_initial_trial(self, subject_id: str) -> Entitlement:
        ...

    async def grant_grace_period(self, subject_id: str) -> Entitlement:
        ...

    def check_eligibility(self, subject_id: str) -> TrialEligibility:
        ...
