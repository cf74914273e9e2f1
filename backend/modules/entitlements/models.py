"""
Entitlement module data models.

These models define the data structures used by the entitlement store,
the activation reconciler and the status derivation, and are exposed to
other modules through the interface.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, Field


class DurationClass(str, Enum):
    """Fixed access durations a code or payment plan can grant."""

    ONE_MONTH = "1month"
    THREE_MONTHS = "3months"
    SIX_MONTHS = "6months"
    ONE_YEAR = "1year"
    FIVE_YEARS = "5years"
    LIFETIME = "lifetime"


class EntitlementTier(str, Enum):
    """Kind of access a subject currently holds."""

    TRIAL = "trial"
    FIXED = "fixed"
    LIFETIME = "lifetime"


class ActivationSource(str, Enum):
    """Channel that produced an activation."""

    CODE = "code"
    PAYMENT = "payment"
    ADMIN_GRANT = "admin_grant"
    TRIAL = "trial"
    GRACE = "grace"


class AccessState(str, Enum):
    """
    Display state derived from an entitlement.

    Declared in precedence order: the first state that applies wins.
    """

    LIFETIME = "lifetime"
    ACTIVE = "active"
    TRIAL = "trial"
    GRACE_ELIGIBLE = "grace_eligible"
    TRIAL_EXPIRED = "trial_expired"
    EXPIRED = "expired"
    NONE = "none"


class Entitlement(BaseModel):
    """
    The current access-rights record for a subject.

    There is at most one per subject. Every activation merges into it;
    it is never deleted.
    """

    subject_id: str = Field(..., description="Subject (user) ID")
    is_active: bool = Field(default=True, description="Whether access is currently granted")
    tier: EntitlementTier = Field(..., description="Current tier")
    duration_class: Optional[DurationClass] = Field(
        None,
        description="Duration that produced a fixed or lifetime tier",
    )
    activated_at: datetime = Field(..., description="When the latest activation happened")
    expires_at: Optional[datetime] = Field(
        None,
        description="When access ends (null = lifetime)",
    )
    activation_source: ActivationSource = Field(..., description="Source of the latest activation")
    activation_reference: Optional[str] = Field(
        None,
        description="Code value or payment session id behind the latest activation",
    )
    trial_granted_at: Optional[datetime] = Field(None, description="When the one-time trial was granted")
    grace_granted_at: Optional[datetime] = Field(None, description="When the one-time grace was granted")
    version: int = Field(default=1, description="Optimistic-concurrency version")
    updated_at: Optional[datetime] = Field(None, description="Last write time")

    def is_active_at(self, now: datetime) -> bool:
        """Active means lifetime, or an expiry still in the future."""
        return self.expires_at is None or self.expires_at > now

    def as_of(self, now: datetime) -> "Entitlement":
        """Return a copy whose is_active reflects the given instant."""
        return self.model_copy(update={"is_active": self.is_active_at(now)})


@dataclass(frozen=True)
class Grant:
    """
    A single activation event fed into the reconciler.

    Build grants with the classmethods rather than directly so tier,
    duration and source always agree.
    """

    tier: EntitlementTier
    source: ActivationSource
    reference: Optional[str] = None
    duration_class: Optional[DurationClass] = None
    delta: Optional[relativedelta] = None

    @property
    def is_lifetime(self) -> bool:
        return self.tier == EntitlementTier.LIFETIME

    @classmethod
    def for_duration(
        cls,
        duration_class: DurationClass,
        source: ActivationSource,
        reference: Optional[str] = None,
    ) -> "Grant":
        from .durations import duration_of

        if duration_class == DurationClass.LIFETIME:
            return cls(
                tier=EntitlementTier.LIFETIME,
                source=source,
                reference=reference,
                duration_class=duration_class,
            )
        return cls(
            tier=EntitlementTier.FIXED,
            source=source,
            reference=reference,
            duration_class=duration_class,
            delta=duration_of(duration_class),
        )

    @classmethod
    def trial(cls, days: int, reference: Optional[str] = None) -> "Grant":
        return cls(
            tier=EntitlementTier.TRIAL,
            source=ActivationSource.TRIAL,
            reference=reference,
            delta=relativedelta(days=days),
        )

    @classmethod
    def grace(cls, days: int, reference: Optional[str] = None) -> "Grant":
        # Grace extends the trial, so the tier stays TRIAL.
        return cls(
            tier=EntitlementTier.TRIAL,
            source=ActivationSource.GRACE,
            reference=reference,
            delta=relativedelta(days=days),
        )


class ReconcileResult(BaseModel):
    """Outcome of one reconcile call."""

    entitlement: Entitlement = Field(..., description="Entitlement after the call")
    applied: bool = Field(..., description="False when the grant was a no-op")
    previous_expires_at: Optional[datetime] = Field(
        None,
        description="Expiry before the grant (null if none or lifetime)",
    )


class StatusSnapshot(BaseModel):
    """
    Precedence-ordered access status for display.

    Every caller reads this one derivation, so UI and business logic
    agree about the current state.
    """

    subject_id: str = Field(..., description="Subject ID")
    state: AccessState = Field(..., description="Derived access state")
    active: bool = Field(..., description="Whether access is currently granted")
    tier: Optional[EntitlementTier] = Field(None, description="Tier, if any record exists")
    duration_class: Optional[DurationClass] = Field(None, description="Duration behind the tier")
    expires_at: Optional[datetime] = Field(None, description="Expiry (null for lifetime or none)")
    remaining_display: Optional[str] = Field(None, description="Human-readable remaining time")
    remaining_seconds: Optional[int] = Field(None, description="Seconds until expiry, if bounded")
    source: Optional[ActivationSource] = Field(None, description="Source of the latest activation")
    grace_eligible: bool = Field(default=False, description="Whether a grace period can be requested")
