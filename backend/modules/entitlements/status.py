"""
Status derivation.

Turns an entitlement and an instant into the single precedence-ordered
status every caller displays.
"""

from datetime import datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from .models import (
    AccessState,
    Entitlement,
    EntitlementTier,
    StatusSnapshot,
)


def is_grace_eligible(entitlement: Optional[Entitlement], now: datetime) -> bool:
    """
    Whether the one-time grace period may be granted.

    Requires a trial that existed and has expired, and no earlier grace.
    """
    if entitlement is None:
        return False
    return (
        entitlement.tier == EntitlementTier.TRIAL
        and entitlement.trial_granted_at is not None
        and entitlement.grace_granted_at is None
        and entitlement.expires_at is not None
        and entitlement.expires_at <= now
    )


def derive_state(entitlement: Optional[Entitlement], now: datetime) -> AccessState:
    """
    Pick the highest-precedence state that applies.

    lifetime > active > trial > grace_eligible > trial_expired > expired > none
    """
    if entitlement is None:
        return AccessState.NONE

    active = entitlement.is_active_at(now)

    if entitlement.tier == EntitlementTier.LIFETIME:
        return AccessState.LIFETIME
    if entitlement.tier == EntitlementTier.FIXED and active:
        return AccessState.ACTIVE
    if entitlement.tier == EntitlementTier.TRIAL and active:
        return AccessState.TRIAL
    if is_grace_eligible(entitlement, now):
        return AccessState.GRACE_ELIGIBLE
    if entitlement.tier == EntitlementTier.TRIAL:
        return AccessState.TRIAL_EXPIRED
    return AccessState.EXPIRED


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_remaining(expires_at: Optional[datetime], now: datetime) -> str:
    """
    Format time left until expiry.

    Below one day the remainder is shown in minutes or hours. From one day
    up it is shown in days, months or years, with months and years counted
    on the calendar, so a short trial never reads as "0 months".

    Examples:
        no expiry            -> "Lifetime"
        5 hours 10 minutes   -> "5 hours"
        400 days             -> "1 year"
    """
    if expires_at is None:
        return "Lifetime"

    remaining = expires_at - now
    if remaining <= timedelta(0):
        return "Expired"

    if remaining < timedelta(hours=1):
        minutes = max(1, int(remaining.total_seconds() // 60))
        return _plural(minutes, "minute")

    if remaining < timedelta(days=1):
        return _plural(int(remaining.total_seconds() // 3600), "hour")

    span = relativedelta(expires_at, now)
    if span.years:
        return _plural(span.years, "year")
    if span.months:
        return _plural(span.months, "month")
    return _plural(remaining.days, "day")


def derive_status(
    subject_id: str,
    entitlement: Optional[Entitlement],
    now: datetime,
) -> StatusSnapshot:
    """Build the status snapshot for a subject at a given instant."""
    state = derive_state(entitlement, now)

    if entitlement is None:
        return StatusSnapshot(
            subject_id=subject_id,
            state=state,
            active=False,
        )

    active = entitlement.is_active_at(now)
    remaining_seconds = None
    if entitlement.expires_at is not None:
        remaining_seconds = max(0, int((entitlement.expires_at - now).total_seconds()))

    return StatusSnapshot(
        subject_id=subject_id,
        state=state,
        active=active,
        tier=entitlement.tier,
        duration_class=entitlement.duration_class,
        expires_at=entitlement.expires_at,
        remaining_display=format_remaining(entitlement.expires_at, now),
        remaining_seconds=remaining_seconds,
        source=entitlement.activation_source,
        grace_eligible=state == AccessState.GRACE_ELIGIBLE,
    )
