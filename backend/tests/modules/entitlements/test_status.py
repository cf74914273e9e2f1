"""Tests for status derivation."""

from datetime import timedelta

import pytest
from dateutil.relativedelta import relativedelta

from modules.entitlements.models import (
    AccessState,
    ActivationSource,
    DurationClass,
    Entitlement,
    EntitlementTier,
)
from modules.entitlements.status import (
    derive_state,
    derive_status,
    format_remaining,
    is_grace_eligible,
)
from tests.conftest import T0


def make(tier: EntitlementTier, expires_at, **overrides) -> Entitlement:
    values = dict(
        subject_id="user-1",
        tier=tier,
        activated_at=T0 - timedelta(days=30),
        expires_at=expires_at,
        activation_source=ActivationSource.CODE,
    )
    values.update(overrides)
    return Entitlement(**values)


class TestDeriveState:
    def test_none_without_record(self):
        assert derive_state(None, T0) == AccessState.NONE

    def test_lifetime(self):
        assert derive_state(make(EntitlementTier.LIFETIME, None), T0) == AccessState.LIFETIME

    def test_active_fixed(self):
        assert derive_state(make(EntitlementTier.FIXED, T0 + timedelta(days=1)), T0) == AccessState.ACTIVE

    def test_expired_fixed(self):
        assert derive_state(make(EntitlementTier.FIXED, T0), T0) == AccessState.EXPIRED

    def test_running_trial(self):
        trial = make(EntitlementTier.TRIAL, T0 + timedelta(days=5), trial_granted_at=T0 - timedelta(days=25))
        assert derive_state(trial, T0) == AccessState.TRIAL

    def test_expired_trial_is_grace_eligible(self):
        trial = make(EntitlementTier.TRIAL, T0 - timedelta(hours=1), trial_granted_at=T0 - timedelta(days=30))
        assert derive_state(trial, T0) == AccessState.GRACE_ELIGIBLE

    def test_expired_trial_after_grace(self):
        trial = make(
            EntitlementTier.TRIAL,
            T0 - timedelta(hours=1),
            trial_granted_at=T0 - timedelta(days=33),
            grace_granted_at=T0 - timedelta(days=3),
            activation_source=ActivationSource.GRACE,
        )
        assert derive_state(trial, T0) == AccessState.TRIAL_EXPIRED


class TestGraceEligibility:
    def test_requires_trial_record(self):
        assert not is_grace_eligible(None, T0)
        assert not is_grace_eligible(make(EntitlementTier.FIXED, T0 - timedelta(days=1)), T0)

    def test_requires_expired_trial(self):
        running = make(EntitlementTier.TRIAL, T0 + timedelta(days=1), trial_granted_at=T0)
        assert not is_grace_eligible(running, T0)

    def test_expiry_instant_counts_as_expired(self):
        trial = make(EntitlementTier.TRIAL, T0, trial_granted_at=T0 - timedelta(days=30))
        assert is_grace_eligible(trial, T0)


class TestFormatRemaining:
    @pytest.mark.parametrize("delta,expected", [
        (timedelta(seconds=30), "1 minute"),
        (timedelta(minutes=45), "45 minutes"),
        (timedelta(hours=1), "1 hour"),
        (timedelta(hours=5, minutes=10), "5 hours"),
        (timedelta(days=1), "1 day"),
        (timedelta(days=20), "20 days"),
        (relativedelta(months=2, days=3), "2 months"),
        (relativedelta(years=1, months=2), "1 year"),
        (relativedelta(years=5), "5 years"),
    ])
    def test_formats(self, delta, expected):
        assert format_remaining(T0 + delta, T0) == expected

    def test_lifetime(self):
        assert format_remaining(None, T0) == "Lifetime"

    def test_expired(self):
        assert format_remaining(T0, T0) == "Expired"
        assert format_remaining(T0 - timedelta(days=1), T0) == "Expired"


class TestDeriveStatus:
    def test_snapshot_without_record(self):
        snapshot = derive_status("user-1", None, T0)
        assert snapshot.state == AccessState.NONE
        assert snapshot.active is False
        assert snapshot.remaining_display is None

    def test_snapshot_for_fixed(self):
        entitlement = make(
            EntitlementTier.FIXED,
            T0 + relativedelta(years=1),
            duration_class=DurationClass.ONE_YEAR,
            activation_source=ActivationSource.PAYMENT,
        )
        snapshot = derive_status("user-1", entitlement, T0)
        assert snapshot.state == AccessState.ACTIVE
        assert snapshot.active is True
        assert snapshot.source == ActivationSource.PAYMENT
        assert snapshot.remaining_display == "1 year"
        assert snapshot.remaining_seconds == int((T0 + relativedelta(years=1) - T0).total_seconds())

    def test_snapshot_for_lifetime(self):
        snapshot = derive_status("user-1", make(EntitlementTier.LIFETIME, None), T0)
        assert snapshot.remaining_display == "Lifetime"
        assert snapshot.remaining_seconds is None
        assert snapshot.expires_at is None

    def test_snapshot_flags_grace(self):
        trial = make(EntitlementTier.TRIAL, T0 - timedelta(days=1), trial_granted_at=T0 - timedelta(days=31))
        snapshot = derive_status("user-1", trial, T0)
        assert snapshot.grace_eligible is True
        assert snapshot.active is False
        assert snapshot.remaining_seconds == 0
