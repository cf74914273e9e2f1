"""Tests for the payment session manager."""

import asyncio
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from dateutil.relativedelta import relativedelta

from modules.entitlements.models import ActivationSource, DurationClass, EntitlementTier
from modules.payments.exceptions import (
    CancellationTooLateError,
    InvalidAmountError,
    InvalidPlanError,
    PaymentAlreadyTerminalError,
    PaymentSessionExpiredError,
    PaymentSessionNotFoundError,
)
from modules.payments.models import PaymentMethod, PaymentOutcome, PaymentPlan, PaymentStatus
from modules.payments.repository import InMemoryPaymentSessionRepository
from modules.payments.service import PaymentSessionManager
from shared.exceptions import IntegrityViolationError, StorageError
from tests.conftest import T0


@pytest.fixture
def repository():
    return InMemoryPaymentSessionRepository()


@pytest.fixture
def manager(repository, reconciler, audit, clock):
    return PaymentSessionManager(repository, reconciler, audit, clock=clock, ttl_seconds=1800)


async def open_session(manager, plan=DurationClass.ONE_YEAR, subject_id="user-1"):
    return await manager.create(subject_id, PaymentMethod.CARD_GATEWAY, plan)


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_prices_from_catalog(self, manager):
        session = await open_session(manager)
        assert session.status == PaymentStatus.PENDING
        assert session.amount == Decimal("79.99")
        assert session.currency == "USD"
        assert session.ttl_seconds == 1800
        assert session.expires_at == T0 + timedelta(minutes=30)

    @pytest.mark.asyncio
    async def test_unknown_plan(self, repository, reconciler, audit, clock):
        plans = {
            DurationClass.ONE_MONTH: PaymentPlan(
                duration_class=DurationClass.ONE_MONTH, amount=Decimal("9.99"), label="1 Month"
            ),
        }
        manager = PaymentSessionManager(repository, reconciler, audit, clock=clock, plans=plans)
        with pytest.raises(InvalidPlanError):
            await open_session(manager, plan=DurationClass.LIFETIME)

    @pytest.mark.asyncio
    async def test_quoted_amount_overrides_catalog(self, manager):
        session = await manager.create(
            "user-1", PaymentMethod.P2P_WALLET, DurationClass.ONE_YEAR, amount=Decimal("59.99"), currency="EUR"
        )
        assert session.amount == Decimal("59.99")
        assert session.currency == "EUR"

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, manager):
        with pytest.raises(InvalidAmountError):
            await manager.create("user-1", PaymentMethod.P2P_WALLET, DurationClass.ONE_YEAR, amount=Decimal("0"))

    def test_list_plans(self, manager):
        plans = {p.duration_class: p.amount for p in manager.list_plans()}
        assert plans[DurationClass.ONE_MONTH] == Decimal("9.99")
        assert plans[DurationClass.LIFETIME] == Decimal("299.00")
        assert len(plans) == 6


class TestFinalize:
    @pytest.mark.asyncio
    async def test_completed_grants_plan(self, manager, reconciler):
        session = await open_session(manager)

        result = await manager.finalize(session.id, PaymentOutcome.COMPLETED)

        assert result.applied is True
        assert result.session.status == PaymentStatus.COMPLETED
        assert result.entitlement.expires_at == T0 + relativedelta(years=1)
        assert result.entitlement.activation_source == ActivationSource.PAYMENT
        assert result.entitlement.activation_reference == session.id

    @pytest.mark.asyncio
    async def test_finalize_twice_mutates_once(self, manager, reconciler):
        session = await open_session(manager)

        first = await manager.finalize(session.id, PaymentOutcome.COMPLETED)
        second = await manager.finalize(session.id, PaymentOutcome.COMPLETED)

        assert first.applied is True
        assert second.applied is False
        assert second.session.status == PaymentStatus.COMPLETED
        entitlement = reconciler.get_entitlement("user-1")
        assert entitlement.expires_at == T0 + relativedelta(years=1)
        assert entitlement.version == 1

    @pytest.mark.asyncio
    async def test_webhook_and_poll_race(self, manager, reconciler, clock):
        """Two confirmations moments apart yield exactly one grant."""
        session = await open_session(manager, plan=DurationClass.THREE_MONTHS)
        await manager.mark_processing(session.id, "gw-order-1")

        async def poll():
            await asyncio.sleep(0.05)
            return await manager.finalize(session.id, PaymentOutcome.COMPLETED)

        webhook, poller = await asyncio.gather(
            manager.finalize(session.id, PaymentOutcome.COMPLETED),
            poll(),
        )

        assert [webhook.applied, poller.applied].count(True) == 1
        assert reconciler.get_entitlement("user-1").expires_at == T0 + relativedelta(months=3)

    @pytest.mark.asyncio
    async def test_many_concurrent_finalizes(self, manager, reconciler):
        session = await open_session(manager, plan=DurationClass.ONE_MONTH)

        results = await asyncio.gather(*(
            manager.finalize(session.id, PaymentOutcome.COMPLETED) for _ in range(10)
        ))

        assert sum(r.applied for r in results) == 1
        assert reconciler.get_entitlement("user-1").version == 1

    @pytest.mark.asyncio
    async def test_failed_outcome_grants_nothing(self, manager, reconciler):
        session = await open_session(manager)
        result = await manager.finalize(session.id, PaymentOutcome.FAILED)

        assert result.session.status == PaymentStatus.FAILED
        assert result.entitlement is None
        assert reconciler.get_entitlement("user-1") is None

    @pytest.mark.asyncio
    async def test_contradicting_outcome_is_integrity_violation(self, manager):
        session = await open_session(manager)
        await manager.finalize(session.id, PaymentOutcome.FAILED)

        with pytest.raises(PaymentAlreadyTerminalError) as exc_info:
            await manager.finalize(session.id, PaymentOutcome.COMPLETED)

        assert isinstance(exc_info.value, IntegrityViolationError)
        assert exc_info.value.details["status"] == "failed"

    @pytest.mark.asyncio
    async def test_cancelled_session_cannot_complete(self, manager):
        session = await open_session(manager)
        await manager.cancel(session.id, "user-1")

        with pytest.raises(PaymentAlreadyTerminalError):
            await manager.finalize(session.id, PaymentOutcome.COMPLETED)

    @pytest.mark.asyncio
    async def test_expired_session_cannot_complete(self, manager, reconciler, clock):
        session = await open_session(manager)
        clock.advance(timedelta(minutes=30, seconds=1))

        with pytest.raises(PaymentSessionExpiredError):
            await manager.finalize(session.id, PaymentOutcome.COMPLETED)
        assert reconciler.get_entitlement("user-1") is None
        assert (await manager.get(session.id)).status == PaymentStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_finalize_at_exact_ttl_still_allowed(self, manager, clock):
        session = await open_session(manager)
        clock.advance(timedelta(minutes=30))
        result = await manager.finalize(session.id, PaymentOutcome.COMPLETED)
        assert result.applied is True

    @pytest.mark.asyncio
    async def test_unknown_session(self, manager):
        with pytest.raises(PaymentSessionNotFoundError):
            await manager.finalize("missing", PaymentOutcome.COMPLETED)

    @pytest.mark.asyncio
    async def test_failed_activation_reverts_status(self, repository, audit, clock):
        reconciler = MagicMock()
        reconciler.reconcile = AsyncMock(side_effect=StorageError())
        manager = PaymentSessionManager(repository, reconciler, audit, clock=clock)
        session = await open_session(manager)

        with pytest.raises(StorageError):
            await manager.finalize(session.id, PaymentOutcome.COMPLETED)

        assert repository.get(session.id).status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_lifetime_plan(self, manager, reconciler):
        session = await open_session(manager, plan=DurationClass.LIFETIME)
        await manager.finalize(session.id, PaymentOutcome.COMPLETED)
        entitlement = reconciler.get_entitlement("user-1")
        assert entitlement.tier == EntitlementTier.LIFETIME
        assert entitlement.expires_at is None

    @pytest.mark.asyncio
    async def test_gateway_cancellation_while_processing(self, manager, reconciler):
        session = await open_session(manager)
        await manager.mark_processing(session.id)

        result = await manager.finalize(session.id, PaymentOutcome.CANCELLED)

        assert result.applied is True
        assert result.session.status == PaymentStatus.CANCELLED
        assert reconciler.get_entitlement("user-1") is None


class TestProcessing:
    @pytest.mark.asyncio
    async def test_mark_processing_records_reference(self, manager):
        session = await open_session(manager)
        processing = await manager.mark_processing(session.id, "0xabc")
        assert processing.status == PaymentStatus.PROCESSING
        assert processing.external_reference == "0xabc"

    @pytest.mark.asyncio
    async def test_mark_processing_twice(self, manager):
        session = await open_session(manager)
        await manager.mark_processing(session.id, "0xabc")
        again = await manager.mark_processing(session.id, "0xdef")
        assert again.external_reference == "0xabc"

    @pytest.mark.asyncio
    async def test_processing_then_complete(self, manager):
        session = await open_session(manager)
        await manager.mark_processing(session.id)
        result = await manager.finalize(session.id, PaymentOutcome.COMPLETED)
        assert result.applied is True


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_pending(self, manager):
        session = await open_session(manager)
        cancelled = await manager.cancel(session.id, "user-1")
        assert cancelled.status == PaymentStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_while_processing_is_too_late(self, manager):
        session = await open_session(manager)
        await manager.mark_processing(session.id)

        with pytest.raises(CancellationTooLateError):
            await manager.cancel(session.id, "user-1")

    @pytest.mark.asyncio
    async def test_cancel_by_other_subject(self, manager):
        session = await open_session(manager)
        with pytest.raises(PaymentSessionNotFoundError):
            await manager.cancel(session.id, "user-2")

    @pytest.mark.asyncio
    async def test_cancel_twice(self, manager):
        session = await open_session(manager)
        await manager.cancel(session.id, "user-1")
        again = await manager.cancel(session.id, "user-1")
        assert again.status == PaymentStatus.CANCELLED


class TestExpiry:
    @pytest.mark.asyncio
    async def test_sweep_expires_stale_sessions(self, manager, repository, clock):
        stale = await open_session(manager)
        clock.advance(timedelta(minutes=20))
        fresh = await open_session(manager, subject_id="user-2")
        clock.advance(timedelta(minutes=11))

        expired = await manager.sweep_expired()

        assert expired == [stale.id]
        assert repository.get(stale.id).status == PaymentStatus.EXPIRED
        assert repository.get(fresh.id).status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_sweep_leaves_terminal_sessions(self, manager, repository, clock):
        session = await open_session(manager)
        await manager.finalize(session.id, PaymentOutcome.COMPLETED)
        clock.advance(timedelta(hours=1))

        assert await manager.sweep_expired() == []
        assert repository.get(session.id).status == PaymentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_get_applies_lazy_expiry(self, manager, repository, clock):
        session = await open_session(manager)
        clock.advance(timedelta(hours=1))

        assert (await manager.get(session.id)).status == PaymentStatus.EXPIRED
        assert repository.get(session.id).status == PaymentStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_processing_sessions_also_expire(self, manager, clock):
        session = await open_session(manager)
        await manager.mark_processing(session.id)
        clock.advance(timedelta(hours=1))

        assert await manager.sweep_expired() == [session.id]
