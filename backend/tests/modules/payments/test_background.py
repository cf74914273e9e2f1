"""Tests for the payment sweeper and confirmation poller."""

import asyncio
from datetime import timedelta
from typing import Optional
from unittest.mock import AsyncMock

import pytest
from dateutil.relativedelta import relativedelta

from modules.entitlements.models import DurationClass
from modules.payments.models import PaymentMethod, PaymentOutcome, PaymentSession, PaymentStatus
from modules.payments.poller import ConfirmationPoller, IConfirmationSource
from modules.payments.repository import InMemoryPaymentSessionRepository
from modules.payments.service import PaymentSessionManager
from modules.payments.sweeper import PaymentSessionSweeper
from shared.exceptions import ExternalServiceError
from tests.conftest import T0


class StubConfirmationSource:
    """Confirms sessions listed in `outcomes`; everything else is unconfirmed."""

    def __init__(self, outcomes: dict[str, PaymentOutcome]):
        self.outcomes = outcomes
        self.checked: list[str] = []

    async def check(self, session: PaymentSession) -> Optional[PaymentOutcome]:
        self.checked.append(session.id)
        return self.outcomes.get(session.id)


@pytest.fixture
def manager(reconciler, audit, clock):
    return PaymentSessionManager(InMemoryPaymentSessionRepository(), reconciler, audit, clock=clock)


class TestConfirmationPoller:
    def test_stub_satisfies_protocol(self):
        assert isinstance(StubConfirmationSource({}), IConfirmationSource)

    @pytest.mark.asyncio
    async def test_finalizes_confirmed_sessions(self, manager, reconciler):
        paid = await manager.create("user-1", PaymentMethod.ONCHAIN_TRANSFER, DurationClass.ONE_MONTH)
        declined = await manager.create("user-2", PaymentMethod.P2P_WALLET, DurationClass.ONE_MONTH)
        waiting = await manager.create("user-3", PaymentMethod.CARD_GATEWAY, DurationClass.ONE_MONTH)
        source = StubConfirmationSource({
            paid.id: PaymentOutcome.COMPLETED,
            declined.id: PaymentOutcome.FAILED,
        })

        applied = await ConfirmationPoller(manager, source).poll_once()

        assert applied == {paid.id: PaymentOutcome.COMPLETED, declined.id: PaymentOutcome.FAILED}
        assert (await manager.get(waiting.id)).status == PaymentStatus.PENDING
        assert reconciler.get_entitlement("user-1").expires_at == T0 + relativedelta(months=1)
        assert reconciler.get_entitlement("user-2") is None

    @pytest.mark.asyncio
    async def test_poll_after_webhook_is_a_no_op(self, manager, reconciler):
        session = await manager.create("user-1", PaymentMethod.CARD_GATEWAY, DurationClass.ONE_MONTH)
        await manager.finalize(session.id, PaymentOutcome.COMPLETED)
        source = StubConfirmationSource({session.id: PaymentOutcome.COMPLETED})

        applied = await ConfirmationPoller(manager, source).poll_once()

        assert applied == {}
        assert source.checked == []
        assert reconciler.get_entitlement("user-1").version == 1

    @pytest.mark.asyncio
    async def test_contradicting_confirmation_is_skipped(self, manager):
        session = await manager.create("user-1", PaymentMethod.CARD_GATEWAY, DurationClass.ONE_MONTH)
        source = StubConfirmationSource({session.id: PaymentOutcome.COMPLETED})
        poller = ConfirmationPoller(manager, source)

        # Webhook reports failure between the poller's lookup and its finalize
        original_check = source.check

        async def check_then_fail(s):
            outcome = await original_check(s)
            await manager.finalize(s.id, PaymentOutcome.FAILED)
            return outcome

        source.check = check_then_fail
        assert await poller.poll_once() == {}

    @pytest.mark.asyncio
    async def test_failed_lookup_skips_only_that_session(self, manager):
        broken = await manager.create("user-1", PaymentMethod.ONCHAIN_TRANSFER, DurationClass.ONE_MONTH)
        healthy = await manager.create("user-2", PaymentMethod.CARD_GATEWAY, DurationClass.ONE_MONTH)

        class FlakySource:
            async def check(self, session):
                if session.id == broken.id:
                    raise ExternalServiceError("explorer timed out", service="chain-explorer")
                return PaymentOutcome.COMPLETED

        applied = await ConfirmationPoller(manager, FlakySource()).poll_once()

        assert applied == {healthy.id: PaymentOutcome.COMPLETED}
        assert (await manager.get(broken.id)).status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_skips_expired_sessions(self, manager, clock):
        session = await manager.create("user-1", PaymentMethod.CARD_GATEWAY, DurationClass.ONE_MONTH)
        clock.advance(timedelta(hours=1))
        source = StubConfirmationSource({session.id: PaymentOutcome.COMPLETED})

        assert await ConfirmationPoller(manager, source).poll_once() == {}
        assert source.checked == []


class TestPaymentSessionSweeper:
    @pytest.mark.asyncio
    async def test_run_once(self, manager, clock):
        session = await manager.create("user-1", PaymentMethod.CARD_GATEWAY, DurationClass.ONE_MONTH)
        clock.advance(timedelta(hours=1))

        assert await PaymentSessionSweeper(manager).run_once() == [session.id]

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        manager = AsyncMock()
        manager.sweep_expired.return_value = []
        sweeper = PaymentSessionSweeper(manager, interval_seconds=0.01)

        sweeper.start()
        assert sweeper.running
        await asyncio.sleep(0.05)
        await sweeper.stop()

        assert not sweeper.running
        assert manager.sweep_expired.await_count >= 1

    @pytest.mark.asyncio
    async def test_keeps_running_after_a_failed_sweep(self):
        manager = AsyncMock()
        manager.sweep_expired.side_effect = [RuntimeError("db down"), [], [], [], [], []]
        sweeper = PaymentSessionSweeper(manager, interval_seconds=0.01)

        sweeper.start()
        await asyncio.sleep(0.05)
        assert sweeper.running
        await sweeper.stop()
        assert manager.sweep_expired.await_count >= 2


class TestPollerSchedule:
    @pytest.mark.asyncio
    async def test_poller_runs_on_a_timer(self, manager, reconciler):
        session = await manager.create("user-1", PaymentMethod.CARD_GATEWAY, DurationClass.ONE_MONTH)
        source = StubConfirmationSource({session.id: PaymentOutcome.COMPLETED})
        poller = ConfirmationPoller(manager, source, interval_seconds=0.01)

        poller.start()
        assert poller.running
        await asyncio.sleep(0.05)
        await poller.stop()

        assert not poller.running
        assert (await manager.get(session.id)).status == PaymentStatus.COMPLETED
        assert reconciler.get_entitlement("user-1").version == 1
