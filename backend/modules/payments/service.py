"""
Payment session manager.

Tracks a payment from session creation to a terminal status, and grants
the purchased duration exactly once when a payment completes.
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from shared.clock import Clock, SystemClock
from shared.locks import KeyedLock
from modules.audit.interfaces import IAuditLog
from modules.audit.service import record_safely
from modules.entitlements.interfaces import IActivationReconciler
from modules.entitlements.models import ActivationSource, DurationClass, Grant

from .interfaces import IPaymentSessionRepository
from .repository import OPEN_STATUSES
from .models import (
    DEFAULT_PAYMENT_PLANS,
    FinalizeResult,
    PaymentMethod,
    PaymentOutcome,
    PaymentPlan,
    PaymentSession,
    PaymentStatus,
)
from .exceptions import (
    CancellationTooLateError,
    InvalidAmountError,
    InvalidPlanError,
    PaymentAlreadyTerminalError,
    PaymentSessionExpiredError,
    PaymentSessionNotFoundError,
)

logger = logging.getLogger(__name__)


class PaymentSessionManager:
    """
    Implementation of the payment session lifecycle.

    finalize() is the single entry point for both the gateway webhook and
    the fallback poller. It is serialized per session id and decided by a
    compare-and-swap on status, so whichever caller arrives second sees a
    terminal session and returns applied=False.
    """

    def __init__(
        self,
        repository: IPaymentSessionRepository,
        reconciler: IActivationReconciler,
        audit: IAuditLog,
        clock: Optional[Clock] = None,
        ttl_seconds: int = 1800,
        plans: Optional[dict[DurationClass, PaymentPlan]] = None,
    ):
        self._repository = repository
        self._reconciler = reconciler
        self._audit = audit
        self._clock = clock or SystemClock()
        self._ttl_seconds = ttl_seconds
        self._plans = plans if plans is not None else DEFAULT_PAYMENT_PLANS
        self._locks = KeyedLock()

    def list_plans(self) -> list[PaymentPlan]:
        return list(self._plans.values())

    async def create(
        self,
        subject_id: str,
        method: PaymentMethod,
        plan: DurationClass,
        amount: Optional[Decimal] = None,
        currency: Optional[str] = None,
    ) -> PaymentSession:
        """
        Open a pending payment session.

        The price comes from the plan catalog unless the caller quotes one
        (e.g. a gateway-side discount).

        Raises:
            InvalidPlanError: If the plan is not offered
            InvalidAmountError: If a quoted amount is not positive
        """
        catalog_entry = self._plans.get(plan)
        if catalog_entry is None:
            raise InvalidPlanError(plan.value)
        if amount is not None and amount <= 0:
            raise InvalidAmountError(str(amount))

        now = self._clock.now()
        session = PaymentSession(
            id=str(uuid.uuid4()),
            subject_id=subject_id,
            method=method,
            plan=plan,
            amount=amount if amount is not None else catalog_entry.amount,
            currency=currency or catalog_entry.currency,
            status=PaymentStatus.PENDING,
            created_at=now,
            ttl_seconds=self._ttl_seconds,
            updated_at=now,
        )
        self._repository.insert(session)

        logger.info(
            "Payment session %s opened for %s: plan=%s method=%s amount=%s %s",
            session.id,
            subject_id,
            plan.value,
            method.value,
            session.amount,
            session.currency,
        )
        record_safely(
            self._audit,
            actor=subject_id,
            action="payment.created",
            target=session.id,
            details={"plan": plan.value, "method": method.value, "amount": str(session.amount)},
            timestamp=now,
        )
        return session

    async def get(self, session_id: str) -> PaymentSession:
        """Fetch a session, expiring it first if its TTL has elapsed."""
        session = self._load(session_id)
        return self._expire_if_due(session)

    async def mark_processing(
        self,
        session_id: str,
        external_reference: Optional[str] = None,
    ) -> PaymentSession:
        """
        Record that confirmation is under way (e.g. the gateway accepted the
        charge, or a transfer was broadcast).

        Calling it again on a processing session is a no-op.
        """
        async with self._locks.hold(session_id):
            session = self._expire_if_due(self._load(session_id))
            if session.status == PaymentStatus.PROCESSING:
                return session
            if session.status == PaymentStatus.EXPIRED:
                raise PaymentSessionExpiredError(session_id)
            if session.status.is_terminal:
                raise PaymentAlreadyTerminalError(
                    session_id, session.status.value, PaymentStatus.PROCESSING.value
                )

            now = self._clock.now()
            if not self._repository.transition(
                session_id,
                (PaymentStatus.PENDING,),
                PaymentStatus.PROCESSING,
                now,
                external_reference=external_reference,
            ):
                return self._load(session_id)

        logger.info("Payment session %s is processing (reference=%s)", session_id, external_reference)
        return self._load(session_id)

    async def finalize(self, session_id: str, outcome: PaymentOutcome) -> FinalizeResult:
        """
        Move a session to its confirmed terminal status.

        Args:
            session_id: Payment session ID
            outcome: Confirmed outcome

        Returns:
            FinalizeResult; applied is False when the session already
            carried this outcome

        Raises:
            PaymentSessionNotFoundError: If the session does not exist
            PaymentSessionExpiredError: If the TTL elapsed first
            PaymentAlreadyTerminalError: If the session ended differently
        """
        target = outcome.status

        async with self._locks.hold(session_id):
            session = self._expire_if_due(self._load(session_id))

            if session.status == target:
                logger.info("Repeat finalize for payment session %s (%s), ignoring", session_id, target.value)
                return FinalizeResult(
                    session=session,
                    applied=False,
                    entitlement=self._entitlement_if_completed(session),
                )
            if session.status == PaymentStatus.EXPIRED:
                raise PaymentSessionExpiredError(session_id)
            if session.status.is_terminal:
                logger.error(
                    "Payment session %s finalized as %s but is already %s",
                    session_id,
                    target.value,
                    session.status.value,
                )
                raise PaymentAlreadyTerminalError(session_id, session.status.value, target.value)

            now = self._clock.now()
            if not self._repository.transition(session_id, OPEN_STATUSES, target, now):
                # Another process finalized between our read and write
                latest = self._load(session_id)
                if latest.status == target:
                    return FinalizeResult(
                        session=latest,
                        applied=False,
                        entitlement=self._entitlement_if_completed(latest),
                    )
                if latest.status == PaymentStatus.EXPIRED:
                    raise PaymentSessionExpiredError(session_id)
                logger.error(
                    "Payment session %s finalized as %s but is already %s",
                    session_id,
                    target.value,
                    latest.status.value,
                )
                raise PaymentAlreadyTerminalError(session_id, latest.status.value, target.value)

            entitlement = None
            if target == PaymentStatus.COMPLETED:
                grant = Grant.for_duration(session.plan, ActivationSource.PAYMENT, reference=session_id)
                try:
                    result = await self._reconciler.reconcile(
                        session.subject_id, grant, actor=session.subject_id
                    )
                except Exception:
                    logger.error(
                        "Activation failed for payment session %s; reverting to %s",
                        session_id,
                        session.status.value,
                    )
                    self._repository.transition(session_id, (target,), session.status, now)
                    raise
                entitlement = result.entitlement

        finalized = session.model_copy(update={"status": target, "updated_at": now})
        logger.info("Payment session %s finalized as %s", session_id, target.value)
        record_safely(
            self._audit,
            actor=session.subject_id,
            action=f"payment.{target.value}",
            target=session_id,
            details={"plan": session.plan.value, "amount": str(session.amount)},
            timestamp=now,
        )
        return FinalizeResult(session=finalized, applied=True, entitlement=entitlement)

    async def cancel(self, session_id: str, subject_id: str) -> PaymentSession:
        """
        Cancel a pending session on behalf of its owner.

        Raises:
            PaymentSessionNotFoundError: If the session does not exist or
                belongs to another subject
            CancellationTooLateError: If confirmation already started or
                the session is terminal
        """
        async with self._locks.hold(session_id):
            session = self._expire_if_due(self._load(session_id))
            if session.subject_id != subject_id:
                raise PaymentSessionNotFoundError(session_id)
            if session.status == PaymentStatus.CANCELLED:
                return session
            if session.status != PaymentStatus.PENDING:
                raise CancellationTooLateError(session_id, session.status.value)

            now = self._clock.now()
            if not self._repository.transition(
                session_id, (PaymentStatus.PENDING,), PaymentStatus.CANCELLED, now
            ):
                latest = self._load(session_id)
                raise CancellationTooLateError(session_id, latest.status.value)

        logger.info("Payment session %s cancelled by %s", session_id, subject_id)
        record_safely(self._audit, actor=subject_id, action="payment.cancelled", target=session_id, timestamp=now)
        return session.model_copy(update={"status": PaymentStatus.CANCELLED, "updated_at": now})

    async def sweep_expired(self) -> list[str]:
        """
        Expire every open session whose TTL has elapsed.

        Returns:
            IDs of the sessions expired by this sweep
        """
        now = self._clock.now()
        expired = []
        for session in self._repository.list_open():
            if session.is_past_ttl(now) and self._repository.transition(
                session.id, OPEN_STATUSES, PaymentStatus.EXPIRED, now
            ):
                expired.append(session.id)

        if expired:
            logger.info("Expired %d stale payment session(s)", len(expired))
        return expired

    async def list_open(self) -> list[PaymentSession]:
        return [self._expire_if_due(s) for s in self._repository.list_open()]

    def _load(self, session_id: str) -> PaymentSession:
        session = self._repository.get(session_id)
        if session is None:
            raise PaymentSessionNotFoundError(session_id)
        return session

    def _expire_if_due(self, session: PaymentSession) -> PaymentSession:
        now = self._clock.now()
        if not session.is_past_ttl(now):
            return session
        if self._repository.transition(session.id, OPEN_STATUSES, PaymentStatus.EXPIRED, now):
            logger.info("Payment session %s expired on read", session.id)
            return session.model_copy(update={"status": PaymentStatus.EXPIRED, "updated_at": now})
        return self._load(session.id)

    def _entitlement_if_completed(self, session: PaymentSession):
        if session.status != PaymentStatus.COMPLETED:
            return None
        return self._reconciler.get_entitlement(session.subject_id)
