"""
Access service.

Thin facade over the code registry, payment session manager, trial
manager and admin guard. Every status it returns comes from the same
derive_status() call, so all callers agree on the current state.
"""

import logging
from datetime import datetime
from typing import Optional

from shared.clock import Clock, SystemClock
from modules.admin.interfaces import IAdminSessionGuard
from modules.audit.interfaces import IAuditLog
from modules.audit.models import AuditLogEntry
from modules.admin.models import PrivilegeLevel
from modules.codes.interfaces import ICodeRegistry
from modules.codes.models import AccessCode, CodeStatus
from modules.entitlements.interfaces import IActivationReconciler
from modules.entitlements.models import (
    ActivationSource,
    DurationClass,
    Entitlement,
    Grant,
    StatusSnapshot,
)
from modules.entitlements.status import derive_status
from modules.payments.interfaces import IPaymentSessionManager
from modules.payments.models import (
    FinalizeResult,
    PaymentMethod,
    PaymentOutcome,
    PaymentSession,
)
from modules.trials.interfaces import ITrialManager

logger = logging.getLogger(__name__)


class AccessService:
    """Implementation of IAccessService."""

    def __init__(
        self,
        reconciler: IActivationReconciler,
        codes: ICodeRegistry,
        payments: IPaymentSessionManager,
        trials: ITrialManager,
        admin: IAdminSessionGuard,
        audit: IAuditLog,
        clock: Optional[Clock] = None,
    ):
        self._reconciler = reconciler
        self._codes = codes
        self._payments = payments
        self._trials = trials
        self._admin = admin
        self._audit = audit
        self._clock = clock or SystemClock()

    def get_status(self, subject_id: str) -> StatusSnapshot:
        return derive_status(
            subject_id,
            self._reconciler.get_entitlement(subject_id),
            self._clock.now(),
        )

    async def redeem_code(self, code: str, subject_id: str) -> StatusSnapshot:
        """
        Redeem a code and return the resulting status.

        Only returns once the entitlement write is confirmed; any storage
        failure propagates to the caller.
        """
        await self._codes.redeem(code, subject_id)
        return self.get_status(subject_id)

    async def create_payment_session(
        self,
        subject_id: str,
        method: PaymentMethod,
        plan: DurationClass,
    ) -> PaymentSession:
        return await self._payments.create(subject_id, method, plan)

    async def confirm_payment(self, session_id: str, outcome: PaymentOutcome) -> FinalizeResult:
        """Finalize a session; shared by the gateway webhook and the poller."""
        return await self._payments.finalize(session_id, outcome)

    async def admin_generate_code(
        self,
        session_id: str,
        duration_class: DurationClass,
        valid_until: Optional[datetime] = None,
        actor_id: Optional[str] = None,
    ) -> AccessCode:
        session = self._admin.authorize(session_id, PrivilegeLevel.STANDARD, actor_id=actor_id)
        return await self._codes.generate(duration_class, created_by=session.admin_id, valid_until=valid_until)

    async def admin_grant(
        self,
        session_id: str,
        subject_id: str,
        duration_class: DurationClass,
        actor_id: Optional[str] = None,
    ) -> Entitlement:
        """Grant access directly; requires a super admin session."""
        session = self._admin.authorize(session_id, PrivilegeLevel.SUPER, actor_id=actor_id)
        grant = Grant.for_duration(duration_class, ActivationSource.ADMIN_GRANT, reference=session.admin_id)
        result = await self._reconciler.reconcile(subject_id, grant, actor=session.admin_id)
        logger.info(
            "Admin %s granted %s to %s (applied=%s)",
            session.admin_id,
            duration_class.value,
            subject_id,
            result.applied,
        )
        return result.entitlement

    async def admin_revoke_code(
        self,
        session_id: str,
        code: str,
        actor_id: Optional[str] = None,
    ) -> AccessCode:
        session = self._admin.authorize(session_id, PrivilegeLevel.STANDARD, actor_id=actor_id)
        return await self._codes.revoke(code, actor=session.admin_id)

    async def admin_list_codes(
        self,
        session_id: str,
        status: Optional[CodeStatus] = None,
        limit: int = 50,
        offset: int = 0,
        actor_id: Optional[str] = None,
    ) -> list[AccessCode]:
        self._admin.authorize(session_id, PrivilegeLevel.STANDARD, actor_id=actor_id)
        return await self._codes.list_codes(status=status, limit=limit, offset=offset)

    async def request_trial(self, subject_id: str) -> StatusSnapshot:
        await self._trials.grant_initial_trial(subject_id)
        return self.get_status(subject_id)

    async def request_grace(self, subject_id: str) -> StatusSnapshot:
        await self._trials.grant_grace_period(subject_id)
        return self.get_status(subject_id)

    async def admin_list_audit(
        self,
        session_id: str,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        target: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
        actor_id: Optional[str] = None,
    ) -> list[AuditLogEntry]:
        """List audit entries, newest first; requires a super admin session."""
        self._admin.authorize(session_id, PrivilegeLevel.SUPER, actor_id=actor_id)
        return self._audit.list_entries(actor=actor, action=action, target=target, limit=limit, offset=offset)
