"""
Access module interfaces.

IAccessService is the surface the UI and dashboard layer call.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from modules.audit.models import AuditLogEntry
from modules.codes.models import AccessCode, CodeStatus
from modules.entitlements.models import DurationClass, Entitlement, StatusSnapshot
from modules.payments.models import (
    FinalizeResult,
    PaymentMethod,
    PaymentOutcome,
    PaymentSession,
)


@runtime_checkable
class IAccessService(Protocol):
    """Entitlement operations exposed to callers outside the core."""

    def get_status(self, subject_id: str) -> StatusSnapshot:
        ...

    async def redeem_code(self, code: str, subject_id: str) -> StatusSnapshot:
        ...

    async def create_payment_session(
        self,
        subject_id: str,
        method: PaymentMethod,
        plan: DurationClass,
    ) -> PaymentSession:
        ...

    async def confirm_payment(self, session_id: str, outcome: PaymentOutcome) -> FinalizeResult:
        ...

    async def admin_generate_code(
        self,
        session_id: str,
        duration_class: DurationClass,
        valid_until: Optional[datetime] = None,
        actor_id: Optional[str] = None,
    ) -> AccessCode:
        ...

    async def admin_grant(
        self,
        session_id: str,
        subject_id: str,
        duration_class: DurationClass,
        actor_id: Optional[str] = None,
    ) -> Entitlement:
        ...

    async def admin_revoke_code(
        self,
        session_id: str,
        code: str,
        actor_id: Optional[str] = None,
    ) -> AccessCode:
        ...

    async def admin_list_codes(
        self,
        session_id: str,
        status: Optional[CodeStatus] = None,
        limit: int = 50,
        offset: int = 0,
        actor_id: Optional[str] = None,
    ) -> list[AccessCode]:
        ...

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
        ...

    async def request_trial(self, subject_id: str) -> StatusSnapshot:
        ...

    async def request_grace(self, subject_id: str) -> StatusSnapshot:
        ...
