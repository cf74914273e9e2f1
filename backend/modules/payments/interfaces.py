"""
Payment module interfaces.

Defines the contracts other modules and the API layer rely on.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, runtime_checkable

from modules.entitlements.models import DurationClass
from .models import (
    FinalizeResult,
    PaymentMethod,
    PaymentOutcome,
    PaymentPlan,
    PaymentSession,
    PaymentStatus,
)


@runtime_checkable
class IPaymentSessionRepository(Protocol):
    """
    Storage for payment sessions.

    transition() is a compare-and-swap on status: it only writes when the
    stored status is one of `expected` and reports whether it did.
    """

    def get(self, session_id: str) -> Optional[PaymentSession]:
        ...

    def insert(self, session: PaymentSession) -> None:
        ...

    def transition(
        self,
        session_id: str,
        expected: tuple[PaymentStatus, ...],
        new_status: PaymentStatus,
        now: datetime,
        external_reference: Optional[str] = None,
    ) -> bool:
        ...

    def list_open(self) -> list[PaymentSession]:
        ...


@runtime_checkable
class IPaymentSessionManager(Protocol):
    """Payment session lifecycle."""

    def list_plans(self) -> list[PaymentPlan]:
        ...

    async def create(
        self,
        subject_id: str,
        method: PaymentMethod,
        plan: DurationClass,
        amount: Optional[Decimal] = None,
        currency: Optional[str] = None,
    ) -> PaymentSession:
        """Open a session; amount and currency default to the plan catalog."""
        ...

    async def get(self, session_id: str) -> PaymentSession:
        ...

    async def mark_processing(
        self,
        session_id: str,
        external_reference: Optional[str] = None,
    ) -> PaymentSession:
        ...

    async def finalize(self, session_id: str, outcome: PaymentOutcome) -> FinalizeResult:
        ...

    async def cancel(self, session_id: str, subject_id: str) -> PaymentSession:
        ...

    async def sweep_expired(self) -> list[str]:
        ...

    async def list_open(self) -> list[PaymentSession]:
        ...
