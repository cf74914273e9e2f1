"""
Payment module data models.

These models define the data structures used by the payment session
manager and exposed to other modules through the interface.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from modules.entitlements.models import DurationClass, Entitlement


class PaymentMethod(str, Enum):
    """Supported ways to pay."""

    CARD_GATEWAY = "card_gateway"          # Hosted card checkout
    P2P_WALLET = "p2p_wallet"              # Peer-to-peer wallet transfer
    ONCHAIN_TRANSFER = "onchain_transfer"  # On-chain transfer, confirmed by block


class PaymentStatus(str, Enum):
    """Payment session lifecycle states."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self not in (PaymentStatus.PENDING, PaymentStatus.PROCESSING)


class PaymentOutcome(str, Enum):
    """Confirmed result of a payment, reported by a gateway or poller."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"  # Abandoned at the gateway

    @property
    def status(self) -> PaymentStatus:
        return PaymentStatus(self.value)


class PaymentPlan(BaseModel):
    """A purchasable duration and its price."""

    duration_class: DurationClass = Field(..., description="Duration granted on completion")
    amount: Decimal = Field(..., description="Price")
    currency: str = Field(default="USD", description="ISO currency code")
    label: str = Field(..., description="Display name")


DEFAULT_PAYMENT_PLANS: dict[DurationClass, PaymentPlan] = {
    plan.duration_class: plan
    for plan in [
        PaymentPlan(duration_class=DurationClass.ONE_MONTH, amount=Decimal("9.99"), label="1 Month"),
        PaymentPlan(duration_class=DurationClass.THREE_MONTHS, amount=Decimal("24.99"), label="3 Months"),
        PaymentPlan(duration_class=DurationClass.SIX_MONTHS, amount=Decimal("44.99"), label="6 Months"),
        PaymentPlan(duration_class=DurationClass.ONE_YEAR, amount=Decimal("79.99"), label="1 Year"),
        PaymentPlan(duration_class=DurationClass.FIVE_YEARS, amount=Decimal("199.00"), label="5 Years"),
        PaymentPlan(duration_class=DurationClass.LIFETIME, amount=Decimal("299.00"), label="Lifetime"),
    ]
}


class PaymentSession(BaseModel):
    """
    One attempt by a subject to pay for a plan.

    Status only moves forward: pending -> processing -> completed / failed /
    cancelled, or to expired once the TTL elapses. Terminal states are final.
    """

    id: str = Field(..., description="Session ID (UUID)")
    subject_id: str = Field(..., description="Paying subject")
    method: PaymentMethod = Field(..., description="Payment method")
    plan: DurationClass = Field(..., description="Purchased duration")
    amount: Decimal = Field(..., description="Amount charged")
    currency: str = Field(default="USD", description="ISO currency code")
    status: PaymentStatus = Field(default=PaymentStatus.PENDING, description="Current status")
    created_at: datetime = Field(..., description="When the session was opened")
    ttl_seconds: int = Field(default=1800, description="Seconds the session may wait for confirmation")
    external_reference: Optional[str] = Field(
        None,
        description="Gateway order id or transaction hash",
    )
    updated_at: Optional[datetime] = Field(None, description="Last status change")

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(seconds=self.ttl_seconds)

    def is_past_ttl(self, now: datetime) -> bool:
        return not self.status.is_terminal and self.expires_at < now


class FinalizeResult(BaseModel):
    """Result of finalizing a payment session."""

    session: PaymentSession = Field(..., description="Session after finalizing")
    applied: bool = Field(..., description="False when this call was a repeat of an earlier finalize")
    entitlement: Optional[Entitlement] = Field(
        None,
        description="Entitlement after the grant (completed payments only)",
    )


# ============================================================================
# Request / Response Models
# ============================================================================


class CreatePaymentSessionRequest(BaseModel):
    """Request to open a payment session."""

    method: PaymentMethod = Field(..., description="Payment method")
    plan: DurationClass = Field(..., description="Plan to purchase")


class ConfirmPaymentRequest(BaseModel):
    """Confirmation delivered by a gateway webhook."""

    session_id: str = Field(..., description="Payment session ID")
    outcome: PaymentOutcome = Field(..., description="Confirmed outcome")
    external_reference: Optional[str] = Field(None, description="Gateway reference")


class PaymentPlanListResponse(BaseModel):
    """Available plans."""

    plans: list[PaymentPlan]
