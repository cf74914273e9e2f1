"""
Payments module.

Payment session lifecycle: create, confirm (webhook or poller), cancel
and expire. A completed payment is turned into an entitlement grant
exactly once.

Public API:
- IPaymentSessionManager / IPaymentSessionRepository: Interfaces
- PaymentSession, PaymentPlan, FinalizeResult: Models
- PaymentMethod, PaymentStatus, PaymentOutcome: Enums
- PaymentSessionSweeper, ConfirmationPoller: Background helpers
- GatewayConfirmationSource: Gateway order lookup for the poller
"""

from .interfaces import IPaymentSessionManager, IPaymentSessionRepository
from .models import (
    DEFAULT_PAYMENT_PLANS,
    FinalizeResult,
    PaymentMethod,
    PaymentOutcome,
    PaymentPlan,
    PaymentSession,
    PaymentStatus,
)
from .gateway import GatewayConfirmationSource
from .poller import ConfirmationPoller, IConfirmationSource
from .sweeper import PaymentSessionSweeper
from .exceptions import (
    PaymentError,
    PaymentSessionNotFoundError,
    PaymentAlreadyTerminalError,
    PaymentSessionExpiredError,
    CancellationTooLateError,
    InvalidPlanError,
    InvalidAmountError,
)

__all__ = [
    # Interfaces
    "IPaymentSessionManager",
    "IPaymentSessionRepository",
    "IConfirmationSource",
    # Models
    "DEFAULT_PAYMENT_PLANS",
    "FinalizeResult",
    "PaymentMethod",
    "PaymentOutcome",
    "PaymentPlan",
    "PaymentSession",
    "PaymentStatus",
    # Background helpers
    "ConfirmationPoller",
    "GatewayConfirmationSource",
    "PaymentSessionSweeper",
    # Exceptions
    "PaymentError",
    "PaymentSessionNotFoundError",
    "PaymentAlreadyTerminalError",
    "PaymentSessionExpiredError",
    "CancellationTooLateError",
    "InvalidPlanError",
    "InvalidAmountError",
]
