"""
Payment module exceptions.
"""

from shared.exceptions import (
    ExpiredError,
    IntegrityViolationError,
    NotFoundError,
    TenureError,
    ValidationError,
)


class PaymentError(TenureError):
    """Base exception for payment errors."""

    pass


class PaymentSessionNotFoundError(PaymentError, NotFoundError):
    """Raised when a payment session does not exist."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Payment session not found: {session_id}",
            code="PAYMENT_SESSION_NOT_FOUND",
            details={"session_id": session_id},
        )


class PaymentAlreadyTerminalError(PaymentError, IntegrityViolationError):
    """
    Raised when a session already in a terminal state is finalized with a
    different outcome. Indicates a replay or an upstream logic error.
    """

    def __init__(self, session_id: str, status: str, requested: str):
        super().__init__(
            message=f"Payment session {session_id} is already {status}",
            code="PAYMENT_ALREADY_TERMINAL",
            details={"session_id": session_id, "status": status, "requested": requested},
        )


class PaymentSessionExpiredError(PaymentError, ExpiredError):
    """Raised when a session's TTL elapsed before confirmation."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Payment session expired: {session_id}",
            code="PAYMENT_SESSION_EXPIRED",
            details={"session_id": session_id},
        )


class CancellationTooLateError(PaymentError, ValidationError):
    """Raised when cancelling a session that is no longer pending."""

    def __init__(self, session_id: str, status: str):
        super().__init__(
            message=f"Payment session {session_id} can no longer be cancelled ({status})",
            code="CANCELLATION_TOO_LATE",
            details={"session_id": session_id, "status": status},
        )


class InvalidPlanError(PaymentError, ValidationError):
    """Raised when a plan is not in the catalog."""

    def __init__(self, plan: str):
        super().__init__(
            message=f"Unknown payment plan: {plan}",
            code="INVALID_PLAN",
            details={"plan": plan},
        )


class InvalidAmountError(PaymentError, ValidationError):
    """Raised when a quoted amount is not a positive price."""

    def __init__(self, amount: str):
        super().__init__(
            message=f"Invalid payment amount: {amount}",
            code="INVALID_AMOUNT",
            details={"amount": amount},
        )
