"""
Trial and grace exceptions.
"""

from shared.exceptions import TenureError, ValidationError


class TrialError(TenureError):
    """Base exception for trial and grace errors."""

    pass


class TrialAlreadyGrantedError(TrialError, ValidationError):
    """Raised when a subject who already has an entitlement asks for a trial."""

    def __init__(self, subject_id: str):
        super().__init__(
            "A trial has already been granted to this account",
            code="TRIAL_ALREADY_GRANTED",
            details={"subject_id": subject_id},
        )


class GraceIneligibleError(TrialError, ValidationError):
    """Raised when a grace period cannot be granted."""

    def __init__(self, subject_id: str, reason: str):
        super().__init__(
            f"Grace period unavailable: {reason}",
            code="GRACE_INELIGIBLE",
            details={"subject_id": subject_id, "reason": reason},
        )
        self.reason = reason
