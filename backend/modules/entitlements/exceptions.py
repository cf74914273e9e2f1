"""
Entitlement module exceptions.
"""

from shared.exceptions import TenureError, StorageError, ValidationError


class EntitlementError(TenureError):
    """Base exception for entitlement-related errors."""

    pass


class InvalidGrantError(EntitlementError, ValidationError):
    """Raised when a grant cannot be applied as described."""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid grant: {reason}",
            code="INVALID_GRANT",
            details={"reason": reason},
        )


class ConcurrentModificationError(EntitlementError, StorageError):
    """
    Raised when an entitlement write keeps losing compare-and-swap races.

    The activation did not land; callers must not report success.
    """

    def __init__(self, subject_id: str, attempts: int):
        super().__init__(
            f"Could not update entitlement for {subject_id} after {attempts} attempts",
            code="CONCURRENT_MODIFICATION",
            details={"subject_id": subject_id, "attempts": attempts},
        )
