"""
Code registry exceptions.

None of these leave state changed: a rejected redemption never consumes
the code or touches the entitlement.
"""

from shared.exceptions import (
    TenureError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)


class CodeError(TenureError):
    """Base exception for code-related errors."""

    pass


class CodeNotFoundError(CodeError, NotFoundError):
    """Raised when no code with the given value exists."""

    def __init__(self, code: str):
        super().__init__(
            "Code not found",
            code="CODE_NOT_FOUND",
            details={"code": code},
        )


class CodeAlreadyUsedError(CodeError, ConflictError):
    """
    Raised when the code has already been redeemed.

    Also returned to every caller that loses a concurrent redemption race.
    """

    def __init__(self, code: str):
        super().__init__(
            "Code has already been redeemed",
            code="CODE_ALREADY_USED",
            details={"code": code},
        )


class CodeExpiredError(CodeError, ExpiredError):
    """Raised when the code's redemption deadline has passed."""

    def __init__(self, code: str):
        super().__init__(
            "Code is no longer valid for redemption",
            code="CODE_EXPIRED",
            details={"code": code},
        )


class CodeRevokedError(CodeError, ValidationError):
    """Raised when the code was revoked by an admin."""

    def __init__(self, code: str):
        super().__init__(
            "Code has been revoked",
            code="CODE_REVOKED",
            details={"code": code},
        )


class CodeGenerationError(CodeError):
    """Raised when no unused token could be produced."""

    def __init__(self, attempts: int):
        super().__init__(
            f"Could not generate a unique code after {attempts} attempts",
            code="CODE_GENERATION_FAILED",
            details={"attempts": attempts},
        )


class InvalidCodeDeadlineError(CodeError, ValidationError):
    """Raised when a code is generated with a deadline that has already passed."""

    def __init__(self, valid_until: str):
        super().__init__(
            "Redemption deadline must be in the future",
            code="INVALID_CODE_DEADLINE",
            details={"valid_until": valid_until},
        )
