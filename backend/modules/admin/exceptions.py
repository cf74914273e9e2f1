"""
Admin session exceptions.
"""

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    TenureError,
)


class AdminError(TenureError):
    """Base exception for admin errors."""

    pass


class AdminAuthenticationError(AdminError, AuthenticationError):
    """Raised when a user without admin rights tries to open a session."""

    def __init__(self, user_id: str):
        super().__init__(
            "Admin access denied",
            code="ADMIN_AUTHENTICATION_FAILED",
            details={"user_id": user_id},
        )


class AdminSessionNotFoundError(AdminError, NotFoundError):
    """Raised when a session id is unknown or was ended."""

    def __init__(self, session_id: str):
        super().__init__(
            "Admin session not found",
            code="ADMIN_SESSION_NOT_FOUND",
            details={"session_id": session_id},
        )


class AdminSessionExpiredError(AdminError, AuthorizationError):
    """Raised when a session is used at or after its expiry."""

    def __init__(self, session_id: str):
        super().__init__(
            "Admin session expired, please sign in again",
            code="ADMIN_SESSION_EXPIRED",
            details={"session_id": session_id},
        )


class InsufficientPrivilegeError(AdminError, AuthorizationError):
    """Raised when a session's privilege is below what an action needs."""

    def __init__(self, session_id: str, held: str, required: str):
        super().__init__(
            f"This action requires {required} privileges",
            code="INSUFFICIENT_PRIVILEGE",
            details={"session_id": session_id, "held": held, "required": required},
        )
