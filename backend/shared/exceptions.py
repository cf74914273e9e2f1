"""
Base exception classes for the Tenure backend.

Each module should define its own exceptions that inherit from these bases.
The bases encode the error taxonomy the API layer maps to HTTP responses:
rejections (not found, validation, auth), conflicts, expiry, integrity
violations and storage failures.
"""

from typing import Optional, Any


class TenureError(Exception):
    """
    Base exception for all Tenure errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(TenureError):
    """Resource not found."""

    pass


class ValidationError(TenureError):
    """Input validation failed."""

    pass


class AuthenticationError(TenureError):
    """Authentication failed (invalid or missing credentials)."""

    pass


class AuthorizationError(TenureError):
    """Authorization failed (insufficient permissions)."""

    pass


class ConflictError(TenureError):
    """
    A concurrent caller already performed the operation.

    Distinct from a rejection: the other caller succeeded, so clients
    should treat this as "already handled" rather than a hard failure.
    """

    pass


class ExpiredError(TenureError):
    """A time-bounded resource aged out before it could be used."""

    pass


class IntegrityViolationError(TenureError):
    """
    A request contradicts recorded terminal state.

    Indicates a replayed request or an upstream logic error.
    """

    pass


class StorageError(TenureError):
    """The backing store failed; the operation did not complete."""

    def __init__(
        self,
        message: str = "Storage is temporarily unavailable",
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code or "STORAGE_UNAVAILABLE", details)


class ExternalServiceError(TenureError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
