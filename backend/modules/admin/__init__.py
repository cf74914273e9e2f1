"""
Admin module.

Time-bounded admin sessions and the privilege check every privileged
operation performs first.

Public API:
- IAdminSessionGuard / IAdminDirectory / IAdminSessionRepository: Interfaces
- AdminSession, AdminProfile, PrivilegeLevel: Models
- Admin exceptions: AdminAuthenticationError, AdminSessionExpiredError, etc.
"""

from .interfaces import IAdminDirectory, IAdminSessionGuard, IAdminSessionRepository
from .models import AdminProfile, AdminSession, AdminSessionResponse, PrivilegeLevel
from .exceptions import (
    AdminError,
    AdminAuthenticationError,
    AdminSessionNotFoundError,
    AdminSessionExpiredError,
    InsufficientPrivilegeError,
)

__all__ = [
    # Interfaces
    "IAdminDirectory",
    "IAdminSessionGuard",
    "IAdminSessionRepository",
    # Models
    "AdminProfile",
    "AdminSession",
    "AdminSessionResponse",
    "PrivilegeLevel",
    # Exceptions
    "AdminError",
    "AdminAuthenticationError",
    "AdminSessionNotFoundError",
    "AdminSessionExpiredError",
    "InsufficientPrivilegeError",
]
