"""
Shared infrastructure for Tenure backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes and error taxonomy
- clock: Time sources
- locks: Per-key asyncio locks

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import get_supabase_client, reset_client_cache
from .clock import Clock, SystemClock, FixedClock
from .locks import KeyedLock
from .exceptions import (
    TenureError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ExpiredError,
    IntegrityViolationError,
    StorageError,
    ExternalServiceError,
)
from .models import AuthenticatedUser

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "reset_client_cache",
    "Clock",
    "SystemClock",
    "FixedClock",
    "KeyedLock",
    "TenureError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "ExpiredError",
    "IntegrityViolationError",
    "StorageError",
    "ExternalServiceError",
    "AuthenticatedUser",
]
