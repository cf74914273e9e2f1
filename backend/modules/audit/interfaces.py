"""
Audit module interface.
"""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from .models import AuditLogEntry


@runtime_checkable
class IAuditLog(Protocol):
    """Append-only audit trail shared by every module."""

    def record(
        self,
        actor: str,
        action: str,
        target: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> AuditLogEntry:
        """
        Append an entry.

        Args:
            actor: Who performed the action
            action: Dotted action name
            target: Affected resource, if any
            details: Extra structured data
            timestamp: When it happened (defaults to now)

        Returns:
            The stored entry
        """
        ...

    def list_entries(
        self,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        target: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditLogEntry]:
        """List entries, most recent first, optionally filtered."""
        ...
