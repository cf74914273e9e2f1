"""
Audit module.

Append-only record of privileged and state-changing actions.

Public API:
- IAuditLog: Interface for recording and listing entries
- AuditLogEntry: One audit record
"""

from .interfaces import IAuditLog
from .models import AuditLogEntry

__all__ = [
    "IAuditLog",
    "AuditLogEntry",
]
