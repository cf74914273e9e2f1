"""
Entitlements module.

Holds the one-per-subject entitlement record, the reconciler that is its
only writer, and the status derivation every caller displays.

Public API:
- IEntitlementStore / IActivationReconciler: Interfaces
- Entitlement, Grant, StatusSnapshot: Core models
- DurationClass, EntitlementTier, ActivationSource, AccessState: Enums
- derive_status / format_remaining: Status derivation
"""

from .interfaces import IEntitlementStore, IActivationReconciler, GrantGuard
from .models import (
    AccessState,
    ActivationSource,
    DurationClass,
    Entitlement,
    EntitlementTier,
    Grant,
    ReconcileResult,
    StatusSnapshot,
)
from .durations import duration_of
from .status import derive_status, derive_state, format_remaining, is_grace_eligible
from .exceptions import (
    EntitlementError,
    InvalidGrantError,
    ConcurrentModificationError,
)

__all__ = [
    # Interfaces
    "IEntitlementStore",
    "IActivationReconciler",
    "GrantGuard",
    # Models
    "AccessState",
    "ActivationSource",
    "DurationClass",
    "Entitlement",
    "EntitlementTier",
    "Grant",
    "ReconcileResult",
    "StatusSnapshot",
    # Functions
    "duration_of",
    "derive_status",
    "derive_state",
    "format_remaining",
    "is_grace_eligible",
    # Exceptions
    "EntitlementError",
    "InvalidGrantError",
    "ConcurrentModificationError",
]
