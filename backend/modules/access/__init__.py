"""
Access module.

The entry point the API layer uses for every entitlement operation.

Public API:
- IAccessService: Interface
- AccessService: Implementation
"""

from .interfaces import IAccessService
from .service import AccessService

__all__ = [
    "IAccessService",
    "AccessService",
]
