"""
Codes module.

Single-use redeemable codes that grant a fixed duration or lifetime access.

Public API:
- ICodeRegistry / ICodeRepository: Interfaces
- AccessCode, CodeStatus, Redemption: Models
- Code exceptions: CodeNotFoundError, CodeAlreadyUsedError, etc.
"""

from .interfaces import ICodeRegistry, ICodeRepository
from .models import AccessCode, CodeStatus, Redemption
from .exceptions import (
    CodeError,
    CodeNotFoundError,
    CodeAlreadyUsedError,
    CodeExpiredError,
    CodeRevokedError,
    CodeGenerationError,
    InvalidCodeDeadlineError,
)

__all__ = [
    # Interfaces
    "ICodeRegistry",
    "ICodeRepository",
    # Models
    "AccessCode",
    "CodeStatus",
    "Redemption",
    # Exceptions
    "CodeError",
    "CodeNotFoundError",
    "CodeAlreadyUsedError",
    "CodeExpiredError",
    "CodeRevokedError",
    "CodeGenerationError",
    "InvalidCodeDeadlineError",
]
