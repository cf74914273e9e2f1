"""
Code registry interfaces.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from modules.entitlements.models import DurationClass
from .models import AccessCode, CodeStatus, Redemption


@runtime_checkable
class ICodeRepository(Protocol):
    """
    Storage for redeemable codes.

    The mark_* methods are conditional updates: each succeeds only if the
    code is still unredeemed, which is what makes redemption exactly-once.
    """

    def get(self, code: str) -> Optional[AccessCode]:
        ...

    def insert(self, access_code: AccessCode) -> bool:
        """Store a new code. Returns False if the value is already taken."""
        ...

    def mark_redeemed(self, code: str, subject_id: str, now: datetime) -> bool:
        """Atomically move an unredeemed code to redeemed."""
        ...

    def release(self, code: str, subject_id: str) -> bool:
        """Undo a redemption by subject_id whose activation did not land."""
        ...

    def mark_revoked(self, code: str, now: datetime) -> bool:
        """Atomically move an unredeemed code to revoked."""
        ...

    def list_codes(
        self,
        status: Optional[CodeStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AccessCode]:
        """List codes, newest first."""
        ...


@runtime_checkable
class ICodeRegistry(Protocol):
    """Interface for generating, redeeming and revoking codes."""

    async def generate(
        self,
        duration_class: DurationClass,
        created_by: str,
        valid_until: Optional[datetime] = None,
    ) -> AccessCode:
        """
        Generate a new unredeemed code.

        Raises:
            InvalidCodeDeadlineError: If valid_until is not in the future
        """
        ...

    async def redeem(self, code: str, subject_id: str) -> Redemption:
        """
        Redeem a code for a subject.

        Raises:
            CodeNotFoundError, CodeAlreadyUsedError, CodeExpiredError,
            CodeRevokedError: Rejections; nothing is changed
        """
        ...

    async def revoke(self, code: str, actor: str) -> AccessCode:
        ...


    async def get_code(self, code: str) -> AccessCode:
        ...

    async def list_codes(
        self,
        status: Optional[CodeStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AccessCode]:
        ...
