"""
Code registry service.

Generates single-use codes and redeems them exactly once, handing each
successful redemption to the activation reconciler.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from shared.clock import Clock, SystemClock
from shared.locks import KeyedLock
from modules.audit.interfaces import IAuditLog
from modules.audit.service import record_safely
from modules.entitlements.interfaces import IActivationReconciler
from modules.entitlements.models import ActivationSource, DurationClass, Grant

from .interfaces import ICodeRepository
from .models import AccessCode, CodeStatus, Redemption
from .exceptions import (
    CodeAlreadyUsedError,
    CodeExpiredError,
    CodeGenerationError,
    CodeNotFoundError,
    CodeRevokedError,
    InvalidCodeDeadlineError,
)

logger = logging.getLogger(__name__)

# No 0/O or 1/I, so codes survive being read aloud or retyped
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_GROUPS = 3
CODE_GROUP_LENGTH = 4
MAX_GENERATION_ATTEMPTS = 5


def generate_token(prefix: str) -> str:
    """Draw a random code such as 'TENURE-7KQ2-MZ4P-XH9D'."""
    groups = [
        "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_GROUP_LENGTH))
        for _ in range(CODE_GROUPS)
    ]
    return "-".join([prefix, *groups]) if prefix else "-".join(groups)


def normalize_code(code: str) -> str:
    return code.strip().upper()


class CodeRegistry:
    """
    Implementation of the code registry.

    Redemption is serialized per code value by a keyed lock and, across
    processes, by the repository's conditional status update.
    """

    def __init__(
        self,
        repository: ICodeRepository,
        reconciler: IActivationReconciler,
        audit: IAuditLog,
        clock: Optional[Clock] = None,
        prefix: str = "TENURE",
    ):
        self._repository = repository
        self._reconciler = reconciler
        self._audit = audit
        self._clock = clock or SystemClock()
        self._prefix = prefix
        self._locks = KeyedLock()

    async def generate(
        self,
        duration_class: DurationClass,
        created_by: str,
        valid_until: Optional[datetime] = None,
    ) -> AccessCode:
        """
        Generate a new unredeemed code.

        Args:
            duration_class: Duration the code grants when redeemed
            created_by: Admin generating the code
            valid_until: Optional redemption deadline; naive values are taken as UTC

        Returns:
            The stored code

        Raises:
            InvalidCodeDeadlineError: If valid_until is not after now
        """
        now = self._clock.now()
        if valid_until is not None:
            if valid_until.tzinfo is None:
                valid_until = valid_until.replace(tzinfo=timezone.utc)
            if valid_until <= now:
                raise InvalidCodeDeadlineError(valid_until.isoformat())

        for _ in range(MAX_GENERATION_ATTEMPTS):
            access_code = AccessCode(
                code=generate_token(self._prefix),
                duration_class=duration_class,
                created_at=now,
                created_by=created_by,
                valid_until=valid_until,
            )
            if self._repository.insert(access_code):
                logger.info(
                    "Code generated by %s: duration=%s valid_until=%s",
                    created_by,
                    duration_class.value,
                    valid_until.isoformat() if valid_until else "none",
                )
                record_safely(
                    self._audit,
                    actor=created_by,
                    action="code.generated",
                    target=access_code.code,
                    details={
                        "duration_class": duration_class.value,
                        "valid_until": valid_until.isoformat() if valid_until else None,
                    },
                    timestamp=now,
                )
                return access_code

        raise CodeGenerationError(MAX_GENERATION_ATTEMPTS)

    async def redeem(self, code: str, subject_id: str) -> Redemption:
        """
        Redeem a code for a subject.

        Exactly one of any number of concurrent callers succeeds; the rest
        get CodeAlreadyUsedError. If the entitlement write fails after the
        code was claimed, the claim is released and the failure re-raised.
        """
        value = normalize_code(code)

        async with self._locks.hold(value):
            now = self._clock.now()
            record = self._repository.get(value)
            if record is None:
                raise CodeNotFoundError(value)
            self._check_redeemable(record, now)

            if not self._repository.mark_redeemed(value, subject_id, now):
                latest = self._repository.get(value)
                if latest is not None and latest.status == CodeStatus.REVOKED:
                    raise CodeRevokedError(value)
                logger.info("Redemption of %s by %s lost to a concurrent redemption", value, subject_id)
                raise CodeAlreadyUsedError(value)

            grant = Grant.for_duration(record.duration_class, ActivationSource.CODE, reference=value)
            try:
                result = await self._reconciler.reconcile(subject_id, grant, actor=subject_id)
            except Exception:
                logger.error("Activation failed for code %s; releasing it for %s", value, subject_id)
                self._repository.release(value, subject_id)
                raise

        redeemed = record.model_copy(update={
            "status": CodeStatus.REDEEMED,
            "redeemed_by": subject_id,
            "redeemed_at": now,
        })
        record_safely(
            self._audit,
            actor=subject_id,
            action="code.redeemed",
            target=value,
            details={"duration_class": record.duration_class.value, "applied": result.applied},
            timestamp=now,
        )
        return Redemption(code=redeemed, entitlement=result.entitlement, applied=result.applied)

    async def revoke(self, code: str, actor: str) -> AccessCode:
        """
        Revoke an unredeemed code.

        Revoking an already revoked code is a no-op.

        Raises:
            CodeNotFoundError: If the code does not exist
            CodeAlreadyUsedError: If the code was already redeemed
        """
        value = normalize_code(code)

        async with self._locks.hold(value):
            now = self._clock.now()
            record = self._repository.get(value)
            if record is None:
                raise CodeNotFoundError(value)
            if record.status == CodeStatus.REVOKED:
                return record

            if not self._repository.mark_revoked(value, now):
                latest = self._repository.get(value)
                if latest is not None and latest.status == CodeStatus.REVOKED:
                    return latest
                raise CodeAlreadyUsedError(value)

        logger.info("Code %s revoked by %s", value, actor)
        record_safely(self._audit, actor=actor, action="code.revoked", target=value, timestamp=now)
        return record.model_copy(update={"status": CodeStatus.REVOKED, "revoked_at": now})

    async def get_code(self, code: str) -> AccessCode:
        value = normalize_code(code)
        record = self._repository.get(value)
        if record is None:
            raise CodeNotFoundError(value)
        return record

    async def list_codes(
        self,
        status: Optional[CodeStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AccessCode]:
        return self._repository.list_codes(status=status, limit=limit, offset=offset)

    def _check_redeemable(self, record: AccessCode, now: datetime) -> None:
        if record.status == CodeStatus.REVOKED:
            raise CodeRevokedError(record.code)
        if record.status == CodeStatus.REDEEMED:
            raise CodeAlreadyUsedError(record.code)
        if record.valid_until is not None and now >= record.valid_until:
            raise CodeExpiredError(record.code)
