"""
Fallback confirmation poller.

Asks an external confirmation source (gateway order lookup, chain
explorer) about open sessions and finalizes the ones it can confirm.
It may race the gateway webhook for the same session; finalize() is
idempotent, so whichever arrives second is a no-op.
"""

import logging
from typing import Optional, Protocol, runtime_checkable

from shared.exceptions import ExternalServiceError, TenureError
from .interfaces import IPaymentSessionManager
from .models import PaymentOutcome, PaymentSession
from .sweeper import PeriodicTask

logger = logging.getLogger(__name__)


@runtime_checkable
class IConfirmationSource(Protocol):
    """External system that knows whether a payment went through."""

    async def check(self, session: PaymentSession) -> Optional[PaymentOutcome]:
        """
        Return the confirmed outcome, or None if still unconfirmed.

        Raises:
            ExternalServiceError: If the lookup itself failed
        """
        ...


class ConfirmationPoller(PeriodicTask):
    """
    Polls a confirmation source for open sessions.

    Call poll_once() directly, or start() it to poll every
    `interval_seconds` alongside the sweeper.
    """

    name = "payment-confirmation-poller"

    def __init__(
        self,
        manager: IPaymentSessionManager,
        source: IConfirmationSource,
        interval_seconds: float = 30,
    ):
        super().__init__(interval_seconds)
        self._manager = manager
        self._source = source

    async def poll_once(self) -> dict[str, PaymentOutcome]:
        """
        Check every open session and finalize the confirmed ones.

        External lookups happen before finalize() takes its lock.

        Returns:
            Map of session id to the outcome this poll applied
        """
        applied: dict[str, PaymentOutcome] = {}

        for session in await self._manager.list_open():
            if session.status.is_terminal:
                continue
            try:
                outcome = await self._source.check(session)
            except ExternalServiceError as e:
                logger.warning("Confirmation lookup for session %s failed (%s): %s", session.id, e.service, e.message)
                continue
            if outcome is None:
                continue

            try:
                result = await self._manager.finalize(session.id, outcome)
            except TenureError as e:
                logger.warning("Poller could not finalize session %s: %s", session.id, e.message)
                continue

            if result.applied:
                applied[session.id] = outcome
            else:
                logger.debug("Session %s was already finalized as %s", session.id, outcome.value)

        return applied

    async def run_once(self) -> dict[str, PaymentOutcome]:
        return await self.poll_once()
