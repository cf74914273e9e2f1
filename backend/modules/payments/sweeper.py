"""
Background jobs for payment sessions.

Lazy expiry on read already guarantees correctness; the sweeper only
keeps stored statuses current for sessions nobody reads again.
"""

import asyncio
import logging
from typing import Any, Optional

from .interfaces import IPaymentSessionManager

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs run_once() every `interval_seconds` on the event loop."""

    name = "periodic-task"

    def __init__(self, interval_seconds: float):
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info("%s started (every %ss)", self.name, self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("%s stopped", self.name)

    async def run_once(self) -> Any:
        raise NotImplementedError

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.run_once()
            except Exception:
                # Keep going; the next tick retries
                logger.exception("%s run failed", self.name)


class PaymentSessionSweeper(PeriodicTask):
    """Expires stale payment sessions on a timer."""

    name = "payment-session-sweeper"

    def __init__(self, manager: IPaymentSessionManager, interval_seconds: float = 60):
        super().__init__(interval_seconds)
        self._manager = manager

    async def run_once(self) -> list[str]:
        return await self._manager.sweep_expired()
