"""Background task that periodically purges expired OTPs."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from otp_service.services.otp_store import OTPStore, now_ms

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Runs :meth:`OTPStore.sweep_expired` every *interval_seconds*.

    Started once from the application lifespan; :meth:`stop` cancels the
    task on shutdown.
    """

    def __init__(
        self,
        store: OTPStore,
        interval_seconds: float = 60.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._interval = interval_seconds
        self._clock = clock
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning("Expiry sweeper already running")
            return
        self._task = asyncio.create_task(self._run(), name="otp-expiry-sweeper")
        logger.info("Expiry sweeper started (every %ss)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Expiry sweeper stopped")

    def sweep_once(self) -> int:
        return self._store.sweep_expired(self._clock())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sweep_once()
            except Exception:
                logger.exception("OTP sweep failed")
