"""Background cleanup scheduler.

Runs the retention sweep once on start and then every
``cleanup_interval_seconds`` until stopped.
"""

import asyncio
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from mailconnect.core.logging import get_logger
from mailconnect.domain.services.retention_service import RetentionService

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 86400


class CleanupScheduler:
    """Drives the retention sweep on a fixed interval inside the event loop."""

    def __init__(
        self,
        retention_service: RetentionService,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.retention_service = retention_service
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background task. Calling start twice is a no-op."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="mail-log-cleanup")
        logger.info("Cleanup scheduler started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Cleanup scheduler stopped")

    async def run_once(self) -> int:
        """Run one sweep. Storage errors are logged and the schedule continues."""
        try:
            return await self.retention_service.run()
        except SQLAlchemyError as e:
            logger.error("Scheduled log cleanup failed", error=str(e))
            return 0

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)
