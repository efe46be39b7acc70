"""Retention sweep for the mail log.

Deletes log rows older than the configured retention window. Driven
externally: by the cleanup scheduler, the CLI, or the admin API.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mailconnect.core.hooks.hook_events import HookEvent
from mailconnect.core.hooks.hook_registry import HookRegistry
from mailconnect.core.logging import get_logger
from mailconnect.core.options import MailOptionsProvider
from mailconnect.domain.entities.hook_context import HookContext
from mailconnect.infrastructure.persistence.repositories.email_log_repository import (
    EmailLogRepository,
)

logger = get_logger(__name__)


class RetentionService:
    """Applies the retention window to the mail log."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        options: MailOptionsProvider,
        hook_registry: Optional[HookRegistry] = None,
    ) -> None:
        self.session_factory = session_factory
        self.options = options
        self.hook_registry = hook_registry

    async def run(self, now: Optional[datetime] = None) -> int:
        """Delete rows older than the retention window.

        Nothing is deleted when logging is disabled or the window is 0.
        Running it twice in a row deletes nothing the second time.

        Args:
            now: Reference time, defaults to the current UTC time.

        Returns:
            Number of deleted rows.

        Raises:
            SQLAlchemyError: If the delete fails.
        """
        if not self.options.is_logging_enabled():
            logger.debug("Log cleanup skipped: logging disabled")
            return 0

        days = self.options.get_retention_days()
        if days <= 0:
            logger.debug("Log cleanup skipped: retention disabled", retention_days=days)
            return 0

        try:
            async with self.session_factory() as session:
                deleted = await EmailLogRepository(session).delete_older_than(days, now=now)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Log cleanup failed", retention_days=days, error=str(e))
            raise

        logger.info("Log cleanup completed", retention_days=days, deleted=deleted)

        if self.hook_registry is not None:
            await self.hook_registry.trigger(
                event=HookEvent.ON_LOG_CLEANUP,
                data={"deleted": deleted, "retention_days": days},
                context=HookContext(source="retention"),
            )

        return deleted
