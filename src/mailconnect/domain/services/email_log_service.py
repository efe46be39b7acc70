"""Read and maintenance operations on the mail log for operators."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mailconnect.core.logging import get_logger
from mailconnect.domain.entities.email_log import EmailLog
from mailconnect.domain.services.retention_service import RetentionService
from mailconnect.infrastructure.persistence.repositories.email_log_repository import (
    DEFAULT_LIMIT,
    EmailLogRepository,
)

logger = get_logger(__name__)


class EmailLogService:
    """Listing, counting, clearing and sweeping the mail log."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        retention_service: RetentionService,
    ) -> None:
        self.session_factory = session_factory
        self.retention_service = retention_service

    async def list_logs(
        self,
        limit: Any = DEFAULT_LIMIT,
        offset: Any = 0,
        status: str | None = None,
        search: str | None = None,
    ) -> list[EmailLog]:
        """List logs newest first. ``limit=None`` returns every match."""
        async with self.session_factory() as session:
            rows = await EmailLogRepository(session).query(
                limit=limit, offset=offset, status=status, search=search
            )
            return [row.to_entity() for row in rows]

    async def count_logs(self, status: str | None = None, search: str | None = None) -> int:
        async with self.session_factory() as session:
            return await EmailLogRepository(session).count(status=status, search=search)

    async def clear_all_logs(self) -> bool:
        """Irreversibly delete every log row."""
        async with self.session_factory() as session:
            cleared = await EmailLogRepository(session).clear_all()
            await session.commit()
        logger.warning("Mail log cleared")
        return cleared

    async def run_retention_sweep(self) -> int:
        return await self.retention_service.run()
