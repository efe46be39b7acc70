"""Repository for mail log persistence operations.

The repository is the only owner of persisted log rows. Inserts are a
single conditional statement guarded by the unique fingerprint constraint,
so two concurrent requests sending identical content can never create two
rows. Callers own the transaction and commit.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from mailconnect.domain.entities.email_log import EmailLogStatus
from mailconnect.infrastructure.persistence.models.email_log import (
    CONTENT_MAX_BYTES,
    SUBJECT_MAX_CHARS,
    EmailLogModel,
)

DEFAULT_LIMIT = 20


def truncate_bytes(value: str | None, max_bytes: int = CONTENT_MAX_BYTES) -> str:
    """Cap a string at ``max_bytes`` of UTF-8 without splitting a character."""
    if not value:
        return ""
    encoded = value.encode("utf-8")
    if len(encoded) <= max_bytes:
        return value
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def absint(value: Any, default: int = 0) -> int:
    """Absolute integer value; non-numeric input yields ``default``."""
    try:
        return abs(int(value))
    except (TypeError, ValueError):
        return default


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class EmailLogRepository:
    """Repository for mail log database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def insert_pending(
        self,
        fingerprint: str,
        recipients: str,
        subject: str,
        body: str,
        html_body: str,
        headers: str,
    ) -> bool:
        """Insert a pending row unless one already exists for the fingerprint.

        Args:
            fingerprint: Content fingerprint.
            recipients: Comma-joined recipients.
            subject: Subject line.
            body: Plain body.
            html_body: HTML body, empty for plain messages.
            headers: Serialized headers.

        Returns:
            True if a new row was created, False if the fingerprint was
            already logged.
        """
        values = {
            "fingerprint": fingerprint,
            "recipients": recipients,
            "subject": (subject or "")[:SUBJECT_MAX_CHARS],
            "body": truncate_bytes(body),
            "html_body": truncate_bytes(html_body),
            "headers": truncate_bytes(headers),
            "status": EmailLogStatus.PENDING.value,
            "error_message": "",
            "status_detail": "",
            "created_at": datetime.now(timezone.utc),
        }

        table = EmailLogModel.__table__
        dialect = self.session.get_bind().dialect.name

        if dialect == "sqlite":
            stmt = (
                sqlite_insert(table)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["fingerprint"])
            )
        elif dialect == "postgresql":
            stmt = (
                pg_insert(table)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["fingerprint"])
            )
        elif dialect in ("mysql", "mariadb"):
            stmt = insert(table).values(**values).prefix_with("IGNORE")
        else:
            # Plain insert; the unique constraint still rejects the duplicate
            try:
                async with self.session.begin_nested():
                    await self.session.execute(insert(table).values(**values))
            except IntegrityError:
                return False
            return True

        result = await self.session.execute(stmt)
        return (result.rowcount or 0) > 0

    async def update_status(
        self,
        fingerprint: str,
        status: str,
        error_message: str = "",
        status_detail: str = "",
    ) -> int:
        """Apply a terminal status to the row with this fingerprint.

        Args:
            fingerprint: Content fingerprint.
            status: 'success' or 'failed'.
            error_message: Transport error, empty on success.
            status_detail: Outcome note or JSON detail.

        Returns:
            Number of rows updated; 0 when the fingerprint is unknown.

        Raises:
            ValueError: If status is not terminal.
        """
        status_value = EmailLogStatus(status).value
        if status_value not in EmailLogStatus.terminal_values():
            raise ValueError(f"Status update must be terminal, got '{status_value}'")

        stmt = (
            update(EmailLogModel)
            .where(EmailLogModel.fingerprint == fingerprint)
            .values(
                status=status_value,
                error_message=truncate_bytes(error_message),
                status_detail=truncate_bytes(status_detail),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def get_by_fingerprint(self, fingerprint: str) -> Optional[EmailLogModel]:
        """Get a log row by fingerprint."""
        result = await self.session.execute(
            select(EmailLogModel)
            .where(EmailLogModel.fingerprint == fingerprint)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def query(
        self,
        limit: Any = DEFAULT_LIMIT,
        offset: Any = 0,
        status: str | None = None,
        search: str | None = None,
    ) -> Sequence[EmailLogModel]:
        """List log rows newest first.

        Args:
            limit: Page size. None returns every matching row.
            offset: Rows to skip.
            status: Optional status filter; unknown values are ignored.
            search: Optional substring matched against recipients.

        Returns:
            Matching rows ordered by created_at descending.
        """
        query = self._apply_filters(select(EmailLogModel), status, search)
        query = query.order_by(EmailLogModel.created_at.desc(), EmailLogModel.id.desc())
        query = query.execution_options(populate_existing=True)

        query = query.offset(absint(offset))
        if limit is not None:
            query = query.limit(absint(limit, DEFAULT_LIMIT))

        result = await self.session.execute(query)
        return result.scalars().all()

    async def count(self, status: str | None = None, search: str | None = None) -> int:
        """Count log rows matching the same filters as ``query``."""
        query = self._apply_filters(
            select(func.count()).select_from(EmailLogModel), status, search
        )
        result = await self.session.execute(query)
        return int(result.scalar_one())

    async def clear_all(self) -> bool:
        """Delete every log row."""
        await self.session.execute(
            delete(EmailLogModel).execution_options(synchronize_session=False)
        )
        return True

    async def delete_older_than(self, days: Any, now: datetime | None = None) -> int:
        """Delete rows created more than ``days`` days ago.

        Args:
            days: Retention window. Zero, negative or invalid deletes nothing.
            now: Reference time, defaults to the current UTC time.

        Returns:
            Number of deleted rows.
        """
        try:
            days = int(days)
        except (TypeError, ValueError):
            return 0
        if days <= 0:
            return 0

        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        stmt = (
            delete(EmailLogModel)
            .where(EmailLogModel.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    def _apply_filters(query: Select, status: str | None, search: str | None) -> Select:
        if status and status in EmailLogStatus.values():
            query = query.where(EmailLogModel.status == status)
        if search:
            query = query.where(
                EmailLogModel.recipients.like(f"%{escape_like(search)}%", escape="\\")
            )
        return query
