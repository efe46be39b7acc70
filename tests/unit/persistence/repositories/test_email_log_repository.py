"""Unit tests for EmailLogRepository."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mailconnect.domain.services.email_logger_service import EmailLoggerService
from mailconnect.domain.services.fingerprint import MailFingerprint
from mailconnect.infrastructure.persistence.models import EmailLogModel
from mailconnect.infrastructure.persistence.repositories.email_log_repository import (
    EmailLogRepository,
    absint,
    escape_like,
    truncate_bytes,
)


async def _insert(repo: EmailLogRepository, fingerprint: str, recipients: str = "a@x.com") -> bool:
    return await repo.insert_pending(
        fingerprint=fingerprint,
        recipients=recipients,
        subject="Hi",
        body="Body",
        html_body="",
        headers="",
    )


def _row(fingerprint: str, created_at: datetime, status: str = "pending") -> EmailLogModel:
    return EmailLogModel(
        fingerprint=fingerprint,
        recipients="a@x.com",
        subject="Hi",
        body="",
        html_body="",
        headers="",
        status=status,
        error_message="",
        status_detail="",
        created_at=created_at,
    )


class TestInsertPending:
    @pytest.mark.asyncio
    async def test_insert_creates_pending_row(self, db_session: AsyncSession) -> None:
        repo = EmailLogRepository(db_session)

        assert await _insert(repo, "abc123") is True

        row = await repo.get_by_fingerprint("abc123")
        assert row is not None
        assert row.status == "pending"
        assert row.error_message == ""
        assert row.status_detail == ""
        assert row.created_at is not None

    @pytest.mark.asyncio
    async def test_duplicate_insert_is_noop(self, db_session: AsyncSession) -> None:
        repo = EmailLogRepository(db_session)

        assert await _insert(repo, "abc123") is True
        assert await _insert(repo, "abc123") is False

        assert await repo.count() == 1

    @pytest.mark.asyncio
    async def test_caps_applied(self, db_session: AsyncSession) -> None:
        repo = EmailLogRepository(db_session)
        await repo.insert_pending(
            fingerprint="big",
            recipients="a@x.com",
            subject="s" * 300,
            body="é" * 6000,
            html_body="",
            headers="h" * 20000,
        )

        row = await repo.get_by_fingerprint("big")
        assert len(row.subject) == 255
        assert len(row.body.encode("utf-8")) <= 10240
        assert row.body == "é" * 5120
        assert len(row.headers) == 10240


class TestConcurrentInsert:
    @pytest.mark.asyncio
    async def test_racing_inserts_create_one_row(self, file_session_factory) -> None:
        async def attempt(recipients: str) -> bool:
            async with file_session_factory() as session:
                created = await _insert(EmailLogRepository(session), "race", recipients)
                await session.commit()
                return created

        results = await asyncio.gather(*(attempt(f"user{i}@x.com") for i in range(5)))

        assert sorted(results) == [False, False, False, False, True]
        async with file_session_factory() as session:
            assert await EmailLogRepository(session).count() == 1

    @pytest.mark.asyncio
    async def test_racing_pre_sends_share_one_row(
        self, file_session_factory, mail_options
    ) -> None:
        service = EmailLoggerService(file_session_factory, mail_options)
        message = {"to": "user@x.com", "subject": "Hi", "message": "Body", "headers": ""}

        await asyncio.gather(
            service.on_pre_send(dict(message), send_id="s1"),
            service.on_pre_send(dict(message), send_id="s2"),
        )
        await service.on_post_send_success(message, send_id="s1")

        async with file_session_factory() as session:
            repo = EmailLogRepository(session)
            assert await repo.count() == 1
            row = await repo.get_by_fingerprint(MailFingerprint.for_args(message))
        assert row.status == "success"
        assert service.is_in_flight("s2")


class TestUpdateStatus:
    @pytest.mark.asyncio
    async def test_update_to_success(self, db_session: AsyncSession) -> None:
        repo = EmailLogRepository(db_session)
        await _insert(repo, "abc123")

        updated = await repo.update_status("abc123", "success", "", "ok")

        assert updated == 1
        row = await repo.get_by_fingerprint("abc123")
        assert row.status == "success"
        assert row.status_detail == "ok"

    @pytest.mark.asyncio
    async def test_update_unknown_fingerprint_is_noop(self, db_session: AsyncSession) -> None:
        repo = EmailLogRepository(db_session)

        assert await repo.update_status("missing", "failed", "boom", "{}") == 0
        assert await repo.count() == 0

    @pytest.mark.asyncio
    async def test_update_rejects_pending(self, db_session: AsyncSession) -> None:
        repo = EmailLogRepository(db_session)

        with pytest.raises(ValueError):
            await repo.update_status("abc123", "pending")

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_status(self, db_session: AsyncSession) -> None:
        repo = EmailLogRepository(db_session)

        with pytest.raises(ValueError):
            await repo.update_status("abc123", "delivered")


class TestQuery:
    @pytest.mark.asyncio
    async def test_newest_first(self, db_session: AsyncSession) -> None:
        now = datetime.now(timezone.utc)
        db_session.add_all(
            [
                _row("old", now - timedelta(days=2)),
                _row("new", now),
                _row("mid", now - timedelta(days=1)),
            ]
        )
        await db_session.flush()

        rows = await EmailLogRepository(db_session).query()

        assert [row.fingerprint for row in rows] == ["new", "mid", "old"]

    @pytest.mark.asyncio
    async def test_status_filter_and_invalid_status_ignored(
        self, db_session: AsyncSession
    ) -> None:
        now = datetime.now(timezone.utc)
        db_session.add_all([_row("a", now, "success"), _row("b", now, "failed")])
        await db_session.flush()
        repo = EmailLogRepository(db_session)

        assert [r.fingerprint for r in await repo.query(status="failed")] == ["b"]
        assert await repo.count(status="failed") == 1
        assert len(await repo.query(status="bogus")) == 2
        assert await repo.count(status="bogus") == 2

    @pytest.mark.asyncio
    async def test_search_on_recipients_escapes_wildcards(
        self, db_session: AsyncSession
    ) -> None:
        repo = EmailLogRepository(db_session)
        await _insert(repo, "one", "alice@example.com")
        await _insert(repo, "two", "bob@example.com")
        await _insert(repo, "three", "under_score@example.com")

        assert [r.fingerprint for r in await repo.query(search="alice")] == ["one"]
        assert [r.fingerprint for r in await repo.query(search="_")] == ["three"]
        assert await repo.count(search="%") == 0

    @pytest.mark.asyncio
    async def test_limit_offset_use_absolute_values(self, db_session: AsyncSession) -> None:
        repo = EmailLogRepository(db_session)
        for i in range(5):
            await _insert(repo, f"fp{i}")

        assert len(await repo.query(limit=2)) == 2
        assert len(await repo.query(limit=-2)) == 2
        assert len(await repo.query(limit=2, offset=4)) == 1
        assert len(await repo.query(limit="junk")) == 5

    @pytest.mark.asyncio
    async def test_count_matches_unbounded_query(self, db_session: AsyncSession) -> None:
        repo = EmailLogRepository(db_session)
        for i in range(25):
            await _insert(repo, f"fp{i}")

        rows = await repo.query(limit=None)

        assert len(rows) == 25
        assert await repo.count() == len(rows)


class TestDeletion:
    @pytest.mark.asyncio
    async def test_delete_older_than(self, db_session: AsyncSession) -> None:
        now = datetime.now(timezone.utc)
        db_session.add_all(
            [_row("old", now - timedelta(days=40)), _row("recent", now - timedelta(days=5))]
        )
        await db_session.flush()
        repo = EmailLogRepository(db_session)

        assert await repo.delete_older_than(30, now=now) == 1

        remaining = (await db_session.execute(select(EmailLogModel.fingerprint))).scalars().all()
        assert remaining == ["recent"]

    @pytest.mark.asyncio
    async def test_delete_with_zero_days_touches_nothing(self, db_session: AsyncSession) -> None:
        now = datetime.now(timezone.utc)
        db_session.add(_row("old", now - timedelta(days=400)))
        await db_session.flush()
        repo = EmailLogRepository(db_session)

        assert await repo.delete_older_than(0) == 0
        assert await repo.delete_older_than(-5) == 0
        assert await repo.delete_older_than("abc") == 0
        assert await repo.count() == 1

    @pytest.mark.asyncio
    async def test_clear_all(self, db_session: AsyncSession) -> None:
        repo = EmailLogRepository(db_session)
        await _insert(repo, "a")
        await _insert(repo, "b")

        assert await repo.clear_all() is True
        assert await repo.count() == 0


def test_helpers() -> None:
    assert absint("-7") == 7
    assert absint(None, 20) == 20
    assert escape_like("50%_off") == "50\\%\\_off"
    assert truncate_bytes("abc", 2) == "ab"
    assert truncate_bytes(None) == ""
