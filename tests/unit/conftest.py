"""Pytest configuration for unit tests."""

from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mailconnect.core.hooks import HookRegistry
from mailconnect.core.options import MailOptions, StaticMailOptions
from mailconnect.domain.entities.mail_message import MailMessage
from mailconnect.infrastructure.services import MailServices, build_mail_services
from mailconnect.infrastructure.services.email.email_provider import EmailProvider


class RecordingProvider(EmailProvider):
    """In-memory provider that records messages instead of sending them."""

    name = "recording"

    def __init__(self) -> None:
        self.sent: list[MailMessage] = []
        self.error: Optional[Exception] = None
        self.options_seen: list[MailOptions] = []

    async def send(self, message: MailMessage) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return True


@pytest.fixture
def mail_options() -> StaticMailOptions:
    """Mail options with logging enabled and a 30 day window."""
    return StaticMailOptions(
        MailOptions(
            _env_file=None,
            enable_log=True,
            log_retention_days=30,
            admin_email="admin@example.com",
            site_name="Test Site",
        )
    )


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()


@pytest_asyncio.fixture
async def mail_services(
    session_factory: async_sessionmaker[AsyncSession],
    mail_options: StaticMailOptions,
    provider: RecordingProvider,
) -> MailServices:
    """Fully wired services sending through the recording provider."""

    def factory(options: MailOptions) -> RecordingProvider:
        provider.options_seen.append(options)
        return provider

    return build_mail_services(
        session_factory,
        options=mail_options,
        hook_registry=HookRegistry(),
        provider_factory=factory,
    )
