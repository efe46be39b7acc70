"""Infrastructure services: the mailer and the wiring of the mail log services."""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mailconnect.core.hooks.hook_registry import HookRegistry
from mailconnect.core.options import EnvironmentMailOptions, MailOptionsProvider
from mailconnect.domain.services.email_log_service import EmailLogService
from mailconnect.domain.services.email_logger_service import EmailLoggerService
from mailconnect.domain.services.retention_service import RetentionService
from mailconnect.infrastructure.services.mailer import (
    InvalidRecipientError,
    Mailer,
    ProviderFactory,
    smtp_provider_factory,
)


@dataclass
class MailServices:
    """Everything one process needs to send and log mail."""

    hook_registry: HookRegistry
    options: MailOptionsProvider
    mailer: Mailer
    email_logger: EmailLoggerService
    retention: RetentionService
    log_service: EmailLogService


def build_mail_services(
    session_factory: async_sessionmaker[AsyncSession],
    options: Optional[MailOptionsProvider] = None,
    hook_registry: Optional[HookRegistry] = None,
    provider_factory: Optional[ProviderFactory] = None,
) -> MailServices:
    """Wire the mailer, the send logger and the log services together.

    The email logger's hooks are registered on the registry, so every send
    made through the returned mailer is logged when logging is enabled.
    """
    options = options or EnvironmentMailOptions()
    hook_registry = hook_registry or HookRegistry()

    email_logger = EmailLoggerService(session_factory, options)
    email_logger.register_hooks(hook_registry)

    retention = RetentionService(session_factory, options, hook_registry)

    return MailServices(
        hook_registry=hook_registry,
        options=options,
        mailer=Mailer(hook_registry, options, provider_factory),
        email_logger=email_logger,
        retention=retention,
        log_service=EmailLogService(session_factory, retention),
    )


__all__ = [
    "InvalidRecipientError",
    "MailServices",
    "Mailer",
    "build_mail_services",
    "smtp_provider_factory",
]
