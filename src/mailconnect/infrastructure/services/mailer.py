"""Mailer - the send entry point that fires the lifecycle hooks.

Every send goes through the same three-step flow:

1. ON_MAIL_BEFORE_SEND with the message arguments. Hooks may rewrite the
   arguments or abort the send with AbortHookException.
2. Delivery through the email provider built from the current options.
3. ON_MAIL_AFTER_SEND on success or ON_MAIL_FAILED with a MailError.

One HookContext is shared by all firings of a send.
"""

from typing import Any, Callable, Optional, Sequence

from mailconnect.core.hooks.hook_events import HookEvent
from mailconnect.core.hooks.hook_registry import HookRegistry
from mailconnect.core.logging import LoggingContext, get_logger
from mailconnect.core.options import MailOptions, MailOptionsProvider
from mailconnect.domain.entities.hook_context import HookContext
from mailconnect.domain.entities.mail_message import MailError, MailMessage, is_valid_email
from mailconnect.infrastructure.services.email.email_provider import EmailProvider
from mailconnect.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings

logger = get_logger(__name__)

ProviderFactory = Callable[[MailOptions], EmailProvider]


class InvalidRecipientError(ValueError):
    """Raised when a test email is requested for an invalid address."""


def smtp_provider_factory(options: MailOptions) -> EmailProvider:
    return SMTPProvider(SMTPSettings.from_options(options))


class Mailer:
    """Sends mail and reports each attempt to the hook registry."""

    def __init__(
        self,
        hook_registry: HookRegistry,
        options: MailOptionsProvider,
        provider_factory: Optional[ProviderFactory] = None,
    ) -> None:
        """Initialize the mailer.

        Args:
            hook_registry: Registry the lifecycle events are fired on.
            options: Runtime options; the relay is resolved on every send.
            provider_factory: Builds the transport for one send. Defaults to
                              the SMTP relay.
        """
        self.hook_registry = hook_registry
        self.options = options
        self.provider_factory = provider_factory or smtp_provider_factory

    async def send(
        self,
        to: str | Sequence[str],
        subject: str,
        message: str,
        headers: str | Sequence[str] = "",
        html_body: Optional[str] = None,
        source: Optional[str] = None,
    ) -> bool:
        """Send a message.

        Returns:
            True if the transport accepted the message, False otherwise.
            Failures are reported through ON_MAIL_FAILED, never raised.
        """
        sent, _ = await self._deliver(
            {
                "to": to,
                "subject": subject,
                "message": message,
                "headers": headers or "",
                "html_body": html_body or "",
            },
            source=source,
        )
        return sent

    async def send_test_email(self, recipient: str) -> tuple[bool, Optional[str]]:
        """Send a connectivity test email.

        Returns:
            Tuple of (success, error_message). error_message is None on success.

        Raises:
            InvalidRecipientError: If the recipient is not a valid address.
        """
        recipient = (recipient or "").strip()
        if not is_valid_email(recipient):
            raise InvalidRecipientError(f"Invalid recipient email address: {recipient!r}")

        site_name = self.options.get_mail_options().site_name
        sent, error = await self._deliver(
            {
                "to": recipient,
                "subject": f"SMTP Test Email from {site_name}",
                "message": (
                    "<p>This is a test email sent via MailConnect.</p>"
                    "<p>If you received this, your SMTP settings are working.</p>"
                ),
                "headers": ["Content-Type: text/html; charset=UTF-8"],
                "html_body": "",
            },
            source="test_email",
        )
        return sent, error.message if error else None

    async def _deliver(
        self,
        args: dict[str, Any],
        source: Optional[str] = None,
    ) -> tuple[bool, Optional[MailError]]:
        context = HookContext(source=source)

        with LoggingContext(send_id=context.send_id):
            before = await self.hook_registry.trigger(
                event=HookEvent.ON_MAIL_BEFORE_SEND,
                data=args,
                context=context,
            )
            args = before.data if before.data is not None else args

            if before.aborted:
                error = MailError(
                    message=before.abort_message or "Send aborted by hook",
                    code="mail_aborted",
                    data=dict(args),
                )
                return False, await self._fail(error, context)

            error = None
            try:
                mail = MailMessage.from_args(args)
                if mail.recipients:
                    provider = self.provider_factory(self.options.get_mail_options())
                    await provider.send(mail)
                else:
                    error = MailError(
                        message="No recipients supplied",
                        code="invalid_recipients",
                        data=dict(args),
                    )
            except Exception as e:
                error = MailError(message=str(e) or type(e).__name__, data=dict(args))

            if error is not None:
                return False, await self._fail(error, context)

            logger.info(
                "Email sent",
                provider=provider.name,
                recipients=mail.recipients_display,
                source=source,
            )
            await self.hook_registry.trigger(
                event=HookEvent.ON_MAIL_AFTER_SEND,
                data=args,
                context=context,
            )
            return True, None

    async def _fail(self, error: MailError, context: HookContext) -> MailError:
        logger.warning(
            "Email send failed",
            code=error.code,
            error=error.message,
            source=context.source,
        )
        await self.hook_registry.trigger(
            event=HookEvent.ON_MAIL_FAILED,
            data={"error": error},
            context=context,
        )
        return error
