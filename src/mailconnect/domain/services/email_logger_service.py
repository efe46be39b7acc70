"""Email logger service - consolidated send lifecycle logging.

One logical send fires three independent hooks: before-send, and then
exactly one of after-send or failed. This service turns those firings into
one log row:

    NONE --before-send--> PENDING_LOGGED --after-send / failed--> TERMINAL

The link between the firings is an in-flight marker kept per send, keyed
by the send id from the HookContext (or by the fingerprint when the caller
supplies no send id). An outcome without a send id whose message no longer
hashes to a marker resolves the most recent marker recorded without one.
A marker is removed the moment its terminal update is applied, so a late
or repeated callback can never update a row that a different send now
owns.

Logging never interferes with delivery: storage errors are logged and
swallowed, and the before-send hook always hands the message back
unchanged.
"""

import json
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mailconnect.core.hooks.hook_events import HookEvent
from mailconnect.core.hooks.hook_registry import HookRegistry
from mailconnect.core.logging import get_logger
from mailconnect.core.options import MailOptionsProvider
from mailconnect.domain.entities.email_log import EmailLogStatus
from mailconnect.domain.entities.hook_context import HookContext
from mailconnect.domain.entities.mail_message import MailError, MailMessage
from mailconnect.domain.services.fingerprint import MailFingerprint
from mailconnect.infrastructure.persistence.repositories.email_log_repository import (
    EmailLogRepository,
)

logger = get_logger(__name__)

# Runs ahead of host before-send filters
PRE_SEND_PRIORITY = 100

_MESSAGE_KEYS = ("to", "subject", "message", "headers")


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class EmailLoggerService:
    """Correlates before-send, after-send and failed hooks into one log row."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        options: MailOptionsProvider,
    ) -> None:
        """Initialize the email logger.

        Args:
            session_factory: Factory for short-lived sessions; each hook
                             firing commits on its own session.
            options: Runtime options, polled on every firing.
        """
        self.session_factory = session_factory
        self.options = options
        self._in_flight: dict[str, str] = {}
        # Markers recorded without a send id, oldest first
        self._unkeyed: list[str] = []

    @property
    def in_flight_count(self) -> int:
        """Number of sends logged as pending and not yet resolved."""
        return len(self._in_flight)

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def register_hooks(self, registry: HookRegistry) -> list[str]:
        """Register the three lifecycle hooks as built-ins.

        Returns:
            The registered hook ids.
        """
        hook_ids = [
            registry.register(
                event=HookEvent.ON_MAIL_BEFORE_SEND,
                callback=self._before_send_hook,
                priority=PRE_SEND_PRIORITY,
                is_builtin=True,
            ),
            registry.register(
                event=HookEvent.ON_MAIL_AFTER_SEND,
                callback=self._after_send_hook,
                is_builtin=True,
            ),
            registry.register(
                event=HookEvent.ON_MAIL_FAILED,
                callback=self._failed_hook,
                is_builtin=True,
            ),
        ]
        logger.info("Email logging hooks registered", hook_ids=hook_ids)
        return hook_ids

    async def on_pre_send(
        self,
        message: Mapping[str, Any],
        send_id: Optional[str] = None,
    ) -> Mapping[str, Any]:
        """Log the outgoing message as pending and mark it in flight.

        Args:
            message: Mailer arguments (``to``, ``subject``, ``message``,
                     ``headers``, optional ``html_body``).
            send_id: Correlation id shared with the outcome hook.

        Returns:
            The same ``message`` object, untouched.
        """
        if not self.options.is_logging_enabled():
            return message

        mail = MailMessage.from_args(message)
        fingerprint = MailFingerprint.for_message(mail)

        # Remember the marker even for a duplicate insert; the outcome
        # still belongs to this send.
        key = send_id or fingerprint
        self._in_flight[key] = fingerprint
        if send_id is None:
            if key in self._unkeyed:
                self._unkeyed.remove(key)
            self._unkeyed.append(key)

        try:
            async with self.session_factory() as session:
                created = await EmailLogRepository(session).insert_pending(
                    fingerprint=fingerprint,
                    recipients=mail.recipients_display,
                    subject=mail.subject_display,
                    body=mail.body,
                    html_body=mail.html_content,
                    headers=mail.headers_text,
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to log pending email",
                fingerprint=fingerprint,
                send_id=send_id,
                error=str(e),
            )
            return message

        logger.debug(
            "Pending email logged" if created else "Pending email already logged",
            fingerprint=fingerprint,
            send_id=send_id,
        )
        return message

    async def on_post_send_success(
        self,
        message: Mapping[str, Any],
        send_id: Optional[str] = None,
    ) -> None:
        """Mark the in-flight send as delivered.

        Without a marker (for example logging was switched on between the
        before-send and after-send firings) this is a no-op; no row is ever
        created here.
        """
        if send_id:
            fingerprint = self._pop_marker(send_id)
        else:
            fingerprint = self._pop_unkeyed(MailFingerprint.for_args(message))

        if fingerprint is None:
            logger.debug("No in-flight email to mark as sent", send_id=send_id)
            return

        if not self.options.is_logging_enabled():
            return

        await self._apply_terminal(
            fingerprint,
            EmailLogStatus.SUCCESS,
            error_message="",
            status_detail=f"Email sent successfully at {_now()}",
        )

    async def on_post_send_failure(
        self,
        error_message: str,
        error_context: Optional[Mapping[str, Any]] = None,
        send_id: Optional[str] = None,
        error_code: str = "mail_failed",
    ) -> None:
        """Mark the in-flight send as failed.

        The fingerprint comes from the in-flight marker when there is one,
        otherwise it is recomputed from the message data carried by the
        error. The marker is cleared whatever happens next.

        Args:
            error_message: Human-readable transport error.
            error_context: Message arguments that were being sent, if known.
            send_id: Correlation id shared with the before-send hook.
            error_code: Machine-readable error code.
        """
        context = dict(error_context or {})

        has_message = any(key in context for key in _MESSAGE_KEYS)
        recomputed = MailFingerprint.for_args(context) if has_message else None

        if send_id:
            fingerprint = self._pop_marker(send_id)
            if fingerprint is None and recomputed is not None:
                fingerprint = self._pop_marker(recomputed) or recomputed
        else:
            fingerprint = self._pop_unkeyed(recomputed) or recomputed

        if fingerprint is None:
            logger.debug("No email data to mark as failed", send_id=send_id)
            return

        if not self.options.is_logging_enabled():
            return

        error = MailError(message=error_message, code=error_code, data=context)
        detail = json.dumps({**error.to_dict(), "time": _now()}, default=str)
        await self._apply_terminal(
            fingerprint,
            EmailLogStatus.FAILED,
            error_message=error_message,
            status_detail=detail,
        )

    def _pop_marker(self, key: str) -> Optional[str]:
        fingerprint = self._in_flight.pop(key, None)
        if key in self._unkeyed:
            self._unkeyed.remove(key)
        return fingerprint

    def _pop_unkeyed(self, recomputed: Optional[str]) -> Optional[str]:
        """Resolve a marker for an outcome that carries no send id.

        The recomputed fingerprint wins when it still matches a marker;
        otherwise the message changed after before-send and the most
        recent marker recorded without a send id is the one in flight.
        """
        if recomputed is not None and recomputed in self._in_flight:
            return self._pop_marker(recomputed)
        while self._unkeyed:
            fingerprint = self._pop_marker(self._unkeyed[-1])
            if fingerprint is not None:
                return fingerprint
        return None

    async def _apply_terminal(
        self,
        fingerprint: str,
        status: EmailLogStatus,
        error_message: str,
        status_detail: str,
    ) -> None:
        try:
            async with self.session_factory() as session:
                updated = await EmailLogRepository(session).update_status(
                    fingerprint, status.value, error_message, status_detail
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to update email log status",
                fingerprint=fingerprint,
                status=status.value,
                error=str(e),
            )
            return

        if updated == 0:
            logger.warning(
                "Email log status update matched no rows",
                fingerprint=fingerprint,
                status=status.value,
            )
        else:
            logger.info("Email log resolved", fingerprint=fingerprint, status=status.value)

    # Hook adapters

    async def _before_send_hook(
        self,
        event: str,
        data: Optional[dict[str, Any]],
        context: Optional[HookContext],
    ) -> Optional[dict[str, Any]]:
        if data is None:
            return data
        await self.on_pre_send(data, send_id=context.send_id if context else None)
        return data

    async def _after_send_hook(
        self,
        event: str,
        data: Optional[dict[str, Any]],
        context: Optional[HookContext],
    ) -> Optional[dict[str, Any]]:
        await self.on_post_send_success(data or {}, send_id=context.send_id if context else None)
        return data

    async def _failed_hook(
        self,
        event: str,
        data: Optional[dict[str, Any]],
        context: Optional[HookContext],
    ) -> Optional[dict[str, Any]]:
        error = (data or {}).get("error")
        if not isinstance(error, MailError):
            error = MailError(message=str(error or "Unknown mail error"), data=dict(data or {}))

        await self.on_post_send_failure(
            error.message,
            error.data,
            send_id=context.send_id if context else None,
            error_code=error.code,
        )
        return data
