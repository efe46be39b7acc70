"""Domain entities for MailConnect."""

from mailconnect.domain.entities.email_log import EmailLog, EmailLogStatus
from mailconnect.domain.entities.hook_context import (
    AbortHookException,
    HookContext,
    HookResult,
)
from mailconnect.domain.entities.mail_message import (
    MailError,
    MailMessage,
    is_valid_email,
    normalize_headers,
    normalize_recipients,
)

__all__ = [
    "AbortHookException",
    "EmailLog",
    "EmailLogStatus",
    "HookContext",
    "HookResult",
    "MailError",
    "MailMessage",
    "is_valid_email",
    "normalize_headers",
    "normalize_recipients",
]
