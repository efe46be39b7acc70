"""Email delivery providers."""

from mailconnect.infrastructure.services.email.email_provider import EmailProvider
from mailconnect.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings

__all__ = ["EmailProvider", "SMTPProvider", "SMTPSettings"]
