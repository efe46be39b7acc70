"""SMTP relay provider implementation.

Uses aiosmtplib for asynchronous delivery. Relay settings are resolved from
the runtime mail options on every send.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

import aiosmtplib
from pydantic import BaseModel, ConfigDict

from mailconnect.core.logging import get_logger
from mailconnect.core.options import DEFAULT_SMTP_PORT, MailOptions
from mailconnect.domain.entities.mail_message import MailMessage, is_valid_email
from mailconnect.infrastructure.services.email.email_provider import EmailProvider

logger = get_logger(__name__)

# Set from the message itself, never copied from caller headers
_MANAGED_HEADERS = {"to", "subject", "from", "bcc", "content-type", "mime-version"}


class SMTPSettings(BaseModel):
    """Resolved connection settings for one delivery."""

    model_config = ConfigDict(from_attributes=True)

    host: str = "localhost"
    port: int = DEFAULT_SMTP_PORT
    username: str = ""
    password: str = ""
    use_tls: bool = False  # STARTTLS
    use_ssl: bool = False  # implicit TLS
    use_auth: bool = False
    from_email: str
    from_name: str = "MailConnect"
    timeout: int = 10

    @classmethod
    def from_options(cls, options: MailOptions) -> "SMTPSettings":
        """Resolve relay settings from runtime options.

        The relay applies only when both user and host are configured;
        otherwise mail goes unauthenticated to localhost:25. An invalid
        From address falls back to the admin address.
        """
        from_name = options.smtp_name or options.site_name

        if not options.relay_enabled:
            return cls(
                from_email=options.admin_email,
                from_name=from_name,
                timeout=options.smtp_timeout,
            )

        from_email = options.smtp_from
        if not is_valid_email(from_email):
            logger.warning(
                "Invalid From address, using admin email",
                from_email=from_email,
                admin_email=options.admin_email,
            )
            from_email = options.admin_email

        return cls(
            host=options.smtp_host,
            port=options.smtp_port,
            username=options.smtp_user,
            password=options.smtp_pass,
            use_tls=options.smtp_secure == "tls",
            use_ssl=options.smtp_secure == "ssl",
            use_auth=options.smtp_auth,
            from_email=from_email,
            from_name=from_name,
            timeout=options.smtp_timeout,
        )


class SMTPProvider(EmailProvider):
    """SMTP relay provider.

    Sends emails using the SMTP protocol via aiosmtplib.
    """

    name = "smtp"

    def __init__(self, settings: SMTPSettings) -> None:
        self.settings = settings

    def build_message(self, message: MailMessage) -> MIMEMultipart | MIMEText:
        """Build the MIME message.

        Plain messages become text/plain, messages whose headers declare
        HTML become text/html, and messages with an explicit HTML body
        become multipart/alternative.
        """
        mime: MIMEMultipart | MIMEText
        if message.html_body:
            mime = MIMEMultipart("alternative")
            mime.attach(MIMEText(message.body, "plain", "utf-8"))
            mime.attach(MIMEText(message.html_body, "html", "utf-8"))
        elif message.is_html:
            mime = MIMEText(message.body, "html", "utf-8")
        else:
            mime = MIMEText(message.body, "plain", "utf-8")

        extra = message.extra_headers()
        from_header = extra.get("From") or formataddr(
            (self.settings.from_name, self.settings.from_email)
        )

        mime["Subject"] = message.subject
        mime["From"] = from_header
        mime["To"] = ", ".join(message.recipients)

        for name, value in extra.items():
            if name.lower() in _MANAGED_HEADERS:
                continue
            mime[name] = value

        return mime

    def envelope_recipients(self, message: MailMessage) -> list[str]:
        recipients = list(message.recipients)
        for name, value in message.extra_headers().items():
            if name.lower() in ("cc", "bcc"):
                recipients.extend(addr.strip() for addr in value.split(",") if addr.strip())
        return recipients

    def _client(self) -> aiosmtplib.SMTP:
        return aiosmtplib.SMTP(
            hostname=self.settings.host,
            port=self.settings.port,
            use_tls=self.settings.use_ssl,  # aiosmtplib uses use_tls for TLS on connect
            start_tls=self.settings.use_tls and not self.settings.use_ssl,
            timeout=self.settings.timeout,
        )

    async def send(self, message: MailMessage) -> bool:
        """Send a message via SMTP.

        Returns:
            True if the relay accepted the message.

        Raises:
            aiosmtplib.SMTPException: If the relay rejects the message.
            OSError: If the relay cannot be reached.
        """
        mime = self.build_message(message)

        try:
            async with self._client() as smtp:
                if self.settings.use_auth and self.settings.username:
                    await smtp.login(self.settings.username, self.settings.password)
                await smtp.send_message(
                    mime,
                    sender=self.settings.from_email,
                    recipients=self.envelope_recipients(message),
                )
            return True
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email via SMTP", host=self.settings.host, error=str(e))
            raise
