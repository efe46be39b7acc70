"""Runtime mail options.

Options that an operator may change while the process is running: whether
sends are logged, how long log rows are kept, and the SMTP relay
credentials. Unlike ``Settings`` these are never cached; every read builds a
fresh ``MailOptions`` so a toggle takes effect on the very next send.
"""

from typing import Literal, Protocol

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SMTP_PORT = 25


class MailOptions(BaseSettings):
    """Operator-controlled mail options.

    Attributes:
        enable_log: Record every send attempt in the mail log.
        log_retention_days: Delete log rows older than this. 0 keeps forever.
        smtp_host: Relay host. Relay is used only when host and user are set.
        smtp_port: Relay port. Values outside 1-65535 fall back to 25.
        smtp_user: Relay username.
        smtp_pass: Relay password or app key.
        smtp_secure: 'tls' (STARTTLS), 'ssl' (implicit TLS) or '' (plain).
        smtp_auth: Whether the relay requires authentication.
        smtp_from: From address. Invalid addresses fall back to admin_email.
        smtp_name: From display name. Defaults to site_name.
        smtp_timeout: Connection timeout in seconds.
        admin_email: Site administrator address.
        site_name: Site name used in test emails and the From header.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MAILCONNECT_",
        case_sensitive=False,
        extra="ignore",
    )

    enable_log: bool = False
    log_retention_days: int = 30

    smtp_host: str = "localhost"
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_secure: Literal["tls", "ssl", ""] = "tls"
    smtp_auth: bool = True
    smtp_from: str = ""
    smtp_name: str = ""
    smtp_timeout: int = 10

    admin_email: str = "admin@localhost"
    site_name: str = "MailConnect"

    @field_validator("smtp_port", mode="before")
    @classmethod
    def coerce_port(cls, v: object) -> int:
        """Fall back to port 25 for missing, non-numeric or out-of-range ports."""
        try:
            port = int(v)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return DEFAULT_SMTP_PORT
        if port < 1 or port > 65535:
            return DEFAULT_SMTP_PORT
        return port

    @field_validator("log_retention_days", mode="before")
    @classmethod
    def coerce_retention(cls, v: object) -> int:
        """Treat negative or non-numeric retention as 'keep forever'."""
        try:
            days = int(v)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0
        return max(days, 0)

    @property
    def relay_enabled(self) -> bool:
        """Relay settings apply only when both user and host are configured."""
        return bool(self.smtp_user) and bool(self.smtp_host)


class MailOptionsProvider(Protocol):
    """Source of runtime mail options, polled fresh on every call."""

    def is_logging_enabled(self) -> bool: ...

    def get_retention_days(self) -> int: ...

    def get_mail_options(self) -> MailOptions: ...


class EnvironmentMailOptions:
    """Reads ``MailOptions`` from the environment and .env on every call."""

    def get_mail_options(self) -> MailOptions:
        return MailOptions()

    def is_logging_enabled(self) -> bool:
        return self.get_mail_options().enable_log

    def get_retention_days(self) -> int:
        return self.get_mail_options().log_retention_days


class StaticMailOptions:
    """Mutable in-memory options holder.

    Useful for embedding hosts that keep options in their own store and for
    tests that toggle logging between hook firings.
    """

    def __init__(self, options: MailOptions | None = None, **overrides: object) -> None:
        base = options or MailOptions()
        self.options = base.model_copy(update=overrides) if overrides else base

    def update(self, **overrides: object) -> None:
        self.options = self.options.model_copy(update=overrides)

    def get_mail_options(self) -> MailOptions:
        return self.options

    def is_logging_enabled(self) -> bool:
        return self.options.enable_log

    def get_retention_days(self) -> int:
        return self.options.log_retention_days
