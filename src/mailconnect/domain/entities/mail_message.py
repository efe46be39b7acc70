"""Outgoing mail message and transport error entities.

Callers hand the mailer recipients and headers either as a single string
or as a list. ``MailMessage.from_args`` normalizes that once, at entry, so
hashing, storage and transport all see one representation.

Headers are the exception: they are kept exactly as supplied (string or
list) because the fingerprint is computed over the raw header value.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from pydantic import EmailStr, TypeAdapter, ValidationError

NO_SUBJECT = "No Subject"
HTML_CONTENT_TYPE = "content-type: text/html"

_email_adapter = TypeAdapter(EmailStr)


def is_valid_email(value: Any) -> bool:
    """Return True if value is a syntactically valid email address."""
    if not isinstance(value, str) or not value:
        return False
    try:
        _email_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def normalize_recipients(value: str | Sequence[str] | None) -> list[str]:
    """Coerce a recipient value to a list of stripped, non-empty addresses.

    A string is split on commas, matching how a comma-separated ``To``
    header is read.
    """
    if value is None:
        return []
    if isinstance(value, str):
        candidates: Sequence[Any] = value.split(",")
    else:
        candidates = value
    return [str(item).strip() for item in candidates if str(item).strip()]


def normalize_headers(value: str | Sequence[str] | None) -> str | list[str]:
    """Return headers as a string or a list of strings, without reordering."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return [str(item) for item in value]


@dataclass(frozen=True)
class MailMessage:
    """Normalized outgoing message.

    Attributes:
        recipients: Addresses in the order supplied.
        subject: Subject as supplied (may be empty).
        body: Message body as supplied.
        headers: Raw headers, string or list.
        html_body: Explicit HTML alternative, if the caller provided one.
    """

    recipients: tuple[str, ...]
    subject: str = ""
    body: str = ""
    headers: str | list[str] = ""
    html_body: str = ""

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "MailMessage":
        """Build a message from mailer-style arguments.

        Recognized keys: ``to``, ``subject``, ``message``, ``headers`` and
        ``html_body``. Missing keys become empty values.
        """
        return cls(
            recipients=tuple(normalize_recipients(args.get("to"))),
            subject=str(args.get("subject") or ""),
            body=str(args.get("message") or ""),
            headers=normalize_headers(args.get("headers")),
            html_body=str(args.get("html_body") or ""),
        )

    @property
    def header_lines(self) -> list[str]:
        if isinstance(self.headers, str):
            return [line for line in self.headers.splitlines() if line.strip()]
        return list(self.headers)

    @property
    def is_html(self) -> bool:
        """True when the headers declare an HTML content type."""
        return any(HTML_CONTENT_TYPE in line.lower() for line in self.header_lines)

    @property
    def html_content(self) -> str:
        """HTML body to store and send: explicit html_body, else the body of an HTML message."""
        if self.html_body:
            return self.html_body
        if self.is_html:
            return self.body
        return ""

    @property
    def recipients_display(self) -> str:
        return ", ".join(self.recipients)

    @property
    def subject_display(self) -> str:
        return self.subject or NO_SUBJECT

    @property
    def headers_text(self) -> str:
        """Headers serialized for storage: lists as JSON, strings verbatim."""
        if isinstance(self.headers, str):
            return self.headers
        return json.dumps(list(self.headers))

    def extra_headers(self) -> dict[str, str]:
        """Parse ``Name: value`` header lines, skipping Content-Type.

        Content-Type is decided by the transport from the body parts.
        """
        parsed: dict[str, str] = {}
        for line in self.header_lines:
            name, sep, value = line.partition(":")
            if not sep or not name.strip():
                continue
            if name.strip().lower() == "content-type":
                continue
            parsed[name.strip()] = value.strip()
        return parsed


@dataclass
class MailError:
    """Transport failure handed to ON_MAIL_FAILED hooks.

    Attributes:
        message: Human-readable error from the transport.
        code: Machine-readable error code.
        data: The message arguments that were being sent, when known.
    """

    message: str
    code: str = "mail_failed"
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "data": self.data}
