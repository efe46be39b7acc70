"""Mail fingerprint utility.

A fingerprint is the deduplication and correlation key for one logical
send. Two sends that differ only in recipient order, duplicate recipients
or recipient casing share a fingerprint; any other change to subject, body
or headers yields a different one.

Headers are hashed raw. Reordered but equivalent header lists therefore
produce different fingerprints.
"""

import hashlib
import json
from typing import Any, Mapping, Sequence

from mailconnect.domain.entities.mail_message import MailMessage, normalize_recipients


class MailFingerprint:
    """Utility for calculating mail content fingerprints."""

    @staticmethod
    def calculate(
        recipients: str | Sequence[str] | None,
        subject: str | None,
        body: str | None,
        headers: str | Sequence[str] | None,
    ) -> str:
        """Calculate the MD5 fingerprint of a message.

        Args:
            recipients: One address, a comma-separated string, or a list.
            subject: Subject line.
            body: Plain message body.
            headers: Headers, string or list, used verbatim.

        Returns:
            32-character hexadecimal digest.
        """
        to = sorted({address.lower() for address in normalize_recipients(recipients)})

        raw_headers: Any = headers if headers is not None else ""
        if not isinstance(raw_headers, str):
            raw_headers = list(raw_headers)

        data = {
            "to": to,
            "subject": str(subject or "").strip().lower(),
            "message": str(body or "").strip(),
            "headers": raw_headers,
        }

        json_str = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)

        # Deduplication key only, not a security boundary
        return hashlib.md5(json_str.encode("utf-8"), usedforsecurity=False).hexdigest()

    @classmethod
    def for_message(cls, message: MailMessage) -> str:
        return cls.calculate(message.recipients, message.subject, message.body, message.headers)

    @classmethod
    def for_args(cls, args: Mapping[str, Any]) -> str:
        """Fingerprint raw mailer arguments (``to``, ``subject``, ``message``, ``headers``)."""
        return cls.calculate(
            args.get("to"),
            args.get("subject"),
            args.get("message"),
            args.get("headers"),
        )
