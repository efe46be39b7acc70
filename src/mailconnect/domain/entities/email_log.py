"""Email log entity for tracking send attempts.

Email logs provide an audit trail of every send attempt. A row is created
as ``pending`` before the transport runs and moves exactly once to
``success`` or ``failed``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class EmailLogStatus(str, Enum):
    """Lifecycle status of a logged send."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(status.value for status in cls)

    @classmethod
    def terminal_values(cls) -> tuple[str, ...]:
        return (cls.SUCCESS.value, cls.FAILED.value)


@dataclass
class EmailLog:
    """Email log entity representing one logical send attempt.

    Attributes:
        id: Surrogate key assigned by the store.
        fingerprint: Deterministic content digest; unique per row.
        recipients: Comma-joined recipient addresses as supplied.
        subject: Message subject (capped).
        body: Plain-text body snapshot (capped).
        html_body: HTML body snapshot, empty when the message is not HTML.
        headers: Raw headers snapshot (JSON for header lists).
        status: 'pending', 'success' or 'failed'.
        error_message: Transport error, set only on failure.
        status_detail: Outcome note or JSON error detail.
        created_at: Insertion timestamp.
    """

    id: int
    fingerprint: str
    recipients: str
    subject: str
    status: str
    body: str = ""
    html_body: str = ""
    headers: str = ""
    error_message: str = ""
    status_detail: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Validate email log data after initialization."""
        if not self.fingerprint:
            raise ValueError("Fingerprint is required")
        if self.status not in EmailLogStatus.values():
            raise ValueError(f"Invalid status. Must be one of {set(EmailLogStatus.values())}")
