"""SQLAlchemy model for the mail_logs table.

Mail logs provide an audit trail of every send attempt. The unique
constraint on ``fingerprint`` is what collapses duplicate pre-send events
for identical content into a single row.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from mailconnect.domain.entities.email_log import EmailLog
from mailconnect.infrastructure.persistence.database import Base

# Size caps applied before storage
SUBJECT_MAX_CHARS = 255
CONTENT_MAX_BYTES = 10240


class EmailLogModel(Base):
    """SQLAlchemy model for the mail_logs table.

    Attributes:
        id: Autoincrement surrogate key.
        fingerprint: Content digest, unique.
        recipients: Comma-joined recipient addresses.
        subject: Subject line (max 255 chars).
        body: Plain body snapshot (max 10KB).
        html_body: HTML body snapshot (max 10KB).
        headers: Headers snapshot (max 10KB).
        status: 'pending', 'success' or 'failed'.
        error_message: Transport error on failure.
        status_detail: Outcome note or JSON error detail.
        created_at: Insertion timestamp.
    """

    __tablename__ = "mail_logs"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
        comment="Surrogate key",
    )
    fingerprint: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="MD5 digest of normalized message content",
    )
    recipients: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Comma-joined recipient addresses",
    )
    subject: Mapped[str] = mapped_column(
        String(SUBJECT_MAX_CHARS),
        nullable=False,
        comment="Message subject",
    )
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    html_body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    headers: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Delivery status ('pending', 'success', 'failed')",
    )
    error_message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status_detail: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Timestamp when the attempt was first logged",
    )

    __table_args__ = (
        UniqueConstraint("fingerprint", name="uq_mail_logs_fingerprint"),
        CheckConstraint(
            "status IN ('pending', 'success', 'failed')",
            name="ck_mail_logs_status",
        ),
        Index("ix_mail_logs_status", "status"),
        Index("ix_mail_logs_created_at", "created_at"),
        # 191-char prefix keeps utf8mb4 under the 767-byte MySQL index limit
        Index("ix_mail_logs_recipients", "recipients", mysql_length=191),
    )

    def to_entity(self) -> EmailLog:
        return EmailLog(
            id=self.id,
            fingerprint=self.fingerprint,
            recipients=self.recipients,
            subject=self.subject,
            status=self.status,
            body=self.body or "",
            html_body=self.html_body or "",
            headers=self.headers or "",
            error_message=self.error_message or "",
            status_detail=self.status_detail or "",
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<EmailLog(id={self.id}, fingerprint={self.fingerprint}, "
            f"status={self.status}, created_at={self.created_at})>"
        )
