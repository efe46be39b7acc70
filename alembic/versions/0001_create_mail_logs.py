"""create_mail_logs

Revision ID: 0001_create_mail_logs
Revises:
Create Date: 2026-10-19 09:12:44.318207

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_create_mail_logs"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "mail_logs",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
            comment="Surrogate key",
        ),
        sa.Column(
            "fingerprint",
            sa.String(length=32),
            nullable=False,
            comment="MD5 digest of normalized message content",
        ),
        sa.Column(
            "recipients",
            sa.Text(),
            nullable=False,
            comment="Comma-joined recipient addresses",
        ),
        sa.Column("subject", sa.String(length=255), nullable=False, comment="Message subject"),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("html_body", sa.Text(), nullable=False),
        sa.Column("headers", sa.Text(), nullable=False),
        sa.Column(
            "status",
            sa.String(length=20),
            nullable=False,
            comment="Delivery status ('pending', 'success', 'failed')",
        ),
        sa.Column("error_message", sa.Text(), nullable=False),
        sa.Column("status_detail", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            comment="Timestamp when the attempt was first logged",
        ),
        sa.UniqueConstraint("fingerprint", name="uq_mail_logs_fingerprint"),
        sa.CheckConstraint(
            "status IN ('pending', 'success', 'failed')",
            name="ck_mail_logs_status",
        ),
    )
    op.create_index("ix_mail_logs_status", "mail_logs", ["status"])
    op.create_index("ix_mail_logs_created_at", "mail_logs", ["created_at"])
    op.create_index(
        "ix_mail_logs_recipients",
        "mail_logs",
        ["recipients"],
        mysql_length=191,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_mail_logs_recipients", table_name="mail_logs")
    op.drop_index("ix_mail_logs_created_at", table_name="mail_logs")
    op.drop_index("ix_mail_logs_status", table_name="mail_logs")
    op.drop_table("mail_logs")
