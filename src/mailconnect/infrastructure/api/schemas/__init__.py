"""API schemas for MailConnect."""

from mailconnect.infrastructure.api.schemas.mail_schemas import (
    CleanupResponse,
    ClearLogsResponse,
    EmailLogListResponse,
    EmailLogResponse,
    MailHealthResponse,
    SendTestEmailRequest,
    SendTestEmailResponse,
)

__all__ = [
    "CleanupResponse",
    "ClearLogsResponse",
    "EmailLogListResponse",
    "EmailLogResponse",
    "MailHealthResponse",
    "SendTestEmailRequest",
    "SendTestEmailResponse",
]
