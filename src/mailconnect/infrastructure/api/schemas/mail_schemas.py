"""Pydantic schemas for the mail log and test email endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from mailconnect.domain.entities.email_log import EmailLogStatus


class EmailLogResponse(BaseModel):
    """Response schema for one mail log row.

    Attributes:
        id: Log row ID.
        fingerprint: Content fingerprint of the send.
        recipients: Comma-joined recipient addresses.
        subject: Subject, "No Subject" when the send had none.
        status: 'pending', 'success' or 'failed'.
        error_message: Transport error for failed sends.
        status_detail: Success note or JSON failure detail.
        created_at: When the send was first logged.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    fingerprint: str
    recipients: str
    subject: str
    body: str = ""
    html_body: str = ""
    headers: str = ""
    status: EmailLogStatus
    error_message: str = ""
    status_detail: str = ""
    created_at: datetime | None = None


class EmailLogListResponse(BaseModel):
    """Response schema for paginated mail log list.

    Attributes:
        logs: Log rows on this page, newest first.
        total: Total number of rows matching the filters.
        page: Current page number.
        page_size: Number of rows per page.
        total_pages: Number of pages for the current filters.
    """

    logs: list[EmailLogResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class ClearLogsResponse(BaseModel):
    cleared: bool


class CleanupResponse(BaseModel):
    deleted: int = Field(..., description="Rows removed by the retention sweep")


class SendTestEmailRequest(BaseModel):
    """Request schema for sending a test email.

    The address is validated by the mailer so that an invalid address is a
    400 rather than a schema error.
    """

    recipient: str


class SendTestEmailResponse(BaseModel):
    status: str
    message: str


class MailHealthResponse(BaseModel):
    status: str
    logging_enabled: bool
    retention_days: int
    relay_enabled: bool
    in_flight: int
