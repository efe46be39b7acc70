"""Mail log administration API routes.

Provides endpoints for browsing and clearing the mail log, running the
retention sweep on demand, and sending a test email through the relay.
"""

import math
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from mailconnect.core.logging import get_logger
from mailconnect.infrastructure.api.dependencies import Services
from mailconnect.infrastructure.api.schemas.mail_schemas import (
    CleanupResponse,
    ClearLogsResponse,
    EmailLogListResponse,
    EmailLogResponse,
    MailHealthResponse,
    SendTestEmailRequest,
    SendTestEmailResponse,
)
from mailconnect.infrastructure.services.mailer import InvalidRecipientError

router = APIRouter(tags=["mail"])
logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@router.get("/logs", response_model=EmailLogListResponse)
async def list_email_logs(
    services: Services,
    status_filter: Optional[str] = Query(
        None, alias="status", description="Filter by status (pending, success, failed)"
    ),
    search: Optional[str] = Query(None, description="Substring match on recipients"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Rows per page"),
) -> EmailLogListResponse:
    """List mail log rows, newest first.

    Unknown status values are ignored rather than rejected.
    """
    try:
        log_service = services.log_service
        logs = await log_service.list_logs(
            limit=page_size,
            offset=(page - 1) * page_size,
            status=status_filter,
            search=search,
        )
        total = await log_service.count_logs(status=status_filter, search=search)

        return EmailLogListResponse(
            logs=[EmailLogResponse.model_validate(log) for log in logs],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total else 0,
        )

    except Exception as e:
        logger.error("Failed to list email logs", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list email logs",
        )


@router.delete("/logs", response_model=ClearLogsResponse)
async def clear_email_logs(services: Services) -> ClearLogsResponse:
    """Delete every mail log row. This cannot be undone."""
    try:
        cleared = await services.log_service.clear_all_logs()
        return ClearLogsResponse(cleared=cleared)

    except Exception as e:
        logger.error("Failed to clear email logs", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to clear email logs",
        )


@router.post("/logs/cleanup", response_model=CleanupResponse)
async def run_log_cleanup(services: Services) -> CleanupResponse:
    """Run the retention sweep now.

    Deletes nothing when logging is disabled or the retention window is 0.
    """
    try:
        deleted = await services.log_service.run_retention_sweep()
        return CleanupResponse(deleted=deleted)

    except Exception as e:
        logger.error("Failed to run log cleanup", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to run log cleanup",
        )


@router.post("/test", response_model=SendTestEmailResponse)
async def send_test_email(
    request: SendTestEmailRequest,
    services: Services,
) -> SendTestEmailResponse:
    """Send a test email with the current relay settings.

    Returns 400 for an invalid address and 502 when the relay rejects or
    cannot be reached.
    """
    try:
        success, error = await services.mailer.send_test_email(request.recipient)

        if not success:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Failed to send test email: {error}",
            )

        return SendTestEmailResponse(
            status="success",
            message=f"Test email sent to {request.recipient.strip()}",
        )

    except InvalidRecipientError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to send test email", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send test email",
        )


@router.get("/health", response_model=MailHealthResponse)
async def mail_health(services: Services) -> MailHealthResponse:
    """Report the current mail options and in-flight sends."""
    options = services.options.get_mail_options()
    return MailHealthResponse(
        status="ok",
        logging_enabled=options.enable_log,
        retention_days=options.log_retention_days,
        relay_enabled=options.relay_enabled,
        in_flight=services.email_logger.in_flight_count,
    )
