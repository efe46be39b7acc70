"""API Routes for MailConnect."""

from mailconnect.infrastructure.api.routes.mail_router import router as mail_router

__all__ = ["mail_router"]
