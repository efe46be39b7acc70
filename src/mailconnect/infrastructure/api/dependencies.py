"""FastAPI dependencies for MailConnect routes."""

from typing import Annotated

from fastapi import Depends, Request

from mailconnect.infrastructure.services import MailServices


def get_mail_services(request: Request) -> MailServices:
    """Dependency to get the wired mail services from app state."""
    return request.app.state.mail_services


Services = Annotated[MailServices, Depends(get_mail_services)]
