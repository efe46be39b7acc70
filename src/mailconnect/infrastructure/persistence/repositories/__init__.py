"""Persistence repositories for database operations."""

from mailconnect.infrastructure.persistence.repositories.email_log_repository import (
    EmailLogRepository,
)

__all__ = ["EmailLogRepository"]
