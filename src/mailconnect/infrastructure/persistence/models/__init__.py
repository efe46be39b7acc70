"""SQLAlchemy models for MailConnect tables.

All models inherit from the Base class defined in database.py.
"""

from mailconnect.infrastructure.persistence.models.email_log import EmailLogModel

__all__ = ["EmailLogModel"]
