"""Domain services for MailConnect.

Services contain the email logging business logic: fingerprinting, send
lifecycle correlation, retention and log queries.
"""

from mailconnect.domain.services.email_log_service import EmailLogService
from mailconnect.domain.services.email_logger_service import EmailLoggerService
from mailconnect.domain.services.fingerprint import MailFingerprint
from mailconnect.domain.services.retention_service import RetentionService

__all__ = [
    "EmailLogService",
    "EmailLoggerService",
    "MailFingerprint",
    "RetentionService",
]
