"""MailConnect - SMTP relay with a durable email audit log.

Intercepts outgoing application email, routes it through a configurable
SMTP relay, and records every send attempt with retention-based cleanup.
"""

__version__ = "1.2.1"

__all__ = ["__version__"]
