"""Abstract base class for email providers.

Defines the interface the mailer uses to deliver a message.
"""

from abc import ABC, abstractmethod

from mailconnect.domain.entities.mail_message import MailMessage


class EmailProvider(ABC):
    """Abstract base class for email providers."""

    name: str = "provider"

    @abstractmethod
    async def send(self, message: MailMessage) -> bool:
        """Deliver a message.

        Args:
            message: Normalized outgoing message.

        Returns:
            True if the message was accepted for delivery.

        Raises:
            Exception: If delivery fails. The mailer turns this into a
                       failed send.
        """
        pass
