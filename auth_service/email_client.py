"""
Out-of-band delivery of two-factor codes.

Real delivery is done by an external mail provider; the service only needs
something that implements ``EmailClient``. ``MockEmailClient`` is used in
development and tests.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from auth_service.domain import Email

logger = logging.getLogger(__name__)


class EmailClient(ABC):
    """Sends a message to a user's email address."""

    @abstractmethod
    async def send_email(self, recipient: Email, subject: str, content: str) -> None:
        """Deliver a message. Raises on delivery failure."""


@dataclass
class SentEmail:
    recipient: Email
    subject: str
    content: str = field(repr=False)


class MockEmailClient(EmailClient):
    """Records messages instead of sending them. Message bodies are not logged."""

    def __init__(self):
        self.sent: List[SentEmail] = []

    async def send_email(self, recipient: Email, subject: str, content: str) -> None:
        logger.info("Sending email to %s with subject %r", recipient, subject)
        self.sent.append(SentEmail(recipient=recipient, subject=subject, content=content))
