"""In-memory mail backend for tests and local development."""

from __future__ import annotations

from typing import NamedTuple

from .abstract_mailer import AbstractMailer, DeliveryError
from .smtp_mailer import RECIPIENT_PATTERN


class OutboxMessage(NamedTuple):
    recipient: str
    subject: str
    html_body: str


class OutboxMailer(AbstractMailer):
    """Keep sent messages in a list instead of talking to a mail server."""

    def __init__(self):
        self.outbox: list[OutboxMessage] = []

    def send(self, recipient: str, subject: str, html_body: str) -> None:
        if not recipient or not RECIPIENT_PATTERN.match(recipient):
            raise DeliveryError("Invalid recipient email address.")
        self.outbox.append(OutboxMessage(recipient, subject, html_body))
