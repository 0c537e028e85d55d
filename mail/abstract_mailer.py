"""Mail delivery abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod


class DeliveryError(Exception):
    """Raised when a message could not be handed to the mail transport."""


class AbstractMailer(ABC):
    """Interface for mail delivery backends."""

    @abstractmethod
    def send(self, recipient: str, subject: str, html_body: str) -> None:
        """Deliver an HTML message or raise :class:`DeliveryError`."""
