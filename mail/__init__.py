"""Mail delivery backends."""

from .abstract_mailer import AbstractMailer, DeliveryError
from .outbox_mailer import OutboxMailer, OutboxMessage
from .smtp_mailer import SmtpMailer

__all__ = [
    "AbstractMailer",
    "DeliveryError",
    "OutboxMailer",
    "OutboxMessage",
    "SmtpMailer",
    "build_mailer",
]


def build_mailer(config) -> AbstractMailer:
    """Return the backend named by ``MAIL_BACKEND``."""

    backend = (config.get("MAIL_BACKEND") or "smtp").lower()
    if backend == "outbox":
        return OutboxMailer()
    if backend == "smtp":
        return SmtpMailer(
            host=config.get("SMTP_HOST", "localhost"),
            port=int(config.get("SMTP_PORT", 465)),
            sender=config.get("MAIL_FROM", "no-reply@localhost"),
            username=config.get("SMTP_USER", ""),
            password=config.get("SMTP_PASS", ""),
            use_ssl=bool(config.get("MAIL_USE_SSL", True)),
            timeout=float(config.get("MAIL_TIMEOUT", 10)),
        )
    raise ValueError(f"Unknown MAIL_BACKEND: {backend}")
