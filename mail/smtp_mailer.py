"""SMTP mail backend."""

from __future__ import annotations

import re
import smtplib
from email.message import EmailMessage

from .abstract_mailer import AbstractMailer, DeliveryError

RECIPIENT_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


class SmtpMailer(AbstractMailer):
    """Send HTML mail through an SMTP server, over SSL or STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_ssl: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        conn = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            conn.starttls()
        except Exception:
            conn.close()
            raise
        return conn

    def send(self, recipient: str, subject: str, html_body: str) -> None:
        if not recipient or not RECIPIENT_PATTERN.match(recipient):
            raise DeliveryError("Invalid recipient email address.")

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html_body, subtype="html")

        try:
            with self._connect() as conn:
                if self.username:
                    conn.login(self.username, self.password)
                conn.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError("Email could not be sent.") from exc
