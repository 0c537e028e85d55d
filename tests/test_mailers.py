"""Tests for the mail delivery backends."""

from __future__ import annotations

import smtplib

import pytest

from mail import DeliveryError, OutboxMailer, SmtpMailer


class _FakeSMTP:
    sent: list = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.logged_in = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, message):
        _FakeSMTP.sent.append((self, message))


def test_outbox_records_messages():
    mailer = OutboxMailer()
    mailer.send("a@x.com", "Hello", "<p>Hi</p>")
    assert mailer.outbox[0].recipient == "a@x.com"
    assert mailer.outbox[0].html_body == "<p>Hi</p>"


def test_outbox_rejects_invalid_recipient():
    with pytest.raises(DeliveryError):
        OutboxMailer().send("not-an-address", "Hello", "<p>Hi</p>")


def test_smtp_mailer_sends_html(monkeypatch):
    _FakeSMTP.sent = []
    monkeypatch.setattr(smtplib, "SMTP_SSL", _FakeSMTP)
    mailer = SmtpMailer(
        "mail.example", 465, "no-reply@example.com", username="bot", password="pw", timeout=3
    )

    mailer.send("a@x.com", "Email Verification", "<a href='x'>link</a>")

    conn, message = _FakeSMTP.sent[0]
    assert conn.timeout == 3
    assert conn.logged_in == ("bot", "pw")
    assert message["To"] == "a@x.com"
    assert message["Subject"] == "Email Verification"
    assert message.get_body(preferencelist=("html",)).get_content().strip() == "<a href='x'>link</a>"


def test_smtp_failures_become_delivery_errors(monkeypatch):
    def _refuse(*args, **kwargs):
        raise ConnectionRefusedError("no server")

    monkeypatch.setattr(smtplib, "SMTP_SSL", _refuse)

    with pytest.raises(DeliveryError):
        SmtpMailer("mail.example", 465, "no-reply@example.com").send(
            "a@x.com", "Subject", "<p>body</p>"
        )


class _BrokenTLS:
    instances: list = []

    def __init__(self, host, port, timeout=None):
        self.closed = False
        _BrokenTLS.instances.append(self)

    def starttls(self):
        raise smtplib.SMTPNotSupportedError("STARTTLS extension not supported by server.")

    def close(self):
        self.closed = True


def test_starttls_failure_closes_connection(monkeypatch):
    _BrokenTLS.instances = []
    monkeypatch.setattr(smtplib, "SMTP", _BrokenTLS)
    mailer = SmtpMailer("mail.example", 587, "no-reply@example.com", use_ssl=False)

    with pytest.raises(DeliveryError):
        mailer.send("a@x.com", "Subject", "<p>body</p>")

    assert len(_BrokenTLS.instances) == 1
    assert _BrokenTLS.instances[0].closed is True
