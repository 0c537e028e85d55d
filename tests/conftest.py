"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import re
import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from mail import OutboxMailer  # noqa: E402
from models import db  # noqa: E402

TOKEN_LINK = re.compile(r"/(verify-email|reset-password)/([0-9a-f]+)")


class _BaseTestConfig(Config):
    TESTING = True
    APP_ENV = "testing"
    SECRET_KEY = "test-secret"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_COOKIE_SECURE = False
    CLIENT_URL = "https://client.example"
    CORS_ORIGINS = "*"
    MAIL_BACKEND = "outbox"
    RATE_LIMIT = "200 per minute"
    RATELIMIT_STORAGE_URI = "memory://"


@pytest.fixture()
def app() -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(_BaseTestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def outbox(app: Flask) -> list:
    """Messages captured by the in-memory mailer."""

    mailer = app.extensions["mailer"]
    assert isinstance(mailer, OutboxMailer)
    return mailer.outbox


def token_from(message) -> str:
    """Pull the plaintext token out of an emailed link."""

    match = TOKEN_LINK.search(message.html_body)
    assert match, message.html_body
    return match.group(2)
