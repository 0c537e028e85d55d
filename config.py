"""Application configuration module."""

import os
from datetime import timedelta


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    APP_ENV = os.getenv("APP_ENV", "production")
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///accounts.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Where emailed links point; falls back to the request host when unset.
    CLIENT_URL = os.getenv("CLIENT_URL", "")

    # Sessions
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv("SESSION_TTL_HOURS", "24")))
    JWT_TOKEN_LOCATION = ["cookies", "headers"]
    JWT_ACCESS_COOKIE_NAME = "token"
    JWT_COOKIE_SAMESITE = "Lax"
    JWT_COOKIE_SECURE = APP_ENV != "development"
    JWT_COOKIE_CSRF_PROTECT = False
    JWT_SESSION_COOKIE = False

    # Single-use tokens
    VERIFICATION_TOKEN_TTL = timedelta(
        hours=int(os.getenv("VERIFICATION_TOKEN_TTL_HOURS", "24"))
    )
    RESET_TOKEN_TTL = timedelta(minutes=int(os.getenv("RESET_TOKEN_TTL_MINUTES", "10")))

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Rate limiting
    RATE_LIMIT = os.getenv("RATE_LIMIT", "60 per minute")
    TOKEN_REQUEST_RATE_LIMIT = os.getenv("TOKEN_REQUEST_RATE_LIMIT", "5 per minute")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")

    # Mail delivery
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "smtp")
    SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "465"))
    SMTP_USER = os.getenv("SMTP_USER", "")
    SMTP_PASS = os.getenv("SMTP_PASS", "")
    MAIL_FROM = os.getenv("MAIL_FROM") or SMTP_USER or "no-reply@localhost"
    MAIL_USE_SSL = _env_bool("MAIL_USE_SSL", True)
    MAIL_TIMEOUT = float(os.getenv("MAIL_TIMEOUT", "10"))
