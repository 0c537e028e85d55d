"""Flask extension instances shared across the application."""

from flask import current_app
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate


def _default_rate_limit() -> str:
    return current_app.config.get("RATE_LIMIT", "60 per minute")


def token_request_rate_limit() -> str:
    """Limit applied to endpoints that email a fresh token."""

    return current_app.config.get("TOKEN_REQUEST_RATE_LIMIT", "5 per minute")


migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address, default_limits=[_default_rate_limit])
