"""Resolve the calling user from a session cookie or bearer header."""

from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import current_app, g, request

from errors import AccountNotFound, InvalidCredential, Unauthenticated
from models.user import User

from .credential_store import CredentialStore
from .sessions import SessionIssuer


def extract_credential() -> Optional[str]:
    """Return the cookie-carried credential, else the bearer header value."""

    cookie_name = current_app.config.get("JWT_ACCESS_COOKIE_NAME", "token")
    cookie_value = request.cookies.get(cookie_name)
    if cookie_value:
        return cookie_value

    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def resolve_caller(
    store: Optional[CredentialStore] = None, sessions: Optional[SessionIssuer] = None
) -> User:
    """Authenticate the current request and bind the user to ``g.current_user``."""

    credential = extract_credential()
    if credential is None:
        raise Unauthenticated()

    sessions = sessions or SessionIssuer()
    try:
        user_id = sessions.validate(credential)
    except InvalidCredential as exc:
        raise Unauthenticated() from exc

    try:
        user = (store or CredentialStore()).get(user_id)
    except AccountNotFound as exc:
        current_app.logger.info("Session credential refers to a missing user")
        raise Unauthenticated() from exc

    g.current_user = user
    return user


def session_required(view):
    """View decorator that rejects requests without a valid session."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        resolve_caller()
        return view(*args, **kwargs)

    return wrapper


def current_user() -> User:
    user = g.get("current_user")
    if user is None:
        raise Unauthenticated()
    return user
