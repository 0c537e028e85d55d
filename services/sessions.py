"""Signed bearer session credentials."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from flask import Response, current_app
from flask_jwt_extended import (
    create_access_token,
    decode_token,
    set_access_cookies,
    unset_access_cookies,
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from errors import InvalidCredential


class SessionIssuer:
    """Mint and validate HS256 JWTs carrying the user id as ``sub``."""

    def issue(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        if expires_delta is None:
            return create_access_token(identity=str(user_id))
        return create_access_token(identity=str(user_id), expires_delta=expires_delta)

    def validate(self, credential: str) -> str:
        """Return the user id embedded in ``credential`` or raise InvalidCredential."""

        if not credential:
            raise InvalidCredential("Missing session credential.")
        try:
            claims = decode_token(credential)
        except (PyJWTError, JWTExtendedException, ValueError) as exc:
            raise InvalidCredential("Invalid or expired session credential.") from exc

        if claims.get("type") != "access":
            raise InvalidCredential("Invalid or expired session credential.")
        subject = claims.get(current_app.config.get("JWT_IDENTITY_CLAIM", "sub"))
        if not subject:
            raise InvalidCredential("Invalid or expired session credential.")
        return str(subject)

    def expires_at(self, credential: str) -> datetime:
        """Naive UTC expiry read from the credential's own ``exp`` claim."""

        claims = decode_token(credential)
        return datetime.fromtimestamp(claims["exp"], timezone.utc).replace(tzinfo=None)

    @property
    def lifetime(self) -> timedelta:
        return current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]

    def attach(self, response: Response, credential: str) -> Response:
        """Mirror the credential into an http-only cookie with the same lifetime."""

        set_access_cookies(
            response, credential, max_age=int(self.lifetime.total_seconds())
        )
        return response

    def detach(self, response: Response) -> Response:
        unset_access_cookies(response)
        return response
