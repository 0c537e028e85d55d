"""Account flows: registration, verification, login, recovery and profile changes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app, g, render_template, request
from sqlalchemy.exc import SQLAlchemyError

from errors import (
    DeliveryFailed,
    DuplicateEmail,
    IncorrectPassword,
    InvalidCredential,
    NotVerified,
    ValidationError,
)
from mail import AbstractMailer, DeliveryError
from models.user import User, normalize_email

from .credential_store import CredentialStore, validate_email
from .sessions import SessionIssuer
from .tokens import IssuedToken, TokenManager, TokenPurpose

PASSWORD_POLICY = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z0-9]).{8,}$")
PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 8 characters long and contain at least one "
    "uppercase letter, one lowercase letter, one number, and one special character."
)


@dataclass(frozen=True)
class LoginResult:
    token: str
    expires_at: datetime
    user: User


@dataclass(frozen=True)
class ProfileUpdate:
    user: User
    verification_sent: bool


def check_password_policy(password: Optional[str], field: str = "password") -> str:
    if not password or not PASSWORD_POLICY.match(password):
        raise ValidationError(PASSWORD_POLICY_MESSAGE, fields={field: PASSWORD_POLICY_MESSAGE})
    return password


def _describe(ttl: timedelta) -> str:
    minutes = int(ttl.total_seconds() // 60)
    if minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


class AccountService:
    """Coordinate the credential store, token manager and session issuer."""

    def __init__(
        self,
        store: CredentialStore,
        tokens: TokenManager,
        sessions: SessionIssuer,
        mailer: AbstractMailer,
        client_url: str,
    ):
        self.store = store
        self.tokens = tokens
        self.sessions = sessions
        self.mailer = mailer
        self.client_url = client_url.rstrip("/")

    # Registration and verification

    def register(
        self, name: str, email: str, password: str, phone: Optional[str] = None
    ) -> User:
        check_password_policy(password)
        user = self.store.create(name, email, password, phone=phone)
        current_app.logger.info("Registered user %s", user.id)
        self._send_verification(user)
        return user

    def verify_email(self, token: str) -> User:
        user = self.tokens.consume(TokenPurpose.VERIFICATION, token)
        user.mark_verified()
        self._finish_consume(user, TokenPurpose.VERIFICATION)
        current_app.logger.info("Verified email for user %s", user.id)
        return user

    def resend_verification(self, email: str) -> None:
        """Re-issue a verification token; silent for unknown or verified emails."""

        user = self.store.find_by_email(email)
        if user is None or user.is_verified:
            return
        self._send_verification(user)

    # Sessions

    def login(self, email: str, password: str) -> LoginResult:
        user = self.store.find_by_email(email)
        if not self.store.verify_password(user, password):
            current_app.logger.info("Rejected login attempt")
            raise InvalidCredential()
        if not user.is_verified:
            raise NotVerified()

        token = self.sessions.issue(user.id)
        current_app.logger.info("User %s logged in", user.id)
        return LoginResult(
            token=token,
            expires_at=self.sessions.expires_at(token),
            user=user,
        )

    # Password recovery

    def forgot_password(self, email: str) -> None:
        user = self.store.find_by_email(email)
        if user is None:
            return

        issued = self.tokens.issue(user, TokenPurpose.RESET)
        self.store.save(user)
        self._deliver(
            user,
            issued,
            subject="Password Reset",
            template="email/reset_password.html",
            path="reset-password",
        )

    def reset_password(self, token: str, new_password: str) -> User:
        check_password_policy(new_password)
        user = self.tokens.consume(TokenPurpose.RESET, token)
        user.password = new_password
        self._finish_consume(user, TokenPurpose.RESET)
        current_app.logger.info("Password reset for user %s", user.id)
        return user

    # Profile

    def update_profile(
        self, user: User, name: Optional[str] = None, email: Optional[str] = None
    ) -> ProfileUpdate:
        if name is not None and str(name).strip():
            user.name = name

        email_changed = False
        if email and normalize_email(email) != user.email:
            new_email = validate_email(email)
            existing = self.store.find_by_email(new_email)
            if existing is not None and existing.id != user.id:
                self.store.rollback()
                raise DuplicateEmail()
            user.email = new_email
            user.mark_unverified()
            email_changed = True

        if not email_changed:
            self.store.save(user)
            return ProfileUpdate(user=user, verification_sent=False)

        current_app.logger.info("User %s changed email; verification required", user.id)
        self._send_verification(user)
        return ProfileUpdate(user=user, verification_sent=True)

    def change_password(self, user: User, current_password: str, new_password: str) -> User:
        if not current_password or not new_password:
            raise ValidationError("Please provide current password and new password.")
        if not self.store.verify_password(user, current_password):
            raise IncorrectPassword()
        check_password_policy(new_password, field="newPassword")

        user.password = new_password
        self.store.save(user)
        current_app.logger.info("Password changed for user %s", user.id)
        return user

    # Internals

    def _send_verification(self, user: User) -> None:
        issued = self.tokens.issue(user, TokenPurpose.VERIFICATION)
        self.store.save(user)
        self._deliver(
            user,
            issued,
            subject="Email Verification",
            template="email/verify_email.html",
            path="verify-email",
        )

    def _deliver(
        self, user: User, issued: IssuedToken, *, subject: str, template: str, path: str
    ) -> None:
        link = f"{self.client_url}/{path}/{issued.plaintext}"
        body = render_template(
            template,
            name=user.name,
            link=link,
            expires_in=_describe(self.tokens.ttls[issued.purpose]),
        )
        try:
            self.mailer.send(user.email, subject, body)
        except DeliveryError as exc:
            current_app.logger.warning(
                "Could not deliver %s token to user %s: %s", issued.purpose.value, user.id, exc
            )
            self.tokens.discard(user, issued.purpose)
            raise DeliveryFailed() from exc

    def _finish_consume(self, user: User, purpose: TokenPurpose) -> None:
        """Clear the consumed slot alongside the side effect, or on its own if that fails."""

        self.tokens.clear(user, purpose)
        try:
            self.store.save(user)
        except SQLAlchemyError:
            current_app.logger.warning(
                "Failed to persist %s token consumption for user %s", purpose.value, user.id
            )
            self.tokens.discard(user, purpose)
            raise


def _client_url() -> str:
    configured = current_app.config.get("CLIENT_URL")
    if configured:
        return configured
    return request.host_url


def get_account_service() -> AccountService:
    """Return the request-scoped account service."""

    service = g.get("account_service")
    if service is None:
        store = CredentialStore()
        tokens = TokenManager(
            store,
            ttls={
                TokenPurpose.VERIFICATION: current_app.config["VERIFICATION_TOKEN_TTL"],
                TokenPurpose.RESET: current_app.config["RESET_TOKEN_TTL"],
            },
        )
        service = AccountService(
            store=store,
            tokens=tokens,
            sessions=SessionIssuer(),
            mailer=current_app.extensions["mailer"],
            client_url=_client_url(),
        )
        g.account_service = service
    return service
