"""Error taxonomy shared by the account services and HTTP handlers."""

from __future__ import annotations

from http import HTTPStatus
from typing import Mapping


class AccountError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    kind: str = "internal"
    default_message: str = "An unexpected error occurred."

    def __init__(
        self,
        message: str | None = None,
        *,
        fields: Mapping[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.fields = dict(fields) if fields else None
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {
            "error": HTTPStatus(self.status_code).phrase,
            "kind": self.kind,
            "detail": self.message,
        }
        if self.fields:
            payload["fields"] = self.fields
        return payload


class ValidationError(AccountError):
    status_code = HTTPStatus.BAD_REQUEST
    kind = "validation_error"
    default_message = "The request payload is invalid."


class DuplicateEmail(AccountError):
    status_code = HTTPStatus.BAD_REQUEST
    kind = "duplicate_email"
    default_message = "A user with that email already exists."


class InvalidCredential(AccountError):
    status_code = HTTPStatus.UNAUTHORIZED
    kind = "invalid_credential"
    default_message = "Invalid email or password."


class IncorrectPassword(InvalidCredential):
    """Wrong current password on an already authenticated request."""

    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Current password is incorrect."


class NotVerified(AccountError):
    status_code = HTTPStatus.UNAUTHORIZED
    kind = "not_verified"
    default_message = "Please verify your email to log in."


class InvalidOrExpiredToken(AccountError):
    status_code = HTTPStatus.BAD_REQUEST
    kind = "invalid_or_expired_token"
    default_message = "Invalid or expired token."


class Unauthenticated(AccountError):
    status_code = HTTPStatus.UNAUTHORIZED
    kind = "unauthenticated"
    default_message = "Not authorized to access this route."


class AccountNotFound(AccountError):
    status_code = HTTPStatus.NOT_FOUND
    kind = "not_found"
    default_message = "User not found."


class DeliveryFailed(AccountError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    kind = "delivery_failed"
    default_message = "Email could not be sent."


class InternalError(AccountError):
    pass
