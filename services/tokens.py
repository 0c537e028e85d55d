"""Single-use, expiring tokens for email verification and password reset."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Mapping

from flask import current_app

from errors import InvalidOrExpiredToken
from models.user import User, utcnow

from .credential_store import CredentialStore

TOKEN_BYTES = 20
MAX_TOKEN_LENGTH = 256


class TokenPurpose(str, Enum):
    VERIFICATION = "verification"
    RESET = "reset"


# (hash column, expiry column) on User for each purpose.
_SLOTS = {
    TokenPurpose.VERIFICATION: ("verification_token_hash", "verification_token_expiry"),
    TokenPurpose.RESET: ("reset_token_hash", "reset_token_expiry"),
}

DEFAULT_TTLS = {
    TokenPurpose.VERIFICATION: timedelta(hours=24),
    TokenPurpose.RESET: timedelta(minutes=10),
}


@dataclass(frozen=True)
class IssuedToken:
    """A freshly minted token. ``plaintext`` is only ever held here."""

    purpose: TokenPurpose
    plaintext: str
    digest: str
    expires_at: datetime


def hash_token(plaintext: str) -> str:
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


class TokenManager:
    """Issue and consume tokens stored as SHA-256 digests on the user row.

    Each user has one slot per purpose, so issuing overwrites whatever
    token was there before. Expiry is checked lazily when a token is
    consumed.
    """

    def __init__(
        self,
        store: CredentialStore,
        ttls: Mapping[TokenPurpose, timedelta] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.ttls = dict(DEFAULT_TTLS)
        if ttls:
            self.ttls.update(ttls)
        self.clock = clock

    def generate(self, purpose: TokenPurpose) -> IssuedToken:
        plaintext = secrets.token_hex(TOKEN_BYTES)
        return IssuedToken(
            purpose=purpose,
            plaintext=plaintext,
            digest=hash_token(plaintext),
            expires_at=self.clock() + self.ttls[purpose],
        )

    def issue(self, user: User, purpose: TokenPurpose) -> IssuedToken:
        """Stamp a new token onto ``user``; the caller persists it."""

        token = self.generate(purpose)
        hash_field, expiry_field = _SLOTS[purpose]
        setattr(user, hash_field, token.digest)
        setattr(user, expiry_field, token.expires_at)
        return token

    def consume(self, purpose: TokenPurpose, plaintext: str) -> User:
        """Return the user whose live token for ``purpose`` matches ``plaintext``.

        The slot is left populated; callers apply their side effect and
        then :meth:`clear` it in the same save.
        """

        if not plaintext or len(plaintext) > MAX_TOKEN_LENGTH:
            current_app.logger.warning("Rejected malformed %s token", purpose.value)
            raise InvalidOrExpiredToken()

        hash_field, expiry_field = _SLOTS[purpose]
        user = self.store.find_by_token(
            hash_field, expiry_field, hash_token(plaintext), self.clock()
        )
        if user is None:
            current_app.logger.warning("Rejected invalid or expired %s token", purpose.value)
            raise InvalidOrExpiredToken()
        return user

    def clear(self, user: User, purpose: TokenPurpose) -> None:
        hash_field, expiry_field = _SLOTS[purpose]
        setattr(user, hash_field, None)
        setattr(user, expiry_field, None)

    def discard(self, user: User, purpose: TokenPurpose) -> None:
        """Clear and persist a slot, e.g. after a failed delivery."""

        self.store.rollback()
        user.discard_pending_password()
        self.clear(user, purpose)
        self.store.save(user)
