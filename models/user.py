"""User model definition."""

import re
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import validates
from werkzeug.security import check_password_hash, generate_password_hash

from . import db


EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite hands back."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_email(raw_email: Optional[str]) -> str:
    """Strip whitespace and lower-case an email address."""

    return (raw_email or "").strip().lower()


def normalize_phone(raw_phone: Optional[str]) -> str:
    """Reduce a phone number to its digits, dropping a leading US country code."""

    digits = re.sub(r"\D", "", raw_phone or "")
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    return digits


def _new_id() -> str:
    return uuid.uuid4().hex


class User(db.Model):
    """Represents a registered account."""

    __tablename__ = "users"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(10), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    verification_token_hash = db.Column(db.String(64), nullable=True, index=True)
    verification_token_expiry = db.Column(db.DateTime, nullable=True)
    reset_token_hash = db.Column(db.String(64), nullable=True, index=True)
    reset_token_expiry = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @validates("email")
    def _normalize_email(self, key, value):
        return normalize_email(value)

    @validates("name")
    def _strip_name(self, key, value):
        return (value or "").strip()

    @property
    def password(self):
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, plaintext: str) -> None:
        # Hashed by CredentialStore.save; only a freshly assigned value is dirty.
        self._pending_password = plaintext

    @property
    def pending_password(self) -> Optional[str]:
        return getattr(self, "_pending_password", None)

    def discard_pending_password(self) -> None:
        self._pending_password = None

    def set_password(self, password: str) -> None:
        """Hash and store the password immediately."""

        self.password_hash = generate_password_hash(password)
        self._pending_password = None

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    def mark_verified(self) -> None:
        self.is_verified = True

    def mark_unverified(self) -> None:
        self.is_verified = False

    def to_public_dict(self) -> dict:
        """Projection safe to return to clients."""

        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "is_verified": self.is_verified,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
