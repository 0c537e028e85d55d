"""Persistence gateway for user accounts and their password hashes."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from errors import AccountNotFound, DuplicateEmail, ValidationError
from models import db
from models.user import EMAIL_PATTERN, User, normalize_email, normalize_phone

MIN_PASSWORD_LENGTH = 8

_dummy_hash: Optional[str] = None


def _timing_dummy_hash() -> str:
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = generate_password_hash("timing-equalizer")
    return _dummy_hash


def validate_email(email: str) -> str:
    normalized = normalize_email(email)
    if not EMAIL_PATTERN.match(normalized):
        raise ValidationError(
            "Please include a valid email.",
            fields={"email": "Please include a valid email."},
        )
    return normalized


def validate_phone(phone: Optional[str]) -> Optional[str]:
    if phone is None or str(phone).strip() == "":
        return None
    digits = normalize_phone(str(phone))
    if len(digits) != 10:
        raise ValidationError(
            "Phone number must be exactly 10 digits long.",
            fields={"phone": "Please include a valid phone number."},
        )
    return digits


class CredentialStore:
    """Create, look up and persist users.

    Email uniqueness is enforced by the database constraint on the
    normalized column; the lookup in :meth:`create` only short-circuits
    the common case.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def find_by_email(self, email: str) -> Optional[User]:
        normalized = normalize_email(email)
        if not normalized:
            return None
        return self.session.execute(
            db.select(User).filter(db.func.lower(User.email) == normalized)
        ).scalar_one_or_none()

    def find_by_id(self, user_id) -> Optional[User]:
        if not user_id:
            return None
        return self.session.get(User, str(user_id))

    def get(self, user_id) -> User:
        """Like :meth:`find_by_id` but raises AccountNotFound for a missing user."""

        user = self.find_by_id(user_id)
        if user is None:
            raise AccountNotFound()
        return user

    def find_by_token(
        self, hash_field: str, expiry_field: str, digest: str, now: datetime
    ) -> Optional[User]:
        """Return the user holding ``digest`` in a slot that expires after ``now``."""

        hash_column = getattr(User, hash_field)
        expiry_column = getattr(User, expiry_field)
        return self.session.execute(
            db.select(User).filter(hash_column == digest, expiry_column > now)
        ).scalar_one_or_none()

    def create(
        self,
        name: str,
        email: str,
        plaintext_password: str,
        phone: Optional[str] = None,
    ) -> User:
        """Persist a new unverified user, hashing the password first."""

        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required.", fields={"name": "Name is required."})
        email = validate_email(email)
        phone = validate_phone(phone)
        self._check_password_length(plaintext_password)

        if self.find_by_email(email) is not None:
            raise DuplicateEmail()

        user = User(name=name, email=email, phone=phone, is_verified=False)
        user.password = plaintext_password
        return self.save(user)

    def save(self, user: User) -> User:
        """Persist pending mutations, re-hashing only a newly assigned password."""

        pending = user.pending_password
        if pending is not None:
            self._check_password_length(pending)
            user.set_password(pending)

        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if "email" in str(exc.orig).lower():
                raise DuplicateEmail() from exc
            raise
        return user

    def verify_password(self, user: Optional[User], candidate: str) -> bool:
        """Constant-time password check; hashes against a dummy when ``user`` is None."""

        if user is None:
            check_password_hash(_timing_dummy_hash(), candidate or "")
            return False
        return user.check_password(candidate or "")

    def rollback(self) -> None:
        self.session.rollback()

    @staticmethod
    def _check_password_length(password: Optional[str]) -> None:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            message = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
            raise ValidationError(message, fields={"password": message})
