"""Account services."""

from .accounts import AccountService, LoginResult, ProfileUpdate, get_account_service
from .auth_gate import current_user, resolve_caller, session_required
from .credential_store import CredentialStore
from .sessions import SessionIssuer
from .tokens import IssuedToken, TokenManager, TokenPurpose

__all__ = [
    "AccountService",
    "CredentialStore",
    "IssuedToken",
    "LoginResult",
    "ProfileUpdate",
    "SessionIssuer",
    "TokenManager",
    "TokenPurpose",
    "current_user",
    "get_account_service",
    "resolve_caller",
    "session_required",
]
