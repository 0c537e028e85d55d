"""Authentication blueprint: registration, verification, sessions and recovery."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, jsonify, request

from extensions import limiter, token_request_rate_limit
from services import current_user, get_account_service, session_required
from services.sessions import SessionIssuer
from utils.request_validation import get_string, parse_json_request

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Register a new user and email them a verification link."""
    payload = parse_json_request(request, required_keys=("name", "email", "password"))
    user = get_account_service().register(
        name=get_string(payload, "name"),
        email=get_string(payload, "email"),
        password=get_string(payload, "password"),
        phone=get_string(payload, "phone") or None,
    )

    return (
        jsonify(
            {
                "success": True,
                "message": "User registered. Verification email sent.",
                "user": user.to_public_dict(),
            }
        ),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/verify-email/<token>", methods=["GET"])
def verify_email(token: str) -> tuple:
    """Consume an email verification token."""
    get_account_service().verify_email(token)
    return (
        jsonify(
            {
                "success": True,
                "message": "Email verified successfully. You can now log in.",
            }
        ),
        HTTPStatus.OK,
    )


@auth_bp.route("/resend-verification", methods=["POST"])
@limiter.limit(token_request_rate_limit)
def resend_verification() -> tuple:
    """Send a fresh verification link to an unverified address."""
    payload = parse_json_request(request, required_keys=("email",))
    get_account_service().resend_verification(get_string(payload, "email"))
    return (
        jsonify(
            {
                "success": True,
                "message": "If that account needs verification, an email has been sent.",
            }
        ),
        HTTPStatus.OK,
    )


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a user, returning the session token and setting its cookie."""
    payload = parse_json_request(request, required_keys=("email", "password"))
    result = get_account_service().login(
        get_string(payload, "email"), get_string(payload, "password")
    )

    response = jsonify(
        {
            "success": True,
            "token": result.token,
            "expires_at": result.expires_at.isoformat() + "Z",
            "user": result.user.to_public_dict(),
        }
    )
    SessionIssuer().attach(response, result.token)
    return response, HTTPStatus.OK


@auth_bp.route("/me", methods=["GET"])
@session_required
def me() -> tuple:
    """Return the authenticated user's public profile."""
    return jsonify({"success": True, "user": current_user().to_public_dict()}), HTTPStatus.OK


@auth_bp.route("/logout", methods=["GET"])
def logout() -> tuple:
    """Clear the session cookie."""
    response = jsonify({"success": True, "message": "User logged out."})
    SessionIssuer().detach(response)
    return response, HTTPStatus.OK


@auth_bp.route("/forgot-password", methods=["POST"])
@limiter.limit(token_request_rate_limit)
def forgot_password() -> tuple:
    """Email a password reset link; answers the same way for unknown emails."""
    payload = parse_json_request(request, required_keys=("email",))
    get_account_service().forgot_password(get_string(payload, "email"))
    return (
        jsonify(
            {
                "success": True,
                "message": "If that email is registered, a password reset email has been sent.",
            }
        ),
        HTTPStatus.OK,
    )


@auth_bp.route("/reset-password/<token>", methods=["PUT"])
def reset_password(token: str) -> tuple:
    """Set a new password using a reset token."""
    payload = parse_json_request(request, required_keys=("password",))
    get_account_service().reset_password(token, get_string(payload, "password"))
    return (
        jsonify(
            {
                "success": True,
                "message": "Password reset successful. You can now log in with your new password.",
            }
        ),
        HTTPStatus.OK,
    )
