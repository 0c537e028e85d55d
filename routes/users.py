"""User blueprint for profile and password management."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from services import current_user, get_account_service, session_required
from utils.request_validation import get_string, parse_json_request

users_bp = Blueprint("users", __name__)


@users_bp.route("/profile", methods=["GET"])
@session_required
def get_profile():
    """Return the authenticated user's profile."""

    return jsonify({"success": True, "user": current_user().to_public_dict()})


@users_bp.route("/profile", methods=["PUT"])
@session_required
def update_profile():
    """Update the display name and/or email address.

    Changing the email marks the account unverified and sends a new
    verification link to the new address.
    """

    payload = parse_json_request(request)
    result = get_account_service().update_profile(
        current_user(),
        name=get_string(payload, "name") or None,
        email=get_string(payload, "email") or None,
    )

    if result.verification_sent:
        message = "Profile updated. Please check your email to verify your new email address."
    else:
        message = "Profile updated."

    return jsonify(
        {
            "success": True,
            "message": message,
            "user": result.user.to_public_dict(),
        }
    )


@users_bp.route("/password", methods=["PUT"])
@session_required
def change_password():
    """Change the password after confirming the current one."""

    payload = parse_json_request(request, allow_empty=True)
    get_account_service().change_password(
        current_user(),
        get_string(payload, "currentPassword"),
        get_string(payload, "newPassword"),
    )
    return jsonify({"success": True, "message": "Password updated successfully."})
