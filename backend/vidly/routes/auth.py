# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/vidly/routes/auth.py
"""
Session API routes

Tokens are issued by an administrator (flask users issue-token); these
routes let a client check or give up the token it holds.
"""

from flask import Blueprint, jsonify, current_app, g

from ..services import session_service
from ..decorators import require_auth, extract_token


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/validate")
@require_auth
def validate_route():
    """Return the user and session behind the presented token."""
    return jsonify({
        "user": g.current_user.to_dict(),
        "session": g.session_context.session.to_dict(),
        "valid": True
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the presented token."""
    try:
        session_service.revoke_session(extract_token(), reason="User logout")
        return jsonify({"message": "Logged out"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500
