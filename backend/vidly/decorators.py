# Overview: Request decorators for API routes.

import logging
from functools import wraps
from flask import request, jsonify, g

from .services import session_service


logger = logging.getLogger(__name__)

# Header used by older clients that do not send Authorization
LEGACY_TOKEN_HEADER = "x-auth-token"


def extract_token() -> str | None:
    """
    Bearer token from the Authorization header, else x-auth-token.

    Returns None when neither header carries a non-empty token.
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        return token or None

    token = request.headers.get(LEGACY_TOKEN_HEADER, "").strip()
    return token or None


def require_auth(f):
    """
    Require a valid session token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 before the view runs if:
    - No credential header (or an empty one)
    - Invalid, expired or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = extract_token()

        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)

        if not context:
            logger.warning("Rejected credential for %s %s from %s", request.method, request.path, request.remote_addr)
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function
