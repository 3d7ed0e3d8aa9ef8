# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

SECURITY FEATURES:
- Staff users and portal customers share one login endpoint
- Unknown identity and wrong password are indistinguishable (401 InvalidCredentials)
- Session tokens are returned once and stored only as SHA-256 hashes
- Logout deletes the session row; the token is dead immediately
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import DomainError, ValidationError, error_response
from ..services import auth_service
from ..services import session_service
from ..decorators import bearer_token, require_auth
from ..models.auth import STAFF_ROLES
from paintdesk.time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate a staff user or portal customer and create a session token.

    Request body: {"username": "...", "password": "..."}
    (staff users may also log in with their email)

    Returns:
        {token, user, session, expires_at}
    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON payload")
        identity = data.get("username") or data.get("email")
        password = data.get("password")

        if not identity or not password:
            raise ValidationError("username and password required")
        if not isinstance(identity, str) or not isinstance(password, str):
            raise ValidationError("username and password must be strings")

        principal = auth_service.authenticate(identity, password)
        session, token = session_service.create_session(principal)

        current_app.logger.info("Login: %s %s (id=%s)", principal.role, principal.username, principal.id)

        return jsonify({
            "token": token,
            "user": principal.to_dict(),
            "session": session.to_dict(),
            "expires_at": to_utc_z(session.expires_at),
        }), 200

    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to login")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke the presented session token.

    Expects Authorization header: Bearer <token>

    Idempotent: logging out an already revoked or expired token still
    answers 200. Only a missing header is rejected.
    """
    try:
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required", "kind": "SessionInvalid"}), 401

        session_service.revoke_session(token)
        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current identity and session expiry."""
    session = g.session_context.session
    return jsonify({
        "user": g.principal.to_dict(),
        "expires_at": to_utc_z(session.expires_at),
    })


@auth_bp.post("/logout-all")
@require_auth
def logout_all_route():
    """Revoke every session of the caller (all devices)."""
    try:
        principal = g.principal
        if principal.is_customer:
            revoked = session_service.revoke_all_sessions(customer_id=principal.id)
        else:
            revoked = session_service.revoke_all_sessions(user_id=principal.id)
        return jsonify({"message": "All sessions revoked", "revoked": revoked}), 200

    except Exception:
        current_app.logger.exception("Failed to revoke all sessions")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/change-password")
@require_auth
def change_password_route():
    """
    Change the caller's password.

    Request body: {"current_password": "...", "new_password": "..."}

    Staff only; customer portal passwords are reset by staff through
    PUT /api/customers/<id>/portal-login. All sessions are revoked, so the
    client must log in again.
    """
    principal = g.principal
    if principal.role not in STAFF_ROLES:
        return jsonify({"error": "Permission denied", "kind": "Forbidden"}), 403

    data = request.get_json(silent=True) or {}
    current_password = data.get("current_password")
    new_password = data.get("new_password")
    if not current_password or not new_password:
        return jsonify({"error": "current_password and new_password required", "kind": "ValidationError"}), 400

    try:
        auth_service.change_password(principal.id, current_password, new_password)
        return jsonify({"message": "Password changed; please log in again"}), 200

    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to change password")
        return jsonify({"error": "Internal server error"}), 500
