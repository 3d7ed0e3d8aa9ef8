# Overview: Flask API routes for staff user management; parses input and returns JSON responses.

"""
User management routes (admin only).

Users are never deleted. Deactivation revokes every session of the user
immediately; their id stays on the orders they created, approved or worked.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..errors import DomainError, ValidationError, error_response
from ..models import User
from ..models.auth import ROLE_ADMIN
from ..permissions import USER_MANAGE, list_operation_definitions
from ..services import auth_service, repository
from ..validation import ModelValidationPolicy, validate_payload
from ..decorators import require_auth, require_role


USER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "email", "full_name", "phone", "role"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_users_route():
    """
    List staff users.

    Query params:
    - include_inactive: bool (default false)
    - role: admin | user
    """
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"

    base_query = db.session.query(User)
    if not include_inactive:
        base_query = base_query.filter(User.is_active.is_(True))

    try:
        result = repository.list_records(
            User,
            g.principal,
            USER_MANAGE,
            filters={"role": request.args.get("role")},
            limit=request.args.get("limit", type=int),
            offset=request.args.get("offset", type=int),
            base_query=base_query,
        )
        return jsonify(result)
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list users")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.get("/permissions")
@require_auth
@require_role(ROLE_ADMIN)
def list_permissions_route():
    """
    List guarded operations and the scope each role holds for them.

    Query params:
    - category: ORDERS | CUSTOMERS | CATALOG | USERS
    """
    category = request.args.get("category") or None
    operations = list_operation_definitions(category)

    if category is not None and not operations:
        return error_response(ValidationError(f"Unknown category: {category}"))

    return jsonify({"operations": operations})


@users_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_user_route():
    """
    Create a staff user.

    Request body:
    {
        "username": "tech7",         // required
        "email": "tech7@shop.local", // required
        "password": "Secret123",     // required, 8+ chars, letter + digit
        "role": "user",              // admin | user (default user)
        "full_name": "...",          // optional
        "phone": "..."               // optional
    }
    """
    data = request.get_json(silent=True) or {}

    username = data.get("username")
    email = data.get("email")
    password = data.get("password")
    if not all([username, email, password]):
        return jsonify({"error": "username, email and password required", "kind": "ValidationError"}), 400

    try:
        user = auth_service.create_user(
            username,
            email,
            password,
            data.get("role") or "user",
            full_name=data.get("full_name"),
            phone=data.get("phone"),
        )
        return jsonify(user.to_dict()), 201

    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.get("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def get_user_route(user_id: int):
    try:
        return jsonify(repository.get(User, user_id).to_dict())
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load user %s", user_id)
        return jsonify({"error": "Internal server error"}), 500


@users_bp.patch("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_user_route(user_id: int):
    """Update profile fields (username, email, full_name, phone, role)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
        if user_id == g.principal.id and patch.get("role", ROLE_ADMIN) != ROLE_ADMIN:
            raise ValidationError("You cannot remove your own admin role")

        user = auth_service.update_user(user_id, patch)
        return jsonify(user.to_dict())

    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update user %s", user_id)
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("/<int:user_id>/deactivate")
@require_auth
@require_role(ROLE_ADMIN)
def deactivate_user_route(user_id: int):
    """Deactivate a user and revoke all their sessions."""
    if user_id == g.principal.id:
        return jsonify({"error": "You cannot deactivate your own account", "kind": "ValidationError"}), 400

    try:
        user = auth_service.set_user_active(user_id, False)
        return jsonify(user.to_dict())
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to deactivate user %s", user_id)
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("/<int:user_id>/activate")
@require_auth
@require_role(ROLE_ADMIN)
def activate_user_route(user_id: int):
    try:
        user = auth_service.set_user_active(user_id, True)
        return jsonify(user.to_dict())
    except DomainError as e:
        return error_response(e)
