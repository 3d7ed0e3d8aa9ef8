# Overview: Flask API routes for customers, portal logins and interactions.

"""
Customer Routes

SECURITY: All routes require authentication.
- Admins see and edit every customer
- Technicians see customers they created or are assigned to
- Portal customers see only their own record
- Portal credentials are managed by admins only
- Interaction history is staff-internal
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import DomainError, Forbidden, ValidationError, error_response
from ..extensions import db
from ..models import Customer, CustomerInteraction, User
from ..models.auth import STAFF_ROLES
from ..permissions import (
    CUSTOMER_CREATE,
    CUSTOMER_MANAGE_LOGIN,
    CUSTOMER_UPDATE,
    CUSTOMER_VIEW,
    INTERACTION_CREATE,
)
from ..services import auth_service, authorization_service, repository
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_customer,
    enforce_rules_interaction,
)
from ..decorators import require_auth


CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "address", "company", "notes", "status"},
    required_on_create={"name"},
)

# Only admins decide who is responsible for a customer
ADMIN_CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields=CUSTOMER_POLICY.writable_fields | {"assigned_user_id"},
    required_on_create={"name"},
)

INTERACTION_POLICY = ModelValidationPolicy(
    writable_fields={"interaction_type", "description", "interaction_date", "follow_up_date", "status"},
    required_on_create={"interaction_type"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


def _customer_policy():
    return ADMIN_CUSTOMER_POLICY if g.principal.is_admin else CUSTOMER_POLICY


def _check_assignee(patch: dict) -> None:
    user_id = patch.get("assigned_user_id")
    if user_id is None:
        return
    user = db.session.get(User, user_id)
    if user is None or not user.is_active or user.role not in STAFF_ROLES:
        raise ValidationError(f"User {user_id} is not an active staff user")


def _load_customer(customer_id: int, operation: str) -> Customer:
    authorization_service.require_grant(g.principal, operation)
    customer = repository.get(Customer, customer_id)
    authorization_service.require(g.principal, operation, customer)
    return customer


@customers_bp.get("")
@require_auth
def list_customers_route():
    """
    List customers visible to the caller.

    Query params: status, assigned_user_id, limit, offset
    """
    try:
        result = repository.list_records(
            Customer,
            g.principal,
            CUSTOMER_VIEW,
            filters={
                "status": request.args.get("status"),
                "assigned_user_id": request.args.get("assigned_user_id"),
            },
            limit=request.args.get("limit", type=int),
            offset=request.args.get("offset", type=int),
        )
        return jsonify(result)
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list customers")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.post("")
@require_auth
def create_customer_route():
    """
    Register a customer. The caller becomes its creator (owner).

    Request body:
    {
        "name": "Acme Coatings",   // required
        "email": "...", "phone": "...", "address": "...",
        "company": "...", "notes": "...",
        "assigned_user_id": 7      // admin only
    }
    """
    payload = request.get_json(silent=True) or {}

    try:
        authorization_service.require_grant(g.principal, CUSTOMER_CREATE)
        patch = validate_payload(model=Customer, payload=payload, policy=_customer_policy(), partial=False)
        enforce_rules_customer(patch)
        _check_assignee(patch)

        customer = repository.create(Customer, patch, created_by=g.principal.id)
        current_app.logger.info("Customer %s created by user %s", customer.id, g.principal.id)
        return jsonify(customer.to_dict()), 201

    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    try:
        return jsonify(_load_customer(customer_id, CUSTOMER_VIEW).to_dict())
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load customer %s", customer_id)
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.patch("/<int:customer_id>")
@require_auth
def update_customer_route(customer_id: int):
    """
    Edit contact details.

    Deactivating a customer (status=inactive) also ends their portal sessions.
    """
    from ..services import session_service

    payload = request.get_json(silent=True) or {}

    try:
        _load_customer(customer_id, CUSTOMER_UPDATE)
        patch = validate_payload(model=Customer, payload=payload, policy=_customer_policy(), partial=True)
        enforce_rules_customer(patch)
        _check_assignee(patch)

        customer = repository.update(Customer, customer_id, patch)
        if not customer.is_active:
            session_service.revoke_all_sessions(customer_id=customer.id)
        return jsonify(customer.to_dict())

    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update customer %s", customer_id)
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.put("/<int:customer_id>/portal-login")
@require_auth
def set_portal_login_route(customer_id: int):
    """
    Grant or reset a customer's portal credentials.

    Request body: {"username": "acme", "password": "Portal123"}

    The username must be unique across staff users and customers.
    Existing portal sessions of the customer are revoked.
    """
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")
    if not username or not password:
        return jsonify({"error": "username and password required", "kind": "ValidationError"}), 400

    try:
        _load_customer(customer_id, CUSTOMER_MANAGE_LOGIN)
        customer = auth_service.set_customer_credentials(customer_id, username, password)
        current_app.logger.info("Portal login set for customer %s by user %s", customer_id, g.principal.id)
        return jsonify(customer.to_dict())

    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to set portal login for customer %s", customer_id)
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.get("/<int:customer_id>/interactions")
@require_auth
def list_interactions_route(customer_id: int):
    """Interaction history of one customer, newest first (staff only)."""
    try:
        if g.principal.is_customer:
            raise Forbidden("Not permitted: interaction history")
        _load_customer(customer_id, CUSTOMER_VIEW)

        interactions = (
            db.session.query(CustomerInteraction)
            .filter(CustomerInteraction.customer_id == customer_id)
            .order_by(CustomerInteraction.interaction_date.desc(), CustomerInteraction.id.desc())
            .all()
        )
        return jsonify({
            "items": [i.to_dict() for i in interactions],
            "count": len(interactions),
        })
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list interactions for customer %s", customer_id)
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.post("/<int:customer_id>/interactions")
@require_auth
def create_interaction_route(customer_id: int):
    """
    Log a contact with a customer.

    Request body:
    {
        "interaction_type": "call",   // call | visit | email | meeting | other
        "description": "...",
        "interaction_date": "2024-05-01T10:00:00Z",  // default now
        "follow_up_date": "2024-05-08",
        "status": "completed"         // planned | completed | cancelled
    }
    """
    payload = request.get_json(silent=True) or {}

    try:
        _load_customer(customer_id, INTERACTION_CREATE)
        patch = validate_payload(model=CustomerInteraction, payload=payload, policy=INTERACTION_POLICY, partial=False)
        enforce_rules_interaction(patch)

        interaction = repository.create(
            CustomerInteraction, patch, customer_id=customer_id, user_id=g.principal.id
        )
        return jsonify(interaction.to_dict()), 201

    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to log interaction for customer %s", customer_id)
        return jsonify({"error": "Internal server error"}), 500
