# Overview: Flask API routes for workflow entities (paint orders, service requests).

"""
Workflow Routes

One blueprint per workflow entity, built by create_workflow_blueprint() so
paint orders and service requests expose the exact same lifecycle surface:

    POST   /api/<entity>                  submit (pending approval)
    GET    /api/<entity>                  list, scoped to the caller
    GET    /api/<entity>/<id>             read
    PATCH  /api/<entity>/<id>             edit descriptive fields
    PATCH  /api/<entity>/<id>/approve     admin
    PATCH  /api/<entity>/<id>/reject      admin, {"reason": "..."}
    PATCH  /api/<entity>/<id>/assign      admin, {"assigned_to": <user id>}
    PATCH  /api/<entity>/<id>/start       assignee
    PATCH  /api/<entity>/<id>/complete    assignee
    PATCH  /api/<entity>/<id>/cancel      admin, or owner while pending

SECURITY: All routes require authentication. Role grants are checked before
any record is loaded; ownership rules are checked against the loaded record.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import DomainError, ValidationError, error_response
from ..models import Customer, PaintOrder, ServiceRequest
from ..models.workflow import STATUS_CANCELLED
from ..permissions import (
    ORDER_APPROVE,
    ORDER_ASSIGN,
    ORDER_CANCEL,
    ORDER_COMPLETE,
    ORDER_CREATE,
    ORDER_REJECT,
    ORDER_START,
    ORDER_UPDATE,
    ORDER_VIEW,
)
from ..services import authorization_service, repository, workflow_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_paint_order,
    enforce_rules_service_request,
)
from ..decorators import require_auth


PAINT_ORDER_POLICY = ModelValidationPolicy(
    writable_fields={
        "paint_brand", "paint_type", "paint_color", "quantity", "unit",
        "payment_type", "order_date", "delivery_date", "notes",
    },
    required_on_create={"paint_type", "quantity"},
)

SERVICE_REQUEST_POLICY = ModelValidationPolicy(
    writable_fields={
        "service_type", "description", "priority", "request_date",
        "scheduled_date", "technician_notes",
    },
    required_on_create={"service_type", "description"},
)

# Admins may additionally annotate any entity
ADMIN_ONLY_FIELDS = {"admin_notes"}

LIST_FILTERS = ("status", "approval_status", "customer_id", "assigned_to", "created_by")


def _parse_id(data: dict, *keys) -> int:
    for key in keys:
        value = data.get(key)
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            break
        try:
            return int(value)
        except (TypeError, ValueError):
            break
    raise ValidationError(f"{keys[0]} must be an integer id")


def create_workflow_blueprint(name: str, model, url_prefix: str, policy: ModelValidationPolicy, enforce_rules):
    bp = Blueprint(name, __name__, url_prefix=url_prefix)
    label = model.entity_label.lower()

    admin_policy = ModelValidationPolicy(
        writable_fields=policy.writable_fields | ADMIN_ONLY_FIELDS,
        required_on_create=policy.required_on_create,
    )

    def _load(entity_id: int, operation: str):
        authorization_service.require_grant(g.principal, operation)
        entity = workflow_service.get_entity(model, entity_id)
        authorization_service.require(g.principal, operation, entity)
        return entity

    @bp.post("")
    @require_auth
    def submit_route():
        """
        Submit a new entity for a customer.

        Staff must name the customer ({"customer_id": 3, ...}); portal
        customers always submit for themselves.
        """
        principal = g.principal
        payload = dict(request.get_json(silent=True) or {})

        try:
            authorization_service.require_grant(principal, ORDER_CREATE)

            if principal.is_customer:
                payload.pop("customer_id", None)
                customer_id = principal.id
            else:
                customer_id = _parse_id(payload, "customer_id")
                payload.pop("customer_id", None)

            fields = validate_payload(model=model, payload=payload, policy=policy, partial=False)
            enforce_rules(fields)

            customer = repository.get(Customer, customer_id)
            authorization_service.require(principal, ORDER_CREATE, customer)

            entity = workflow_service.submit(
                model,
                customer_id=customer_id,
                created_by=None if principal.is_customer else principal.id,
                fields=fields,
            )
            return jsonify(entity.to_dict()), 201

        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to submit %s", label)
            return jsonify({"error": "Internal server error"}), 500

    @bp.get("")
    @require_auth
    def list_route():
        """
        List entities visible to the caller, newest first.

        Query params: status, approval_status, customer_id, assigned_to,
        created_by, limit (default 100, max 500), offset.
        """
        try:
            filters = {key: request.args.get(key) for key in LIST_FILTERS}
            result = repository.list_records(
                model,
                g.principal,
                ORDER_VIEW,
                filters=filters,
                limit=request.args.get("limit", type=int),
                offset=request.args.get("offset", type=int),
            )
            return jsonify(result)

        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to list %s entries", label)
            return jsonify({"error": "Internal server error"}), 500

    @bp.get("/<int:entity_id>")
    @require_auth
    def get_route(entity_id: int):
        try:
            entity = _load(entity_id, ORDER_VIEW)
            return jsonify(entity.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to load %s %s", label, entity_id)
            return jsonify({"error": "Internal server error"}), 500

    @bp.patch("/<int:entity_id>")
    @require_auth
    def update_route(entity_id: int):
        """
        Edit descriptive fields.

        Non-admins may only edit their own entities while pending approval.
        Lifecycle fields are never writable here; use the transition routes.
        """
        principal = g.principal
        payload = request.get_json(silent=True) or {}

        try:
            _load(entity_id, ORDER_UPDATE)
            patch = validate_payload(
                model=model,
                payload=payload,
                policy=admin_policy if principal.is_admin else policy,
                partial=True,
            )
            enforce_rules(patch)

            entity = workflow_service.update_details(
                model, entity_id, patch, only_if_pending=not principal.is_admin
            )
            return jsonify(entity.to_dict())

        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to update %s %s", label, entity_id)
            return jsonify({"error": "Internal server error"}), 500

    @bp.patch("/<int:entity_id>/approve")
    @require_auth
    def approve_route(entity_id: int):
        try:
            _load(entity_id, ORDER_APPROVE)
            entity = workflow_service.approve(model, entity_id, g.principal.id)
            return jsonify(entity.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to approve %s %s", label, entity_id)
            return jsonify({"error": "Internal server error"}), 500

    @bp.patch("/<int:entity_id>/reject")
    @require_auth
    def reject_route(entity_id: int):
        """Request body: {"reason": "no stock"}"""
        data = request.get_json(silent=True) or {}
        reason = data.get("reason") or data.get("rejection_reason")

        try:
            _load(entity_id, ORDER_REJECT)
            entity = workflow_service.reject(model, entity_id, g.principal.id, reason)
            return jsonify(entity.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to reject %s %s", label, entity_id)
            return jsonify({"error": "Internal server error"}), 500

    @bp.patch("/<int:entity_id>/assign")
    @require_auth
    def assign_route(entity_id: int):
        """Request body: {"assigned_to": <staff user id>}"""
        data = request.get_json(silent=True) or {}

        try:
            _load(entity_id, ORDER_ASSIGN)
            worker_id = _parse_id(data, "assigned_to", "user_id")
            entity = workflow_service.assign(model, entity_id, g.principal.id, worker_id)
            return jsonify(entity.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to assign %s %s", label, entity_id)
            return jsonify({"error": "Internal server error"}), 500

    @bp.patch("/<int:entity_id>/start")
    @require_auth
    def start_route(entity_id: int):
        try:
            _load(entity_id, ORDER_START)
            entity = workflow_service.start(model, entity_id, g.principal.id)
            return jsonify(entity.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to start %s %s", label, entity_id)
            return jsonify({"error": "Internal server error"}), 500

    @bp.patch("/<int:entity_id>/complete")
    @require_auth
    def complete_route(entity_id: int):
        try:
            _load(entity_id, ORDER_COMPLETE)
            entity = workflow_service.complete(model, entity_id, g.principal.id)
            return jsonify(entity.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to complete %s %s", label, entity_id)
            return jsonify({"error": "Internal server error"}), 500

    @bp.patch("/<int:entity_id>/cancel")
    @require_auth
    def cancel_route(entity_id: int):
        principal = g.principal

        try:
            authorization_service.require_grant(principal, ORDER_CANCEL)
            entity = workflow_service.get_entity(model, entity_id)
            if entity.status == STATUS_CANCELLED:
                # Repeat cancel by anyone who may see the entity is a no-op
                authorization_service.require(principal, ORDER_VIEW, entity)
                return jsonify(entity.to_dict())
            authorization_service.require(principal, ORDER_CANCEL, entity)

            entity = workflow_service.cancel(
                model,
                entity_id,
                user_id=None if principal.is_customer else principal.id,
                customer_id=principal.id if principal.is_customer else None,
                only_if_pending=not principal.is_admin,
            )
            return jsonify(entity.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to cancel %s %s", label, entity_id)
            return jsonify({"error": "Internal server error"}), 500

    return bp


paint_orders_bp = create_workflow_blueprint(
    "paint_orders", PaintOrder, "/api/paint-orders", PAINT_ORDER_POLICY, enforce_rules_paint_order
)
service_requests_bp = create_workflow_blueprint(
    "service_requests", ServiceRequest, "/api/service-requests", SERVICE_REQUEST_POLICY, enforce_rules_service_request
)
