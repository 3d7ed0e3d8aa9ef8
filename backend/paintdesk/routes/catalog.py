# Overview: Flask API routes for the catalog (paint types, machines).

"""
Catalog Routes

SECURITY: All routes require authentication.
- Every role may browse (CATALOG_VIEW)
- Create/update require CATALOG_MANAGE (admins)

Catalog rows are never deleted; retire them with status=inactive.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import DomainError, error_response
from ..models import Machine, PaintType
from ..permissions import CATALOG_MANAGE, CATALOG_VIEW
from ..services import authorization_service, repository
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_machine,
    enforce_rules_paint_type,
)
from ..decorators import require_auth


PAINT_TYPE_POLICY = ModelValidationPolicy(
    writable_fields={"brand", "type", "color", "unit", "price", "stock_quantity", "description", "status"},
    required_on_create={"brand", "type", "color"},
)

MACHINE_POLICY = ModelValidationPolicy(
    writable_fields={
        "machine_type", "machine_name", "brand", "model", "category", "price",
        "status", "production_year", "machine_condition", "description", "images",
    },
    required_on_create={"machine_type", "machine_name", "brand", "category", "price"},
)


def create_catalog_blueprint(name: str, model, url_prefix: str, policy, enforce_rules, list_filters):
    bp = Blueprint(name, __name__, url_prefix=url_prefix)

    @bp.get("")
    @require_auth
    def list_route():
        try:
            result = repository.list_records(
                model,
                g.principal,
                CATALOG_VIEW,
                filters={key: request.args.get(key) for key in list_filters},
                limit=request.args.get("limit", type=int),
                offset=request.args.get("offset", type=int),
            )
            return jsonify(result)
        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to list %s", name)
            return jsonify({"error": "Internal server error"}), 500

    @bp.post("")
    @require_auth
    def create_route():
        payload = request.get_json(silent=True) or {}

        try:
            authorization_service.require_grant(g.principal, CATALOG_MANAGE)
            patch = validate_payload(model=model, payload=payload, policy=policy, partial=False)
            enforce_rules(patch)

            record = repository.create(model, patch, created_by=g.principal.id)
            return jsonify(record.to_dict()), 201

        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to create %s", name)
            return jsonify({"error": "Internal server error"}), 500

    @bp.get("/<int:record_id>")
    @require_auth
    def get_route(record_id: int):
        try:
            authorization_service.require_grant(g.principal, CATALOG_VIEW)
            return jsonify(repository.get(model, record_id).to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to load %s %s", name, record_id)
            return jsonify({"error": "Internal server error"}), 500

    @bp.patch("/<int:record_id>")
    @require_auth
    def update_route(record_id: int):
        payload = request.get_json(silent=True) or {}

        try:
            authorization_service.require_grant(g.principal, CATALOG_MANAGE)
            patch = validate_payload(model=model, payload=payload, policy=policy, partial=True)
            enforce_rules(patch)

            record = repository.update(model, record_id, patch)
            return jsonify(record.to_dict())

        except DomainError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to update %s %s", name, record_id)
            return jsonify({"error": "Internal server error"}), 500

    return bp


paint_types_bp = create_catalog_blueprint(
    "paint_types", PaintType, "/api/paint-types", PAINT_TYPE_POLICY, enforce_rules_paint_type,
    ("brand", "type", "color", "status"),
)
machines_bp = create_catalog_blueprint(
    "machines", Machine, "/api/machines", MACHINE_POLICY, enforce_rules_machine,
    ("machine_type", "brand", "category", "status"),
)
