# Overview: Generic entity repository; create/get/update/list over any model.

"""
Entity Repository

Mechanical persistence for every entity type. Holds no business rules beyond
uniqueness and foreign-key integrity: validation happens before (validation.py),
authorization and workflow rules around it (authorization_service,
workflow_service).

list_records() always runs the query through authorization_service.scope_query,
so a caller only ever gets the rows the role rule table lets them see.
"""

from __future__ import annotations

from sqlalchemy import Integer
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ConflictError, NotFound, ValidationError
from . import authorization_service
from .auth_service import Principal


DEFAULT_LIMIT = 100
MAX_LIMIT = 500


def _commit(model) -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(f"{model.__name__} violates a uniqueness or reference constraint") from exc


def create(model, patch: dict, **attrs):
    """Insert a new row from a validated patch plus server-side attributes."""
    record = model(**patch, **attrs)
    db.session.add(record)
    _commit(model)
    return record


def get(model, entity_id: int):
    record = db.session.get(model, entity_id)
    if record is None:
        raise NotFound(f"{getattr(model, 'entity_label', model.__name__)} {entity_id} not found")
    return record


def update(model, entity_id: int, patch: dict):
    record = get(model, entity_id)
    for key, value in patch.items():
        setattr(record, key, value)
    _commit(model)
    return record


def list_records(
    model,
    principal: Principal,
    operation: str,
    *,
    filters: dict | None = None,
    limit: int | None = None,
    offset: int | None = None,
    base_query=None,
) -> dict:
    """
    List rows visible to principal, newest first.

    filters: equality filters on model columns ({"status": "assigned"}).
    Returns {"items": [...], "count": total_visible, "limit": n, "offset": n}.
    """
    query = base_query if base_query is not None else db.session.query(model)
    query = authorization_service.scope_query(model, query, principal, operation)

    columns = {c.key: c for c in model.__mapper__.columns}
    for key, value in (filters or {}).items():
        if value is None or value == "":
            continue
        if key not in columns:
            raise ValidationError(f"Unknown filter: {key}")
        if isinstance(columns[key].type, Integer):
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{key} must be an integer")
        query = query.filter(getattr(model, key) == value)

    limit = min(limit or DEFAULT_LIMIT, MAX_LIMIT)
    offset = max(offset or 0, 0)

    total = query.count()
    rows = query.order_by(model.id.desc()).limit(limit).offset(offset).all()

    return {
        "items": [r.to_dict() for r in rows],
        "count": total,
        "limit": limit,
        "offset": offset,
    }
