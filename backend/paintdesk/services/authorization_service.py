# Overview: Authorization guard; applies the role rule table to records and queries.

"""
Authorization Guard

WHY: One place decides "may this caller do X to that record", and the same
rule is applied as a SQL filter when listing, so a technician or customer can
never see rows they could not open individually.

The decision itself is permissions.allow() (pure, stateless). This module
adapts it to model instances and queries, and turns a "no" into Forbidden.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import Forbidden
from ..permissions import Ownership, Scope, allow, get_scope
from .auth_service import Principal


def ownership_of(record) -> Ownership:
    """Read ownership columns declared by the model's __ownership__ mapping."""
    mapping = getattr(type(record), "__ownership__", {})
    return Ownership(
        created_by=getattr(record, mapping["created_by"]) if "created_by" in mapping else None,
        assigned_to=getattr(record, mapping["assigned_to"]) if "assigned_to" in mapping else None,
        customer_id=getattr(record, mapping["customer_id"]) if "customer_id" in mapping else None,
        status=getattr(record, "status", None) if hasattr(record, "approval_status") else None,
    )


def can(principal: Principal, operation: str, record=None, *, ownership: Ownership | None = None) -> bool:
    if ownership is None and record is not None:
        ownership = ownership_of(record)
    return allow(principal.role, operation, ownership, principal.id)


def require(principal: Principal, operation: str, record=None, *, ownership: Ownership | None = None) -> None:
    """Raise Forbidden unless principal may perform operation (on record)."""
    if not can(principal, operation, record, ownership=ownership):
        current_app.logger.info(
            "Forbidden: %s %s (id=%s) attempted %s on %s",
            principal.role,
            principal.username,
            principal.id,
            operation,
            f"{type(record).__name__} {record.id}" if record is not None else "new resource",
        )
        raise Forbidden(f"Not permitted: {operation}")


def require_grant(principal: Principal, operation: str) -> None:
    """
    Raise Forbidden if principal's role has no grant for operation at all.

    Checked before a record is loaded, so a role that may never perform an
    operation learns nothing about which ids exist.
    """
    if get_scope(principal.role, operation) is None:
        current_app.logger.info(
            "Forbidden: %s %s (id=%s) attempted %s",
            principal.role,
            principal.username,
            principal.id,
            operation,
        )
        raise Forbidden(f"Not permitted: {operation}")


def scope_query(model, query, principal: Principal, operation: str):
    """
    Restrict query to rows principal may see for operation.

    ALL scope leaves the query untouched; OWN scopes become ownership
    filters; no grant at all raises Forbidden.
    """
    scope = get_scope(principal.role, operation)
    if scope is None:
        raise Forbidden(f"Not permitted: {operation}")
    if scope == Scope.ALL:
        return query

    mapping = getattr(model, "__ownership__", {})
    if principal.is_customer:
        if "customer_id" not in mapping:
            raise Forbidden(f"Not permitted: {operation}")
        return query.filter(getattr(model, mapping["customer_id"]) == principal.id)

    conditions = [
        getattr(model, mapping[key]) == principal.id
        for key in ("assigned_to", "created_by")
        if key in mapping
    ]
    if not conditions:
        raise Forbidden(f"Not permitted: {operation}")

    return query.filter(db.or_(*conditions))
