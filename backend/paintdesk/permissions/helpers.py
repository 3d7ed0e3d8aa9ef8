# Overview: Stateless authorization decision and operation lookups.

from __future__ import annotations

from dataclasses import dataclass

from .definitions import OPERATION_DEFINITIONS
from .roles import DEFAULT_ROLE_RULES, Scope


PENDING_STATUS = "pending_approval"


@dataclass(frozen=True)
class Ownership:
    """Ownership facts of one resource, as far as the guard cares."""
    created_by: int | None = None
    assigned_to: int | None = None
    customer_id: int | None = None
    status: str | None = None


def get_scope(role: str, operation: str) -> str | None:
    """Scope granted to role for operation, or None if not granted at all."""
    return DEFAULT_ROLE_RULES.get(role, {}).get(operation)


def owns(role: str, ownership: Ownership, caller_id: int) -> bool:
    if role == "customer":
        return ownership.customer_id is not None and ownership.customer_id == caller_id
    return caller_id is not None and caller_id in (ownership.assigned_to, ownership.created_by)


def allow(role: str, operation: str, ownership: Ownership | None, caller_id: int | None) -> bool:
    """
    Decide whether caller (role, caller_id) may perform operation on a resource.

    ownership may be None for operations that do not target an existing
    record; only ALL-scoped grants pass in that case.
    """
    scope = get_scope(role, operation)
    if scope is None:
        return False
    if scope == Scope.ALL:
        return True
    if ownership is None or not owns(role, ownership, caller_id):
        return False
    if scope == Scope.OWN_PENDING:
        return ownership.status in (None, PENDING_STATUS)
    return True


def get_all_operation_codes():
    """Get list of all operation codes."""
    return [op[0] for op in OPERATION_DEFINITIONS]


def get_operation_definition(code):
    """Get full definition for an operation code, with each role's scope."""
    for op in OPERATION_DEFINITIONS:
        if op[0] == code:
            return {
                "code": op[0],
                "name": op[1],
                "description": op[2],
                "category": op[3],
                "scopes": {role: rules.get(code) for role, rules in DEFAULT_ROLE_RULES.items()},
            }
    return None


def list_operation_definitions(category=None):
    """All operation definitions, optionally narrowed to one category."""
    return [
        get_operation_definition(code)
        for code, _name, _desc, op_category in OPERATION_DEFINITIONS
        if category is None or op_category == category
    ]
