# Overview: Authorization rule package.
# Re-exports operation codes, the role rule table and the decision function.

from .categories import OperationCategory
from .definitions import (
    OPERATION_DEFINITIONS,
    ORDER_CREATE,
    ORDER_VIEW,
    ORDER_UPDATE,
    ORDER_APPROVE,
    ORDER_REJECT,
    ORDER_ASSIGN,
    ORDER_START,
    ORDER_COMPLETE,
    ORDER_CANCEL,
    CUSTOMER_CREATE,
    CUSTOMER_VIEW,
    CUSTOMER_UPDATE,
    CUSTOMER_MANAGE_LOGIN,
    INTERACTION_CREATE,
    CATALOG_VIEW,
    CATALOG_MANAGE,
    USER_MANAGE,
)
from .roles import DEFAULT_ROLE_RULES, Scope
from .helpers import (
    Ownership,
    allow,
    get_scope,
    owns,
    get_all_operation_codes,
    get_operation_definition,
    list_operation_definitions,
)

__all__ = [
    "OperationCategory",
    "OPERATION_DEFINITIONS",
    "ORDER_CREATE",
    "ORDER_VIEW",
    "ORDER_UPDATE",
    "ORDER_APPROVE",
    "ORDER_REJECT",
    "ORDER_ASSIGN",
    "ORDER_START",
    "ORDER_COMPLETE",
    "ORDER_CANCEL",
    "CUSTOMER_CREATE",
    "CUSTOMER_VIEW",
    "CUSTOMER_UPDATE",
    "CUSTOMER_MANAGE_LOGIN",
    "INTERACTION_CREATE",
    "CATALOG_VIEW",
    "CATALOG_MANAGE",
    "USER_MANAGE",
    "DEFAULT_ROLE_RULES",
    "Scope",
    "Ownership",
    "allow",
    "get_scope",
    "owns",
    "get_all_operation_codes",
    "get_operation_definition",
    "list_operation_definitions",
]
