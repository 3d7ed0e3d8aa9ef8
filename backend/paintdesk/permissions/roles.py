# Overview: Role rule table; which role may perform which operation, and on what scope.

"""
Role rules.

    | Role            | Approve | Assign | View all customers | Own records only                          |
    |-----------------|---------|--------|--------------------|-------------------------------------------|
    | admin           | yes     | yes    | yes                | n/a                                       |
    | user/technician | no      | no     | no                 | assigned_to == caller or created_by == caller |
    | customer        | no      | no     | no                 | customer_id == caller                     |

An operation missing from a role's table is forbidden for that role.
"""

from .definitions import (
    OPERATION_DEFINITIONS,
    ORDER_CREATE,
    ORDER_VIEW,
    ORDER_UPDATE,
    ORDER_START,
    ORDER_COMPLETE,
    ORDER_CANCEL,
    CUSTOMER_CREATE,
    CUSTOMER_VIEW,
    CUSTOMER_UPDATE,
    INTERACTION_CREATE,
    CATALOG_VIEW,
)


class Scope:
    ALL = "ALL"                # any record
    OWN = "OWN"                # records the caller owns (see helpers.owns)
    OWN_PENDING = "OWN_PENDING"  # owned records still in pending_approval


DEFAULT_ROLE_RULES = {
    "admin": {code: Scope.ALL for code, _name, _desc, _cat in OPERATION_DEFINITIONS},
    "user": {
        ORDER_CREATE: Scope.OWN,      # only for customers the technician owns
        ORDER_VIEW: Scope.OWN,
        ORDER_UPDATE: Scope.OWN_PENDING,
        ORDER_START: Scope.OWN,
        ORDER_COMPLETE: Scope.OWN,
        ORDER_CANCEL: Scope.OWN_PENDING,
        CUSTOMER_CREATE: Scope.ALL,
        CUSTOMER_VIEW: Scope.OWN,
        CUSTOMER_UPDATE: Scope.OWN,
        INTERACTION_CREATE: Scope.OWN,
        CATALOG_VIEW: Scope.ALL,
    },
    "customer": {
        ORDER_CREATE: Scope.OWN,
        ORDER_VIEW: Scope.OWN,
        ORDER_UPDATE: Scope.OWN_PENDING,
        ORDER_CANCEL: Scope.OWN_PENDING,
        CUSTOMER_VIEW: Scope.OWN,
        CATALOG_VIEW: Scope.ALL,
    },
}
