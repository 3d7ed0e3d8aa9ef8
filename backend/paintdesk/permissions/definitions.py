# Overview: All guarded operations organized by category.
# Each operation is defined as: (code, name, description, category)

from .categories import OperationCategory


# -- WORKFLOW ENTITIES (paint orders, service requests) --

ORDER_CREATE = "ORDER_CREATE"
ORDER_VIEW = "ORDER_VIEW"
ORDER_UPDATE = "ORDER_UPDATE"
ORDER_APPROVE = "ORDER_APPROVE"
ORDER_REJECT = "ORDER_REJECT"
ORDER_ASSIGN = "ORDER_ASSIGN"
ORDER_START = "ORDER_START"
ORDER_COMPLETE = "ORDER_COMPLETE"
ORDER_CANCEL = "ORDER_CANCEL"

ORDER_OPERATIONS = [
    (ORDER_CREATE, "Create Order", "Submit a paint order or service request for a customer", OperationCategory.ORDERS),
    (ORDER_VIEW, "View Order", "Read orders and requests", OperationCategory.ORDERS),
    (ORDER_UPDATE, "Edit Order", "Edit descriptive fields of an order", OperationCategory.ORDERS),
    (ORDER_APPROVE, "Approve Order", "Approve a pending order (pending -> approved)", OperationCategory.ORDERS),
    (ORDER_REJECT, "Reject Order", "Reject a pending order (pending -> rejected)", OperationCategory.ORDERS),
    (ORDER_ASSIGN, "Assign Order", "Delegate an approved order to a technician", OperationCategory.ORDERS),
    (ORDER_START, "Start Order", "Mark assigned work as in progress", OperationCategory.ORDERS),
    (ORDER_COMPLETE, "Complete Order", "Mark assigned work as completed", OperationCategory.ORDERS),
    (ORDER_CANCEL, "Cancel Order", "Cancel an order that is not completed", OperationCategory.ORDERS),
]


# -- CUSTOMERS --

CUSTOMER_CREATE = "CUSTOMER_CREATE"
CUSTOMER_VIEW = "CUSTOMER_VIEW"
CUSTOMER_UPDATE = "CUSTOMER_UPDATE"
CUSTOMER_MANAGE_LOGIN = "CUSTOMER_MANAGE_LOGIN"
INTERACTION_CREATE = "INTERACTION_CREATE"

CUSTOMER_OPERATIONS = [
    (CUSTOMER_CREATE, "Create Customer", "Register a new customer", OperationCategory.CUSTOMERS),
    (CUSTOMER_VIEW, "View Customer", "Read customer records and their interactions", OperationCategory.CUSTOMERS),
    (CUSTOMER_UPDATE, "Edit Customer", "Edit customer contact details", OperationCategory.CUSTOMERS),
    (CUSTOMER_MANAGE_LOGIN, "Manage Portal Login", "Grant or reset a customer's portal credentials", OperationCategory.CUSTOMERS),
    (INTERACTION_CREATE, "Log Interaction", "Record a call, visit or other contact", OperationCategory.CUSTOMERS),
]


# -- CATALOG (paint types, machines) --

CATALOG_VIEW = "CATALOG_VIEW"
CATALOG_MANAGE = "CATALOG_MANAGE"

CATALOG_OPERATIONS = [
    (CATALOG_VIEW, "View Catalog", "Browse paint types and machines", OperationCategory.CATALOG),
    (CATALOG_MANAGE, "Manage Catalog", "Create and edit paint types and machines", OperationCategory.CATALOG),
]


# -- USERS --

USER_MANAGE = "USER_MANAGE"

USER_OPERATIONS = [
    (USER_MANAGE, "Manage Users", "Create, edit and deactivate staff accounts", OperationCategory.USERS),
]


OPERATION_DEFINITIONS = (
    ORDER_OPERATIONS
    + CUSTOMER_OPERATIONS
    + CATALOG_OPERATIONS
    + USER_OPERATIONS
)
