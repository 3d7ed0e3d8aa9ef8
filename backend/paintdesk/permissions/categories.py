# Overview: Operation category constants for grouping related operations.


class OperationCategory:
    """Operation categories for organization and UI display."""
    ORDERS = "ORDERS"
    CUSTOMERS = "CUSTOMERS"
    CATALOG = "CATALOG"
    USERS = "USERS"
