# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    CATALOG = "CATALOG"
    PARTIES = "PARTIES"
    PURCHASING = "PURCHASING"
    SALES = "SALES"
    ORGANIZATION = "ORGANIZATION"
    USERS = "USERS"
