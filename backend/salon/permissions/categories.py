# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    VISITS = "VISITS"
    CUSTOMERS = "CUSTOMERS"
    CATALOG = "CATALOG"
    STAFF = "STAFF"
    REPORTS = "REPORTS"
