# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- VISITS --

VISIT_PERMISSIONS = [
    (
        "RECORD_VISIT",
        "Record Visit",
        "Record a walk-in visit with its services and payment",
        PermissionCategory.VISITS,
    ),
    (
        "VIEW_OWN_VISITS",
        "View Own Visits",
        "View visits recorded by the current staff member",
        PermissionCategory.VISITS,
    ),
    (
        "VIEW_ALL_VISITS",
        "View All Visits",
        "View visits recorded by any staff member",
        PermissionCategory.VISITS,
    ),
    (
        "MANAGE_VISITS",
        "Manage Visits",
        "Edit customer details and payment status of recorded visits",
        PermissionCategory.VISITS,
    ),
]


# -- CUSTOMERS --

CUSTOMER_PERMISSIONS = [
    (
        "LOOKUP_CUSTOMERS",
        "Lookup Customers",
        "Suggest existing customers by phone while entering a visit",
        PermissionCategory.CUSTOMERS,
    ),
    (
        "VIEW_CUSTOMERS",
        "View Customers",
        "View customer spend summaries and visit history",
        PermissionCategory.CUSTOMERS,
    ),
]


# -- CATALOG --

CATALOG_PERMISSIONS = [
    (
        "VIEW_CATALOG",
        "View Catalog",
        "View active services and categories",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_CATALOG",
        "Manage Catalog",
        "Create, edit and deactivate services and categories",
        PermissionCategory.CATALOG,
    ),
]


# -- STAFF --

STAFF_PERMISSIONS = [
    (
        "VIEW_STAFF",
        "View Staff",
        "List active staff for service assignment",
        PermissionCategory.STAFF,
    ),
    (
        "MANAGE_STAFF",
        "Manage Staff",
        "Edit staff roles and activate or deactivate staff",
        PermissionCategory.STAFF,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_OWN_DASHBOARD",
        "View Own Dashboard",
        "View today's visit count and revenue for own visits",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_REPORTS",
        "View Reports",
        "View sales, staff, service, payment and retention reports",
        PermissionCategory.REPORTS,
    ),
]


PERMISSION_DEFINITIONS = (
    VISIT_PERMISSIONS
    + CUSTOMER_PERMISSIONS
    + CATALOG_PERMISSIONS
    + STAFF_PERMISSIONS
    + REPORT_PERMISSIONS
)
