# Overview: Fixed role -> permission mapping.

from ..models import ROLE_ADMIN, ROLE_EMPLOYEE
from .definitions import PERMISSION_DEFINITIONS


EMPLOYEE_PERMISSIONS = frozenset({
    "RECORD_VISIT",
    "VIEW_OWN_VISITS",
    "LOOKUP_CUSTOMERS",
    "VIEW_CATALOG",
    "VIEW_STAFF",
    "VIEW_OWN_DASHBOARD",
})

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: frozenset(perm[0] for perm in PERMISSION_DEFINITIONS),
    ROLE_EMPLOYEE: EMPLOYEE_PERMISSIONS,
}
