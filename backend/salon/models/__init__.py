from .auth import Profile, SessionToken, ROLE_ADMIN, ROLE_EMPLOYEE, ROLES
from .catalog import ServiceCategory, Service
from .visits import Visit, VisitService, PAYMENT_METHODS, PAYMENT_STATUSES, UNKNOWN_LABEL

__all__ = [
    'Profile', 'SessionToken', 'ROLE_ADMIN', 'ROLE_EMPLOYEE', 'ROLES',
    'ServiceCategory', 'Service',
    'Visit', 'VisitService', 'PAYMENT_METHODS', 'PAYMENT_STATUSES', 'UNKNOWN_LABEL',
]
