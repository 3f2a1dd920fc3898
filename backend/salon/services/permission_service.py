# Overview: Service-layer operations for permission; encapsulates capability checks.

"""
Role Capability Checks

Every operation is gated by one capability check against the current
session's role, evaluated once per request. Roles map to a fixed permission
set (see salon.permissions.roles); there are no per-user overrides.

Row visibility for visits is expressed through AccessContext: admins see
every visit, employees only the visits they recorded.
"""

import logging
from dataclasses import dataclass

from ..models import Profile, ROLE_ADMIN
from ..permissions import get_role_permissions, validate_permission_code


logger = logging.getLogger(__name__)


class PermissionDeniedError(Exception):
    """Raised when a profile lacks a required permission."""
    pass


@dataclass(frozen=True)
class AccessContext:
    """
    Request-scoped identity used by services for attribution and row scoping.

    Built once from the validated session; services never read Flask's g.
    """
    profile_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def permissions(self) -> frozenset[str]:
        return get_role_permissions(self.role)

    def can(self, permission_code: str) -> bool:
        return permission_code in self.permissions

    @classmethod
    def for_profile(cls, profile: Profile) -> "AccessContext":
        return cls(profile_id=profile.id, role=profile.role)


def get_profile_permissions(profile: Profile) -> set[str]:
    """Permission codes the profile holds through its role."""
    if not profile or not profile.active:
        return set()
    return set(get_role_permissions(profile.role))


def require_permission(access: AccessContext, permission_code: str, resource: str | None = None) -> None:
    """
    Raise PermissionDeniedError unless the access context holds the permission.

    Denials are logged; grants are not.
    """
    if not validate_permission_code(permission_code):
        raise ValueError(f"Unknown permission code: {permission_code}")

    if access.can(permission_code):
        return

    logger.warning(
        "Permission denied: profile=%s role=%s permission=%s resource=%s",
        access.profile_id,
        access.role,
        permission_code,
        resource,
    )
    raise PermissionDeniedError(f"Missing permission: {permission_code}")
