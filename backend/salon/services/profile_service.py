# backend/salon/services/profile_service.py
"""
Staff profiles: listing, self-service edits, and admin role/activation changes.

Profiles are never deleted. A deactivated profile cannot log in, its open
sessions are revoked, and it drops out of the staff assignment list, while
historical line items still reference it.
"""
from __future__ import annotations

import logging

from ..extensions import db
from ..models import Profile, ROLE_ADMIN
from ..validation import ConflictError, NotFoundError
from .permission_service import AccessContext, PermissionDeniedError
from .session_service import revoke_all_profile_sessions

logger = logging.getLogger(__name__)

SELF_MUTABLE_FIELDS = {"full_name", "phone"}
ADMIN_MUTABLE_FIELDS = {"full_name", "phone", "role"}


def list_profiles(*, include_inactive: bool = True) -> list[Profile]:
    query = db.session.query(Profile)
    if not include_inactive:
        query = query.filter(Profile.active.is_(True))
    return query.order_by(Profile.full_name.asc(), Profile.id.asc()).all()


def list_active_staff() -> list[dict]:
    """Active staff in name order, for assigning services on a visit."""
    return [
        {"id": p.id, "full_name": p.full_name}
        for p in list_profiles(include_inactive=False)
    ]


def get_profile(profile_id: int) -> Profile:
    profile = db.session.get(Profile, profile_id)
    if not profile:
        raise NotFoundError("Profile not found")
    return profile


def _active_admin_count(exclude_id: int | None = None) -> int:
    query = db.session.query(Profile).filter(
        Profile.role == ROLE_ADMIN,
        Profile.active.is_(True),
    )
    if exclude_id is not None:
        query = query.filter(Profile.id != exclude_id)
    return query.count()


def update_profile(access: AccessContext, profile_id: int, *, patch: dict) -> Profile:
    """
    Apply a validated patch.

    Staff may edit their own name and phone; admins may edit anyone and
    change roles. The last active admin cannot be demoted.
    """
    profile = get_profile(profile_id)

    if access.is_admin:
        allowed = ADMIN_MUTABLE_FIELDS
    elif access.profile_id == profile.id:
        allowed = SELF_MUTABLE_FIELDS
    else:
        raise PermissionDeniedError("Only admins can edit other staff profiles")

    blocked = sorted(k for k in patch if k not in allowed)
    if blocked:
        raise PermissionDeniedError(f"Not allowed to change: {', '.join(blocked)}")

    if (
        patch.get("role") is not None
        and patch["role"] != ROLE_ADMIN
        and profile.role == ROLE_ADMIN
        and profile.active
        and _active_admin_count(exclude_id=profile.id) == 0
    ):
        raise ConflictError("Cannot demote the last active admin")

    for k, v in patch.items():
        setattr(profile, k, v)

    db.session.commit()
    return profile


def set_profile_active(access: AccessContext, profile_id: int, active: bool) -> Profile:
    """Activate or deactivate a profile (admin only)."""
    if not access.is_admin:
        raise PermissionDeniedError("Only admins can change staff status")

    profile = get_profile(profile_id)

    if not active:
        if profile.id == access.profile_id:
            raise ConflictError("You cannot deactivate your own profile")
        if profile.role == ROLE_ADMIN and _active_admin_count(exclude_id=profile.id) == 0:
            raise ConflictError("Cannot deactivate the last active admin")

    profile.active = bool(active)
    if not profile.active:
        revoke_all_profile_sessions(profile.id, reason="Profile deactivated", commit=False)

    db.session.commit()
    logger.info("Profile id=%s %s by profile id=%s", profile.id, "activated" if profile.active else "deactivated", access.profile_id)
    return profile


def toggle_profile_active(access: AccessContext, profile_id: int) -> Profile:
    profile = get_profile(profile_id)
    return set_profile_active(access, profile.id, not profile.active)
