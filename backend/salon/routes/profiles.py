# Overview: Flask API routes for staff profiles; parses input and returns JSON responses.

# backend/salon/routes/profiles.py
"""
Staff profile routes.

- Listing every profile and changing roles/status requires MANAGE_STAFF
- The active staff list used to assign services needs VIEW_STAFF
- Anyone may read and edit their own name and phone
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Profile, ROLES, ROLE_EMPLOYEE
from ..services import auth_service, profile_service
from ..services.auth_service import PasswordValidationError
from ..services.permission_service import PermissionDeniedError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_profile,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth, require_permission
from ..permissions import (
    get_all_permission_codes,
    get_permission_definition,
    get_permissions_by_category,
    get_role_permissions,
)

PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"full_name", "phone", "role"},
    required_on_create=set(),
)

profiles_bp = Blueprint("profiles", __name__, url_prefix="/api/profiles")


@profiles_bp.get("")
@require_auth
@require_permission("MANAGE_STAFF")
def list_profiles_route():
    """
    List staff profiles.

    Query params:
    - include_inactive: bool (default true)
    """
    include_inactive = request.args.get("include_inactive", "true").lower() == "true"
    profiles = profile_service.list_profiles(include_inactive=include_inactive)
    return jsonify({"profiles": [p.to_dict() for p in profiles], "count": len(profiles)})


@profiles_bp.post("")
@require_auth
@require_permission("MANAGE_STAFF")
def create_profile_route():
    """
    Create a staff account (admin).

    Request body: {"email", "password", "full_name", "phone"?, "role"?}
    """
    data = request.get_json(silent=True) or {}
    try:
        profile = auth_service.create_profile(
            email=data.get("email"),
            password=data.get("password") or "",
            full_name=data.get("full_name"),
            phone=data.get("phone"),
            role=data.get("role") or ROLE_EMPLOYEE,
        )
    except (PasswordValidationError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create profile")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(profile.to_dict()), 201


@profiles_bp.get("/staff")
@require_auth
@require_permission("VIEW_STAFF")
def list_staff_route():
    """Active staff ({id, full_name}) for assigning services on a visit."""
    staff = profile_service.list_active_staff()
    return jsonify({"staff": staff, "count": len(staff)})


@profiles_bp.get("/roles")
@require_auth
@require_permission("MANAGE_STAFF")
def list_roles_route():
    """
    Roles and the permissions each grants.

    Query params:
    - category: str - only permissions in this category
    """
    category = request.args.get("category")
    if category:
        codes = {perm[0] for perm in get_permissions_by_category(category)}
    else:
        codes = set(get_all_permission_codes())

    roles = []
    for role in ROLES:
        granted = sorted(code for code in get_role_permissions(role) if code in codes)
        roles.append({
            "role": role,
            "permissions": [get_permission_definition(code) for code in granted],
        })
    return jsonify({"roles": roles})


@profiles_bp.get("/<int:profile_id>")
@require_auth
def get_profile_route(profile_id: int):
    if profile_id != g.access.profile_id and not g.access.can("MANAGE_STAFF"):
        return jsonify({"error": "Permission denied", "required_permission": "MANAGE_STAFF"}), 403
    try:
        profile = profile_service.get_profile(profile_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(profile.to_dict())


@profiles_bp.put("/<int:profile_id>")
@require_auth
def update_profile_route(profile_id: int):
    """
    Update a profile.

    Staff may change their own full_name and phone; admins may also change role.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Profile, payload=payload, policy=PROFILE_POLICY, partial=True)
        enforce_rules_profile(patch, roles=ROLES)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        profile = profile_service.update_profile(g.access, profile_id, patch=patch)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PermissionDeniedError as e:
        return jsonify({"error": "Permission denied", "message": str(e)}), 403
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update profile %s", profile_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(profile.to_dict())


@profiles_bp.post("/<int:profile_id>/toggle-active")
@require_auth
@require_permission("MANAGE_STAFF")
def toggle_profile_route(profile_id: int):
    """Activate or deactivate a profile. Deactivation revokes its sessions."""
    try:
        profile = profile_service.toggle_profile_active(g.access, profile_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PermissionDeniedError as e:
        return jsonify({"error": "Permission denied", "message": str(e)}), 403
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to toggle profile %s", profile_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(profile.to_dict())
