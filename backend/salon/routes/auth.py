# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/salon/routes/auth.py
"""
Authentication API routes

- Email + password login returning a bearer token
- Self-signup (employee role only), can be switched off with ALLOW_SIGNUP
- Logout revokes the presented token
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from ..services.auth_service import PasswordValidationError
from ..validation import ConflictError, ValidationError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(profile, session, token: str, message: str) -> dict:
    return {
        "profile": profile.to_dict(),
        "permissions": sorted(permission_service.get_profile_permissions(profile)),
        "token": token,
        "session": session.to_dict(),
        "message": message,
    }


@auth_bp.post("/signup")
def signup_route():
    """
    Create an employee account and log it in.

    Request body: {"email", "password", "full_name", "phone"?}
    The role is always employee; admins are made by other admins.
    """
    if not current_app.config.get("ALLOW_SIGNUP", True):
        return jsonify({
            "error": "Self-signup is disabled. Contact an administrator to create an account."
        }), 403

    data = request.get_json(silent=True) or {}
    try:
        profile = auth_service.signup(
            email=data.get("email"),
            password=data.get("password") or "",
            full_name=data.get("full_name"),
            phone=data.get("phone"),
        )
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to sign up profile")
        return jsonify({"error": "Internal server error"}), 500

    try:
        session, token = session_service.create_session(
            profile_id=profile.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except Exception:
        current_app.logger.exception("Failed to create session after signup")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(_session_payload(profile, session, token, "Signup successful")), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate a profile and create a session token.

    Token must be included in the Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        profile = auth_service.authenticate(email, password)

        if not profile:
            current_app.logger.warning("Failed login for %s from %s", email, request.remote_addr)
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            profile_id=profile.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify(_session_payload(profile, session, token, "Login successful")), 200

    except Exception:
        current_app.logger.exception("Failed to login profile")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>
    """
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1]

        revoked = session_service.revoke_session(token, reason="User logout")

        if not revoked:
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout profile")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/validate")
def validate_route():
    """
    Validate a session token and return the profile with its permissions.

    Frontends use the permission list to hide navigation the role cannot use.
    """
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1]

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({
            "profile": context.profile.to_dict(),
            "permissions": sorted(context.access.permissions),
            "message": "Token valid"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to validate session")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current profile and role."""
    return jsonify({
        "profile": g.current_profile.to_dict(),
        "role": g.access.role,
        "permissions": sorted(g.access.permissions),
    }), 200
