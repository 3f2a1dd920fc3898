# Overview: Flask API routes for the service catalog; parses input and returns JSON responses.

# backend/salon/routes/catalog.py
"""
Service catalog routes.

- Read operations require VIEW_CATALOG permission
- Write operations require MANAGE_CATALOG permission

Employees only ever see active services; admins see all unless they ask
for active_only.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..models import Service, ServiceCategory
from ..services import catalog_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_service,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth, require_permission

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

SERVICE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price", "duration_minutes", "category_id", "active"},
    required_on_create={"name", "price"},
)

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


# =============================================================================
# CATEGORIES
# =============================================================================

@catalog_bp.get("/categories")
@require_auth
@require_permission("VIEW_CATALOG")
def list_categories_route():
    categories = catalog_service.list_categories()
    return jsonify({"categories": [c.to_dict() for c in categories], "count": len(categories)})


@catalog_bp.post("/categories")
@require_auth
@require_permission("MANAGE_CATALOG")
def create_category_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=ServiceCategory, payload=payload, policy=CATEGORY_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        category = catalog_service.create_category(patch=patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(category.to_dict()), 201


@catalog_bp.put("/categories/<int:category_id>")
@require_auth
@require_permission("MANAGE_CATALOG")
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=ServiceCategory, payload=payload, policy=CATEGORY_POLICY, partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        category = catalog_service.update_category(category_id, patch=patch)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify(category.to_dict())


@catalog_bp.delete("/categories/<int:category_id>")
@require_auth
@require_permission("MANAGE_CATALOG")
def delete_category_route(category_id: int):
    """Delete a category. Its services stay, uncategorized."""
    try:
        catalog_service.delete_category(category_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete category %s", category_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Category deleted"})


# =============================================================================
# SERVICES
# =============================================================================

@catalog_bp.get("/services")
@require_auth
@require_permission("VIEW_CATALOG")
def list_services_route():
    """
    List services.

    Query params:
    - active_only: bool (admins only; employees always get active services)
    - category_id: int (optional)
    """
    category_id = request.args.get("category_id", type=int)
    active_only = request.args.get("active_only", "false").lower() == "true"
    include_inactive = g.access.can("MANAGE_CATALOG") and not active_only

    services = catalog_service.list_services(include_inactive=include_inactive, category_id=category_id)
    return jsonify({"services": [s.to_dict() for s in services], "count": len(services)})


@catalog_bp.get("/services/<int:service_id>")
@require_auth
@require_permission("VIEW_CATALOG")
def get_service_route(service_id: int):
    try:
        service = catalog_service.get_service(service_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    if not service.active and not g.access.can("MANAGE_CATALOG"):
        return jsonify({"error": "Service not found"}), 404

    return jsonify(service.to_dict())


@catalog_bp.post("/services")
@require_auth
@require_permission("MANAGE_CATALOG")
def create_service_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Service, payload=payload, policy=SERVICE_POLICY, partial=False)
        enforce_rules_service(patch)
        service = catalog_service.create_service(patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create service")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(service.to_dict()), 201


@catalog_bp.put("/services/<int:service_id>")
@require_auth
@require_permission("MANAGE_CATALOG")
def update_service_route(service_id: int):
    """Update a service. Price changes do not affect recorded visits."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Service, payload=payload, policy=SERVICE_POLICY, partial=True)
        enforce_rules_service(patch)
        service = catalog_service.update_service(service_id, patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify(service.to_dict())


@catalog_bp.post("/services/<int:service_id>/toggle-active")
@require_auth
@require_permission("MANAGE_CATALOG")
def toggle_service_route(service_id: int):
    try:
        service = catalog_service.toggle_service_active(service_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify(service.to_dict())
