# Overview: Flask API routes for visits operations; parses input and returns JSON responses.

# backend/salon/routes/visits.py
"""
Visit routes.

Recording a visit writes the header and all of its service lines in one
transaction. Employees list only the visits they recorded; admins list all.
"""
from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..models import Visit
from ..services import visit_service
from ..services.permission_service import PermissionDeniedError
from ..services.visit_service import VisitError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_auth, require_permission, require_any_permission
from salon.time_utils import parse_iso_datetime

VISIT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=set(visit_service.VISIT_MUTABLE_FIELDS),
)

visits_bp = Blueprint("visits", __name__, url_prefix="/api/visits")


def _visit_error_response(e: VisitError):
    body = {"error": str(e), "code": e.code}
    if e.details:
        body["details"] = e.details
    return jsonify(body), 400


def _parse_range_args():
    start = parse_iso_datetime(request.args.get("start"))
    end = parse_iso_datetime(request.args.get("end"))
    return start, end


@visits_bp.post("")
@require_auth
@require_permission("RECORD_VISIT")
def create_visit_route():
    """
    Record a visit.

    Request body:
    {
        "customer_name": "Jane Doe",
        "customer_phone": "555-0100",      // optional
        "customer_notes": "...",           // optional
        "services": [{"service_id": 1, "employee_id": 2}, ...],
        "payment_method": "cash",          // cash | card | upi | wallet
        "discount": "5.00"                 // optional, default 0
    }

    Returns 400 with a machine-readable code when nothing was written:
    no_services, missing_employee, invalid_visit.
    """
    payload = request.get_json(silent=True)

    try:
        draft = visit_service.parse_visit_payload(payload)
        visit = visit_service.record_visit(draft, g.access)
    except VisitError as e:
        return _visit_error_response(e)
    except SQLAlchemyError:
        current_app.logger.exception("Database error while recording visit")
        return jsonify({"error": "Could not record visit, please try again"}), 500
    except Exception:
        current_app.logger.exception("Failed to record visit")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(visit.to_dict(include_lines=True)), 201


@visits_bp.get("")
@require_auth
@require_any_permission("VIEW_OWN_VISITS", "VIEW_ALL_VISITS")
def list_visits_route():
    """
    List visits newest first.

    Query params:
    - start, end: ISO-8601 datetimes (optional)
    - search: substring of customer name or phone
    - page, per_page: pagination (per_page default 20, max 100)
    """
    try:
        start, end = _parse_range_args()
    except ValueError:
        return jsonify({"error": "start and end must be ISO-8601 datetimes"}), 400

    result = visit_service.list_visits(
        g.access,
        start=start,
        end=end,
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result)


@visits_bp.get("/<int:visit_id>")
@require_auth
@require_any_permission("VIEW_OWN_VISITS", "VIEW_ALL_VISITS")
def get_visit_route(visit_id: int):
    try:
        visit = visit_service.get_visit(g.access, visit_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(visit.to_dict(include_lines=True))


@visits_bp.put("/<int:visit_id>")
@require_auth
@require_permission("MANAGE_VISITS")
def update_visit_route(visit_id: int):
    """Correct customer details, payment status or service times."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Visit, payload=payload, policy=VISIT_UPDATE_POLICY, partial=True)
        visit = visit_service.update_visit(g.access, visit_id, patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except VisitError as e:
        return _visit_error_response(e)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PermissionDeniedError as e:
        return jsonify({"error": "Permission denied", "message": str(e)}), 403
    except Exception:
        current_app.logger.exception("Failed to update visit %s", visit_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(visit.to_dict(include_lines=True))
