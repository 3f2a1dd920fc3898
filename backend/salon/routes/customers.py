# Overview: Flask API routes for customers; parses input and returns JSON responses.

# backend/salon/routes/customers.py
"""
Customer routes.

Customers are derived from visits by phone number. The lookup endpoint
backs the phone field on the visit form; it echoes the caller's `seq` so a
client typing quickly can drop responses older than its latest request.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..services import customer_service
from ..services.reporting_service import ReportError, build_window
from ..validation import NotFoundError
from ..decorators import require_auth, require_permission

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("/lookup")
@require_auth
@require_permission("LOOKUP_CUSTOMERS")
def lookup_route():
    """
    Suggest customers for a partially typed phone number.

    Query params:
    - phone: partial phone (fewer than CUSTOMER_LOOKUP_MIN_CHARS returns nothing)
    - seq: opaque client sequence number, echoed back unchanged
    """
    partial = request.args.get("phone", "")
    seq = request.args.get("seq")

    suggestions = customer_service.suggest_customers(
        partial,
        g.access,
        min_chars=current_app.config.get("CUSTOMER_LOOKUP_MIN_CHARS", 3),
        limit=current_app.config.get("CUSTOMER_LOOKUP_LIMIT", 10),
    )
    return jsonify({
        "seq": seq,
        "query": partial,
        "suggestions": [s.to_dict() for s in suggestions],
    })


@customers_bp.get("")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def list_customers_route():
    """
    Per-customer spend summaries, highest total spend first.

    Query params:
    - start, end: ISO date or datetime (optional; all time when omitted)
    - search: substring of name or phone
    """
    start = request.args.get("start")
    end = request.args.get("end")
    window = None
    if start or end:
        try:
            window = build_window(start=start, end=end, tz_name=current_app.config.get("SALON_TIMEZONE"))
        except ReportError as e:
            return jsonify({"error": str(e)}), 400

    customers = customer_service.customer_summaries(
        g.access,
        start=window.start if window else None,
        end=window.end if window else None,
        search=request.args.get("search"),
    )
    return jsonify({"customers": customers, "count": len(customers)})


@customers_bp.get("/<path:phone>")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def customer_history_route(phone: str):
    """Visit history and services taken for one phone number."""
    try:
        history = customer_service.customer_history(g.access, phone)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load customer history")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(history)
