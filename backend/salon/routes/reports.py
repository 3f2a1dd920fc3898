from flask import Blueprint, current_app, g, jsonify, request

from salon.decorators import require_auth, require_permission
from salon.services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _window():
    """Window from ?range=today|week|month or ?start=&end= (ISO date or datetime)."""
    return reporting_service.build_window(
        range_key=request.args.get("range"),
        start=request.args.get("start"),
        end=request.args.get("end"),
        tz_name=current_app.config.get("SALON_TIMEZONE"),
    )


def _windowed(report_fn):
    try:
        report = report_fn(_window())
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/daily-sales")
@require_auth
@require_permission("VIEW_REPORTS")
def daily_sales_report():
    return _windowed(reporting_service.daily_sales)


@reports_bp.get("/employee-performance")
@require_auth
@require_permission("VIEW_REPORTS")
def employee_performance_report():
    return _windowed(reporting_service.employee_performance)


@reports_bp.get("/service-performance")
@require_auth
@require_permission("VIEW_REPORTS")
def service_performance_report():
    return _windowed(reporting_service.service_performance)


@reports_bp.get("/peak-hours")
@require_auth
@require_permission("VIEW_REPORTS")
def peak_hours_report():
    return _windowed(reporting_service.peak_hours)


@reports_bp.get("/payment-methods")
@require_auth
@require_permission("VIEW_REPORTS")
def payment_methods_report():
    return _windowed(reporting_service.payment_methods)


@reports_bp.get("/customer-retention")
@require_auth
@require_permission("VIEW_REPORTS")
def customer_retention_report():
    return _windowed(reporting_service.customer_retention)


@reports_bp.get("/average-ticket")
@require_auth
@require_permission("VIEW_REPORTS")
def average_ticket_report():
    return _windowed(reporting_service.average_ticket)


@reports_bp.get("/discounts")
@require_auth
@require_permission("VIEW_REPORTS")
def discount_report():
    return _windowed(reporting_service.discount_report)


@reports_bp.get("/overview")
@require_auth
@require_permission("VIEW_REPORTS")
def overview_dashboard():
    try:
        report = reporting_service.overview_dashboard(tz_name=current_app.config.get("SALON_TIMEZONE"))
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/dashboard")
@require_auth
@require_permission("VIEW_OWN_DASHBOARD")
def staff_dashboard():
    """Today's numbers for the caller (salon-wide for admins)."""
    try:
        report = reporting_service.staff_dashboard(g.access, tz_name=current_app.config.get("SALON_TIMEZONE"))
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
