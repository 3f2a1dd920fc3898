# Overview: Service-layer operations for reporting; fetches windowed rows and rolls them up.

"""
Reports are read-only. Each one loads the visits (or line items) inside a
ReportWindow, groups them with the shared rollup helpers and renders
amounts as two-decimal strings.

Dates and hours are bucketed in the salon's local timezone; the window
bounds themselves are stored and compared as UTC-naive datetimes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Profile, Service, Visit, VisitService
from ..money import ZERO, money_str, to_money
from salon.time_utils import (
    get_zone,
    local_date_key,
    local_day_bounds,
    local_hour_label,
    local_month_start,
    parse_iso_date,
    parse_iso_datetime,
    to_local,
    to_utc_z,
    utcnow,
)
from .permission_service import AccessContext
from .rollups import (
    average,
    best_of,
    earliest_by_key,
    growth_rate,
    percentage,
    retention,
    rollup,
    sort_by_count,
    sort_by_key,
    sort_by_total,
    total_of,
)
from .visit_service import visible_visits


logger = logging.getLogger(__name__)

RANGE_PRESETS = ("today", "week", "month")
NO_BEST = "-"


class ReportError(ValueError):
    """Raised for an unusable report window (bad dates, bad zone, start after end)."""
    pass


@dataclass(frozen=True)
class ReportWindow:
    """Inclusive [start, end] in UTC-naive datetimes plus the zone used for bucketing."""
    start: datetime
    end: datetime
    zone: ZoneInfo
    preset: str | None = None

    def to_dict(self) -> dict:
        return {
            "start": to_utc_z(self.start),
            "end": to_utc_z(self.end),
            "timezone": self.zone.key,
            "range": self.preset,
        }


def _parse_bound(value: str, zone: ZoneInfo, *, is_end: bool) -> datetime:
    day = parse_iso_date(value)
    if day is not None:
        day_start, day_end = local_day_bounds(day, zone)
        return day_end if is_end else day_start
    try:
        parsed = parse_iso_datetime(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ReportError(f"Invalid {'end' if is_end else 'start'} date: {value}")
    return parsed


def build_window(
    range_key: str | None = None,
    start: str | None = None,
    end: str | None = None,
    *,
    now: datetime | None = None,
    tz_name: str | None = "UTC",
) -> ReportWindow:
    """
    Build a window from a preset or explicit bounds.

    Explicit start/end win over a preset. A date-only end covers that whole
    local day. With neither, the window defaults to the last 30 days.
    """
    try:
        zone = get_zone(tz_name)
    except ValueError as exc:
        raise ReportError(str(exc)) from exc

    now = now or utcnow()

    if start or end:
        window_start = _parse_bound(start, zone, is_end=False) if start else datetime.min
        window_end = _parse_bound(end, zone, is_end=True) if end else now
        if window_start > window_end:
            raise ReportError("start must not be after end")
        return ReportWindow(start=window_start, end=window_end, zone=zone)

    preset = (range_key or "month").strip().lower()
    if preset == "today":
        window_start, _ = local_day_bounds(to_local(now, zone).date(), zone)
    elif preset == "week":
        window_start = now - timedelta(days=7)
    elif preset == "month":
        window_start = now - timedelta(days=30)
    else:
        raise ReportError(f"range must be one of: {', '.join(RANGE_PRESETS)}")

    return ReportWindow(start=window_start, end=now, zone=zone, preset=preset)


# -- row loaders --

def _visits_in(window: ReportWindow, access: AccessContext | None = None) -> list[Visit]:
    query = visible_visits(access) if access is not None else db.session.query(Visit)
    return (
        query.options(joinedload(Visit.creator))
        .filter(Visit.check_in_time >= window.start, Visit.check_in_time <= window.end)
        .order_by(Visit.check_in_time.asc(), Visit.id.asc())
        .all()
    )


def _lines_in(window: ReportWindow) -> list[VisitService]:
    return (
        db.session.query(VisitService)
        .join(Visit, VisitService.visit_id == Visit.id)
        .options(joinedload(VisitService.service), joinedload(VisitService.employee))
        .filter(Visit.check_in_time >= window.start, Visit.check_in_time <= window.end)
        .order_by(Visit.check_in_time.asc(), VisitService.id.asc())
        .all()
    )


def _employee_name(line: VisitService) -> str | None:
    return line.employee.full_name if line.employee else None


def _service_name(line: VisitService) -> str | None:
    return line.service.name if line.service else None


def _creator_name(visit: Visit) -> str | None:
    return visit.creator.full_name if visit.creator else None


# -- reports --

def daily_sales(window: ReportWindow) -> dict:
    visits = _visits_in(window)
    days = sort_by_key(
        rollup(visits, key=lambda v: local_date_key(v.check_in_time, window.zone), amount=lambda v: v.final_amount)
    )
    return {
        "window": window.to_dict(),
        "days": [
            {"date": d.key, "visits": d.count, "revenue": money_str(d.total)}
            for d in days
        ],
        "total_visits": len(visits),
        "total_revenue": money_str(total_of(days)),
    }


def employee_performance(window: ReportWindow) -> dict:
    """Revenue credited to the employee on each line item, highest first."""
    employees = sort_by_total(
        rollup(_lines_in(window), key=_employee_name, amount=lambda line: line.service_price)
    )
    return {
        "window": window.to_dict(),
        "employees": [
            {
                "employee_name": e.key,
                "services_count": e.count,
                "total_revenue": money_str(e.total),
                "avg_per_service": money_str(e.average),
            }
            for e in employees
        ],
        "total_revenue": money_str(total_of(employees)),
    }


def service_performance(window: ReportWindow) -> dict:
    """How often each service was sold and what it brought in, most used first."""
    services = sort_by_count(
        rollup(_lines_in(window), key=_service_name, amount=lambda line: line.service_price)
    )
    return {
        "window": window.to_dict(),
        "services": [
            {
                "service_name": s.key,
                "times_used": s.count,
                "total_revenue": money_str(s.total),
                "avg_price": money_str(s.average),
            }
            for s in services
        ],
        "total_revenue": money_str(total_of(services)),
    }


def peak_hours(window: ReportWindow) -> dict:
    hours = sort_by_key(rollup(_visits_in(window), key=lambda v: local_hour_label(v.check_in_time, window.zone)))
    return {
        "window": window.to_dict(),
        "hours": [{"hour": h.key, "visits": h.count} for h in hours],
    }


def payment_methods(window: ReportWindow) -> dict:
    methods = sort_by_count(
        rollup(_visits_in(window), key=lambda v: v.payment_method, amount=lambda v: v.final_amount)
    )
    return {
        "window": window.to_dict(),
        "methods": [
            {"method": m.key, "count": m.count, "total_amount": money_str(m.total)}
            for m in methods
        ],
    }


def customer_retention(window: ReportWindow) -> dict:
    """
    New vs returning customers among the phones seen in the window.

    A customer is new when their first visit ever falls at or after the
    window start, so history before the window is consulted.
    """
    phones = {v.customer_phone for v in _visits_in(window) if v.customer_phone}
    first_visits: dict = {}
    if phones:
        history = (
            db.session.query(Visit.customer_phone, Visit.check_in_time)
            .filter(Visit.customer_phone.in_(phones), Visit.check_in_time <= window.end)
            .all()
        )
        first_visits = earliest_by_key(history, key=lambda row: row[0], when=lambda row: row[1])

    result = retention(first_visits, window.start)
    return {
        "window": window.to_dict(),
        "total_customers": len(first_visits),
        "new_customers": result.new_customers,
        "returning_customers": result.returning_customers,
        "retention_rate": result.retention_rate,
    }


def average_ticket(window: ReportWindow) -> dict:
    visits = _visits_in(window)
    days = sort_by_key(
        rollup(visits, key=lambda v: local_date_key(v.check_in_time, window.zone), amount=lambda v: v.final_amount)
    )
    revenue = total_of(days)
    return {
        "window": window.to_dict(),
        "days": [
            {
                "date": d.key,
                "avg_value": money_str(d.average),
                "visits": d.count,
                "revenue": money_str(d.total),
            }
            for d in days
        ],
        "overall_average": money_str(average(revenue, len(visits))),
    }


def discount_report(window: ReportWindow) -> dict:
    """Discounts given in the window, grouped by the staff member who recorded the visit."""
    visits = _visits_in(window)
    discounted = [v for v in visits if v.discount is not None and to_money(v.discount) > ZERO]

    total_discount = ZERO
    for v in discounted:
        total_discount += to_money(v.discount)
    # Revenue is measured over the discounted visits only
    gross = ZERO
    for v in discounted:
        gross += to_money(v.total_amount)

    by_staff = sort_by_total(rollup(discounted, key=_creator_name, amount=lambda v: v.discount))
    return {
        "window": window.to_dict(),
        "total_discount": money_str(total_discount),
        "total_revenue": money_str(gross),
        "discount_percentage": percentage(total_discount, gross),
        "discounted_visits": len(discounted),
        "by_staff": [
            {"staff_name": s.key, "visits": s.count, "total_discount": money_str(s.total)}
            for s in by_staff
        ],
    }


def _revenue_between(start: datetime, end: datetime, *, end_inclusive: bool = True) -> tuple[int, object]:
    query = db.session.query(Visit.final_amount).filter(Visit.check_in_time >= start)
    if end_inclusive:
        query = query.filter(Visit.check_in_time <= end)
    else:
        query = query.filter(Visit.check_in_time < end)
    amounts = [row[0] for row in query.all()]
    total = ZERO
    for amount in amounts:
        total += to_money(amount)
    return len(amounts), total


def overview_dashboard(*, now: datetime | None = None, tz_name: str | None = "UTC") -> dict:
    """
    Salon-wide headline numbers.

    Today and this month run up to now; growth compares month to date with
    the whole previous calendar month. Best service and best employee are
    today's top earners on line items, "-" when nothing was sold.
    """
    try:
        zone = get_zone(tz_name)
    except ValueError as exc:
        raise ReportError(str(exc)) from exc
    now = now or utcnow()
    today = to_local(now, zone).date()

    today_start, _ = local_day_bounds(today, zone)
    month_start, _ = local_day_bounds(local_month_start(today), zone)
    last_month_start, _ = local_day_bounds(local_month_start(today, months_back=1), zone)

    today_visits, today_revenue = _revenue_between(today_start, now)
    month_visits, month_revenue = _revenue_between(month_start, now)
    _, last_month_revenue = _revenue_between(last_month_start, month_start, end_inclusive=False)

    today_window = ReportWindow(start=today_start, end=now, zone=zone, preset="today")
    lines = _lines_in(today_window)
    best_service = best_of(rollup(lines, key=_service_name, amount=lambda line: line.service_price))
    best_employee = best_of(rollup(lines, key=_employee_name, amount=lambda line: line.service_price))

    return {
        "today_revenue": money_str(today_revenue),
        "today_visits": today_visits,
        "avg_ticket_size": money_str(average(today_revenue, today_visits)),
        "month_revenue": money_str(month_revenue),
        "month_visits": month_visits,
        "last_month_revenue": money_str(last_month_revenue),
        "growth_rate": growth_rate(month_revenue, last_month_revenue),
        "best_service": best_service.key if best_service else NO_BEST,
        "best_employee": best_employee.key if best_employee else NO_BEST,
    }


def staff_dashboard(access: AccessContext, *, now: datetime | None = None, tz_name: str | None = "UTC") -> dict:
    """
    Today's visit count and revenue for the caller.

    Employees see only the visits they recorded; admins see the whole salon
    plus catalog and staff headcounts.
    """
    try:
        zone = get_zone(tz_name)
    except ValueError as exc:
        raise ReportError(str(exc)) from exc
    now = now or utcnow()

    today_start, today_end = local_day_bounds(to_local(now, zone).date(), zone)
    window = ReportWindow(start=today_start, end=today_end, zone=zone, preset="today")
    visits = _visits_in(window, access)

    revenue = ZERO
    for v in visits:
        revenue += to_money(v.final_amount)

    data = {
        "today_visits": len(visits),
        "today_revenue": money_str(revenue),
        "scope": "all" if access.is_admin else "own",
    }
    if access.is_admin:
        data["active_services"] = db.session.query(Service).filter(Service.active.is_(True)).count()
        data["active_staff"] = db.session.query(Profile).filter(Profile.active.is_(True)).count()
    return data
