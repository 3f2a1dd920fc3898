"""
Visit Service - records walk-in visits and their service line items.

A visit is written as one header row plus one line item per selected
service, each line carrying the employee who performed it and a copy of
the service price at the time of sale. Header and lines share a single
transaction: either all rows land or none do.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Profile, Service, Visit, VisitService, PAYMENT_METHODS, PAYMENT_STATUSES
from ..money import MAX_PRICE, ZERO, money_sum, parse_money, to_money
from ..validation import NotFoundError
from salon.time_utils import utcnow
from .concurrency import run_with_retry
from .permission_service import AccessContext, PermissionDeniedError


logger = logging.getLogger(__name__)

# VisitError codes
NO_SERVICES = "no_services"
MISSING_EMPLOYEE = "missing_employee"
UNAUTHENTICATED = "unauthenticated"
INVALID_VISIT = "invalid_visit"

VISIT_MUTABLE_FIELDS = {
    "customer_name",
    "customer_phone",
    "customer_notes",
    "payment_status",
    "service_start_time",
    "service_end_time",
}


class VisitError(Exception):
    """Raised when a visit cannot be recorded. Nothing is written."""
    def __init__(self, message: str, code: str = INVALID_VISIT, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


@dataclass(frozen=True)
class LineSelection:
    """One selected service and the employee assigned to perform it."""
    service_id: int
    employee_id: int | None = None


@dataclass
class VisitDraft:
    """Candidate visit as entered on the form, before validation."""
    customer_name: str | None
    customer_phone: str | None = None
    customer_notes: str | None = None
    selections: list[LineSelection] = field(default_factory=list)
    payment_method: str | None = "cash"
    discount: object = ZERO


def _clean_text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_id(value, label: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise VisitError(f"{label} must be an integer id")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise VisitError(f"{label} must be an integer id")


def parse_visit_payload(payload: dict | None) -> VisitDraft:
    """
    Build a VisitDraft from a JSON body.

    Expected shape:
        {
          "customer_name": "Jane", "customer_phone": "555-0100",
          "customer_notes": "...",
          "services": [{"service_id": 1, "employee_id": 3}, ...],
          "payment_method": "card", "discount": "5.00"
        }

    Only structure is checked here; business validation happens in
    validate_draft so its ordering holds regardless of input shape.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise VisitError("Invalid JSON payload")

    raw_services = payload.get("services") or []
    if not isinstance(raw_services, list):
        raise VisitError("services must be a list")

    selections = []
    for index, item in enumerate(raw_services):
        if not isinstance(item, dict):
            raise VisitError(f"services[{index}] must be an object")
        service_id = _parse_id(item.get("service_id"), f"services[{index}].service_id")
        if service_id is None:
            raise VisitError(f"services[{index}].service_id is required")
        selections.append(
            LineSelection(
                service_id=service_id,
                employee_id=_parse_id(item.get("employee_id"), f"services[{index}].employee_id"),
            )
        )

    discount = payload.get("discount")
    return VisitDraft(
        customer_name=_clean_text(payload.get("customer_name")),
        customer_phone=_clean_text(payload.get("customer_phone")),
        customer_notes=_clean_text(payload.get("customer_notes")),
        selections=selections,
        payment_method=_clean_text(payload.get("payment_method")) or "cash",
        discount=ZERO if discount in (None, "") else discount,
    )


def compute_totals(prices, discount) -> tuple[Decimal, Decimal]:
    """
    (subtotal, final_amount) for the given line prices and discount.

    final_amount is not floored at zero: a discount above the subtotal
    produces a negative amount.
    """
    subtotal = money_sum(prices)
    return subtotal, subtotal - to_money(discount)


def validate_draft(draft: VisitDraft, access: AccessContext | None) -> Decimal:
    """
    Check a draft in a fixed order, stopping at the first problem:

    1. at least one service selected
    2. every selected service has an assigned employee
    3. an authenticated actor

    followed by field-level checks. Returns the parsed discount.
    """
    if not draft.selections:
        raise VisitError("Select at least one service", code=NO_SERVICES)

    unassigned = [s.service_id for s in draft.selections if s.employee_id is None]
    if unassigned:
        raise VisitError(
            "Please assign an employee to all selected services",
            code=MISSING_EMPLOYEE,
            details={"service_ids": unassigned},
        )

    if access is None:
        raise VisitError("You must be logged in", code=UNAUTHENTICATED)

    if not draft.customer_name:
        raise VisitError("customer_name is required")

    if draft.payment_method not in PAYMENT_METHODS:
        raise VisitError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    try:
        discount = parse_money(draft.discount)
    except ValueError as e:
        raise VisitError(f"discount: {e}")
    if discount < 0:
        raise VisitError("discount must be >= 0")
    if discount > MAX_PRICE:
        raise VisitError(f"discount cannot exceed {MAX_PRICE}")

    seen = set()
    duplicates = []
    for s in draft.selections:
        if s.service_id in seen:
            duplicates.append(s.service_id)
        seen.add(s.service_id)
    if duplicates:
        raise VisitError("A service can only be selected once per visit", details={"service_ids": duplicates})

    return discount


def _load_active(model, ids: set[int]) -> dict[int, object]:
    rows = db.session.query(model).filter(model.id.in_(ids), model.active.is_(True)).all()
    return {row.id: row for row in rows}


def record_visit(draft: VisitDraft, access: AccessContext | None, *, now: datetime | None = None) -> Visit:
    """
    Validate and persist a visit with its line items.

    Raises VisitError before any write on invalid input. Database failures
    roll back the whole visit and propagate.
    """
    discount = validate_draft(draft, access)

    services = _load_active(Service, {s.service_id for s in draft.selections})
    missing_services = [s.service_id for s in draft.selections if s.service_id not in services]
    if missing_services:
        raise VisitError("Some selected services are not available", details={"service_ids": missing_services})

    employees = _load_active(Profile, {s.employee_id for s in draft.selections})
    missing_employees = sorted({s.employee_id for s in draft.selections if s.employee_id not in employees})
    if missing_employees:
        raise VisitError("Some assigned employees are not active staff", details={"employee_ids": missing_employees})

    # Price snapshot taken once so a retry writes the same amounts
    lines = [
        (s.service_id, s.employee_id, to_money(services[s.service_id].price))
        for s in draft.selections
    ]
    subtotal, final_amount = compute_totals([price for _, _, price in lines], discount)
    check_in_time = now or utcnow()
    actor_id = access.profile_id

    def _op():
        visit = Visit(
            customer_name=draft.customer_name,
            customer_phone=draft.customer_phone,
            customer_notes=draft.customer_notes,
            check_in_time=check_in_time,
            total_amount=subtotal,
            discount=discount,
            final_amount=final_amount,
            payment_method=draft.payment_method,
            payment_status="completed",
            created_by=actor_id,
        )
        db.session.add(visit)
        db.session.flush()

        for service_id, employee_id, price in lines:
            db.session.add(
                VisitService(
                    visit_id=visit.id,
                    service_id=service_id,
                    employee_id=employee_id,
                    service_price=price,
                )
            )

        db.session.commit()
        return visit

    try:
        visit = run_with_retry(_op)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to record visit for profile id=%s", actor_id)
        raise

    logger.info(
        "Recorded visit id=%s lines=%s final=%s by profile id=%s",
        visit.id, len(lines), final_amount, actor_id,
    )
    return visit


# -- reads --

def visible_visits(access: AccessContext):
    """
    Base query of the visits this caller may read.

    Admins see every visit; everyone else only the visits they recorded.
    """
    query = db.session.query(Visit)
    if not access.is_admin:
        query = query.filter(Visit.created_by == access.profile_id)
    return query


def list_visits(
    access: AccessContext,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """Visits newest first, optionally windowed and filtered by name/phone."""
    query = visible_visits(access)
    if start is not None:
        query = query.filter(Visit.check_in_time >= start)
    if end is not None:
        query = query.filter(Visit.check_in_time <= end)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            db.or_(
                db.func.lower(Visit.customer_name).like(pattern),
                db.func.lower(Visit.customer_phone).like(pattern),
            )
        )
    query = query.order_by(Visit.check_in_time.desc(), Visit.id.desc())

    if page is None:
        visits = query.all()
        return {
            "items": [v.to_dict() for v in visits],
            "count": len(visits),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    visits = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [v.to_dict() for v in visits],
        "count": len(visits),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_visit(access: AccessContext, visit_id: int) -> Visit:
    visit = visible_visits(access).filter(Visit.id == visit_id).first()
    if not visit:
        raise NotFoundError("Visit not found")
    return visit


def update_visit(access: AccessContext, visit_id: int, *, patch: dict) -> Visit:
    """
    Admin correction of a visit header. Amounts and line items are fixed
    once recorded.
    """
    if not access.is_admin:
        raise PermissionDeniedError("Only admins can edit recorded visits")

    visit = get_visit(access, visit_id)

    status = patch.get("payment_status")
    if status is not None and status not in PAYMENT_STATUSES:
        raise VisitError(f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}")

    for k, v in patch.items():
        if k in VISIT_MUTABLE_FIELDS:
            setattr(visit, k, v)

    start = visit.service_start_time
    end = visit.service_end_time
    if start is not None and end is not None and end < start:
        db.session.rollback()
        raise VisitError("service_end_time must not be before service_start_time")

    db.session.commit()
    return visit
