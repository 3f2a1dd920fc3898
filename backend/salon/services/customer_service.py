# Overview: Service-layer operations for customers; derived entirely from visit rows.

"""
Customers are not stored separately: a customer is the set of visits that
share a phone number. This module suggests existing customers while a
visit is being typed in and builds per-customer spend rollups.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..extensions import db
from ..models import Visit, VisitService, UNKNOWN_LABEL
from ..money import ZERO, money_str, to_money
from ..validation import NotFoundError
from salon.time_utils import to_utc_z
from .permission_service import AccessContext
from .rollups import average
from .visit_service import visible_visits


DEFAULT_MIN_LOOKUP_CHARS = 3
DEFAULT_LOOKUP_LIMIT = 10


@dataclass(frozen=True)
class CustomerSuggestion:
    name: str | None
    phone: str

    def to_dict(self) -> dict:
        return {"name": self.name, "phone": self.phone}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def suggest_customers(
    partial_phone: str | None,
    access: AccessContext,
    *,
    min_chars: int = DEFAULT_MIN_LOOKUP_CHARS,
    limit: int | None = DEFAULT_LOOKUP_LIMIT,
) -> list[CustomerSuggestion]:
    """
    Suggest (name, phone) pairs for a partially typed phone number.

    Inputs shorter than min_chars return nothing. Matching is a
    case-insensitive substring match; visits are read newest first and
    deduplicated by phone, so each suggestion carries the most recent name
    recorded for that number. At most `limit` suggestions are returned.
    """
    partial = (partial_phone or "").strip()
    if len(partial) < min_chars:
        return []

    pattern = f"%{_escape_like(partial.lower())}%"
    newest_first = (Visit.check_in_time.desc(), Visit.id.desc())

    # rn == 1 marks each phone's most recent visit, which is the row a
    # newest-first scan would keep when deduplicating by phone
    ranked = (
        visible_visits(access)
        .with_entities(
            Visit.customer_name.label("name"),
            Visit.customer_phone.label("phone"),
            Visit.check_in_time.label("check_in_time"),
            Visit.id.label("visit_id"),
            db.func.row_number().over(
                partition_by=Visit.customer_phone,
                order_by=newest_first,
            ).label("rn"),
        )
        .filter(Visit.customer_phone.isnot(None))
        .filter(db.func.lower(Visit.customer_phone).like(pattern, escape="\\"))
        .subquery()
    )

    query = (
        db.session.query(ranked.c.name, ranked.c.phone)
        .filter(ranked.c.rn == 1)
        .order_by(ranked.c.check_in_time.desc(), ranked.c.visit_id.desc())
    )
    if limit is not None:
        query = query.limit(limit)

    return [CustomerSuggestion(name=name, phone=phone) for name, phone in query.all()]


@dataclass
class CustomerSummary:
    phone: str
    name: str
    total_visits: int = 0
    total_spent: object = ZERO
    last_visit: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "customer_phone": self.phone,
            "customer_name": self.name,
            "total_visits": self.total_visits,
            "total_spent": money_str(self.total_spent),
            "avg_spend": money_str(average(self.total_spent, self.total_visits)),
            "last_visit": to_utc_z(self.last_visit),
        }


def summarize_customers(visits) -> list[CustomerSummary]:
    """
    Fold visits into one summary per phone, sorted by total spend (desc).

    The name shown is the one on the customer's most recent visit.
    """
    summaries: dict[str, CustomerSummary] = {}
    for visit in visits:
        phone = visit.customer_phone
        if not phone:
            continue
        summary = summaries.get(phone)
        if summary is None:
            summary = summaries[phone] = CustomerSummary(
                phone=phone,
                name=visit.customer_name or UNKNOWN_LABEL,
                last_visit=visit.check_in_time,
            )
        summary.total_visits += 1
        summary.total_spent = to_money(summary.total_spent) + to_money(visit.final_amount)
        if visit.check_in_time > summary.last_visit:
            summary.last_visit = visit.check_in_time
            summary.name = visit.customer_name or summary.name

    return sorted(summaries.values(), key=lambda s: to_money(s.total_spent), reverse=True)


def customer_summaries(
    access: AccessContext,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    search: str | None = None,
) -> list[dict]:
    """Per-customer totals for visits in [start, end], optionally filtered by name/phone."""
    query = visible_visits(access).filter(Visit.customer_phone.isnot(None))
    if start is not None:
        query = query.filter(Visit.check_in_time >= start)
    if end is not None:
        query = query.filter(Visit.check_in_time <= end)
    visits = query.order_by(Visit.check_in_time.asc(), Visit.id.asc()).all()

    summaries = summarize_customers(visits)

    term = (search or "").strip().lower()
    if term:
        summaries = [
            s for s in summaries
            if term in s.name.lower() or term in s.phone.lower()
        ]
    return [s.to_dict() for s in summaries]


def customer_history(access: AccessContext, phone: str) -> dict:
    """
    Full visit history for one phone number, newest first, with the
    distinct services the customer has had.
    """
    phone = (phone or "").strip()
    visits = (
        visible_visits(access)
        .filter(Visit.customer_phone == phone)
        .order_by(Visit.check_in_time.desc(), Visit.id.desc())
        .all()
    )
    if not visits:
        raise NotFoundError("Customer not found")

    summary = summarize_customers(visits)[0]

    services_taken: list[str] = []
    visit_ids = [v.id for v in visits]
    lines = (
        db.session.query(VisitService)
        .filter(VisitService.visit_id.in_(visit_ids))
        .order_by(VisitService.id.asc())
        .all()
    )
    for line in lines:
        name = line.service.name if line.service else None
        if name and name not in services_taken:
            services_taken.append(name)

    data = summary.to_dict()
    data["services_taken"] = services_taken
    data["visits"] = [v.to_dict(include_lines=True) for v in visits]
    return data
