from __future__ import annotations

from ..extensions import db
from salon.money import money_str
from salon.time_utils import to_utc_z

PAYMENT_METHODS = ("cash", "card", "upi", "wallet")
PAYMENT_STATUSES = ("pending", "completed", "refunded")

UNKNOWN_LABEL = "Unknown"


class Visit(db.Model):
    """
    One recorded customer transaction.

    final_amount = total_amount - discount. The amount is not clamped, so a
    discount larger than the subtotal yields a negative final amount.
    """
    __tablename__ = "visits"
    __table_args__ = (
        db.Index("ix_visits_check_in_time", "check_in_time"),
        db.Index("ix_visits_customer_phone", "customer_phone"),
        db.Index("ix_visits_created_by_check_in", "created_by", "check_in_time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Walk-ins may stay anonymous
    customer_name = db.Column(db.String(120), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    customer_notes = db.Column(db.Text, nullable=True)

    check_in_time = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    service_start_time = db.Column(db.DateTime(timezone=True), nullable=True)
    service_end_time = db.Column(db.DateTime(timezone=True), nullable=True)

    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    final_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    payment_method = db.Column(db.String(16), nullable=False)
    payment_status = db.Column(db.String(16), nullable=False, default="pending")

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    creator = db.relationship("Profile", foreign_keys=[created_by])
    line_items = db.relationship(
        "VisitService",
        back_populates="visit",
        cascade="all, delete-orphan",
        order_by="VisitService.id",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Visit id={self.id} final={self.final_amount}>"

    def to_dict(self, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_notes": self.customer_notes,
            "check_in_time": to_utc_z(self.check_in_time),
            "service_start_time": to_utc_z(self.service_start_time) if self.service_start_time else None,
            "service_end_time": to_utc_z(self.service_end_time) if self.service_end_time else None,
            "total_amount": money_str(self.total_amount),
            "discount": money_str(self.discount),
            "final_amount": money_str(self.final_amount),
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "created_by": self.created_by,
            "created_by_name": self.creator.full_name if self.creator else UNKNOWN_LABEL,
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["services"] = [line.to_dict() for line in self.line_items]
        return data


class VisitService(db.Model):
    """
    Line item: one service performed by one employee within one visit.

    service_price is a snapshot taken at sale time; later price changes on
    the service do not touch it.
    """
    __tablename__ = "visit_services"
    __table_args__ = (
        db.CheckConstraint("service_price >= 0", name="ck_visit_services_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    visit_id = db.Column(db.Integer, db.ForeignKey("visits.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False, index=True)
    service_price = db.Column(db.Numeric(10, 2), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    visit = db.relationship("Visit", back_populates="line_items")
    service = db.relationship("Service")
    employee = db.relationship("Profile", foreign_keys=[employee_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "visit_id": self.visit_id,
            "service_id": self.service_id,
            "service_name": self.service.name if self.service else UNKNOWN_LABEL,
            "employee_id": self.employee_id,
            "employee_name": self.employee.full_name if self.employee else UNKNOWN_LABEL,
            "service_price": money_str(self.service_price),
            "created_at": to_utc_z(self.created_at),
        }
