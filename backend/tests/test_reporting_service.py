"""
Reporting tests.

Visits are recorded at fixed instants so windows and local-date buckets
are deterministic.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from salon.extensions import db
from salon.models import Profile
from salon.services import reporting_service
from salon.services.reporting_service import ReportError, build_window


NOW = datetime(2026, 3, 15, 18, 0)


def march(day, hour=10, minute=0):
    return datetime(2026, 3, day, hour, minute)


def window(start="2026-03-01", end="2026-03-31", tz="UTC"):
    return build_window(start=start, end=end, now=NOW, tz_name=tz)


class TestBuildWindow:
    def test_date_only_end_covers_whole_day(self):
        w = window(start="2026-03-01", end="2026-03-02")
        assert w.start == datetime(2026, 3, 1)
        assert w.end == datetime(2026, 3, 2, 23, 59, 59, 999999)

    def test_datetime_bounds(self):
        w = window(start="2026-03-01T08:00:00Z", end="2026-03-01T12:00:00Z")
        assert w.start == datetime(2026, 3, 1, 8)
        assert w.end == datetime(2026, 3, 1, 12)

    def test_local_day_bounds_follow_zone(self):
        w = window(start="2026-03-01", end="2026-03-01", tz="America/New_York")
        assert w.start == datetime(2026, 3, 1, 5)

    def test_presets(self):
        assert build_window("week", now=NOW).start == NOW - timedelta(days=7)
        assert build_window("month", now=NOW).start == NOW - timedelta(days=30)
        today = build_window("today", now=NOW)
        assert today.start == datetime(2026, 3, 15)
        assert today.end == NOW

    def test_default_is_month(self):
        assert build_window(now=NOW).preset == "month"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"range_key": "year"},
            {"start": "2026-03-05", "end": "2026-03-01"},
            {"start": "not-a-date"},
            {"tz_name": "Mars/Olympus_Mons"},
        ],
    )
    def test_invalid_windows(self, kwargs):
        with pytest.raises(ReportError):
            build_window(now=NOW, **kwargs)


@pytest.fixture
def sales(record, admin_access, employee_access, employee, other_employee, haircut, beard_trim):
    """
    Four visits across two days:
    - Mar 1 09:xx: haircut by Sam (card), beard trim by Riley (cash, 2.00 off)
    - Mar 2 14:xx: haircut + beard trim by Sam (cash), haircut by Riley (upi)
    """
    return [
        record(employee_access, [(haircut, employee)], customer_name="Jane", customer_phone="111",
               payment_method="card", now=march(1, 9)),
        record(admin_access, [(beard_trim, other_employee)], customer_name="Mark", customer_phone="222",
               discount="2.00", now=march(1, 9, 30)),
        record(employee_access, [(haircut, employee), (beard_trim, employee)], customer_name="Jane",
               customer_phone="111", now=march(2, 14)),
        record(admin_access, [(haircut, other_employee)], customer_name="Ann", customer_phone="333",
               payment_method="upi", now=march(2, 14, 45)),
    ]


class TestWindowedReports:
    def test_daily_sales_chronological_and_sums(self, sales):
        report = reporting_service.daily_sales(window())

        assert [d["date"] for d in report["days"]] == ["2026-03-01", "2026-03-02"]
        assert [d["visits"] for d in report["days"]] == [2, 2]
        assert [d["revenue"] for d in report["days"]] == ["33.50", "61.00"]
        assert report["total_revenue"] == "94.50"
        assert sum(Decimal(d["revenue"]) for d in report["days"]) == Decimal(report["total_revenue"])

    def test_window_excludes_outside_visits(self, sales):
        report = reporting_service.daily_sales(window(start="2026-03-02", end="2026-03-02"))
        assert report["total_visits"] == 2

    def test_employee_performance_sorted_by_total(self, sales):
        report = reporting_service.employee_performance(window())

        assert [e["employee_name"] for e in report["employees"]] == ["Sam Stylist", "Riley Barber"]
        sam = report["employees"][0]
        assert sam["services_count"] == 3
        assert sam["total_revenue"] == "61.00"
        assert report["employees"][1]["total_revenue"] == "35.50"

    def test_service_performance_sorted_by_count(self, sales):
        report = reporting_service.service_performance(window())

        assert [s["service_name"] for s in report["services"]] == ["Classic Cut", "Beard Trim"]
        assert report["services"][0]["times_used"] == 3
        assert report["services"][0]["total_revenue"] == "76.50"
        assert report["services"][1]["times_used"] == 2

    def test_peak_hours_ascending(self, sales):
        report = reporting_service.peak_hours(window())
        assert report["hours"] == [{"hour": "09:00", "visits": 2}, {"hour": "14:00", "visits": 2}]

    def test_local_zone_buckets(self, record, admin_access, employee, haircut):
        # 03:00 UTC on Mar 2 is 22:00 on Mar 1 in New York
        record(admin_access, [(haircut, employee)], now=march(2, 3))
        w = window(start="2026-03-01", end="2026-03-02", tz="America/New_York")

        assert [d["date"] for d in reporting_service.daily_sales(w)["days"]] == ["2026-03-01"]
        assert reporting_service.peak_hours(w)["hours"] == [{"hour": "22:00", "visits": 1}]

    def test_payment_methods_sorted_by_count(self, sales):
        report = reporting_service.payment_methods(window())

        assert report["methods"][0] == {"method": "cash", "count": 2, "total_amount": "43.50"}
        assert {m["method"] for m in report["methods"]} == {"cash", "card", "upi"}

    def test_average_ticket(self, sales):
        report = reporting_service.average_ticket(window())

        assert report["days"][0] == {"date": "2026-03-01", "avg_value": "16.75", "visits": 2, "revenue": "33.50"}
        assert report["overall_average"] == "23.63"

    def test_average_ticket_empty_window(self, db_session):
        report = reporting_service.average_ticket(window())
        assert report["days"] == []
        assert report["overall_average"] == "0.00"

    def test_discount_report(self, sales):
        report = reporting_service.discount_report(window())

        assert report["total_discount"] == "2.00"
        assert report["total_revenue"] == "10.00"
        assert report["discount_percentage"] == 20.0
        assert report["discounted_visits"] == 1
        assert report["by_staff"] == [{"staff_name": "Olivia Owner", "visits": 1, "total_discount": "2.00"}]

    def test_missing_employee_labelled_unknown(self, db_session, sales, other_employee):
        db_session.query(Profile).filter(Profile.id == other_employee.id).delete()
        db_session.commit()
        db_session.expire_all()

        names = [e["employee_name"] for e in reporting_service.employee_performance(window())["employees"]]
        assert "Unknown" in names
        assert "Riley Barber" not in names


class TestRetention:
    def test_returning_customer_seen_before_window(self, sales, record, admin_access, employee, haircut):
        # 111 first came on Mar 1, 333 on Mar 2; 444 is new on Mar 3
        record(admin_access, [(haircut, employee)], customer_phone="444", now=march(3))
        record(admin_access, [(haircut, employee)], customer_phone="111", now=march(3, 11))

        report = reporting_service.customer_retention(window(start="2026-03-02", end="2026-03-03"))

        assert report["total_customers"] == 3
        assert report["returning_customers"] == 1
        assert report["new_customers"] == 2
        assert report["retention_rate"] == pytest.approx(33.33)

    def test_empty_window(self, db_session):
        report = reporting_service.customer_retention(window())
        assert report["retention_rate"] == 0.0


class TestDashboards:
    def test_overview(self, record, admin_access, employee, other_employee, haircut, beard_trim):
        record(admin_access, [(haircut, employee)], now=datetime(2026, 2, 10, 12))
        record(admin_access, [(haircut, employee)], now=datetime(2026, 2, 20, 12))
        record(admin_access, [(beard_trim, other_employee)], now=march(3))
        record(admin_access, [(haircut, employee), (beard_trim, other_employee)], now=march(15, 9))
        record(admin_access, [(beard_trim, other_employee)], now=march(15, 11))

        report = reporting_service.overview_dashboard(now=NOW, tz_name="UTC")

        assert report["today_visits"] == 2
        assert report["today_revenue"] == "45.50"
        assert report["avg_ticket_size"] == "22.75"
        assert report["month_visits"] == 3
        assert report["month_revenue"] == "55.50"
        assert report["last_month_revenue"] == "51.00"
        assert report["growth_rate"] == 8.82
        assert report["best_service"] == "Classic Cut"
        assert report["best_employee"] == "Sam Stylist"

    def test_overview_with_no_sales(self, db_session):
        report = reporting_service.overview_dashboard(now=NOW)
        assert report["best_service"] == "-"
        assert report["best_employee"] == "-"
        assert report["growth_rate"] == 0.0
        assert report["today_revenue"] == "0.00"

    def test_staff_dashboard_scoped_to_employee(self, record, admin_access, employee_access,
                                                employee, haircut, beard_trim):
        record(employee_access, [(haircut, employee)], now=march(15, 9))
        record(admin_access, [(beard_trim, employee)], now=march(15, 10))
        record(employee_access, [(haircut, employee)], now=march(14, 10))

        own = reporting_service.staff_dashboard(employee_access, now=NOW)
        assert own == {"today_visits": 1, "today_revenue": "25.50", "scope": "own"}

        salon = reporting_service.staff_dashboard(admin_access, now=NOW)
        assert salon["today_visits"] == 2
        assert salon["today_revenue"] == "35.50"
        assert salon["active_services"] == 2
        assert salon["active_staff"] == 2
