"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Employee role denied admin operations (403)
- Admin role can perform privileged operations
- Employees read only the visits they recorded
"""

import pytest

from salon.services import session_service


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/profiles"),
            ("GET", "/api/profiles/staff"),
            ("GET", "/api/categories"),
            ("POST", "/api/categories"),
            ("GET", "/api/services"),
            ("POST", "/api/services"),
            ("GET", "/api/visits"),
            ("POST", "/api/visits"),
            ("GET", "/api/customers"),
            ("GET", "/api/customers/lookup?phone=555"),
            ("GET", "/api/reports/daily-sales"),
            ("GET", "/api/reports/overview"),
            ("GET", "/api/reports/dashboard"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/visits", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    def test_revoked_token(self, client, employee):
        _, token = session_service.create_session(employee.id)
        session_service.revoke_session(token)
        resp = client.get("/api/visits", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401


# =============================================================================
# EMPLOYEE DENIED ADMIN OPERATIONS (403)
# =============================================================================


class TestEmployeeDeniedAdminOperations:
    """Employee role cannot perform privileged operations."""

    @pytest.mark.parametrize(
        "path",
        [
            "/api/reports/daily-sales",
            "/api/reports/employee-performance",
            "/api/reports/service-performance",
            "/api/reports/peak-hours",
            "/api/reports/payment-methods",
            "/api/reports/customer-retention",
            "/api/reports/average-ticket",
            "/api/reports/discounts",
            "/api/reports/overview",
            "/api/customers",
            "/api/profiles",
        ],
    )
    def test_cannot_read_admin_views(self, client, employee_headers, path):
        resp = client.get(path, headers=employee_headers)
        assert resp.status_code == 403
        assert resp.json["error"] == "Permission denied"

    def test_cannot_create_service(self, client, employee_headers):
        resp = client.post(
            "/api/services",
            json={"name": "Free Cut", "price": "0.00"},
            headers=employee_headers,
        )
        assert resp.status_code == 403

    def test_cannot_create_category(self, client, employee_headers):
        resp = client.post("/api/categories", json={"name": "Evil"}, headers=employee_headers)
        assert resp.status_code == 403

    def test_cannot_toggle_staff(self, client, employee_headers, other_employee):
        resp = client.post(f"/api/profiles/{other_employee.id}/toggle-active", headers=employee_headers)
        assert resp.status_code == 403

    def test_cannot_promote_self(self, client, employee_headers, employee):
        resp = client.put(f"/api/profiles/{employee.id}", json={"role": "admin"}, headers=employee_headers)
        assert resp.status_code == 403

    def test_cannot_edit_visits(self, client, employee_headers, record, employee_access, employee, haircut):
        visit = record(employee_access, [(haircut, employee)])
        resp = client.put(f"/api/visits/{visit.id}", json={"payment_status": "refunded"}, headers=employee_headers)
        assert resp.status_code == 403


# =============================================================================
# EMPLOYEE ALLOWED OPERATIONS
# =============================================================================


class TestEmployeeAllowed:
    def test_own_dashboard(self, client, employee_headers):
        resp = client.get("/api/reports/dashboard", headers=employee_headers)
        assert resp.status_code == 200
        assert resp.json["scope"] == "own"

    def test_staff_list(self, client, employee_headers, employee, admin):
        resp = client.get("/api/profiles/staff", headers=employee_headers)
        assert resp.status_code == 200
        assert {s["full_name"] for s in resp.json["staff"]} == {"Sam Stylist", "Olivia Owner"}

    def test_edit_own_name(self, client, employee_headers, employee):
        resp = client.put(f"/api/profiles/{employee.id}", json={"full_name": "Sam S."}, headers=employee_headers)
        assert resp.status_code == 200
        assert resp.json["full_name"] == "Sam S."

    def test_employee_sees_only_own_visits(self, client, employee_headers, record, employee_access,
                                           other_access, employee, other_employee, haircut):
        mine = record(employee_access, [(haircut, employee)])
        theirs = record(other_access, [(haircut, other_employee)])

        resp = client.get("/api/visits", headers=employee_headers)
        assert resp.status_code == 200
        assert [v["id"] for v in resp.json["items"]] == [mine.id]

        resp = client.get(f"/api/visits/{theirs.id}", headers=employee_headers)
        assert resp.status_code == 404


# =============================================================================
# ADMIN ALLOWED OPERATIONS
# =============================================================================


class TestAdminAllowed:
    def test_reads_all_visits(self, client, admin_headers, record, employee_access, other_access,
                              employee, other_employee, haircut):
        record(employee_access, [(haircut, employee)])
        record(other_access, [(haircut, other_employee)])

        resp = client.get("/api/visits", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 2

    def test_deactivate_employee_revokes_sessions(self, client, admin_headers, employee, employee_headers):
        resp = client.post(f"/api/profiles/{employee.id}/toggle-active", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["active"] is False

        resp = client.get("/api/visits", headers=employee_headers)
        assert resp.status_code == 401

    def test_cannot_deactivate_self(self, client, admin_headers, admin):
        resp = client.post(f"/api/profiles/{admin.id}/toggle-active", headers=admin_headers)
        assert resp.status_code == 409

    def test_cannot_demote_last_admin(self, client, admin_headers, admin):
        resp = client.put(f"/api/profiles/{admin.id}", json={"role": "employee"}, headers=admin_headers)
        assert resp.status_code == 409

    def test_promote_employee(self, client, admin_headers, employee):
        resp = client.put(f"/api/profiles/{employee.id}", json={"role": "admin"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["role"] == "admin"

    def test_invalid_role_rejected(self, client, admin_headers, employee):
        resp = client.put(f"/api/profiles/{employee.id}", json={"role": "owner"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_role_permission_listing(self, client, admin_headers):
        resp = client.get("/api/profiles/roles?category=REPORTS", headers=admin_headers)
        assert resp.status_code == 200

        by_role = {r["role"]: [p["code"] for p in r["permissions"]] for r in resp.json["roles"]}
        assert by_role == {
            "admin": ["VIEW_OWN_DASHBOARD", "VIEW_REPORTS"],
            "employee": ["VIEW_OWN_DASHBOARD"],
        }
