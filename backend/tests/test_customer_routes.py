"""
Customer lookup and history routes.
"""

from datetime import datetime


class TestLookupRoute:
    def test_echoes_seq(self, client, employee_headers, record, employee_access, employee, haircut):
        record(employee_access, [(haircut, employee)], customer_name="Jane Doe", customer_phone="5550100")

        resp = client.get("/api/customers/lookup?phone=555&seq=7", headers=employee_headers)

        assert resp.status_code == 200
        assert resp.json == {
            "seq": "7",
            "query": "555",
            "suggestions": [{"name": "Jane Doe", "phone": "5550100"}],
        }

    def test_short_input_returns_empty(self, client, employee_headers, record, employee_access, employee, haircut):
        record(employee_access, [(haircut, employee)], customer_name="Jane Doe", customer_phone="5550100")

        resp = client.get("/api/customers/lookup?phone=55&seq=3", headers=employee_headers)

        assert resp.status_code == 200
        assert resp.json["seq"] == "3"
        assert resp.json["suggestions"] == []

    def test_without_seq(self, client, employee_headers):
        resp = client.get("/api/customers/lookup?phone=555", headers=employee_headers)
        assert resp.status_code == 200
        assert resp.json["seq"] is None


class TestCustomerListRoutes:
    def test_admin_lists_customers(self, client, admin_headers, record, admin_access, employee, haircut):
        record(admin_access, [(haircut, employee)], customer_name="Jane", customer_phone="111",
               now=datetime(2026, 3, 1, 9))

        resp = client.get("/api/customers", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["count"] == 1
        assert resp.json["customers"][0]["total_spent"] == "25.50"

    def test_window_filters(self, client, admin_headers, record, admin_access, employee, haircut):
        record(admin_access, [(haircut, employee)], customer_name="Jane", customer_phone="111",
               now=datetime(2026, 3, 1, 9))

        resp = client.get("/api/customers?start=2026-03-02&end=2026-03-05", headers=admin_headers)
        assert resp.json["count"] == 0

    def test_bad_window(self, client, admin_headers):
        resp = client.get("/api/customers?start=2026-03-05&end=2026-03-01", headers=admin_headers)
        assert resp.status_code == 400

    def test_history(self, client, admin_headers, record, admin_access, employee, haircut):
        record(admin_access, [(haircut, employee)], customer_name="Jane", customer_phone="111")

        resp = client.get("/api/customers/111", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["services_taken"] == ["Classic Cut"]

    def test_history_unknown_phone(self, client, admin_headers):
        resp = client.get("/api/customers/999", headers=admin_headers)
        assert resp.status_code == 404
