"""
Health endpoint and CLI bootstrap commands.
"""

from salon.models import Profile, ServiceCategory, ROLE_ADMIN
from salon.services import catalog_service


def test_health(client, db_session):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json["status"] == "healthy"
    assert resp.json["checks"]["database"]["details"]["profiles"] == 0


def test_version(client):
    resp = client.get("/api/version")
    assert resp.status_code == 200
    assert resp.json["timezone"] == "UTC"


class TestCli:
    def test_init_creates_admin_and_categories(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "init", "--email", "boss@salon.test", "--full-name", "Boss"])

        assert result.exit_code == 0
        assert "PASS Created admin" in result.output
        admin = db_session.query(Profile).filter_by(email="boss@salon.test").one()
        assert admin.role == ROLE_ADMIN
        assert db_session.query(ServiceCategory).count() == len(catalog_service.DEFAULT_CATEGORIES)

    def test_init_is_rerunnable(self, app, db_session, admin):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "init"])

        assert result.exit_code == 0
        assert "Admin already exists" in result.output
        assert db_session.query(Profile).count() == 1

    def test_create_user_rejects_weak_password(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "users", "create",
            "--email", "jo@salon.test",
            "--full-name", "Jo",
            "--password", "weak",
            "--role", "employee",
        ])

        assert "FAIL Password validation failed" in result.output
        assert db_session.query(Profile).count() == 0

    def test_list_users(self, app, admin, employee):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["users", "list"])

        assert "owner@salon.test" in result.output
        assert "sam@salon.test" in result.output
