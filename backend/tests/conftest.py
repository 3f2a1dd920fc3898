"""
Pytest fixtures for salon backend tests.

Provides test database setup, staff profiles with auth headers, a small
service catalog and a helper for recording visits.
"""

from decimal import Decimal

import pytest
from salon import create_app
from salon.config import Config
from salon.extensions import db
from salon.models import Profile, Service, ServiceCategory, ROLE_ADMIN, ROLE_EMPLOYEE
from salon.services import session_service, visit_service
from salon.services.auth_service import hash_password
from salon.services.permission_service import AccessContext


TEST_PASSWORD = "Password123!"


class SalonTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SALON_TIMEZONE = "UTC"
    ALLOW_SIGNUP = True
    CUSTOMER_LOOKUP_MIN_CHARS = 3
    CUSTOMER_LOOKUP_LIMIT = 10


@pytest.fixture(scope='session')
def password_hash():
    """One bcrypt hash shared by every test profile."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(SalonTestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_profile(db_session, password_hash, *, email, full_name, role=ROLE_EMPLOYEE, active=True):
    profile = Profile(
        email=email,
        password_hash=password_hash,
        full_name=full_name,
        role=role,
        active=active,
    )
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture(scope='function')
def admin(db_session, password_hash):
    """Salon owner with the admin role."""
    return make_profile(db_session, password_hash, email="owner@salon.test", full_name="Olivia Owner", role=ROLE_ADMIN)


@pytest.fixture(scope='function')
def employee(db_session, password_hash):
    """Stylist with the employee role."""
    return make_profile(db_session, password_hash, email="sam@salon.test", full_name="Sam Stylist")


@pytest.fixture(scope='function')
def other_employee(db_session, password_hash):
    """Second stylist, used to check row scoping between employees."""
    return make_profile(db_session, password_hash, email="riley@salon.test", full_name="Riley Barber")


@pytest.fixture(scope='function')
def admin_access(admin):
    return AccessContext.for_profile(admin)


@pytest.fixture(scope='function')
def employee_access(employee):
    return AccessContext.for_profile(employee)


@pytest.fixture(scope='function')
def other_access(other_employee):
    return AccessContext.for_profile(other_employee)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin):
    _, token = session_service.create_session(admin.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def employee_headers(employee):
    _, token = session_service.create_session(employee.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def category(db_session):
    category = ServiceCategory(name="Haircut", description="Hair cutting and styling services")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def haircut(db_session, category):
    service = Service(name="Classic Cut", price=Decimal("25.50"), duration_minutes=45, category_id=category.id, active=True)
    db_session.add(service)
    db_session.commit()
    return service


@pytest.fixture(scope='function')
def beard_trim(db_session, category):
    service = Service(name="Beard Trim", price=Decimal("10.00"), duration_minutes=15, category_id=category.id, active=True)
    db_session.add(service)
    db_session.commit()
    return service


@pytest.fixture(scope='function')
def record(db_session):
    """
    Record a visit through the service layer.

    Usage: record(access, [(service, employee), ...], customer_name=..., now=...)
    """
    def _record(access, lines, *, customer_name="Walk-in", customer_phone=None,
                payment_method="cash", discount="0", now=None):
        draft = visit_service.VisitDraft(
            customer_name=customer_name,
            customer_phone=customer_phone,
            selections=[
                visit_service.LineSelection(service_id=service.id, employee_id=staff.id)
                for service, staff in lines
            ],
            payment_method=payment_method,
            discount=discount,
        )
        return visit_service.record_visit(draft, access, now=now)

    return _record
