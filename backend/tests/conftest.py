"""
Pytest fixtures for PharmaPOS backend tests.

Provides a fresh in-memory database per test, the test client, seeded
admin/employee accounts with bearer headers, and record/product factories.
"""

import pytest

from pharmapos import create_app
from pharmapos.config import TestConfig
from pharmapos.extensions import db
from pharmapos.models import Product
from pharmapos.services import session_service
from pharmapos.services.auth_service import create_user

PASSWORD = "Password123!"


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    return db.session


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_user(email="admin@pharmapos.local", name="Alice Admin", password=PASSWORD, role="admin")


@pytest.fixture(scope='function')
def employee_user(db_session):
    return create_user(email="cashier@pharmapos.local", name="Carl Cashier", password=PASSWORD, role="employee")


@pytest.fixture(scope='function')
def other_employee(db_session):
    return create_user(email="second@pharmapos.local", name="Erin Evening", password=PASSWORD, role="employee")


def _headers_for(user) -> dict:
    _, token = session_service.create_session(user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return _headers_for(admin_user)


@pytest.fixture(scope='function')
def employee_headers(employee_user):
    return _headers_for(employee_user)


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(name="Amoxicillin", stock=10, unit_price_cents=500, ...)."""
    def _make(name="Amoxicillin 500mg", **overrides):
        values = {
            "name": name,
            "category": "Antibiotics",
            "sku": f"SKU-{name[:12].upper().replace(' ', '-')}",
            "unit_price_cents": 500,
            "cost_price_cents": 300,
            "stock": 10,
            "reorder_level": 2,
        }
        values.update(overrides)
        product = Product(**values)
        db_session.add(product)
        db_session.commit()
        return product
    return _make
