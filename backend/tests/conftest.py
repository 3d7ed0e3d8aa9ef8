"""
Pytest fixtures for PaintDesk backend tests.

Provides an in-memory application, per-test table wipe, staff/customer
fixtures and auth header helpers.
"""

import pytest

from paintdesk import create_app
from paintdesk.config import TestConfig
from paintdesk.extensions import db
from paintdesk.models import Customer, PaintOrder
from paintdesk.services import auth_service, workflow_service


PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

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


@pytest.fixture(scope='function')
def admin(db_session):
    """Administrator (approves, rejects, assigns)."""
    return auth_service.create_user("admin1", "admin1@shop.local", PASSWORD, "admin")


@pytest.fixture(scope='function')
def tech(db_session):
    """Technician who owns the default customer."""
    return auth_service.create_user("tech7", "tech7@shop.local", PASSWORD, "user")


@pytest.fixture(scope='function')
def other_tech(db_session):
    """Technician with no relation to the default customer."""
    return auth_service.create_user("tech8", "tech8@shop.local", PASSWORD, "user")


@pytest.fixture(scope='function')
def customer(db_session, tech):
    """Customer created by tech, with portal access."""
    customer = Customer(name="Acme Coatings", email="info@acme.test", created_by=tech.id)
    db_session.add(customer)
    db_session.commit()
    return auth_service.set_customer_credentials(customer.id, "acme", PASSWORD)


@pytest.fixture(scope='function')
def other_customer(db_session, admin):
    """Customer nobody but admins may see."""
    customer = Customer(name="Beta Industrial", created_by=admin.id)
    db_session.add(customer)
    db_session.commit()
    return auth_service.set_customer_credentials(customer.id, "beta", PASSWORD)


@pytest.fixture(scope='function')
def order(db_session, customer, tech):
    """Pending paint order submitted by tech for customer."""
    return workflow_service.submit(
        PaintOrder,
        customer_id=customer.id,
        created_by=tech.id,
        fields={"paint_type": "Epoxy primer", "quantity": 20, "unit": "kg"},
    )


def get_auth_token(client, username: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, "admin1"))


@pytest.fixture(scope='function')
def tech_headers(client, tech):
    return auth_headers(get_auth_token(client, "tech7"))


@pytest.fixture(scope='function')
def other_tech_headers(client, other_tech):
    return auth_headers(get_auth_token(client, "tech8"))


@pytest.fixture(scope='function')
def customer_headers(client, customer):
    return auth_headers(get_auth_token(client, "acme"))
