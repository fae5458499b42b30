"""
Pytest fixtures for delivery backend tests.

Provides a fresh in-memory database per test, users for each role, and
auth helpers for the Flask test client.
"""

import pytest
from delivery import create_app
from delivery.extensions import db
from delivery.models import Role
from delivery.services.auth_service import create_user


ADMIN_PASSWORD = "admin123"
PASSWORD = "Password123"


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application for testing; bootstrap creates tables and the admin."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'JWT_SECRET_KEY': 'test-secret',
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'PUBLIC_BASE_URL': 'http://testserver',
        'DEFAULT_ADMIN_PASSWORD': ADMIN_PASSWORD,
        'BOOTSTRAP_ON_STARTUP': True,
    })

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


def _make_user(username, role, full_name, phone=None):
    return create_user(
        username=username,
        password=PASSWORD,
        full_name=full_name,
        role=role,
        phone=phone,
    )


@pytest.fixture(scope='function')
def employee(app):
    return _make_user("employee1", Role.EMPLOYEE, "Eve Employee")


@pytest.fixture(scope='function')
def courier(app):
    return _make_user("courier1", Role.COURIER, "Carl Courier", "+100200300")


@pytest.fixture(scope='function')
def other_courier(app):
    return _make_user("courier2", Role.COURIER, "Dana Courier")


def get_auth_token(client, username: str, password: str) -> str:
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
def admin_headers(client):
    return auth_headers(get_auth_token(client, "admin", ADMIN_PASSWORD))


@pytest.fixture(scope='function')
def employee_headers(client, employee):
    return auth_headers(get_auth_token(client, employee.username, PASSWORD))


@pytest.fixture(scope='function')
def courier_headers(client, courier):
    return auth_headers(get_auth_token(client, courier.username, PASSWORD))


@pytest.fixture(scope='function')
def other_courier_headers(client, other_courier):
    return auth_headers(get_auth_token(client, other_courier.username, PASSWORD))


@pytest.fixture(scope='function')
def make_order(client, admin_headers):
    """Factory: create an order through the API as admin and return its JSON."""
    def _make(**overrides):
        payload = {
            "customer_name": "Sam Customer",
            "customer_phone": "+15550001",
            "address": "1 Main St",
            "service_type": "sale",
        }
        payload.update(overrides)
        resp = client.post('/api/orders', json=payload, headers=admin_headers)
        assert resp.status_code == 201, resp.json
        return resp.json["order"]
    return _make


@pytest.fixture(scope='function')
def login(client):
    """Factory: log in through the API and return auth headers (None on failure)."""
    def _login(username, password=PASSWORD):
        token = get_auth_token(client, username, password)
        return auth_headers(token) if token else None
    return _login
