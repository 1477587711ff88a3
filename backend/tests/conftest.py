"""
Pytest fixtures for stockroom backend tests.

Provides an in-memory application, a clean database per test, seeded roles
and permissions, users per default role and small catalog factories.
"""

from datetime import timedelta

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import Role, User
from stockroom.services import (
    auth_service,
    category_service,
    customer_service,
    permission_service,
    product_service,
    provider_service,
)
from stockroom.time_utils import today


PASSWORD = "Password123!"

_password_hash = None


def _hashed_password() -> str:
    # bcrypt at cost 12 is slow; hash the shared test password once
    global _password_hash
    if _password_hash is None:
        _password_hash = auth_service.hash_password(PASSWORD)
    return _password_hash


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'MAIL_SERVER': '',
    })

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
def setup_roles(db_session):
    """Setup default roles and permissions."""
    auth_service.create_default_roles()
    permission_service.initialize_permissions()
    permission_service.assign_default_role_permissions()
    db_session.commit()


@pytest.fixture
def make_user(db_session, setup_roles):
    """Factory: make_user("employee", email=...) with the shared test password."""
    def _make(role_name: str, email: str | None = None, is_active: bool = True) -> User:
        role = db_session.query(Role).filter_by(name=role_name).one()
        user = User(
            name=role_name.capitalize(),
            lastname="Tester",
            contact_number="3000000000",
            email=email or f"{role_name}@example.com",
            password_hash=_hashed_password(),
            role_id=role.id,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user("admin")


@pytest.fixture
def assistant_user(make_user):
    return make_user("assistant")


@pytest.fixture
def employee_user(make_user):
    return make_user("employee")


@pytest.fixture
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email, PASSWORD))


@pytest.fixture
def assistant_headers(client, assistant_user):
    return auth_headers(get_auth_token(client, assistant_user.email, PASSWORD))


@pytest.fixture
def employee_headers(client, employee_user):
    return auth_headers(get_auth_token(client, employee_user.email, PASSWORD))


@pytest.fixture
def category(db_session):
    return category_service.create_category({"name": "Medicines"})


@pytest.fixture
def make_product(db_session, category):
    """
    Factory for products. stock is written directly here; the API never
    lets clients set it.
    """
    counter = {"n": 0}

    def _make(
        name: str | None = None,
        price: str = "10.00",
        stock: int = 0,
        expires_in_days: int = 365,
        status: str = "active",
    ):
        counter["n"] += 1
        product = product_service.create_product({
            "name": name or f"Product {counter['n']}",
            "category_id": category.id,
            "price": price,
            "batch_date": (today() - timedelta(days=30)).isoformat(),
            "expiration_date": (today() + timedelta(days=expires_in_days)).isoformat(),
            "status": status,
        })
        if stock:
            product.stock = stock
            db_session.commit()
        return product

    return _make


@pytest.fixture
def provider(db_session):
    return provider_service.create_provider({
        "nit": "900123456",
        "company": "Acme Supplies",
        "name": "Laura Diaz",
        "contact_phone": "3105550000",
        "email": "sales@acme.example.com",
    })


@pytest.fixture
def customer(db_session):
    return customer_service.create_customer({
        "name": "Mario",
        "lastname": "Rossi",
        "phone": "3115551234",
        "email": "mario@example.com",
    })


def refreshed(model, record_id):
    """Re-read a row after requests made through the test client."""
    db.session.expire_all()
    return db.session.get(model, record_id)


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
