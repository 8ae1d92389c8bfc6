"""
Pytest fixtures for Avenue backend tests.

Provides the application on an in-memory database, a per-test clean
database, customer/admin accounts with bearer headers, and a small
location hierarchy.
"""

import pytest

from avenue import create_app
from avenue.extensions import db
from avenue.models import City, Country, County
from avenue.models.auth import ROLE_ADMIN, ROLE_CUSTOMER
from avenue.services import auth_service, session_service

# bcrypt's minimum cost; keeps fixture setup fast
TEST_BCRYPT_ROUNDS = 4
TEST_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'VAPID_PUBLIC_KEY': 'BTestVapidPublicKey',
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


def _make_user(email: str, name: str, role: str):
    return auth_service.create_user(
        email=email,
        name=name,
        password=TEST_PASSWORD,
        role=role,
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
    )


def auth_headers(user) -> dict:
    """Start a session for `user` and return the Authorization header."""
    _, token = session_service.create_session(user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def customer(db_session):
    return _make_user("shopper@example.com", "Wanjiru Kamau", ROLE_CUSTOMER)


@pytest.fixture(scope='function')
def other_customer(db_session):
    return _make_user("other@example.com", "Otieno Ouma", ROLE_CUSTOMER)


@pytest.fixture(scope='function')
def admin(db_session):
    return _make_user("admin@avenue.local", "Store Admin", ROLE_ADMIN)


@pytest.fixture(scope='function')
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture(scope='function')
def other_customer_headers(other_customer):
    return auth_headers(other_customer)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture(scope='function')
def locations(db_session):
    """
    Kenya (active) with two counties, plus an inactive county, an inactive
    city, a county with no cities and a second country.
    """
    kenya = Country(name="Kenya", is_active=True)
    uganda = Country(name="Uganda", is_active=True)
    db_session.add_all([kenya, uganda])
    db_session.flush()

    nairobi = County(name="Nairobi", country_id=kenya.id, is_active=True)
    mombasa = County(name="mombasa", country_id=kenya.id, is_active=True)
    closed = County(name="Closed County", country_id=kenya.id, is_active=False)
    kampala = County(name="Kampala", country_id=uganda.id, is_active=True)
    db_session.add_all([nairobi, mombasa, closed, kampala])
    db_session.flush()

    westlands = City(name="Westlands", county_id=nairobi.id, delivery_fee=250, is_active=True)
    karen = City(name="Karen", county_id=nairobi.id, delivery_fee=350, is_active=True)
    retired = City(name="Retired Town", county_id=nairobi.id, delivery_fee=100, is_active=False)
    nyali = City(name="Nyali", county_id=mombasa.id, delivery_fee=450, is_active=True)
    db_session.add_all([westlands, karen, retired, nyali])
    db_session.commit()

    return {
        "kenya": kenya,
        "uganda": uganda,
        "nairobi": nairobi,
        "mombasa": mombasa,
        "closed": closed,
        "kampala": kampala,
        "westlands": westlands,
        "karen": karen,
        "retired": retired,
        "nyali": nyali,
    }


@pytest.fixture(scope='function')
def address_payload(locations):
    def build(**overrides):
        payload = {
            "recipient_name": "Wanjiru Kamau",
            "phone": "+254 712 345678",
            "country_id": locations["kenya"].id,
            "county_id": locations["nairobi"].id,
            "city_id": locations["westlands"].id,
            "street_address": "Waiyaki Way, ABC Place, 3rd floor",
        }
        payload.update(overrides)
        return payload

    return build
