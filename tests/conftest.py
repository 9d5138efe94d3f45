"""
Pytest configuration and fixtures for TruckConnect backend tests
"""
import os
import uuid

import pytest

from truckconnect import create_app, db
from truckconnect.auth import generate_token, hash_password
from truckconnect.models import User, Driver, REQUIRED_DOCUMENTS
from truckconnect.services import lifecycle

TEST_PASSWORD = 'Password123!'

LOAD_DATA = {
    'source': 'Hyderabad',
    'destination': 'Bangalore',
    'loadType': 'Steel coils',
    'quantity': 10,
    'estimatedFare': 50000,
}


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is deliberately slow; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def app(tmp_path):
    """Create application instance for testing.

    Uses a SQLite file per test so that worker threads get their own
    connections to the same database.
    """
    os.environ['FLASK_ENV'] = 'testing'
    database = tmp_path / 'truckconnect-test.db'
    app = create_app('testing', config_overrides={
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{database}',
    })

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()


def headers_for(user):
    """Bearer auth headers for a user"""
    return {
        'Authorization': f'Bearer {generate_token(user.id, user.role)}',
        'Content-Type': 'application/json',
    }


def document_links(prefix='https://files.truckconnect.test/docs'):
    return {key: f'{prefix}/{key}.pdf' for key in REQUIRED_DOCUMENTS}


@pytest.fixture
def make_customer(app, password_hash):
    """Factory for customer users"""
    def _make(name='Ravi Kumar', email=None, phone='9876543210'):
        user = User(
            name=name,
            email=email or f'customer-{uuid.uuid4().hex[:8]}@example.com',
            phone=phone,
            role='customer',
            password_hash=password_hash,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_driver(app, password_hash):
    """Factory for driver users with a profile; returns the User"""
    def _make(name='Suresh Reddy', status='accepted', email=None, phone='9123456780',
              lorry_type='Open body 14ft', max_capacity=12, documents=None):
        user = User(
            name=name,
            email=email or f'driver-{uuid.uuid4().hex[:8]}@example.com',
            phone=phone,
            role='driver',
            password_hash=password_hash,
        )
        driver = Driver(
            address='Plot 12, Kukatpally, Hyderabad',
            lorry_type=lorry_type,
            max_capacity=max_capacity,
            status=status,
        )
        for key, url in (documents or document_links()).items():
            driver.set_document(key, url)
        user.driver_profile = driver
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def test_customer(make_customer):
    return make_customer()


@pytest.fixture
def test_driver(make_driver):
    """An accepted driver"""
    return make_driver()


@pytest.fixture
def test_admin(app, password_hash):
    user = User(
        name='Platform Admin',
        email='admin@truckconnect.test',
        phone='9000000001',
        role='admin',
        password_hash=password_hash,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def customer_headers(test_customer):
    return headers_for(test_customer)


@pytest.fixture
def driver_headers(test_driver):
    return headers_for(test_driver)


@pytest.fixture
def admin_headers(test_admin):
    return headers_for(test_admin)


@pytest.fixture
def pending_load(test_customer):
    """A freshly posted load owned by test_customer"""
    return lifecycle.create_load(test_customer, dict(LOAD_DATA))


@pytest.fixture
def assigned_load(pending_load, test_customer, test_driver):
    """pending_load with test_driver applied and assigned"""
    lifecycle.apply_to_load(pending_load.id, test_driver)
    return lifecycle.assign_driver(pending_load.id, test_customer, test_driver.driver_profile.id)


@pytest.fixture
def completed_load(assigned_load, test_customer):
    return lifecycle.complete_load(assigned_load.id, test_customer)
