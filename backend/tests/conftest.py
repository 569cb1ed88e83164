"""
Pytest fixtures for Farmbook backend tests.

Provides test database setup, two independent tenants, and a test client.
"""

import io

import pytest
from farmbook import create_app
from farmbook.blobstore import get_blob_store
from farmbook.extensions import db
from farmbook.services.auth_service import register_user


TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BLOB_STORE_BACKEND': 'memory',
        'BCRYPT_ROUNDS': 4,
        'JWT_SECRET': 'test-jwt-secret-that-is-long-enough-for-hs256',
        'CORS_ALLOWED_ORIGINS': ['*'],
        'NOTE_SEARCH_CASE_SENSITIVE': False,
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
    """Fresh database and blob store for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        get_blob_store().clear()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def blob_store(db_session):
    return get_blob_store()


@pytest.fixture(scope='function')
def user_a(db_session):
    """First tenant."""
    return register_user("user_a", TEST_PASSWORD)


@pytest.fixture(scope='function')
def user_b(db_session):
    """Second tenant."""
    return register_user("user_b", TEST_PASSWORD)


@pytest.fixture(scope='function')
def headers_a(client, user_a):
    return auth_headers(get_auth_token(client, "user_a", TEST_PASSWORD))


@pytest.fixture(scope='function')
def headers_b(client, user_b):
    return auth_headers(get_auth_token(client, "user_b", TEST_PASSWORD))


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


def image_file(name: str = "receipt.jpg", data: bytes = b"\xff\xd8\xff fake jpeg", content_type: str = "image/jpeg"):
    """Multipart file tuple for the Flask test client."""
    return (io.BytesIO(data), name, content_type)


def sale_form(**overrides) -> dict:
    form = {
        "date": "2024-03-15",
        "weight": "10.5",
        "pricePerKg": "2.25",
        "customer": "Green Valley Co-op",
    }
    form.update(overrides)
    return form
