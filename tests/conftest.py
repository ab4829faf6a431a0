import os

# Cheap hashes and a fixed secret for the whole test session; must be set
# before the application modules are imported.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("TOKEN_SECRET", "test-secret")

import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from db.database import DatabaseClient
from main import create_app
from services.auth_service import TokenService, configure_password_hashing
from services.event_service import EventService
from services.user_service import UserService

TEST_SECRET = "test-secret"
TEST_BCRYPT_ROUNDS = 4

configure_password_hashing(TEST_BCRYPT_ROUNDS)


@pytest.fixture
def database():
    db = DatabaseClient(db_name="test_appointments", client=mongomock.MongoClient())
    db.connect()
    db.ensure_indexes()
    yield db


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET)


@pytest.fixture
def event_service(database):
    return EventService(database)


@pytest.fixture
def user_service(database, token_service, event_service):
    return UserService(database, token_service, event_service)


@pytest.fixture
def client(database):
    app = create_app(Settings(token_secret=TEST_SECRET, bcrypt_rounds=TEST_BCRYPT_ROUNDS), database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def password_rounds():
    """Changes the bcrypt work factor for one test."""
    yield configure_password_hashing
    configure_password_hashing(TEST_BCRYPT_ROUNDS)


@pytest.fixture
def alice_data():
    return {
        "firstName": "Alice",
        "lastName": "Smith",
        "email": "alice@example.com",
        "username": "alice",
        "password": "secret1",
    }


@pytest.fixture
def bob_data():
    return {
        "firstName": "Bob",
        "lastName": "Jones",
        "email": "bob@example.com",
        "username": "bob_j",
        "password": "hunter22",
    }
