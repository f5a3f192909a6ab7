"""
Shared fixtures: an in-memory SQLite database and signed API clients.
"""
import os
import sys

# Must be set before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ALLOW_SQLITE"] = "true"
os.environ.setdefault("INTERNAL_AUTH_SECRET", "test-internal-auth-secret")

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from finance_api.database import Base, SessionLocal, engine  # noqa: E402
from finance_api.main import app  # noqa: E402
from tests.internal_auth import SignedClient  # noqa: E402


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def alice(client):
    return SignedClient(client, "user_alice")


@pytest.fixture
def bob(client):
    return SignedClient(client, "user_bob")
