"""
Shared test fixtures — SQLite test database, test client, auth helpers.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set JWT_SECRET before importing app modules
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from estimator.database import Base, get_db
from estimator.models import User
from estimator.main import app


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def register(client, email, password="strongpassword123"):
    response = client.post("/api/auth/register", json={"email": email, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    """Register the project owner and return auth headers."""
    return register(client, "owner@builder.com")


@pytest.fixture
def other_headers(client):
    """A second registered user, for sharing and permission tests."""
    return register(client, "colleague@builder.com")


@pytest.fixture
def admin_headers(client, db):
    """A registered user promoted to admin, for shared reference data."""
    headers = register(client, "admin@builder.com")
    db.query(User).filter(User.email == "admin@builder.com").update({"role": "admin"})
    db.commit()
    return headers


@pytest.fixture
def project(client, auth_headers):
    """Project with the reference financial settings (10/5/20/10)."""
    response = client.post("/api/projects/", headers=auth_headers, json={
        "name": "Warehouse extension",
        "currency": "USD",
        "financial_settings": {
            "overhead_percent": 10,
            "contingency_percent": 5,
            "markup_percent": 20,
            "tax_percent": 10,
        },
    })
    assert response.status_code == 200
    return response.json()
