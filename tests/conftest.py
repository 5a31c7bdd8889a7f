"""
Pytest configuration and fixtures.

Environment is set before any application module is imported so the cached
settings point at a throwaway key directory and SQLite database.
"""
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="shoppersky-tests-")
DB_PATH = os.path.join(_TMP_DIR, "test.db")

os.environ.update(
    {
        "ENVIRONMENT": "testing",
        "APP_ENV": "cloud",
        "JWT_KEYS_DIR": os.path.join(_TMP_DIR, "keys"),
        "SQLALCHEMY_DATABASE_URI": f"sqlite+aiosqlite:///{DB_PATH}",
        "ADMIN_EMAIL": "admin@shop.com",
        "ADMIN_PASSWORD": "AdminPass123",
        "SESSION_SECRET_KEY": "test-session-secret",
        "RATE_LIMIT_ENABLED": "false",
    }
)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]


@pytest.fixture
def client():
    """Application client on a fresh database, admin account seeded."""
    from main import app

    if os.path.exists(DB_PATH):
        os.remove(DB_PATH)

    with TestClient(app) as test_client:
        yield test_client


def register(client: TestClient, name: str, email: str, password: str = "Customer123") -> dict:
    response = client.post(
        "/api/v1/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    client.cookies.clear()
    return response.json()["user"]


def login(client: TestClient, email: str, password: str) -> str:
    """Log in (session + cookie held by the client) and return the bearer token."""
    client.cookies.clear()
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def login_admin(client: TestClient) -> str:
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
