"""
Pytest configuration and fixtures.

Provides an in-memory document store so the coordinators can be exercised
end to end without a live Appwrite instance, plus principals for the
usual roles.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from api.dependencies import (
    get_auth_client,
    get_current_user,
    get_current_user_optional,
    get_document_client,
)
from integrations.auth import InvalidSessionError
from services.authorization import Principal
from services.notification_service import get_notification_service
from tests.fakes import FakeAppwriteClient


@pytest.fixture
def fake_client():
    """Fresh in-memory store per test."""
    return FakeAppwriteClient()


@pytest.fixture
def store(fake_client):
    """The in-memory documents API behind ``fake_client``."""
    return fake_client.documents


@pytest.fixture
def alice():
    return Principal(user_id="user-alice", email="alice@example.com", name="Alice")


@pytest.fixture
def bob():
    return Principal(user_id="user-bob", email="bob@example.com", name="Bob")


@pytest.fixture
def carol():
    return Principal(user_id="user-carol", email="carol@example.com", name="Carol")


@pytest.fixture
def admin():
    return Principal(
        user_id="user-admin",
        email="admin@example.com",
        name="Admin",
        labels=("admin",),
        is_admin=True,
    )


@pytest.fixture
def client():
    """
    Create a test client for the FastAPI application.

    This fixture is imported late to avoid circular dependencies
    and to ensure the app is properly configured before testing.
    """
    from main import app

    return TestClient(app)


@pytest.fixture
def mock_env(monkeypatch):
    """
    Set up mock environment variables for testing.
    """
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setenv("API_VERSION", "v1")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173")
    monkeypatch.setenv("APPWRITE_PROJECT_ID", "test-project")
    monkeypatch.setenv("APPWRITE_API_KEY", "test-key")
    monkeypatch.setenv("APPWRITE_DATABASE_ID", "test-db")


@pytest.fixture
def notifier():
    """Notification service double recording confirmation emails."""
    service = MagicMock()
    service.send_registration_confirmation = AsyncMock(return_value=True)
    return service


@pytest.fixture
def api(fake_client, notifier):
    """
    Test client for the full application backed by the in-memory store.

    Requests are anonymous until ``login`` is called; any credential sent
    is rejected by the stub verifier.
    """
    from main import app

    auth_client = MagicMock()
    auth_client.session_cookie_name = "a_session_test-project"
    auth_client.verify_jwt = AsyncMock(side_effect=InvalidSessionError())
    auth_client.verify_session = AsyncMock(side_effect=InvalidSessionError())

    app.dependency_overrides[get_document_client] = lambda: fake_client
    app.dependency_overrides[get_notification_service] = lambda: notifier
    app.dependency_overrides[get_auth_client] = lambda: auth_client

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def login(api):
    """Authenticate subsequent ``api`` requests as the given principal."""
    from main import app

    def _login(principal):
        app.dependency_overrides[get_current_user] = lambda: principal
        app.dependency_overrides[get_current_user_optional] = lambda: principal

    return _login
