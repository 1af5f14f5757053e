"""Pytest fixtures for API tests.

Provides a TestClient wired to the in-memory database session and the
mocked email client from the root conftest.
"""

from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from src.api.auth import failure_limiter
from src.api.dependencies import get_email_client, get_email_settings
from src.api.main import app
from src.db.connection import get_db
from src.services.email_settings import EmailSettings


@pytest.fixture(autouse=True)
def _reset_failure_limiter():
    """Clear admin-key failure counts between tests."""
    failure_limiter.reset()
    yield
    failure_limiter.reset()


@pytest.fixture
def app_settings(email_settings: EmailSettings) -> EmailSettings:
    """Settings served to route handlers. Override to change per test."""
    return email_settings


@pytest.fixture
def client(
    db_session: Session,
    app_settings: EmailSettings,
    email_client: AsyncMock,
    monkeypatch,
) -> Generator[TestClient, None, None]:
    """Create a TestClient with overridden database and email dependencies.

    Yields:
        TestClient configured for testing.
    """
    monkeypatch.delenv("PRINTPALOOZA_ADMIN_API_KEY", raising=False)
    monkeypatch.delenv("RESEND_API_KEY", raising=False)
    monkeypatch.delenv("RESEND_WEBHOOK_SECRET", raising=False)

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_settings] = lambda: app_settings
    app.dependency_overrides[get_email_client] = lambda: email_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
