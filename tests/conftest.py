"""Root-level pytest fixtures for all tests.

Provides shared fixtures:
- In-memory database session
- Email settings and a mocked Resend client
- Order factory
"""

import os

# Must be set before src.db.connection creates its engine.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.pop("PRINTPALOOZA_ADMIN_API_KEY", None)

from collections.abc import Callable, Generator
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.db.models import Base, Order
from src.services.email_client import ResendClient
from src.services.email_settings import EmailSettings

REPLY_DOMAIN = "reply.printpalooza.com"
WEBHOOK_SECRET = "whsec_MfKQ9r8GKYqrTwjUPD8ILPZIo2LaLaSw"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that exercise several layers together"
    )


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """In-memory SQLite session shared across threads (StaticPool)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_order(db_session: Session) -> Callable[..., Order]:
    """Factory that inserts an order directly."""

    def _make(
        order_id: str = "quote_1001",
        customer_name: str = "Jane Doe",
        email: str = "jane@example.com",
        **kwargs,
    ) -> Order:
        order = Order(id=order_id, customer_name=customer_name, email=email, **kwargs)
        db_session.add(order)
        db_session.commit()
        return order

    return _make


# ============================================================================
# Email Provider Fixtures
# ============================================================================


@pytest.fixture
def email_settings() -> EmailSettings:
    """Provider configured, webhook verification off."""
    return EmailSettings(
        api_key="re_test_key_123456",
        api_url="https://api.resend.test",
        reply_domain=REPLY_DOMAIN,
    )


@pytest.fixture
def signed_email_settings(email_settings: EmailSettings) -> EmailSettings:
    """Same as email_settings with webhook signature verification on."""
    return EmailSettings(
        api_key=email_settings.api_key,
        api_url=email_settings.api_url,
        reply_domain=email_settings.reply_domain,
        webhook_secret=WEBHOOK_SECRET,
    )


@pytest.fixture
def email_client() -> AsyncMock:
    """Mocked ResendClient: configured, send succeeds, lookups return no body."""
    client = AsyncMock(spec=ResendClient)
    client.configured = True
    client.send_email.return_value = "sent_email_1"
    client.get_received_email.return_value = {}
    return client
