"""FastAPI dependency providers for process-scoped service handles.

The lifespan in src/api/main.py creates the email settings and the Resend
client once and stores them on ``app.state``. Handlers receive them through
these dependencies, and tests replace them with ``app.dependency_overrides``.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from src.db.connection import get_db
from src.services.conversation_service import ConversationService
from src.services.email_client import ResendClient
from src.services.email_settings import EmailSettings
from src.services.message_service import MessageService
from src.services.notification_service import NotificationService
from src.services.order_service import OrderService


def get_email_settings(request: Request) -> EmailSettings:
    """Return the process email settings (read from env if lifespan did not run)."""
    settings = getattr(request.app.state, "email_settings", None)
    if settings is None:
        settings = EmailSettings.from_env()
        request.app.state.email_settings = settings
    return settings


def get_email_client(request: Request) -> ResendClient | None:
    """Return the lifespan-owned Resend client, or None outside a lifespan."""
    return getattr(request.app.state, "email_client", None)


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Dependency injector for OrderService."""
    return OrderService(db)


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    """Dependency injector for MessageService."""
    return MessageService(db)


def get_conversation_service(db: Session = Depends(get_db)) -> ConversationService:
    """Dependency injector for ConversationService."""
    return ConversationService(db)


def get_notification_service(
    settings: EmailSettings = Depends(get_email_settings),
    email_client: ResendClient | None = Depends(get_email_client),
) -> NotificationService:
    """Dependency injector for NotificationService."""
    return NotificationService(settings, email_client)
