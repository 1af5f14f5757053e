"""Service layer for PrintPalooza.

Provides business logic for orders, order message threads, the admin
inbox projection, and the email pipeline (outbound notifications and
inbound reply ingestion).
"""

from src.services.conversation_service import ConversationService, ConversationSummary
from src.services.message_service import MessageService
from src.services.order_service import OrderService

__all__ = [
    "OrderService",
    "MessageService",
    "ConversationService",
    "ConversationSummary",
]
