"""Database module for PrintPalooza order and message persistence."""

from src.db.connection import (
    SessionLocal,
    engine,
    get_db,
    get_db_context,
    init_db,
)
from src.db.models import (
    MessageSender,
    MessageSource,
    Order,
    OrderMessage,
    OrderStatus,
)

__all__ = [
    # Models
    "Order",
    "OrderMessage",
    # Enums
    "OrderStatus",
    "MessageSender",
    "MessageSource",
    # Connection
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "init_db",
]
