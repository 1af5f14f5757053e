"""SQLAlchemy ORM models for the PrintPalooza order messaging database.

This module defines the order (quote) record and the per-order message
thread exchanged between admins and customers. Uses SQLAlchemy 2.0 style
with Mapped and mapped_column.
"""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import (
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)

# Lower bound used when an order has never been read by an admin.
EPOCH_ISO = "1970-01-01T00:00:00.000000+00:00"


def utc_now_iso() -> str:
    """Generate current UTC timestamp in ISO8601 format.

    Microseconds are always rendered so that string comparison in SQLite
    matches chronological order.
    """
    return datetime.now(UTC).isoformat(timespec="microseconds")


def to_utc_iso(value: datetime) -> str:
    """Render a datetime in the same fixed-width format as utc_now_iso().

    Naive datetimes are assumed to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


# Enums matching the database schema constraints


class OrderStatus(str, Enum):
    """Lifecycle status values for a quote/order.

    Lifecycle: quote_request -> waiting_payment -> in_production
               -> shipped_delivered (cancelled from any state)
    """

    quote_request = "quote_request"
    waiting_payment = "waiting_payment"
    in_production = "in_production"
    shipped_delivered = "shipped_delivered"
    cancelled = "cancelled"


class MessageSender(str, Enum):
    """Author role of an order message."""

    admin = "admin"
    customer = "customer"


class MessageSource(str, Enum):
    """Channel a message entered the system through."""

    admin_ui = "admin_ui"
    email = "email"


# SQLAlchemy Base


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Models


class Order(Base):
    """Customer quote / print request.

    The aggregation root of a message thread. Orders are never deleted.

    Attributes:
        id: Order identifier (``quote_<digits>``), embedded in reply addresses.
        customer_name: Name shown in the admin inbox.
        email: Customer email address notifications are sent to.
        phone: Optional contact phone.
        notes: Free-text description of the requested print.
        status: Current lifecycle status (see OrderStatus).
        last_admin_read_at: When an admin last opened the thread (nullable).
        created_at: ISO8601 timestamp of quote submission.
        updated_at: ISO8601 timestamp of last status/read change.
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_status", "status"),
        Index("idx_orders_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=OrderStatus.quote_request.value
    )
    last_admin_read_at: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    messages: Mapped[list["OrderMessage"]] = relationship(
        "OrderMessage",
        back_populates="order",
        order_by="OrderMessage.id",
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id!r}, status={self.status!r})>"


class OrderMessage(Base):
    """One message in an order's thread.

    Messages are immutable once created. At least one of content or
    image_url is non-empty (enforced by MessageService).

    Attributes:
        id: Autoincrement primary key, tiebreak for insertion order.
        order_id: FK to Order.
        sender: 'admin' or 'customer'.
        content: Message text (nullable for image-only messages).
        image_url: Optional image reference.
        source: 'admin_ui' or 'email'.
        inbound_email_id: Provider email id for webhook-ingested replies.
        created_at: ISO8601 timestamp assigned at insertion.
    """

    __tablename__ = "order_messages"
    __table_args__ = (
        Index("idx_order_messages_order_created", "order_id", "created_at"),
        Index("idx_order_messages_sender", "sender"),
        Index("uq_order_messages_inbound_email_id", "inbound_email_id", unique=True),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("orders.id"), nullable=False
    )
    sender: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MessageSource.admin_ui.value
    )
    inbound_email_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    order: Mapped["Order"] = relationship("Order", back_populates="messages")

    def __repr__(self) -> str:
        return (
            f"<OrderMessage(id={self.id!r}, order_id={self.order_id!r}, "
            f"sender={self.sender!r})>"
        )
