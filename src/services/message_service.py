"""Persistence service for order messages.

Thin layer between API routes / webhook ingestion and the SQLAlchemy
models. Every write to an order thread goes through MessageService so the
"text or image" invariant is checked in one place. Messages are append-only:
there is no edit or delete operation.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from src.db.models import (
    MessageSender,
    MessageSource,
    Order,
    OrderMessage,
    to_utc_iso,
    utc_now_iso,
)
from src.errors.domain import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

VALID_SENDERS = frozenset(s.value for s in MessageSender)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class MessageService:
    """Append, list and read-mark operations for order threads.

    Args:
        db: SQLAlchemy session (sync).
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def _require_order(self, order_id: str) -> Order:
        order = self._db.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def append(
        self,
        order_id: str,
        sender: str,
        content: str | None,
        image_url: str | None = None,
        *,
        source: str = MessageSource.admin_ui.value,
        inbound_email_id: str | None = None,
    ) -> OrderMessage:
        """Append a message to an order's thread.

        The store assigns created_at; callers cannot backdate messages.

        Args:
            order_id: Owning order.
            sender: 'admin' or 'customer'.
            content: Message text (may be empty for image-only messages).
            image_url: Optional image reference.
            source: Channel the message arrived through.
            inbound_email_id: Provider email id for webhook-ingested replies.

        Returns:
            The persisted OrderMessage with id and created_at populated.

        Raises:
            ValidationError: Both content and image_url empty, or unknown sender.
            NotFoundError: Unknown order.
        """
        content = _clean(content)
        image_url = _clean(image_url)
        if content is None and image_url is None:
            raise ValidationError("Message must include text or an image")
        if sender not in VALID_SENDERS:
            raise ValidationError(
                f"Unknown sender {sender!r}; expected 'admin' or 'customer'"
            )
        self._require_order(order_id)

        msg = OrderMessage(
            order_id=order_id,
            sender=sender,
            content=content,
            image_url=image_url,
            source=source,
            inbound_email_id=inbound_email_id,
            created_at=utc_now_iso(),
        )
        self._db.add(msg)
        self._db.commit()
        logger.info(
            "Message %s appended to order %s (sender=%s, source=%s)",
            msg.id,
            order_id,
            sender,
            source,
        )
        return msg

    def list_by_order(self, order_id: str) -> list[OrderMessage]:
        """Return an order's thread in chronological (insertion) order.

        Returns an empty list when the order has no messages, including for
        unknown order ids; existence checks belong to the caller.
        """
        return (
            self._db.query(OrderMessage)
            .filter(OrderMessage.order_id == order_id)
            .order_by(OrderMessage.created_at, OrderMessage.id)
            .all()
        )

    def find_by_inbound_email_id(self, email_id: str) -> OrderMessage | None:
        """Return the message ingested from a provider email id, if any."""
        return (
            self._db.query(OrderMessage)
            .filter(OrderMessage.inbound_email_id == email_id)
            .first()
        )

    def mark_read(self, order_id: str, as_of: datetime | None = None) -> Order:
        """Record that an admin has read an order's thread.

        Idempotent; only the order's last_admin_read_at changes.

        Args:
            order_id: Order to mark.
            as_of: Read timestamp (defaults to now).

        Returns:
            The updated Order.

        Raises:
            NotFoundError: Unknown order.
        """
        order = self._require_order(order_id)
        order.last_admin_read_at = to_utc_iso(as_of) if as_of else utc_now_iso()
        self._db.commit()
        logger.debug("Order %s marked read at %s", order_id, order.last_admin_read_at)
        return order
