"""Admin inbox aggregation over order threads.

Builds one summary row per order (latest message preview, unread count,
total count) in a single SQL statement. Nothing is cached: the projection
is recomputed on every call so the inbox always reflects the message
store.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session

from src.db.models import EPOCH_ISO, MessageSender, Order, OrderMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationSummary:
    """One admin inbox row.

    Attributes:
        order_id: Order identifier.
        customer_name: Customer display name.
        email: Customer email.
        status: Order lifecycle status.
        order_created_at: Order creation timestamp.
        last_message: Latest message text (None when image-only or no messages).
        last_image_url: Latest message image reference.
        last_sender: 'admin' / 'customer', None when the thread is empty.
        last_message_at: Latest message timestamp, None when empty.
        unread_count: Customer messages newer than the admin read marker.
        total_messages: Thread length.
    """

    order_id: str
    customer_name: str
    email: str
    status: str
    order_created_at: str
    last_message: str | None
    last_image_url: str | None
    last_sender: str | None
    last_message_at: str | None
    unread_count: int
    total_messages: int


class ConversationService:
    """Read-side projection for the admin message center.

    Args:
        db: SQLAlchemy session (sync).
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def list_conversations(self) -> list[ConversationSummary]:
        """Summarize every order's thread for the admin inbox.

        Orders without messages are included so new quote requests are not
        lost. Rows are sorted by the later of the last message time and the
        order creation time, newest first.

        Returns:
            List of ConversationSummary rows.
        """
        ranked = (
            self._db.query(
                OrderMessage.order_id.label("order_id"),
                OrderMessage.content.label("content"),
                OrderMessage.image_url.label("image_url"),
                OrderMessage.sender.label("sender"),
                OrderMessage.created_at.label("created_at"),
                func.row_number()
                .over(
                    partition_by=OrderMessage.order_id,
                    order_by=(OrderMessage.created_at.desc(), OrderMessage.id.desc()),
                )
                .label("rn"),
            )
            .subquery("ranked")
        )

        unread_expr = case(
            (
                and_(
                    OrderMessage.sender == MessageSender.customer.value,
                    OrderMessage.created_at
                    > func.coalesce(Order.last_admin_read_at, EPOCH_ISO),
                ),
                1,
            ),
            else_=0,
        )
        stats = (
            self._db.query(
                OrderMessage.order_id.label("order_id"),
                func.count(OrderMessage.id).label("total_messages"),
                func.sum(unread_expr).label("unread_count"),
            )
            .join(Order, Order.id == OrderMessage.order_id)
            .group_by(OrderMessage.order_id)
            .subquery("stats")
        )

        activity_at = case(
            (ranked.c.created_at > Order.created_at, ranked.c.created_at),
            else_=Order.created_at,
        )

        query = (
            self._db.query(
                Order.id,
                Order.customer_name,
                Order.email,
                Order.status,
                Order.created_at,
                ranked.c.content,
                ranked.c.image_url,
                ranked.c.sender,
                ranked.c.created_at,
                func.coalesce(stats.c.unread_count, 0),
                func.coalesce(stats.c.total_messages, 0),
            )
            .outerjoin(ranked, and_(ranked.c.order_id == Order.id, ranked.c.rn == 1))
            .outerjoin(stats, stats.c.order_id == Order.id)
            .order_by(activity_at.desc(), Order.id.desc())
        )

        results = []
        for row in query.all():
            results.append(
                ConversationSummary(
                    order_id=row[0],
                    customer_name=row[1],
                    email=row[2],
                    status=row[3],
                    order_created_at=row[4],
                    last_message=row[5],
                    last_image_url=row[6],
                    last_sender=row[7],
                    last_message_at=row[8],
                    unread_count=int(row[9] or 0),
                    total_messages=int(row[10] or 0),
                )
            )
        return results
