"""Service for quote/order lifecycle.

Orders are created when a customer submits a quote request and are the
aggregation root of each message thread. They are never deleted; only
their status and admin read marker change.

Example:
    svc = OrderService(db)
    order = svc.create_quote(customer_name="Jane Doe", email="jane@example.com")
    svc.update_status(order.id, OrderStatus.waiting_payment.value)
"""

import logging

from sqlalchemy.orm import Session

from src.db.models import Order, OrderStatus, utc_now_iso
from src.errors.domain import DuplicateOrderError, NotFoundError, ValidationError
from src.services.reply_address import generate_order_id, is_valid_order_id
from src.utils.redaction import mask_email

logger = logging.getLogger(__name__)

VALID_STATUSES = frozenset(s.value for s in OrderStatus)


class OrderService:
    """CRUD-minus-delete operations for orders.

    Args:
        db: SQLAlchemy session (sync).
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def create_quote(
        self,
        customer_name: str,
        email: str,
        phone: str | None = None,
        notes: str | None = None,
        order_id: str | None = None,
    ) -> Order:
        """Create a new order in the quote_request state.

        Args:
            customer_name: Customer display name.
            email: Customer email address.
            phone: Optional phone number.
            notes: Optional description of the requested print.
            order_id: Explicit id (imports/tests); generated when omitted.

        Returns:
            The created Order.

        Raises:
            ValidationError: Empty name, malformed email, or an id that
                cannot be embedded in a reply address.
            DuplicateOrderError: If order_id is already taken.
        """
        customer_name = (customer_name or "").strip()
        email = (email or "").strip()
        if not customer_name:
            raise ValidationError("Customer name is required")
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationError(f"Invalid email address: {email!r}")

        if order_id is None:
            order_id = generate_order_id()
        elif not is_valid_order_id(order_id):
            raise ValidationError(
                "Order id may only contain letters, digits and underscores"
            )
        if self._db.get(Order, order_id) is not None:
            raise DuplicateOrderError(order_id)

        order = Order(
            id=order_id,
            customer_name=customer_name,
            email=email,
            phone=phone,
            notes=notes,
            status=OrderStatus.quote_request.value,
        )
        self._db.add(order)
        self._db.commit()
        logger.info("Quote %s created for %s", order.id, mask_email(email))
        return order

    def get_order(self, order_id: str) -> Order | None:
        """Get an order by id, or None."""
        return self._db.get(Order, order_id)

    def require_order(self, order_id: str) -> Order:
        """Get an order by id.

        Raises:
            NotFoundError: If no such order exists.
        """
        order = self._db.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def list_orders(self, status: str | None = None) -> list[Order]:
        """List orders newest first, optionally filtered by status."""
        query = self._db.query(Order)
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(Order.created_at.desc()).all()

    def update_status(self, order_id: str, status: str) -> Order:
        """Move an order to a new lifecycle status.

        Raises:
            ValidationError: Unknown status value.
            NotFoundError: Unknown order.
        """
        if status not in VALID_STATUSES:
            raise ValidationError(
                f"Unknown status {status!r}; expected one of {sorted(VALID_STATUSES)}"
            )
        order = self.require_order(order_id)
        previous = order.status
        order.status = status
        order.updated_at = utc_now_iso()
        self._db.commit()
        logger.info("Order %s status %s -> %s", order_id, previous, status)
        return order
