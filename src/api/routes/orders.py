"""API routes for orders and their message threads.

Endpoints (all under /api):
    POST   /orders                     Submit a quote request
    GET    /orders                     List orders
    GET    /orders/{order_id}          Get one order
    PATCH  /orders/{order_id}/status   Move an order to a new status
    GET    /orders/{order_id}/messages Full thread, oldest first
    POST   /orders/{order_id}/messages Post to the thread (notifies customer)
    PATCH  /orders/{order_id}/read     Mark the thread read by admin
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import (
    get_message_service,
    get_notification_service,
    get_order_service,
)
from src.api.schemas import (
    MarkReadResponse,
    MessageCreate,
    MessageResponse,
    MessageThreadResponse,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from src.db.models import MessageSender, MessageSource
from src.errors.domain import DuplicateOrderError, NotFoundError, ValidationError
from src.services.message_service import MessageService
from src.services.notification_service import NotificationService
from src.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    data: OrderCreate,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Submit a quote request.

    Raises:
        HTTPException: 400 if validation fails, 409 if the order id exists.
    """
    try:
        order = service.create_quote(**data.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    except DuplicateOrderError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
def list_orders(
    status: str | None = None,
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """List orders newest first, optionally filtered by status."""
    orders = service.list_orders(status=status)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        total=len(orders),
    )


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Get one order.

    Raises:
        HTTPException: 404 if not found.
    """
    order = service.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return OrderResponse.model_validate(order)


@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Move an order to a new lifecycle status.

    Raises:
        HTTPException: 404 if the order does not exist, 400 for an unknown status.
    """
    try:
        order = service.update_status(order_id, data.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return OrderResponse.model_validate(order)


@router.get("/{order_id}/messages", response_model=MessageThreadResponse)
def list_order_messages(
    order_id: str,
    orders: OrderService = Depends(get_order_service),
    messages: MessageService = Depends(get_message_service),
) -> MessageThreadResponse:
    """Return an order's thread, oldest first.

    Raises:
        HTTPException: 404 if the order does not exist.
    """
    if orders.get_order(order_id) is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return MessageThreadResponse(
        order_id=order_id,
        messages=[MessageResponse.model_validate(m) for m in messages.list_by_order(order_id)],
    )


@router.post("/{order_id}/messages", response_model=MessageResponse, status_code=201)
async def send_order_message(
    order_id: str,
    data: MessageCreate,
    orders: OrderService = Depends(get_order_service),
    messages: MessageService = Depends(get_message_service),
    notifications: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    """Post a message to an order thread.

    Admin messages are emailed to the customer with the thread history and
    the order's reply-to address. Customer messages (an admin logging a
    reply received out of band) are stored without notification.

    Raises:
        HTTPException: 404 if the order does not exist, 400 if the message
            has neither text nor image.
    """
    order = orders.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")

    try:
        msg = messages.append(
            order_id,
            data.sender,
            data.message,
            data.image_url,
            source=MessageSource.admin_ui.value,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    if msg.sender == MessageSender.admin.value:
        history = messages.list_by_order(order_id)
        await notifications.notify_customer(order, msg, history)

    return MessageResponse.model_validate(msg)


@router.patch("/{order_id}/read", response_model=MarkReadResponse)
def mark_order_read(
    order_id: str,
    messages: MessageService = Depends(get_message_service),
) -> MarkReadResponse:
    """Mark an order's thread as read by the admin (now).

    Raises:
        HTTPException: 404 if the order does not exist.
    """
    try:
        order = messages.mark_read(order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    return MarkReadResponse(order_id=order.id, last_admin_read_at=order.last_admin_read_at)
