"""Pydantic schemas for API request/response validation.

This module defines the data contracts for the PrintPalooza REST API:
orders (quotes), order message threads, and the admin inbox.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# === Orders ===


class OrderCreate(BaseModel):
    """Request schema for submitting a quote request."""

    customer_name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=320)
    phone: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, description="What the customer wants printed")
    order_id: str | None = Field(
        None,
        max_length=64,
        pattern=r"^[A-Za-z0-9_]+$",
        description="Explicit order id (generated when omitted)",
    )


class OrderStatusUpdate(BaseModel):
    """Request schema for moving an order to a new status."""

    status: str = Field(..., description="One of the OrderStatus values")


class OrderResponse(BaseModel):
    """Response schema for an order."""

    id: str
    customer_name: str
    email: str
    phone: str | None
    notes: str | None
    status: str
    last_admin_read_at: str | None
    created_at: str
    updated_at: str

    model_config = ConfigDict(from_attributes=True)


class OrderListResponse(BaseModel):
    """Response schema for listing orders."""

    orders: list[OrderResponse]
    total: int


# === Messages ===


class MessageCreate(BaseModel):
    """Request schema for posting to an order thread.

    ``sender`` defaults to admin. Admins may log a customer reply received
    out of band by setting it to ``customer``; no notification is sent then.
    """

    message: str | None = Field(None, description="Message text")
    image_url: str | None = Field(None, description="Uploaded image reference")
    sender: Literal["admin", "customer"] = "admin"


class MessageResponse(BaseModel):
    """Response schema for one thread message."""

    id: int
    order_id: str
    sender: Literal["admin", "customer"]
    message: str | None = Field(validation_alias="content")
    image_url: str | None
    source: str
    created_at: str

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class MessageThreadResponse(BaseModel):
    """Response schema for an order's full thread."""

    order_id: str
    messages: list[MessageResponse]


class MarkReadResponse(BaseModel):
    """Response for marking a thread read."""

    order_id: str
    last_admin_read_at: str


# === Admin inbox ===


class ConversationSummaryResponse(BaseModel):
    """One admin inbox row."""

    order_id: str
    customer_name: str
    email: str
    status: str
    order_created_at: str
    last_message: str | None
    last_image_url: str | None
    last_sender: Literal["admin", "customer"] | None
    last_message_at: str | None
    unread_count: int
    total_messages: int

    model_config = ConfigDict(from_attributes=True)


class ConversationListResponse(BaseModel):
    """Response schema for the admin inbox."""

    conversations: list[ConversationSummaryResponse]
    total_unread: int
